"""Tests for verification threshold configuration."""

import pytest

from src.services.verification_thresholds import DEFAULT_THRESHOLDS, VerificationThresholds


class TestDefaults:
    """Default values."""

    def test_default_values(self):
        """Defaults match the documented cut-offs."""
        assert DEFAULT_THRESHOLDS.min_quote_length == 20
        assert DEFAULT_THRESHOLDS.context_window == 150
        assert DEFAULT_THRESHOLDS.max_window_words == 8
        assert DEFAULT_THRESHOLDS.min_window_words == 3
        assert DEFAULT_THRESHOLDS.scatter_trigger == 0.5
        assert DEFAULT_THRESHOLDS.scatter_weight == 0.8
        assert DEFAULT_THRESHOLDS.acceptance_floor == 0.3
        assert DEFAULT_THRESHOLDS.partial_threshold == 0.7
        assert DEFAULT_THRESHOLDS.verified_threshold == 0.5

    def test_frozen(self):
        """Thresholds cannot be mutated in place."""
        with pytest.raises(Exception):
            DEFAULT_THRESHOLDS.verified_threshold = 0.1

    def test_to_dict(self):
        """to_dict exposes every field."""
        data = DEFAULT_THRESHOLDS.to_dict()

        assert data["verified_threshold"] == 0.5
        assert len(data) == 10


class TestValidation:
    """Invalid combinations are rejected."""

    @pytest.mark.parametrize("kwargs", [
        {"verified_threshold": 1.5},
        {"acceptance_floor": -0.1},
        {"min_window_words": 0},
        {"min_window_words": 5, "max_window_words": 4},
        {"acceptance_floor": 0.8, "partial_threshold": 0.7},
        {"min_quote_length": 0},
        {"context_window": -1},
    ])
    def test_invalid(self, kwargs):
        with pytest.raises(ValueError):
            VerificationThresholds(**kwargs)


class TestFromEnv:
    """Environment overrides."""

    def test_empty_environment_uses_defaults(self):
        assert VerificationThresholds.from_env({}) == DEFAULT_THRESHOLDS

    def test_overrides(self):
        """QUOTE_* variables override matching fields with the right type."""
        thresholds = VerificationThresholds.from_env({
            "QUOTE_VERIFIED_THRESHOLD": "0.6",
            "QUOTE_MIN_QUOTE_LENGTH": "10",
            "QUOTE_CONTEXT_WINDOW": "",
            "UNRELATED": "x",
        })

        assert thresholds.verified_threshold == 0.6
        assert thresholds.min_quote_length == 10
        assert isinstance(thresholds.min_quote_length, int)
        assert thresholds.context_window == 150

    def test_bad_value(self):
        """Unparseable values name the variable."""
        with pytest.raises(ValueError, match="QUOTE_MAX_WINDOW_WORDS"):
            VerificationThresholds.from_env({"QUOTE_MAX_WINDOW_WORDS": "eight"})

    def test_out_of_range_value(self):
        """Parsed values still go through validation."""
        with pytest.raises(ValueError):
            VerificationThresholds.from_env({"QUOTE_PARTIAL_THRESHOLD": "2"})

    def test_reads_process_environment(self, monkeypatch):
        monkeypatch.setenv("QUOTE_SCATTER_WEIGHT", "0.7")

        assert VerificationThresholds.from_env().scatter_weight == 0.7
