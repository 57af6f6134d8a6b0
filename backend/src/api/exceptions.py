"""Custom exception classes for the API."""


class JobNotFoundError(Exception):
    """Raised when a verification job is not found."""

    def __init__(self, job_id: str):
        self.job_id = job_id
        super().__init__(f"Job {job_id} not found")
