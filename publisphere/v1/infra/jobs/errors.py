from uuid import UUID


class JobError(Exception):
    """Base class for job queue errors."""


class ConflictError(JobError):
    """A conditional transition found the job in an unexpected state.

    Under concurrent pollers this is the normal signal that another cycle
    owns the job; the caller must not assume anything was written.
    """

    def __init__(self, job_id: UUID, expected_status: str, operation: str):
        self.job_id = job_id
        self.expected_status = expected_status
        self.operation = operation
        super().__init__(
            f"{operation} rejected for job {job_id}: not in status '{expected_status}'"
        )


class UnknownJobTypeError(JobError):
    """The job declares a type no handler exists for. Never retried."""

    def __init__(self, job_type: str):
        self.job_type = job_type
        super().__init__(f"Unknown job type: {job_type}")


class JobNotFoundError(JobError):
    def __init__(self, job_id: UUID):
        self.job_id = job_id
        super().__init__(f"Job {job_id} not found")
