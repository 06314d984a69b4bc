from publisphere.v1.core.registries import JobHandler, JobRegistry
from publisphere.v1.infra.jobs.errors import UnknownJobTypeError
from publisphere.v1.infra.jobs.models import JobType


class IncompleteRegistryError(RuntimeError):
    """Some JobType member has no handler registered."""


class Dispatcher:
    """
    Maps a job's declared type to its handler. Pure lookup, no side effects.

    Construction checks that every JobType has a handler and freezes the
    registry, so adding a job type without a handler fails at startup rather
    than when the first such job is polled.
    """

    def __init__(self, registry: JobRegistry):
        missing = registry.missing(t.value for t in JobType)
        if missing:
            raise IncompleteRegistryError(
                f"No handler registered for job types: {', '.join(missing)}"
            )

        registry.freeze()
        self._handlers: dict[JobType, JobHandler] = {
            t: registry.get(t.value) for t in JobType
        }

    def resolve(self, job_type: str) -> JobHandler:
        try:
            return self._handlers[JobType(job_type)]
        except ValueError:
            raise UnknownJobTypeError(job_type) from None
