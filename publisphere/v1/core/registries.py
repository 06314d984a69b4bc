from __future__ import annotations

from collections.abc import Iterable
from typing import Generic, Protocol, TypeVar

# Base registry implementation
T = TypeVar("T")


class Registry(Generic[T]):
    """Generic registry for pluggable implementations."""

    def __init__(self, name: str):
        self.name = name
        self._implementations: dict[str, T] = {}
        self._frozen = False

    def register(self, name: str, implementation: T) -> None:
        """Register an implementation with a given name."""
        if self._frozen:
            raise RuntimeError(
                f"Cannot register '{name}' in {self.name.lower()} registry: "
                "registry is frozen"
            )
        self._implementations[name] = implementation

    def get(self, name: str) -> T:
        """Get an implementation by name."""
        if name not in self._implementations:
            raise KeyError(
                f"No {self.name.lower()} implementation registered with name: {name}"
            )
        return self._implementations[name]

    def list(self) -> list[str]:
        """List all registered implementation names."""
        return list(self._implementations.keys())

    def missing(self, names: Iterable[str]) -> list[str]:
        """Names from ``names`` that have no implementation, sorted."""
        return sorted(n for n in names if n not in self._implementations)

    def freeze(self) -> None:
        """Freeze the registry to prevent further modifications."""
        self._frozen = True

    def is_frozen(self) -> bool:
        """Check if the registry is frozen."""
        return self._frozen


# Job Registry - background processing handlers
class JobHandler(Protocol):
    """Protocol for handlers that perform one job's side effect."""

    async def execute(self, job):  # -> Outcome
        """
        Perform the job's external work once.

        Expected business failures are returned as ``Failure`` so the poller
        can apply its retry policy; only unexpected faults may raise.
        Implementations must tolerate being called again for the same job.
        """
        ...


class JobRegistry(Registry[JobHandler]):
    """Registry for background job handlers."""

    def __init__(self):
        super().__init__("Job")
