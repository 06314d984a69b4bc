from dataclasses import dataclass, field
from typing import Any


@dataclass(frozen=True)
class Success:
    """The job's side effect happened (or had already happened)."""

    detail: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class Failure:
    """The attempt failed; the poller decides between retry and giving up."""

    reason: str


Outcome = Success | Failure
