from __future__ import annotations
"""Per-operation success and failure bookkeeping."""
from dataclasses import dataclass, field
from typing import Optional


@dataclass(frozen=True)
class ObjectFailure:
    key: str
    reason: str = ""


@dataclass
class FailureAccumulator:
    """Counts per-object results without ever aborting the enclosing batch."""

    succeeded: int = 0
    skipped: int = 0
    failures: list[ObjectFailure] = field(default_factory=list)

    @property
    def failed(self) -> int:
        return len(self.failures)

    @property
    def failed_keys(self) -> set[str]:
        return {failure.key for failure in self.failures}

    @property
    def total(self) -> int:
        return self.succeeded + self.failed + self.skipped

    def record_success(self, key: str) -> None:
        self.succeeded += 1

    def record_failure(self, key: str, error: Optional[Exception] = None) -> None:
        self.failures.append(ObjectFailure(key=key, reason=str(error) if error else ""))

    def record_skip(self, key: str) -> None:
        self.skipped += 1
