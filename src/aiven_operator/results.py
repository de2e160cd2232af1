"""Outcome of one reconcile step, consumed by the work dispatcher."""

from __future__ import annotations

import enum
from dataclasses import dataclass


class Outcome(enum.Enum):
    DONE = "done"
    RETRY = "retry"
    FAILED = "failed"


@dataclass(frozen=True)
class ReconcileResult:
    """What the dispatcher should do with a key after a reconcile step.

    ``DONE`` redelivers after ``requeue_after`` (the steady-state resync) or
    never when it is None. ``RETRY`` redelivers after ``requeue_after``;
    ``backoff`` marks retries that count against the key's exponential
    backoff. ``FAILED`` is terminal until the descriptor changes again.
    """

    outcome: Outcome
    requeue_after: float | None = None
    reason: str = ""
    backoff: bool = False

    @classmethod
    def done(cls, resync_after: float | None = None, reason: str = "") -> ReconcileResult:
        return cls(Outcome.DONE, resync_after, reason)

    @classmethod
    def retry(cls, after: float, reason: str, backoff: bool = False) -> ReconcileResult:
        return cls(Outcome.RETRY, max(after, 0.0), reason, backoff)

    @classmethod
    def failed(cls, reason: str) -> ReconcileResult:
        return cls(Outcome.FAILED, None, reason)

    @property
    def is_done(self) -> bool:
        return self.outcome is Outcome.DONE

    @property
    def is_retry(self) -> bool:
        return self.outcome is Outcome.RETRY

    @property
    def is_failed(self) -> bool:
        return self.outcome is Outcome.FAILED
