from __future__ import annotations

from dataclasses import dataclass
from typing import Optional


@dataclass
class ActionGate:
    """Single-flight latch for claim submissions.

    Busy from the moment a claim is sent until the peer acknowledges it. With a
    timeout set, a submission older than ``timeout`` seconds reports as expired.
    """
    timeout: Optional[float] = None
    submitting: bool = False
    submitted_at: Optional[float] = None

    @property
    def busy(self) -> bool:
        return self.submitting

    def acquire(self, now: float) -> bool:
        if self.submitting:
            return False
        self.submitting = True
        self.submitted_at = now
        return True

    def release(self) -> None:
        self.submitting = False
        self.submitted_at = None

    def expired(self, now: float) -> bool:
        if not self.submitting or self.timeout is None or self.submitted_at is None:
            return False
        return now - self.submitted_at >= self.timeout
