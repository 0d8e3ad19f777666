"""Per-tab activity record, keyed by the live tab id."""

from __future__ import annotations

from pydantic import model_validator

from tabvault.resilience.models.base import StoredModel


class TabActivity(StoredModel):
    """Last-access bookkeeping for one live tab.

    Invariants: ``last_accessed >= created_at`` and ``suspended`` implies
    ``suspended_at`` is set.
    """

    last_accessed: int
    created_at: int
    suspended: bool = False
    suspended_at: int | None = None

    @model_validator(mode="after")
    def _check_invariants(self) -> TabActivity:
        if self.last_accessed < self.created_at:
            msg = "last_accessed must not precede created_at"
            raise ValueError(msg)
        if self.suspended and self.suspended_at is None:
            msg = "suspended records must carry suspended_at"
            raise ValueError(msg)
        return self

    @classmethod
    def first_seen(cls, now: int) -> TabActivity:
        return cls(last_accessed=now, created_at=now)

    def touched(self, now: int) -> TabActivity:
        """Return a refreshed record; touching a tab always clears suspension."""
        return TabActivity(
            last_accessed=max(now, self.created_at),
            created_at=self.created_at,
        )

    def as_suspended(self, now: int) -> TabActivity:
        return self.model_copy(update={"suspended": True, "suspended_at": now})
