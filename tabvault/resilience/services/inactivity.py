"""Inactive-tab monitor -- periodic sweep that suspends (discards) idle tabs.

Activity records are refreshed by tab events and read by the sweep.  With
"notify before suspend" on, the discard is deferred by a short grace delay,
and the candidates are re-validated against fresh tab and activity state
once it elapses: a tab the user went back to in the meantime is spared.
"""

from __future__ import annotations

import asyncio
from collections.abc import Callable, Iterable, Mapping, Sequence
from functools import partial
from typing import TYPE_CHECKING
from urllib.parse import urlsplit

from loguru import logger

from tabvault.resilience.managers.settings import load_config, update_config
from tabvault.resilience.models.enums import NotificationKind, TabStatus
from tabvault.resilience.platform.base import notify_quietly
from tabvault.resilience.services.timers import OneShotTimer, PeriodicTimer, now_ms

if TYPE_CHECKING:
    from tabvault.resilience.managers.activity import ActivityTracker
    from tabvault.resilience.models.activity import TabActivity
    from tabvault.resilience.models.api import InactivitySettingsUpdate
    from tabvault.resilience.models.config import ResilienceConfig
    from tabvault.resilience.models.tab import LiveTab
    from tabvault.resilience.platform.base import Notifier, TabPlatform
    from tabvault.resilience.store.base import KeyValueStore

SWEEP_INTERVAL_SECONDS = 300.0
GRACE_DELAY_SECONDS = 3.0


# ---------------------------------------------------------------------------
# Exclusion rules
# ---------------------------------------------------------------------------


def matches_protected_domain(url: str, rules: Iterable[str]) -> bool:
    """Whether the URL's host matches any protected-domain rule.

    ``example.com`` matches that host exactly; ``*.example.com`` matches
    ``example.com`` and any subdomain of it.  URLs without a host never match.
    """
    try:
        host = urlsplit(url).hostname
    except ValueError:
        return False
    if not host:
        return False

    for raw_rule in rules:
        rule = raw_rule.strip().lower()
        if not rule:
            continue
        if rule.startswith("*."):
            base = rule[2:]
            if host == base or host.endswith(f".{base}"):
                return True
        elif host == rule:
            return True
    return False


def should_exclude_from_auto_close(tab: LiveTab, config: ResilienceConfig) -> bool:
    """Tabs that are never suspended, whatever their activity."""
    if tab.is_internal or tab.active or tab.is_loading or tab.discarded:
        return True
    if config.exclude_pinned_from_auto_close and tab.pinned:
        return True
    if config.exclude_audible_from_auto_close and tab.audible:
        return True
    return bool(config.protected_domains) and matches_protected_domain(tab.url, config.protected_domains)


def select_candidates(
    tabs: Sequence[LiveTab],
    activity: Mapping[int, TabActivity],
    config: ResilienceConfig,
    *,
    now: int,
) -> tuple[list[int], list[int]]:
    """Split live tabs into suspend candidates and tabs with no activity record yet.

    Returns ``(candidates, unseen)``.  Unseen tabs are treated as just
    activated, not as inactive.
    """
    candidates: list[int] = []
    unseen: list[int] = []
    timeout = config.inactive_timeout_ms
    for tab in tabs:
        if should_exclude_from_auto_close(tab, config):
            continue
        record = activity.get(tab.id)
        if record is None:
            unseen.append(tab.id)
            continue
        if record.suspended:
            continue
        if now - record.last_accessed > timeout:
            candidates.append(tab.id)
    return candidates, unseen


# ---------------------------------------------------------------------------
# Monitor
# ---------------------------------------------------------------------------


class InactivityMonitor:
    def __init__(
        self,
        *,
        platform: TabPlatform,
        activity: ActivityTracker,
        sync: KeyValueStore,
        notifier: Notifier | None = None,
        clock: Callable[[], int] = now_ms,
        sweep_interval: float = SWEEP_INTERVAL_SECONDS,
        grace_delay: float = GRACE_DELAY_SECONDS,
    ) -> None:
        self._platform = platform
        self._activity = activity
        self._sync = sync
        self._notifier = notifier
        self._clock = clock
        self._sweep_interval = sweep_interval
        self._grace_delay = grace_delay
        self._timer: PeriodicTimer | None = None
        self._grace_timers: set[OneShotTimer] = set()
        self._initializing = False

    @property
    def active(self) -> bool:
        return self._timer is not None and self._timer.active

    # -- Lifecycle -------------------------------------------------------------

    async def initialize(self) -> None:
        if self._initializing:
            logger.debug("Inactivity: initialization already in progress, skipping")
            return

        self._initializing = True
        try:
            config = await load_config(self._sync)
            self._cancel_timer()
            if not config.auto_close_inactive_tabs:
                logger.info("Inactivity: auto-suspend disabled in settings")
                return
            self._timer = PeriodicTimer(self._sweep_interval, self.sweep, name="inactivity-sweep")
            self._timer.start()
            logger.info(
                "Inactivity: monitoring with {}min timeout, sweep every {}s",
                config.inactive_tab_timeout_minutes,
                self._sweep_interval,
            )
        except Exception:
            logger.exception("Inactivity: initialization failed")
            self._cancel_timer()
        finally:
            self._initializing = False

    async def apply_settings(self, update: InactivitySettingsUpdate) -> None:
        changes = update.to_config()
        if changes:
            await update_config(self._sync, changes)
        logger.info("Inactivity: settings changed, reinitialising")
        self.shutdown()
        await self.initialize()

    def shutdown(self) -> None:
        self._cancel_timer()
        for timer in self._grace_timers:
            timer.cancel()
        self._grace_timers.clear()

    async def wait_pending(self) -> None:
        """Wait for every deferred suspension to fire or be cancelled."""
        await asyncio.gather(*(timer.wait() for timer in list(self._grace_timers)))

    # -- Tab events ------------------------------------------------------------

    async def on_tab_activated(self, tab_id: int) -> None:
        await self._activity.touch(tab_id)

    async def on_tab_created(self, tab_id: int) -> None:
        await self._activity.touch(tab_id)

    async def on_tab_updated(self, tab_id: int, status: TabStatus | None) -> None:
        if status == TabStatus.COMPLETE:
            await self._activity.touch(tab_id)

    async def on_tab_removed(self, tab_id: int) -> None:
        await self._activity.forget(tab_id)

    # -- Sweep -----------------------------------------------------------------

    async def _collect(self) -> tuple[list[LiveTab], dict[int, TabActivity]]:
        tabs, activity = await asyncio.gather(self._platform.query_tabs(), self._activity.get_all())
        return tabs, activity

    async def sweep(self) -> list[int]:
        """Find inactive tabs and suspend them (now, or after the grace delay).

        Returns the candidate ids found by this sweep.
        """
        config = await load_config(self._sync)
        if not config.auto_close_inactive_tabs:
            return []

        tabs, activity = await self._collect()
        candidates, unseen = select_candidates(tabs, activity, config, now=self._clock())
        for tab_id in unseen:
            await self._activity.touch(tab_id)

        if not candidates:
            logger.debug("Inactivity: no inactive tabs ({} tabs checked)", len(tabs))
            return []

        if config.notify_before_auto_close:
            await notify_quietly(
                self._notifier,
                NotificationKind.SUSPEND_WARNING,
                "Auto-Suspend",
                f"Suspending {len(candidates)} inactive tab{'s' if len(candidates) > 1 else ''} "
                "due to inactivity. Click to restore when needed.",
            )
            self._defer(candidates)
        else:
            await self.suspend(candidates)
        return candidates

    def _defer(self, candidates: list[int]) -> None:
        self._grace_timers = {timer for timer in self._grace_timers if timer.pending}
        timer = OneShotTimer(
            self._grace_delay,
            partial(self._suspend_after_grace, candidates),
            name="inactivity-grace",
        )
        self._grace_timers.add(timer)
        timer.start()
        logger.debug("Inactivity: {} tabs scheduled for suspension in {}s", len(candidates), self._grace_delay)

    async def _suspend_after_grace(self, candidates: list[int]) -> list[int]:
        config = await load_config(self._sync)
        if not config.auto_close_inactive_tabs:
            logger.info("Inactivity: disabled during grace period, nothing suspended")
            return []

        tabs, activity = await self._collect()
        still_idle, _ = select_candidates(tabs, activity, config, now=self._clock())
        keep = set(still_idle)
        confirmed = [tab_id for tab_id in candidates if tab_id in keep]
        if len(confirmed) < len(candidates):
            logger.info("Inactivity: {} tabs became active during grace period", len(candidates) - len(confirmed))
        return await self.suspend(confirmed)

    async def suspend(self, tab_ids: Sequence[int]) -> list[int]:
        """Discard each tab; individual failures are logged and skipped.

        Returns the ids that were discarded and marked suspended.
        """
        discarded: list[int] = []
        for tab_id in tab_ids:
            try:
                await self._platform.discard(tab_id)
            except Exception as exc:
                logger.warning("Inactivity: failed to suspend tab {}: {}", tab_id, exc)
                continue
            discarded.append(tab_id)

        if discarded:
            await self._activity.mark_suspended(discarded)
            logger.info("Inactivity: suspended {} inactive tabs", len(discarded))
        return discarded

    def _cancel_timer(self) -> None:
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None
