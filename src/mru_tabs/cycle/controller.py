"""Per-instance tab switcher: self-reports, cycle preview and direct switching."""

from __future__ import annotations

import asyncio
import logging
import time
import uuid
from typing import Callable

from mru_tabs.config import Settings
from mru_tabs.cycle import events
from mru_tabs.cycle.events import Action, InputEvent, KeyBindings, translate
from mru_tabs.cycle.session import FORWARD, CycleSession
from mru_tabs.exceptions import (
    ActivationError,
    CycleSessionError,
    HistoryError,
    RegistryQueryError,
)
from mru_tabs.history.exclusion import ExclusionRuleSet
from mru_tabs.history.manager import HistoryManager
from mru_tabs.history.models import TabRecord
from mru_tabs.history.parser import parse_record
from mru_tabs.history.store import SqliteKeyValueStore
from mru_tabs.registry.base import BaseTabRegistry, live_urls
from mru_tabs.registry.store import StoreTabRegistry
from mru_tabs.switching.activation import ActivationExecutor, DeepLinkExecutor
from mru_tabs.switching.resolver import resolve_previous, switch_token

logger = logging.getLogger(__name__)


def build_history(settings: Settings) -> HistoryManager:
    """History manager over the SQLite store named in ``settings``."""
    return HistoryManager(
        SqliteKeyValueStore(settings.db_path),
        rules=ExclusionRuleSet(settings.excluded_patterns),
        policy=settings.reconcile_policy(),
    )


class TabSwitcher:
    """Everything one page instance needs to track itself and switch tabs.

    Holds the instance's own identity, its cycle session and the timing state
    for debouncing and double presses. Nothing here is shared between
    instances except through the history store and the registry.

    Args:
        history: Shared MRU history.
        registry: Live-tab registry this instance publishes to.
        executor: Performs the actual focus switch.
        instance_id: Registry key for this instance (random if omitted).
        settings: Timing and threshold settings.
        bindings: Key bindings used by ``handle_event``.
        clock: Monotonic clock in seconds, used for all timing decisions.
    """

    def __init__(
        self,
        history: HistoryManager,
        registry: BaseTabRegistry,
        executor: ActivationExecutor,
        instance_id: str | None = None,
        settings: Settings | None = None,
        bindings: KeyBindings | None = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.history = history
        self.registry = registry
        self.executor = executor
        self.instance_id = instance_id or uuid.uuid4().hex
        self.settings = settings or Settings()
        self.bindings = bindings or KeyBindings()
        self.clock = clock
        self.session = CycleSession()
        self.current: TabRecord | None = None

        self._last_report: dict | None = None
        self._opening = False
        self._generation = 0
        self._last_open_at: float | None = None
        self._last_switch_at: float | None = None
        self._switching_until = 0.0
        self._pending_confirm: asyncio.Task | None = None
        self._tasks: set[asyncio.Task] = set()

    @classmethod
    def from_settings(
        cls,
        settings: Settings | None = None,
        executor: ActivationExecutor | None = None,
        instance_id: str | None = None,
    ) -> TabSwitcher:
        """Wire up the default SQLite store, registry and deep-link executor."""
        settings = settings or Settings.from_env()
        history = build_history(settings)
        if settings.registry_url:
            from mru_tabs.registry.http import HttpTabRegistry

            registry: BaseTabRegistry = HttpTabRegistry(
                settings.registry_url, timeout=settings.registry_timeout
            )
        else:
            registry = StoreTabRegistry(history.store)
        executor = executor or DeepLinkExecutor(settings.deeplink_prefix, settings.open_command)
        return cls(history, registry, executor, instance_id=instance_id, settings=settings)

    # ---- Self-reports ----

    async def report(self, raw: dict) -> TabRecord | None:
        """Record this instance's identity; malformed or excluded reports are ignored."""
        if self.clock() < self._switching_until:
            logger.debug("Switching in progress, skipping history update")
            return None
        record = parse_record(raw)
        if record is None:
            logger.debug("Ignoring malformed self-report")
            return None
        if self.history.rules.is_excluded(record.url):
            self.current = None
            return None

        self._last_report = dict(raw)
        # The stored copy keeps the id already assigned to this url.
        record = self.history.upsert(record)
        self.current = record
        try:
            await self.registry.publish(self.instance_id, record)
        except RegistryQueryError as e:
            logger.warning("Failed to publish self-report: %s", e)
        return record

    # ---- Cycle preview ----

    async def open_preview(self, direction: str = FORWARD) -> bool:
        """Reconcile, snapshot and open the cycle session.

        Opens arriving while another open is loading, or within the debounce
        window of the previous one, are ignored.
        """
        if self.session.active or self._opening:
            return False
        now = self.clock()
        if self._last_open_at is not None and now - self._last_open_at < self.settings.open_debounce:
            logger.debug("Debounced cycle preview open")
            return False
        self._last_open_at = now

        self._opening = True
        generation = self._generation
        try:
            snapshot = await self._reconciled_snapshot()
        finally:
            self._opening = False

        if generation != self._generation:
            logger.debug("Cycle preview cancelled while loading, discarding snapshot")
            return False
        return self.session.begin_preview(snapshot, direction)

    async def _reconciled_snapshot(self) -> list[TabRecord]:
        try:
            tabs = await asyncio.wait_for(
                self.registry.query(), timeout=self.settings.registry_timeout
            )
        except (RegistryQueryError, asyncio.TimeoutError) as e:
            logger.warning("Live tab query failed, using stored history: %s", str(e) or "timeout")
            return self.history.load()

        logger.debug("Registry reported %d live instances", len(tabs))
        self.history.merge_discovered(record for record in tabs.values() if record is not None)
        return self.history.reconcile(live_urls(tabs))

    def advance(self, direction: str = FORWARD) -> int:
        return self.session.advance(direction)

    def select_at(self, index: int) -> int:
        return self.session.select_at(index)

    def confirm(self) -> TabRecord | None:
        """Close the preview and switch to the selection if it moved."""
        if not self.session.active:
            return None
        target = self.session.confirm()
        if target is None:
            return None
        logger.info("Switching to selected tab: %s", target.title)
        if self._activate(target):
            self.history.promote(target)
        return target

    def cancel(self) -> None:
        """Close the preview unless a pointer confirm is already on its way."""
        if self._pending_confirm is not None and not self._pending_confirm.done():
            logger.debug("Confirm pending, ignoring cancel")
            return
        self.session.cancel()

    def hard_cancel(self) -> None:
        """Abort everything: the open session, a loading open and a pending confirm."""
        self._generation += 1
        if self._pending_confirm is not None:
            self._pending_confirm.cancel()
            self._pending_confirm = None
        self.session.hard_cancel()

    def select_and_confirm(self, index: int) -> asyncio.Task:
        """Pointer selection: select now, confirm after a short delay."""
        self.session.select_at(index)
        if self._pending_confirm is not None:
            self._pending_confirm.cancel()
        self._pending_confirm = self._spawn(self._confirm_later())
        return self._pending_confirm

    async def _confirm_later(self) -> TabRecord | None:
        await asyncio.sleep(self.settings.pointer_confirm_delay)
        self._pending_confirm = None
        try:
            return self.confirm()
        except HistoryError as e:
            logger.error("Failed to update history after pointer selection: %s", e)
            return None

    # ---- Direct switching ----

    async def switch_to_previous(self, current_url: str | None = None) -> TabRecord | None:
        """Switch to the most recent other tab and make it the front entry.

        ``current_url`` names the focused page when this instance has not
        reported itself; it is never chosen as the target.
        """
        history = self.history.load()
        now = self.clock()
        is_double = (
            self._last_switch_at is not None
            and now - self._last_switch_at < self.settings.double_press_window
        )
        self._last_switch_at = now

        if self.current is not None:
            current_url = self.current.url
        current_url = current_url or ""
        target = resolve_previous(history, current_url)
        if target is None:
            logger.info("No previous tab to switch to")
            return None

        self._switching_until = now + self.settings.switch_guard
        self.history.reorder_after_switch(target, self.current)
        logger.info("Switching to previous tab: %s (index %d)", target.title, target.position_hint)

        ok = self._activate(target)
        if not ok or is_double:
            self._spawn(self._retry(switch_token(target)))
        return target

    async def _retry(self, token: str) -> None:
        await asyncio.sleep(self.settings.retry_delay)
        logger.info("Re-issuing tab switch for %r", token)
        try:
            self.executor.activate(token)
        except ActivationError as e:
            logger.error("Retried tab switch failed: %s", e)

    def _activate(self, target: TabRecord) -> bool:
        try:
            self.executor.activate(switch_token(target))
        except ActivationError as e:
            logger.error("Failed to switch to %s, it might be closed: %s", target.title, e)
            self.history.mark_closed(target.url)
            return False
        return True

    # ---- Event ingestion ----

    async def handle_event(self, event: InputEvent) -> Action:
        """Apply one raw input event; returns the action it mapped to."""
        if event.kind == events.KEYUP and event.key == self.bindings.modifier and self._opening:
            # Released before the preview finished loading.
            self._generation += 1

        action = translate(event, self.session.active, self.bindings)
        name = action.name
        if name == events.BEGIN_PREVIEW:
            await self.open_preview(action.direction)
        elif name == events.ADVANCE:
            self.advance(action.direction)
        elif name == events.SELECT_AT:
            try:
                self.select_and_confirm(action.index)
            except CycleSessionError as e:
                logger.debug("Ignoring pointer selection: %s", e)
        elif name == events.CONFIRM:
            self.confirm()
        elif name == events.CANCEL:
            self.cancel()
        elif name == events.HARD_CANCEL:
            self.hard_cancel()
        elif name == events.SWITCH_PREVIOUS:
            await self.switch_to_previous()
        elif name == events.CLOSE:
            await self.unload()
        elif name == events.REFRESH and self._last_report is not None:
            refreshed = dict(self._last_report)
            refreshed["lastAccessed"] = self.history.clock()
            await self.report(refreshed)
        return action

    # ---- Maintenance ----

    def show_history(self) -> list[TabRecord]:
        return self.history.load()

    def clear_history(self) -> None:
        self.history.clear()

    def check_url(self, url: str) -> bool:
        """True if ``url`` would be tracked."""
        return not self.history.rules.is_excluded(url)

    def switch_to_title(self, title: str) -> None:
        self.executor.activate(title)

    async def show_active_tabs(self) -> dict[str, TabRecord | None]:
        return await self.registry.query()

    async def wait_pending(self) -> None:
        """Wait for outstanding retries and pending confirms to finish."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    async def unload(self) -> None:
        """The page is going away: abort any preview and leave the registry."""
        self.hard_cancel()
        self.current = None
        self._last_report = None
        try:
            await self.registry.unregister(self.instance_id)
        except RegistryQueryError as e:
            logger.warning("Failed to unregister tab %s: %s", self.instance_id, e)
        else:
            logger.debug("Unregistered tab %s", self.instance_id)

    async def aclose(self) -> None:
        """Cancel outstanding retries and pending confirms, then unregister."""
        tasks = list(self._tasks)
        for task in tasks:
            task.cancel()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)
        self._tasks.clear()
        self._pending_confirm = None
        await self.unload()

    def _spawn(self, coro) -> asyncio.Task:
        task = asyncio.get_running_loop().create_task(coro)
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task
