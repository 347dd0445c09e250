"""
Debounced autosave.

The controller listens to the store. Every change to the document re-arms a
single timer; when the timer fires the current snapshot is handed to the
persistence collaborator. A failed save keeps the dirty flag set and is not
retried until the next change or an explicit save.
"""
import logging
from typing import Any, Callable, Optional, Protocol

from dashboard_layout.app.store import DesignerState, LayoutStore
from dashboard_layout.model.data_model import Snapshot
from dashboard_layout.model.errors import PersistenceError

logger = logging.getLogger(__name__)


class Persistence(Protocol):
    def load(self, dashboard_id: str) -> Snapshot: ...

    def save(self, snapshot: Snapshot) -> None: ...


class Scheduler(Protocol):
    def schedule(self, delay_ms: int, task: Callable[[], None]) -> Any: ...

    def cancel(self, handle: Any) -> None: ...


class AutosaveController:
    def __init__(self, store: LayoutStore, persistence: Persistence, scheduler: Scheduler,
                 delay_ms: Optional[int] = None, enabled: Optional[bool] = None,
                 on_save_failed: Optional[Callable[[PersistenceError], None]] = None):
        self.store = store
        self.persistence = persistence
        self.scheduler = scheduler
        self.delay_ms = store.config.autosave_delay_ms if delay_ms is None else delay_ms
        self.enabled = store.config.autosave_enabled if enabled is None else enabled
        self.on_save_failed = on_save_failed
        self.last_error: Optional[PersistenceError] = None

        self._handle = None
        self._dirty = False
        self._saving = False
        self._resave_requested = False
        self._loading = False
        self._saved_snapshot: Snapshot = store.snapshot
        self._last_seen: Snapshot = store.snapshot
        self._unsubscribe = store.subscribe(self._on_state_changed)

    @property
    def dirty(self) -> bool:
        """Unsaved changes exist."""
        return self._dirty

    @property
    def saving(self) -> bool:
        """A save request is in flight."""
        return self._saving

    @property
    def pending(self) -> bool:
        """A debounce timer is armed."""
        return self._handle is not None

    def _on_state_changed(self, state: DesignerState):
        if self._loading or state.snapshot is self._last_seen:
            return  # selection-only change
        self._last_seen = state.snapshot

        if state.snapshot == self._saved_snapshot:
            # Undone back to what is already stored
            self._dirty = False
            self._cancel_timer()
            return

        self._dirty = True
        if self.enabled:
            self._arm()

    def _arm(self):
        self._cancel_timer()
        self._handle = self.scheduler.schedule(self.delay_ms, self._on_timer)

    def _cancel_timer(self):
        if self._handle is not None:
            self.scheduler.cancel(self._handle)
            self._handle = None

    def _on_timer(self):
        self._handle = None
        if self._saving:
            self._resave_requested = True
            return
        self.save_now()

    def save_now(self) -> bool:
        """
        Save the current snapshot immediately.

        Returns False when the save failed or another save is in flight (a
        follow-up save is queued in that case).
        """
        self._cancel_timer()
        if self._saving:
            self._resave_requested = True
            return False
        if not self._dirty:
            return True

        snapshot = self.store.snapshot
        self._saving = True
        try:
            self.persistence.save(snapshot)
        except PersistenceError as e:
            self.last_error = e
            logger.warning("Autosave failed: %s", e)
            if self.on_save_failed:
                self.on_save_failed(e)
            return False
        finally:
            self._saving = False

        self.last_error = None
        self._saved_snapshot = snapshot
        self._dirty = self.store.snapshot != snapshot
        logger.info("Dashboard saved (%d components)", len(snapshot.components))

        if self._resave_requested:
            self._resave_requested = False
            if self._dirty and self.enabled:
                self._arm()
        return True

    def load(self, dashboard_id: str) -> Snapshot:
        """Load a dashboard through persistence and install it in the store."""
        snapshot = self.persistence.load(dashboard_id)
        self._cancel_timer()
        self._loading = True
        try:
            self.store.load_snapshot(snapshot)
        finally:
            self._loading = False
        self._saved_snapshot = self.store.snapshot
        self._last_seen = self.store.snapshot
        self._dirty = False
        self.last_error = None
        return self.store.snapshot

    def close(self):
        """Cancel the pending timer and stop listening. Call when the designer goes away."""
        self._cancel_timer()
        self._unsubscribe()
