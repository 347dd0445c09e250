from PyQt6.QtCore import QObject, QTimer, pyqtSignal

from dashboard_layout.app.store import DesignerState, LayoutStore


class QtTimerScheduler(QObject):
    """Scheduler backed by single-shot QTimers on the Qt event loop."""

    def __init__(self, parent=None):
        super().__init__(parent)
        self._timers = set()

    @property
    def pending_count(self) -> int:
        return len(self._timers)

    def schedule(self, delay_ms, task):
        timer = QTimer(self)
        timer.setSingleShot(True)
        timer.setInterval(max(int(delay_ms), 0))
        timer.timeout.connect(lambda: self._fire(timer, task))
        self._timers.add(timer)
        timer.start()
        return timer

    def cancel(self, handle):
        if handle not in self._timers:
            return
        handle.stop()
        self._timers.discard(handle)
        handle.deleteLater()

    def _fire(self, timer, task):
        if timer not in self._timers:
            return  # cancelled after the timeout was queued
        self._timers.discard(timer)
        timer.deleteLater()
        task()


class StoreSignals(QObject):
    """Re-emits LayoutStore notifications as Qt signals for widgets."""

    state_changed = pyqtSignal(object)        # DesignerState
    selection_changed = pyqtSignal(object)    # component id or None
    undo_availability_changed = pyqtSignal(bool, bool)  # can_undo, can_redo

    def __init__(self, store: LayoutStore, parent=None):
        super().__init__(parent)
        self.store = store
        self._selected_id = store.selected_id
        self._availability = (store.can_undo, store.can_redo)
        self._unsubscribe = store.subscribe(self._on_state)

    def _on_state(self, state: DesignerState):
        self.state_changed.emit(state)
        if state.selected_id != self._selected_id:
            self._selected_id = state.selected_id
            self.selection_changed.emit(state.selected_id)
        availability = (state.can_undo, state.can_redo)
        if availability != self._availability:
            self._availability = availability
            self.undo_availability_changed.emit(*availability)

    def detach(self):
        self._unsubscribe()
