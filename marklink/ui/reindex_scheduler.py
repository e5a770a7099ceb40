from __future__ import annotations

from PySide6.QtCore import QObject, Qt, QTimer, Signal

from marklink.settings_models import DEFAULT_DEBOUNCE_MS, MAX_DEBOUNCE_MS


class ReindexScheduler(QObject):
    reindexDue = Signal(str)  # document key

    def __init__(self, delay_ms: int = DEFAULT_DEBOUNCE_MS, parent=None):
        super().__init__(parent)
        self._delay_ms = self._clamp_delay(delay_ms)
        self._debounce_timers: dict[str, QTimer] = {}

    @property
    def delay_ms(self) -> int:
        return self._delay_ms

    def set_delay_ms(self, delay_ms: int):
        self._delay_ms = self._clamp_delay(delay_ms)

    def schedule(self, key: str):
        timer = self._debounce_timers.get(key)
        if timer is None:
            timer = QTimer(self)
            timer.setSingleShot(True)
            timer.setTimerType(Qt.PreciseTimer)
            timer.timeout.connect(lambda k=key: self._on_timer_fired(k))
            self._debounce_timers[key] = timer
        # start() on an active timer restarts it: cancel and replace in one call.
        timer.start(self._delay_ms)

    def cancel(self, key: str) -> bool:
        timer = self._debounce_timers.get(key)
        if timer is None or not timer.isActive():
            return False
        timer.stop()
        return True

    def release(self, key: str):
        timer = self._debounce_timers.pop(key, None)
        if timer is None:
            return
        timer.stop()
        timer.deleteLater()

    def cancel_all(self):
        for key in list(self._debounce_timers.keys()):
            self.release(key)

    def is_pending(self, key: str) -> bool:
        timer = self._debounce_timers.get(key)
        return timer is not None and timer.isActive()

    def pending_keys(self) -> list[str]:
        return [key for key, timer in self._debounce_timers.items() if timer.isActive()]

    def _on_timer_fired(self, key: str):
        if key not in self._debounce_timers:
            return
        self.reindexDue.emit(key)

    @staticmethod
    def _clamp_delay(delay_ms: int) -> int:
        try:
            value = int(delay_ms)
        except (TypeError, ValueError):
            value = DEFAULT_DEBOUNCE_MS
        return max(0, min(MAX_DEBOUNCE_MS, value))
