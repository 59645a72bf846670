from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from enum import Enum
from typing import Callable, List, Optional


logger = logging.getLogger(__name__)


class ActivityLabel(str, Enum):
    IDLE = "idle"
    WALKING = "walking"
    RUNNING = "running"


@dataclass(frozen=True)
class Classification:
    label: ActivityLabel
    score: float
    confidence: float


@dataclass(frozen=True)
class ActivityChange:
    old_label: ActivityLabel
    new_label: ActivityLabel
    timestamp: float
    confidence: float


@dataclass(frozen=True)
class ActivityUpdate:
    label: ActivityLabel
    timestamp: float
    score: Optional[float] = None
    # Last known label re-reported after a failed cycle
    degraded: bool = False


ChangeListener = Callable[[ActivityChange], None]
UpdateListener = Callable[[ActivityUpdate], None]
# Checked before each delivery; a closed gate silences the rest of the event
Gate = Callable[[], bool]


class ActivityNotifier:
    """Observer list fanning activity events out to independent subscribers.

    A subscriber that raises is logged and skipped; the remaining subscribers
    still receive the event. Publishers may pass a gate that is consulted
    before every delivery, so a listener that halts the publisher stops the
    fan-out there.
    """

    def __init__(self) -> None:
        self._lock = threading.RLock()
        self._change_listeners: List[ChangeListener] = []
        self._update_listeners: List[UpdateListener] = []

    def subscribe_changes(self, listener: ChangeListener) -> Callable[[], None]:
        with self._lock:
            self._change_listeners.append(listener)
        return lambda: self._remove(self._change_listeners, listener)

    def subscribe_updates(self, listener: UpdateListener) -> Callable[[], None]:
        with self._lock:
            self._update_listeners.append(listener)
        return lambda: self._remove(self._update_listeners, listener)

    def _remove(self, listeners: list, listener: Callable) -> None:
        with self._lock:
            if listener in listeners:
                listeners.remove(listener)

    def publish_change(self, event: ActivityChange, gate: Optional[Gate] = None) -> None:
        with self._lock:
            listeners = list(self._change_listeners)
        for listener in listeners:
            if gate is not None and not gate():
                return
            try:
                listener(event)
            except Exception:  # noqa: BLE001
                logger.exception("activity change listener failed")

    def publish_update(self, event: ActivityUpdate, gate: Optional[Gate] = None) -> None:
        with self._lock:
            listeners = list(self._update_listeners)
        for listener in listeners:
            if gate is not None and not gate():
                return
            try:
                listener(event)
            except Exception:  # noqa: BLE001
                logger.exception("activity update listener failed")
