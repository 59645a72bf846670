from __future__ import annotations

import logging
import threading
from typing import Optional

from .events import ActivityChange, ActivityLabel, ActivityNotifier, ActivityUpdate, Classification, Gate

logger = logging.getLogger(__name__)


class ActivityStateMachine:
    """Current activity label plus change/update emission.

    idle -> walking/running on the first classification; walking <-> running
    afterwards. Every applied classification publishes one update, and a
    change only when the label actually differs. An optional gate is handed
    to the notifier; once it closes, nothing more of the cycle is published.
    """

    def __init__(self, notifier: Optional[ActivityNotifier] = None) -> None:
        self.notifier = notifier if notifier is not None else ActivityNotifier()
        self._lock = threading.RLock()
        self._label = ActivityLabel.IDLE

    @property
    def current(self) -> ActivityLabel:
        with self._lock:
            return self._label

    def apply(
        self, result: Classification, timestamp: float, gate: Optional[Gate] = None
    ) -> Optional[ActivityChange]:
        with self._lock:
            old = self._label
            change: Optional[ActivityChange] = None
            if result.label != old:
                self._label = result.label
                change = ActivityChange(
                    old_label=old,
                    new_label=result.label,
                    timestamp=timestamp,
                    confidence=result.confidence,
                )
        if change is not None:
            logger.info(
                "activity changed",
                extra={"old_label": old.value, "new_label": result.label.value, "confidence": result.confidence},
            )
            self.notifier.publish_change(change, gate)
        self.notifier.publish_update(
            ActivityUpdate(label=result.label, timestamp=timestamp, score=result.score), gate
        )
        return change

    def report_degraded(self, timestamp: float, gate: Optional[Gate] = None) -> ActivityUpdate:
        """Re-publish the last known label flagged as degraded; never a transition."""
        update = ActivityUpdate(label=self.current, timestamp=timestamp, score=None, degraded=True)
        self.notifier.publish_update(update, gate)
        return update

    def reset(self) -> None:
        with self._lock:
            self._label = ActivityLabel.IDLE
