from __future__ import annotations

import threading
from collections import deque
from dataclasses import dataclass
from typing import Deque, List

from .events import ActivityLabel, ActivityUpdate


@dataclass
class ActivityStats:
    running: int = 0
    walking: int = 0
    degraded: int = 0

    @property
    def total_samples(self) -> int:
        return self.running + self.walking

    @property
    def running_percentage(self) -> float:
        return (self.running / self.total_samples * 100.0) if self.total_samples else 0.0

    @property
    def walking_percentage(self) -> float:
        return (self.walking / self.total_samples * 100.0) if self.total_samples else 0.0

    @property
    def dominant_activity(self) -> ActivityLabel:
        if not self.total_samples:
            return ActivityLabel.IDLE
        return ActivityLabel.RUNNING if self.running > self.walking else ActivityLabel.WALKING


class ActivityStatsTracker:
    """Count classifications for a tracking session.

    Degraded updates are counted separately and never as walking.
    """

    def __init__(self, history_limit: int = 1000) -> None:
        self._lock = threading.RLock()
        self._stats = ActivityStats()
        self._history: Deque[ActivityUpdate] = deque(maxlen=history_limit)

    def record(self, update: ActivityUpdate) -> None:
        with self._lock:
            self._history.append(update)
            if update.degraded:
                self._stats.degraded += 1
            elif update.label is ActivityLabel.RUNNING:
                self._stats.running += 1
            elif update.label is ActivityLabel.WALKING:
                self._stats.walking += 1

    def recent(self, limit: int = 100) -> List[ActivityUpdate]:
        with self._lock:
            return list(self._history)[-limit:]

    def stats(self) -> ActivityStats:
        with self._lock:
            return ActivityStats(**vars(self._stats))

    def reset(self) -> None:
        with self._lock:
            self._stats = ActivityStats()
            self._history.clear()
