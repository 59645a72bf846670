from __future__ import annotations

import logging
import threading
import time
from dataclasses import dataclass
from typing import Optional

from ..config import AppConfig
from ..data.sensor_collector import SensorCollector
from .buffers import SampleBuffer
from .classifier import ClassifierAdapter
from .events import ActivityLabel, ActivityNotifier
from .predict import ActivityPredictor, Clock
from .state import ActivityStateMachine
from .tracker import ActivityStats, ActivityStatsTracker

logger = logging.getLogger(__name__)


@dataclass
class SessionSummary:
    started_at: float
    ended_at: float
    final_label: ActivityLabel
    stats: ActivityStats

    @property
    def duration_sec(self) -> float:
        return max(0.0, self.ended_at - self.started_at)


class ActivitySession:
    """One tracking session: sensor sampling, periodic prediction and stats.

    Construct with an initialized classifier (see `from_config`), subscribe to
    `notifier`, feed sensor readings to `collector`, then `start()`/`stop()`.
    """

    def __init__(
        self,
        config: AppConfig,
        classifier: ClassifierAdapter,
        notifier: Optional[ActivityNotifier] = None,
        clock: Clock = time.time,
    ) -> None:
        self.config = config
        self.clock = clock
        self.notifier = notifier if notifier is not None else ActivityNotifier()
        self.buffer = SampleBuffer(capacity=config.runtime.window_size)
        self.collector = SensorCollector(config, self.buffer)
        self.state = ActivityStateMachine(self.notifier)
        self.predictor = ActivityPredictor(config, self.buffer, classifier, self.state, clock=clock)
        self.stats = ActivityStatsTracker()
        self.notifier.subscribe_updates(self.stats.record)
        self._lock = threading.Lock()
        self._started_at: Optional[float] = None

    @classmethod
    def from_config(cls, config: AppConfig, notifier: Optional[ActivityNotifier] = None) -> "ActivitySession":
        """Load model and scaler from the configured paths; AssetLoadError propagates."""
        classifier = ClassifierAdapter()
        classifier.initialize(config.assets.model_path, config.assets.scaler_path)
        return cls(config, classifier, notifier=notifier)

    @property
    def is_tracking(self) -> bool:
        return self._started_at is not None

    @property
    def current_activity(self) -> ActivityLabel:
        return self.state.current

    def start(self) -> None:
        with self._lock:
            if self._started_at is not None:
                return
            self.buffer.reset()
            self.stats.reset()
            self.state.reset()
            self._started_at = self.clock()
            self.collector.start()
            self.predictor.start()
        logger.info("activity tracking started")

    def stop(self) -> Optional[SessionSummary]:
        with self._lock:
            if self._started_at is None:
                return None
            self.predictor.stop()
            self.collector.stop()
            self.buffer.reset()
            summary = SessionSummary(
                started_at=self._started_at,
                ended_at=self.clock(),
                final_label=self.state.current,
                stats=self.stats.stats(),
            )
            self._started_at = None
        logger.info(
            "activity tracking stopped",
            extra={
                "dominant_activity": summary.stats.dominant_activity.value,
                "total_samples": summary.stats.total_samples,
            },
        )
        return summary

    def reset(self) -> None:
        """Return the label to idle; the session must not be tracking."""
        with self._lock:
            if self._started_at is not None:
                raise RuntimeError("cannot reset an active session; stop() it first")
            self.state.reset()
