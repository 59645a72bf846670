from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional, Sequence, Union

import pandas as pd

from ..config import AppConfig
from ..core.buffers import RawSample, SampleBuffer
from ..core.classifier import ClassifierAdapter
from ..core.errors import AssetLoadError
from ..core.events import ActivityChange, ActivityNotifier, ActivityUpdate
from ..core.predict import ActivityPredictor
from ..core.state import ActivityStateMachine
from ..core.tracker import ActivityStats, ActivityStatsTracker
from ..utils.clock import SimulatedClock

logger = logging.getLogger(__name__)


# Column names of the sample dictionaries recorded by the mobile app
RECORDING_COLUMNS = (
    "acceleration_x",
    "acceleration_y",
    "acceleration_z",
    "gyro_x",
    "gyro_y",
    "gyro_z",
)


def load_recording(path: Union[str, Path]) -> List[RawSample]:
    """Read a recorded session CSV into raw samples, in file order."""
    path = Path(path)
    if not path.exists():
        raise AssetLoadError(f"recording not found: {path}")
    try:
        df = pd.read_csv(path)
    except (OSError, ValueError) as exc:
        raise AssetLoadError(f"cannot read recording {path}: {exc}") from exc
    missing = [c for c in RECORDING_COLUMNS if c not in df.columns]
    if missing:
        raise AssetLoadError(f"recording {path} lacks columns {missing}")
    try:
        values = df.loc[:, list(RECORDING_COLUMNS)].astype(float).to_numpy()
    except ValueError as exc:
        raise AssetLoadError(f"recording {path} has non-numeric samples: {exc}") from exc
    return [RawSample.from_values(row) for row in values]


@dataclass
class ReplayResult:
    updates: List[ActivityUpdate] = field(default_factory=list)
    changes: List[ActivityChange] = field(default_factory=list)
    stats: ActivityStats = field(default_factory=ActivityStats)
    duration_sec: float = 0.0


class ReplayRunner:
    """Replay recorded samples through the live pipeline on a simulated clock.

    Samples are pushed at the configured sampling interval and one predictor
    cycle runs every `tick_period_sec`; the predictor, classifier and state
    machine are exactly those used in live tracking, only the timebase is
    simulated.
    """

    def __init__(
        self,
        config: AppConfig,
        classifier: ClassifierAdapter,
        notifier: Optional[ActivityNotifier] = None,
    ) -> None:
        self.config = config
        self.classifier = classifier
        self.notifier = notifier if notifier is not None else ActivityNotifier()

    def run(self, samples: Sequence[RawSample], start_ts: float = 0.0) -> ReplayResult:
        runtime = self.config.runtime
        clock = SimulatedClock(start_ts)
        buffer = SampleBuffer(capacity=runtime.window_size)
        state = ActivityStateMachine(self.notifier)
        predictor = ActivityPredictor(self.config, buffer, self.classifier, state, clock=clock)
        tracker = ActivityStatsTracker(history_limit=max(1000, len(samples)))

        result = ReplayResult()
        unsubscribers = [
            self.notifier.subscribe_updates(result.updates.append),
            self.notifier.subscribe_updates(tracker.record),
            self.notifier.subscribe_changes(result.changes.append),
        ]
        samples_per_tick = max(1, round(runtime.tick_period_sec / runtime.sampling_interval_sec))
        try:
            for i, sample in enumerate(samples, start=1):
                buffer.push(sample)
                clock.advance(runtime.sampling_interval_sec)
                if i % samples_per_tick == 0:
                    predictor.run_cycle()
        finally:
            for unsubscribe in unsubscribers:
                unsubscribe()

        result.stats = tracker.stats()
        result.duration_sec = clock() - start_ts
        logger.info(
            "replay finished",
            extra={
                "samples": len(samples),
                "updates": len(result.updates),
                "changes": len(result.changes),
            },
        )
        return result

    def run_file(self, path: Union[str, Path]) -> ReplayResult:
        return self.run(load_recording(path))
