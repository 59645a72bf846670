from __future__ import annotations

import logging
import threading
import time
from typing import Callable, Optional

from ..config import AppConfig, BufferingPolicy
from .buffers import SampleBuffer, SampleWindow
from .classifier import ClassifierAdapter
from .events import Classification
from .features import FeatureVector, extract, extract_latest
from .state import ActivityStateMachine

logger = logging.getLogger(__name__)


Clock = Callable[[], float]


class ActivityPredictor:
    """Periodic predictor: buffer snapshot -> features -> classifier -> state machine.

    One cycle runs per tick. A tick that arrives while a cycle is still in
    flight is dropped rather than queued, and a cycle that overruns the tick
    period forfeits the ticks it missed. Failures inside a cycle are logged
    and the previous label is kept.
    """

    def __init__(
        self,
        config: AppConfig,
        buffer: SampleBuffer,
        classifier: ClassifierAdapter,
        state: Optional[ActivityStateMachine] = None,
        clock: Clock = time.time,
    ) -> None:
        self.config = config
        self.buffer = buffer
        self.classifier = classifier
        self.state = state if state is not None else ActivityStateMachine()
        self.clock = clock
        self.policy = config.runtime.buffering_policy
        if self.policy is BufferingPolicy.LATEST_SAMPLE:
            logger.warning(
                "latest_sample buffering is deprecated; predictions ignore temporal features",
                extra={"policy": self.policy.value},
            )
        self._stop = threading.Event()
        self._thread: Optional[threading.Thread] = None
        self._cycle_lock = threading.RLock()
        self._halted = False

    def start(self) -> None:
        if self._thread and self._thread.is_alive():
            return
        self._stop.clear()
        with self._cycle_lock:
            self._halted = False
        self._thread = threading.Thread(target=self._run, name="ActivityPredictor", daemon=True)
        self._thread.start()

    def stop(self) -> None:
        """Halt the tick; once this returns no further events are published.

        Called from a listener on the predictor thread, the cycle lock is
        already held, so the remaining deliveries of that cycle are dropped.
        """
        self._stop.set()
        if self._thread and self._thread is not threading.current_thread():
            self._thread.join(timeout=self.config.runtime.stop_timeout_sec)
        # Waits out a cycle still in flight
        with self._cycle_lock:
            self._halted = True

    def _accepting(self) -> bool:
        return not self._halted

    def is_running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def _run(self) -> None:
        cadence = self.config.runtime.tick_period_sec
        while not self._stop.is_set():
            start = time.monotonic()
            self.run_cycle()
            elapsed = time.monotonic() - start
            if elapsed > cadence:
                logger.warning(
                    "prediction cycle overran tick period",
                    extra={"elapsed_sec": elapsed, "dropped_ticks": int(elapsed // cadence)},
                )
                sleep_for = cadence - (elapsed % cadence)
            else:
                sleep_for = cadence - elapsed
            self._stop.wait(timeout=sleep_for)

    def _window(self) -> SampleWindow:
        if self.policy is BufferingPolicy.LATEST_SAMPLE:
            return self.buffer.latest()
        if not self.buffer.is_full():
            return ()
        return self.buffer.snapshot()

    def _features(self, window: SampleWindow) -> FeatureVector:
        if self.policy is BufferingPolicy.LATEST_SAMPLE:
            return extract_latest(window)
        return extract(window)

    def run_cycle(self) -> Optional[Classification]:
        """Run one tick synchronously; None when skipped, waiting for data or failed."""
        if not self._cycle_lock.acquire(blocking=False):
            logger.debug("previous prediction still in flight; tick skipped")
            return None
        try:
            if self._halted:
                return None
            window = self._window()
            if not window:
                logger.debug("window not ready", extra={"buffered": self.buffer.size()})
                return None
            now = self.clock()
            try:
                result = self.classifier.predict(self._features(window))
            except Exception:  # noqa: BLE001
                logger.exception("prediction cycle failed; keeping previous label")
                if self.config.runtime.degraded_mode:
                    self.state.report_degraded(now, self._accepting)
                return None
            self.state.apply(result, now, self._accepting)
            return result
        finally:
            self._cycle_lock.release()
