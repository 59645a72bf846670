from __future__ import annotations

import logging
import math
import threading
from typing import Optional, Tuple

from ..config import AppConfig
from ..core.buffers import RawSample, SampleBuffer

logger = logging.getLogger(__name__)


Vector3 = Tuple[float, float, float]


class SensorCollector:
    """Sample the latest accelerometer and gyroscope readings into a buffer.

    The platform delivers each channel at its own native rate through
    `on_accelerometer` / `on_gyroscope`; the collector keeps only the newest
    triple per channel and pushes one combined RawSample every
    `sampling_interval_sec`. Nothing is sampled until both channels have
    reported at least once.
    """

    def __init__(self, config: AppConfig, buffer: SampleBuffer) -> None:
        self.config = config
        self.buffer = buffer
        self._lock = threading.Lock()
        self._accel: Optional[Vector3] = None
        self._gyro: Optional[Vector3] = None
        self._dropped = 0
        self._stop = threading.Event()
        self._thread: Optional[threading.Thread] = None

    def start(self) -> None:
        if self._thread and self._thread.is_alive():
            return
        self._stop.clear()
        self._thread = threading.Thread(target=self._run, name="SensorCollector", daemon=True)
        self._thread.start()

    def stop(self) -> None:
        self._stop.set()
        if self._thread and self._thread is not threading.current_thread():
            self._thread.join(timeout=self.config.runtime.stop_timeout_sec)
        with self._lock:
            self._accel = None
            self._gyro = None

    def is_running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def _run(self) -> None:
        interval = self.config.runtime.sampling_interval_sec
        while not self._stop.is_set():
            self.sample_once()
            self._stop.wait(timeout=interval)

    # ───────────────────────────── sensor callbacks ─────────────────────────────
    def on_accelerometer(self, x: float, y: float, z: float) -> None:
        reading = self._validate("accelerometer", x, y, z)
        if reading is not None:
            with self._lock:
                self._accel = reading

    def on_gyroscope(self, x: float, y: float, z: float) -> None:
        reading = self._validate("gyroscope", x, y, z)
        if reading is not None:
            with self._lock:
                self._gyro = reading

    def _validate(self, channel: str, x: float, y: float, z: float) -> Optional[Vector3]:
        try:
            reading = (float(x), float(y), float(z))
        except (TypeError, ValueError):
            reading = None
        if reading is None or not all(math.isfinite(v) for v in reading):
            with self._lock:
                self._dropped += 1
            logger.warning("dropped malformed sensor reading", extra={"channel": channel, "reading": repr((x, y, z))})
            return None
        return reading

    def sample_once(self) -> Optional[RawSample]:
        with self._lock:
            accel, gyro = self._accel, self._gyro
        if accel is None or gyro is None:
            return None
        sample = RawSample(*accel, *gyro)
        self.buffer.push(sample)
        return sample

    @property
    def dropped_readings(self) -> int:
        with self._lock:
            return self._dropped
