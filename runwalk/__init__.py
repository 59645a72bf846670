"""Real-time walking/running classification from phone motion sensors.

Accelerometer and gyroscope readings are sampled into a rolling window,
summarized into a 16-value statistical feature vector, scaled with the
parameters fitted alongside the model, and scored by a binary run/walk
classifier. The resulting label drives change and update events consumed by
UI and persistence layers.
"""

__all__ = [
    "config",
    "core",
    "data",
    "utils",
]
