"""Core primitives: sample buffer, features, scaling, classifier, state machine, sessions."""
