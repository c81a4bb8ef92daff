"""Real-time log file monitoring with pattern highlighting and notifications."""

__version__ = "0.1.0"
