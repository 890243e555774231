"""Public surface for the monitoring feature."""

from .usecases.hang_detector import HangDetector

__all__ = ["HangDetector"]
