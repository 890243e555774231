"""Application services exposed to the user interfaces."""

from .clean_service import CleanService, state_from_config

__all__ = ["CleanService", "state_from_config"]
