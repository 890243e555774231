"""Public surface for the application state feature."""

from .domain.app_state import AppState
from .usecases.state_store import StateStore, Subscription

__all__ = ["AppState", "StateStore", "Subscription"]
