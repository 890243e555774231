"""Where: src/qacbatch/features/state/usecases/state_store.py
What: Lock-guarded current snapshot with replay-then-changes subscriptions.
Why: Orchestrator threads write while the CLI reads; every write must publish exactly once.
"""

from __future__ import annotations

import threading
from collections.abc import Callable, Iterable
from dataclasses import replace
from logging import Logger, getLogger
from typing import Any, Final

from qacbatch.features.cleaning.domain.games import GameType
from qacbatch.features.cleaning.domain.models import (
    CleaningSessionResult,
    CleaningStatus,
    PluginCleaningResult,
    PluginInfo,
)

from ..domain.app_state import AppState

StateCallback = Callable[[AppState], None]
StateTransform = Callable[[AppState], AppState]


class Subscription:
    """Handle returned by :meth:`StateStore.subscribe`; close it to stop notifications."""

    def __init__(self, store: StateStore, callback: StateCallback) -> None:
        self._store = store
        self.callback: Final[StateCallback] = callback
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        self._store._unsubscribe(self)  # pyright: ignore[reportPrivateUsage]

    def __enter__(self) -> Subscription:
        return self

    def __exit__(self, *_exc: object) -> None:
        self.close()


class StateStore:
    """Own the application state and broadcast every change.

    ``update`` applies the transform and notifies subscribers inside one
    re-entrant critical section, so notifications arrive in update order and
    each update produces exactly one notification per subscriber.
    """

    def __init__(self, initial: AppState | None = None, *, logger: Logger | None = None) -> None:
        self._lock: Final[threading.RLock] = threading.RLock()
        self._state: AppState = initial or AppState()
        self._subscribers: list[Subscription] = []
        self._logger: Logger = logger or getLogger(__name__)

    @property
    def current(self) -> AppState:
        with self._lock:
            return self._state

    def update(self, transform: StateTransform) -> AppState:
        """Apply ``transform`` to the current snapshot and publish the result."""

        with self._lock:
            new_state = transform(self._state)
            if not isinstance(new_state, AppState):
                raise TypeError(f"State transform returned {type(new_state).__name__}, expected AppState")
            self._state = new_state
            for subscription in list(self._subscribers):
                self._notify(subscription, new_state)
            return new_state

    def subscribe(self, callback: StateCallback) -> Subscription:
        """Register ``callback``; it immediately receives the current snapshot."""

        with self._lock:
            subscription = Subscription(self, callback)
            self._subscribers.append(subscription)
            self._notify(subscription, self._state)
            return subscription

    def _unsubscribe(self, subscription: Subscription) -> None:
        with self._lock:
            if subscription in self._subscribers:
                self._subscribers.remove(subscription)

    def _notify(self, subscription: Subscription, state: AppState) -> None:
        try:
            subscription.callback(state)
        except Exception:
            self._logger.exception("State subscriber raised; continuing")

    # Transitions -------------------------------------------------------------

    def update_configuration(self, **changes: Any) -> AppState:
        return self.update(lambda state: replace(state, **changes))

    def set_detected_game(self, game: GameType) -> AppState:
        return self.update(lambda state: replace(state, detected_game=game))

    def start_cleaning(self, plugins: Iterable[PluginInfo]) -> AppState:
        queued = tuple(plugins)
        return self.update(
            lambda state: replace(
                state,
                is_cleaning=True,
                plugins_to_clean=queued,
                total_plugins=len(queued),
                progress=0,
                current_plugin=None,
                current_operation="Starting",
                hang_detected=False,
                cleaned_plugins=frozenset(),
                failed_plugins=frozenset(),
                skipped_plugins=frozenset(),
                cancelled_plugins=frozenset(),
                plugin_results=(),
            )
        )

    def set_current_plugin(self, plugin_name: str | None, operation: str | None = None) -> AppState:
        return self.update(
            lambda state: replace(
                state,
                current_plugin=plugin_name,
                current_operation=operation if operation is not None else state.current_operation,
            )
        )

    def add_result(self, result: PluginCleaningResult) -> AppState:
        def _apply(state: AppState) -> AppState:
            name = result.plugin_name
            return replace(
                state,
                progress=state.progress + 1,
                plugin_results=(*state.plugin_results, result),
                cleaned_plugins=state.cleaned_plugins | {name}
                if result.status is CleaningStatus.CLEANED
                else state.cleaned_plugins,
                failed_plugins=state.failed_plugins | {name}
                if result.status is CleaningStatus.FAILED
                else state.failed_plugins,
                skipped_plugins=state.skipped_plugins | {name}
                if result.status is CleaningStatus.SKIPPED
                else state.skipped_plugins,
                cancelled_plugins=state.cancelled_plugins | {name}
                if result.status is CleaningStatus.CANCELLED
                else state.cancelled_plugins,
            )

        return self.update(_apply)

    def set_hang_detected(self, hang_detected: bool) -> AppState:
        return self.update(lambda state: replace(state, hang_detected=hang_detected))

    def finish_cleaning(self, session_result: CleaningSessionResult) -> AppState:
        return self.update(
            lambda state: replace(
                state,
                is_cleaning=False,
                current_plugin=None,
                current_operation=None,
                hang_detected=False,
                last_session_result=session_result,
            )
        )


__all__ = ["StateCallback", "StateStore", "StateTransform", "Subscription"]
