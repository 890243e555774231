"""Progress display functionality for CLI."""

from collections.abc import Iterator
from contextlib import contextmanager
from typing import Any, final

from rich.progress import Progress, TaskID

from qacbatch.features.state import AppState, StateStore
from qacbatch.ui.cli.display.console import logging_console


def describe(state: AppState) -> str:
    """Progress bar label for the current snapshot."""

    if state.current_plugin is None:
        return f"[cyan]Cleaning plugins... {state.progress}/{state.total_plugins}"
    label = f"[cyan]Cleaning {state.current_plugin}... {state.progress}/{state.total_plugins}"
    if state.hang_detected:
        label += " [magenta](xEdit may be hung)"
    return label


@final
class ProgressDisplay:
    """Handles progress display in CLI."""

    @contextmanager
    def track(self, store: StateStore, *, quiet: bool = False) -> Iterator[None]:
        """Mirror state store progress onto a transient Rich progress bar."""

        if quiet:
            yield
            return

        progress_kwargs: dict[str, Any] = {
            "transient": True,
            "redirect_stdout": False,
            "redirect_stderr": False,
        }
        console = logging_console()
        if console is not None:
            progress_kwargs["console"] = console

        with Progress(**progress_kwargs) as progress:
            task_id: TaskID | None = None

            def _on_state(state: AppState) -> None:
                nonlocal task_id
                if not state.is_cleaning and task_id is None:
                    return
                if task_id is None:
                    task_id = progress.add_task(describe(state), total=state.total_plugins)
                progress.update(
                    task_id,
                    total=state.total_plugins,
                    completed=state.progress,
                    description=describe(state),
                )

            with store.subscribe(_on_state):
                yield
