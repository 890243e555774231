"""Public surface for the cleaning feature."""

from .domain.errors import (
    EnvironmentInvalidError,
    GameUndeterminedError,
    ProcessStrandedError,
    SessionAbortedError,
)
from .domain.games import GameDetector, GameType, GameVariant
from .domain.models import (
    CleaningSessionResult,
    CleaningStatus,
    DryRunResult,
    DryRunStatus,
    PluginCleaningResult,
    PluginInfo,
)
from .usecases.cleaning_service import CleaningService
from .usecases.orchestrator import CleaningOrchestrator, OrchestratorPhase

__all__ = [
    "CleaningOrchestrator",
    "CleaningService",
    "CleaningSessionResult",
    "CleaningStatus",
    "DryRunResult",
    "DryRunStatus",
    "EnvironmentInvalidError",
    "GameDetector",
    "GameType",
    "GameUndeterminedError",
    "GameVariant",
    "OrchestratorPhase",
    "PluginCleaningResult",
    "PluginInfo",
    "ProcessStrandedError",
    "SessionAbortedError",
]
