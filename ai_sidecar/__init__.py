# ai_sidecar/__init__.py (explicit)
"""ai_sidecar — direct exports (eager imports)."""

__version__ = "0.1.0"

from .app import SidecarServer, main
from .auth import AUTH_HEADER, authorize
from .client import SidecarClient
from .config import SidecarConfig, load_config
from .endpoints import register_routes, register_error_handlers
from .engine import TextEngine
from .errors import (
    AuthError,
    ConcurrencyConflict,
    ConfigError,
    EngineError,
    GenerationFailure,
    SidecarError,
)
from .generator import Generator
from .history import Conversation, Role, Turn
from .models import (
    ClearHistoryResponse,
    ErrorResponse,
    GenerateRequest,
    GenerateResponse,
    HealthResponse,
    IsBusyResponse,
)
from .orchestrator import GenerationOrchestrator, SlotState
from .sidecarlog import LOG, SidecarLogger

__all__ = [
    "SidecarServer",
    "main",
    "AUTH_HEADER",
    "authorize",
    "SidecarClient",
    "SidecarConfig",
    "load_config",
    "register_routes",
    "register_error_handlers",
    "TextEngine",
    "AuthError",
    "ConcurrencyConflict",
    "ConfigError",
    "EngineError",
    "GenerationFailure",
    "SidecarError",
    "Generator",
    "Conversation",
    "Role",
    "Turn",
    "ClearHistoryResponse",
    "ErrorResponse",
    "GenerateRequest",
    "GenerateResponse",
    "HealthResponse",
    "IsBusyResponse",
    "GenerationOrchestrator",
    "SlotState",
    "LOG",
    "SidecarLogger",
]
