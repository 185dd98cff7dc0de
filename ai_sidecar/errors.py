"""Error taxonomy shared by the sidecar core, the HTTP surface and the client."""


class SidecarError(Exception):
    """Base class for per-request errors. Carries its HTTP mapping."""

    status_code = 500
    wire_type = "error"


class AuthError(SidecarError):
    status_code = 401
    wire_type = "unauthorized"


class ConcurrencyConflict(SidecarError):
    """The generation slot is held by another request."""

    status_code = 409
    wire_type = "busy"


class GenerationFailure(SidecarError):
    status_code = 500
    wire_type = "generate_error"


class EngineError(Exception):
    """Raised by a text engine when it cannot produce a completion."""


class ConfigError(Exception):
    """Required startup configuration is missing or invalid."""
