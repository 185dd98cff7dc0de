import os
from dataclasses import dataclass
from typing import Mapping, Optional

import yaml

from .errors import ConfigError

DEFAULT_MAX_TOKENS = 128
DEFAULT_TEMP = 0.8
DEFAULT_HOST = "0.0.0.0"
DEFAULT_API_PREFIX = "/api"

ENV_PREFIX = "AI_SIDECAR_"

# config key -> environment variable suffix
ENV_KEYS = {
    "secret": "SECRET",
    "port": "PORT",
    "host": "HOST",
    "model_path": "MODEL_PATH",
    "system_message": "SYSTEM_MESSAGE",
    "system_message_file": "SYSTEM_MESSAGE_FILE",
    "api_prefix": "API_PREFIX",
    "default_max_tokens": "DEFAULT_MAX_TOKENS",
    "bitness": "BITNESS",
    "temperature": "TEMPERATURE",
    "rollback_failed_prompt": "ROLLBACK_FAILED_PROMPT",
    "log_level": "LOG_LEVEL",
}

BITNESS_CHOICES = ("4bit", "8bit", "16bit")
LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


def load_config(path: str = "config.yaml") -> dict:
    if os.path.exists(path):
        with open(path, "r", encoding="utf-8") as f:
            return yaml.safe_load(f) or {}
    return {}


def _as_bool(value) -> bool:
    if isinstance(value, bool):
        return value
    return str(value).strip().lower() in ("y", "yes", "t", "true", "1", "ok")


def _as_int(key: str, value) -> int:
    try:
        return int(value)
    except (TypeError, ValueError):
        raise ConfigError(f"{key} must be an integer, got {value!r}") from None


@dataclass(frozen=True)
class SidecarConfig:
    """Process-wide settings, read once at startup."""

    secret: str
    port: int
    model_path: str
    system_message: str
    host: str = DEFAULT_HOST
    api_prefix: str = DEFAULT_API_PREFIX
    default_max_tokens: int = DEFAULT_MAX_TOKENS
    bitness: str = "16bit"
    temperature: float = DEFAULT_TEMP
    rollback_failed_prompt: bool = False
    log_level: str = "INFO"

    @classmethod
    def from_mapping(cls, raw: Mapping) -> "SidecarConfig":
        missing = [k for k in ("secret", "port", "model_path") if not raw.get(k)]

        system_message = raw.get("system_message")
        if not system_message and raw.get("system_message_file"):
            try:
                with open(raw["system_message_file"], "r", encoding="utf-8") as f:
                    system_message = f.read()
            except OSError as e:
                raise ConfigError(
                    f"cannot read system message file {raw['system_message_file']}: {e}"
                ) from e
        if not system_message:
            missing.append("system_message")

        if missing:
            raise ConfigError(
                "missing required configuration: "
                + ", ".join(ENV_PREFIX + ENV_KEYS[k] for k in missing)
            )

        port = _as_int("port", raw["port"])
        if not 0 < port < 65536:
            raise ConfigError(f"port out of range: {port}")

        default_max_tokens = _as_int(
            "default_max_tokens", raw.get("default_max_tokens", DEFAULT_MAX_TOKENS)
        )
        if default_max_tokens < 1:
            raise ConfigError("default_max_tokens must be positive")

        bitness = str(raw.get("bitness", "16bit")).lower()
        if bitness not in BITNESS_CHOICES:
            raise ConfigError(f"bitness must be one of {BITNESS_CHOICES}, got {bitness!r}")

        log_level = str(raw.get("log_level", "INFO")).upper()
        if log_level not in LOG_LEVELS:
            raise ConfigError(f"log_level must be one of {LOG_LEVELS}, got {log_level!r}")

        try:
            temperature = float(raw.get("temperature", DEFAULT_TEMP))
        except (TypeError, ValueError):
            raise ConfigError(f"temperature must be a number, got {raw.get('temperature')!r}") from None

        return cls(
            secret=str(raw["secret"]),
            port=port,
            model_path=str(raw["model_path"]),
            system_message=system_message,
            host=str(raw.get("host") or DEFAULT_HOST),
            api_prefix=str(raw.get("api_prefix", DEFAULT_API_PREFIX)).rstrip("/"),
            default_max_tokens=default_max_tokens,
            bitness=bitness,
            temperature=temperature,
            rollback_failed_prompt=_as_bool(raw.get("rollback_failed_prompt", False)),
            log_level=log_level,
        )

    @classmethod
    def from_env(
        cls, env: Optional[Mapping[str, str]] = None, path: str = "config.yaml"
    ) -> "SidecarConfig":
        """Settings from ``path`` (if present) with AI_SIDECAR_* variables on top."""
        env = os.environ if env is None else env
        raw = dict(load_config(path))
        for key, suffix in ENV_KEYS.items():
            value = env.get(ENV_PREFIX + suffix)
            if value is not None and value.strip():
                raw[key] = value
        return cls.from_mapping(raw)
