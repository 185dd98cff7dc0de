# ai_sidecar/sidecarlog.py
"""Process-wide logger for the sidecar.

Every module logs through ``LOG``. Startup code calls
``SidecarLogger.set_level`` once the configured level is known.
"""
import logging

LOGGER_NAME = "ai-sidecar"
LOG_FORMAT = "%(asctime)s [%(levelname)s] %(message)s"


class SidecarLogger:
    @staticmethod
    def get_logger(name=LOGGER_NAME, level=logging.INFO, quiet_access_log=True):
        """Return ``name`` with exactly one stderr handler attached."""
        logger = logging.getLogger(name)
        logger.setLevel(level)

        if not logger.handlers:
            handler = logging.StreamHandler()
            handler.setLevel(level)
            handler.setFormatter(logging.Formatter(LOG_FORMAT))
            logger.addHandler(handler)
        logger.propagate = False

        # Handlers log each request outcome already
        if quiet_access_log:
            access = logging.getLogger("uvicorn.access")
            access.setLevel(logging.WARNING)
            access.propagate = False

        return logger

    @staticmethod
    def set_level(level, name=LOGGER_NAME):
        """Apply a level name ("DEBUG") or number to the logger and its handlers."""
        if isinstance(level, str):
            resolved = logging.getLevelName(level.upper())
            if not isinstance(resolved, int):
                raise ValueError(f"unknown log level: {level}")
            level = resolved
        logger = logging.getLogger(name)
        logger.setLevel(level)
        for handler in logger.handlers:
            handler.setLevel(level)


LOG = SidecarLogger.get_logger()
