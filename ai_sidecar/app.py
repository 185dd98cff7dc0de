# ai_sidecar/app.py
import argparse
import asyncio
import sys
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI

from . import __version__
from .config import SidecarConfig
from .engine import TextEngine
from .errors import ConfigError
from .generator import Generator
from .history import Conversation
from .orchestrator import GenerationOrchestrator
from .sidecarlog import LOG, SidecarLogger
from . import endpoints


# -----------------------------
# SidecarServer wrapper
# -----------------------------
class SidecarServer:
    """Encapsulates FastAPI app, engine, conversation and orchestrator."""

    def __init__(
        self,
        config: SidecarConfig,
        engine: Optional[TextEngine] = None,
        title: str = "AI Sidecar",
    ):
        self.config = config

        # An injected engine is assumed ready; our own Generator loads at startup
        self._owns_engine = engine is None
        if engine is None:
            engine = Generator(
                model_path=config.model_path,
                max_tokens=config.default_max_tokens,
                temperature=config.temperature,
                bitness=config.bitness,
            )
        self.engine = engine

        self.conversation = Conversation(config.system_message)
        self.orchestrator = GenerationOrchestrator(
            engine,
            self.conversation,
            default_max_tokens=config.default_max_tokens,
            rollback_failed_prompt=config.rollback_failed_prompt,
        )

        self.app = FastAPI(title=title, version=__version__, lifespan=self._lifespan)
        endpoints.register_error_handlers(self.app)
        endpoints.register_routes(
            self.app, self.orchestrator, config.secret, api_prefix=config.api_prefix
        )

    @asynccontextmanager
    async def _lifespan(self, app: FastAPI):
        """Startup and shutdown lifecycle for FastAPI."""
        LOG.info("Server startup (lifespan)")

        if self._owns_engine:
            # Model load is blocking; failure aborts startup
            loop = asyncio.get_running_loop()
            await loop.run_in_executor(None, self.engine.load_model, self.config.model_path)
            LOG.info("Model loaded: %s", self.config.model_path)

        yield

        LOG.info("Shutting down engine worker")
        self.orchestrator.shutdown()

    def get_app(self) -> FastAPI:
        return self.app

    def run(self, access_log: bool = False, **kwargs):
        """Run the FastAPI app with uvicorn."""
        import uvicorn

        LOG.info("Starting uvicorn on %s:%s", self.config.host, self.config.port)
        uvicorn.run(
            self.app,
            host=self.config.host,
            port=self.config.port,
            access_log=access_log,
            **kwargs,
        )


# -----------------------------
# CLI entry point
# -----------------------------
def parse_args(argv=None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="ai-sidecar", description="Local text-generation sidecar"
    )
    parser.add_argument("--config", default="config.yaml", help="optional YAML settings file")
    parser.add_argument("--access-log", action="store_true", help="enable uvicorn access log")
    verbosity = parser.add_mutually_exclusive_group()
    verbosity.add_argument("-v", "--verbose", action="store_true", help="log at DEBUG")
    verbosity.add_argument("-q", "--quiet", action="store_true", help="log errors only")
    return parser.parse_args(argv)


def main(argv=None) -> int:
    args = parse_args(argv)

    try:
        config = SidecarConfig.from_env(path=args.config)
    except ConfigError as e:
        LOG.error("Configuration error: %s", e)
        return 1

    level = "ERROR" if args.quiet else "DEBUG" if args.verbose else config.log_level
    SidecarLogger.set_level(level)

    print("\n--------------------------------")
    print("Starting AI Sidecar")
    print(f"Model:        {config.model_path}")
    print(f"Host:         {config.host}")
    print(f"Port:         {config.port}")
    print(f"Quantization: {config.bitness}")
    print("--------------------------------\n")

    server = SidecarServer(config)
    server.run(access_log=args.access_log)
    return 0


if __name__ == "__main__":
    sys.exit(main())
