# ai_sidecar/endpoints.py
from typing import Optional

from fastapi import APIRouter, Depends, FastAPI, Header, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import ValidationError

from .auth import AUTH_HEADER, authorize
from .errors import AuthError, GenerationFailure, SidecarError
from .models import (
    ClearHistoryResponse,
    ErrorResponse,
    GenerateRequest,
    GenerateResponse,
    HealthResponse,
    IsBusyResponse,
)
from .orchestrator import GenerationOrchestrator
from .sidecarlog import LOG


def register_error_handlers(app: FastAPI):
    @app.exception_handler(SidecarError)
    async def sidecar_error(request: Request, exc: SidecarError):
        message = str(exc) if isinstance(exc, GenerationFailure) else None
        body = ErrorResponse(type=exc.wire_type, message=message)
        return JSONResponse(
            status_code=exc.status_code, content=body.model_dump(exclude_none=True)
        )


def register_routes(
    app: FastAPI,
    orchestrator: GenerationOrchestrator,
    secret: str,
    api_prefix: str = "/api",
):
    LOG.info("Registering API routes under %s/v1", api_prefix)

    async def require_secret(
        header_value: Optional[str] = Header(default=None, alias=AUTH_HEADER),
    ):
        if not authorize(header_value, secret):
            LOG.warning("Invalid secret")
            raise AuthError("invalid secret")

    v1 = APIRouter(prefix=f"{api_prefix}/v1", dependencies=[Depends(require_secret)])

    @v1.get("/isbusy", response_model=IsBusyResponse)
    async def is_busy():
        """Report whether a generation is in flight."""
        LOG.debug("Checking if busy")
        state = await orchestrator.state()
        return IsBusyResponse(type=state.value)

    @v1.delete("/clearhistory", response_model=ClearHistoryResponse)
    async def clear_history():
        """Reset the conversation to its system turn. Rejected while generating."""
        LOG.debug("Attempting to clear history")
        try:
            await orchestrator.clear_history()
        except SidecarError:
            LOG.warning("Tried to clear history while generating text")
            raise
        return ClearHistoryResponse()

    @v1.post(
        "/generate",
        response_model=GenerateResponse,
        openapi_extra={
            "requestBody": {
                "required": True,
                "content": {
                    "application/json": {"schema": GenerateRequest.model_json_schema()}
                },
            }
        },
    )
    async def generate(request: Request):
        """Extend the conversation with the prompt and return the engine's reply."""
        LOG.debug("Maybe generating text")
        # Parsed here rather than as a body parameter so the secret is checked first
        try:
            req = GenerateRequest.model_validate_json(await request.body())
        except ValidationError as e:
            raise RequestValidationError(e.errors(include_url=False)) from e
        message = await orchestrator.generate(
            req.prompt, setup=req.setup, max_tokens=req.max_tokens
        )
        return GenerateResponse(message=message)

    app.include_router(v1)

    @app.get("/health", response_model=HealthResponse)
    async def health():
        """Unauthenticated liveness check."""
        return HealthResponse(
            model_loaded=getattr(orchestrator.engine, "loaded", True)
        )
