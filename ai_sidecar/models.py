from typing import Literal, Optional
from pydantic import BaseModel, PositiveInt


class GenerateRequest(BaseModel):
    prompt: str
    setup: Optional[str] = None
    max_tokens: Optional[PositiveInt] = None


class IsBusyResponse(BaseModel):
    type: Literal["ready", "busy"]


class ClearHistoryResponse(BaseModel):
    type: Literal["success"] = "success"


class GenerateResponse(BaseModel):
    type: Literal["success"] = "success"
    message: str


class ErrorResponse(BaseModel):
    """Body for every non-2xx answer produced by the sidecar itself."""

    type: Literal["error", "unauthorized", "busy", "generate_error"]
    message: Optional[str] = None


class HealthResponse(BaseModel):
    status: str = "ok"
    model_loaded: bool
