import requests
from typing import Optional, Dict, Any

from .auth import AUTH_HEADER
from .errors import AuthError, ConcurrencyConflict, GenerationFailure
from .sidecarlog import LOG


class SidecarClient:
    """
    Python client for the sidecar's v1 API.
    Supports busy checks, history reset and generation.
    """

    def __init__(
        self,
        base_url: str = "http://localhost:8000/api",
        secret: str = "",
        timeout: float = 300.0,
        session: Optional[requests.Session] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.session = session or requests.Session()
        self.session.headers[AUTH_HEADER] = secret
        LOG.info(
            "Initialized SidecarClient with base_url=%s, timeout=%.1fs",
            self.base_url,
            self.timeout,
        )

    def _request(self, method: str, path: str, **kwargs) -> Dict[str, Any]:
        resp = self.session.request(
            method, f"{self.base_url}/v1/{path}", timeout=self.timeout, **kwargs
        )
        if resp.status_code == 401:
            raise AuthError("sidecar rejected the secret")
        if resp.status_code == 409:
            raise ConcurrencyConflict("sidecar is busy")
        if resp.status_code == 500:
            try:
                message = resp.json().get("message", "")
            except ValueError:
                message = resp.text
            raise GenerationFailure(message or "generation failed")
        resp.raise_for_status()
        return resp.json()

    # ---------------- Status ----------------
    def is_busy(self) -> bool:
        LOG.debug("Checking whether sidecar is busy")
        return self._request("GET", "isbusy")["type"] == "busy"

    # ---------------- History ----------------
    def clear_history(self) -> None:
        LOG.info("Clearing sidecar history")
        self._request("DELETE", "clearhistory")

    # ---------------- Generate ----------------
    def generate(
        self,
        prompt: str,
        setup: Optional[str] = None,
        max_tokens: Optional[int] = None,
    ) -> str:
        """Send a prompt and return the generated reply."""
        LOG.info("Generating (max_tokens=%s, setup=%s)", max_tokens, setup is not None)
        payload: Dict[str, Any] = {"prompt": prompt}
        if setup is not None:
            payload["setup"] = setup
        if max_tokens is not None:
            payload["max_tokens"] = max_tokens
        return self._request("POST", "generate", json=payload)["message"]
