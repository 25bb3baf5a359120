"""
Owner authentication for the backup command endpoints.

Changing the target list, triggering a run and reading run status require the
``X-Admin-Key`` header to match ``ADMIN_API_KEY``. Clients that keep sending
wrong keys are locked out for the rest of a sliding window.
"""
from __future__ import annotations

from collections import deque
import secrets
import time
from typing import Deque, Dict, Optional

from fastapi import Request, Security, HTTPException, status
from fastapi.security import APIKeyHeader

from api.settings import settings

admin_key_header = APIKeyHeader(name="X-Admin-Key", auto_error=False)

AUTH_FAILURE_LIMIT = 20
AUTH_FAILURE_WINDOW_SECONDS = 300


class AuthFailureTracker:
    """Sliding-window count of failed owner authentications per client.

    Note:
        Process-local; the counts reset on restart.
    """

    def __init__(self, *, limit: int = AUTH_FAILURE_LIMIT, window_seconds: int = AUTH_FAILURE_WINDOW_SECONDS) -> None:
        self.limit = limit
        self.window_seconds = window_seconds
        self._failures: Dict[str, Deque[float]] = {}

    def register_failure(self, client: str, now: Optional[float] = None) -> int:
        """Record a failed attempt.

        Args:
            client: Client address.
            now: Current monotonic time (seconds).

        Returns:
            int: Seconds the client has to wait, or 0 while still within the limit.
        """

        now = time.monotonic() if now is None else now
        self._prune(now)
        window = self._failures.setdefault(client, deque())

        if len(window) >= self.limit:
            return int(max(1.0, window[0] + self.window_seconds - now))

        window.append(now)
        return 0

    def _prune(self, now: float) -> None:
        """Drop expired failures and forget clients with none left."""

        cutoff = now - self.window_seconds
        for client in list(self._failures):
            window = self._failures[client]
            while window and window[0] <= cutoff:
                window.popleft()
            if not window:
                del self._failures[client]

    def tracked_clients(self) -> int:
        return len(self._failures)

    def reset(self) -> None:
        self._failures.clear()


_failure_tracker = AuthFailureTracker()


def _reject(request: Optional[Request], status_code: int, detail: str) -> HTTPException:
    client = request.client.host if request is not None and request.client else "unknown"
    retry_after = _failure_tracker.register_failure(client or "unknown")
    if retry_after:
        return HTTPException(
            status_code=status.HTTP_429_TOO_MANY_REQUESTS,
            detail="Too many failed authentication attempts. Please retry later.",
            headers={"Retry-After": str(retry_after)},
        )
    return HTTPException(status_code=status_code, detail=detail)


async def verify_admin_key(
    request: Request,
    admin_key: str = Security(admin_key_header),
) -> str:
    """
    Verify the owner API key.

    Args:
        request: The FastAPI request object
        admin_key: The key from the ``X-Admin-Key`` header

    Returns:
        The validated key

    Raises:
        HTTPException: 503 when no key is configured, 401/403 for a missing or
            wrong key, 429 once a client exceeds the failure limit
    """
    configured_admin_key = settings.get_admin_api_key()

    if not configured_admin_key:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Admin API key not configured. Please set ADMIN_API_KEY or ADMIN_API_KEY_FILE.",
        )

    if not admin_key:
        raise _reject(
            request,
            status.HTTP_401_UNAUTHORIZED,
            "Missing API key. This endpoint requires the 'X-Admin-Key' header.",
        )

    # Constant-time comparison
    if not secrets.compare_digest(str(admin_key), str(configured_admin_key)):
        raise _reject(
            request,
            status.HTTP_403_FORBIDDEN,
            "Only the owner may use this endpoint. The provided 'X-Admin-Key' is invalid.",
        )

    return admin_key
