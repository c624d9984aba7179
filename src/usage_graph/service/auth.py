from __future__ import annotations

import hmac
import logging

from fastapi import Header, HTTPException

from ..settings import settings

logger = logging.getLogger(__name__)


def require_api_key(x_api_key: str | None = Header(default=None)) -> None:
    """Guard usage endpoints with the configured key. No key configured means open access."""
    expected = settings.api_key
    if not expected:
        return
    if x_api_key is None or not hmac.compare_digest(x_api_key.encode(), expected.encode()):
        logger.warning("Rejected usage API request with %s API key", "missing" if x_api_key is None else "invalid")
        raise HTTPException(status_code=401, detail="invalid API key")
