"""
    API key gate for mutating endpoints.

    Reads are public; uploads and deletes need the shared secret in the
    ``x-api-key`` header.
"""
import hmac
import logging
from typing import Optional

from fastapi import Depends, Header
from pydantic import BaseModel, ConfigDict

from gallery.dependencies import get_settings
from gallery.exceptions import ConfigError, InvalidApiKeyError, MissingApiKeyError
from gallery.settings import Settings

log = logging.getLogger(__name__)

API_KEY_HEADER = "x-api-key"

class AccessDecision(BaseModel):
    model_config = ConfigDict(frozen=True)

    allowed: bool
    reason: Optional[str] = None

ALLOWED = AccessDecision(allowed=True)
KEY_REQUIRED = AccessDecision(allowed=False, reason="API key is required")
KEY_INVALID = AccessDecision(allowed=False, reason="Invalid API key")

def authorize(provided_key: Optional[str], configured_key: Optional[str]) -> AccessDecision:
    """Decide access for a mutating request.

    Raises ConfigError when no key is configured, since no decision can be
    made. Only an exact match is accepted.
    """
    if not configured_key:
        raise ConfigError()
    if not provided_key:
        return KEY_REQUIRED
    if not hmac.compare_digest(provided_key.encode(), configured_key.encode()):
        return KEY_INVALID
    return ALLOWED

def require_api_key(
    api_key: Optional[str] = Header(None, alias=API_KEY_HEADER),
    settings: Settings = Depends(get_settings),
) -> None:
    """FastAPI dependency applying the gate to a route."""
    try:
        decision = authorize(api_key, settings.api_key)
    except ConfigError:
        log.error("API_KEY is not configured; refusing mutating request")
        raise
    if decision is KEY_REQUIRED:
        log.warning("Request missing API key")
        raise MissingApiKeyError()
    if not decision.allowed:
        log.warning("Invalid API key provided")
        raise InvalidApiKeyError()
