import pytest
from pydantic import ValidationError

from gallery import auth
from gallery.exceptions import ConfigError, InvalidApiKeyError, MissingApiKeyError
from gallery.settings import Settings


def test_authorize_allows_exact_match():
    assert auth.authorize("secret", "secret").allowed is True


@pytest.mark.parametrize("provided", [None, ""])
def test_authorize_requires_key(provided):
    decision = auth.authorize(provided, "secret")
    assert decision.allowed is False
    assert decision.reason == "API key is required"


@pytest.mark.parametrize("provided", ["wrong", "secre", "secret-and-more", "SECRET"])
def test_authorize_rejects_anything_but_exact_match(provided):
    decision = auth.authorize(provided, "secret")
    assert decision.allowed is False
    assert decision.reason == "Invalid API key"


@pytest.mark.parametrize("configured", [None, ""])
def test_authorize_fails_closed_without_configured_key(configured):
    with pytest.raises(ConfigError) as excinfo:
        auth.authorize("secret", configured)
    assert excinfo.value.status_code == 500


def test_require_api_key_dependency():
    settings = Settings(api_key="secret")
    assert auth.require_api_key(api_key="secret", settings=settings) is None
    with pytest.raises(MissingApiKeyError):
        auth.require_api_key(api_key=None, settings=settings)
    with pytest.raises(InvalidApiKeyError) as excinfo:
        auth.require_api_key(api_key="nope", settings=settings)
    assert "secret" not in excinfo.value.detail


def test_access_decision_is_immutable():
    decision = auth.authorize("secret", "secret")
    assert decision == auth.AccessDecision(allowed=True)
    with pytest.raises(ValidationError):
        decision.allowed = False
