import logging

from fastapi import status
from fastapi.testclient import TestClient
import pytest

from onboarding_pa.config import SamlSettings, get_settings
from onboarding_pa.main import create_app
from onboarding_pa.services.search import get_client

from spid_helpers import FakeSessionStore, FakeSpidStrategy


@pytest.fixture
def client() -> TestClient:
    return TestClient(create_app(session_store=FakeSessionStore()))


def test_cors_preflight_assertion_consumer_service(client: TestClient) -> None:
    """Test that OPTIONS preflight to the SAML callback carries CORS headers."""
    response = client.options(
        "/assertion-consumer-service",
        headers={
            "Origin": "http://localhost:3000",
            "Access-Control-Request-Method": "POST",
        },
    )

    assert response.status_code == status.HTTP_200_OK
    assert response.headers["access-control-allow-origin"] == "http://localhost:3000"
    assert response.headers["access-control-allow-credentials"] == "true"
    assert "POST" in response.headers["access-control-allow-methods"]


def test_cors_preflight_profile_patch(client: TestClient) -> None:
    response = client.options(
        "/profile",
        headers={
            "Origin": "http://localhost:3000",
            "Access-Control-Request-Method": "PATCH",
            "Access-Control-Request-Headers": "authorization",
        },
    )

    assert response.status_code == status.HTTP_200_OK
    assert "PATCH" in response.headers["access-control-allow-methods"]


def test_cors_preflight_with_disallowed_origin(client: TestClient) -> None:
    """Test that OPTIONS preflight from an unknown origin is refused without CORS headers."""
    response = client.options(
        "/logout",
        headers={
            "Origin": "http://evil.com",
            "Access-Control-Request-Method": "POST",
        },
    )

    assert response.status_code == status.HTTP_400_BAD_REQUEST
    assert "access-control-allow-origin" not in response.headers


@pytest.mark.anyio
async def test_httpx_client_follows_redirects() -> None:
    """Test that the search client has redirect following enabled."""
    client = await get_client()

    assert client.follow_redirects is True
    assert str(client.base_url).startswith("http")

    await client.aclose()


def test_startup_without_spid_strategy_names_missing_saml_settings(
    monkeypatch: pytest.MonkeyPatch, caplog: pytest.LogCaptureFixture
) -> None:
    monkeypatch.setattr(
        get_settings(), "saml", SamlSettings(issuer="https://onboarding.example.it")
    )

    with caplog.at_level(logging.WARNING, logger="onboarding_pa"):
        with TestClient(create_app(session_store=FakeSessionStore())):
            pass

    warnings = [r.getMessage() for r in caplog.records if r.levelno == logging.WARNING]
    assert any(
        "No SPID strategy configured" in message
        and "IDP_METADATA_URL" in message
        and "SAML_CALLBACK_URL" in message
        and "SAML_ISSUER" not in message
        for message in warnings
    )


def test_startup_with_spid_strategy_does_not_warn(caplog: pytest.LogCaptureFixture) -> None:
    app = create_app(session_store=FakeSessionStore(), spid_strategy=FakeSpidStrategy())

    with caplog.at_level(logging.WARNING, logger="onboarding_pa"):
        with TestClient(app):
            pass

    assert not any("No SPID strategy configured" in r.getMessage() for r in caplog.records)
