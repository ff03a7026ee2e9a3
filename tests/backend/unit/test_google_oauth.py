"""
Unit tests for services.google_oauth.
Google endpoints are served by an httpx.MockTransport.
"""
from urllib.parse import parse_qs, urlparse

import httpx
import pytest

from nextlevel.core.errors import InvalidCredentials, ValidationFailed
from nextlevel.services import google_oauth
from nextlevel.services.google_oauth import GoogleOAuthClient


def _client() -> GoogleOAuthClient:
    return GoogleOAuthClient("cid", "csecret", "http://localhost/callback")


def _mock_google(monkeypatch, handler):
    real_client = httpx.AsyncClient

    def _factory(**kwargs):
        return real_client(transport=httpx.MockTransport(handler), **kwargs)

    monkeypatch.setattr(google_oauth.httpx, "AsyncClient", _factory)


def test_requires_client_credentials():
    with pytest.raises(ValueError):
        GoogleOAuthClient("", "secret", "http://localhost/callback")


def test_authorization_url_carries_client_and_scopes():
    url = urlparse(_client().authorization_url(state="xyz"))
    params = parse_qs(url.query)
    assert url.netloc == "accounts.google.com"
    assert params["client_id"] == ["cid"]
    assert params["redirect_uri"] == ["http://localhost/callback"]
    assert params["scope"] == ["openid profile email"]
    assert params["state"] == ["xyz"]


@pytest.mark.asyncio
async def test_fetch_profile_maps_userinfo(monkeypatch):
    def handler(request: httpx.Request) -> httpx.Response:
        if request.url.host == "oauth2.googleapis.com":
            assert b"code=abc" in request.content
            return httpx.Response(200, json={"access_token": "g-token"})
        assert request.headers["authorization"] == "Bearer g-token"
        return httpx.Response(200, json={"id": "1234", "email": "ada@example.com", "name": "Ada"})

    _mock_google(monkeypatch, handler)
    profile = await _client().fetch_profile("abc")
    assert profile == {"id": "1234", "emails": [{"value": "ada@example.com"}], "displayName": "Ada"}


@pytest.mark.asyncio
async def test_fetch_profile_rejected_code(monkeypatch):
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(400, json={"error": "invalid_grant"})

    _mock_google(monkeypatch, handler)
    with pytest.raises(InvalidCredentials):
        await _client().fetch_profile("expired")


@pytest.mark.asyncio
async def test_fetch_profile_requires_code():
    with pytest.raises(ValidationFailed):
        await _client().fetch_profile("")
