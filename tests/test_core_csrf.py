# tests/test_core_csrf.py
"""
Testes da proteção CSRF por double-submit cookie (`travenest.core.csrf`)
e do endpoint `GET /csrf-token`.
"""

# ========================
# --- Importações ---
# ========================
from typing import Dict, Optional

import pytest
from fastapi import status
from httpx import AsyncClient
from starlette.requests import Request

# --- Módulos da Aplicação ---
from travenest.core import csrf
from travenest.core.config import settings
from travenest.core.errors import ApiError, ErrorCode
from tests.conftest import API

# ========================
# --- Funções Auxiliares ---
# ========================
def _make_request(method: str, cookies: Optional[Dict[str, str]] = None, headers: Optional[Dict[str, str]] = None) -> Request:
    raw_headers = [(name.lower().encode(), value.encode()) for name, value in (headers or {}).items()]
    if cookies:
        cookie_header = "; ".join(f"{name}={value}" for name, value in cookies.items())
        raw_headers.append((b"cookie", cookie_header.encode()))
    return Request({
        "type": "http",
        "method": method,
        "path": "/api/v1/auth/logout",
        "query_string": b"",
        "headers": raw_headers,
    })

# ========================
# --- Testes de Emissão ---
# ========================
def test_generate_csrf_token_is_random_hex():
    tokens = {csrf.generate_csrf_token() for _ in range(50)}

    assert len(tokens) == 50, "Tokens CSRF repetidos."
    for token in tokens:
        assert len(token) == 64
        int(token, 16)

# ========================
# --- Testes de Validação ---
# ========================
def test_validate_accepts_identical_tokens():
    token = csrf.generate_csrf_token()
    csrf.validate_csrf_tokens(token, token)


def test_validate_rejects_tokens_differing_by_one_character():
    token = csrf.generate_csrf_token()
    other = token[:-1] + ("0" if token[-1] != "0" else "1")

    with pytest.raises(ApiError) as exc_info:
        csrf.validate_csrf_tokens(token, other)

    assert exc_info.value.status_code == status.HTTP_403_FORBIDDEN
    assert exc_info.value.code == ErrorCode.CSRF_TOKEN_INVALID
    assert exc_info.value.message == "Invalid CSRF token"


@pytest.mark.parametrize(
    "cookie_value, header_value, expected_message",
    [
        (None, "abc", "CSRF token missing from cookie"),
        ("", "abc", "CSRF token missing from cookie"),
        ("abc", None, "CSRF token missing from header"),
        ("abc", "", "CSRF token missing from header"),
    ],
)
def test_validate_rejects_missing_values(cookie_value, header_value, expected_message):
    with pytest.raises(ApiError) as exc_info:
        csrf.validate_csrf_tokens(cookie_value, header_value)

    assert exc_info.value.status_code == status.HTTP_403_FORBIDDEN
    assert exc_info.value.code == ErrorCode.CSRF_TOKEN_INVALID
    assert exc_info.value.message == expected_message


def test_validate_uses_constant_time_comparison(mocker):
    spy = mocker.spy(csrf.hmac, "compare_digest")
    csrf.validate_csrf_tokens("abc", "abc")
    spy.assert_called_once_with(b"abc", b"abc")

# ========================
# --- Testes da Dependência csrf_protect ---
# ========================
@pytest.mark.asyncio
@pytest.mark.parametrize("method", ["GET", "HEAD", "OPTIONS"])
async def test_safe_methods_always_pass(method):
    """Métodos seguros passam sem cookie nem header, e mesmo com valores divergentes."""
    await csrf.csrf_protect(_make_request(method))
    await csrf.csrf_protect(
        _make_request(method, cookies={settings.CSRF_COOKIE_NAME: "a"}, headers={settings.CSRF_HEADER_NAME: "b"})
    )


@pytest.mark.asyncio
@pytest.mark.parametrize("method", ["POST", "PUT", "PATCH", "DELETE"])
async def test_mutating_methods_require_matching_tokens(method):
    token = csrf.generate_csrf_token()

    with pytest.raises(ApiError):
        await csrf.csrf_protect(_make_request(method))

    await csrf.csrf_protect(
        _make_request(method, cookies={settings.CSRF_COOKIE_NAME: token}, headers={settings.CSRF_HEADER_NAME: token})
    )


@pytest.mark.asyncio
async def test_report_only_mode_logs_instead_of_rejecting(mocker):
    mocker.patch.object(settings, "CSRF_ENFORCE", False)
    mock_logger_warning = mocker.patch("travenest.core.csrf.logger.warning")

    await csrf.csrf_protect(_make_request("POST"))

    mock_logger_warning.assert_called_once()
    assert "CSRF token missing from cookie" in mock_logger_warning.call_args[0][0]


@pytest.mark.asyncio
async def test_disabled_csrf_skips_validation(mocker):
    mocker.patch.object(settings, "CSRF_ENABLED", False)
    await csrf.csrf_protect(_make_request("POST"))

# ========================
# --- Testes do Endpoint /csrf-token ---
# ========================
@pytest.mark.asyncio
async def test_get_csrf_token_sets_httponly_strict_cookie(test_async_client: AsyncClient):
    # --- Act ---
    response = await test_async_client.get(f"{API}/csrf-token")

    # --- Assert ---
    assert response.status_code == status.HTTP_200_OK
    body = response.json()
    assert body["success"] is True
    token = body["data"]["csrfToken"]
    assert len(token) == 64

    set_cookie = response.headers["set-cookie"]
    assert f"{settings.CSRF_COOKIE_NAME}={token}" in set_cookie
    assert "HttpOnly" in set_cookie
    assert "SameSite=strict" in set_cookie
    assert f"Max-Age={24 * 60 * 60}" in set_cookie
    assert "Secure" not in set_cookie, "Fora de produção o cookie não deve exigir HTTPS."


@pytest.mark.asyncio
async def test_mutating_route_without_csrf_is_forbidden(test_async_client: AsyncClient, auth_headers_a):
    response = await test_async_client.post(f"{API}/auth/logout", headers=auth_headers_a)

    assert response.status_code == status.HTTP_403_FORBIDDEN
    assert response.json()["error"]["code"] == "CSRF_TOKEN_INVALID"


@pytest.mark.asyncio
async def test_mutating_route_with_mismatched_header_is_forbidden(test_async_client: AsyncClient, auth_headers_a, csrf_headers):
    headers = {**auth_headers_a, settings.CSRF_HEADER_NAME: "0" * 64}

    response = await test_async_client.post(f"{API}/auth/logout", headers=headers)

    assert response.status_code == status.HTTP_403_FORBIDDEN
    assert response.json()["error"]["message"] == "Invalid CSRF token"


@pytest.mark.asyncio
async def test_mutating_route_with_matching_csrf_succeeds(test_async_client: AsyncClient, auth_headers_a, csrf_headers):
    response = await test_async_client.post(f"{API}/auth/logout", headers={**auth_headers_a, **csrf_headers})

    assert response.status_code == status.HTTP_200_OK, response.text
