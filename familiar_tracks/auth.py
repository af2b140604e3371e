"""OAuth token utilities for Strava API.

Covers the two grants the tool needs: exchanging an authorization code after
the user approves access, and refreshing an expired access token. Secrets are
masked before anything is logged.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Dict

import requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

from . import config

LOGGER = logging.getLogger(__name__)

# Reusable session with limited retry for transient network/server issues.
_token_retry = Retry(
    total=3,
    backoff_factor=1.0,
    status_forcelist=[429, 500, 502, 503, 504],
    allowed_methods=["POST"],
)
_session = requests.Session()
_session.mount("https://", HTTPAdapter(max_retries=_token_retry))
_session.mount("http://", HTTPAdapter(max_retries=_token_retry))


class TokenError(Exception):
    """Raised when a token exchange fails (after retries)."""


@dataclass(frozen=True, slots=True)
class TokenBundle:
    access_token: str
    refresh_token: str | None = None
    expires_at: int | None = None


def _mask_tail(value: str | None, visible: int = 4) -> str:
    if not value:
        return ""
    tail = value[-visible:]
    return f"****{tail}" if len(value) > visible else "****" + tail


def _error_detail(resp: requests.Response) -> str | None:
    try:
        data = resp.json()
    except ValueError:
        return None
    if not isinstance(data, dict):
        return None
    detail = data.get("message")
    errors = data.get("errors")
    if isinstance(errors, list):
        codes = [
            f"{err.get('field')}:{err.get('code')}" if err.get("field") else str(err.get("code"))
            for err in errors
            if isinstance(err, dict) and err.get("code")
        ]
        if codes:
            detail = f"{detail} | {' '.join(codes)}" if detail else " ".join(codes)
    return detail


def _post_token(payload: Dict[str, Any]) -> TokenBundle:
    if not config.CLIENT_ID or not config.CLIENT_SECRET:
        raise TokenError(
            "Client credentials not configured (STRAVA_CLIENT_ID / STRAVA_CLIENT_SECRET missing)"
        )
    body = {
        "client_id": config.CLIENT_ID,
        "client_secret": config.CLIENT_SECRET,
        **payload,
    }
    LOGGER.debug("Token endpoint: %s grant=%s", config.STRAVA_OAUTH_URL, payload["grant_type"])
    try:
        resp = _session.post(
            config.STRAVA_OAUTH_URL, data=body, timeout=config.REQUEST_TIMEOUT
        )
    except requests.exceptions.RequestException as e:
        LOGGER.error("Token request transport error: %s", e)
        raise TokenError("Transport failure during token exchange") from e

    status = resp.status_code
    if status >= 400:
        detail = _error_detail(resp)
        LOGGER.error(
            "Token exchange failed status=%s%s",
            status,
            f" detail={detail}" if detail else "",
        )
        raise TokenError(f"Token exchange failed with status {status}")

    try:
        data = resp.json()
    except ValueError as e:
        LOGGER.error("Invalid JSON in token response: %s", e)
        raise TokenError("Invalid JSON in token response") from e
    if not isinstance(data, dict):
        raise TokenError("Unexpected token response shape")

    access_token = data.get("access_token")
    if not access_token:
        LOGGER.error("No access_token in token response")
        raise TokenError("No access_token in response")
    expires_at = data.get("expires_at")
    return TokenBundle(
        access_token=access_token,
        refresh_token=data.get("refresh_token"),
        expires_at=int(expires_at) if isinstance(expires_at, (int, float)) else None,
    )


def exchange_code(code: str) -> TokenBundle:
    """Exchange an OAuth authorization code for tokens.

    Raises:
        TokenError: If the request fails or the response lacks an access token.
    """

    if not code:
        raise TokenError("Missing authorization code")
    LOGGER.info("Exchanging authorization code=%s", _mask_tail(code))
    return _post_token({"grant_type": "authorization_code", "code": code})


def refresh_access_token(refresh_token: str) -> TokenBundle:
    """Exchange a refresh token for a new access (and possibly new refresh) token.

    Raises:
        TokenError: If the request fails or the response lacks an access token.
    """

    if not refresh_token:
        raise TokenError("Missing refresh token")
    LOGGER.info("Refreshing Strava token refresh_token=%s", _mask_tail(refresh_token))
    bundle = _post_token({"grant_type": "refresh_token", "refresh_token": refresh_token})
    LOGGER.info(
        "Token refresh access_token_len=%s refresh_token_changed=%s",
        len(bundle.access_token),
        bool(bundle.refresh_token and bundle.refresh_token != refresh_token),
    )
    return bundle


__all__ = ["TokenBundle", "TokenError", "exchange_code", "refresh_access_token"]
