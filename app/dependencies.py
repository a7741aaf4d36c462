"""FastAPI dependencies shared by the routers."""

from __future__ import annotations

from typing import Optional

import structlog
from fastapi import Depends, Header, HTTPException, Request

from app.config import Settings
from app.errors import VerificationUnavailable
from app.services.captcha import HCaptchaVerifier

logger = structlog.get_logger(__name__)


def get_settings(request: Request) -> Settings:
    """Settings built once by create_app."""
    return request.app.state.settings


def get_verifier(settings: Settings = Depends(get_settings)) -> HCaptchaVerifier:
    return HCaptchaVerifier(
        secret=settings.hcaptcha_secret,
        verify_url=settings.hcaptcha_verify_url,
        timeout=settings.hcaptcha_timeout,
    )


async def check_token(token: str, verifier: HCaptchaVerifier) -> None:
    """Raise unless *verifier* accepts *token*.

    500 when the server has no secret (a misconfiguration, not the caller's
    fault), 502 when hCaptcha is unreachable, 401 when the token is rejected.
    """
    if not verifier.configured:
        logger.error("hcaptcha_secret_missing")
        raise HTTPException(status_code=500, detail="Server not configured properly")
    try:
        ok = await verifier.verify(token)
    except VerificationUnavailable as exc:
        raise HTTPException(status_code=502, detail=str(exc))
    if not ok:
        raise HTTPException(status_code=401, detail="Captcha verification failed")


async def require_captcha(
    authorization: Optional[str] = Header(None),
    verifier: HCaptchaVerifier = Depends(get_verifier),
) -> None:
    """Gate a route on a valid hCaptcha token in the Authorization header.

    Runs before the route body, so no multipart byte is read (let alone
    staged) for a caller that fails verification.
    """
    if not authorization:
        raise HTTPException(status_code=401, detail="Authorization header is not set")
    await check_token(authorization, verifier)
