"""Router: POST /captcha — verify an hCaptcha token."""

from __future__ import annotations

import structlog
from fastapi import APIRouter, Depends

from app.dependencies import check_token, get_verifier
from app.schemas.captcha import CaptchaRequest, CaptchaResponse
from app.services.captcha import HCaptchaVerifier

logger = structlog.get_logger(__name__)

router = APIRouter(tags=["captcha"])


@router.post("/captcha", response_model=CaptchaResponse)
async def verify_captcha(req: CaptchaRequest, verifier: HCaptchaVerifier = Depends(get_verifier)):
    """Verify a token produced by the client-side widget."""
    await check_token(req.token, verifier)
    logger.info("captcha_verified")
    return CaptchaResponse(success=True)
