"""hCaptcha siteverify client."""

from __future__ import annotations

import httpx
import structlog

from app.errors import VerificationUnavailable

logger = structlog.get_logger(__name__)


class HCaptchaVerifier:
    """Checks a client-side hCaptcha token against the siteverify endpoint."""

    def __init__(
        self,
        secret: str,
        verify_url: str,
        timeout: float = 10.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.secret = secret
        self.verify_url = verify_url
        self.timeout = timeout
        self.transport = transport

    @property
    def configured(self) -> bool:
        return bool(self.secret)

    async def verify(self, token: str) -> bool:
        """Return True when hCaptcha accepts *token*.

        Single attempt; a transport error or non-2xx answer raises
        VerificationUnavailable instead of being treated as a rejection.
        """
        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
                resp = await client.post(
                    self.verify_url,
                    data={"secret": self.secret, "response": token},
                )
                resp.raise_for_status()
                payload = resp.json()
        except (httpx.HTTPError, ValueError) as exc:
            logger.error("captcha_verify_unavailable", error=str(exc))
            raise VerificationUnavailable(f"Captcha verification unavailable: {exc}") from exc

        success = bool(payload.get("success", False))
        if not success:
            logger.info("captcha_rejected", error_codes=payload.get("error-codes", []))
        return success
