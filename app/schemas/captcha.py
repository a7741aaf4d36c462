"""Schemas for the captcha endpoint."""

from pydantic import BaseModel, Field


class CaptchaRequest(BaseModel):
    """Token produced by the client-side hCaptcha widget."""
    token: str = Field(..., min_length=1, description="hCaptcha response token")


class CaptchaResponse(BaseModel):
    """Returned after a successful verification."""
    success: bool = Field(True, description="Always true; failures are reported as errors")
