"""Shared pytest fixtures for the image-to-PDF service tests."""

from __future__ import annotations

from pathlib import Path

import pytest
from fastapi.testclient import TestClient

from app.config import Settings
from app.dependencies import get_verifier
from app.main import create_app
from helpers import StubVerifier


@pytest.fixture
def temp_dir(tmp_path: Path) -> Path:
    """Directory the service stages into (created lazily by the service)."""
    return tmp_path / "docgen"


@pytest.fixture
def settings(temp_dir: Path) -> Settings:
    return Settings(
        hcaptcha_secret="0x-test-secret",
        temp_dir=str(temp_dir),
        max_upload_bytes=2 * 1024 * 1024,
    )


@pytest.fixture
def verifier() -> StubVerifier:
    return StubVerifier()


@pytest.fixture
def app(settings: Settings, verifier: StubVerifier):
    application = create_app(settings)
    application.dependency_overrides[get_verifier] = lambda: verifier
    return application


@pytest.fixture
def test_client(app) -> TestClient:
    return TestClient(app)
