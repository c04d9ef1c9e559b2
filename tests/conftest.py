"""Shared test fixtures."""

import pytest

from forecast_report.config import settings


@pytest.fixture(autouse=True)
def _restore_settings():
    """Undo settings mutations made by a test."""
    saved = settings.model_dump()
    yield
    for key, value in saved.items():
        setattr(settings, key, value)
