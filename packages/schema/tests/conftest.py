"""Pytest configuration for dataknobs_schema tests."""

import sys
from pathlib import Path

import pytest

# Add the package source to path for testing
src_path = Path(__file__).parent.parent / "src"
if str(src_path) not in sys.path:
    sys.path.insert(0, str(src_path))

from dataknobs_schema import ValidatorConfig  # noqa: E402


@pytest.fixture
def config(monkeypatch):
    """A fresh configuration unaffected by DATAKNOBS_SCHEMA_* variables."""
    for key in ("CONVERT", "TIMEOUT", "MAX_CONCURRENCY"):
        monkeypatch.delenv(f"DATAKNOBS_SCHEMA_{key}", raising=False)
    return ValidatorConfig()

