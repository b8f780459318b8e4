"""Pytest configuration and fixtures."""

import sys
from pathlib import Path

import pytest

# Add project root to sys.path for imports
PROJECT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

from refiner.llm.provider_config import ProviderConfig  # noqa: E402


SAMPLE_TEXT = (
    "The city council voted on Tuesday to convert the abandoned rail yard "
    "into a public park, citing strong community support and a federal grant."
)


@pytest.fixture
def sample_text():
    return SAMPLE_TEXT


@pytest.fixture
def provider_config():
    return ProviderConfig(api_key="test-key", base_url="https://provider.test/v1")
