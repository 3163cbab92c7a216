"""Shared helpers for intake tests."""

import asyncio

import pytest

from legal_intake.config import IntakeConfig
from legal_intake.intake.orchestrator import IntakeOrchestrator
from legal_intake.llm.fixture import FixtureProvider


@pytest.fixture
def make_orchestrator():
    """Build an orchestrator on a FixtureProvider with optional reply overrides."""

    def _make(responses=None, config=None, **provider_kwargs):
        provider = FixtureProvider(responses=responses, record_prompts=True, **provider_kwargs)
        return IntakeOrchestrator(provider, config or IntakeConfig(provider="fixture")), provider

    return _make


@pytest.fixture
def run():
    """Run a coroutine to completion."""
    return asyncio.run
