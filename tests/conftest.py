"""Shared pytest fixtures for wireboot tests."""

import pytest

from wireboot._internal.dependencies import RequirementsExtractor
from wireboot._internal.instantiation import InstantiationService
from wireboot._internal.scanner import ComponentScanner
from wireboot.configuration import BootSettings, Configuration


@pytest.fixture()
def configuration() -> Configuration:
    """Configuration with default tags and no environment overrides."""
    return Configuration(BootSettings(max_iterations=10_000, discover_in_thread=False))


@pytest.fixture()
def scanner(configuration: Configuration) -> ComponentScanner:
    return ComponentScanner(configuration)


@pytest.fixture()
def instantiation_service() -> InstantiationService:
    return InstantiationService()


@pytest.fixture()
def requirements_extractor() -> RequirementsExtractor:
    return RequirementsExtractor()
