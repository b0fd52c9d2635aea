"""
Pytest configuration for groovyd test suite.

This configuration enables the --full flag to run integration tests.
"""

import logging

import pytest


def pytest_addoption(parser):
    """Add custom command-line options."""
    parser.addoption(
        "--full",
        action="store_true",
        default=False,
        help="Run full test suite including integration tests (slow)",
    )


def pytest_configure(config):
    """Configure pytest based on command-line options."""
    config.addinivalue_line("markers", "integration: end-to-end tests that launch compiler processes")

    if config.getoption("--full"):
        # Remove the default marker expression that excludes integration tests
        markexpr = config.getoption("-m", "")
        if markexpr == "not integration":
            # Clear the marker expression to run all tests
            config.option.markexpr = ""


@pytest.fixture
def groovy_project(tmp_path):
    """Create a minimal project layout with a main and a test source root."""
    main_root = tmp_path / "src" / "main" / "groovy"
    test_root = tmp_path / "src" / "test" / "groovy"
    main_root.mkdir(parents=True)
    test_root.mkdir(parents=True)
    return tmp_path


@pytest.fixture(autouse=True)
def restore_logging():
    """Remove console handlers installed by the CLI."""
    root = logging.getLogger()
    level = root.level
    yield
    for handler in list(root.handlers):
        if getattr(handler, "_groovyd", False):
            root.removeHandler(handler)
    root.setLevel(level)
