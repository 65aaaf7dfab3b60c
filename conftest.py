"""Configures pytest further."""
import pytest


def pytest_addoption(parser):
    parser.addoption("--skip-slow", action="store_true", default=False, help="skip tests generating fresh keys")


def pytest_collection_modifyitems(config, items):
    if not config.getoption("--skip-slow"):
        return
    skip = pytest.mark.skip(reason="Slow test: needs no --skip-slow option")
    for item in items:
        if "slow" in item.keywords:
            item.add_marker(skip)
