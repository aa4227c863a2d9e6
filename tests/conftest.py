"""Pytest configuration and shared fixtures.

Puts the project root on sys.path so tests import `lumberjack_lib` without
an install or PYTHONPATH.
"""
import sys
from pathlib import Path

import pytest


def pytest_configure(config):
    repo_root = Path(__file__).resolve().parents[1]
    sys.path.insert(0, str(repo_root))


@pytest.fixture
def encrypter():
    from lumberjack_lib.encryption import FernetEncrypter
    return FernetEncrypter(key=FernetEncrypter.generate_key())
