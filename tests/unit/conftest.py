"""Pytest configuration for unit tests.

Unit tests must not touch the network: every HTTP call is mocked at the
session or SDK boundary. This conftest turns any socket connection attempt
into an immediate, descriptive failure instead of a slow timeout.
"""

import socket
import sys
from pathlib import Path
from unittest.mock import patch

import pytest

# Add parent tests directory to path to import from main conftest
parent_tests_dir = Path(__file__).parent.parent
if str(parent_tests_dir) not in sys.path:
    sys.path.insert(0, str(parent_tests_dir))


class NetworkCallDetectedError(Exception):
    """Raised when a unit test attempts to make a network call."""

    def __init__(self, call_type: str):
        self.call_type = call_type
        super().__init__(
            f"Network call detected in unit test: socket.{call_type}()\n"
            f"Unit tests must not make network calls. Use mocks instead."
        )


def _create_network_blocker(call_type: str):
    def blocker(*args, **kwargs):
        raise NetworkCallDetectedError(call_type)

    return blocker


@pytest.fixture(autouse=True)
def block_network():
    """Fail fast on any real socket connection during a unit test."""
    with patch.object(
        socket, "create_connection", side_effect=_create_network_blocker("create_connection")
    ):
        yield
