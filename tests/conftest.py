"""Test configuration: makes the src package importable and provides sessions."""

from __future__ import annotations

import sys
from pathlib import Path

import pytest

PROJECT_ROOT = Path(__file__).resolve().parents[1]
SRC_PATH = PROJECT_ROOT / "src"
for path in (Path(__file__).resolve().parent, SRC_PATH):
    value = str(path)
    if value not in sys.path:
        sys.path.insert(0, value)

from chatkit.services.logging import StructuredLogger  # noqa: E402
from chatkit.state.session import ChatSession  # noqa: E402


@pytest.fixture
def logger() -> StructuredLogger:
    return StructuredLogger("test-session")


@pytest.fixture
def session(logger: StructuredLogger):
    chat = ChatSession(logger=logger)
    yield chat
    chat.dispose()
