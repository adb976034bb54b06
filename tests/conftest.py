"""Test setup for promptmap."""

from __future__ import annotations

import logging
import sys
from pathlib import Path

import pytest

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from promptmap.editor import Editor  # noqa: E402

SCENARIO = """\
# Title
## Section A
Some text.
- item 1
- item 2
"""


@pytest.fixture(autouse=True)
def restore_root_logger():
    """Undo logging setup done by CLI tests."""
    logger = logging.getLogger()
    handlers = list(logger.handlers)
    level = logger.level
    yield
    logger.handlers = handlers
    logger.setLevel(level)


@pytest.fixture
def scenario_markdown() -> str:
    return SCENARIO


@pytest.fixture
def demo_editor() -> Editor:
    return Editor.demo()
