"""Test configuration and shared fixtures for Outline Toolkit.

Every test gets its own user configuration directory so nothing is read
from or written to the real home directory, and the ConfigManager
singleton is reset between tests.
"""

import logging
import sys
from pathlib import Path

import pytest

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from outline_toolkit.config import ConfigManager
from outline_toolkit.core.classifiers import LineClassifier

# Configure test logging
logging.basicConfig(
    level=logging.DEBUG,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)


@pytest.fixture(autouse=True)
def isolated_config_dir(tmp_path, monkeypatch):
    """Point the user config directory at a per-test temporary folder."""
    config_dir = tmp_path / "user_config"
    monkeypatch.setenv("OUTLINE_TOOLKIT_CONFIG_DIR", str(config_dir))
    ConfigManager.reset()
    yield config_dir
    ConfigManager.reset()


@pytest.fixture
def classifier():
    """Default classifier plus the ``<o>``/``<x>`` symbols used in fixtures."""
    return LineClassifier({"box": "<>", "done": "<o>", "cancelled": "<x>"})
