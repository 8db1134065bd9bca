"""
Pytest configuration and fixtures for AIreform tests.
"""

import sys
from pathlib import Path

import pytest

# Add src directory to path so imports work
src_path = Path(__file__).parent.parent / "src"
sys.path.insert(0, str(src_path))
sys.path.insert(0, str(Path(__file__).parent))

from fakes import FakeGuild  # noqa: E402


@pytest.fixture
def guild() -> FakeGuild:
    return FakeGuild()


@pytest.fixture
def store(tmp_path):
    from aireform.configuration.guild_config import GuildConfigStore

    return GuildConfigStore(tmp_path / "db.json")
