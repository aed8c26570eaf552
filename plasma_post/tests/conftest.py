"""Shared fixtures: the shipped machine profiles."""

from __future__ import annotations

import copy
from pathlib import Path
from typing import Any

import pytest

from plasma_post.configs import loader
from plasma_post.configs.loader import PostConfig, load_config
from plasma_post.utils.fs import load_yaml

CONFIG_DIR = Path(loader.__file__).parent


@pytest.fixture()
def config() -> PostConfig:
    """Default profile: split rapids, Z re-home, all THC fields."""
    return load_config()


@pytest.fixture()
def compact_config() -> PostConfig:
    """Compact profile: combined rapid, three THC fields, no re-home."""
    return load_config(CONFIG_DIR / "machine_compact.yaml")


@pytest.fixture()
def raw_config() -> dict[str, Any]:
    """Mutable copy of the default profile mapping."""
    return copy.deepcopy(load_yaml(CONFIG_DIR / "machine.yaml"))
