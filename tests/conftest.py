from __future__ import annotations

from pathlib import Path

import pytest


@pytest.fixture
def golden_dir() -> Path:
    return Path(__file__).resolve().parent / "golden"


@pytest.fixture
def users_jsonl(golden_dir: Path) -> Path:
    return golden_dir / "users_small.jsonl"
