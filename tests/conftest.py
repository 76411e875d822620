from __future__ import annotations

from typing import TYPE_CHECKING

import pytest
from git_fakes import FakeRunner, canned_outputs

from stagen.settings import Settings

if TYPE_CHECKING:
    from pathlib import Path


@pytest.fixture
def fake_runner() -> FakeRunner:
    return FakeRunner(canned_outputs())


@pytest.fixture
def settings(tmp_path: Path) -> Settings:
    return Settings(
        repo=tmp_path / "repo",
        out=tmp_path / "site" / "demo",
        name="demo",
        desc="A demo repository",
        url="https://example.org/demo.git",
    )
