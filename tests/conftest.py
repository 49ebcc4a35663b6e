from __future__ import annotations

import textwrap
from pathlib import Path

import pytest

from archlens.config import merge_config
from archlens.parsers import ParserRegistry


@pytest.fixture
def project_builder(tmp_path: Path):
    """Write dedented files into tmp_path: build({"app/page.tsx": "..."})."""

    def build(files: dict[str, str]) -> Path:
        for rel_path, content in files.items():
            path = tmp_path / rel_path
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(textwrap.dedent(content).lstrip("\n"), encoding="utf-8")
        return tmp_path

    return build


@pytest.fixture
def config():
    return merge_config(None)


@pytest.fixture(autouse=True)
def _fresh_parser_cache():
    ParserRegistry.clear_cache()
    yield
    ParserRegistry.clear_cache()
