"""Project metadata stays in step with the package."""

from __future__ import annotations

import re
from pathlib import Path

ROOT = Path(__file__).resolve().parent.parent
PYPROJECT = (ROOT / "pyproject.toml").read_text(encoding="utf-8")


def test_long_description_is_not_a_design_document() -> None:
    match = re.search(r'^readme\s*=\s*"([^"]+)"', PYPROJECT, re.MULTILINE)
    if match:
        assert match.group(1) not in {"SPEC_FULL.md", "DESIGN.md"}
        assert (ROOT / match.group(1)).is_file()


def test_runtime_dependencies_are_declared() -> None:
    for distribution in ("loguru", "PyYAML", "python-dotenv", "httpx"):
        assert f'"{distribution}' in PYPROJECT
