from __future__ import annotations

import importlib.util
import sys
from pathlib import Path
from types import ModuleType

import pytest


REPO_ROOT = Path(__file__).resolve().parents[1]

SAMPLE_CHANGELOG = """# Changelog

## 1.0.2
- Fixed a bug

## 1.0.1
- Initial release
"""


def load_script_module(module_name: str, relative_path: str) -> ModuleType:
    module_path = REPO_ROOT / relative_path
    scripts_dir = str(module_path.parent)
    if scripts_dir not in sys.path:
        sys.path.insert(0, scripts_dir)

    spec = importlib.util.spec_from_file_location(module_name, module_path)
    if spec is None or spec.loader is None:
        raise RuntimeError(f"unable to load module from {module_path}")

    module = importlib.util.module_from_spec(spec)
    spec.loader.exec_module(module)
    return module


def blame_output(lines: list[str], *, committed_at: str = "2025-06-01T10:00:00+00:00") -> str:
    return "".join(
        f"a1b2c3d4 (Jane Dev {committed_at} {number:>3}) {line}\n" for number, line in enumerate(lines, start=1)
    )


@pytest.fixture(scope="session")
def repo_root() -> Path:
    return REPO_ROOT


@pytest.fixture(scope="session")
def generate_rss():
    return load_script_module("changelog_rss_generate", "scripts/generate-rss.py")


@pytest.fixture
def sample_changelog() -> str:
    return SAMPLE_CHANGELOG
