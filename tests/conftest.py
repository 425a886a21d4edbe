"""Pytest configuration and shared fixtures."""

import pytest
from pathlib import Path
from codebridge.config import Config
from codebridge.workspace import Workspace, to_file_ref
from codebridge.backends import InMemoryLanguageHost


@pytest.fixture
def temp_repo(tmp_path: Path) -> Path:
    """Create a temporary workspace folder with a few files."""
    repo = tmp_path / "test_repo"
    repo.mkdir()

    (repo / "README.md").write_text("# Test Project\n\nSee [the app](src/app.ts).\n")
    (repo / "src").mkdir()
    (repo / "src" / "app.ts").write_text("import { util } from './util'\n")
    (repo / "src" / "util.ts").write_text("export function util() {}\n")

    return repo


@pytest.fixture
def workspace(temp_repo: Path) -> Workspace:
    return Workspace([temp_repo])


@pytest.fixture
def ref(temp_repo: Path):
    """Build a normalized file reference inside ``temp_repo``, creating the file."""

    def _ref(relative: str, content: str | None = None) -> str:
        # Given content always replaces the file; otherwise existing text is kept
        path = temp_repo / relative
        path.parent.mkdir(parents=True, exist_ok=True)
        if content is not None or not path.exists():
            path.write_text(content or "", encoding="utf-8")
        return to_file_ref(str(path))

    return _ref


@pytest.fixture
def host() -> InMemoryLanguageHost:
    return InMemoryLanguageHost()


@pytest.fixture
def config() -> Config:
    """Provide a test configuration."""
    return Config(
        strategy="deep",
        max_files=0,
        excludes=["node_modules"],
        provider_timeout=5.0,
    )
