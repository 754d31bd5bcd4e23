"""Shared pytest fixtures for the create-mococa-app test suite.

Provides reusable fixtures for:
- Resolved generation configs (minimal, full, per-feature)
- Captured console output
- A fake ``git clone`` that materializes a small API repository
"""

from __future__ import annotations

import io
import json
from pathlib import Path
from unittest.mock import AsyncMock, patch

import pytest

from create_mococa_app.config import DEFAULT_ENVIRONMENTS, Feature, GenerationConfig
from create_mococa_app.utils import console


# ---------------------------------------------------------------------------
# Console
# ---------------------------------------------------------------------------

@pytest.fixture(autouse=True)
def console_output(monkeypatch) -> io.StringIO:
    """Redirect the shared Rich console into a buffer for every test."""
    buffer = io.StringIO()
    monkeypatch.setattr(console, "file", buffer)
    monkeypatch.setattr(console, "width", 200)
    return buffer


# ---------------------------------------------------------------------------
# Configs
# ---------------------------------------------------------------------------

@pytest.fixture
def make_config(tmp_path: Path):
    """Factory for ``GenerationConfig`` objects targeting ``tmp_path``."""

    def _make(
        *features: Feature,
        name: str = "my-app",
        domain: str | None = None,
        environments: tuple[str, ...] = ("production",),
        **overrides,
    ) -> GenerationConfig:
        return GenerationConfig(
            project_name=name,
            domain=domain or f"{name}.com",
            target_directory=overrides.pop("target_directory", tmp_path / name),
            features=frozenset(features),
            environments=tuple(environments),
            **overrides,
        )

    return _make


@pytest.fixture
def minimal_config(make_config) -> GenerationConfig:
    """No optional features, production only."""
    return make_config()


@pytest.fixture
def full_config(make_config) -> GenerationConfig:
    """Every feature enabled, three environments."""
    return make_config(*Feature, environments=DEFAULT_ENVIRONMENTS)


# ---------------------------------------------------------------------------
# Fake API repository
# ---------------------------------------------------------------------------

API_MAIN_TS = """\
import { Elysia } from 'elysia';
import { cors } from '@elysiajs/cors';
import { services } from './services';

async function createApp() {
  const app = new Elysia()
    .use(cors({
      origin: ['http://localhost:3000', 'http://localhost:5173'],
      credentials: true,
    }));

  return app;
}

export default createApp;
"""

API_AUTH_TS = """\
import { Elysia, t } from 'elysia';

class LoginError extends Error {
  status = 401;
}

export const auth = new Elysia({ prefix: '/auth' })
  /** Login with email + password */
  .post('/login', async ({ body }) => {
    return login(body);
  }, { body: schemas.login })
  /** Google OAuth */
  .get('/google', () => redirect());
"""


def write_api_repository(destination: Path) -> None:
    """Lay out the files the API bootstrap rewrites, plus a ``.git`` dir."""
    (destination / ".git").mkdir(parents=True)
    (destination / ".git" / "HEAD").write_text("ref: refs/heads/main\n", encoding="utf-8")
    (destination / "src" / "handlers" / "public").mkdir(parents=True)
    (destination / "package.json").write_text(
        json.dumps({
            "name": "bun-mococa",
            "scripts": {"dev": "bun --watch src/main.ts", "fmt": "biome format --write ."},
        }, indent=2) + "\n",
        encoding="utf-8",
    )
    (destination / "src" / "main.ts").write_text(API_MAIN_TS, encoding="utf-8")
    (destination / "src" / "handlers" / "public" / "auth.ts").write_text(API_AUTH_TS, encoding="utf-8")
    (destination / ".env.example").write_text(
        'PORT=3000\nENV="development" # or "production"\n', encoding="utf-8"
    )
    (destination / "docker-compose.yml").write_text(
        "services:\n  bun_app:\n    container_name: bun_app\n", encoding="utf-8"
    )
    (destination / "README.md").write_text("# bun_app\n", encoding="utf-8")


@pytest.fixture
def fake_git_clone():
    """Patch the subprocess boundary so ``git clone`` writes a fake repository."""

    def _clone(cmd, cwd=None, timeout=600):
        write_api_repository(Path(cmd[-1]))
        return (0, "", "Cloning into 'api'...")

    mock = AsyncMock(side_effect=_clone)
    with patch("create_mococa_app.scaffolder.api_bootstrap.run_command", new=mock):
        yield mock
