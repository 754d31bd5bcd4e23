"""Main scaffolding orchestrator.

Takes a resolved ``GenerationConfig`` and materializes the project: clear the
target (when the user agreed to), walk the template tree through the
inclusion filter, transform and write every file, emit the per-environment
stack configs and finally bootstrap the API server when requested.
"""

from __future__ import annotations

import asyncio
import shutil
from pathlib import Path

from pydantic import BaseModel, Field

from create_mococa_app.config import Feature, GenerationConfig
from create_mococa_app.errors import FileSystemError
from .api_bootstrap import bootstrap_api
from .derived import environment_files
from .inclusion import should_include
from .transformer import transform_with_report
from .walker import TemplateEntry, walk


# ---------------------------------------------------------------------------
# Result model
# ---------------------------------------------------------------------------


class GenerationResult(BaseModel):
    """What a generation run produced."""

    root: Path
    files: list[str] = Field(default_factory=list, description="Template files written, relative to root")
    skipped: list[str] = Field(default_factory=list, description="Template paths pruned by the inclusion filter")
    environment_files: list[str] = Field(default_factory=list)
    rewrite_misses: list[str] = Field(
        default_factory=list,
        description="Structural edits whose anchor was not found",
    )
    api_configured: bool = Field(default=False)
    features: list[str] = Field(default_factory=list, description="Enabled feature labels")


# ---------------------------------------------------------------------------
# Main generator
# ---------------------------------------------------------------------------


class ProjectGenerator:
    """Materializes one project from the packaged template tree."""

    def __init__(self, config: GenerationConfig, template_dir: str | Path | None = None) -> None:
        self.config = config
        self.template_dir = Path(template_dir) if template_dir is not None else config.settings.template_dir

    # -- Public API --------------------------------------------------------

    async def generate(self) -> GenerationResult:
        """Generate the project into ``config.target_directory``.

        Raises:
            FileSystemError: If the template cannot be read or the target
                cannot be written.  Files written so far are left in place.
            ExternalToolError: If the API bootstrap fails.  Everything else
                has already been generated at that point.
        """
        root = self.config.target_directory
        result = GenerationResult(root=root, features=self.config.feature_labels())

        try:
            await self._prepare_target(root)
            await self._copy_template(root, result)
            await self._write_environment_files(root, result)
        except OSError as exc:
            raise FileSystemError(exc.filename or root, exc.strerror or str(exc)) from exc

        if self.config.has(Feature.API):
            bootstrap = await bootstrap_api(root, self.config)
            result.rewrite_misses.extend(bootstrap.misses)
            result.api_configured = True

        return result

    # -- Steps -------------------------------------------------------------

    async def _prepare_target(self, root: Path) -> None:
        if self.config.clean_target and root.exists():
            await asyncio.to_thread(shutil.rmtree, root)
        await asyncio.to_thread(root.mkdir, parents=True, exist_ok=True)

    async def _copy_template(self, root: Path, result: GenerationResult) -> None:
        def include(relative_path: str) -> bool:
            if should_include(relative_path, self.config):
                return True
            result.skipped.append(relative_path)
            return False

        for entry in walk(self.template_dir, include=include):
            destination = root / entry.relative_path
            if entry.is_directory:
                await asyncio.to_thread(destination.mkdir, parents=True, exist_ok=True)
                continue
            misses = await asyncio.to_thread(self._materialize, entry, destination)
            result.files.append(entry.relative_path)
            result.rewrite_misses.extend(misses)

    def _materialize(self, entry: TemplateEntry, destination: Path) -> tuple[str, ...]:
        """Write one template file; binary files are copied byte for byte."""
        destination.parent.mkdir(parents=True, exist_ok=True)
        raw = entry.source.read_bytes()
        try:
            text = raw.decode("utf-8")
        except UnicodeDecodeError:
            shutil.copyfile(entry.source, destination)
            return ()

        transformed = transform_with_report(entry.relative_path, text, self.config)
        destination.write_bytes(transformed.content.encode("utf-8"))
        return transformed.misses

    async def _write_environment_files(self, root: Path, result: GenerationResult) -> None:
        for derived in environment_files(self.config):
            destination = root / derived.path
            content = derived.generate(self.config)
            await asyncio.to_thread(_write_file, destination, content)
            result.environment_files.append(derived.path)


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------

def _write_file(path: Path, content: str) -> None:
    """Synchronous helper: create parent dirs and write content."""
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(content.encode("utf-8"))
