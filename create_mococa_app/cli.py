"""Command-line entry point for ``create-mococa-app``.

Every hard failure surfaces here as a ``ScaffoldError`` subclass and is mapped
to exit code 1; nothing below this module prints errors or exits.
"""

from __future__ import annotations

import asyncio
import sys
from collections.abc import Sequence

from create_mococa_app.config import GenerationConfig
from create_mococa_app.errors import ConfigError, ExternalToolError, FileSystemError, SetupCancelled
from create_mococa_app.prompts import Prompter, RichPrompter
from create_mococa_app.resolver import resolve
from create_mococa_app.scaffolder import GenerationResult, ProjectGenerator
from create_mococa_app.utils import (
    console,
    print_error,
    print_header,
    print_step,
    print_success,
    print_summary_table,
    print_warning,
)


def main(argv: Sequence[str] | None = None, prompter: Prompter | None = None) -> int:
    """Run the generator and return the process exit code."""
    print_header("Create Mococa App")

    try:
        config = resolve(argv, prompter or RichPrompter())
    except SetupCancelled as exc:
        print_error(str(exc))
        return 1
    except ConfigError as exc:
        print_error(f"Error: {exc}")
        return 1

    print_step(f"Creating project in {config.target_directory}...")
    try:
        result = asyncio.run(ProjectGenerator(config).generate())
    except FileSystemError as exc:
        print_error(f"Could not write the project: {exc}")
        return 1
    except ExternalToolError as exc:
        print_error(f"Failed to set up the API server: {exc}")
        print_warning(
            f"The rest of the project was generated in {config.target_directory}; "
            "apps/api is missing or incomplete."
        )
        return 1

    for miss in result.rewrite_misses:
        print_warning(f"Rewrite skipped, {miss}")

    _print_report(config, result)
    return 0


def _print_report(config: GenerationConfig, result: GenerationResult) -> None:
    console.print()
    print_summary_table(
        {
            "Project": config.project_name,
            "Domain": config.domain,
            "Directory": str(config.target_directory),
            "Environments": ", ".join(config.environments),
            "Features": ", ".join(result.features) or "none",
            "Files written": str(len(result.files) + len(result.environment_files)),
        },
        title="Project Summary",
    )

    if result.features:
        print_success(f"Project created successfully with {' + '.join(result.features)} support!")
    else:
        print_success("Project created successfully!")

    console.print()
    console.print("[bold]Next steps:[/bold]")
    print_step(f"cd {config.display_directory}")
    print_step("bun install")
    print_step("bun start")
    console.print()


def run() -> None:
    """Console-script entry point."""
    sys.exit(main())


if __name__ == "__main__":
    run()
