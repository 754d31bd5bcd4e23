"""Jinja2 template rendering for derived project files.

``TemplateRenderer`` renders the tool's own ``.j2`` files (constants module,
Pulumi stack config, README) from ``create_mococa_app/scaffolder/templates/``
with context built from a ``GenerationConfig``.  These templates belong to the
tool itself; the project template tree is never rendered through Jinja2.
"""

from __future__ import annotations

import re
from pathlib import Path
from typing import Any

from jinja2 import Environment, FileSystemLoader, StrictUndefined


# ---------------------------------------------------------------------------
# Locations
# ---------------------------------------------------------------------------

_DEFAULT_TEMPLATE_DIR = Path(__file__).parent / "templates"

_TS_IDENTIFIER_RE = re.compile(r"^[A-Za-z_$][A-Za-z0-9_$]*$")


# ---------------------------------------------------------------------------
# TemplateRenderer
# ---------------------------------------------------------------------------


class TemplateRenderer:
    """Renders Jinja2 templates for derived files.

    Output is plain text (TypeScript, YAML, Markdown), so autoescaping is off.
    Undefined variables raise instead of rendering as empty strings.
    """

    def __init__(self, template_dir: str | Path | None = None) -> None:
        if template_dir is None:
            template_dir = _DEFAULT_TEMPLATE_DIR
        self.template_dir = Path(template_dir)
        self.env = Environment(
            loader=FileSystemLoader(str(self.template_dir)),
            autoescape=False,
            keep_trailing_newline=True,
            trim_blocks=True,
            lstrip_blocks=True,
            undefined=StrictUndefined,
        )
        # Register custom filters
        self.env.filters["ts_key"] = _ts_key_filter
        self.env.filters["ts_string"] = _ts_string_filter

    def render(self, template_path: str, context: dict[str, Any]) -> str:
        """Render *template_path* (e.g. ``"constants.ts.j2"``) with *context*.

        Raises:
            jinja2.UndefinedError: If the template uses a key missing from
                *context*.
        """
        template = self.env.get_template(template_path)
        return template.render(**context)


# ---------------------------------------------------------------------------
# Jinja2 custom filters
# ---------------------------------------------------------------------------

def _ts_string_filter(value: str) -> str:
    """Render *value* as a single-quoted TypeScript string literal."""
    escaped = str(value).replace("\\", "\\\\").replace("'", "\\'")
    return f"'{escaped}'"


def _ts_key_filter(value: str) -> str:
    """Render *value* as an object key, quoting it unless it is an identifier."""
    value = str(value)
    if _TS_IDENTIFIER_RE.match(value):
        return value
    return _ts_string_filter(value)
