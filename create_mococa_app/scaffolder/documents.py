"""Section-structured view of a templated source file.

Template sources mark their logical parts with banner comments::

    /* ---------- Resources ---------- */

A ``SectionDocument`` splits a file into an ordered list of ``Section``
objects, one per banner, so structural edits become list operations instead
of whole-file regexes.  Text before the first banner lives in an anonymous
leading section.  A non-blank line indented *less* than the banner of the
current named section closes it and starts an anonymous section (this is how
the closing braces after the last indented banner in a class body stay put).

Edits never raise when their anchor is absent.  Each failed edit appends a
human-readable note to ``misses`` and leaves the text untouched, so a
template that drifted from the rewrite rules degrades to "not rewritten"
rather than "corrupted".  Parsing and rendering an unedited file returns the
input unchanged.
"""

from __future__ import annotations

import re
from collections.abc import Iterable
from dataclasses import dataclass, field

BANNER_RE = re.compile(r"^(?P<indent>[ \t]*)/\* -{3,} (?P<name>.+?) -{3,} \*/\s*$")


@dataclass
class Section:
    """A banner line plus every line up to the next section boundary.

    ``name`` is ``None`` for anonymous sections (file preamble and the
    dedented tail after an indented section).  Lines keep their line endings.
    """

    name: str | None
    indent: int
    lines: list[str] = field(default_factory=list)

    @property
    def body(self) -> list[str]:
        return self.lines[1:] if self.name is not None else self.lines

    def is_empty(self) -> bool:
        return all(not line.strip() for line in self.body)

    def strip_trailing_blank_lines(self) -> None:
        while self.lines and not self.lines[-1].strip():
            self.lines.pop()


def _indent_of(line: str) -> int:
    return len(line) - len(line.lstrip(" \t"))


def _line_ending(line: str) -> str:
    if line.endswith("\r\n"):
        return "\r\n"
    return "\n" if line.endswith("\n") else ""


class SectionDocument:
    """Ordered sections of a single file, with soft-failing edit operations."""

    def __init__(self, sections: list[Section]) -> None:
        self.sections = sections
        self.misses: list[str] = []

    @classmethod
    def parse(cls, text: str) -> "SectionDocument":
        sections: list[Section] = [Section(name=None, indent=0)]
        for line in text.splitlines(keepends=True):
            match = BANNER_RE.match(line.rstrip("\r\n"))
            if match:
                sections.append(Section(
                    name=match.group("name"),
                    indent=len(match.group("indent")),
                    lines=[line],
                ))
                continue
            current = sections[-1]
            if current.name is not None and line.strip() and _indent_of(line) < current.indent:
                sections.append(Section(name=None, indent=_indent_of(line), lines=[line]))
                continue
            current.lines.append(line)
        if not sections[0].lines:
            sections.pop(0)
        return cls(sections)

    def render(self) -> str:
        return "".join(line for section in self.sections for line in section.lines)

    # -- Lookup ------------------------------------------------------------

    def names(self) -> list[str]:
        return [section.name for section in self.sections if section.name is not None]

    def find(self, name: str) -> Section | None:
        for section in self.sections:
            if section.name == name:
                return section
        return None

    def _scope(self, section: str | None) -> list[Section] | None:
        if section is None:
            return self.sections
        found = self.find(section)
        if found is None:
            self.misses.append(f"section {section!r} not found")
            return None
        return [found]

    # -- Edits -------------------------------------------------------------

    def drop_section(self, name: str) -> bool:
        """Remove the named section, banner included."""
        for index, section in enumerate(self.sections):
            if section.name == name:
                self._remove_at(index)
                return True
        self.misses.append(f"section {name!r} not found")
        return False

    def _remove_at(self, index: int) -> None:
        del self.sections[index]
        successor = self.sections[index] if index < len(self.sections) else None
        # Sections normally end with a blank separator line; when nothing
        # named follows, the preceding section must not keep its separator.
        if index > 0 and (successor is None or successor.name is None):
            self.sections[index - 1].strip_trailing_blank_lines()

    def replace_body(self, name: str, body: Iterable[str]) -> bool:
        """Replace everything after the banner of *name*, keeping its separator."""
        section = self.find(name)
        if section is None:
            self.misses.append(f"section {name!r} not found")
            return False
        banner = section.lines[0]
        newline = _line_ending(banner) or "\n"
        trailing: list[str] = []
        for line in reversed(section.lines[1:]):
            if line.strip():
                break
            trailing.insert(0, line)
        section.lines = [banner, *(line + newline for line in body), *trailing]
        return True

    def drop_lines(self, *targets: str, section: str | None = None) -> int:
        """Remove every line whose stripped text equals one of *targets*."""
        scope = self._scope(section)
        if scope is None:
            return 0
        removed = 0
        for target in targets:
            wanted = target.strip()
            hits = 0
            for current in scope:
                kept = [line for line in current.lines if line.strip() != wanted]
                hits += len(current.lines) - len(kept)
                current.lines = kept
            if hits == 0:
                where = f" in section {section!r}" if section else ""
                self.misses.append(f"line {wanted!r} not found{where}")
            removed += hits
        return removed

    def drop_block(self, block: Iterable[str], section: str | None = None) -> bool:
        """Remove the first consecutive run of lines matching *block*.

        A blank line directly above the run is removed with it, so dropping a
        documented member from an interface does not leave a double gap.
        """
        wanted = [line.strip() for line in block]
        scope = self._scope(section)
        if scope is None or not wanted:
            return False
        for current in scope:
            lines = current.lines
            for start in range(len(lines) - len(wanted) + 1):
                window = [line.strip() for line in lines[start:start + len(wanted)]]
                if window != wanted:
                    continue
                first = start - 1 if start > 0 and not lines[start - 1].strip() else start
                del lines[first:start + len(wanted)]
                return True
        where = f" in section {section!r}" if section else ""
        self.misses.append(f"block starting {wanted[0]!r} not found{where}")
        return False

    def replace_text(self, old: str, new: str, section: str | None = None) -> int:
        """Replace *old* with *new* on every line in scope."""
        scope = self._scope(section)
        if scope is None:
            return 0
        count = 0
        for current in scope:
            for index, line in enumerate(current.lines):
                if old in line:
                    count += line.count(old)
                    current.lines[index] = line.replace(old, new)
        if count == 0:
            where = f" in section {section!r}" if section else ""
            self.misses.append(f"text {old!r} not found{where}")
        return count

    def prune_empty_sections(self) -> list[str]:
        """Drop named sections whose body is blank; returns their names."""
        pruned: list[str] = []
        index = 0
        while index < len(self.sections):
            section = self.sections[index]
            if section.name is not None and section.is_empty():
                pruned.append(section.name)
                self._remove_at(index)
                continue
            index += 1
        return pruned
