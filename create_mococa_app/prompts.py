"""Interactive question/answer collaborator used by the option resolver.

The resolver describes what it needs as an ordered list of ``Question``
objects; a prompter resolves every applicable question and returns a single
answers dict.  ``RichPrompter`` asks a human through ``rich.prompt``;
``ScriptedPrompter`` answers from a mapping (falling back to each question's
default) and is used for automation and tests.
"""

from __future__ import annotations

from collections.abc import Callable, Sequence
from dataclasses import dataclass
from typing import Any, Literal, Protocol

from rich.console import Console
from rich.markup import escape
from rich.prompt import Confirm, Prompt

from create_mococa_app.errors import ConfigError, SetupCancelled
from create_mococa_app.utils import console as default_console

QuestionKind = Literal["text", "confirm", "select"]
Answers = dict[str, Any]


@dataclass(frozen=True)
class Choice:
    title: str
    value: str


@dataclass(frozen=True)
class Question:
    """A single typed question.

    ``default`` may be a plain value or a callable receiving the answers
    collected so far.  ``validate`` returns an error message, or ``None`` when
    the value is acceptable.  ``when`` decides from prior answers whether the
    question is asked at all.
    """

    kind: QuestionKind
    name: str
    message: str
    default: Any = None
    choices: tuple[Choice, ...] = ()
    validate: Callable[[str], str | None] | None = None
    when: Callable[[Answers], bool] | None = None

    def applies(self, answers: Answers) -> bool:
        return self.when is None or bool(self.when(answers))

    def default_for(self, answers: Answers) -> Any:
        if callable(self.default):
            return self.default(answers)
        return self.default


class Prompter(Protocol):
    def ask(self, questions: Sequence[Question]) -> Answers: ...


class RichPrompter:
    """Asks questions on the terminal using ``rich.prompt``."""

    def __init__(self, console: Console | None = None) -> None:
        self.console = console or default_console

    def ask(self, questions: Sequence[Question]) -> Answers:
        answers: Answers = {}
        try:
            for question in questions:
                if not question.applies(answers):
                    continue
                answers[question.name] = self._ask_one(question, answers)
        except (KeyboardInterrupt, EOFError) as exc:
            raise SetupCancelled() from exc
        return answers

    def _ask_one(self, question: Question, answers: Answers) -> Any:
        default = question.default_for(answers)

        if question.kind == "confirm":
            return Confirm.ask(
                escape(question.message), default=bool(default), console=self.console
            )

        if question.kind == "select":
            return self._select(question, default)

        while True:
            kwargs: dict[str, Any] = {"console": self.console}
            if default is not None:
                kwargs["default"] = str(default)
            value = (Prompt.ask(escape(question.message), **kwargs) or "").strip()
            error = question.validate(value) if question.validate else None
            if error is None:
                return value
            self.console.print(f"[red]{escape(error)}[/red]")

    def _select(self, question: Question, default: Any) -> str:
        self.console.print(escape(question.message))
        default_index = "1"
        for index, choice in enumerate(question.choices, start=1):
            self.console.print(f"  {index}. {escape(choice.title)}")
            if choice.value == default:
                default_index = str(index)
        picked = Prompt.ask(
            "Choice",
            choices=[str(i) for i in range(1, len(question.choices) + 1)],
            default=default_index,
            console=self.console,
        )
        return question.choices[int(picked) - 1].value


class ScriptedPrompter:
    """Answers questions from a mapping, using each question's default otherwise.

    Answers go through the same validation as interactive input; an invalid
    scripted answer raises ``ConfigError`` instead of re-asking.  The names of
    the questions that were actually asked are recorded in ``asked``.
    """

    def __init__(self, responses: dict[str, Any] | None = None) -> None:
        self.responses: dict[str, Any] = dict(responses or {})
        self.asked: list[str] = []

    def ask(self, questions: Sequence[Question]) -> Answers:
        answers: Answers = {}
        for question in questions:
            if not question.applies(answers):
                continue
            self.asked.append(question.name)
            if question.name in self.responses:
                value = self.responses[question.name]
            else:
                value = question.default_for(answers)

            if question.kind == "text" and question.validate is not None:
                error = question.validate("" if value is None else str(value))
                if error is not None:
                    raise ConfigError(error)
            if question.kind == "select":
                allowed = {choice.value for choice in question.choices}
                if value not in allowed:
                    raise ConfigError(
                        f"{value!r} is not a valid answer for {question.name!r}"
                    )
            answers[question.name] = value
        return answers
