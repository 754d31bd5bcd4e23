"""Option resolution: CLI flags + interactive answers -> ``GenerationConfig``.

Precedence for every feature toggle, highest first:

1. the explicit ``--<feature>`` flag,
2. an ``--except`` entry, which forces the feature off,
3. ``--full`` itself,
4. the ``--skip`` default (disabled),
5. the interactive answer.

Feature questions are asked only when no feature got a value from the
command line at all; as soon as one feature is flagged, every unflagged
feature is disabled.  ``--skip`` and ``--full`` are mutually exclusive, and a
feature may not be both requested explicitly and excluded.  Process state (working directory,
environment) is captured once at the top of ``resolve``.
"""

from __future__ import annotations

import argparse
from collections.abc import Sequence
from dataclasses import dataclass
from pathlib import Path

from pydantic import ValidationError

from create_mococa_app.config import (
    DEFAULT_ENVIRONMENTS,
    DOMAIN_RE,
    ENVIRONMENT_RE,
    PRODUCTION,
    ApiFlavor,
    Feature,
    GenerationConfig,
    ToolSettings,
)
from create_mococa_app.errors import ConfigError, SetupCancelled
from create_mococa_app.prompts import Answers, Choice, Prompter, Question
from create_mococa_app.utils import normalize_project_name


SKIP_DEFAULTS: dict[Feature, bool] = {feature: False for feature in Feature}

FEATURE_HELP: dict[Feature, str] = {
    Feature.API: "Include Elysia API server (Bun-based)",
    Feature.COGNITO: "Include AWS Cognito authentication",
    Feature.LAMBDA: "Include AWS Lambda + API Gateway infrastructure",
    Feature.DYNAMO: "Include DynamoDB infrastructure",
    Feature.S3: "Include S3 storage bucket infrastructure",
    Feature.ENVIRONMENTS: "Configure multiple environments",
}

FEATURE_QUESTIONS: dict[Feature, str] = {
    Feature.API: "Include API server?",
    Feature.COGNITO: "Include AWS Cognito authentication (email/password)?",
    Feature.LAMBDA: "Include AWS Lambda + API Gateway infrastructure?",
    Feature.DYNAMO: "Include DynamoDB infrastructure?",
    Feature.S3: "Include S3 storage bucket infrastructure?",
    Feature.ENVIRONMENTS: "Configure multiple environments?",
}

EPILOG = (
    "Examples:\n"
    "  create-mococa-app                                  # interactive prompts\n"
    "  create-mococa-app my-app                           # quick start with a name\n"
    "  create-mococa-app my-app --current                 # create in the current directory\n"
    "  create-mococa-app my-app --skip                    # minimal project, no prompts\n"
    "  create-mococa-app my-app --skip --cognito --dynamo # minimal plus chosen features\n"
    "  create-mococa-app my-app --full                    # every feature, no prompts\n"
    "  create-mococa-app my-app --full --except=s3 --except=dynamo\n"
    "  create-mococa-app my-app --full -e s3 -e dynamo\n"
    "\n"
    f"Valid features: {', '.join(feature.value for feature in Feature)}\n"
)


# ---------------------------------------------------------------------------
# Flag parsing
# ---------------------------------------------------------------------------


class _ArgumentParser(argparse.ArgumentParser):
    """Argument parser that reports usage errors as ``ConfigError``."""

    def error(self, message: str) -> None:  # type: ignore[override]
        raise ConfigError(message)


@dataclass(frozen=True)
class FlagSet:
    """What the command line said, before any prompting."""

    project_name: str | None = None
    use_current: bool = False
    domain: str | None = None
    skip: bool = False
    full: bool = False
    excluded: frozenset[Feature] = frozenset()
    explicit: frozenset[Feature] = frozenset()

    @property
    def bulk(self) -> bool:
        """True when prompts for domain/directory/features are suppressed."""
        return self.skip or self.full


def build_parser() -> argparse.ArgumentParser:
    parser = _ArgumentParser(
        prog="create-mococa-app",
        description="Create a new Mococa monorepo project from the bundled template.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=EPILOG,
    )
    parser.add_argument(
        "project_name",
        nargs="?",
        default=None,
        metavar="project-name",
        help="Name of your project (e.g. my-app); prompted for when omitted",
    )
    parser.add_argument(
        "--current", "-c",
        action="store_true",
        help="Create the project in the current directory",
    )
    parser.add_argument(
        "--domain",
        default=None,
        help="Custom base domain (default: {project-name}.com)",
    )

    bulk = parser.add_mutually_exclusive_group()
    bulk.add_argument(
        "--skip",
        action="store_true",
        help="Skip all prompts and use default values",
    )
    bulk.add_argument(
        "--full",
        action="store_true",
        help="Skip prompts and include all features",
    )
    parser.add_argument(
        "--except", "-e",
        dest="excluded",
        action="append",
        default=[],
        metavar="FEATURE",
        help="Exclude a feature (repeatable, comma-separated)",
    )

    features = parser.add_argument_group("features")
    for feature in Feature:
        features.add_argument(
            f"--{feature.value}",
            dest=f"feature_{feature.value}",
            action="store_true",
            help=f"{FEATURE_HELP[feature]} (default: {str(SKIP_DEFAULTS[feature]).lower()})",
        )
    return parser


def parse_flags(argv: Sequence[str] | None) -> FlagSet:
    """Parse *argv* into a ``FlagSet``.

    Raises:
        ConfigError: On unknown arguments, conflicting bulk flags, unknown
            ``--except`` names, or a feature that is both requested and
            excluded.
    """
    args = build_parser().parse_args(list(argv) if argv is not None else None)

    excluded: set[Feature] = set()
    for raw in args.excluded:
        for token in raw.split(","):
            token = token.strip().lower()
            if not token:
                continue
            try:
                excluded.add(Feature(token))
            except ValueError:
                valid = ", ".join(feature.value for feature in Feature)
                raise ConfigError(
                    f"Unknown feature {token!r} in --except (valid: {valid})"
                ) from None

    explicit = {feature for feature in Feature if getattr(args, f"feature_{feature.value}")}

    conflicting = explicit & excluded
    if conflicting:
        names = ", ".join(sorted(feature.value for feature in conflicting))
        raise ConfigError(f"Feature(s) both requested and excluded: {names}")

    return FlagSet(
        project_name=args.project_name,
        use_current=args.current,
        domain=args.domain.strip().lower() if args.domain is not None else None,
        skip=args.skip,
        full=args.full,
        excluded=frozenset(excluded),
        explicit=frozenset(explicit),
    )


def feature_signal(feature: Feature, flags: FlagSet) -> bool | None:
    """Return the flag-derived value for *feature*, or ``None`` to prompt."""
    if feature in flags.explicit:
        return True
    if feature in flags.excluded:
        return False
    if flags.full:
        return True
    if flags.skip:
        return SKIP_DEFAULTS[feature]
    return None


# ---------------------------------------------------------------------------
# Validation helpers
# ---------------------------------------------------------------------------


def default_domain(project_name: str) -> str:
    return f"{normalize_project_name(project_name)}.com"


def parse_environments(text: str) -> tuple[str, ...]:
    """Split a comma-separated environment list, trimming each entry.

    Raises:
        ConfigError: Naming the first invalid token; nothing is partially
            accepted.
    """
    tokens = [token.strip() for token in text.split(",")]
    if not any(tokens):
        raise ConfigError("At least one environment is required")
    for token in tokens:
        if not ENVIRONMENT_RE.match(token):
            raise ConfigError(
                f"Invalid environment name {token!r}: environment names can only "
                "contain lowercase letters, numbers, and hyphens"
            )
    seen: set[str] = set()
    for token in tokens:
        if token in seen:
            raise ConfigError(f"Duplicate environment name {token!r}")
        seen.add(token)
    return tuple(tokens)


def _check_domain(value: str) -> None:
    if not DOMAIN_RE.match(value):
        raise ConfigError(f"Invalid domain {value!r} (e.g. example.com)")


def _error_message(check, value: str) -> str | None:
    try:
        check(value)
    except ConfigError as exc:
        return str(exc)
    return None


def _validate_project_name(value: str) -> str | None:
    if not normalize_project_name(value):
        return "Project name is required"
    return None


def _validate_domain(value: str) -> str | None:
    return _error_message(_check_domain, value.strip().lower())


def _validate_environments(value: str) -> str | None:
    return _error_message(parse_environments, value)


# ---------------------------------------------------------------------------
# Questions
# ---------------------------------------------------------------------------


def should_prompt_features(flags: FlagSet, signals: dict[Feature, bool | None]) -> bool:
    """Feature questions are asked only when no feature was set by a flag."""
    return not flags.bulk and all(signal is None for signal in signals.values())


def build_questions(
    flags: FlagSet, signals: dict[Feature, bool | None]
) -> list[Question]:
    """Build the ordered questions needed to fill the gaps left by *flags*."""
    questions: list[Question] = []
    prompt_features = should_prompt_features(flags, signals)

    if flags.project_name is None:
        questions.append(Question(
            kind="text",
            name="project_name",
            message="What is your project name?",
            default="my-app",
            validate=_validate_project_name,
        ))

    if flags.domain is None and not flags.bulk:
        questions.append(Question(
            kind="text",
            name="domain",
            message="What is your domain?",
            default=lambda answers: default_domain(
                flags.project_name or answers.get("project_name") or ""
            ),
            validate=_validate_domain,
        ))

    if not flags.use_current and not flags.bulk:
        questions.append(Question(
            kind="select",
            name="directory",
            message="Where should we create your project?",
            default="new",
            choices=(Choice("Current directory", "current"), Choice("New folder", "new")),
        ))

    if prompt_features:
        for feature in Feature:
            questions.append(Question(
                kind="confirm",
                name=feature.value,
                message=FEATURE_QUESTIONS[feature],
                default=False,
            ))
            if feature is Feature.API:
                questions.append(Question(
                    kind="select",
                    name="api_flavor",
                    message="Which API framework would you like to use?",
                    default=ApiFlavor.ELYSIA.value,
                    choices=tuple(Choice(flavor.label, flavor.value) for flavor in ApiFlavor),
                    when=lambda answers: bool(answers.get(Feature.API.value)),
                ))

    environments_flag = Feature.ENVIRONMENTS in flags.explicit
    if not flags.bulk and (environments_flag or prompt_features):
        questions.append(Question(
            kind="text",
            name="environment_names",
            message="Enter environments (comma-separated, e.g. development,staging,production):",
            default=",".join(DEFAULT_ENVIRONMENTS),
            validate=_validate_environments,
            when=lambda answers: environments_flag
            or bool(answers.get(Feature.ENVIRONMENTS.value)),
        ))

    return questions


# ---------------------------------------------------------------------------
# Resolution
# ---------------------------------------------------------------------------


def resolve(
    argv: Sequence[str] | None,
    prompter: Prompter,
    *,
    cwd: str | Path | None = None,
    settings: ToolSettings | None = None,
) -> GenerationConfig:
    """Merge flags and answers into an immutable ``GenerationConfig``.

    Raises:
        ConfigError: If the project name is missing, or any input is invalid.
        SetupCancelled: If the user declines to overwrite an existing,
            non-empty target directory.
    """
    working_dir = Path(cwd if cwd is not None else Path.cwd()).resolve()
    settings = settings or ToolSettings.from_env()

    flags = parse_flags(argv)
    if flags.domain is not None:
        _check_domain(flags.domain)

    signals = {feature: feature_signal(feature, flags) for feature in Feature}
    answers = prompter.ask(build_questions(flags, signals))

    project_name = normalize_project_name(
        flags.project_name or answers.get("project_name") or ""
    )
    if not project_name:
        raise ConfigError("Project name is required")

    features = frozenset(
        feature
        for feature, signal in signals.items()
        if (signal if signal is not None else bool(answers.get(feature.value)))
    )

    domain = flags.domain or str(answers.get("domain") or "").strip().lower()
    domain = domain or default_domain(project_name)
    _check_domain(domain)

    environments = _resolve_environments(features, answers.get("environment_names"))
    use_current = flags.use_current or answers.get("directory") == "current"
    target = working_dir if use_current else working_dir / project_name
    clean_target = _confirm_target(target, use_current, prompter)

    try:
        return GenerationConfig(
            project_name=project_name,
            domain=domain,
            target_directory=target,
            features=features,
            api_flavor=ApiFlavor(answers.get("api_flavor") or ApiFlavor.ELYSIA.value),
            environments=environments,
            use_current_directory=use_current,
            clean_target=clean_target,
            settings=settings,
        )
    except ValidationError as exc:
        raise ConfigError(exc.errors()[0]["msg"]) from exc


def _resolve_environments(
    features: frozenset[Feature], raw: str | None
) -> tuple[str, ...]:
    if Feature.ENVIRONMENTS not in features or raw is None:
        return (PRODUCTION,)
    return parse_environments(str(raw))


def _confirm_target(target: Path, use_current: bool, prompter: Prompter) -> bool:
    """Ask before touching a non-empty target; return whether to clear it."""
    if not target.exists():
        return False
    if not target.is_dir():
        raise ConfigError(f"{target} exists and is not a directory")
    if not any(target.iterdir()):
        return False

    if use_current:
        answers: Answers = prompter.ask([Question(
            kind="confirm",
            name="proceed",
            message="Current directory is not empty. Files may be overwritten. Continue?",
            default=False,
        )])
        if not answers.get("proceed"):
            raise SetupCancelled()
        return False

    answers = prompter.ask([Question(
        kind="confirm",
        name="overwrite",
        message=f"Directory {target.name} already exists. Overwrite?",
        default=False,
    )])
    if not answers.get("overwrite"):
        raise SetupCancelled()
    return True
