"""Typed configuration for a single project generation run.

``GenerationConfig`` is built once by the option resolver and then passed,
read-only, through the walker, filter, transformer and derived generators.
``ToolSettings`` carries tool-level knobs that normally come from the process
environment; they are captured once at start-up rather than re-read mid-run.
"""

from __future__ import annotations

import os
import re
from enum import Enum
from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field, field_validator


PROJECT_NAME_RE = re.compile(r"^[a-z0-9]+(?:-[a-z0-9]+)*$")
DOMAIN_RE = re.compile(r"^[a-z0-9.-]+\.[a-z]{2,}$")
ENVIRONMENT_RE = re.compile(r"^[a-z0-9-]+$")

DEFAULT_TEMPLATE_DIR = Path(__file__).parent / "project_template"
DEFAULT_API_REPOSITORY = "https://github.com/mococa/bun-mococa.git"
DEFAULT_AWS_REGION = "us-east-1"

PRODUCTION = "production"
DEFAULT_ENVIRONMENTS: tuple[str, ...] = ("development", "staging", PRODUCTION)


class Feature(str, Enum):
    """Optional capabilities that gate template subtrees and derived content."""

    API = "api"
    COGNITO = "cognito"
    LAMBDA = "lambda"
    DYNAMO = "dynamo"
    S3 = "s3"
    ENVIRONMENTS = "environments"

    @property
    def label(self) -> str:
        return _FEATURE_LABELS[self]


_FEATURE_LABELS: dict[Feature, str] = {
    Feature.API: "API Server",
    Feature.COGNITO: "Cognito",
    Feature.LAMBDA: "Lambda",
    Feature.DYNAMO: "DynamoDB",
    Feature.S3: "S3 Storage",
    Feature.ENVIRONMENTS: "Environments",
}

BACKEND_FEATURES: frozenset[Feature] = frozenset(
    {Feature.LAMBDA, Feature.DYNAMO, Feature.S3, Feature.COGNITO}
)


class ApiFlavor(str, Enum):
    """Framework used for the optional API server."""

    ELYSIA = "elysia"

    @property
    def label(self) -> str:
        return "Elysia (Bun)"


class ToolSettings(BaseModel):
    """Tool-level settings, independent of the project being generated."""

    model_config = ConfigDict(frozen=True)

    api_repository: str = Field(default=DEFAULT_API_REPOSITORY)
    aws_region: str = Field(default=DEFAULT_AWS_REGION)
    template_dir: Path = Field(default=DEFAULT_TEMPLATE_DIR)

    @classmethod
    def from_env(cls) -> "ToolSettings":
        """Build settings from environment variables.

        Recognised variables (all optional):
            CREATE_MOCOCA_API_REPOSITORY, CREATE_MOCOCA_AWS_REGION,
            CREATE_MOCOCA_TEMPLATE_DIR.
        """
        kwargs: dict[str, object] = {}
        if os.environ.get("CREATE_MOCOCA_API_REPOSITORY"):
            kwargs["api_repository"] = os.environ["CREATE_MOCOCA_API_REPOSITORY"]
        if os.environ.get("CREATE_MOCOCA_AWS_REGION"):
            kwargs["aws_region"] = os.environ["CREATE_MOCOCA_AWS_REGION"]
        if os.environ.get("CREATE_MOCOCA_TEMPLATE_DIR"):
            kwargs["template_dir"] = Path(os.environ["CREATE_MOCOCA_TEMPLATE_DIR"])
        return cls(**kwargs)


class GenerationConfig(BaseModel):
    """Fully resolved, immutable description of the project to generate."""

    model_config = ConfigDict(frozen=True)

    project_name: str
    domain: str
    target_directory: Path
    features: frozenset[Feature] = Field(default_factory=frozenset)
    api_flavor: ApiFlavor = Field(default=ApiFlavor.ELYSIA)
    environments: tuple[str, ...] = Field(default=(PRODUCTION,))
    use_current_directory: bool = Field(default=False)
    clean_target: bool = Field(
        default=False,
        description="Remove the existing contents of target_directory before writing",
    )
    settings: ToolSettings = Field(default_factory=ToolSettings)

    @field_validator("project_name")
    @classmethod
    def _check_project_name(cls, value: str) -> str:
        if not PROJECT_NAME_RE.match(value):
            raise ValueError(
                "project name must be lowercase letters, numbers and single hyphens"
            )
        return value

    @field_validator("domain")
    @classmethod
    def _check_domain(cls, value: str) -> str:
        if not DOMAIN_RE.match(value):
            raise ValueError(f"invalid domain {value!r} (e.g. example.com)")
        return value

    @field_validator("environments")
    @classmethod
    def _check_environments(cls, value: tuple[str, ...]) -> tuple[str, ...]:
        if not value:
            raise ValueError("at least one environment is required")
        for env in value:
            if not ENVIRONMENT_RE.match(env):
                raise ValueError(f"invalid environment name {env!r}")
        if len(set(value)) != len(value):
            raise ValueError("environment names must be unique")
        return value

    # ------------------------------------------------------------------
    # Derived helpers
    # ------------------------------------------------------------------

    def has(self, feature: Feature) -> bool:
        return feature in self.features

    @property
    def has_backend(self) -> bool:
        """True when any AWS backend resource (lambda/dynamo/s3/cognito) is on."""
        return bool(self.features & BACKEND_FEATURES)

    @property
    def display_directory(self) -> str:
        """Directory as the user should ``cd`` into it."""
        return "." if self.use_current_directory else self.project_name

    def feature_labels(self) -> list[str]:
        """Human-readable names of the enabled features, in summary order."""
        order = (Feature.API, Feature.LAMBDA, Feature.DYNAMO, Feature.S3, Feature.COGNITO)
        labels = []
        for feature in order:
            if feature not in self.features:
                continue
            if feature is Feature.API and self.api_flavor is ApiFlavor.ELYSIA:
                labels.append("Elysia Server")
            else:
                labels.append(feature.label)
        return labels
