"""Files generated purely from the configuration.

The constants module, the per-environment Pulumi stack configs and the
project README are rendered from the tool's own Jinja2 templates.  None of
these generators read anything from the project template tree, so their
output depends only on ``GenerationConfig``.
"""

from __future__ import annotations

from collections.abc import Callable
from functools import lru_cache, partial
from typing import NamedTuple

from create_mococa_app.config import PRODUCTION, Feature, GenerationConfig
from .templates import TemplateRenderer


class ResourceTable(NamedTuple):
    constant: str
    kind: str
    comment: str


class BackendResource(NamedTuple):
    title: str
    description: str


class DerivedFile(NamedTuple):
    path: str
    generate: Callable[[GenerationConfig], str]


_RESOURCE_KINDS: tuple[tuple[Feature, str, str, str], ...] = (
    (Feature.DYNAMO, "DYNAMODB_TABLES", "Table", "DynamoDB table names per environment"),
    (Feature.S3, "S3_STORAGE_BUCKETS", "storage", "S3 bucket names per environment"),
    (Feature.COGNITO, "COGNITO_USER_POOLS", "userpool", "Cognito User Pool names per environment"),
    (
        Feature.COGNITO,
        "COGNITO_USER_POOL_CLIENTS",
        "userpool-client",
        "Cognito User Pool Client names per environment",
    ),
)

_README_RESOURCES: tuple[tuple[Feature, BackendResource], ...] = (
    (Feature.COGNITO, BackendResource("Cognito", "User authentication with email/password + OAuth")),
    (Feature.DYNAMO, BackendResource("DynamoDB", "NoSQL database with single-table design")),
    (Feature.S3, BackendResource("S3 Storage", "Private bucket for file uploads")),
    (Feature.LAMBDA, BackendResource("API Gateway + Lambdas", "Serverless API endpoints")),
)


@lru_cache(maxsize=1)
def _renderer() -> TemplateRenderer:
    return TemplateRenderer()


# ---------------------------------------------------------------------------
# Data helpers
# ---------------------------------------------------------------------------


def _subdomain(prefix: str | None, environment: str) -> str:
    """Subdomain label for an app in an environment; ``""`` is the bare domain."""
    if prefix is None:
        return "" if environment == PRODUCTION else environment
    return prefix if environment == PRODUCTION else f"{prefix}-{environment}"


def domain_table(config: GenerationConfig) -> dict[str, dict[str, str]]:
    """Map app -> environment -> subdomain label under ``config.domain``.

    ``landing-page`` is always present; ``api`` only with the API server and
    ``apigw`` only with Lambda + API Gateway.
    """
    apps: list[tuple[str, str | None]] = [("landing-page", None)]
    if config.has(Feature.API):
        apps.append(("api", "api"))
    if config.has(Feature.LAMBDA):
        apps.append(("apigw", "apigw"))
    return {
        app: {env: _subdomain(prefix, env) for env in config.environments}
        for app, prefix in apps
    }


def resource_tables(config: GenerationConfig) -> list[ResourceTable]:
    """Resource name tables for every enabled resource kind.

    The names themselves are built in the generated TypeScript from
    ``PROJECT_NAME``, the kind and the environment.
    """
    return [
        ResourceTable(constant, kind, comment)
        for feature, constant, kind, comment in _RESOURCE_KINDS
        if config.has(feature)
    ]


def backend_resources(config: GenerationConfig) -> list[BackendResource]:
    return [resource for feature, resource in _README_RESOURCES if config.has(feature)]


def _domain_expression(label: str) -> str:
    if not label:
        return "DOMAIN_BASE"
    return f"`{label}.${{DOMAIN_BASE}}`"


# ---------------------------------------------------------------------------
# Generators
# ---------------------------------------------------------------------------


def generate_constants(config: GenerationConfig) -> str:
    """Render ``packages/constants/src/index.ts``."""
    domains = {
        app: {env: _domain_expression(label) for env, label in hosts.items()}
        for app, hosts in domain_table(config).items()
    }
    return _renderer().render("constants.ts.j2", {
        "project_name": config.project_name,
        "domain": config.domain,
        "environments": list(config.environments),
        "domains": domains,
        "resources": resource_tables(config),
    })


def generate_environment_config(config: GenerationConfig, environment: str) -> str:
    """Render ``infrastructure/Pulumi.<environment>.yaml``."""
    return _renderer().render("pulumi-env.yaml.j2", {
        "project_name": config.project_name,
        "environment": environment,
        "region": config.settings.aws_region,
    })


def generate_readme(config: GenerationConfig) -> str:
    return _renderer().render("README.md.j2", {
        "project_name": config.project_name,
        "has_api": config.has(Feature.API),
        "has_lambda": config.has(Feature.LAMBDA),
        "has_backend": config.has_backend,
        "backend_resources": backend_resources(config),
        "environments": list(config.environments),
    })


def environment_files(config: GenerationConfig) -> list[DerivedFile]:
    """One Pulumi stack config per configured environment, in order."""
    return [
        DerivedFile(
            f"infrastructure/Pulumi.{env}.yaml",
            partial(generate_environment_config, environment=env),
        )
        for env in config.environments
    ]
