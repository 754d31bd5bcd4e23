"""Per-file content rewriting for the project template.

Every text file goes through the same fixed pipeline:

1. placeholder substitution (``{{PROJECT_NAME}}`` -> the project name),
2. the structural rule registered for the file's relative path, if any.

Rules are pure functions of ``(content, config)``.  Structural rules work on
a ``SectionDocument`` and report anchors they could not find as *misses*
instead of raising; the caller decides how loudly to surface them.
"""

from __future__ import annotations

import json
from collections.abc import Callable
from pathlib import PurePosixPath
from typing import NamedTuple

from create_mococa_app.config import Feature, GenerationConfig
from .derived import generate_constants, generate_readme
from .documents import SectionDocument

PLACEHOLDER = "{{PROJECT_NAME}}"


class TransformResult(NamedTuple):
    content: str
    misses: tuple[str, ...] = ()


Rule = Callable[[str, GenerationConfig], TransformResult]


def substitute_placeholders(content: str, config: GenerationConfig) -> str:
    return content.replace(PLACEHOLDER, config.project_name)


def _finish(doc: SectionDocument) -> TransformResult:
    return TransformResult(doc.render(), tuple(doc.misses))


# ---------------------------------------------------------------------------
# Regenerated files
# ---------------------------------------------------------------------------


def _regenerate_constants(content: str, config: GenerationConfig) -> TransformResult:
    return TransformResult(generate_constants(config))


def _regenerate_readme(content: str, config: GenerationConfig) -> TransformResult:
    return TransformResult(generate_readme(config))


# ---------------------------------------------------------------------------
# infrastructure/src/index.ts
# ---------------------------------------------------------------------------

BACKEND_EXPORTS: dict[Feature, tuple[str, ...]] = {
    Feature.LAMBDA: ("export const apigwUrl = backend.apigateway.api.apiEndpoint;",),
    Feature.DYNAMO: ("export const dynamoTableName = backend.dynamo.table.name;",),
    Feature.S3: ("export const s3StorageBucketName = backend.storage.bucket.bucket;",),
    Feature.COGNITO: (
        "export const cognitoUserPoolId = backend.cognito.userpool.id;",
        "export const cognitoUserPoolClientId = backend.cognito.userpoolClient.id;",
    ),
}

# Backend instantiation without the API gateway certificate and domain.
STANDALONE_BACKEND = (
    "const backend = new BackendComponent(`backend-${environment}`, {",
    "  environment,",
    "});",
)


def _rewrite_infrastructure_entry(content: str, config: GenerationConfig) -> TransformResult:
    doc = SectionDocument.parse(content)

    if not config.has_backend:
        doc.drop_section("Components")
        doc.drop_section("Backend")
        for lines in BACKEND_EXPORTS.values():
            doc.drop_lines(*lines, section="Exports")
        return _finish(doc)

    for feature, lines in BACKEND_EXPORTS.items():
        if not config.has(feature):
            doc.drop_lines(*lines, section="Exports")
    if not config.has(Feature.LAMBDA):
        doc.replace_body("Backend", STANDALONE_BACKEND)
    return _finish(doc)


# ---------------------------------------------------------------------------
# infrastructure/src/components/backend.ts
# ---------------------------------------------------------------------------


class ComponentResource(NamedTuple):
    """Everything ``backend.ts`` declares for one optional AWS resource."""

    feature: Feature
    import_line: str
    field_line: str
    name_lines: tuple[str, ...]
    constants: tuple[str, ...]
    section: str


COMPONENT_RESOURCES: tuple[ComponentResource, ...] = (
    ComponentResource(
        feature=Feature.DYNAMO,
        import_line="import { DynamoResource } from '../resources/dynamo';",
        field_line="public readonly dynamo: DynamoResource;",
        name_lines=("const tableName = DYNAMODB_TABLES[environment as Environment];",),
        constants=("DYNAMODB_TABLES,",),
        section="DynamoDB",
    ),
    ComponentResource(
        feature=Feature.S3,
        import_line="import { S3StorageResource } from '../resources/s3-storage';",
        field_line="public readonly storage: S3StorageResource;",
        name_lines=("const bucketName = S3_STORAGE_BUCKETS[environment as Environment];",),
        constants=("S3_STORAGE_BUCKETS,",),
        section="S3 Storage",
    ),
    ComponentResource(
        feature=Feature.COGNITO,
        import_line="import { CognitoResource } from '../resources/cognito';",
        field_line="public readonly cognito: CognitoResource;",
        name_lines=(
            "const userpoolName = COGNITO_USER_POOLS[environment as Environment];",
            "const userpoolClientName = COGNITO_USER_POOL_CLIENTS[environment as Environment];",
        ),
        constants=("COGNITO_USER_POOLS,", "COGNITO_USER_POOL_CLIENTS,"),
        section="Cognito",
    ),
)

API_GATEWAY_IMPORTS = (
    "import { ApigatewayResource } from '../resources/apigateway';",
    "import { DNSResource } from '../resources/dns';",
)
CERTIFICATE_PROP = (
    "/**",
    "* ACM certificate ARN for API Gateway custom domain",
    "*/",
    "certificateArn: string;",
)
APIGW_DOMAIN_PROP = (
    "/**",
    "* Custom domain for API Gateway",
    "*/",
    "apigwDomain: string;",
)


def _rewrite_backend_component(content: str, config: GenerationConfig) -> TransformResult:
    doc = SectionDocument.parse(content)
    has_resource = any(config.has(resource.feature) for resource in COMPONENT_RESOURCES)

    if not config.has_backend:
        doc.drop_section("Constants")

    for resource in COMPONENT_RESOURCES:
        if config.has(resource.feature):
            continue
        doc.drop_lines(resource.import_line, section="Resources")
        doc.drop_lines(resource.field_line, section="Interfaces")
        doc.drop_lines(*resource.name_lines, section="Resource Names")
        if config.has_backend:
            doc.drop_lines(*resource.constants, section="Constants")
        doc.drop_section(resource.section)

    if config.has(Feature.LAMBDA):
        if not config.has(Feature.DYNAMO):
            doc.drop_lines("dynamodb: this.dynamo,", section="API Gateway + Lambdas")
        if not has_resource:
            doc.drop_lines("type Environment", section="Constants")
    else:
        doc.drop_lines(*API_GATEWAY_IMPORTS, section="Resources")
        if config.has_backend:
            doc.drop_lines("DOMAIN_BASE,", section="Constants")
        doc.drop_lines("public readonly apigateway: ApigatewayResource;", section="Interfaces")
        doc.drop_block(CERTIFICATE_PROP, section="Interfaces")
        doc.drop_block(APIGW_DOMAIN_PROP, section="Interfaces")
        doc.replace_text(", certificateArn, apigwDomain", "", section="Interfaces")
        doc.drop_section("API Gateway + Lambdas")
        doc.drop_section("API Gateway DNS")

    doc.prune_empty_sections()
    return _finish(doc)


# ---------------------------------------------------------------------------
# infrastructure/src/resources/apigateway.ts
# ---------------------------------------------------------------------------


def _rewrite_api_gateway(content: str, config: GenerationConfig) -> TransformResult:
    if not config.has(Feature.LAMBDA) or config.has(Feature.DYNAMO):
        return TransformResult(content)
    doc = SectionDocument.parse(content)
    doc.drop_lines("import type { DynamoResource } from './dynamo';", section="Resources")
    doc.drop_lines("dynamodb?: DynamoResource;", section="Types")
    return _finish(doc)


# ---------------------------------------------------------------------------
# package.json (workspace root)
# ---------------------------------------------------------------------------


def _rewrite_root_manifest(content: str, config: GenerationConfig) -> TransformResult:
    try:
        manifest = json.loads(content)
    except json.JSONDecodeError as exc:
        return TransformResult(content, (f"not valid JSON ({exc.msg})",))

    misses: list[str] = []
    if not config.has(Feature.LAMBDA):
        scripts = manifest.get("scripts") if isinstance(manifest, dict) else None
        if isinstance(scripts, dict):
            scripts.pop("build:lambdas", None)
            if "build" in scripts:
                scripts["build"] = "bun run build:website"
        else:
            misses.append("no scripts table")

    return TransformResult(json.dumps(manifest, indent=2, ensure_ascii=False) + "\n", tuple(misses))


RULES: dict[str, Rule] = {
    "packages/constants/src/index.ts": _regenerate_constants,
    "README.md": _regenerate_readme,
    "infrastructure/src/index.ts": _rewrite_infrastructure_entry,
    "infrastructure/src/components/backend.ts": _rewrite_backend_component,
    "infrastructure/src/resources/apigateway.ts": _rewrite_api_gateway,
    "package.json": _rewrite_root_manifest,
}


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def transform_with_report(
    relative_path: str, content: str, config: GenerationConfig
) -> TransformResult:
    """Run the full pipeline for one file, returning content and misses.

    Misses are prefixed with the relative path of the file they belong to.
    """
    key = PurePosixPath(str(relative_path).replace("\\", "/")).as_posix()
    substituted = substitute_placeholders(content, config)
    rule = RULES.get(key)
    if rule is None:
        return TransformResult(substituted)
    result = rule(substituted, config)
    return TransformResult(result.content, tuple(f"{key}: {miss}" for miss in result.misses))


def transform(relative_path: str, content: str, config: GenerationConfig) -> str:
    return transform_with_report(relative_path, content, config).content
