"""Tests for the content transformer.

Structural rules are exercised against the real packaged template sources so
that a drift between the template and the rules shows up here as a miss.
"""

from __future__ import annotations

import json

import pytest

from create_mococa_app.config import DEFAULT_TEMPLATE_DIR, Feature
from create_mococa_app.scaffolder.transformer import (
    PLACEHOLDER,
    transform,
    transform_with_report,
)

pytestmark = pytest.mark.unit

INDEX_TS = "infrastructure/src/index.ts"
BACKEND_TS = "infrastructure/src/components/backend.ts"
APIGATEWAY_TS = "infrastructure/src/resources/apigateway.ts"


def _template(relative: str) -> str:
    return (DEFAULT_TEMPLATE_DIR / relative).read_text(encoding="utf-8")


def _run(relative: str, config) -> str:
    result = transform_with_report(relative, _template(relative), config)
    assert result.misses == (), result.misses
    return result.content


# ---------------------------------------------------------------------------
# Placeholder substitution
# ---------------------------------------------------------------------------


class TestPlaceholders:
    def test_every_placeholder_replaced(self, minimal_config):
        content = f"name: {PLACEHOLDER}\nscope: @{PLACEHOLDER}/ui\n"
        assert transform("apps/x.txt", content, minimal_config) == "name: my-app\nscope: @my-app/ui\n"

    def test_unrelated_braces_untouched(self, minimal_config):
        content = "const x = `${value}`; {{OTHER}}"
        assert transform("apps/x.ts", content, minimal_config) == content

    def test_placeholder_before_rule(self, make_config):
        content = _template("package.json")
        assert PLACEHOLDER in content
        result = transform("package.json", content, make_config(Feature.LAMBDA))
        assert "@my-app/lambdas" in result
        assert PLACEHOLDER not in result


# ---------------------------------------------------------------------------
# Regenerated files
# ---------------------------------------------------------------------------


class TestRegenerated:
    def test_constants_regenerated(self, make_config):
        config = make_config(domain="example.org")
        content = transform("packages/constants/src/index.ts", "stale", config)
        assert "export const DOMAIN_BASE = 'example.org';" in content
        assert "stale" not in content

    def test_root_readme_regenerated(self, minimal_config):
        assert transform("README.md", "stale", minimal_config).startswith("# my-app\n")

    def test_nested_readme_only_substituted(self, minimal_config):
        assert transform("apps/README.md", f"# {PLACEHOLDER}", minimal_config) == "# my-app"


# ---------------------------------------------------------------------------
# infrastructure/src/index.ts
# ---------------------------------------------------------------------------


class TestInfrastructureEntry:
    def test_full_keeps_everything(self, full_config):
        content = _run(INDEX_TS, full_config)
        assert "import { BackendComponent }" in content
        assert "certificateArn: certificate.acm.arn," in content
        assert "export const cognitoUserPoolClientId" in content

    def test_no_backend(self, minimal_config):
        content = _run(INDEX_TS, minimal_config)
        assert "BackendComponent" not in content
        assert "backend." not in content
        assert "/* ---------- Components" not in content
        assert "/* ---------- Backend" not in content
        assert "export const websiteUrl" in content
        assert "/* ---------- Exports ---------- */" in content

    def test_lambda_only(self, make_config):
        content = _run(INDEX_TS, make_config(Feature.LAMBDA))
        assert "export const apigwUrl" in content
        assert "dynamoTableName" not in content
        assert "s3StorageBucketName" not in content
        assert "cognitoUserPool" not in content

    def test_backend_without_lambda(self, make_config):
        content = _run(INDEX_TS, make_config(Feature.DYNAMO))
        assert (
            "const backend = new BackendComponent(`backend-${environment}`, {\n"
            "  environment,\n"
            "});\n"
        ) in content
        assert "certificateArn" not in content
        assert "apigwDomain" not in content
        assert "apigwUrl" not in content
        assert "export const dynamoTableName" in content


# ---------------------------------------------------------------------------
# infrastructure/src/components/backend.ts
# ---------------------------------------------------------------------------


class TestBackendComponent:
    def test_full_is_unchanged(self, full_config):
        source = _template(BACKEND_TS).replace(PLACEHOLDER, "my-app")
        assert _run(BACKEND_TS, full_config) == source

    def test_lambda_only(self, make_config):
        content = _run(BACKEND_TS, make_config(Feature.LAMBDA))
        assert "ApigatewayResource" in content
        assert "DNSResource" in content
        assert "DynamoResource" not in content
        assert "S3StorageResource" not in content
        assert "CognitoResource" not in content
        assert "dynamodb: this.dynamo," not in content
        assert "Resource Names" not in content
        assert "type Environment" not in content
        assert "  DOMAIN_BASE,\n} from '@my-app/constants';" in content

    def test_dynamo_without_lambda(self, make_config):
        content = _run(BACKEND_TS, make_config(Feature.DYNAMO))
        assert "import { DynamoResource } from '../resources/dynamo';" in content
        assert "this.dynamo = new DynamoResource" in content
        assert "const tableName = DYNAMODB_TABLES" in content
        assert "Apigateway" not in content
        assert "DNSResource" not in content
        assert "DOMAIN_BASE" not in content
        assert "certificateArn" not in content
        assert "apigwDomain" not in content
        assert "const { environment } = props;" in content
        assert "interface Props {\n" in content
        assert content.endswith("{ parent: this });\n  }\n}\n")

    def test_interface_keeps_environment_prop(self, make_config):
        content = _run(BACKEND_TS, make_config(Feature.S3))
        assert "  environment: string;\n}\n" in content

    def test_lambda_and_dynamo_keeps_cross_reference(self, make_config):
        content = _run(BACKEND_TS, make_config(Feature.LAMBDA, Feature.DYNAMO))
        assert "dynamodb: this.dynamo," in content

    def test_no_backend(self, minimal_config):
        content = _run(BACKEND_TS, minimal_config)
        assert "@my-app/constants" not in content
        assert "/* ---------- Resources" not in content
        assert "public readonly" not in content
        assert content.endswith("super(`${name}:backend:${props.environment}`, name, {}, opts);\n\n"
                                "    const { environment } = props;\n  }\n}\n")

    def test_cognito_and_s3(self, make_config):
        content = _run(BACKEND_TS, make_config(Feature.COGNITO, Feature.S3))
        assert "COGNITO_USER_POOLS," in content
        assert "COGNITO_USER_POOL_CLIENTS," in content
        assert "S3_STORAGE_BUCKETS," in content
        assert "DYNAMODB_TABLES" not in content
        assert "/* ---------- DynamoDB" not in content


# ---------------------------------------------------------------------------
# infrastructure/src/resources/apigateway.ts
# ---------------------------------------------------------------------------


class TestApiGateway:
    def test_without_dynamo(self, make_config):
        content = _run(APIGATEWAY_TS, make_config(Feature.LAMBDA))
        assert "DynamoResource" not in content
        assert "dynamodb?:" not in content
        assert "domain: string;\n}" in content

    def test_with_dynamo_unchanged(self, make_config):
        source = _template(APIGATEWAY_TS)
        assert _run(APIGATEWAY_TS, make_config(Feature.LAMBDA, Feature.DYNAMO)) == source


# ---------------------------------------------------------------------------
# package.json
# ---------------------------------------------------------------------------


class TestRootManifest:
    def test_without_lambda(self, minimal_config):
        content = _run("package.json", minimal_config)
        manifest = json.loads(content)
        assert "build:lambdas" not in manifest["scripts"]
        assert manifest["scripts"]["build"] == "bun run build:website"
        assert manifest["name"] == "my-app"

    def test_with_lambda(self, make_config):
        manifest = json.loads(_run("package.json", make_config(Feature.LAMBDA)))
        assert manifest["scripts"]["build"] == "bun run build:website && bun run build:lambdas"
        assert "build:lambdas" in manifest["scripts"]

    def test_serialization_format(self, minimal_config):
        content = _run("package.json", minimal_config)
        assert content.endswith("}\n")
        assert '\n  "name": "my-app",\n' in content

    def test_invalid_json_is_soft(self, minimal_config):
        result = transform_with_report("package.json", "{ not json", minimal_config)
        assert result.content == "{ not json"
        assert len(result.misses) == 1
        assert result.misses[0].startswith("package.json: not valid JSON")


class TestMisses:
    def test_missing_section_is_reported_not_raised(self, minimal_config):
        result = transform_with_report(INDEX_TS, "const x = 1;\n", minimal_config)
        assert result.content == "const x = 1;\n"
        assert result.misses
        assert all(miss.startswith(f"{INDEX_TS}: ") for miss in result.misses)
