"""Tests for the derived file generators (constants, Pulumi stacks, README)."""

from __future__ import annotations

import pytest
import yaml

from create_mococa_app.config import DEFAULT_ENVIRONMENTS, Feature, ToolSettings
from create_mococa_app.scaffolder.derived import (
    backend_resources,
    domain_table,
    environment_files,
    generate_constants,
    generate_environment_config,
    generate_readme,
    resource_tables,
)

pytestmark = pytest.mark.unit


# ---------------------------------------------------------------------------
# Domain and resource tables
# ---------------------------------------------------------------------------


class TestDomainTable:
    def test_landing_page_only_by_default(self, minimal_config):
        assert domain_table(minimal_config) == {"landing-page": {"production": ""}}

    def test_environment_labels(self, make_config):
        config = make_config(Feature.API, Feature.LAMBDA, environments=DEFAULT_ENVIRONMENTS)
        table = domain_table(config)
        assert table["landing-page"] == {"development": "development", "staging": "staging", "production": ""}
        assert table["api"] == {"development": "api-development", "staging": "api-staging", "production": "api"}
        assert table["apigw"]["production"] == "apigw"
        assert table["apigw"]["development"] == "apigw-development"

    def test_keys_follow_environment_order(self, make_config):
        config = make_config(environments=("qa", "production", "dev"))
        assert list(domain_table(config)["landing-page"]) == ["qa", "production", "dev"]


class TestResourceTables:
    def test_only_enabled_kinds(self, make_config):
        tables = resource_tables(make_config(Feature.S3, Feature.LAMBDA))
        assert [table.constant for table in tables] == ["S3_STORAGE_BUCKETS"]

    def test_cognito_has_two_tables(self, make_config):
        tables = resource_tables(make_config(Feature.COGNITO))
        assert [table.constant for table in tables] == ["COGNITO_USER_POOLS", "COGNITO_USER_POOL_CLIENTS"]

    def test_kinds(self, make_config):
        tables = resource_tables(make_config(Feature.DYNAMO, Feature.S3, Feature.COGNITO))
        assert [table.kind for table in tables] == ["Table", "storage", "userpool", "userpool-client"]

    def test_names_built_from_project_constant(self, make_config):
        config = make_config(Feature.DYNAMO, name="shop", environments=("development", "production"))
        content = generate_constants(config)
        assert "export const PROJECT_NAME = 'shop';" in content
        assert "  development: `${PROJECT_NAME}-Table-development`," in content
        assert "  production: `${PROJECT_NAME}-Table-production`," in content
        assert "shop-Table-" not in content

    def test_backend_resources_order(self, full_config):
        titles = [resource.title for resource in backend_resources(full_config)]
        assert titles == ["Cognito", "DynamoDB", "S3 Storage", "API Gateway + Lambdas"]


# ---------------------------------------------------------------------------
# Constants module
# ---------------------------------------------------------------------------


class TestGenerateConstants:
    def test_minimal(self, minimal_config):
        content = generate_constants(minimal_config)
        assert "export const PROJECT_NAME = 'my-app';" in content
        assert "export const DOMAIN_BASE = 'my-app.com';" in content
        assert "export type Environment = 'production';" in content
        assert "'landing-page': {\n    production: DOMAIN_BASE,\n  }," in content
        assert "apigw" not in content
        assert "DYNAMODB_TABLES" not in content
        assert content.endswith("};\n")

    def test_lambda_dynamo_two_environments(self, make_config):
        config = make_config(Feature.LAMBDA, Feature.DYNAMO, environments=("development", "production"))
        content = generate_constants(config)
        assert "  development: 'development',\n  production: 'production',\n} as const;" in content
        assert "export type Environment = 'development' | 'production';" in content
        assert "    development: `development.${DOMAIN_BASE}`," in content
        assert "  apigw: {\n    development: `apigw-development.${DOMAIN_BASE}`,\n" in content
        assert "    production: `apigw.${DOMAIN_BASE}`," in content
        assert "// DynamoDB table names per environment" in content
        assert "  development: `${PROJECT_NAME}-Table-development`," in content
        assert "S3_STORAGE_BUCKETS" not in content
        assert "COGNITO_USER_POOLS" not in content

    def test_api_domains(self, make_config):
        content = generate_constants(make_config(Feature.API))
        assert "  api: {\n    production: `api.${DOMAIN_BASE}`,\n  }," in content

    def test_hyphenated_environment_is_quoted(self, make_config):
        content = generate_constants(make_config(Feature.S3, environments=("pre-prod", "production")))
        assert "  'pre-prod': 'pre-prod'," in content
        assert "  'pre-prod': `${PROJECT_NAME}-storage-pre-prod`," in content

    def test_pure(self, full_config):
        assert generate_constants(full_config) == generate_constants(full_config)


# ---------------------------------------------------------------------------
# Pulumi stack configs
# ---------------------------------------------------------------------------


class TestEnvironmentConfig:
    def test_valid_yaml(self, minimal_config):
        data = yaml.safe_load(generate_environment_config(minimal_config, "production"))
        assert data == {
            "config": {
                "aws:profile": "",
                "aws:region": "us-east-1",
                "aws:defaultTags": {"tags": {"project": "my-app", "environment": "production"}},
                "my-app:environment": "production",
            }
        }

    def test_region_from_settings(self, make_config):
        config = make_config(settings=ToolSettings(aws_region="eu-west-1"))
        data = yaml.safe_load(generate_environment_config(config, "production"))
        assert data["config"]["aws:region"] == "eu-west-1"

    def test_one_file_per_environment(self, make_config):
        config = make_config(environments=("development", "production"))
        files = environment_files(config)
        assert [item.path for item in files] == [
            "infrastructure/Pulumi.development.yaml",
            "infrastructure/Pulumi.production.yaml",
        ]
        data = yaml.safe_load(files[0].generate(config))
        assert data["config"]["my-app:environment"] == "development"


# ---------------------------------------------------------------------------
# README
# ---------------------------------------------------------------------------


class TestGenerateReadme:
    def test_minimal_has_no_backend_sections(self, minimal_config):
        content = generate_readme(minimal_config)
        assert content.startswith("# my-app\n")
        assert "## Infrastructure" not in content
        assert "packages/lambdas" not in content
        assert "apps/api" not in content
        assert "Pulumi" not in content

    def test_lists_only_enabled_resources(self, make_config):
        content = generate_readme(make_config(Feature.DYNAMO, Feature.S3))
        assert "- **DynamoDB** - NoSQL database with single-table design" in content
        assert "- **S3 Storage** - Private bucket for file uploads" in content
        assert "Cognito" not in content
        assert "API Gateway" not in content
        assert "## Infrastructure" in content

    def test_api_entries(self, make_config):
        content = generate_readme(make_config(Feature.API))
        assert "- `apps/api` - Elysia API server" in content
        assert "- `packages/sdk` - Typed client for the API server" in content
        assert "## Infrastructure" not in content

    def test_environments_line(self, full_config):
        assert "Environments: development, staging, production" in generate_readme(full_config)
