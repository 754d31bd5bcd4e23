"""Clone and adapt the external API server repository into ``apps/api``.

The repository is not part of the project template, so there is no banner
structure to rely on: adaptations are an ordered list of ``TextRewrite``
entries applied with regular expressions.  A pattern that no longer matches
is reported as a miss; a required file that is missing after the clone is a
hard ``ExternalToolError``.
"""

from __future__ import annotations

import asyncio
import json
import re
import shutil
from pathlib import Path
from typing import NamedTuple

from create_mococa_app.config import Feature, GenerationConfig
from create_mococa_app.errors import ExternalToolError
from create_mococa_app.utils import print_step, run_command

API_DIRECTORY = "apps/api"
CLONE_TIMEOUT = 300


class TextRewrite(NamedTuple):
    path: str
    pattern: str
    replacement: str
    required: bool = True
    count: int = 1
    flags: int = 0


class BootstrapResult(NamedTuple):
    path: Path
    misses: tuple[str, ...] = ()


# Endpoints, error classes and schemas that only make sense with Cognito.
_COGNITO_AUTH_PATTERNS: tuple[str, ...] = (
    r"/\*\* Login with email \+ password \*/[\s\S]*?\.post\('/login'[\s\S]*?\}, \{ body: schemas\.login \}\)\n",
    r"/\*\* Register with email \+ password \*/[\s\S]*?\.post\('/register'[\s\S]*?\}, \{ body: schemas\.register\}\)\n",
    r"/\*\* Confirm email with code[\s\S]*?\.post\('/confirm-email'[\s\S]*?\}, \{ body: schemas\.confirmEmail \}\)\n",
    r"/\*\* Resend confirmation code[\s\S]*?\.post\('/resend-confirmation-code'[\s\S]*?\}, \{ body: schemas\.resendConfirmationCode \}\)\n",
    r"/\*\* Initiate forgot password[\s\S]*?\.post\('/forgot-password'[\s\S]*?\}, \{ body: schemas\.forgotPassword \}\)\n",
    r"/\*\* Complete password reset[\s\S]*?\.post\('/reset-password'[\s\S]*?\}, \{ body: schemas\.resetPassword \}\);",
    r"class UserNotConfirmed[\s\S]*?\}\n\n",
    r"class CodeMismatch[\s\S]*?\}\n\n",
    r"class UserAlreadyExists[\s\S]*?\}\n\n",
    r"class RegistrationError[\s\S]*?\}\n\n",
    r"class LoginError[\s\S]*?\}\n\n",
    r"/\*\*\n \* Email validation schema[\s\S]*?const emailSchema = t\.String\(\{format: 'email', error: 'Invalid email format' \}\);\n\n",
    r"/\*\*\n \* Strong password validation schema[\s\S]*?const passwordSchema = t\.String\(\{minLength: 8[\s\S]*?\}\);\n\n",
    r"/\*\*\n \* 6-digit numeric confirmation code[\s\S]*?const codeSchema = t\.String\(\{minLength: 6[\s\S]*?\}\);\n\n",
    (
        r"const schemas = \{[\s\S]*?login: t\.Object\(\{[\s\S]*?\}\),[\s\S]*?register: t\.Object\(\{[\s\S]*?\}\),"
        r"[\s\S]*?confirmEmail:[\s\S]*?\}\),[\s\S]*?forgotPassword:[\s\S]*?\}\),"
        r"[\s\S]*?resendConfirmationCode:[\s\S]*?\}\),[\s\S]*?resetPassword:[\s\S]*?\}\),[\s\S]*?\}"
    ),
)


def api_rewrites(config: GenerationConfig) -> list[TextRewrite]:
    """Ordered text rewrites applied to the cloned repository."""
    name = config.project_name
    services_import = "import { services } from './services';"
    env_line = 'ENV="development" # or "production"'
    default_environment = config.environments[0]

    rewrites = [
        TextRewrite(
            "src/main.ts",
            re.escape(services_import),
            f"{services_import}\nimport {{ DOMAINS, type Environment }} from '@{name}/constants';",
        ),
        TextRewrite(
            "src/main.ts",
            r"async function createApp\(\) \{\n  const app = new Elysia\(",
            "async function createApp() {\n"
            "  const environment = (process.env.ENVIRONMENT || 'production') as Environment;\n"
            "  const allowedOrigins = ['http://localhost:3000', ...Object.values(DOMAINS)"
            ".map(envDomains => `https://${envDomains[environment]}`)];\n"
            "\n"
            "  const app = new Elysia(",
        ),
        TextRewrite(
            "src/main.ts",
            r"\.use\(cors\(\{\n      origin: \[.*?\],",
            ".use(cors({\n      origin: allowedOrigins,",
            flags=re.S,
        ),
        TextRewrite(
            ".env.example",
            re.escape(env_line),
            f'{env_line}\nENVIRONMENT="{default_environment}" # {", ".join(config.environments)}',
        ),
        TextRewrite("docker-compose.yml", "bun_app", f"{name}_api", required=False, count=0),
        TextRewrite("README.md", "bun_app", name, required=False, count=0),
    ]

    if not config.has(Feature.COGNITO):
        rewrites.extend(
            TextRewrite("src/handlers/public/auth.ts", pattern, "")
            for pattern in _COGNITO_AUTH_PATTERNS
        )
    return rewrites


# ---------------------------------------------------------------------------
# Steps
# ---------------------------------------------------------------------------


def _missing(relative: str) -> ExternalToolError:
    return ExternalToolError("api", f"{API_DIRECTORY}/{relative} not found in the cloned repository")


def _rewrite_manifest(api_root: Path, config: GenerationConfig) -> str | None:
    path = api_root / "package.json"
    if not path.is_file():
        raise _missing("package.json")
    try:
        manifest = json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as exc:
        return f"{API_DIRECTORY}/package.json: not valid JSON ({exc.msg})"

    manifest["name"] = f"@{config.project_name}/api"
    scripts = manifest.get("scripts")
    if isinstance(scripts, dict):
        scripts.pop("fmt", None)
    path.write_bytes((json.dumps(manifest, indent=2, ensure_ascii=False) + "\n").encode("utf-8"))
    return None


def _apply_rewrite(api_root: Path, rewrite: TextRewrite) -> str | None:
    path = api_root / rewrite.path
    if not path.is_file():
        if rewrite.required:
            raise _missing(rewrite.path)
        return None

    text = path.read_text(encoding="utf-8")
    updated, replaced = re.subn(
        rewrite.pattern,
        lambda _match: rewrite.replacement,
        text,
        count=rewrite.count,
        flags=rewrite.flags,
    )
    if replaced == 0:
        snippet = rewrite.pattern if len(rewrite.pattern) <= 60 else rewrite.pattern[:57] + "..."
        return f"{API_DIRECTORY}/{rewrite.path}: pattern {snippet!r} not found"
    path.write_bytes(updated.encode("utf-8"))
    return None


async def bootstrap_api(project_root: Path, config: GenerationConfig) -> BootstrapResult:
    """Clone the API repository into ``apps/api`` and adapt it to the project.

    Raises:
        ExternalToolError: If ``git`` is unavailable, the clone fails, or a
            required file is missing from the cloned tree.
    """
    api_root = Path(project_root) / API_DIRECTORY
    repository = config.settings.api_repository

    print_step(f"Cloning {repository}...")
    try:
        returncode, _stdout, stderr = await run_command(
            ["git", "clone", repository, str(api_root)],
            cwd=project_root,
            timeout=CLONE_TIMEOUT,
        )
    except FileNotFoundError as exc:
        raise ExternalToolError("git", "git executable not found on PATH") from exc
    if returncode != 0:
        raise ExternalToolError("git", stderr or f"clone exited with code {returncode}")

    print_step("Removing git history...")
    await asyncio.to_thread(shutil.rmtree, api_root / ".git", ignore_errors=True)

    misses: list[str] = []
    print_step("Updating package.json...")
    miss = await asyncio.to_thread(_rewrite_manifest, api_root, config)
    if miss:
        misses.append(miss)

    print_step("Configuring CORS, constants and environment...")
    for rewrite in api_rewrites(config):
        miss = await asyncio.to_thread(_apply_rewrite, api_root, rewrite)
        if miss:
            misses.append(miss)

    return BootstrapResult(api_root, tuple(misses))
