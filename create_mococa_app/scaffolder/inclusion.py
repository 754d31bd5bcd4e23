"""Which template paths belong to which optional feature.

Ownership is fixed data: a prefix owns the path equal to it and everything
below it.  A path may have several owners (``packages/sdk/src/auth.ts`` is
owned by both ``api`` and ``cognito``) and is included only when *every*
owner is enabled.
"""

from __future__ import annotations

from pathlib import PurePosixPath

from create_mococa_app.config import Feature, GenerationConfig

OWNERSHIP: tuple[tuple[str, Feature], ...] = (
    ("packages/lambdas", Feature.LAMBDA),
    ("packages/lambdas/src/common/dynamo.ts", Feature.DYNAMO),
    ("infrastructure/src/resources/apigateway.ts", Feature.LAMBDA),
    ("infrastructure/src/resources/lambdas", Feature.LAMBDA),
    ("infrastructure/src/resources/dynamo.ts", Feature.DYNAMO),
    ("infrastructure/src/resources/s3-storage.ts", Feature.S3),
    ("infrastructure/src/resources/cognito.ts", Feature.COGNITO),
    ("packages/sdk", Feature.API),
    ("packages/sdk/src/auth.ts", Feature.COGNITO),
)


def _normalize(relative_path: str) -> str:
    return PurePosixPath(str(relative_path).replace("\\", "/")).as_posix()


def owners(relative_path: str) -> frozenset[Feature]:
    """Return every feature that owns *relative_path*."""
    path = _normalize(relative_path)
    return frozenset(
        feature
        for prefix, feature in OWNERSHIP
        if path == prefix or path.startswith(prefix + "/")
    )


def should_include(relative_path: str, config: GenerationConfig) -> bool:
    return all(config.has(feature) for feature in owners(relative_path))
