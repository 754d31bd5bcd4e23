"""create-mococa-app: scaffold a Mococa monorepo from the bundled template."""

__version__ = "1.0.0"
