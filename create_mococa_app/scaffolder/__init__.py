"""Template materialization: walk, filter, transform and write a project.

Quick usage::

    from create_mococa_app.scaffolder import ProjectGenerator

    generator = ProjectGenerator(config)
    result = await generator.generate()
"""

from create_mococa_app.scaffolder.generator import GenerationResult, ProjectGenerator
from create_mococa_app.scaffolder.templates import TemplateRenderer
from create_mococa_app.scaffolder.transformer import TransformResult, transform, transform_with_report

__all__ = [
    "GenerationResult",
    "ProjectGenerator",
    "TemplateRenderer",
    "TransformResult",
    "transform",
    "transform_with_report",
]
