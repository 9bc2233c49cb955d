"""mapweaver configuration modules."""

from .settings import (
    LayoutConfig,
    CollisionConfig,
    TreeLayoutConfig,
    LODConfig,
    MindmapConfig,
    ConceptMapConfig,
    load_config,
)

__all__ = [
    'LayoutConfig',
    'CollisionConfig',
    'TreeLayoutConfig',
    'LODConfig',
    'MindmapConfig',
    'ConceptMapConfig',
    'load_config',
]
