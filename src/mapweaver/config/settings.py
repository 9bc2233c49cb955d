# SPDX-License-Identifier: MIT OR Apache-2.0
# Copyright (c) 2025 John William Creighton (s243a)
"""
Layout configuration - spacing constants and iteration limits.

Every value is a plain number with a documented default. Overrides come
from a YAML file with one section per component:

    collision:
      minimum_gap: 10
      container_padding: 20
      header_height: 30
    layout:
      sibling_gap: 20
      level_gap: 60
    lod:
      start_percent: 10
      increment_percent: 20

Usage:
    from mapweaver.config import load_config

    config = load_config()                   # defaults + first user file found
    config = load_config('my_layout.yaml')   # explicit file
"""

import logging
from dataclasses import asdict, dataclass, field, fields, is_dataclass
from pathlib import Path
from typing import Any, Dict, Optional, Union

import yaml

logger = logging.getLogger(__name__)


@dataclass
class CollisionConfig:
    """Concept-map AABB resolution."""
    minimum_gap: float = 10
    container_padding: float = 20
    header_height: float = 30
    min_node_width: float = 150
    min_node_height: float = 60
    max_iterations: int = 100
    # Axis used when both overlaps are equal ('x' or 'y')
    tie_axis: str = 'y'


@dataclass
class TreeLayoutConfig:
    """Contour tree layout."""
    sibling_gap: float = 20
    level_gap: float = 60
    root_gap: float = 80
    level_aligned: bool = True
    direction: str = 'top-down'


@dataclass
class LODConfig:
    """Zoom-driven level of detail."""
    enabled: bool = True
    start_percent: float = 10
    increment_percent: float = 20
    min_levels: int = 5


@dataclass
class MindmapConfig:
    """Mind-map view placement and subtree resolution."""
    horizontal_spacing: float = 200
    vertical_spacing: float = 20
    default_width: float = 150
    default_height: float = 50
    subtree_padding_x: float = 0
    subtree_padding_y: float = 0
    max_iterations: int = 5
    max_push: float = 200


@dataclass
class ConceptMapConfig:
    """Concept-map view initial placement."""
    node_spacing: float = 10
    leaf_width: float = 100
    leaf_height: float = 40


@dataclass
class LayoutConfig:
    """All layout settings."""
    collision: CollisionConfig = field(default_factory=CollisionConfig)
    layout: TreeLayoutConfig = field(default_factory=TreeLayoutConfig)
    lod: LODConfig = field(default_factory=LODConfig)
    mindmap: MindmapConfig = field(default_factory=MindmapConfig)
    concept_map: ConceptMapConfig = field(default_factory=ConceptMapConfig)

    # Searched in order when no explicit path is given
    USER_CONFIG_ORDER = (
        '.mapweaver.yaml',
        'config/mapweaver.yaml',
    )

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> 'LayoutConfig':
        """Build a config from nested dicts; unknown keys are ignored with a warning."""
        config = cls()
        if data is None:
            return config
        if not isinstance(data, dict):
            logger.warning(f"Config root must be a mapping, got {type(data).__name__}; using defaults")
            return config
        for section_name, values in data.items():
            section = getattr(config, str(section_name), None)
            if not is_dataclass(section) or isinstance(section, type) or not isinstance(values, dict):
                logger.warning(f"Unknown config section: {section_name}")
                continue
            known = {f.name for f in fields(section)}
            for key, value in values.items():
                if key not in known:
                    logger.warning(f"Unknown config key: {section_name}.{key}")
                    continue
                setattr(section, key, value)
        return config


def _load_yaml_file(path: Path) -> Optional[Dict]:
    """Load a YAML file if it exists."""
    if not path.exists():
        return None
    with open(path) as f:
        return yaml.safe_load(f) or {}


def load_config(path: Optional[Union[str, Path]] = None,
                project_root: Optional[Path] = None) -> LayoutConfig:
    """
    Load layout configuration.

    Args:
        path: Explicit YAML file. Must exist when given.
        project_root: Directory searched for user config files when no
            path is given (default: current directory).

    Returns:
        LayoutConfig with defaults overridden by the file's values.
    """
    if path is not None:
        path = Path(path)
        if not path.exists():
            raise FileNotFoundError(f"Config file not found: {path}")
        logger.debug(f"Loading layout config from {path}")
        return LayoutConfig.from_dict(_load_yaml_file(path))

    root = project_root or Path.cwd()
    for config_file in LayoutConfig.USER_CONFIG_ORDER:
        data = _load_yaml_file(root / config_file)
        if data is not None:
            logger.debug(f"Loading layout config from {root / config_file}")
            return LayoutConfig.from_dict(data)
    return LayoutConfig()
