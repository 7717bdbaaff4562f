"""
Catalog database.

Loads skill tree catalogs and progression settings from JSON, validates
them against the bundled schema, and builds the immutable catalog.
Unlike game content that can be skipped, a broken catalog stops loading:
every error is logged and raised as ConfigurationError.
"""

import json
import logging
from pathlib import Path
from typing import Any

import jsonschema

from skilltrees.progression.catalog import CatalogEntry, ProgressionCatalog
from skilltrees.progression.config import ProgressionConfig
from skilltrees.progression.effects import effect_from_dict
from skilltrees.progression.errors import ConfigurationError
from skilltrees.progression.nodes import ConnectorNode, SkillNode
from skilltrees.progression.requirements import PrerequisiteSkillLevel, requirement_from_dict
from skilltrees.progression.tree import SkillTree

SCHEMA_DIR = Path(__file__).parent / "schemas"


class CatalogDatabase:
    """
    Reads catalog and config files from a data directory.

    Usage:
        db = CatalogDatabase("game/data")
        config = db.load_config()
        catalog = db.load_catalog(config=config)
    """

    CATALOG_SCHEMA = "catalog.schema.json"

    def __init__(self, data_path: Path | str):
        self._data_path = Path(data_path)
        self._schemas: dict[str, Any] = {}
        self.logger = logging.getLogger(__name__)

    def _schema(self, name: str) -> dict[str, Any]:
        if name not in self._schemas:
            with open(SCHEMA_DIR / name, 'r', encoding='utf-8') as f:
                self._schemas[name] = json.load(f)
        return self._schemas[name]

    def _read_json(self, filename: str) -> Any:
        path = self._data_path / filename
        if not path.exists():
            self.logger.error(f"Data file not found: {path}")
            raise ConfigurationError(f"Data file not found: {path}")
        try:
            with open(path, 'r', encoding='utf-8') as f:
                return json.load(f)
        except json.JSONDecodeError as e:
            self.logger.error(f"Failed to parse {path}: {e}")
            raise ConfigurationError(f"Failed to parse {path}: {e}") from e

    def load_config(self, filename: str = "progression.json") -> ProgressionConfig:
        """Load progression settings. A missing file gives the defaults."""
        if not (self._data_path / filename).exists():
            self.logger.warning(f"Config file not found, using defaults: {filename}")
            return ProgressionConfig()

        data = self._read_json(filename)
        if not isinstance(data, dict):
            raise ConfigurationError(f"{filename} must contain an object")
        return ProgressionConfig.from_dict(data)

    def load_catalog(
        self,
        filename: str = "skill_trees.json",
        config: ProgressionConfig | None = None,
    ) -> ProgressionCatalog:
        """Load, validate and build a catalog file."""
        data = self._read_json(filename)
        catalog = self.parse_catalog(data, config)
        self.logger.info(
            f"Loaded {len(catalog.trees)} skill trees from {filename}."
        )
        return catalog

    def parse_catalog(
        self,
        data: Any,
        config: ProgressionConfig | None = None,
    ) -> ProgressionCatalog:
        """Build a catalog from already parsed JSON."""
        config = config or ProgressionConfig()
        try:
            jsonschema.validate(instance=data, schema=self._schema(self.CATALOG_SCHEMA))
        except jsonschema.ValidationError as e:
            location = "/".join(str(p) for p in e.absolute_path) or "<root>"
            self.logger.error(f"Catalog validation error at {location}: {e.message}")
            raise ConfigurationError(f"Catalog validation error at {location}: {e.message}") from e

        raw_nodes: dict[str, Any] = data['nodes']
        try:
            nodes = {
                key: self._parse_node(key, node_data, raw_nodes)
                for key, node_data in raw_nodes.items()
            }
            trees = [
                self._parse_tree(key, tree_data, nodes, config)
                for key, tree_data in data['trees'].items()
            ]
            return ProgressionCatalog(
                trees=trees,
                actors=self._parse_entries(data.get('actors', {}), "actor"),
                classes=self._parse_entries(data.get('classes', {}), "class"),
                free=data.get('free', []),
            )
        except ConfigurationError as e:
            self.logger.error(f"Invalid catalog: {e}")
            raise

    def _parse_requirement(self, data: dict[str, Any], raw_nodes: dict[str, Any]):
        if data.get('type') == PrerequisiteSkillLevel.type_tag and 'node' in data:
            fields = dict(data)
            target = fields.pop('node')
            if target not in raw_nodes:
                raise ConfigurationError(f"Requirement references unknown skill '{target}'")
            fields['targetAbilityLevels'] = raw_nodes[target]['abilities']
            fields['nodeKey'] = target
            data = fields
        return requirement_from_dict(data, error=ConfigurationError)

    def _parse_node(self, key: str, data: dict[str, Any], raw_nodes: dict[str, Any]) -> SkillNode:
        return SkillNode(
            key=key,
            ability_levels=list(data['abilities']),
            requirements_per_level=[
                [self._parse_requirement(req, raw_nodes) for req in reqs]
                for reqs in data['requirements']
            ],
            effects_per_level=[
                [effect_from_dict(effect, error=ConfigurationError) for effect in effects]
                for effects in data.get('effects', [])
            ],
            icon_ref=data.get('icon'),
        )

    def _parse_tree(
        self,
        key: str,
        data: dict[str, Any],
        nodes: dict[str, SkillNode],
        config: ProgressionConfig,
    ) -> SkillTree:
        grid = []
        for slot in data['grid']:
            if slot is None:
                grid.append(None)
            elif isinstance(slot, str):
                if slot not in nodes:
                    raise ConfigurationError(f"Tree '{key}' references unknown skill '{slot}'")
                grid.append(nodes[slot])
            else:
                grid.append(ConnectorNode(icon_ref=slot['connector']))

        return SkillTree(
            name=data['name'],
            key=key,
            grid=grid,
            columns=data.get('columns', config.skills_per_row),
            initial_points=data.get('initialPoints', 0),
        )

    def _parse_entries(self, data: dict[str, Any], label: str) -> dict[int, CatalogEntry]:
        entries = {}
        for raw_id, entry in data.items():
            if not raw_id.isdigit():
                raise ConfigurationError(f"Invalid {label} id {raw_id!r}")
            entries[int(raw_id)] = CatalogEntry(
                tree_keys=tuple(entry['trees']),
                initial_points=entry.get('initialPoints', 0),
            )
        return entries
