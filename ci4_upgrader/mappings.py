"""
mappings.py
Static CI3 -> CI4 rewrite tables.

The bundled tables live in data/mappings.yaml and are loaded once at start-up.
A user file passed with --mappings is overlaid key by key on top of them.
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional

import yaml

DEFAULT_MAPPINGS_FILE = Path(__file__).parent / 'data' / 'mappings.yaml'


@dataclass
class Mappings:
    """Rewrite tables and fixed target settings for one run."""
    method_mappings: Dict[str, str] = field(default_factory=dict)
    class_mappings: Dict[str, str] = field(default_factory=dict)
    namespaces: Dict[str, str] = field(default_factory=dict)
    config_files: Dict[str, str] = field(default_factory=dict)
    skeleton: Dict[str, str] = field(default_factory=dict)
    composer_candidates: List[str] = field(default_factory=list)

    def namespace(self, kind: str) -> str:
        return self.namespaces[kind]

    def base_class(self, legacy_class: str) -> str:
        """CI4 replacement for a CI3 base class, falling back to the legacy name."""
        return self.class_mappings.get(legacy_class, legacy_class)

    @property
    def skeleton_package(self) -> str:
        return self.skeleton['package']

    @property
    def skeleton_version(self) -> str:
        return str(self.skeleton['version'])


def _read_yaml(path: Path) -> Dict:
    with open(path, 'r', encoding='utf-8') as f:
        data = yaml.safe_load(f) or {}
    if not isinstance(data, dict):
        raise ValueError(f"Mapping file must contain a YAML mapping: {path}")
    return data


def load_mappings(override_path: Optional[Path] = None) -> Mappings:
    """Load the bundled tables, optionally overlaying a user YAML file.

    Dictionary sections are merged (user keys win, bundled order kept for the
    rest); list and scalar sections are replaced outright.
    """
    data = _read_yaml(DEFAULT_MAPPINGS_FILE)

    if override_path is not None:
        overrides = _read_yaml(Path(override_path))
        for key, value in overrides.items():
            if key not in Mappings.__dataclass_fields__:
                raise ValueError(f"Unknown mapping section '{key}' in {override_path}")
            if isinstance(value, dict) and isinstance(data.get(key), dict):
                merged = dict(data[key])
                merged.update(value)
                data[key] = merged
            else:
                data[key] = value

    return Mappings(
        method_mappings={str(k): str(v) for k, v in data.get('method_mappings', {}).items()},
        class_mappings={str(k): str(v) for k, v in data.get('class_mappings', {}).items()},
        namespaces=dict(data.get('namespaces', {})),
        config_files=dict(data.get('config_files', {})),
        skeleton=dict(data.get('skeleton', {})),
        composer_candidates=list(data.get('composer_candidates', [])),
    )
