import json
import os
from dataclasses import dataclass, fields
from typing import Any, Dict, Optional

import yaml

from .database import DEFAULT_DATABASE_URL
from .exceptions import SqlDiffError


@dataclass
class DiffTestConfig:
    """Settings for one differential testing run"""
    spec_path: Optional[str] = None
    base_url: str = 'http://localhost:8080'
    database_url: str = DEFAULT_DATABASE_URL
    api_name: Optional[str] = None
    output_dir: str = './output'
    session_name: str = 'session'
    odg_file_name: str = 'odg.dot'
    iterations: int = 30
    sequences_per_operation: int = 20
    max_depth: int = 20
    cleanup_deletes: int = 3
    cut_height: float = 0.20
    seed: Optional[int] = None
    drop_tables: bool = True
    request_timeout: float = 10.0
    log_level: str = 'INFO'

    @property
    def odg_path(self) -> str:
        return os.path.join(self.output_dir, self.session_name, self.odg_file_name)

    def update(self, overrides: Dict[str, Any]) -> "DiffTestConfig":
        """Apply non-None overrides (typically parsed CLI flags)"""
        known = {f.name for f in fields(self)}
        for key, value in overrides.items():
            if key in known and value is not None:
                setattr(self, key, value)
        return self


def load_config(path: str) -> DiffTestConfig:
    """Read a YAML or JSON config file; unknown keys are rejected"""
    try:
        with open(path, 'r', encoding='utf-8') as f:
            if path.endswith('.yaml') or path.endswith('.yml'):
                data = yaml.safe_load(f) or {}
            else:
                data = json.load(f)
    except (OSError, yaml.YAMLError, json.JSONDecodeError) as e:
        raise SqlDiffError(f"Cannot read config {path}: {e}") from e

    if not isinstance(data, dict):
        raise SqlDiffError(f"Config {path} is not a mapping")
    known = {f.name for f in fields(DiffTestConfig)}
    unknown = sorted(set(data) - known)
    if unknown:
        raise SqlDiffError(f"Unknown config keys in {path}: {', '.join(unknown)}")
    return DiffTestConfig(**data)
