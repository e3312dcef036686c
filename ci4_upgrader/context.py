"""
context.py
Run-scoped state shared by the pipeline stages.
"""

import uuid
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Dict, List, Optional

from ci4_upgrader.file_utils import write_file
from ci4_upgrader.mappings import Mappings


class UpgradeError(RuntimeError):
    """Fatal migration failure; aborts the whole run."""


class InvalidProjectError(UpgradeError):
    """The source path is not a CodeIgniter 3 project."""


class ComposerError(UpgradeError):
    """Composer is missing or a composer command failed."""


@dataclass
class PipelineRun:
    """State for one migration run, threaded through every stage.

    ``model_map`` is filled by the model stage and read by the controller
    stage. ``diagnostics`` maps a written target file to the names of rewrite
    rules that did not match anything in it.
    """
    source_path: Path
    backup_path: Path
    target_path: Path
    mappings: Mappings
    total_steps: int = 12
    current_step: int = 0
    current_label: str = ''
    outcome: str = 'pending'  # pending, running, done, failed
    error: Optional[str] = None
    model_map: Dict[str, str] = field(default_factory=dict)
    models_migrated: bool = False
    diagnostics: Dict[str, List[str]] = field(default_factory=dict)
    written_files: List[Path] = field(default_factory=list)

    @classmethod
    def create(cls, source_path, mappings: Mappings, now: Optional[datetime] = None) -> 'PipelineRun':
        source = Path(str(source_path).rstrip('/\\') or '/')
        now = now or datetime.now()
        return cls(
            source_path=source,
            backup_path=Path(f"{source}_backup_{now.strftime('%Y-%m-%d_%H-%M-%S')}"),
            target_path=Path(f"{source}_ci4{uuid.uuid4().hex[:13]}"),
            mappings=mappings,
        )

    @property
    def legacy_app(self) -> Path:
        return self.source_path / 'application'

    def legacy_dir(self, kind: str) -> Path:
        return self.legacy_app / kind

    @property
    def target_app(self) -> Path:
        return self.target_path / 'app'

    @property
    def percentage(self) -> int:
        if not self.total_steps:
            return 100
        return int(round(self.current_step / self.total_steps * 100))

    def write_target(self, relative_path, content: str, notes: Optional[List[str]] = None) -> Path:
        """Write a file below the target tree and remember it."""
        target_file = self.target_path / relative_path
        write_file(target_file, content)
        self.written_files.append(target_file)
        if notes:
            self.diagnostics[str(relative_path)] = list(notes)
        return target_file
