"""
pipeline.py
CodeIgniter 3 -> CodeIgniter 4 upgrade pipeline.

Stages run strictly in order. The first exception aborts the run, removes
the partially built target tree and propagates; the legacy tree and the
backup are never touched by the cleanup.
"""

import shutil
import sys
from dataclasses import dataclass
from typing import Callable, List, Optional, TextIO

from ci4_upgrader import composer, environment
from ci4_upgrader.context import InvalidProjectError, PipelineRun
from ci4_upgrader.migrators import (
    create_namespaces,
    migrate_config,
    migrate_controllers,
    migrate_helpers,
    migrate_libraries,
    migrate_models,
    migrate_routes,
    migrate_views,
)

PROGRESS_BAR_WIDTH = 50


@dataclass
class Stage:
    label: str
    action: Callable[['Upgrader'], None]


class Upgrader:
    """Drives one PipelineRun through the fixed stage sequence."""

    def __init__(self, run: PipelineRun, out: Optional[TextIO] = None):
        self.run = run
        self.out = out or sys.stdout
        self.composer_path: Optional[str] = None
        self.stages = self._build_stages()
        self.run.total_steps = len(self.stages)

    def _build_stages(self) -> List[Stage]:
        return [
            Stage('Creating backup...', Upgrader.create_backup),
            Stage('Downloading and setting up CI4...', Upgrader.download_ci4),
            Stage('Migrating models...', lambda u: migrate_models(u.run)),
            Stage('Migrating controllers...', lambda u: migrate_controllers(u.run)),
            Stage('Migrating views...', lambda u: migrate_views(u.run)),
            Stage('Migrating config files...', lambda u: migrate_config(u.run)),
            Stage('Migrating routes...', lambda u: migrate_routes(u.run)),
            Stage('Migrating helpers...', lambda u: migrate_helpers(u.run)),
            Stage('Migrating libraries...', lambda u: migrate_libraries(u.run)),
            Stage('Creating namespaces...', lambda u: create_namespaces(u.run)),
            Stage('Updating composer.json...', Upgrader.update_composer),
            Stage('Setting up environment...', Upgrader.setup_environment),
        ]

    def update_progress(self, message: str) -> None:
        run = self.run
        run.current_step += 1
        run.current_label = message

        percentage = run.percentage
        progress_width = int(round(percentage / 100 * PROGRESS_BAR_WIDTH))
        self.out.write('\r[%s>%s] %d%% %s' % (
            '=' * progress_width,
            ' ' * (PROGRESS_BAR_WIDTH - progress_width),
            percentage,
            message
        ))
        if run.current_step == run.total_steps:
            self.out.write('\n')
        self.out.flush()

    def validate_source(self) -> None:
        if not self.run.legacy_app.is_dir():
            raise InvalidProjectError(
                'Invalid CodeIgniter 3 project structure. Missing application folder.'
            )

    def create_backup(self) -> None:
        shutil.copytree(self.run.source_path, self.run.backup_path, symlinks=True)

    def _composer(self) -> str:
        if self.composer_path is None:
            self.composer_path = composer.find_composer(self.run.mappings.composer_candidates)
        return self.composer_path

    def download_ci4(self) -> None:
        mappings = self.run.mappings
        composer.create_project(self.run.target_path, mappings.skeleton_package,
                                mappings.skeleton_version, self._composer())

    def update_composer(self) -> None:
        composer.update_composer_json(self.run.target_path, self.run.source_path)
        composer.update_dependencies(self.run.target_path, self._composer())

    def setup_environment(self) -> None:
        environment.setup_environment(self.run.target_path, self.run.source_path)

    def cleanup(self) -> None:
        """Remove the partially created target tree."""
        if self.run.target_path.exists():
            shutil.rmtree(self.run.target_path, ignore_errors=True)

    def upgrade(self) -> PipelineRun:
        run = self.run
        run.outcome = 'running'
        try:
            self.validate_source()
            for stage in self.stages:
                self.update_progress(stage.label)
                stage.action(self)
        except Exception as e:
            run.outcome = 'failed'
            run.error = str(e)
            self.cleanup()
            raise

        run.outcome = 'done'
        return run
