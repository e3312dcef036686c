"""
controllers.py
Migrate application/controllers to app/Controllers.

Must run after the model stage: model loads and ``$this->Some_model->``
calls are resolved through ``run.model_map``.
"""

import sys
from typing import Dict

from ci4_upgrader.context import PipelineRun, UpgradeError
from ci4_upgrader.file_utils import find_php_files, read_file_content
from ci4_upgrader.mappings import Mappings
from ci4_upgrader import rewriter


def migrate_controller_source(content: str, mappings: Mappings, model_map: Dict[str, str],
                              notes=None) -> str:
    """Rewrite one CI3 controller file."""
    models_namespace = mappings.namespace('models')

    content = rewriter.strip_access_guard(content, notes=notes)
    content = rewriter.add_namespace(mappings.namespace('controllers'), content)
    content = rewriter.add_use_statement(content, 'CodeIgniter\\Controller')

    for old_name, new_name in model_map.items():
        if old_name in content:
            content = rewriter.add_use_statement(content, f'{models_namespace}\\{new_name}')

    content = rewriter.rewrite_class_extensions(content, mappings.class_mappings,
                                                mappings.namespace('controllers'))
    content = rewriter.normalize_visibility(content, notes)
    content = rewriter.rewrite_model_references(content, model_map)
    content = rewriter.update_ci3_syntax(content, mappings.method_mappings, notes)
    return content


def migrate_controllers(run: PipelineRun) -> None:
    source_dir = run.legacy_dir('controllers')
    files = find_php_files(source_dir)
    if not files:
        print(f"  No controllers found in {source_dir}", file=sys.stderr)
        return

    if not run.models_migrated:
        raise UpgradeError("Controllers cannot be migrated before models")

    for php_file in files:
        notes = []
        content = migrate_controller_source(read_file_content(php_file), run.mappings,
                                            run.model_map, notes)
        run.write_target(f'app/Controllers/{php_file.name}', content, notes)
