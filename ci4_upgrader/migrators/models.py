"""
models.py
Migrate application/models to app/Models.

Each model is renamed to the CI4 convention (User_model.php -> UserModel.php)
and the old -> new names are recorded in ``run.model_map`` for the
controller stage.
"""

import sys
from typing import Dict

from ci4_upgrader.context import PipelineRun
from ci4_upgrader.file_utils import find_php_files, read_file_content
from ci4_upgrader import rewriter


def migrate_model_source(content: str, class_name: str, new_class_name: str,
                         namespace: str, model_class: str, notes=None) -> str:
    """Rewrite one CI3 model file.

    ``model_class`` is the fully qualified CI4 model class; it is imported and
    the model extends it by its short name.
    """
    base_class = rewriter.short_class_name(model_class)
    content = rewriter.strip_access_guard(content, notes=notes)
    content = rewriter.add_namespace(namespace, content)
    content = rewriter.rename_model_class(content, class_name, new_class_name, base_class, notes)
    content = rewriter.add_use_statement(content, model_class.lstrip('\\'))
    content = rewriter.dedupe_visibility(content)
    content = rewriter.normalize_visibility(content, notes)
    content = rewriter.add_model_properties(content, new_class_name, base_class, notes)
    content = rewriter.update_database_queries(content, notes)
    return content


def migrate_models(run: PipelineRun) -> Dict[str, str]:
    """Migrate every model file and return the populated model name map."""
    source_dir = run.legacy_dir('models')
    files = find_php_files(source_dir)
    if not files:
        print(f"  No models found in {source_dir}", file=sys.stderr)

    namespace = run.mappings.namespace('models')
    model_class = run.mappings.base_class('CI_Model')

    for php_file in files:
        class_name = php_file.stem
        new_class_name = rewriter.convert_to_ci4_model_name(class_name)
        run.model_map[class_name] = new_class_name

        notes = []
        content = migrate_model_source(read_file_content(php_file), class_name, new_class_name,
                                       namespace, model_class, notes)
        run.write_target(f'app/Models/{new_class_name}.php', content, notes)

    run.models_migrated = True
    return run.model_map
