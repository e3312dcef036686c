"""
support.py
Copy helpers and libraries into the CI4 tree.

Besides dropping the access guard and adding a namespace, helpers are left
untouched. Libraries also get their CI3 parent classes renamed.
"""

from ci4_upgrader.context import PipelineRun
from ci4_upgrader.file_utils import find_php_files, read_file_content
from ci4_upgrader import rewriter


def _migrate_namespaced(run: PipelineRun, kind: str, target_dir: str, rename_parents: bool) -> None:
    namespace = run.mappings.namespace(kind)
    for php_file in find_php_files(run.legacy_dir(kind)):
        notes = []
        content = rewriter.strip_access_guard(read_file_content(php_file), notes=notes)
        content = rewriter.add_namespace(namespace, content)
        if rename_parents:
            content = rewriter.rewrite_class_extensions(content, run.mappings.class_mappings,
                                                        namespace)
        run.write_target(f'app/{target_dir}/{php_file.name}', content, notes)


def migrate_helpers(run: PipelineRun) -> None:
    _migrate_namespaced(run, 'helpers', 'Helpers', rename_parents=False)


def migrate_libraries(run: PipelineRun) -> None:
    _migrate_namespaced(run, 'libraries', 'Libraries', rename_parents=True)
