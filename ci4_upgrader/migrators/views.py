"""
views.py
Migrate application/views to app/Views, keeping the directory layout.
"""

from ci4_upgrader.context import PipelineRun
from ci4_upgrader.file_utils import find_php_files, read_file_content
from ci4_upgrader import rewriter


def migrate_views(run: PipelineRun) -> None:
    source_dir = run.legacy_dir('views')
    for php_file in find_php_files(source_dir):
        relative = php_file.relative_to(source_dir).as_posix()
        notes = []
        content = rewriter.update_view_syntax(read_file_content(php_file), notes)
        run.write_target(f'app/Views/{relative}', content, notes)
