"""
routes.py
Rewrite application/config/routes.php into app/Config/Routes.php.
"""

from ci4_upgrader.context import PipelineRun
from ci4_upgrader.file_utils import read_file_content
from ci4_upgrader import rewriter


def migrate_routes(run: PipelineRun) -> None:
    source_file = run.legacy_dir('config') / 'routes.php'
    if not source_file.is_file():
        return

    notes = []
    content = rewriter.strip_access_guard(read_file_content(source_file), loose=True)
    content = rewriter.convert_routes(content, notes)
    run.write_target('app/Config/Routes.php', content, notes)
