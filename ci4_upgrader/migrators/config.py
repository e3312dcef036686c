"""
config.py
Turn legacy $config arrays into CI4 config classes and write the PSR-4
namespace map.

Only single-line ``$config['key'] = value;`` assignments survive; values are
copied as raw PHP text.
"""

from ci4_upgrader.context import PipelineRun
from ci4_upgrader.file_utils import read_file_content
from ci4_upgrader import rewriter

AUTOLOAD_TEMPLATE = """<?php

namespace Config;

use CodeIgniter\\Config\\AutoloadConfig;

class Autoload extends AutoloadConfig
{
    public $psr4 = [
        'App'         => APPPATH,
        'Config'      => APPPATH . 'Config',
        'App\\Models'  => APPPATH . 'Models',
    ];

    public $classmap = [];
}
"""


def migrate_config(run: PipelineRun) -> None:
    """config.php, database.php, autoload.php -> app/Config/<Class>.php.

    Missing legacy files are skipped.
    """
    namespace = run.mappings.namespace('config')
    for legacy_name, class_name in run.mappings.config_files.items():
        source_file = run.legacy_dir('config') / f'{legacy_name}.php'
        if not source_file.is_file():
            continue
        content = rewriter.convert_config_to_class(read_file_content(source_file), class_name, namespace)
        run.write_target(f'app/Config/{class_name}.php', content)


def create_namespaces(run: PipelineRun) -> None:
    """Write the PSR-4 autoload map, replacing any generated Autoload.php."""
    run.write_target('app/Config/Autoload.php', AUTOLOAD_TEMPLATE)
