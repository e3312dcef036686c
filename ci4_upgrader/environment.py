"""
environment.py
Create the CI4 .env file from the skeleton's env template.

The legacy database.php is read with regexes, not executed, so only literal
string values are picked up. Two layouts are understood::

    $db['default']['hostname'] = 'localhost';

    $db['default'] = array(
        'hostname' => 'localhost',
        ...
    );
"""

import re
import shutil
from pathlib import Path
from typing import Dict

from ci4_upgrader.file_utils import read_file_content, write_file

DATABASE_KEYS = ['hostname', 'database', 'username', 'password']

STRING_LITERAL = r"""('(?:[^'\\]|\\.)*'|"(?:[^"\\]|\\.)*")"""


def _unquote(literal: str) -> str:
    quote, body = literal[0], literal[1:-1]
    return body.replace('\\' + quote, quote).replace('\\\\', '\\')


def extract_database_settings(content: str, group: str = 'default') -> Dict[str, str]:
    """Literal connection settings of one ``$db`` group."""
    settings = {}
    quoted_group = re.escape(group)

    block = re.search(
        r"\$db\[['\"]" + quoted_group + r"['\"]\]\s*=\s*(?:array\s*\(|\[)(.*?)(?:\)|\])\s*;",
        content,
        re.DOTALL
    )
    if block:
        for match in re.finditer(r"['\"](\w+)['\"]\s*=>\s*" + STRING_LITERAL, block.group(1)):
            settings[match.group(1)] = _unquote(match.group(2))

    for match in re.finditer(
        r"\$db\[['\"]" + quoted_group + r"['\"]\]\[['\"](\w+)['\"]\]\s*=\s*" + STRING_LITERAL + r'\s*;',
        content
    ):
        settings[match.group(1)] = _unquote(match.group(2))

    return settings


def patch_env(env_content: str, db_settings: Dict[str, str]) -> str:
    """Fill in database.default.* lines and switch to the development environment."""
    for key in DATABASE_KEYS:
        if key not in db_settings:
            continue
        line = f'database.default.{key} = {db_settings[key]}'
        env_content = re.sub(
            r'^#?[ \t]*database\.default\.' + key + r'[ \t]*=.*$',
            lambda m, line=line: line,
            env_content,
            flags=re.MULTILINE
        )

    env_content = re.sub(r'# CI_ENVIRONMENT = production', 'CI_ENVIRONMENT = development', env_content)
    return env_content


def setup_environment(target_path: Path, source_path: Path) -> Path:
    """Copy ``env`` to ``.env`` and patch it from the legacy database config."""
    template = Path(target_path) / 'env'
    env_file = Path(target_path) / '.env'
    if template.is_file():
        shutil.copyfile(template, env_file)

    env_content = read_file_content(env_file) if env_file.is_file() else ''

    legacy_db_config = Path(source_path) / 'application' / 'config' / 'database.php'
    db_settings = {}
    if legacy_db_config.is_file():
        db_settings = extract_database_settings(read_file_content(legacy_db_config))

    write_file(env_file, patch_env(env_content, db_settings))
    return env_file
