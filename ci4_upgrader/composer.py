"""
composer.py
Composer invocations: fetching the CI4 skeleton, merging composer.json and
running ``composer update``.
"""

import json
import shlex
import subprocess
from pathlib import Path
from typing import Dict, List, Optional, Sequence

from ci4_upgrader.context import ComposerError

DEFAULT_CANDIDATES = ['composer', 'composer.phar', '/usr/local/bin/composer']


def find_composer(candidates: Optional[Sequence[str]] = None) -> str:
    """Return the first candidate whose ``--version`` exits 0."""
    for path in candidates or DEFAULT_CANDIDATES:
        try:
            result = subprocess.run(
                [path, '--version'],
                stdout=subprocess.PIPE,
                stderr=subprocess.STDOUT,
                text=True
            )
        except OSError:
            continue
        if result.returncode == 0:
            return path

    raise ComposerError('Composer not found. Please install Composer first.')


def run_composer_command(args: List[str], composer: str) -> str:
    """Run ``composer <args>`` and return its combined output.

    A non-zero exit raises ComposerError carrying that output.
    """
    try:
        result = subprocess.run(
            [composer] + list(args),
            stdout=subprocess.PIPE,
            stderr=subprocess.STDOUT,
            text=True
        )
    except OSError as e:
        raise ComposerError(f"Composer command failed: {e}") from e

    if result.returncode != 0:
        command = ' '.join(shlex.quote(a) for a in args)
        raise ComposerError(f"Composer command failed ({command}): {result.stdout.strip()}")
    return result.stdout


def create_project(target_path: Path, package: str, version: str, composer: str) -> None:
    """``composer create-project <package> <target> <version> --prefer-dist --no-dev``."""
    try:
        run_composer_command(
            ['create-project', package, str(target_path), version, '--prefer-dist', '--no-dev'],
            composer
        )
    except ComposerError as e:
        raise ComposerError(f"Failed to download CodeIgniter 4: {e}") from e


def merge_requirements(target_composer: Dict, legacy_composer: Dict) -> Dict:
    """Add legacy ``require`` entries that the target does not declare yet."""
    merged = dict(target_composer)
    require = dict(_require_section(merged, 'target composer.json'))
    for package, version in _require_section(legacy_composer, 'legacy composer.json').items():
        if package not in require:
            require[package] = version
    merged['require'] = require
    return merged


def _require_section(composer_json: Dict, label: str) -> Dict:
    require = composer_json.get('require') or {}
    if not isinstance(require, dict):
        raise ComposerError(f"The 'require' section of the {label} must be an object")
    return require


def load_composer_json(path: Path) -> Dict:
    """Read a composer.json file that must hold a JSON object."""
    try:
        with open(path, 'r', encoding='utf-8') as f:
            data = json.load(f)
    except (OSError, ValueError) as e:
        raise ComposerError(f"Cannot read {path}: {e}") from e
    if not isinstance(data, dict):
        raise ComposerError(f"{path} must contain a JSON object")
    return data


def update_composer_json(target_path: Path, source_path: Path) -> None:
    """Merge the legacy requirements into the target composer.json."""
    composer_json_path = Path(target_path) / 'composer.json'
    composer_json = load_composer_json(composer_json_path)

    legacy_json_path = Path(source_path) / 'composer.json'
    if legacy_json_path.is_file():
        composer_json = merge_requirements(composer_json, load_composer_json(legacy_json_path))

    with open(composer_json_path, 'w', encoding='utf-8') as f:
        f.write(json.dumps(composer_json, indent=4, ensure_ascii=False) + '\n')


def update_dependencies(target_path: Path, composer: str) -> None:
    run_composer_command(['update', f'--working-dir={target_path}'], composer)
