"""
file_utils.py
Reading legacy sources and writing rewritten targets.
"""

import os
import tempfile
from pathlib import Path
from typing import List

import chardet


def read_file_content(filepath: Path) -> str:
    """Read file content, detecting the encoding when it is not UTF-8."""
    try:
        with open(filepath, 'r', encoding='utf-8') as f:
            return f.read()
    except UnicodeDecodeError:
        with open(filepath, 'rb') as f:
            raw = f.read()
        encoding = chardet.detect(raw).get('encoding') or 'latin-1'
        try:
            return raw.decode(encoding, errors='replace')
        except LookupError:
            # chardet can name codecs Python does not ship
            return raw.decode('latin-1')


def write_file(filepath: Path, content: str) -> None:
    """Write ``content`` to ``filepath`` in one step, creating parent directories.

    The data goes to a temporary sibling first and is renamed into place, so a
    target file is either fully written or absent.
    """
    filepath = Path(filepath)
    filepath.parent.mkdir(parents=True, exist_ok=True)

    fd, tmp_name = tempfile.mkstemp(dir=filepath.parent, prefix='.' + filepath.name, suffix='.tmp')
    try:
        with os.fdopen(fd, 'w', encoding='utf-8', newline='') as f:
            f.write(content)
        os.replace(tmp_name, filepath)
    except BaseException:
        if os.path.exists(tmp_name):
            os.unlink(tmp_name)
        raise


def find_php_files(directory: Path) -> List[Path]:
    """All ``*.php`` files below ``directory``, sorted; empty if it does not exist."""
    directory = Path(directory)
    if not directory.is_dir():
        return []
    return sorted(p for p in directory.rglob('*.php') if p.is_file())
