#!/usr/bin/env python3
"""
CodeIgniter 3 -> CodeIgniter 4 upgrader.

Backs up the CI3 project, fetches a fresh CI4 app starter with Composer and
rewrites controllers, models, views, config, routes, helpers and libraries
into it. The new project is created next to the old one as <path>_ci4<id>.

Usage:
    ci4-upgrade [--path /path/to/ci3-project] [--ci4-version 4.4.3]
                [--mappings custom.yaml] [--verbose]
"""

import argparse
import os
import sys
from pathlib import Path

import yaml

from ci4_upgrader import __version__
from ci4_upgrader.context import PipelineRun, UpgradeError
from ci4_upgrader.mappings import load_mappings
from ci4_upgrader.pipeline import Upgrader


def print_diagnostics(run: PipelineRun) -> None:
    if not run.diagnostics:
        return
    print("\nRewrite rules without a match:", file=sys.stderr)
    for relative_path, rules in sorted(run.diagnostics.items()):
        print(f"  {relative_path}: {', '.join(rules)}", file=sys.stderr)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog='ci4-upgrade',
        description='Upgrade a CodeIgniter 3 project to CodeIgniter 4',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  ci4-upgrade
  ci4-upgrade -p ./legacy-shop
  ci4-upgrade --path ./legacy-shop --mappings extra_renames.yaml --verbose
        """
    )
    parser.add_argument('--path', '-p', default=os.getcwd(),
                        help='Path to the CodeIgniter 3 project (default: current directory)')
    parser.add_argument('--ci4-version', help='CodeIgniter 4 app starter version to install')
    parser.add_argument('--mappings', type=Path,
                        help='YAML file overlaying the bundled rewrite tables')
    parser.add_argument('--verbose', '-v', action='store_true',
                        help='List rewrite rules that did not match, per file')
    parser.add_argument('--version', action='version', version=f'%(prog)s {__version__}')
    return parser


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)

    try:
        mappings = load_mappings(args.mappings)
    except (OSError, ValueError, yaml.YAMLError) as e:
        print(f"Error loading mappings: {e}", file=sys.stderr)
        return 1

    if args.ci4_version:
        mappings.skeleton['version'] = args.ci4_version

    source_path = Path(args.path).resolve()
    print(f"Upgrading {source_path}", file=sys.stderr)

    run = PipelineRun.create(source_path, mappings)
    try:
        Upgrader(run).upgrade()
    except (UpgradeError, OSError) as e:
        print(f"\nError during migration: {e}", file=sys.stderr)
        return 1
    except Exception as e:
        print(f"\nError during migration: {type(e).__name__}: {e}", file=sys.stderr)
        return 1

    if args.verbose:
        print_diagnostics(run)

    print(f"\nMigration completed successfully! Your new CI4 project is at: {run.target_path}")
    return 0


if __name__ == '__main__':
    sys.exit(main())
