"""ufs-patcher command line.

Inspect and edit the Steam Cloud ("ufs") settings that appinfo.vdf holds
for each app.

Usage:
    ufs-patcher locate
    ufs-patcher show <appid> [--format table|json|text]
    ufs-patcher dump <appid>
    ufs-patcher set <appid> --rules rules.json [--dry-run]
    ufs-patcher set <appid> --text ufs.txt [--dry-run]
    ufs-patcher verify <appid>
    ufs-patcher backups
    ufs-patcher restore [--backup <path>]

Global options (before the command):
    --appinfo PATH      use this appinfo.vdf instead of Steam's
    --steam-path DIR    Steam installation directory
    -v / --verbose      debug logging

Close Steam before running `set` or `restore`; Steam rewrites appinfo.vdf
on exit.
"""

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import List, Optional, Tuple

from .errors import AppInfoError
from .formats.appinfo import AppInfoFile, RootOverride, SaveRule, UfsConfig
from .core.backup import BackupManager
from .core.log_setup import configure_logging
from .core.mutation_pipeline import MutationMode, MutationPipeline
from .core.settings import Settings, SettingsManager
from .core.steam_paths import appinfo_path, find_steam_path, root_name_to_type
from .core.ufs_query import resolve_appinfo
from .core.ufs_text import entries_to_ufs_text, parse_ufs_text
from .core.ufs_writer import AppInfoWriter

logger = logging.getLogger(__name__)


# ─────────────────────────────────────────────────────────────
# FORMATTING
# ─────────────────────────────────────────────────────────────

def format_config_table(config: UfsConfig) -> str:
    """Human-readable summary of one app's ufs config."""
    lines = [f"{'=' * 50}", f"  App {config.app_id}", f"{'=' * 50}"]
    if not config.found:
        lines.append("  No ufs section")
        return "\n".join(lines)

    lines.append(f"  Quota: {config.quota:,} bytes  |  Max files: {config.maxnumfiles}")

    lines.append(f"\n  SAVEFILES ({len(config.savefiles)})")
    lines.append(f"  {'─' * 40}")
    for i, rule in enumerate(config.savefiles):
        platforms = ",".join(rule.platforms) or "all"
        lines.append(f"  [{i}] {rule.root} / {rule.path}  pattern={rule.pattern}  platforms={platforms}")

    lines.append(f"\n  ROOTOVERRIDES ({len(config.rootoverrides)})")
    lines.append(f"  {'─' * 40}")
    for i, override in enumerate(config.rootoverrides):
        lines.append(f"  [{i}] {override.original_root} -> {override.new_root}  os={override.os}")
        if override.add_path:
            lines.append(f"       addpath={override.add_path}")
        for transform in override.path_transforms:
            lines.append(f"       {transform.find!r} => {transform.replace!r}")
    return "\n".join(lines)


def load_rules_json(path: Path) -> Tuple[List[SaveRule], List[RootOverride]]:
    """Rules file: {"savefiles": [...], "rootoverrides": [...]}."""
    with open(path, 'r', encoding='utf-8') as f:
        data = json.load(f)
    if not isinstance(data, dict):
        raise ValueError(f"{path}: expected a JSON object")
    savefiles = [SaveRule.from_dict(d) for d in _rule_items(data, 'savefiles', path)]
    overrides = [RootOverride.from_dict(d) for d in _rule_items(data, 'rootoverrides', path)]
    return savefiles, overrides


def _rule_items(data: dict, key: str, path: Path) -> List[dict]:
    items = data.get(key) or []
    if not isinstance(items, list):
        raise ValueError(f"{path}: '{key}' must be a list")
    for i, item in enumerate(items):
        if not isinstance(item, dict):
            raise ValueError(f"{path}: {key}[{i}] must be an object, got {type(item).__name__}")
    return items


def warn_unknown_roots(savefiles: List[SaveRule], overrides: List[RootOverride]):
    roots = [r.root for r in savefiles]
    roots += [o.original_root for o in overrides] + [o.new_root for o in overrides]
    for root in roots:
        if root and root_name_to_type(root) is None:
            print(f"WARNING: unknown root name '{root}'", file=sys.stderr)


# ─────────────────────────────────────────────────────────────
# COMMANDS
# ─────────────────────────────────────────────────────────────

def cmd_locate(args, settings: Settings) -> int:
    """Print the Steam directory and appinfo.vdf path in use."""
    if args.appinfo:
        print(f"appinfo.vdf: {Path(args.appinfo).expanduser()}")
        return 0
    steam = find_steam_path(args.steam_path or settings.steam_path)
    print(f"Steam:       {steam}")
    print(f"appinfo.vdf: {appinfo_path(steam)}")
    return 0


def cmd_show(args, settings: Settings) -> int:
    """Show an app's current ufs config."""
    info = AppInfoFile.read(args.path)
    config = info.read_ufs(args.appid)
    if args.format == "json":
        print(json.dumps(config.to_dict(), indent=2))
    elif args.format == "text":
        print(entries_to_ufs_text(config.savefiles, config.rootoverrides))
    else:
        print(format_config_table(config))
    return 0


def cmd_dump(args, settings: Settings) -> int:
    """Print the ufs section exactly as stored."""
    config = AppInfoFile.read(args.path).read_ufs(args.appid)
    if not config.found:
        print(f"App {args.appid} has no ufs section", file=sys.stderr)
        return 1
    print(config.raw_text)
    return 0


def cmd_set(args, settings: Settings) -> int:
    """Replace an app's savefiles and rootoverrides."""
    if args.rules:
        try:
            savefiles, overrides = load_rules_json(Path(args.rules))
        except (OSError, ValueError) as e:
            print(f"ERROR: cannot read rules: {e}", file=sys.stderr)
            return 1
    else:
        try:
            text = Path(args.text).read_text(encoding='utf-8')
        except OSError as e:
            print(f"ERROR: cannot read {args.text}: {e}", file=sys.stderr)
            return 1
        savefiles, overrides = parse_ufs_text(text)

    warn_unknown_roots(savefiles, overrides)

    mode = MutationMode.PREVIEW if args.dry_run else MutationMode.MUTATE
    writer = AppInfoWriter(
        args.path,
        backups=BackupManager(settings.backup_dir),
        pipeline=MutationPipeline(mode),
        keep_backups=settings.keep_backups,
    )
    result = writer.patch(args.appid, savefiles, overrides)
    if not result.success:
        print(f"ERROR: {result.message}", file=sys.stderr)
        return 1

    print(result.message)
    if result.audit is not None and args.dry_run:
        for diff in result.audit.request.diffs:
            print(f"  {diff}")
    if result.backup_path:
        print(f"Backup: {result.backup_path}")
    return 0


def cmd_verify(args, settings: Settings) -> int:
    """Recompute a record's checksums and compare with the stored ones."""
    report = AppInfoFile.read(args.path).verify_record(args.appid)
    print(f"text   {'OK  ' if report.text_ok else 'FAIL'}  stored={report.text_stored}  computed={report.text_computed}")
    if report.binary_stored is not None:
        print(f"binary {'OK  ' if report.binary_ok else 'FAIL'}  stored={report.binary_stored}  computed={report.binary_computed}")
    return 0 if report.ok else 1


def cmd_backups(args, settings: Settings) -> int:
    """List backups of appinfo.vdf, newest first."""
    backups = BackupManager(settings.backup_dir).list_backups(args.path)
    if not backups:
        print("No backups")
    for path in backups:
        print(path)
    return 0


def cmd_restore(args, settings: Settings) -> int:
    """Copy a backup (latest by default) over appinfo.vdf."""
    op = BackupManager(settings.backup_dir).restore(args.path, args.backup)
    print(op.message, file=sys.stdout if op.success else sys.stderr)
    return 0 if op.success else 1


# ─────────────────────────────────────────────────────────────
# PARSER
# ─────────────────────────────────────────────────────────────

def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="ufs-patcher",
        description="Inspect and edit Steam Cloud save rules in appinfo.vdf.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="Close Steam before running set or restore.",
    )
    parser.add_argument("--appinfo", help="Path to appinfo.vdf (default: from Steam install)")
    parser.add_argument("--steam-path", help="Steam installation directory")
    parser.add_argument("--settings-dir", help=argparse.SUPPRESS)
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")

    sub = parser.add_subparsers(dest="command", help="Command to run")

    sub.add_parser("locate", help="Show the Steam and appinfo.vdf paths in use")

    p = sub.add_parser("show", help="Show an app's ufs config")
    p.add_argument("appid", type=int, help="Steam app id")
    p.add_argument("--format", choices=["table", "json", "text"],
                   default="table", help="Output format (default: table)")

    p = sub.add_parser("dump", help="Print the stored ufs section as VDF text")
    p.add_argument("appid", type=int, help="Steam app id")

    p = sub.add_parser("set", help="Replace an app's savefiles and rootoverrides")
    p.add_argument("appid", type=int, help="Steam app id")
    source = p.add_mutually_exclusive_group(required=True)
    source.add_argument("--rules", help="JSON file with savefiles / rootoverrides lists")
    source.add_argument("--text", help="ufs VDF text file")
    p.add_argument("--dry-run", action="store_true", help="Build and diff without writing")

    p = sub.add_parser("verify", help="Check a record's stored checksums")
    p.add_argument("appid", type=int, help="Steam app id")

    sub.add_parser("backups", help="List appinfo.vdf backups")

    p = sub.add_parser("restore", help="Restore appinfo.vdf from a backup")
    p.add_argument("--backup", help="Backup file (default: latest)")

    return parser


COMMANDS = {
    "locate": cmd_locate,
    "show": cmd_show,
    "dump": cmd_dump,
    "set": cmd_set,
    "verify": cmd_verify,
    "backups": cmd_backups,
    "restore": cmd_restore,
}


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        return 0

    manager = SettingsManager(Path(args.settings_dir) if args.settings_dir else None)
    settings = manager.load()
    level = logging.DEBUG if args.verbose else settings.log_level
    configure_logging(level, manager.log_path if settings.log_to_file else None)

    try:
        if args.command != "locate":
            args.path = resolve_appinfo(args.appinfo, args.steam_path or settings.steam_path)
        return COMMANDS[args.command](args, settings)
    except AppInfoError as e:
        print(f"ERROR: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
