#!/usr/bin/env python3
"""
backup_tool.py - Back up and restore Pragmatica progress from the command line.

Works on the same progress database the app uses.

Usage:
  python scripts/backup_tool.py encode
  python scripts/backup_tool.py encode --output backup.txt --max-bytes 2800
  python scripts/backup_tool.py restore --input backup.txt
  python scripts/backup_tool.py export --output pragmatica-progress.json
  python scripts/backup_tool.py import --input pragmatica-progress.json
"""

import argparse
import logging
import sys
from pathlib import Path

PROJECT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

from pragmatica.backup import encode_backup, export_progress_file, import_progress_file, restore_backup
from pragmatica.classroom import CurriculumLoader, ProgressPersistence, SqliteStorage
from pragmatica.config import configure_logging, load_settings
from pragmatica.errors import CurriculumError

logger = logging.getLogger(__name__)


# -----------------------------------------------------------------------------
# Commands
# -----------------------------------------------------------------------------

def cmd_encode(persistence: ProgressPersistence, args) -> int:
    store = persistence.load().store
    result = encode_backup(store, max_bytes=args.max_bytes)
    if not result.ok:
        logger.error(result.message)
        return 1

    if args.output:
        args.output.write_text(result.text, encoding="utf-8")
        logger.info(f"Wrote {result.size} byte backup to {args.output}")
    else:
        print(result.text)
    return 0


def cmd_restore(persistence: ProgressPersistence, args) -> int:
    text = read_input(args.input)
    store = persistence.load().store
    result = restore_backup(store, text.strip())
    if not result.ok:
        logger.error(result.message)
        return 1

    outcome = persistence.save(store)
    if not outcome.ok:
        logger.error(outcome.warning)
        return 1
    logger.info(f"Restored {', '.join(result.restored)}")
    return 0


def cmd_export(persistence: ProgressPersistence, args) -> int:
    store = persistence.load().store
    text = export_progress_file(store)
    if args.output:
        args.output.write_text(text, encoding="utf-8")
        logger.info(f"Exported progress to {args.output}")
    else:
        print(text)
    return 0


def cmd_import(persistence: ProgressPersistence, args) -> int:
    text = read_input(args.input)
    store = persistence.load().store
    result = import_progress_file(store, text)
    if not result.ok:
        logger.error(result.message)
        return 1

    outcome = persistence.save(store)
    if not outcome.ok:
        logger.error(outcome.warning)
        return 1
    logger.info(result.message)
    return 0


def read_input(path: Path | None) -> str:
    if path is None:
        return sys.stdin.read()
    return path.read_text(encoding="utf-8", errors="replace")


COMMANDS = {
    "encode": cmd_encode,
    "restore": cmd_restore,
    "export": cmd_export,
    "import": cmd_import,
}


# -----------------------------------------------------------------------------
# Main
# -----------------------------------------------------------------------------

def main():
    settings = load_settings()
    configure_logging(settings)

    parser = argparse.ArgumentParser(
        description="Back up and restore Pragmatica progress",
        formatter_class=argparse.RawDescriptionHelpFormatter
    )
    parser.add_argument(
        "command",
        choices=sorted(COMMANDS),
        help="encode/restore a QR backup string, export/import a progress file"
    )
    parser.add_argument(
        "--db",
        type=Path,
        default=settings.db_path,
        help="Progress database path"
    )
    parser.add_argument(
        "--curriculum",
        type=Path,
        default=settings.curriculum_path,
        help="Curriculum YAML path"
    )
    parser.add_argument(
        "--input",
        type=Path,
        default=None,
        help="Input file (default: stdin)"
    )
    parser.add_argument(
        "--output",
        type=Path,
        default=None,
        help="Output file (default: stdout)"
    )
    parser.add_argument(
        "--max-bytes",
        type=int,
        default=settings.backup_max_bytes,
        help="Backup size ceiling in bytes"
    )

    args = parser.parse_args()

    try:
        curriculum = CurriculumLoader(args.curriculum).load()
    except (FileNotFoundError, CurriculumError) as exc:
        logger.error(f"Cannot load curriculum: {exc}")
        sys.exit(1)

    persistence = ProgressPersistence(SqliteStorage(args.db), curriculum, settings.limits)
    sys.exit(COMMANDS[args.command](persistence, args))


if __name__ == "__main__":
    main()
