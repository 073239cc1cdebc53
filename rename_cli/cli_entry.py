"""
cli_entry.py - CLI Entry Point

Supports:
- Command-line argument mode (apply / undo / check)
- Interactive mode
"""

import argparse
import logging
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, List, Optional, Sequence

from rename_core import (
    BulkRenameOperation,
    OverwriteMode,
    RenameError,
    RenameMapPair,
    RenameOptions,
    find_duplicate_targets,
    is_same_filesystem,
    load_pairs_file,
    load_undo_operation,
    preview_targets,
    save_journal,
)

from .cli_interactive import interactive_mode

logger = logging.getLogger(__name__)

MODE_CHOICES = [mode.value for mode in OverwriteMode]
PREVIEW_LIMIT = 20


def create_parser() -> argparse.ArgumentParser:
    """Create command-line argument parser"""
    parser = argparse.ArgumentParser(
        prog="bulk-rename",
        description="Reversible Bulk Rename Tool",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Interactive mode
  bulk-rename

  # Swap two files
  bulk-rename apply --pair a.txt b.txt --pair b.txt a.txt

  # Rename from a mapping file (one "source<TAB>target" per line, or JSON)
  bulk-rename apply --from-file renames.tsv --mode change-file-name

  # Undo a previous run
  bulk-rename undo ~/.bulk_rename/journal/rename_journal_20240101_120000_000000.json
"""
    )
    parser.add_argument("--verbose", "-v", action="store_true", help="Verbose logging")

    subparsers = parser.add_subparsers(dest="command", help="Subcommands")

    # apply subcommand
    apply_parser = subparsers.add_parser("apply", help="Execute renames")
    _add_pair_arguments(apply_parser)
    apply_parser.add_argument("--mode", "-m", choices=MODE_CHOICES, default=OverwriteMode.ERROR.value,
                              help="What to do when a target already exists")
    apply_parser.add_argument("--undo-mode", choices=MODE_CHOICES, default=OverwriteMode.ERROR.value,
                              help="Mode used to roll back after a failure")
    apply_parser.add_argument("--dry-run", "-d", action="store_true", help="Preview only, do not execute")
    apply_parser.add_argument("--yes", "-y", action="store_true", help="Skip confirmation")
    apply_parser.add_argument("--no-journal", action="store_true", help="Do not save an undo journal")
    apply_parser.add_argument("--journal-dir", type=str, help="Directory for undo journals")

    # undo subcommand
    undo_parser = subparsers.add_parser("undo", help="Undo a run recorded in a journal")
    undo_parser.add_argument("journal", type=str, help="Journal file")
    undo_parser.add_argument("--mode", "-m", choices=MODE_CHOICES, default=OverwriteMode.ERROR.value,
                             help="What to do when an original path is occupied")
    undo_parser.add_argument("--yes", "-y", action="store_true", help="Skip confirmation")

    # check subcommand
    check_parser = subparsers.add_parser("check", help="Check that every source exists")
    _add_pair_arguments(check_parser)

    return parser


def _add_pair_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("--pair", "-p", nargs=2, action="append", default=[],
                        metavar=("SRC", "DST"), help="Rename SRC to DST (repeatable)")
    parser.add_argument("--from-file", "-f", type=str, help="Mapping file with rename pairs")


def collect_pairs(args) -> List[RenameMapPair]:
    """Collect pairs from --from-file and --pair, in that order"""
    pairs: List[RenameMapPair] = []
    if args.from_file:
        pairs.extend(load_pairs_file(Path(args.from_file)))
    pairs.extend(RenameMapPair.of(src, dst) for src, dst in args.pair)
    return pairs


def print_preview(pairs: Sequence[RenameMapPair], mode: OverwriteMode) -> None:
    """Show the renames that would be performed"""
    finals = preview_targets(pairs, mode)

    print(f"Will perform {len(pairs)} rename operations:")
    print("-" * 80)
    for pair, final in list(zip(pairs, finals))[:PREVIEW_LIMIT]:
        note = f" (as {final.name})" if final != pair.target else ""
        print(f"  {str(pair.source):<40} -> {pair.target}{note}")
    if len(pairs) > PREVIEW_LIMIT:
        print(f"  ... and {len(pairs) - PREVIEW_LIMIT} more operations")
    print("-" * 80)

    warnings = [
        f"{len(sources)} sources share the target {target}"
        for target, sources in find_duplicate_targets(pairs).items()
    ]
    warnings.extend(
        f"{pair.source} and {pair.target} are on different filesystems, the move may fail"
        for pair in pairs
        if pair.source.exists() and not is_same_filesystem(pair.source, pair.target)
    )
    if warnings:
        print("Warnings:")
        for warn in warnings:
            print(f"  - {warn}")


def confirm(prompt: str = "Confirm execution?") -> bool:
    answer = input(f"\n{prompt} (y/N): ").strip().lower()
    return answer == 'y'


@dataclass
class RecoveryFailure:
    """A failed run and how far its rollback got"""
    error: RenameError
    status: str
    # (current_location, original_location) of entries still away from home, None once rolled back
    leftover: Optional[List[RenameMapPair]] = None

    @property
    def interrupted(self) -> bool:
        return self.leftover is not None

    def summary(self) -> str:
        return f"{self.error}\n{self.status}"


def execute_with_recovery(
    operation: BulkRenameOperation,
    mode: OverwriteMode,
    undo_mode: OverwriteMode = OverwriteMode.ERROR,
    progress_callback: Optional[Callable[[int, int, str], None]] = None,
) -> Optional[RecoveryFailure]:
    """
    Execute an operation, rolling back through its undo operation on failure

    Returns:
        None on success, otherwise the failure and whether the rollback
        restored the original state
    """
    try:
        operation.execute(mode, progress_callback=progress_callback)
        return None
    except RenameError as e:
        error = e

    undo = operation.undo()
    if undo is None:
        return RecoveryFailure(
            error,
            "Rename is interrupted: overwritten entries cannot be restored",
            operation.remaining_locations(),
        )

    try:
        undo.execute(undo_mode)
    except RenameError as undo_error:
        logger.error("Rollback failed: %s", undo_error)
        return RecoveryFailure(error, f"Rename is interrupted: {undo_error}", undo.pending_pairs())
    return RecoveryFailure(error, "Rename is not applied")


def write_journal(operation: BulkRenameOperation, options: RenameOptions, **kwargs) -> Optional[Path]:
    """Save a journal, warning instead of failing when it cannot be written"""
    try:
        return save_journal(operation, options.journal_dir, options.overwrite_mode, **kwargs)
    except OSError as e:
        logger.warning("Could not save journal to %s: %s", options.journal_dir, e)
        print(f"Warning: no undo journal saved: {e}")
        return None


def report_failure(operation: BulkRenameOperation, failure: RecoveryFailure, options: RenameOptions) -> None:
    """Print a failed run; an interrupted one also gets a recovery journal"""
    print("Failed to rename")
    print(failure.summary())
    if not failure.interrupted:
        return

    if failure.leftover:
        print("Entries left behind:")
        for entry in failure.leftover:
            print(f"  {entry.source} (was {entry.target})")
    if options.journal:
        journal_file = write_journal(operation, options, error=failure.error, undo_pairs=failure.leftover)
        if journal_file:
            print(f"Recovery journal: {journal_file}")


def run_pairs(pairs: Sequence[RenameMapPair], options: RenameOptions) -> int:
    """Execute pairs, then save the undo journal"""
    operation = BulkRenameOperation(pairs, temp_prefix=options.temp_prefix)

    print("\nExecuting...")
    failure = execute_with_recovery(operation, options.overwrite_mode, options.undo_mode)
    if failure:
        report_failure(operation, failure, options)
        return 1

    print(f"Renamed {len(pairs)} entries")
    if options.journal:
        journal_file = write_journal(operation, options)
        if operation.undo() is None:
            print("Note: existing entries were overwritten, this run cannot be undone")
        elif journal_file:
            print(f"Undo journal: {journal_file}")
    return 0


def cmd_apply(args) -> int:
    """Handle apply command"""
    try:
        pairs = collect_pairs(args)
    except (OSError, ValueError) as e:
        print(f"Error: {e}")
        return 1

    if not pairs:
        print("No rename pairs given")
        return 0

    options = RenameOptions(
        overwrite_mode=OverwriteMode(args.mode),
        undo_mode=OverwriteMode(args.undo_mode),
        dry_run=args.dry_run,
        journal=not args.no_journal,
    )
    if args.journal_dir:
        options.journal_dir = Path(args.journal_dir)

    print_preview(pairs, options.overwrite_mode)

    if options.dry_run:
        print("\n[Preview mode] Will not actually execute")
        return 0

    if not args.yes and not confirm():
        print("Cancelled")
        return 0

    return run_pairs(pairs, options)


def cmd_undo(args) -> int:
    """Handle undo command"""
    try:
        operation = load_undo_operation(Path(args.journal))
    except (OSError, ValueError) as e:
        print(f"Error: {e}")
        return 1

    if operation is None:
        print("This run overwrote existing entries and cannot be undone")
        return 1

    print_preview(operation.pairs, OverwriteMode(args.mode))
    if not args.yes and not confirm("Confirm undo?"):
        print("Cancelled")
        return 0

    try:
        operation.execute(OverwriteMode(args.mode))
    except RenameError as e:
        print(f"Error: {e}")
        return 1

    print(f"Restored {len(operation.pairs)} entries")
    return 0


def cmd_check(args) -> int:
    """Handle check command"""
    try:
        pairs = collect_pairs(args)
    except (OSError, ValueError) as e:
        print(f"Error: {e}")
        return 1

    try:
        BulkRenameOperation(pairs).check_sources_exist()
    except RenameError as e:
        print(f"Error: {e}")
        return 1

    print(f"All {len(pairs)} sources exist")
    return 0


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Main entry point"""
    parser = create_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    if args.command is None:
        # No subcommand, enter interactive mode
        return interactive_mode()

    # Handle subcommands
    if args.command == "apply":
        return cmd_apply(args)
    elif args.command == "undo":
        return cmd_undo(args)
    elif args.command == "check":
        return cmd_check(args)
    else:
        parser.print_help()
        return 1


if __name__ == "__main__":
    sys.exit(main())
