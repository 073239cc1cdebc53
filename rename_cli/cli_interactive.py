"""
cli_interactive.py - Interactive CLI

Provides a menu-style interactive interface
"""

from pathlib import Path
from typing import List, Optional

from rename_core import (
    BulkRenameOperation,
    OverwriteMode,
    RenameError,
    RenameMapPair,
    RenameOptions,
    load_pairs_file,
    load_undo_operation,
)


MODE_MENU = {
    "1": OverwriteMode.ERROR,
    "2": OverwriteMode.CHANGE_FILE_NAME,
    "3": OverwriteMode.OVERWRITE,
}


def print_header(title: str):
    """Print header"""
    print()
    print("=" * 60)
    print(f"  {title}")
    print("=" * 60)
    print()


def input_choice(prompt: str, choices: List[str], default: Optional[str] = None) -> Optional[str]:
    """Input choice"""
    choices_str = "/".join(choices)
    default_str = f" [{default}]" if default else ""

    while True:
        value = input(f"{prompt} ({choices_str}){default_str}: ").strip()
        if not value and default:
            return default
        if value.lower() == 'q':
            return None
        if value in choices:
            return value
        print(f"Invalid choice, please enter: {choices_str}")


def input_bool(prompt: str, default: bool = False) -> bool:
    """Input boolean value"""
    default_str = "Y/n" if default else "y/N"
    value = input(f"{prompt} ({default_str}): ").strip().lower()
    if not value:
        return default
    return value == 'y'


def input_pairs() -> List[RenameMapPair]:
    """Read "source -> target" lines until an empty line"""
    print("Enter one rename per line as: source -> target")
    print("Finish with an empty line")
    pairs = []
    while True:
        line = input("> ").strip()
        if not line:
            return pairs
        if " -> " not in line:
            print("Invalid line, expected: source -> target")
            continue
        src, dst = (part.strip() for part in line.split(" -> ", 1))
        pairs.append(RenameMapPair(Path(src).expanduser(), Path(dst).expanduser()))


def input_mode() -> Optional[OverwriteMode]:
    """Select overwrite mode"""
    print("\nWhen a target already exists:")
    print("  1. error            - Stop and roll back")
    print("  2. change-file-name - Prefix the new name with _")
    print("  3. overwrite        - Replace it (cannot be undone)")
    choice = input_choice("Select mode", list(MODE_MENU), "1")
    if choice is None:
        return None
    return MODE_MENU[choice]


def rename_pairs(pairs: List[RenameMapPair]) -> None:
    """Preview, confirm and execute pairs, then offer an immediate undo"""
    from .cli_entry import execute_with_recovery, print_preview, report_failure

    if not pairs:
        print("No rename pairs given")
        return

    mode = input_mode()
    if mode is None:
        return

    options = RenameOptions(overwrite_mode=mode)
    print()
    print_preview(pairs, options.overwrite_mode)

    print()
    if not input_bool("Confirm execution", default=False):
        print("Cancelled")
        return

    print("\nExecuting...")
    operation = BulkRenameOperation(pairs, temp_prefix=options.temp_prefix)
    failure = execute_with_recovery(operation, options.overwrite_mode, options.undo_mode)
    if failure:
        report_failure(operation, failure, options)
        return
    print(f"Renamed {len(pairs)} entries")

    undo = operation.undo()
    if undo is None:
        print("Note: existing entries were overwritten, this run cannot be undone")
        return
    if input_bool("Undo now", default=False):
        try:
            undo.execute(options.undo_mode)
            print("Rename is not applied")
        except RenameError as e:
            print(f"Rename is interrupted: {e}")


def menu_from_file():
    """Rename from mapping file menu"""
    print_header("Rename From Mapping File")

    path_str = input("Mapping file path (q to return): ").strip()
    if not path_str or path_str.lower() == 'q':
        return

    try:
        pairs = load_pairs_file(Path(path_str).expanduser())
    except (OSError, ValueError) as e:
        print(f"Error: {e}")
        return

    print(f"Loaded {len(pairs)} pairs")
    rename_pairs(pairs)


def menu_manual():
    """Manual pair entry menu"""
    print_header("Enter Rename Pairs")
    rename_pairs(input_pairs())


def menu_undo_journal():
    """Undo from journal menu"""
    print_header("Undo From Journal")

    path_str = input("Journal file path (q to return): ").strip()
    if not path_str or path_str.lower() == 'q':
        return

    try:
        operation: Optional[BulkRenameOperation] = load_undo_operation(Path(path_str).expanduser())
    except (OSError, ValueError) as e:
        print(f"Error: {e}")
        return

    if operation is None:
        print("This run overwrote existing entries and cannot be undone")
        return

    print(f"Will restore {len(operation.pairs)} entries")
    if not input_bool("Confirm undo", default=False):
        print("Cancelled")
        return

    options = RenameOptions()
    try:
        operation.execute(options.undo_mode)
    except RenameError as e:
        print(f"Error: {e}")
        return
    print(f"Restored {len(operation.pairs)} entries")


def interactive_mode() -> int:
    """Interactive mode main loop"""
    while True:
        print_header("Bulk Rename Tool")

        print("Please select function:")
        print()
        print("  1. Rename from mapping file")
        print("  2. Enter rename pairs")
        print("  3. Undo from journal")
        print()
        print("  q. Exit")
        print()

        choice = input("Please select (1/2/3/q): ").strip().lower()

        if choice == 'q':
            print("Goodbye!")
            return 0
        elif choice == '1':
            menu_from_file()
        elif choice == '2':
            menu_manual()
        elif choice == '3':
            menu_undo_journal()
        else:
            print("Invalid choice")
