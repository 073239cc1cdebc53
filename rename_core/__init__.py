"""
rename_core - Bulk Rename Engine

Executes many renames as one logical, reversible operation: staging through
temporary names, collision policies and an undo ledger.
"""

from .models_fs import (
    RenameMapPair,
    OverwriteMode,
    OperationPhase,
    UndoState,
    NotExecuted,
    InProgress,
    Reversible,
    Irreversible,
    RenameOptions,
)

from .errors import (
    RenameError,
    ExecutedError,
    SourceFileNotFoundError,
    TargetFileAlreadyExistsError,
    TargetDirectoryNotWritableError,
    RenameIOError,
    IllegalOperationError,
)

from .safety_checks import (
    resolve_nonconflicting,
    check_sources_exist,
    find_duplicate_targets,
    preview_targets,
    is_same_filesystem,
)

from .plan_rename import (
    pairs_from_names,
    load_pairs_file,
)

from .exec_rename import (
    BulkRenameOperation,
    UndoLedger,
    save_journal,
    load_undo_operation,
)

__all__ = [
    # Data models
    "RenameMapPair",
    "OverwriteMode",
    "OperationPhase",
    "UndoState",
    "NotExecuted",
    "InProgress",
    "Reversible",
    "Irreversible",
    "RenameOptions",

    # Errors
    "RenameError",
    "ExecutedError",
    "SourceFileNotFoundError",
    "TargetFileAlreadyExistsError",
    "TargetDirectoryNotWritableError",
    "RenameIOError",
    "IllegalOperationError",

    # Safety checks
    "resolve_nonconflicting",
    "check_sources_exist",
    "find_duplicate_targets",
    "preview_targets",
    "is_same_filesystem",

    # Planning
    "pairs_from_names",
    "load_pairs_file",

    # Execution
    "BulkRenameOperation",
    "UndoLedger",
    "save_journal",
    "load_undo_operation",
]
