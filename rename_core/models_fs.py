"""
models_fs.py - Core Data Structure Definitions

Contains:
- RenameMapPair: Single (source, target) mapping
- OverwriteMode: Target collision policy
- UndoState: Reversibility record (NotExecuted / InProgress / Reversible / Irreversible)
- OperationPhase: Execution state machine
- RenameOptions: Rename options configuration
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterator, List, Tuple, Union
from enum import Enum
import os


PathLike = Union[str, "os.PathLike[str]"]

DEFAULT_TEMP_PREFIX = ".__tmp_rename__"
JOURNAL_DIR_ENV = "BULK_RENAME_JOURNAL_DIR"


class OverwriteMode(Enum):
    """Policy applied when a final target path already exists"""
    CHANGE_FILE_NAME = "change-file-name"  # Prefix with _, __, ___...
    OVERWRITE = "overwrite"                # Replace (makes the run irreversible)
    ERROR = "error"                        # Abort with TargetFileAlreadyExistsError


class OperationPhase(Enum):
    """Execution phase of a BulkRenameOperation"""
    CREATED = "created"
    VALIDATED = "validated"
    STAGING = "staging"
    COMMITTING = "committing"
    COMPLETED = "completed"
    FAILED = "failed"


@dataclass(frozen=True)
class RenameMapPair:
    """Single rename mapping: source path -> target path"""
    source: Path
    target: Path

    @classmethod
    def of(cls, source: PathLike, target: PathLike) -> "RenameMapPair":
        """Create pair from any path-like values"""
        return cls(Path(source), Path(target))

    def __iter__(self) -> Iterator[Path]:
        # Allows `source, target = pair`
        yield self.source
        yield self.target

    def swapped(self) -> "RenameMapPair":
        return RenameMapPair(self.target, self.source)

    def __str__(self) -> str:
        return f"{self.source} -> {self.target}"


def as_pair(value: Union[RenameMapPair, Tuple[PathLike, PathLike]]) -> RenameMapPair:
    """Coerce a 2-tuple into a RenameMapPair"""
    if isinstance(value, RenameMapPair):
        return value
    source, target = value
    return RenameMapPair.of(source, target)


class UndoState:
    """Base class of the reversibility record"""

    reversible = False

    @property
    def pairs(self) -> List[RenameMapPair]:
        return []


@dataclass
class NotExecuted(UndoState):
    """execute() has never run"""


@dataclass
class InProgress(UndoState):
    """
    Execution started but did not complete

    Each entry is (current_location, original_location). Entries for pairs that
    were only staged point at their temporary path.
    """
    entries: List[RenameMapPair] = field(default_factory=list)

    @property
    def pairs(self) -> List[RenameMapPair]:
        return list(self.entries)


@dataclass
class Reversible(UndoState):
    """Execution completed, one entry per input pair"""
    entries: List[RenameMapPair] = field(default_factory=list)
    reversible = True

    @property
    def pairs(self) -> List[RenameMapPair]:
        return list(self.entries)


@dataclass
class Irreversible(UndoState):
    """A pre-existing entry was overwritten; the prior state cannot be restored"""


def _default_journal_dir() -> Path:
    env = os.environ.get(JOURNAL_DIR_ENV)
    if env:
        return Path(env).expanduser()
    return Path.home() / ".bulk_rename" / "journal"


@dataclass
class RenameOptions:
    """Rename options configuration"""
    # Collision handling
    overwrite_mode: OverwriteMode = OverwriteMode.ERROR
    # Policy used when replaying an undo operation (original paths should be free again)
    undo_mode: OverwriteMode = OverwriteMode.ERROR

    # Execution options
    dry_run: bool = False           # Preview only, do not actually execute
    journal: bool = True            # Whether to save an undo journal
    journal_dir: Path = field(default_factory=_default_journal_dir)

    # Prefix of staged temporary entries
    temp_prefix: str = DEFAULT_TEMP_PREFIX
