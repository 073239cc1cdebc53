"""
exec_rename.py - Rename Execution Module

Responsibilities:
- Two-phase execution (stage every source under a temporary name in the
  target's directory, then commit each one to its final name)
- Overwrite policy handling and the undo ledger
- Undo journal (JSON) for replaying the reverse operation later
"""

from pathlib import Path
from typing import Callable, Iterable, List, Optional, Sequence, Tuple, Union
from datetime import datetime
import json
import logging
import os
import shutil
import tempfile

from .errors import (
    ExecutedError,
    IllegalOperationError,
    RenameError,
    RenameIOError,
    TargetDirectoryNotWritableError,
    TargetFileAlreadyExistsError,
)
from .models_fs import (
    DEFAULT_TEMP_PREFIX,
    InProgress,
    Irreversible,
    NotExecuted,
    OperationPhase,
    OverwriteMode,
    PathLike,
    RenameMapPair,
    Reversible,
    UndoState,
    as_pair,
)
from .safety_checks import check_sources_exist, resolve_nonconflicting

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[int, int, str], None]
PairLike = Union[RenameMapPair, Tuple[PathLike, PathLike]]

# Characters of the target name kept in a temporary name
TEMP_NAME_HINT = 32


class UndoLedger:
    """
    Tracks where every processed entry currently lives

    Entries are (current_location, original_location). Once marked
    irreversible the ledger stays irreversible and ignores further updates.
    `locations` keeps following the entries either way, so whatever is left
    of an interrupted run can still be found.
    """

    def __init__(self) -> None:
        self.state: UndoState = NotExecuted()
        self.locations: List[RenameMapPair] = []
        self.committed = 0

    def begin(self) -> None:
        self.state = InProgress()
        self.locations = []
        self.committed = 0

    def stage(self, temp_path: Path, original: Path) -> None:
        self.locations.append(RenameMapPair(temp_path, original))
        if isinstance(self.state, InProgress):
            self.state.entries.append(RenameMapPair(temp_path, original))

    def commit(self, index: int, final_path: Path) -> None:
        self.locations[index] = RenameMapPair(final_path, self.locations[index].target)
        self.committed = index + 1
        if isinstance(self.state, InProgress):
            original = self.state.entries[index].target
            self.state.entries[index] = RenameMapPair(final_path, original)

    def mark_irreversible(self) -> None:
        self.state = Irreversible()

    def complete(self) -> None:
        if isinstance(self.state, InProgress):
            self.state = Reversible(self.state.entries)


class BulkRenameOperation:
    """
    A set of renames executed as one logical, reversible operation

    Every source is first moved to a unique temporary entry inside its
    target's directory, so overlapping and cyclic mappings (a -> b, b -> a)
    never clobber each other, and the final step is a same-directory rename.
    """

    def __init__(self, pairs: Iterable[PairLike], temp_prefix: str = DEFAULT_TEMP_PREFIX) -> None:
        self.pairs: List[RenameMapPair] = [as_pair(p) for p in pairs]
        self.temp_prefix = temp_prefix
        self.phase = OperationPhase.CREATED
        self._ledger = UndoLedger()

    def __repr__(self) -> str:
        return f"BulkRenameOperation(pairs={len(self.pairs)}, phase={self.phase.value}, undo={self._ledger.state!r})"

    @property
    def undo_state(self) -> UndoState:
        return self._ledger.state

    def check_sources_exist(self) -> None:
        """Raise SourceFileNotFoundError listing every missing source"""
        check_sources_exist(self.pairs)

    def execute(
        self,
        mode: OverwriteMode = OverwriteMode.ERROR,
        progress_callback: Optional[ProgressCallback] = None,
    ) -> None:
        """
        Execute all renames

        Args:
            mode: Policy for final targets that already exist
            progress_callback: Progress callback (current, total, message)

        Raises:
            ExecutedError: The operation has already been executed
            RenameError: Validation, staging or commit failure. Pairs processed
                before the failure stay where they are; use undo() to restore.
        """
        if self.phase is not OperationPhase.CREATED:
            raise ExecutedError()

        self._ledger.begin()
        logger.info("Executing %d rename(s) with mode %s", len(self.pairs), mode.value)
        try:
            self.check_sources_exist()
            self.phase = OperationPhase.VALIDATED

            self.phase = OperationPhase.STAGING
            temp_paths = self._stage_all(progress_callback)

            self.phase = OperationPhase.COMMITTING
            self._commit_all(temp_paths, mode, progress_callback)
        except Exception as e:
            self.phase = OperationPhase.FAILED
            logger.error("Rename failed: %s", e)
            raise

        self._ledger.complete()
        self.phase = OperationPhase.COMPLETED
        logger.info("Renamed %d entries", len(self.pairs))

    def undo(self) -> Optional["BulkRenameOperation"]:
        """
        Build the operation that restores the state before execute()

        Returns:
            A new, independent operation mapping each entry's current location
            back to its original one, or None if an overwrite made this run
            irreversible
        """
        state = self._ledger.state
        if isinstance(state, Irreversible):
            return None
        return BulkRenameOperation(state.pairs, temp_prefix=self.temp_prefix)

    def pending_pairs(self) -> List[RenameMapPair]:
        """
        Pairs that were not committed, each starting from where its entry is now

        Staged entries start from their temporary path. Entries that no longer
        exist are left out.
        """
        locations = self._ledger.locations
        committed = self._ledger.committed
        pending = []
        for i in range(committed, len(self.pairs)):
            current = locations[i].source if i < len(locations) else self.pairs[i].source
            if os.path.lexists(current):
                pending.append(RenameMapPair(current, self.pairs[i].target))
        return pending

    def remaining_locations(self) -> List[RenameMapPair]:
        """(current_location, original_location) of every moved entry that still exists"""
        return [entry for entry in self._ledger.locations if os.path.lexists(entry.source)]

    # Phase 1: Move every source to a temporary name
    def _stage_all(self, progress_callback: Optional[ProgressCallback]) -> List[Path]:
        total = len(self.pairs) * 2
        temp_paths: List[Path] = []
        for i, pair in enumerate(self.pairs):
            if progress_callback:
                progress_callback(i + 1, total, f"[Phase 1] {pair.source.name} -> temp name")

            temp_path = self._stage_pair(pair)
            self._ledger.stage(temp_path, pair.source)
            temp_paths.append(temp_path)
        return temp_paths

    def _stage_pair(self, pair: RenameMapPair) -> Path:
        if not pair.target.name:
            raise IllegalOperationError(pair.target)
        target_parent = pair.target.parent

        # Only a short hint of the target name, the full one may already be near NAME_MAX
        hint = pair.target.name[:TEMP_NAME_HINT]
        try:
            fd, temp_name = tempfile.mkstemp(prefix=f"{self.temp_prefix}{hint}.", dir=target_parent)
        except OSError as e:
            raise TargetDirectoryNotWritableError(pair, e) from e
        os.close(fd)
        temp_path = Path(temp_name)

        try:
            if not pair.source.is_file():
                # A directory cannot replace the placeholder file
                os.remove(temp_path)
            os.replace(pair.source, temp_path)
        except OSError as e:
            _discard_placeholder(temp_path)
            raise RenameIOError(pair, e) from e

        logger.debug("Staged %s as %s", pair.source, temp_path)
        return temp_path

    # Phase 2: Move temporary names to final names
    def _commit_all(
        self,
        temp_paths: List[Path],
        mode: OverwriteMode,
        progress_callback: Optional[ProgressCallback],
    ) -> None:
        n = len(self.pairs)
        for i, (pair, temp_path) in enumerate(zip(self.pairs, temp_paths)):
            if progress_callback:
                progress_callback(n + i + 1, n * 2, f"[Phase 2] temp name -> {pair.target.name}")

            final_path = self._resolve_final_path(pair, mode)
            self._commit_pair(pair, temp_path, final_path)
            self._ledger.commit(i, final_path)

    def _resolve_final_path(self, pair: RenameMapPair, mode: OverwriteMode) -> Path:
        if mode is OverwriteMode.CHANGE_FILE_NAME:
            return resolve_nonconflicting(pair.target)

        if mode is OverwriteMode.OVERWRITE:
            return pair.target

        if pair.target.exists():
            raise TargetFileAlreadyExistsError(pair)
        return pair.target

    def _commit_pair(self, pair: RenameMapPair, temp_path: Path, final_path: Path) -> None:
        try:
            if not os.path.lexists(final_path):
                os.replace(temp_path, final_path)
            elif temp_path.is_file() and final_path.is_file():
                # Atomic: the old file is only gone once the replace succeeded
                os.replace(temp_path, final_path)
                self._overwritten(final_path)
            else:
                # Only a file can be renamed over a file
                if final_path.is_dir() and not final_path.is_symlink():
                    # rmtree can stop halfway through the tree
                    self._overwritten(final_path)
                    shutil.rmtree(final_path)
                else:
                    os.remove(final_path)
                    self._overwritten(final_path)
                os.replace(temp_path, final_path)
        except OSError as e:
            raise RenameIOError(pair, e) from e

        logger.debug("Committed %s as %s", pair.source, final_path)

    def _overwritten(self, path: Path) -> None:
        logger.warning("Overwriting %s; this rename can no longer be undone", path)
        self._ledger.mark_irreversible()


def _discard_placeholder(temp_path: Path) -> None:
    """Remove a leftover placeholder after a failed staging move"""
    try:
        if temp_path.is_file():
            os.remove(temp_path)
    except OSError as e:
        logger.warning("Could not remove temporary file %s: %s", temp_path, e)


def save_journal(
    operation: BulkRenameOperation,
    log_dir: Path,
    mode: OverwriteMode,
    error: Optional[RenameError] = None,
    undo_pairs: Optional[Sequence[RenameMapPair]] = None,
) -> Path:
    """
    Save the undo journal of an executed operation

    Args:
        operation: Executed (or failed) operation
        log_dir: Log directory
        mode: Overwrite mode the operation ran with
        error: Error that interrupted the operation, if any
        undo_pairs: Recorded as the undo instead of operation.undo(), for
            runs whose rollback was itself interrupted

    Returns:
        Path of the journal file
    """
    log_dir = Path(log_dir)
    log_dir.mkdir(parents=True, exist_ok=True)

    timestamp = datetime.now().strftime("%Y%m%d_%H%M%S_%f")
    log_file = log_dir / f"rename_journal_{timestamp}.json"

    if undo_pairs is None:
        undo = operation.undo()
        undo_pairs = None if undo is None else undo.pairs
    data = {
        "timestamp": timestamp,
        "mode": mode.value,
        "phase": operation.phase.value,
        "error": str(error) if error else None,
        "pairs": [
            {"src": str(pair.source), "dst": str(pair.target)}
            for pair in operation.pairs
        ],
        "undo": None if undo_pairs is None else [
            {"current": str(pair.source), "original": str(pair.target)}
            for pair in undo_pairs
        ],
    }

    with open(log_file, 'w', encoding='utf-8') as f:
        json.dump(data, f, ensure_ascii=False, indent=2)

    logger.info("Saved rename journal to %s", log_file)
    return log_file


def load_undo_operation(journal_file: Path) -> Optional[BulkRenameOperation]:
    """
    Rebuild the undo operation stored in a journal

    Returns:
        The undo operation, or None if the journaled run was irreversible

    Raises:
        ValueError: The file is not a rename journal
    """
    with open(journal_file, 'r', encoding='utf-8') as f:
        data = json.load(f)

    if not isinstance(data, dict) or "undo" not in data:
        raise ValueError(f"Not a rename journal: {journal_file}")

    if data["undo"] is None:
        return None
    return BulkRenameOperation(
        (entry["current"], entry["original"]) for entry in data["undo"]
    )
