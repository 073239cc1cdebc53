"""
errors.py - Rename Error Definitions

All failures raised by the rename engine derive from RenameError.
"""

from pathlib import Path
from typing import List, Optional, Sequence

from .models_fs import RenameMapPair


class RenameError(Exception):
    """Base class of rename engine failures"""


class ExecutedError(RenameError):
    """The operation has already been executed"""

    def __init__(self) -> None:
        super().__init__("Already Executed")


class SourceFileNotFoundError(RenameError):
    """One or more source paths do not exist"""

    def __init__(self, pairs: Sequence[RenameMapPair]) -> None:
        self.pairs: List[RenameMapPair] = list(pairs)
        sources = ", ".join(str(pair.source) for pair in self.pairs)
        super().__init__(f"Source Not Found: {sources}")


class TargetFileAlreadyExistsError(RenameError):
    """Target exists and the overwrite mode is ERROR"""

    def __init__(self, pair: RenameMapPair) -> None:
        self.pair = pair
        super().__init__(f"Target File Already Exists: {pair.target}")


class TargetDirectoryNotWritableError(RenameError):
    """A temporary entry could not be created in the target's directory"""

    def __init__(self, pair: RenameMapPair, cause: OSError) -> None:
        self.pair = pair
        self.cause = cause
        super().__init__(f"Target Directory Not Writable: {pair.target}")


class RenameIOError(RenameError):
    """Filesystem failure while staging or committing a pair"""

    def __init__(self, pair: RenameMapPair, cause: OSError) -> None:
        self.pair = pair
        self.cause = cause
        super().__init__(f"IO Error: {pair.source} -> {pair.target}")


class IllegalOperationError(RenameError):
    """A path has no file name or no parent directory"""

    def __init__(self, path: Optional[Path] = None) -> None:
        self.path = path
        super().__init__("Illegal Format")
