"""
safety_checks.py - Safety Check Module

Provides the checks run before or during a bulk rename:
- Source existence preflight
- Collision-free target resolution
- Duplicate target / cross-device detection for previews
"""

from collections import defaultdict
from itertools import count
from pathlib import Path
from typing import Dict, Iterable, List
import logging
import os

from .errors import IllegalOperationError, SourceFileNotFoundError
from .models_fs import OverwriteMode, RenameMapPair

logger = logging.getLogger(__name__)


def resolve_nonconflicting(target: Path) -> Path:
    """
    Find a target path that does not exist yet

    Candidates are built by prefixing the file name with "_", "__", "___"...
    in the same directory; the first one that does not exist wins.

    Args:
        target: Desired target path

    Returns:
        target itself if free, otherwise the first free candidate

    Raises:
        IllegalOperationError: target has no file name component
    """
    target = Path(target)
    if not target.exists():
        return target

    name = target.name
    if not name:
        raise IllegalOperationError(target)

    for n in count(1):
        candidate = target.with_name("_" * n + name)
        if not candidate.exists():
            logger.debug("Collision on %s, using %s", target, candidate)
            return candidate


def check_sources_exist(pairs: Iterable[RenameMapPair]) -> None:
    """
    Check that every source path exists

    Raises:
        SourceFileNotFoundError: listing every pair whose source is missing
    """
    missing = [pair for pair in pairs if not pair.source.exists()]
    if missing:
        logger.info("%d source path(s) not found", len(missing))
        raise SourceFileNotFoundError(missing)


def find_duplicate_targets(pairs: Iterable[RenameMapPair]) -> Dict[Path, List[Path]]:
    """
    Find targets requested by more than one pair

    Returns:
        {target: [sources...]} for every target that appears more than once
    """
    by_target: Dict[Path, List[Path]] = defaultdict(list)
    for pair in pairs:
        by_target[pair.target].append(pair.source)
    return {target: sources for target, sources in by_target.items() if len(sources) > 1}


def preview_targets(pairs: Iterable[RenameMapPair], mode: OverwriteMode) -> List[Path]:
    """
    Compute the final path each pair would get against the current filesystem

    Informational only: sources staged away during execution free their names,
    so the real run may pick a less-prefixed name under CHANGE_FILE_NAME.
    """
    pairs = list(pairs)
    # Sources are moved away before commit, so their names count as free
    source_paths = {pair.source for pair in pairs}

    result = []
    for pair in pairs:
        if mode is OverwriteMode.CHANGE_FILE_NAME and pair.target not in source_paths:
            result.append(resolve_nonconflicting(pair.target))
        else:
            result.append(pair.target)
    return result


def is_same_filesystem(path1: Path, path2: Path) -> bool:
    """
    Check if two paths are on the same filesystem

    Args:
        path1: Path 1
        path2: Path 2

    Returns:
        Whether on the same filesystem
    """
    try:
        # Fall back to the parent directory for paths that do not exist yet
        p1 = path1 if path1.exists() else path1.parent
        p2 = path2 if path2.exists() else path2.parent

        return os.stat(p1).st_dev == os.stat(p2).st_dev
    except OSError:
        return False
