"""
plan_rename.py - Rename Pair Construction Module

Responsibilities:
- Turn name-provider output ((file_name, directory) entries) into rename pairs
- Load rename pairs from a mapping file (JSON or text)
"""

from pathlib import Path
from typing import Any, List, Sequence, Tuple
import json
import logging

from .models_fs import RenameMapPair

logger = logging.getLogger(__name__)

NameEntry = Tuple[str, Path]

TEXT_SEPARATORS = ("\t", " -> ")


def pairs_from_names(
    entries: Sequence[NameEntry],
    new_entries: Sequence[NameEntry],
) -> List[RenameMapPair]:
    """
    Build rename pairs from a name provider's input and output

    Args:
        entries: Original (file_name, directory) entries
        new_entries: Transformed (new_file_name, directory) entries, same order

    Returns:
        Rename pairs, skipping entries whose path did not change

    Raises:
        ValueError: The two sequences differ in length
    """
    if len(entries) != len(new_entries):
        raise ValueError(
            f"Provider returned {len(new_entries)} names for {len(entries)} files"
        )

    pairs = []
    for (name, directory), (new_name, new_directory) in zip(entries, new_entries):
        source = Path(directory) / name
        target = Path(new_directory) / new_name
        # Skip if name hasn't changed
        if source == target:
            continue
        pairs.append(RenameMapPair(source, target))
    return pairs


def _resolve(base: Path, value: str) -> Path:
    path = Path(value).expanduser()
    return path if path.is_absolute() else base / path


def _pair_from_json(base: Path, index: int, item: Any) -> RenameMapPair:
    if isinstance(item, dict) and "src" in item and "dst" in item:
        src, dst = item["src"], item["dst"]
    elif isinstance(item, (list, tuple)) and len(item) == 2:
        src, dst = item
    else:
        raise ValueError(f"Entry {index}: expected {{\"src\", \"dst\"}} or [src, dst], got {item!r}")
    return RenameMapPair(_resolve(base, str(src)), _resolve(base, str(dst)))


def _pair_from_line(base: Path, lineno: int, line: str) -> RenameMapPair:
    for sep in TEXT_SEPARATORS:
        if sep in line:
            src, dst = (part.strip() for part in line.split(sep, 1))
            if src and dst:
                return RenameMapPair(_resolve(base, src), _resolve(base, dst))
    raise ValueError(f"Line {lineno}: expected 'source<TAB>target' or 'source -> target'")


def load_pairs_file(path: Path) -> List[RenameMapPair]:
    """
    Load rename pairs from a mapping file

    Supported formats:
    - JSON: a list of {"src": ..., "dst": ...} objects or [src, dst] lists
    - Text: one "source<TAB>target" or "source -> target" per line,
      blank lines and lines starting with # are ignored

    Relative paths are resolved against the mapping file's directory.

    Raises:
        ValueError: Malformed entry
    """
    path = Path(path)
    base = path.resolve().parent
    content = path.read_text(encoding='utf-8')

    if path.suffix.lower() == ".json":
        data = json.loads(content)
        if not isinstance(data, list):
            raise ValueError(f"{path}: expected a JSON list of pairs")
        pairs = [_pair_from_json(base, i, item) for i, item in enumerate(data, 1)]
    else:
        pairs = []
        for lineno, line in enumerate(content.splitlines(), 1):
            stripped = line.strip()
            if not stripped or stripped.startswith("#"):
                continue
            pairs.append(_pair_from_line(base, lineno, line.rstrip("\r\n")))

    logger.debug("Loaded %d pair(s) from %s", len(pairs), path)
    return pairs
