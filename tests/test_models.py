"""Unit tests for data models and the undo ledger."""

from pathlib import Path

import pytest

from rename_core import (
    InProgress,
    Irreversible,
    NotExecuted,
    OverwriteMode,
    RenameMapPair,
    RenameOptions,
    Reversible,
    UndoLedger,
)
from rename_core.errors import IllegalOperationError, RenameIOError
from rename_core.models_fs import JOURNAL_DIR_ENV, as_pair


class TestRenameMapPair:
    """Tests for RenameMapPair."""

    def test_of_coerces_strings(self):
        pair = RenameMapPair.of("a/b.txt", "c.txt")

        assert pair.source == Path("a/b.txt")
        assert pair.target == Path("c.txt")

    def test_unpacks_like_tuple(self):
        source, target = RenameMapPair.of("x", "y")

        assert (source, target) == (Path("x"), Path("y"))

    def test_swapped(self):
        assert RenameMapPair.of("x", "y").swapped() == RenameMapPair.of("y", "x")

    def test_as_pair(self):
        pair = RenameMapPair.of("x", "y")

        assert as_pair(pair) is pair
        assert as_pair(("x", Path("y"))) == pair

    def test_hashable(self):
        assert len({RenameMapPair.of("x", "y"), RenameMapPair.of("x", "y")}) == 1


class TestOverwriteMode:
    """Tests for OverwriteMode."""

    @pytest.mark.parametrize(
        "value,expected",
        [
            ("change-file-name", OverwriteMode.CHANGE_FILE_NAME),
            ("overwrite", OverwriteMode.OVERWRITE),
            ("error", OverwriteMode.ERROR),
        ],
    )
    def test_from_value(self, value, expected):
        assert OverwriteMode(value) is expected


class TestRenameOptions:
    """Tests for RenameOptions."""

    def test_defaults(self, monkeypatch):
        monkeypatch.delenv(JOURNAL_DIR_ENV, raising=False)
        options = RenameOptions()

        assert options.overwrite_mode is OverwriteMode.ERROR
        assert options.undo_mode is OverwriteMode.ERROR
        assert options.journal
        assert options.journal_dir == Path.home() / ".bulk_rename" / "journal"

    def test_journal_dir_from_environment(self, monkeypatch, tmp_path):
        monkeypatch.setenv(JOURNAL_DIR_ENV, str(tmp_path / "journals"))

        assert RenameOptions().journal_dir == tmp_path / "journals"


class TestUndoLedger:
    """Tests for UndoLedger state transitions."""

    def test_lifecycle(self):
        ledger = UndoLedger()
        assert ledger.state == NotExecuted()

        ledger.begin()
        ledger.stage(Path("/d/.tmp1"), Path("/s/a"))
        ledger.stage(Path("/d/.tmp2"), Path("/s/b"))
        assert ledger.state == InProgress([
            RenameMapPair.of("/d/.tmp1", "/s/a"),
            RenameMapPair.of("/d/.tmp2", "/s/b"),
        ])

        ledger.commit(0, Path("/d/x"))
        ledger.commit(1, Path("/d/y"))
        ledger.complete()
        assert ledger.state == Reversible([
            RenameMapPair.of("/d/x", "/s/a"),
            RenameMapPair.of("/d/y", "/s/b"),
        ])
        assert ledger.state.reversible

    def test_irreversible_is_permanent(self):
        ledger = UndoLedger()
        ledger.begin()
        ledger.stage(Path("/d/.tmp1"), Path("/s/a"))
        ledger.mark_irreversible()

        ledger.stage(Path("/d/.tmp2"), Path("/s/b"))
        ledger.commit(0, Path("/d/x"))
        ledger.complete()

        assert ledger.state == Irreversible()
        assert ledger.state.pairs == []
        assert not ledger.state.reversible

    def test_locations_survive_irreversible(self):
        """Test that entry locations are still tracked once undo is impossible."""
        ledger = UndoLedger()
        ledger.begin()
        ledger.stage(Path("/d/.tmp1"), Path("/s/a"))
        ledger.stage(Path("/d/.tmp2"), Path("/s/b"))
        ledger.commit(0, Path("/d/x"))
        ledger.mark_irreversible()

        assert ledger.locations == [
            RenameMapPair.of("/d/x", "/s/a"),
            RenameMapPair.of("/d/.tmp2", "/s/b"),
        ]
        assert ledger.committed == 1


class TestErrors:
    """Tests for error messages."""

    def test_io_error_message_and_cause(self):
        cause = OSError(5, "Input/output error")
        error = RenameIOError(RenameMapPair.of("/a", "/b"), cause)

        assert str(error) == f"IO Error: {Path('/a')} -> {Path('/b')}"
        assert error.cause is cause

    def test_illegal_operation_message(self):
        assert str(IllegalOperationError(Path("/"))) == "Illegal Format"
