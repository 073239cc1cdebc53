"""Tests for CLI commands."""

import builtins
import json
import os
import shutil
from pathlib import Path

import pytest

from rename_cli import cli_interactive, main
from rename_cli.cli_entry import execute_with_recovery
from rename_core import BulkRenameOperation, OverwriteMode, RenameMapPair, RenameOptions, save_journal


@pytest.fixture
def files(tmp_path):
    """Create a work directory with files a and b."""
    work = tmp_path / "work"
    work.mkdir()
    (work / "a").write_text("a")
    (work / "b").write_text("b")
    return work


@pytest.fixture
def journal_dir(tmp_path):
    return tmp_path / "journal"


def feed_input(monkeypatch, answers):
    """Replace input() with a scripted sequence of answers."""
    answers = iter(answers)
    monkeypatch.setattr(builtins, "input", lambda prompt="": next(answers))


class TestApply:
    """Tests for the apply command."""

    def test_swap_and_undo(self, files, journal_dir, capsys):
        """Test swapping two files and undoing through the journal."""
        exit_code = main([
            "apply", "--yes", "--journal-dir", str(journal_dir),
            "--pair", str(files / "a"), str(files / "b"),
            "--pair", str(files / "b"), str(files / "a"),
        ])

        assert exit_code == 0
        assert (files / "a").read_text() == "b"
        assert (files / "b").read_text() == "a"
        assert "Renamed 2 entries" in capsys.readouterr().out

        journals = list(journal_dir.glob("rename_journal_*.json"))
        assert len(journals) == 1

        assert main(["undo", "--yes", str(journals[0])]) == 0
        assert (files / "a").read_text() == "a"
        assert (files / "b").read_text() == "b"

    def test_dry_run(self, files, capsys):
        exit_code = main(["apply", "--dry-run", "--pair", str(files / "a"), str(files / "c")])

        output = capsys.readouterr().out
        assert exit_code == 0
        assert "[Preview mode]" in output
        assert (files / "a").exists()
        assert not (files / "c").exists()

    def test_preview_shows_collision_name(self, files, capsys):
        main([
            "apply", "--dry-run", "--mode", "change-file-name",
            "--pair", str(files / "a"), str(files / "b"),
        ])

        assert "(as _b)" in capsys.readouterr().out

    def test_duplicate_target_warning(self, files, capsys):
        main([
            "apply", "--dry-run",
            "--pair", str(files / "a"), str(files / "c"),
            "--pair", str(files / "b"), str(files / "c"),
        ])

        assert "2 sources share the target" in capsys.readouterr().out

    def test_failure_is_rolled_back(self, files, capsys):
        """Test that a collision under error mode leaves everything in place."""
        (files / "c").write_text("c")

        exit_code = main([
            "apply", "--yes", "--no-journal",
            "--pair", str(files / "a"), str(files / "x"),
            "--pair", str(files / "b"), str(files / "c"),
        ])

        output = capsys.readouterr().out
        assert exit_code == 1
        assert "Target File Already Exists" in output
        assert "Rename is not applied" in output
        assert sorted(p.name for p in files.iterdir()) == ["a", "b", "c"]
        assert (files / "c").read_text() == "c"

    def test_confirmation_declined(self, files, monkeypatch, capsys):
        feed_input(monkeypatch, ["n"])

        exit_code = main(["apply", "--pair", str(files / "a"), str(files / "c")])

        assert exit_code == 0
        assert "Cancelled" in capsys.readouterr().out
        assert (files / "a").exists()

    def test_from_file(self, files, tmp_path, journal_dir):
        mapping = tmp_path / "renames.tsv"
        mapping.write_text("work/a\twork/renamed_a\n", encoding="utf-8")

        exit_code = main(["apply", "--yes", "--journal-dir", str(journal_dir), "--from-file", str(mapping)])

        assert exit_code == 0
        assert (files / "renamed_a").read_text() == "a"

    def test_bad_mapping_file(self, tmp_path, capsys):
        mapping = tmp_path / "renames.txt"
        mapping.write_text("no separator here\n", encoding="utf-8")

        assert main(["apply", "--yes", "--from-file", str(mapping)]) == 1
        assert "Line 1" in capsys.readouterr().out

    def test_overwrite_is_not_journaled_as_undoable(self, files, journal_dir, capsys):
        exit_code = main([
            "apply", "--yes", "--mode", "overwrite", "--journal-dir", str(journal_dir),
            "--pair", str(files / "a"), str(files / "b"),
        ])

        assert exit_code == 0
        assert "cannot be undone" in capsys.readouterr().out
        journal = next(journal_dir.glob("rename_journal_*.json"))

        assert main(["undo", "--yes", str(journal)]) == 1

    def test_interrupted_rollback_writes_recovery_journal(self, files, journal_dir, monkeypatch, capsys):
        """Test that entries stranded by a failed rollback are journaled and recoverable."""
        real_replace = os.replace

        def replace_losing_source(src, dst):
            # The staged entry for x vanishes just as it is committed
            if Path(dst) == files / "x":
                os.unlink(src)
                raise FileNotFoundError(2, "No such file or directory")
            return real_replace(src, dst)

        monkeypatch.setattr(os, "replace", replace_losing_source)

        exit_code = main([
            "apply", "--yes", "--journal-dir", str(journal_dir),
            "--pair", str(files / "a"), str(files / "x"),
            "--pair", str(files / "b"), str(files / "y"),
        ])

        output = capsys.readouterr().out
        assert exit_code == 1
        assert "Rename is interrupted: Source Not Found" in output
        assert "Recovery journal:" in output

        journal = next(journal_dir.glob("rename_journal_*.json"))
        data = json.loads(journal.read_text(encoding="utf-8"))
        assert data["phase"] == "failed"
        assert data["error"].startswith("IO Error:")
        assert len(data["undo"]) == 1
        stranded = Path(data["undo"][0]["current"])
        assert stranded.name.startswith(".__tmp_rename__y.")
        assert stranded.read_text() == "b"
        assert data["undo"][0]["original"] == str(files / "b")

        monkeypatch.undo()
        assert main(["undo", "--yes", str(journal)]) == 0
        assert (files / "b").read_text() == "b"
        assert not stranded.exists()

    def test_unwritable_journal_dir(self, files, tmp_path, capsys):
        """Test that a journal that cannot be saved does not fail a completed run."""
        blocker = tmp_path / "blocker"
        blocker.write_text("")

        exit_code = main([
            "apply", "--yes", "--journal-dir", str(blocker / "sub"),
            "--pair", str(files / "a"), str(files / "c"),
        ])

        output = capsys.readouterr().out
        assert exit_code == 0
        assert "Renamed 1 entries" in output
        assert "Warning: no undo journal saved" in output
        assert "Undo journal:" not in output
        assert (files / "c").read_text() == "a"


class TestExecuteWithRecovery:
    """Tests for execute_with_recovery."""

    def test_success(self, files):
        operation = BulkRenameOperation([(files / "a", files / "c")])

        assert execute_with_recovery(operation, OverwriteMode.ERROR) is None

    def test_rolled_back(self, files):
        (files / "y").write_text("y")
        operation = BulkRenameOperation([(files / "a", files / "x"), (files / "b", files / "y")])

        failure = execute_with_recovery(operation, OverwriteMode.ERROR)

        assert failure.status == "Rename is not applied"
        assert not failure.interrupted
        assert sorted(p.name for p in files.iterdir()) == ["a", "b", "y"]

    def test_interrupted_after_overwrite(self, files, monkeypatch):
        """Test that a failure after an overwrite is reported as interrupted."""
        (files / "d").mkdir()

        def failing_rmtree(path, *args, **kwargs):
            raise OSError(16, "Device or resource busy")

        monkeypatch.setattr(shutil, "rmtree", failing_rmtree)
        (files / "c").write_text("c")
        operation = BulkRenameOperation([(files / "a", files / "c"), (files / "b", files / "d")])

        failure = execute_with_recovery(operation, OverwriteMode.OVERWRITE)

        assert failure.summary().startswith("IO Error:")
        assert "Rename is interrupted" in failure.summary()
        assert failure.interrupted
        assert failure.leftover[0] == RenameMapPair(files / "c", files / "a")
        assert failure.leftover[1].source.name.startswith(".__tmp_rename__d.")
        assert failure.leftover[1].target == files / "b"

    def test_interrupted_when_rollback_fails(self, files):
        """Test that a rollback blocked by a vanished entry is reported as interrupted."""
        operation = BulkRenameOperation([(files / "a", files / "x"), (files / "b", files / "y")])

        def remove_first_staged_entry(current, total, message):
            # First commit step: the staged entry disappears underneath us
            if current == 3:
                operation.undo_state.pairs[0].source.unlink()

        failure = execute_with_recovery(
            operation, OverwriteMode.ERROR, progress_callback=remove_first_staged_entry
        )

        first, second = failure.summary().splitlines()
        assert first.startswith("IO Error:")
        assert second.startswith("Rename is interrupted: Source Not Found")
        assert len(failure.leftover) == 1
        assert failure.leftover[0].source.name.startswith(".__tmp_rename__y.")
        assert failure.leftover[0].target == files / "b"


class TestCheck:
    """Tests for the check command."""

    def test_all_present(self, files, capsys):
        assert main(["check", "--pair", str(files / "a"), str(files / "x")]) == 0
        assert "All 1 sources exist" in capsys.readouterr().out

    def test_reports_missing(self, files, capsys):
        exit_code = main([
            "check",
            "--pair", str(files / "missing1"), str(files / "x"),
            "--pair", str(files / "a"), str(files / "y"),
            "--pair", str(files / "missing2"), str(files / "z"),
        ])

        output = capsys.readouterr().out
        assert exit_code == 1
        assert "missing1" in output
        assert "missing2" in output


class TestInteractive:
    """Tests for interactive mode."""

    def test_manual_pairs(self, files, monkeypatch, capsys):
        feed_input(monkeypatch, [
            "2",                                   # Enter rename pairs
            f"{files / 'a'} -> {files / 'c'}",
            "",                                    # End of pairs
            "1",                                   # error mode
            "y",                                   # Confirm execution
            "n",                                   # Undo now
            "q",
        ])

        assert main([]) == 0
        assert (files / "c").read_text() == "a"
        assert not (files / "a").exists()
        assert "Goodbye!" in capsys.readouterr().out

    def test_manual_pairs_with_undo(self, files, monkeypatch, capsys):
        feed_input(monkeypatch, [
            "2",
            f"{files / 'a'} -> {files / 'b'}",
            f"{files / 'b'} -> {files / 'a'}",
            "",
            "",                                    # Default mode
            "y",
            "y",                                   # Undo now
            "q",
        ])

        assert main([]) == 0
        assert (files / "a").read_text() == "a"
        assert "Rename is not applied" in capsys.readouterr().out

    def test_undo_from_journal(self, files, journal_dir, monkeypatch, capsys):
        """Test that journal undo uses the configured undo mode."""
        operation = BulkRenameOperation([(files / "a", files / "c")])
        operation.execute()
        journal = save_journal(operation, journal_dir, OverwriteMode.ERROR)
        (files / "a").write_text("newcomer")

        monkeypatch.setattr(
            cli_interactive, "RenameOptions",
            lambda: RenameOptions(undo_mode=OverwriteMode.CHANGE_FILE_NAME),
        )
        feed_input(monkeypatch, [
            "3",                                   # Undo from journal
            str(journal),
            "y",                                   # Confirm undo
            "q",
        ])

        assert main([]) == 0
        assert "Restored 1 entries" in capsys.readouterr().out
        assert (files / "_a").read_text() == "a"
        assert (files / "a").read_text() == "newcomer"
        assert not (files / "c").exists()
