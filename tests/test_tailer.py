"""Tests for the per-file tailing state machine."""

import pytest

from logwatcher.errors import RotationRecoveryError, TailIOError
from logwatcher.watcher import Tailer, TailPhase, read_lines
from logwatcher.watcher.tailer import MAX_PARTIAL_BYTES


def _no_wait(seconds: float) -> None:
    pass


@pytest.fixture
def log_file(tmp_path):
    path = tmp_path / "app.log"
    path.write_text("old line 1\nold line 2\n")
    return path


class TestTailerPolling:
    """Tests for reading appended content."""

    def test_start_skips_existing_content(self, log_file):
        tailer = Tailer(log_file)
        tailer.start()
        assert tailer.phase is TailPhase.POLLING
        assert tailer.offset == log_file.stat().st_size
        assert tailer.poll().lines == []

    def test_first_poll_starts_tailer(self, log_file):
        tailer = Tailer(log_file)
        assert tailer.phase is TailPhase.INITIAL
        result = tailer.poll()
        assert result.lines == []
        assert not result.rotated
        assert tailer.phase is TailPhase.POLLING

    def test_appended_lines(self, log_file, write_lines):
        tailer = Tailer(log_file)
        tailer.start()
        write_lines(log_file, ["ERROR: first", "INFO: second"])

        result = tailer.poll()
        assert result.lines == ["ERROR: first", "INFO: second"]
        assert tailer.offset == log_file.stat().st_size

    def test_blank_lines_dropped_and_whitespace_stripped(self, log_file):
        tailer = Tailer(log_file)
        tailer.start()
        with open(log_file, "a") as f:
            f.write("\n   \n  WARN: padded  \r\n")

        assert tailer.poll().lines == ["WARN: padded"]

    def test_partial_line_completed_on_next_poll(self, log_file):
        tailer = Tailer(log_file)
        tailer.start()
        with open(log_file, "a") as f:
            f.write("ERROR: half")
        assert tailer.poll().lines == []

        with open(log_file, "a") as f:
            f.write(" written\n")
        assert tailer.poll().lines == ["ERROR: half written"]

    def test_small_buffer_reads_everything(self, log_file, write_lines):
        tailer = Tailer(log_file, buffer_size=4)
        tailer.start()
        lines = [f"line number {i}" for i in range(20)]
        write_lines(log_file, lines)

        assert tailer.poll().lines == lines

    def test_oversized_partial_is_flushed(self, log_file):
        tailer = Tailer(log_file, buffer_size=65536)
        tailer.start()
        with open(log_file, "a") as f:
            f.write("x" * (MAX_PARTIAL_BYTES + 10))

        lines = tailer.poll().lines
        assert len(lines) == 1
        assert len(lines[0]) == MAX_PARTIAL_BYTES + 10
        assert tailer.state.partial == b""

    def test_invalid_utf8_is_replaced(self, log_file):
        tailer = Tailer(log_file)
        tailer.start()
        with open(log_file, "ab") as f:
            f.write(b"ERROR \xff\xfe bytes\n")

        (line,) = tailer.poll().lines
        assert line.startswith("ERROR ")
        assert "�" in line

    def test_unchanged_file(self, log_file):
        tailer = Tailer(log_file)
        tailer.start()
        offset = tailer.offset
        assert tailer.poll().lines == []
        assert tailer.offset == offset


class TestTailerRotation:
    """Tests for truncation and replacement handling."""

    def test_truncation_reports_rotation(self, log_file):
        tailer = Tailer(log_file)
        tailer.start()
        log_file.write_text("")

        result = tailer.poll()
        assert result.rotated
        assert tailer.phase is TailPhase.ROTATION_DETECTED
        # Stays rotated until recovered
        assert tailer.poll().rotated

    def test_replacement_reports_rotation(self, log_file, tmp_path):
        tailer = Tailer(log_file)
        tailer.start()
        replacement = tmp_path / "new.log"
        replacement.write_text("old line 1\nold line 2\nmore content than before\n")
        # Keep the old inode alive so the new file cannot reuse it
        keep = tmp_path / "app.log.1"
        log_file.rename(keep)
        replacement.rename(log_file)

        assert tailer.poll().rotated

    def test_missing_between_rename_and_create(self, log_file, tmp_path, write_lines):
        tailer = Tailer(log_file)
        tailer.start()
        log_file.rename(tmp_path / "app.log.1")

        assert tailer.poll().rotated
        assert tailer.phase is TailPhase.ROTATION_DETECTED

        write_lines(log_file, ["ERROR: new file"])
        tailer.recover(settle_delay=0, wait=_no_wait)
        assert tailer.poll().lines == ["ERROR: new file"]

    def test_recover_restarts_from_beginning(self, log_file, write_lines):
        tailer = Tailer(log_file)
        tailer.start()
        log_file.write_text("")
        assert tailer.poll().rotated

        write_lines(log_file, ["ERROR: after rotation"])
        tailer.recover(settle_delay=0, wait=_no_wait)

        assert tailer.phase is TailPhase.POLLING
        assert tailer.offset == 0
        assert tailer.poll().lines == ["ERROR: after rotation"]

    def test_recover_waits_for_settle_delay(self, log_file):
        waits = []
        tailer = Tailer(log_file)
        tailer.start()
        tailer.recover(settle_delay=1.5, wait=waits.append)
        assert waits == [1.5]

    def test_recover_fails_when_file_missing(self, log_file):
        tailer = Tailer(log_file)
        tailer.start()
        log_file.unlink()

        with pytest.raises(RotationRecoveryError) as exc_info:
            tailer.recover(settle_delay=0, wait=_no_wait)
        assert exc_info.value.message == "File not found after rotation"
        assert tailer.phase is TailPhase.ERROR

        with pytest.raises(TailIOError):
            tailer.poll()


class TestTailerErrors:
    """Tests for I/O failures."""

    def test_start_on_missing_file(self, tmp_path):
        tailer = Tailer(tmp_path / "missing.log")
        with pytest.raises(TailIOError) as exc_info:
            tailer.start()
        assert exc_info.value.message.startswith("Failed to get file metadata")
        assert tailer.phase is TailPhase.ERROR

    def test_file_deleted_while_polling(self, log_file):
        tailer = Tailer(log_file)
        tailer.start()
        log_file.unlink()

        assert tailer.poll().rotated
        with pytest.raises(RotationRecoveryError):
            tailer.recover(settle_delay=0, wait=_no_wait)
        assert tailer.phase is TailPhase.ERROR


class TestReadLines:
    """Tests for whole-file reading used by dry-run mode."""

    def test_reads_all_lines(self, tmp_path):
        path = tmp_path / "app.log"
        path.write_text("ERROR: one\r\nINFO: two\nWARN: three")
        assert list(read_lines(path)) == ["ERROR: one", "INFO: two", "WARN: three"]

    def test_empty_file(self, tmp_path):
        path = tmp_path / "empty.log"
        path.write_text("")
        assert list(read_lines(path)) == []

    def test_missing_file(self, tmp_path):
        with pytest.raises(TailIOError):
            list(read_lines(tmp_path / "missing.log"))
