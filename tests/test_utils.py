"""Tests for file helpers."""

import pytest

from logwatcher.errors import FileAccessError
from logwatcher.utils import (
    format_file_size,
    get_file_size,
    get_filename,
    is_file_readable,
    validate_files,
)


class TestFileChecks:
    """Tests for readability checks."""

    def test_readable_file(self, tmp_path):
        path = tmp_path / "app.log"
        path.write_text("hello\n")
        assert is_file_readable(path)
        assert get_file_size(path) == 6

    def test_missing_file(self, tmp_path):
        assert not is_file_readable(tmp_path / "missing.log")

    def test_directory_is_not_readable(self, tmp_path):
        assert not is_file_readable(tmp_path)

    def test_validate_files_splits_valid_and_invalid(self, tmp_path):
        good = tmp_path / "good.log"
        good.write_text("")
        bad = tmp_path / "bad.log"

        valid, errors = validate_files([good, bad])

        assert valid == [good]
        assert errors == [f"File not readable: {bad}"]

    def test_validate_files_none_valid(self, tmp_path):
        with pytest.raises(FileAccessError, match="No valid files to watch"):
            validate_files([tmp_path / "a.log", tmp_path / "b.log"])


class TestFormatting:
    """Tests for display helpers."""

    @pytest.mark.parametrize(
        "size,expected",
        [
            (0, "0 B"),
            (1023, "1023 B"),
            (1024, "1.0 KB"),
            (1536, "1.5 KB"),
            (1048576, "1.0 MB"),
            (1073741824, "1.0 GB"),
        ],
    )
    def test_format_file_size(self, size, expected):
        assert format_file_size(size) == expected

    def test_get_filename(self):
        assert get_filename("/var/log/app.log") == "app.log"
        assert get_filename("app.log") == "app.log"
        assert get_filename("/") == "unknown"
