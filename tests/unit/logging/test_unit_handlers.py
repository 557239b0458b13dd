# tests/unit/logging/test_unit_handlers.py - v1
"""Tests for logging/handlers.py."""

from __future__ import annotations

from logging.handlers import RotatingFileHandler, TimedRotatingFileHandler

import pytest

from assetforge.logging.handlers import create_file_handler, parse_size


class TestParseSize:
    @pytest.mark.parametrize(
        ("text", "expected"),
        [("10MB", 10 * 1024**2), ("512kb", 512 * 1024), ("1 GB", 1024**3)],
    )
    def test_valid(self, text, expected):
        assert parse_size(text) == expected

    @pytest.mark.parametrize("text", ["", "10", "MB", "ten MB", "10TB"])
    def test_invalid(self, text):
        with pytest.raises(ValueError, match="Invalid size format"):
            parse_size(text)


class TestCreateFileHandler:
    def test_size_rotation(self, tmp_path):
        handler = create_file_handler(tmp_path / "a" / "b.log", rotation="1MB", retention=3)
        try:
            assert isinstance(handler, RotatingFileHandler)
            assert handler.maxBytes == 1024**2
            assert handler.backupCount == 3
            assert (tmp_path / "a").is_dir()
        finally:
            handler.close()

    def test_time_rotation(self, tmp_path):
        handler = create_file_handler(tmp_path / "b.log", rotation="midnight")
        try:
            assert isinstance(handler, TimedRotatingFileHandler)
        finally:
            handler.close()

    def test_bad_rotation(self, tmp_path):
        with pytest.raises(ValueError):
            create_file_handler(tmp_path / "c.log", rotation="weekly-ish")
