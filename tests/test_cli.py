# tests/test_cli.py
# ============================================================
# Integration Tests — Command Line Interface
# ============================================================
# Drives the Typer app with CliRunner against fake extractor
# and ffmpeg scripts, so real subprocesses are spawned but no
# real tool is needed.
#
# Run:
#   pytest tests/test_cli.py -v
# ============================================================

import sys

import pytest
from typer.testing import CliRunner

from cli.main import app
from config.settings import settings

from tests.conftest import FAKE_EXTRACTOR, FAKE_FFMPEG

pytestmark = pytest.mark.skipif(sys.platform == "win32", reason="uses /bin/sh scripts")

runner = CliRunner()


# ============================================================
# Fixtures
# ============================================================

@pytest.fixture
def extractor(make_script, monkeypatch):
    script = make_script("doc-to-text", FAKE_EXTRACTOR)
    monkeypatch.setattr(settings, "extractor_command", str(script))
    monkeypatch.setattr(settings, "allowed_commands", [])
    return script


@pytest.fixture
def ffmpeg(make_script, monkeypatch):
    script = make_script("ffmpeg", FAKE_FFMPEG)
    monkeypatch.setattr(settings, "transcoder_command", str(script))
    monkeypatch.setattr(settings, "allowed_commands", [])
    return script


@pytest.fixture
def docs(tmp_path):
    folder = tmp_path / "docs"
    folder.mkdir()
    (folder / "one.pdf").write_bytes(b"1")
    (folder / "two.docx").write_bytes(b"2")
    return folder


# ============================================================
# text command
# ============================================================

class TestTextCommand:
    """Test `docflow text`."""

    def test_batch_extracts_every_document(self, extractor, docs, tmp_path):
        out = tmp_path / "out"
        result = runner.invoke(app, ["text", str(docs), "--output", str(out), "--ocr", "surya_ocr"])

        assert result.exit_code == 0, result.output
        assert (out / "one.txt").read_text() == "text of one.pdf\n"
        assert (out / "two.txt").read_text() == "text of two.docx\n"
        assert "Processing Summary" in result.output

    def test_second_run_skips(self, extractor, docs, tmp_path):
        args = ["text", str(docs), "-o", str(tmp_path / "out"), "--ocr", "surya_ocr"]
        runner.invoke(app, args)
        (tmp_path / "out" / "one.txt").write_text("edited")

        result = runner.invoke(app, args)

        assert result.exit_code == 0
        assert (tmp_path / "out" / "one.txt").read_text() == "edited"

    def test_missing_input(self, extractor, tmp_path):
        result = runner.invoke(app, ["text", str(tmp_path / "missing.pdf")])
        assert result.exit_code == 1
        assert "Error" in result.output

    def test_no_supported_files(self, extractor, tmp_path):
        empty = tmp_path / "empty"
        empty.mkdir()
        (empty / "clip.mp4").write_bytes(b"x")

        result = runner.invoke(app, ["text", str(empty), "--ocr", "surya_ocr"])

        assert result.exit_code == 1
        assert "Supported formats" in result.output
        assert ".pdf" in result.output

    def test_llm_ocr_without_template(self, extractor, docs):
        result = runner.invoke(app, ["text", str(docs), "--ocr", "llm-caller"])
        assert result.exit_code == 1
        assert "ocr_llm_template" in result.output

    def test_blocked_extractor(self, extractor, docs, monkeypatch):
        monkeypatch.setattr(settings, "allowed_commands", ["ffmpeg"])

        result = runner.invoke(app, ["text", str(docs), "--ocr", "surya_ocr"])

        assert result.exit_code == 1
        assert "blocked" in result.output


# ============================================================
# receipts command
# ============================================================

class TestReceiptsCommand:
    """Test `docflow receipts` option validation."""

    def test_unknown_summary_format(self, extractor, docs):
        result = runner.invoke(app, ["receipts", str(docs), "--format", "xml"])
        assert result.exit_code == 1
        assert "Unknown summary format" in result.output


# ============================================================
# audio command
# ============================================================

class TestAudioCommand:
    """Test `docflow audio` with a fake ffmpeg."""

    def test_legacy_output_dir_alias(self, ffmpeg, tmp_path):
        videos = tmp_path / "videos"
        videos.mkdir()
        (videos / "talk.mp4").write_bytes(b"x")
        out = tmp_path / "audio"

        result = runner.invoke(app, ["audio", str(videos), "--output-dir", str(out), "--format", "flac"])

        assert result.exit_code == 0, result.output
        assert (out / "talk.flac").exists()

    def test_unsupported_format(self, ffmpeg, tmp_path):
        result = runner.invoke(app, ["audio", str(tmp_path), "--format", "wma"])
        assert result.exit_code == 1
        assert "Unsupported audio format" in result.output


# ============================================================
# check command
# ============================================================

class TestCheckCommand:
    """Test `docflow check`."""

    def test_all_blocked(self, monkeypatch):
        monkeypatch.setattr(settings, "allowed_commands", ["nothing-else"])

        result = runner.invoke(app, ["check"])

        assert result.exit_code == 1
        assert "blocked" in result.output
