# tests/test_pipelines.py
# ============================================================
# Unit Tests — Concrete Pipelines
# ============================================================
# Tests the per-pipeline specifics: output naming, option
# validation, tool arguments and artifacts for the text,
# contract, receipt and audio pipelines.
#
# Run:
#   pytest tests/test_pipelines.py -v
# ============================================================

from pathlib import Path
from unittest.mock import MagicMock

import pytest

from docflow.errors import ConfigurationError, ErrorKind, PersistFailure, StageFailure
from docflow.pipeline import (
    AudioPipeline,
    ContractPipeline,
    ExtractionOptions,
    ReceiptPipeline,
    RunConfig,
    TextPipeline,
    TranscodeOptions,
)
from docflow.tools.invoker import ToolInvoker, ToolResult


# ============================================================
# Fixtures
# ============================================================

@pytest.fixture
def document(tmp_path):
    path = tmp_path / "lease.pdf"
    path.write_bytes(b"%PDF-1.4 fake")
    return path


@pytest.fixture
def video(tmp_path):
    path = tmp_path / "talk.mp4"
    path.write_bytes(b"fake video")
    return path


# ============================================================
# Text Pipeline Tests
# ============================================================

class TestTextPipeline:
    """Test the text extraction pipeline."""

    def test_output_name(self, mock_invoker):
        assert TextPipeline(invoker=mock_invoker).output_name(Path("scan.v2.pdf")) == "scan.v2.txt"

    def test_validate_llm_ocr_without_template(self, mock_invoker, document):
        pipeline = TextPipeline(ExtractionOptions("llm-caller"), invoker=mock_invoker)
        with pytest.raises(ConfigurationError):
            pipeline.validate(RunConfig(document))

    def test_stale_output_is_replaced(self, mock_invoker, document, tmp_path):
        """On overwrite, the old text must not satisfy the existence check."""
        output = tmp_path / "lease.txt"
        output.write_text("stale")
        pipeline = TextPipeline(ExtractionOptions("surya_ocr"), invoker=mock_invoker)

        result = pipeline.run_stages(document, output, RunConfig(document, overwrite=True))

        assert output.read_text() == "text of lease.pdf\n"
        assert result.payload == "text of lease.pdf\n"

    def test_input_is_never_deleted(self, mock_invoker, tmp_path):
        notes = tmp_path / "notes.txt"
        notes.write_text("my own notes")
        pipeline = TextPipeline(ExtractionOptions("surya_ocr"), invoker=mock_invoker)

        with pytest.raises(PersistFailure, match="overwrite the input"):
            pipeline.run_stages(notes, notes, RunConfig(notes, overwrite=True))

        assert notes.read_text() == "my own notes"
        mock_invoker.invoke.assert_not_called()


# ============================================================
# Contract Pipeline Tests
# ============================================================

class TestContractPipeline:
    """Test the contract review pipeline."""

    def test_review_written_verbatim(self, mock_invoker, fake_tools, document, tmp_path):
        fake_tools.default_llm_response = "## Risks\n- Clause 4 is one-sided\n"
        pipeline = ContractPipeline(ExtractionOptions("surya_ocr"), invoker=mock_invoker)
        output = tmp_path / "out" / pipeline.output_name(document)

        pipeline.run_stages(document, output, RunConfig(document))

        assert output.name == "lease.review.txt"
        assert output.read_text(encoding="utf-8") == "## Risks\n- Clause 4 is one-sided\n"

    def test_uses_configured_template(self, mock_invoker, fake_tools, document, tmp_path):
        pipeline = ContractPipeline(ExtractionOptions("surya_ocr"), "my-review", invoker=mock_invoker)
        pipeline.run_stages(document, tmp_path / "lease.review.txt", RunConfig(document))

        llm_args = [args for tool, args in fake_tools.calls if tool == "llm-caller"][0]
        assert llm_args[:2] == ["call", "my-review"]
        assert llm_args[3] == "text:text:text of lease.pdf\n"

    def test_requires_both_tools(self, mock_invoker):
        tools = [c.tool for c in ContractPipeline(invoker=mock_invoker).required_tools()]
        assert tools == ["doc-to-text", "llm-caller"]


# ============================================================
# Receipt Pipeline Tests
# ============================================================

class TestReceiptPipeline:
    """Test the receipt structuring pipeline."""

    def test_extraction_is_pinned_to_llm_ocr(self, mock_invoker, fake_tools, document, tmp_path):
        fake_tools.default_llm_response = '{"type-code": "invoice"}'
        pipeline = ReceiptPipeline("ocr-tpl", "extract-tpl", invoker=mock_invoker)

        pipeline.run_stages(document, tmp_path / "lease.receipt.json", RunConfig(document))

        extract_args = [args for tool, args in fake_tools.calls if tool == "doc-to-text"][0]
        assert extract_args[1:7] == [
            "--content-type", "image", "--ocr", "llm-caller", "--llm_template", "ocr-tpl",
        ]
        _, kwargs = mock_invoker.invoke.call_args_list[0]
        assert kwargs["interactive"] is False

    def test_load_existing_requires_object(self, mock_invoker, tmp_path):
        path = tmp_path / "x.receipt.json"
        path.write_text("[1, 2]")

        with pytest.raises(ValueError):
            ReceiptPipeline(invoker=mock_invoker).load_existing(path)

    def test_aggregates(self, mock_invoker):
        assert ReceiptPipeline(invoker=mock_invoker).aggregates is True
        assert TextPipeline(invoker=mock_invoker).aggregates is False


# ============================================================
# Audio Pipeline Tests
# ============================================================

class TestTranscodeOptions:
    """Test audio format and quality handling."""

    def test_unknown_format_rejected(self):
        with pytest.raises(ConfigurationError, match="wma"):
            TranscodeOptions("wma").validate()

    @pytest.mark.parametrize("fmt, quality, expected", [
        ("mp3", "low", ["-ab", "128k"]),
        ("mp3", "high", ["-ab", "320k"]),
        ("ogg", "standard", ["-aq", "4"]),
        ("aac", "high", ["-ab", "256k"]),
        ("wav", "high", []),
        ("flac", "low", []),
    ])
    def test_quality_args(self, fmt, quality, expected):
        assert TranscodeOptions(fmt, quality).quality_args() == expected

    def test_unknown_quality_falls_back_to_standard(self):
        assert TranscodeOptions("mp3", "ultra").quality_args() == ["-ab", "192k"]


class TestAudioPipeline:
    """Test the ffmpeg audio pipeline."""

    def test_output_name_and_extension(self, mock_invoker):
        pipeline = AudioPipeline(TranscodeOptions("ogg"), invoker=mock_invoker)
        assert pipeline.output_name(Path("talk.mp4")) == "talk.ogg"
        assert pipeline.default_extension == ".ogg"

    def test_build_args(self, mock_invoker):
        pipeline = AudioPipeline(TranscodeOptions("mp3"), invoker=mock_invoker)

        args = pipeline.build_args(Path("in.mp4"), Path("out.mp3"), overwrite=True)

        assert args == ["-i", "in.mp4", "-vn", "-acodec", "libmp3lame", "-ab", "192k", "-y", "out.mp3"]

    def test_build_args_without_overwrite(self, mock_invoker):
        pipeline = AudioPipeline(TranscodeOptions("wav"), invoker=mock_invoker)
        args = pipeline.build_args(Path("in.mp4"), Path("out.wav"), overwrite=False)
        assert args == ["-i", "in.mp4", "-vn", "-acodec", "pcm_s16le", "out.wav"]

    def test_probe_requires_ffmpeg_marker(self, mock_invoker):
        (check,) = AudioPipeline(invoker=mock_invoker).required_tools()
        assert check.tool == "ffmpeg"
        assert check.marker == "ffmpeg version"

    def test_missing_output_is_stage_failure(self, video, tmp_path):
        """ffmpeg exiting cleanly without an output file is still a failure."""
        invoker = MagicMock(spec=ToolInvoker)
        invoker.invoke.return_value = ToolResult("ffmpeg", [], returncode=0)
        pipeline = AudioPipeline(invoker=invoker)

        with pytest.raises(StageFailure, match="not created"):
            pipeline.run_stages(video, tmp_path / "talk.mp3", RunConfig(video))

    def test_transcoder_error(self, video, tmp_path):
        invoker = MagicMock(spec=ToolInvoker)
        invoker.invoke.return_value = ToolResult(
            "ffmpeg", [], stderr="Invalid data found when processing input\n",
            returncode=1, error_kind=ErrorKind.FAILED, error="ffmpeg exited with status 1",
        )

        with pytest.raises(StageFailure) as exc_info:
            AudioPipeline(invoker=invoker).run_stages(video, tmp_path / "talk.mp3", RunConfig(video))

        assert exc_info.value.stage == "transcode"
        assert exc_info.value.excerpt == ["stderr: Invalid data found when processing input"]

    def test_unwritable_output_directory_is_persist_failure(self, mock_invoker, video, tmp_path):
        (tmp_path / "blocked").write_text("a file in the way")
        pipeline = AudioPipeline(invoker=mock_invoker)

        with pytest.raises(PersistFailure, match="output directory"):
            pipeline.run_stages(video, tmp_path / "blocked" / "talk.mp3", RunConfig(video))

        mock_invoker.invoke.assert_not_called()
