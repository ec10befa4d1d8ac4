# docflow/pipeline/media.py
# ============================================================
# Audio Extraction Pipeline (video → audio)
# ============================================================
# One ffmpeg run per video:
#   ffmpeg -i <in> -vn -acodec <codec> <quality...> [-y] <out>
#
# ffmpeg always honours its output path, so there is no
# fallback lookup; a missing output after a clean exit is a
# stage failure.
# ============================================================

from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Sequence

from config.settings import settings
from docflow.document.discovery import VIDEO_EXTENSIONS
from docflow.errors import ConfigurationError, PersistFailure, StageFailure
from docflow.pipeline.base import Pipeline, RunConfig, ToolCheck
from docflow.pipeline.results import Success
from docflow.pipeline.stages import tool_failure
from docflow.tools.invoker import ToolInvoker
from docflow.tools.locator import FallbackLocator
from docflow.utils.logger import get_logger

logger = get_logger(__name__)

# Format → audio codec
AUDIO_CODECS = {
    "mp3": "libmp3lame",
    "wav": "pcm_s16le",
    "ogg": "libvorbis",
    "aac": "aac",
    "flac": "flac",
}

# Format → quality preset → extra ffmpeg args (lossless formats take none)
QUALITY_PARAMS = {
    "mp3": {"low": ["-ab", "128k"], "standard": ["-ab", "192k"], "high": ["-ab", "320k"]},
    "ogg": {"low": ["-aq", "2"], "standard": ["-aq", "4"], "high": ["-aq", "6"]},
    "aac": {"low": ["-ab", "128k"], "standard": ["-ab", "192k"], "high": ["-ab", "256k"]},
}

DEFAULT_QUALITY = "standard"
FFMPEG_MARKER = "ffmpeg version"


@dataclass(frozen=True)
class TranscodeOptions:
    """Target audio format and quality preset (low, standard, high)."""
    format: str = "mp3"
    quality: str = DEFAULT_QUALITY

    def validate(self) -> None:
        if self.format not in AUDIO_CODECS:
            raise ConfigurationError(
                f"Unsupported audio format '{self.format}'. "
                f"Available formats: {', '.join(AUDIO_CODECS)}"
            )

    def quality_args(self) -> list[str]:
        presets = QUALITY_PARAMS.get(self.format, {})
        return list(presets.get(self.quality, presets.get(DEFAULT_QUALITY, [])))


class AudioPipeline(Pipeline):
    """Videos → audio tracks in the chosen format."""

    name = "audio"
    extensions = VIDEO_EXTENSIONS

    def __init__(
        self,
        options: Optional[TranscodeOptions] = None,
        invoker: Optional[ToolInvoker] = None,
        locator: Optional[FallbackLocator] = None,
        command: Optional[str] = None,
    ):
        super().__init__(invoker, locator)
        self.options = options or TranscodeOptions()
        self.command = command or settings.transcoder_command
        self.default_extension = f".{self.options.format}"

    def validate(self, run: RunConfig) -> None:
        super().validate(run)
        self.options.validate()

    def required_tools(self) -> Sequence[ToolCheck]:
        return [
            ToolCheck(
                self.command,
                timeout=settings.transcoder_probe_timeout,
                marker=FFMPEG_MARKER,
            )
        ]

    def output_name(self, input_file: Path) -> str:
        return f"{input_file.stem}.{self.options.format}"

    def build_args(self, input_file: Path, output_file: Path, overwrite: bool) -> list[str]:
        args = [
            "-i", str(input_file),
            "-vn",
            "-acodec", AUDIO_CODECS[self.options.format],
            *self.options.quality_args(),
        ]
        if overwrite:
            args.append("-y")
        args.append(str(output_file))
        return args

    def run_stages(self, input_file: Path, output_file: Path, run: RunConfig) -> Success:
        try:
            output_file.parent.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise PersistFailure(output_file, f"cannot create output directory: {e}") from e

        args = self.build_args(input_file, output_file, run.overwrite)
        logger.info(f"Command: {self.command} {' '.join(args)}")

        result = self.invoker.invoke(self.command, args, timeout=settings.transcode_timeout)
        if not result.ok:
            raise tool_failure("transcode", result)

        if not output_file.exists():
            raise StageFailure("transcode", f"Output file was not created: {output_file}")

        logger.info(f"Audio extracted to [bold]{output_file}[/bold]")
        return Success(input_file, output_file)

    def describe(self) -> dict[str, str]:
        return {"Format": self.options.format, "Quality": self.options.quality}
