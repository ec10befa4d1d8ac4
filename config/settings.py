# config/settings.py
# ============================================================
# Centralized Configuration for the docflow batch pipelines
# ============================================================
# All settings are loaded from environment variables (or .env file).
# Pydantic validates types and provides sensible defaults.
#
# These are process-wide defaults only. Per-run choices (input,
# output, overwrite, ...) live in docflow.pipeline.base.RunConfig,
# which the CLI builds once and threads through the engine.
#
# Usage:
#   from config.settings import settings
#   invoker = ToolInvoker(allowed_commands=settings.allowed_commands)
# ============================================================

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Application-wide settings. Values are loaded from environment variables
    or a .env file. Every setting has a typed default so the pipelines can
    run out-of-the-box with zero configuration.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # --- External tools ---
    extractor_command: str = Field(
        default="doc-to-text",
        description="Text/OCR extraction CLI used by the document pipelines.",
    )
    llm_command: str = Field(
        default="llm-caller",
        description="Structured-extraction CLI (template based LLM caller).",
    )
    transcoder_command: str = Field(
        default="ffmpeg",
        description="Media transcoder used by the audio pipeline.",
    )
    allowed_commands: list[str] = Field(
        default_factory=list,
        description="Commands the invoker may run. Empty means no restriction.",
    )

    # --- Timeouts (seconds) ---
    probe_timeout: int = Field(
        default=10,
        description="Timeout for the '-h' availability probe of a tool.",
    )
    tool_timeout: int = Field(
        default=600,
        description="Timeout for a real extraction or LLM call.",
    )
    interactive_timeout: int = Field(
        default=1800,
        description="Timeout when the extractor may prompt the operator.",
    )
    transcode_timeout: int = Field(
        default=300,
        description="Timeout for a single transcoder run.",
    )
    transcoder_probe_timeout: int = Field(
        default=5,
        description="Timeout for the transcoder availability probe.",
    )

    # --- Extractor behaviour ---
    extractor_default_output: str = Field(
        default="text.txt",
        description="File name the extractor writes when it ignores '-o'.",
    )

    # --- LLM templates ---
    receipt_ocr_template: str = Field(
        default="qwen-vl-ocr-image",
        description="OCR template pinned by the receipt pipeline.",
    )
    receipt_extraction_template: str = Field(
        default="deepseek-ticket-extraction",
        description="Template that turns receipt text into a JSON record.",
    )
    contract_llm_template: str = Field(
        default="deepseek-contract-review",
        description="Default template for the contract review pipeline.",
    )

    # --- Reporting ---
    summary_dir_name: str = Field(
        default="total",
        description="Sub-directory of the output location holding group summaries.",
    )
    preview_chars: int = Field(
        default=200,
        description="Characters of an unparsable LLM payload shown in logs.",
    )
    excerpt_lines: int = Field(
        default=10,
        description="Non-blank stderr/stdout lines reported for a failed stage.",
    )
    probe_excerpt_lines: int = Field(
        default=5,
        description="Non-blank stderr/stdout lines reported for a failed probe.",
    )

    # --- Logging ---
    log_level: str = Field(
        default="INFO",
        description="Logging level: DEBUG | INFO | WARNING | ERROR.",
    )


# ============================================================
# Singleton instance — import this everywhere:
#   from config.settings import settings
# ============================================================
settings = Settings()
