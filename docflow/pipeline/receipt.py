# docflow/pipeline/receipt.py
# ============================================================
# Receipt Structuring Pipeline
# ============================================================
# Two stages per document, fully automated:
#   1. extractor with LLM OCR → cached extracted text
#   2. llm-caller <receipt template> → JSON record
#
# The record is stamped with source_file / extraction_timestamp
# and written pretty-printed as <stem>.receipt.json. In batch
# mode all records (new and resumed) are grouped by their
# "type-code" into <output>/total/receipts_<group>.<fmt>.
# ============================================================

import json
from pathlib import Path
from typing import Any, Optional, Sequence

from config.settings import settings
from docflow.document.discovery import DOCUMENT_EXTENSIONS
from docflow.pipeline.base import Pipeline, RunConfig, ToolCheck, write_artifact
from docflow.pipeline.results import Success
from docflow.pipeline.stages import (
    LLM_OCR,
    ExtractionOptions,
    ExtractionStage,
    LlmStage,
    enrich_record,
    parse_structured_payload,
)
from docflow.report.aggregate import write_summaries
from docflow.tools.invoker import ToolInvoker
from docflow.tools.locator import FallbackLocator
from docflow.utils.logger import get_logger

logger = get_logger(__name__)

SUMMARY_PREFIX = "receipts_"


class ReceiptPipeline(Pipeline):
    """Receipt scans → structured JSON records with grouped summaries."""

    name = "receipts"
    extensions = DOCUMENT_EXTENSIONS
    default_extension = ".json"
    aggregates = True

    def __init__(
        self,
        ocr_template: Optional[str] = None,
        extraction_template: Optional[str] = None,
        invoker: Optional[ToolInvoker] = None,
        locator: Optional[FallbackLocator] = None,
    ):
        super().__init__(invoker, locator)
        self.options = ExtractionOptions(
            ocr_tool=LLM_OCR,
            ocr_llm_template=ocr_template or settings.receipt_ocr_template,
            content_type="image",
        )
        self.extraction = ExtractionStage(self.invoker, self.locator, self.options)
        self.structuring = LlmStage(
            self.invoker,
            extraction_template or settings.receipt_extraction_template,
            name="structure",
        )

    def validate(self, run: RunConfig) -> None:
        super().validate(run)
        self.options.validate()

    def required_tools(self) -> Sequence[ToolCheck]:
        return [ToolCheck(self.extraction.command), ToolCheck(self.structuring.command)]

    def output_name(self, input_file: Path) -> str:
        return f"{input_file.stem}.receipt.json"

    def run_stages(self, input_file: Path, output_file: Path, run: RunConfig) -> Success:
        text = self.extraction.extract_cached(input_file, output_file.parent, verbose=run.verbose)

        logger.info(f"Extracting receipt data with template [bold]{self.structuring.template}[/bold]")
        payload = self.structuring.run(text)
        record = enrich_record(parse_structured_payload(payload), input_file.stem)

        write_artifact(output_file, json.dumps(record, indent=2, ensure_ascii=False))
        logger.info(f"Receipt data saved to [bold]{output_file}[/bold]")
        return Success(input_file, output_file, record)

    def load_existing(self, output_file: Path) -> dict[str, Any]:
        data = json.loads(output_file.read_text(encoding="utf-8"))
        if not isinstance(data, dict):
            raise ValueError(f"expected a JSON object, got {type(data).__name__}")
        return data

    def aggregate(self, payloads: list[Any], output_dir: Path, run: RunConfig) -> list[Path]:
        return write_summaries(
            payloads,
            output_dir,
            run.summary_format,
            overwrite=run.overwrite,
            prefix=SUMMARY_PREFIX,
        )

    def describe(self) -> dict[str, str]:
        return {
            "OCR template": self.options.ocr_llm_template,
            "Extraction template": self.structuring.template,
        }
