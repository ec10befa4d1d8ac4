# docflow/pipeline/contract.py
# ============================================================
# Contract Review Pipeline
# ============================================================
# Two stages per document:
#   1. extractor → cached <fingerprint>/<stem>.extracted.txt
#   2. llm-caller <contract template> → review text
# The review is written verbatim as <stem>.review.txt.
# ============================================================

from pathlib import Path
from typing import Optional, Sequence

from config.settings import settings
from docflow.document.discovery import DOCUMENT_EXTENSIONS
from docflow.pipeline.base import Pipeline, RunConfig, ToolCheck, write_artifact
from docflow.pipeline.results import Success
from docflow.pipeline.stages import ExtractionOptions, ExtractionStage, LlmStage
from docflow.tools.invoker import ToolInvoker
from docflow.tools.locator import FallbackLocator
from docflow.utils.logger import get_logger

logger = get_logger(__name__)


class ContractPipeline(Pipeline):
    """Contracts → LLM review reports."""

    name = "contracts"
    extensions = DOCUMENT_EXTENSIONS
    default_extension = ".txt"

    def __init__(
        self,
        options: Optional[ExtractionOptions] = None,
        template: Optional[str] = None,
        invoker: Optional[ToolInvoker] = None,
        locator: Optional[FallbackLocator] = None,
    ):
        super().__init__(invoker, locator)
        self.options = options or ExtractionOptions()
        self.extraction = ExtractionStage(self.invoker, self.locator, self.options)
        self.review = LlmStage(self.invoker, template or settings.contract_llm_template, name="review")

    def validate(self, run: RunConfig) -> None:
        super().validate(run)
        self.options.validate()

    def required_tools(self) -> Sequence[ToolCheck]:
        return [ToolCheck(self.extraction.command), ToolCheck(self.review.command)]

    def output_name(self, input_file: Path) -> str:
        return f"{input_file.stem}.review.txt"

    def run_stages(self, input_file: Path, output_file: Path, run: RunConfig) -> Success:
        text = self.extraction.extract_cached(input_file, output_file.parent, verbose=run.verbose)

        logger.info(f"Reviewing contract with template [bold]{self.review.template}[/bold]")
        review = self.review.run(text)

        write_artifact(output_file, review)
        logger.info(f"Contract review saved to [bold]{output_file}[/bold]")
        return Success(input_file, output_file, review)

    def describe(self) -> dict[str, str]:
        return {
            "OCR tool": self.options.ocr_tool or "interactive",
            "Review template": self.review.template,
        }
