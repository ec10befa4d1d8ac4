# docflow/pipeline/__init__.py
# ============================================================
# Pipeline Package
# ============================================================
# The batch engine and its four concrete pipelines.
#
# Key classes:
#   - PipelineOrchestrator: runs a pipeline over an input root
#   - Pipeline: base class every concrete pipeline implements
#   - TextPipeline, ReceiptPipeline, ContractPipeline,
#     AudioPipeline: the concrete variants
#   - RunConfig / RunReport: per-run input and outcome
# ============================================================

from docflow.pipeline.base import Pipeline, RunConfig, ToolCheck
from docflow.pipeline.contract import ContractPipeline
from docflow.pipeline.media import AudioPipeline, TranscodeOptions
from docflow.pipeline.orchestrator import PipelineOrchestrator
from docflow.pipeline.receipt import ReceiptPipeline
from docflow.pipeline.results import Failure, PipelineResult, RunReport, Skipped, Success
from docflow.pipeline.stages import ExtractionOptions
from docflow.pipeline.text import TextPipeline

__all__ = [
    "Pipeline",
    "RunConfig",
    "ToolCheck",
    "PipelineOrchestrator",
    "TextPipeline",
    "ReceiptPipeline",
    "ContractPipeline",
    "AudioPipeline",
    "ExtractionOptions",
    "TranscodeOptions",
    "Success",
    "Skipped",
    "Failure",
    "PipelineResult",
    "RunReport",
]
