"""Controllers: the pipeline re-run policy and the export sink."""
from .pipeline import PipelineController, RunReport
from .export import ExportState, ExportStatus, OutputSink

__all__ = [
    "PipelineController",
    "RunReport",
    "ExportState",
    "ExportStatus",
    "OutputSink",
]
