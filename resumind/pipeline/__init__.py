# resumind/pipeline/__init__.py
# ============================================================
# Pipeline Package
# ============================================================
# Contains the ResumePipeline that ties storage, rendering and
# AI analysis together for one resume submission.
#
# Key classes:
#   - ResumePipeline: Six-stage upload → render → analyse workflow
#   - PipelineOutcome: Terminal state, record id, failed stage
#   - PipelineRecord: The persisted JSON record
# ============================================================

from resumind.pipeline.models import PipelineRecord, SubmissionForm
from resumind.pipeline.orchestrator import (
    PipelineOutcome,
    PipelineState,
    ResumePipeline,
    record_key,
)

__all__ = [
    "PipelineRecord",
    "SubmissionForm",
    "PipelineOutcome",
    "PipelineState",
    "ResumePipeline",
    "record_key",
]
