# resumind/pipeline/orchestrator.py
# ============================================================
# Pipeline Orchestrator: Resume Submission Workflow
# ============================================================
# Runs one submission through six gated stages:
#
#   1. Upload the source PDF              → resume path
#   2. Render page 1 to PNG
#   3. Upload the PNG                     → image path
#   4. Persist a checkpoint record        (feedback = "")
#   5. Ask the AI service for feedback
#   6. Parse the feedback, persist again  (same key, overwrite)
#
# State machine:
#   IDLE → UPLOADING_SOURCE → CONVERTING → UPLOADING_IMAGE
#        → PERSISTING → ANALYZING → COMPLETE
#   Any stage may end in FAILED instead; the stage is recorded.
#
# Design Decisions:
#   1. The checkpoint is written before analysis, so a crash or a
#      slow model still leaves the uploads findable by record id.
#   2. Failures are not rolled back. Partial records stay.
#   3. Stage failures do not escape submit(): the status string
#      and the returned PipelineOutcome are all the caller sees.
#   4. Nothing is retried; each stage runs once.
#
# Usage:
#   pipeline = ResumePipeline(storage, store, ai, on_status=print)
#   outcome = await pipeline.submit(form, SourceDocument.from_path("cv.pdf"))
# ============================================================

import time
import uuid
from dataclasses import dataclass
from enum import Enum
from typing import Any, Awaitable, Callable, Optional

from config.settings import settings
from resumind.analysis.client import FeedbackService
from resumind.analysis.prompts import prepare_instructions
from resumind.analysis.schemas import extract_feedback
from resumind.errors import AnalysisFailure, ConversionFailure, ParseFailure, UploadFailure
from resumind.pipeline.models import PipelineRecord, SubmissionForm
from resumind.render.converter import ConversionResult, ImageFile, SourceDocument, convert_page, require_image
from resumind.services.storage import KeyValueStore, ObjectStorage, StoredFile
from resumind.utils.logger import get_logger

logger = get_logger(__name__)


class PipelineState(str, Enum):
    IDLE = "idle"
    UPLOADING_SOURCE = "uploading_source"
    CONVERTING = "converting"
    UPLOADING_IMAGE = "uploading_image"
    PERSISTING = "persisting"
    ANALYZING = "analyzing"
    COMPLETE = "complete"
    FAILED = "failed"


# Shown when a stage starts
STAGE_STATUS: dict[PipelineState, str] = {
    PipelineState.UPLOADING_SOURCE: "Uploading the file...",
    PipelineState.CONVERTING: "Converting to image...",
    PipelineState.UPLOADING_IMAGE: "Uploading the image...",
    PipelineState.PERSISTING: "Preparing data...",
    PipelineState.ANALYZING: "Analyzing...",
}

# Shown when a stage fails
FAILURE_STATUS: dict[PipelineState, str] = {
    PipelineState.UPLOADING_SOURCE: "File upload failed",
    PipelineState.CONVERTING: "Failed to convert PDF to image",
    PipelineState.UPLOADING_IMAGE: "Failed to upload image",
    PipelineState.ANALYZING: "Failed to analyse resume",
}

PARSE_FAILURE_STATUS = "Failed to parse feedback"
COMPLETE_STATUS = "Analysis complete, redirecting..."


@dataclass
class PipelineOutcome:
    """
    Terminal result of one submission.

    Attributes:
        state: COMPLETE or FAILED.
        record_id: Id of the persisted record, once one was assigned.
        failed_stage: The stage that stopped the pipeline, if it failed.
        status: The last status string shown to the user.
    """
    state: PipelineState
    record_id: Optional[str] = None
    failed_stage: Optional[PipelineState] = None
    status: str = ""

    @property
    def completed(self) -> bool:
        return self.state is PipelineState.COMPLETE


Converter = Callable[[SourceDocument], Awaitable[ConversionResult]]


def record_key(record_id: str, prefix: Optional[str] = None) -> str:
    return f"{prefix or settings.record_key_prefix}-{record_id}"


class ResumePipeline:
    """
    One submission's trip from uploaded PDF to persisted feedback.

    Each instance runs once. The only state shared with other pipelines
    is the process-wide rendering engine.

    Example:
        >>> pipeline = ResumePipeline(storage, store, client, on_status=print)
        >>> outcome = await pipeline.submit(form, document)
        Uploading the file...
        Converting to image...
        ...
        >>> outcome.completed
        True
    """

    def __init__(
        self,
        storage: ObjectStorage,
        store: KeyValueStore,
        feedback_service: FeedbackService,
        id_factory: Optional[Callable[[], str]] = None,
        converter: Optional[Converter] = None,
        on_status: Optional[Callable[[str], None]] = None,
        key_prefix: Optional[str] = None,
    ):
        self.storage = storage
        self.store = store
        self.feedback_service = feedback_service
        self.id_factory = id_factory or (lambda: str(uuid.uuid4()))
        self.converter = converter or convert_page
        self.on_status = on_status
        self.key_prefix = key_prefix

        self.state = PipelineState.IDLE
        self.status = ""
        self.record: Optional[PipelineRecord] = None

    # ------------------------------------------------------------
    # Driver
    # ------------------------------------------------------------

    async def submit(self, form: SubmissionForm, document: SourceDocument) -> PipelineOutcome:
        """
        Run every stage in order, stopping at the first failure.

        Returns:
            PipelineOutcome. Stage failures are reported here and through
            the status callback, never raised. Exceptions from the
            collaborators themselves (e.g. a store write error) propagate.
        """
        if self.state is not PipelineState.IDLE:
            raise RuntimeError("A ResumePipeline runs a single submission; create a new one")

        start = time.perf_counter()
        logger.info(
            f"Pipeline starting — file: [bold]{document.name}[/bold], "
            f"job: {form.job_title or '-'} @ {form.company_name or '-'}"
        )

        try:
            self._enter(PipelineState.UPLOADING_SOURCE)
            source = await self._upload(document.data, document.name)

            self._enter(PipelineState.CONVERTING)
            image = await self._convert(document)

            self._enter(PipelineState.UPLOADING_IMAGE)
            stored_image = await self._upload(image.data, image.name)

            self._enter(PipelineState.PERSISTING)
            record = await self._checkpoint(form, source, stored_image)

            self._enter(PipelineState.ANALYZING)
            response = await self._analyze(record)
            await self._finalize(record, response)

        except ParseFailure as e:
            return self._fail(PARSE_FAILURE_STATUS, e)
        except (UploadFailure, ConversionFailure, AnalysisFailure) as e:
            return self._fail(FAILURE_STATUS[self.state], e)

        self.state = PipelineState.COMPLETE
        self._set_status(COMPLETE_STATUS)
        logger.info(
            f"Pipeline complete — record [bold]{record.id}[/bold] "
            f"in {(time.perf_counter() - start) * 1000:.0f}ms"
        )
        return PipelineOutcome(state=self.state, record_id=record.id, status=self.status)

    def _enter(self, state: PipelineState) -> None:
        self.state = state
        self._set_status(STAGE_STATUS[state])

    def _set_status(self, text: str) -> None:
        self.status = text
        logger.debug(f"{self.state.value}: {text}")
        if self.on_status is not None:
            self.on_status(text)

    def _fail(self, status: str, error: Exception) -> PipelineOutcome:
        failed_stage = self.state
        self.state = PipelineState.FAILED
        self._set_status(status)
        logger.error(f"Pipeline failed at [bold]{failed_stage.value}[/bold]: {error}")
        return PipelineOutcome(
            state=self.state,
            record_id=self.record.id if self.record else None,
            failed_stage=failed_stage,
            status=status,
        )

    # ------------------------------------------------------------
    # Stages
    # ------------------------------------------------------------

    async def _upload(self, data: bytes, name: str) -> StoredFile:
        stored = await self.storage.upload(data, name)
        if not stored:
            raise UploadFailure(f"Storage returned no handle for {name}")
        return stored

    async def _convert(self, document: SourceDocument) -> ImageFile:
        return require_image(await self.converter(document))

    async def _checkpoint(
        self, form: SubmissionForm, source: StoredFile, image: StoredFile
    ) -> PipelineRecord:
        self.record = PipelineRecord(
            id=self.id_factory(),
            resume_path=source.path,
            image_path=image.path,
            company_name=form.company_name,
            job_title=form.job_title,
            job_description=form.job_description,
            feedback="",
        )
        await self._persist(self.record)
        return self.record

    async def _analyze(self, record: PipelineRecord) -> Any:
        instructions = prepare_instructions(record.job_title, record.job_description)
        response = await self.feedback_service.feedback(record.image_path, instructions)
        if not response:
            raise AnalysisFailure(f"No feedback returned for {record.image_path}")
        return response

    async def _finalize(self, record: PipelineRecord, response: Any) -> None:
        record.feedback = extract_feedback(response)
        await self._persist(record)

    async def _persist(self, record: PipelineRecord) -> None:
        key = record_key(record.id, self.key_prefix)
        ack = await self.store.set(key, record.to_json())
        if not ack:
            # Write rejections are not acted on; the pipeline carries on
            logger.warning(f"Store did not acknowledge write of {key}")
