# resumind/pipeline/models.py
# ============================================================
# Pipeline Data Models
# ============================================================
# SubmissionForm holds what the user typed; PipelineRecord is
# what gets persisted. Records serialize to camelCase JSON:
#
#   {"id", "resumePath", "imagePath", "companyName",
#    "jobTitle", "jobDescription", "feedback"}
#
# `feedback` is "" in the checkpoint write and the parsed JSON
# object in the final write.
# ============================================================

from typing import Any, Union

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class SubmissionForm(BaseModel):
    """Form fields accompanying an uploaded resume."""
    company_name: str = ""
    job_title: str = ""
    job_description: str = ""


class PipelineRecord(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    id: str
    resume_path: str
    image_path: str
    company_name: str = ""
    job_title: str = ""
    job_description: str = ""
    feedback: Union[str, dict[str, Any]] = ""

    @property
    def has_feedback(self) -> bool:
        return isinstance(self.feedback, dict)

    def to_json(self) -> str:
        return self.model_dump_json(by_alias=True)

    @classmethod
    def from_json(cls, raw: str) -> "PipelineRecord":
        return cls.model_validate_json(raw)
