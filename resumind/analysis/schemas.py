# resumind/analysis/schemas.py
# ============================================================
# AI Response Schemas
# ============================================================
# The feedback service answers with
#     {"message": {"content": <str> | [{"text": <str>}, ...]}}
#
# Both content shapes are tagged on the way in (TextContent or
# PartsContent) and reduced to one string by as_text(). Anything
# that does not match raises ParseFailure at this boundary.
# ============================================================

import json
from typing import Annotated, Any, Literal, Union

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from resumind.errors import ParseFailure


class ContentPart(BaseModel):
    model_config = ConfigDict(extra="ignore")

    text: str


class TextContent(BaseModel):
    kind: Literal["text"] = "text"
    text: str

    def as_text(self) -> str:
        return self.text


class PartsContent(BaseModel):
    kind: Literal["parts"] = "parts"
    parts: list[ContentPart] = Field(min_length=1)

    def as_text(self) -> str:
        # Only the first part carries the answer
        return self.parts[0].text


MessageContent = Annotated[Union[TextContent, PartsContent], Field(discriminator="kind")]


class AIMessage(BaseModel):
    model_config = ConfigDict(extra="ignore")

    content: MessageContent

    @field_validator("content", mode="before")
    @classmethod
    def _tag_content(cls, value: Any) -> Any:
        if isinstance(value, str):
            return {"kind": "text", "text": value}
        if isinstance(value, (list, tuple)):
            return {"kind": "parts", "parts": list(value)}
        return value


class AIResponse(BaseModel):
    model_config = ConfigDict(extra="ignore")

    message: AIMessage

    @property
    def text(self) -> str:
        return normalize_content(self.message.content)


def normalize_content(content: Union[TextContent, PartsContent]) -> str:
    """Collapse either content shape to the answer string."""
    return content.as_text()


def parse_ai_response(raw: Any) -> AIResponse:
    """
    Validate a raw service response.

    Raises:
        ParseFailure: The response does not match the expected shape.
    """
    try:
        return AIResponse.model_validate(raw)
    except ValidationError as e:
        raise ParseFailure(f"Malformed AI response: {e.error_count()} validation error(s)") from e


def parse_feedback(text: str) -> dict[str, Any]:
    """
    Parse the model's answer into structured feedback.

    Raises:
        ParseFailure: The text is not JSON, or is JSON but not an object.
    """
    try:
        value = json.loads(text)
    except json.JSONDecodeError as e:
        raise ParseFailure(f"Feedback is not valid JSON: {e.msg} (line {e.lineno}, col {e.colno})") from e

    if not isinstance(value, dict):
        raise ParseFailure(f"Feedback must be a JSON object, got {type(value).__name__}")
    return value


def extract_feedback(raw: Any) -> dict[str, Any]:
    """Validate a raw response, normalize its content and parse the feedback."""
    return parse_feedback(parse_ai_response(raw).text)
