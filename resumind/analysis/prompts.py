# resumind/analysis/prompts.py
# ============================================================
# Resume Review Prompt Templates
# ============================================================
# Builds the instructions sent alongside the rendered resume
# image. The model is asked to answer with a single JSON object
# whose shape is described by RESPONSE_FORMAT, so the reply can
# be parsed straight into the record's feedback field.
#
# Usage:
#   from resumind.analysis.prompts import prepare_instructions
#   prompt = prepare_instructions("Data Engineer", "Spark, Airflow...")
# ============================================================

from enum import Enum


class FeedbackCategory(str, Enum):
    """
    Sections the model scores. Each one carries a 0-100 score and a
    list of tips in the response.
    """
    ATS = "ATS"
    TONE_AND_STYLE = "toneAndStyle"
    CONTENT = "content"
    STRUCTURE = "structure"
    SKILLS = "skills"


# ============================================================
# Response Format
# ============================================================
# ATS tips are short one-liners; the other sections pair a tip
# title with a longer explanation.
# ============================================================

_SHORT_TIP = '{ "type": "good" | "improve", "tip": string }'
_LONG_TIP = '{ "type": "good" | "improve", "tip": string, "explanation": string }'


def _section(category: FeedbackCategory) -> str:
    tip = _SHORT_TIP if category is FeedbackCategory.ATS else _LONG_TIP
    return f'  "{category.value}": {{ "score": number, "tips": [ {tip}, ... ] }}'


RESPONSE_FORMAT = "{\n" + '  "overallScore": number,\n' + ",\n".join(
    _section(category) for category in FeedbackCategory
) + "\n}"


def prepare_instructions(job_title: str, job_description: str) -> str:
    """
    Build the review instructions for one submission.

    Args:
        job_title: Title of the role the candidate is applying for.
        job_description: Posting text. May be empty.

    Returns:
        The prompt string to send with the resume image.

    Example:
        >>> "Backend Engineer" in prepare_instructions("Backend Engineer", "")
        True
    """
    description = job_description.strip() or "(not provided)"
    return (
        "You are an expert in Applicant Tracking Systems (ATS) and resume review.\n"
        "Analyse and rate the attached resume and explain how to improve it.\n"
        "Be thorough and honest: low scores are fine when the resume is weak, "
        "since the goal is to help the candidate improve it.\n"
        "Where a job description is given, judge the resume against it.\n"
        f"Job title: {job_title.strip()}\n"
        f"Job description: {description}\n"
        "Scores range from 0 to 100. Give 3-4 tips per section.\n"
        "Answer with one JSON object in exactly this shape:\n"
        f"{RESPONSE_FORMAT}\n"
        "Return only the JSON object, with no surrounding text, comments or code fences."
    )


def list_categories() -> list[str]:
    """Names of every scored feedback section, in response order."""
    return [category.value for category in FeedbackCategory]
