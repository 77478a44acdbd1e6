import json
import logging
import os
from typing import Annotated, Any, Dict, List, Literal, Union

import groq
from groq import AsyncGroq
from pydantic import BaseModel, ConfigDict, Field

from errors import AnalysisError
from .file_types import supports_optimizations
from .prompts import (
    ANALYSIS_SCHEMA_VERSION,
    OPTIMIZATION_CATEGORIES,
    build_system_prompt,
    build_user_prompt,
)

logger = logging.getLogger(__name__)

# LLM Request Settings
# ====================
LLM_MODEL = os.getenv("GROQ_MODEL", "llama-3.3-70b-versatile")
LLM_TEMPERATURE = 0.7
MAX_OUTPUT_TOKENS = 4000
# Per-call limit enforced by the HTTP client, shorter than the gateway budget
LLM_REQUEST_TIMEOUT_SECONDS = 50.0

QUIZ_COMPOSITION = {"multipleChoice": 3, "shortAnswer": 1, "essay": 1}


# Quiz Models
# ===========
class MultipleChoiceQuiz(BaseModel):
    model_config = ConfigDict(extra="allow")

    type: Literal["multipleChoice"]
    question: str
    options: List[str] = Field(min_length=4, max_length=4)
    answer: int = Field(ge=0, le=3)
    explanation: str


class ShortAnswerQuiz(BaseModel):
    model_config = ConfigDict(extra="allow")

    type: Literal["shortAnswer"]
    question: str
    answer: str
    acceptableAnswers: List[str] = []
    explanation: str


class EssayQuiz(BaseModel):
    model_config = ConfigDict(extra="allow")

    type: Literal["essay"]
    question: str
    sampleAnswer: str
    keyPoints: List[str]
    explanation: str


QuizItem = Annotated[
    Union[MultipleChoiceQuiz, ShortAnswerQuiz, EssayQuiz],
    Field(discriminator="type"),
]


class QuizSet(BaseModel):
    quizzes: List[QuizItem]


def validate_quizzes(quizzes: Any) -> List[dict]:
    """
    Check that the quiz list has the required shape and composition.

    Returns:
        The validated quiz items, with values coerced to their declared types
        (e.g. a multiple choice answer of "2" becomes 2). Extra keys are kept.

    Raises:
        ValueError: If any item is malformed or the 3/1/1 composition is not met
    """
    quiz_set = QuizSet.model_validate({"quizzes": quizzes})
    counts = {quiz_type: 0 for quiz_type in QUIZ_COMPOSITION}
    for quiz in quiz_set.quizzes:
        counts[quiz.type] += 1
    if counts != QUIZ_COMPOSITION:
        raise ValueError(f"Unexpected quiz composition: {counts}")
    return [quiz.model_dump() for quiz in quiz_set.quizzes]


def empty_optimizations() -> Dict[str, list]:
    return {category: [] for category in OPTIMIZATION_CATEGORIES}


def parse_analysis_response(response_text: str) -> Dict[str, Any]:
    """
    Parse the model's reply into a dict.

    Raises:
        ValueError: If the reply is not a JSON object
    """
    response_text = (response_text or "").strip()

    # Remove markdown code blocks if present
    if response_text.startswith("```"):
        response_text = response_text.split("```")[1]
        if response_text.startswith("json"):
            response_text = response_text[4:]
        response_text = response_text.strip()

    result = json.loads(response_text)
    if not isinstance(result, dict):
        raise ValueError("Analysis reply is not a JSON object")
    return result


def finalize_analysis(result: Dict[str, Any], file_name: str) -> Dict[str, Any]:
    """
    Backfill optional sections and validate the quiz.

    JS/TS code files always get a ``codeOptimizations`` object, empty if the
    model left it out. No backfill happens for other files.

    Raises:
        ValueError: If the quiz does not match the required composition
    """
    if supports_optimizations(file_name) and not result.get("codeOptimizations"):
        result["codeOptimizations"] = empty_optimizations()

    result["quizzes"] = validate_quizzes(result.get("quizzes"))
    result["schemaVersion"] = ANALYSIS_SCHEMA_VERSION
    return result


async def analyze_file(api_key: str, file_name: str, file_content: str) -> Dict[str, Any]:
    """
    Generate a learning note for a source file with the Groq API.

    Args:
        api_key: Groq API key supplied by the caller
        file_name: Name of the file; its extension selects the prompt template
        file_content: Full text of the file

    Returns:
        dict: Analysis with overview, learning points, optional code
        optimizations and exactly five quiz items

    Raises:
        AnalysisError: On any API, network or reply-format failure. Provider
        details are logged, never included in the error.
    """
    messages = [
        {"role": "system", "content": build_system_prompt(file_name)},
        {"role": "user", "content": build_user_prompt(file_name, file_content)},
    ]

    try:
        async with AsyncGroq(
            api_key=api_key,
            timeout=LLM_REQUEST_TIMEOUT_SECONDS,
            max_retries=0,
        ) as client:
            chat_completion = await client.chat.completions.create(
                messages=messages,
                model=LLM_MODEL,
                temperature=LLM_TEMPERATURE,
                max_tokens=MAX_OUTPUT_TOKENS,
                response_format={"type": "json_object"},
            )

        response_text = chat_completion.choices[0].message.content
        return finalize_analysis(parse_analysis_response(response_text), file_name)

    except groq.APIStatusError as e:
        logger.error("Groq API error for %s: status=%s body=%s", file_name, e.status_code, e.body)
        raise AnalysisError() from e
    except groq.APIError as e:
        logger.error("Groq request failed for %s: %s", file_name, e)
        raise AnalysisError() from e
    except (ValueError, IndexError) as e:
        # json.JSONDecodeError and pydantic.ValidationError are ValueErrors
        logger.error("Invalid analysis reply for %s: %s", file_name, e)
        raise AnalysisError() from e
