"""AI-assisted multiple-choice question generation."""

from __future__ import annotations

import json
import logging
import re
from typing import Any, List, Optional, Sequence
from uuid import uuid4

from ..core.ai import AIService
from ..core.config import AIConfig
from ..errors import MalformedResponse, QuizwithError
from .models import Option, Question

__all__ = [
    "GenerationError",
    "QuestionGenerator",
    "build_prompts",
    "extract_json_array",
    "parse_generated_questions",
]

OPTIONS_PER_QUESTION = 4

logger = logging.getLogger(__name__)

_FENCE_RE = re.compile(r"```(?:\w+)?\s*(.+?)\s*```", re.DOTALL)


class GenerationError(QuizwithError):
    """Raised when the model call itself fails."""


def build_prompts(topic: str, count: int) -> tuple[str, str]:
    system_prompt = (
        "You write clear multiple-choice quiz questions for online courses."
    )
    user_prompt = (
        f'Generate {count} multiple-choice quiz questions about "{topic}".\n'
        f"Each question must have {OPTIONS_PER_QUESTION} options with only "
        "one correct answer.\n"
        "Format the output as a JSON array of objects with this structure:\n"
        '{"text": "The question text?", '
        '"options": ["Option A", "Option B", "Option C", "Option D"], '
        '"correctAnswerIndex": 0}\n'
        "'correctAnswerIndex' is the 0-based index of the correct option.\n"
        "Respond with ONLY the JSON array, without Markdown or other text."
    )
    return system_prompt, user_prompt


def extract_json_array(content: str) -> List[Any]:
    """Parse a JSON array from model output, tolerating Markdown fences."""

    text = (content or "").strip()
    if not text:
        raise MalformedResponse("Model returned an empty response.")
    fenced = _FENCE_RE.search(text)
    payload = fenced.group(1) if fenced else text
    try:
        data = json.loads(payload)
    except json.JSONDecodeError as exc:
        raise MalformedResponse(f"Model output is not valid JSON: {exc}") from exc
    if not isinstance(data, list):
        raise MalformedResponse("Model output must be a JSON array.")
    return data


def _correct_index(item: dict, option_count: int, position: int) -> int:
    raw = item.get("correctAnswerIndex", item.get("correct_answer_index"))
    if isinstance(raw, bool) or not isinstance(raw, int):
        raise MalformedResponse(
            f"Generated question {position} needs an integer correctAnswerIndex."
        )
    if not 0 <= raw < option_count:
        raise MalformedResponse(
            f"Generated question {position} has correctAnswerIndex out of range."
        )
    return raw


def parse_generated_questions(
    data: Sequence[Any], *, id_prefix: Optional[str] = None
) -> List[Question]:
    """Turn the model's ``{text, options, correctAnswerIndex}`` items into
    questions with fresh ids. Any invalid item rejects the whole batch."""

    prefix = id_prefix or f"ai-{uuid4().hex[:8]}"
    questions: List[Question] = []
    for position, item in enumerate(data):
        if not isinstance(item, dict):
            raise MalformedResponse(
                f"Generated question {position} is not an object."
            )
        text = item.get("text")
        if not isinstance(text, str) or not text.strip():
            raise MalformedResponse(f"Generated question {position} has no text.")
        raw_options = item.get("options")
        if not isinstance(raw_options, list) or len(raw_options) < 2:
            raise MalformedResponse(
                f"Generated question {position} needs at least two options."
            )
        option_texts = [str(option).strip() for option in raw_options]
        if not all(option_texts):
            raise MalformedResponse(
                f"Generated question {position} has an empty option."
            )
        correct = _correct_index(item, len(option_texts), position)
        question_id = f"{prefix}-q{position}"
        questions.append(
            Question(
                id=question_id,
                text=text.strip(),
                options=tuple(
                    Option(
                        id=f"{question_id}-o{index}",
                        text=option_text,
                        is_correct=index == correct,
                    )
                    for index, option_text in enumerate(option_texts)
                ),
            )
        )
    return questions


class QuestionGenerator:
    """Draft quiz questions on a topic with the configured chat model."""

    def __init__(self, ai: AIService, settings: AIConfig) -> None:
        self._ai = ai
        self._settings = settings

    @property
    def available(self) -> bool:
        return self._ai.available

    def generate(self, topic: str, count: Optional[int] = None) -> List[Question]:
        topic = topic.strip()
        if not topic:
            raise ValueError("topic must not be empty")
        total = count if count is not None else self._settings.question_count
        if total <= 0:
            raise ValueError("count must be positive")
        client = self._ai.require_client()
        system_prompt, user_prompt = build_prompts(topic, total)
        logger.info(
            "Requesting generated questions",
            extra={"topic": topic, "count": total, "model": self._settings.model},
        )
        try:
            response = client.chat.completions.create(
                model=self._settings.model,
                messages=[
                    {"role": "system", "content": system_prompt},
                    {"role": "user", "content": user_prompt},
                ],
                temperature=self._settings.temperature,
                max_tokens=self._settings.max_tokens,
            )
            content = response.choices[0].message.content or ""
        except Exception as exc:  # noqa: BLE001
            logger.error(
                "Question generation request failed",
                extra={"topic": topic, "error": str(exc)},
            )
            raise GenerationError(f"Failed to generate questions: {exc}") from exc

        questions = parse_generated_questions(extract_json_array(content))
        logger.info(
            "Generated questions",
            extra={"topic": topic, "count": len(questions)},
        )
        return questions
