import json

import pytest

from fixtures import OpenAIStub

from quizwith.core.ai import AIService, AIUnavailableError
from quizwith.core.config import AIConfig
from quizwith.errors import MalformedResponse
from quizwith.quiz.generator import (
    GenerationError,
    QuestionGenerator,
    build_prompts,
    extract_json_array,
    parse_generated_questions,
)

SAMPLE = [
    {
        "text": "What does CPU stand for?",
        "options": [
            "Central Processing Unit",
            "Computer Personal Unit",
            "Central Print Unit",
            "Core Power Unit",
        ],
        "correctAnswerIndex": 0,
    },
    {
        "text": "Which is a prime?",
        "options": ["4", "6", "7", "9"],
        "correctAnswerIndex": 2,
    },
]


def _settings():
    return AIConfig(
        model="gpt-4o-mini",
        temperature=0.4,
        max_tokens=1200,
        question_count=3,
        api_base=None,
        request_timeout_seconds=60,
    )


def test_build_prompts_mentions_topic_and_format():
    system_prompt, user_prompt = build_prompts("Photosynthesis", 5)
    assert "multiple-choice" in system_prompt
    assert '5 multiple-choice quiz questions about "Photosynthesis"' in user_prompt
    assert "correctAnswerIndex" in user_prompt


def test_extract_json_array_plain_and_fenced():
    payload = json.dumps(SAMPLE)
    assert extract_json_array(payload) == SAMPLE
    fenced = f"Here you go:\n```json\n{payload}\n```\n"
    assert extract_json_array(fenced) == SAMPLE


@pytest.mark.parametrize(
    "content, message",
    [
        ("", "empty response"),
        ("not json", "not valid JSON"),
        ('{"text": "x"}', "must be a JSON array"),
    ],
)
def test_extract_json_array_rejects_bad_output(content, message):
    with pytest.raises(MalformedResponse, match=message):
        extract_json_array(content)


def test_parse_generated_questions_assigns_ids_and_single_answer():
    questions = parse_generated_questions(SAMPLE, id_prefix="gen")
    assert [q.id for q in questions] == ["gen-q0", "gen-q1"]
    assert [o.id for o in questions[1].options] == [
        "gen-q1-o0",
        "gen-q1-o1",
        "gen-q1-o2",
        "gen-q1-o3",
    ]
    assert all(q.is_answerable for q in questions)
    assert questions[1].correct_options[0].text == "7"


def test_parse_generated_questions_uses_fresh_prefix():
    first = parse_generated_questions(SAMPLE[:1])
    second = parse_generated_questions(SAMPLE[:1])
    assert first[0].id != second[0].id


@pytest.mark.parametrize(
    "item, message",
    [
        ("nope", "is not an object"),
        ({"text": " ", "options": ["a", "b"], "correctAnswerIndex": 0}, "no text"),
        ({"text": "Q", "options": ["a"], "correctAnswerIndex": 0}, "at least two"),
        ({"text": "Q", "options": ["a", ""], "correctAnswerIndex": 0}, "empty option"),
        ({"text": "Q", "options": ["a", "b"]}, "integer correctAnswerIndex"),
        (
            {"text": "Q", "options": ["a", "b"], "correctAnswerIndex": 2},
            "out of range",
        ),
        (
            {"text": "Q", "options": ["a", "b"], "correctAnswerIndex": True},
            "integer correctAnswerIndex",
        ),
    ],
)
def test_invalid_item_rejects_whole_batch(item, message):
    with pytest.raises(MalformedResponse, match=message):
        parse_generated_questions([SAMPLE[0], item])


def test_generate_calls_chat_completions():
    client = OpenAIStub()
    client.queue_response("```json\n" + json.dumps(SAMPLE) + "\n```")
    generator = QuestionGenerator(AIService.ready(client), _settings())

    questions = generator.generate("  Computers ", 2)

    assert len(questions) == 2
    call = client.calls[0]
    assert call["model"] == "gpt-4o-mini"
    assert call["temperature"] == pytest.approx(0.4)
    assert call["max_tokens"] == 1200
    assert call["messages"][0]["role"] == "system"
    assert '"Computers"' in call["messages"][1]["content"]


def test_generate_defaults_count_from_settings():
    client = OpenAIStub()
    client.queue_response(json.dumps(SAMPLE))
    QuestionGenerator(AIService.ready(client), _settings()).generate("Topic")
    assert "Generate 3 multiple-choice" in client.calls[0]["messages"][1]["content"]


def test_generate_wraps_transport_errors():
    def boom(_kwargs):
        raise TimeoutError("slow network")

    client = OpenAIStub(side_effect=boom)
    generator = QuestionGenerator(AIService.ready(client), _settings())
    with pytest.raises(GenerationError, match="slow network"):
        generator.generate("Topic", 1)


def test_generate_surfaces_malformed_output():
    client = OpenAIStub()
    client.queue_response("I cannot help with that.")
    generator = QuestionGenerator(AIService.ready(client), _settings())
    with pytest.raises(MalformedResponse):
        generator.generate("Topic", 1)


def test_generate_requires_available_ai():
    generator = QuestionGenerator(AIService.unavailable("no key"), _settings())
    assert generator.available is False
    with pytest.raises(AIUnavailableError, match="no key"):
        generator.generate("Topic", 1)


@pytest.mark.parametrize("topic, count", [("", 1), ("Topic", 0)])
def test_generate_validates_arguments(topic, count):
    generator = QuestionGenerator(AIService.ready(OpenAIStub()), _settings())
    with pytest.raises(ValueError):
        generator.generate(topic, count)
