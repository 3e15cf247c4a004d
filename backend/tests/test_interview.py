import asyncio

import pytest

from careerpilot.errors import EvaluationFailed, MalformedModelOutput, ModelCallFailed
from careerpilot.interview import InterviewCoach
from careerpilot.models import AnswerEvaluation, InterviewQuestions
from fakes import FakeLLM

JD = "Data Analyst: SQL, statistics, dashboards."
QUESTIONS = [
    "Tell me about yourself.",
    "How do you clean a messy dataset?",
    "Which statistical tests do you use most?",
    "Walk me through a dashboard that changed a decision.",
    "A stakeholder disputes your numbers in a meeting. What do you do?",
]


def run(coro):
    return asyncio.run(coro)


def test_generate_questions():
    llm = FakeLLM({"questions": QUESTIONS})

    questions = run(InterviewCoach(llm).generate_questions(JD))

    assert questions == QUESTIONS
    assert llm.calls[0]["output_schema"] is InterviewQuestions
    assert JD in llm.calls[0]["prompt"]


@pytest.mark.parametrize("questions", [QUESTIONS[:4], QUESTIONS + ["One more?"], []])
def test_question_count_must_be_five(questions):
    llm = FakeLLM({"questions": questions})

    with pytest.raises(MalformedModelOutput):
        run(InterviewCoach(llm).generate_questions(JD))


def test_evaluate_answer():
    llm = FakeLLM({"score": 7, "feedback": "Clear, but name the tools you used."})

    evaluation = run(InterviewCoach(llm).evaluate_answer(JD, QUESTIONS[1], "I drop nulls."))

    assert evaluation == AnswerEvaluation(score=7, feedback="Clear, but name the tools you used.")
    assert '"I drop nulls."' in llm.calls[0]["prompt"]


@pytest.mark.parametrize("payload", [
    {"score": 0, "feedback": "x"},
    {"score": 11, "feedback": "x"},
    {"score": 6.5, "feedback": "x"},
    {"feedback": "no score"},
])
def test_out_of_range_or_missing_score_fails(payload):
    llm = FakeLLM(payload)

    with pytest.raises(EvaluationFailed):
        run(InterviewCoach(llm).evaluate_answer(JD, QUESTIONS[0], "I am an analyst."))


def test_model_failure_becomes_evaluation_failed():
    llm = FakeLLM(ModelCallFailed("timeout"))

    with pytest.raises(EvaluationFailed, match="timeout"):
        run(InterviewCoach(llm).evaluate_answer(JD, QUESTIONS[0], "I am an analyst."))
