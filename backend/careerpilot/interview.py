from typing import List

from pydantic import ValidationError

from .errors import CareerPilotError, EvaluationFailed, MalformedModelOutput
from .gemini_client import LLMClient
from .log import get_logger
from .models import AnswerEvaluation, InterviewQuestions
from .prompts import build_evaluation_prompt, build_questions_prompt

logger = get_logger("interview")


class InterviewCoach:
    def __init__(self, llm: LLMClient):
        self.llm = llm

    async def generate_questions(self, job_description: str) -> List[str]:
        """Five questions for the role, from screening to scenario-based."""
        response = await self.llm.generate(build_questions_prompt(job_description), InterviewQuestions)
        try:
            questions = InterviewQuestions.model_validate(response.data or {}).questions
        except ValidationError as e:
            logger.warning("Question output failed validation: %s", e.errors(include_url=False))
            raise MalformedModelOutput("The language model did not return exactly 5 interview questions.") from e
        return [q.strip() for q in questions]

    async def evaluate_answer(self, job_description: str, question: str, user_answer: str) -> AnswerEvaluation:
        prompt = build_evaluation_prompt(job_description, question, user_answer)
        try:
            response = await self.llm.generate(prompt, AnswerEvaluation)
        except CareerPilotError as e:
            logger.warning("Answer evaluation call failed: %s", e.message)
            raise EvaluationFailed(f"The answer could not be evaluated: {e.message}") from e
        try:
            return AnswerEvaluation.model_validate(response.data or {})
        except ValidationError as e:
            logger.warning("Evaluation output failed validation: %s", e.errors(include_url=False))
            raise EvaluationFailed("The answer could not be evaluated: the score was missing or out of range.") from e
