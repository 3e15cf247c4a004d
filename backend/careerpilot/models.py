from datetime import datetime, timezone
from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field
from pydantic.alias_generators import to_camel

from .status import MatchStatus


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class CamelModel(BaseModel):
    """Base for payloads exchanged with the UI and the LLM in camelCase."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class JobDescription(CamelModel):
    id: str
    title: str
    description: str


class JobCreate(CamelModel):
    title: str = Field(min_length=1)
    description: str = Field(min_length=1)


class AnalysisRequest(CamelModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    job_description: str = Field(description="The job description for the role.")
    resume: str = Field(description="The text content of the resume.")


class AnalysisOutput(CamelModel):
    """Shape the model must return for a skill analysis."""

    match_score: int = Field(
        ge=0, le=100, strict=True,
        description="Integer match score (0-100) between the resume and job description.",
    )
    score_rationale: str = Field(
        description="Explanation of the score, referencing core vs. preferred skills and project quality.",
    )
    matching_skills: List[str] = Field(
        description="Skills required by the job and found in the resume (explicitly or via mapping).",
    )
    missing_skills: List[str] = Field(
        description="Skills required by the job but missing from the resume.",
    )
    implied_skills: str = Field(
        description=(
            "Brief narrative of inferred skills with examples. Ex: "
            "\"Built REST API with Express.js -> implies Node.js & API Development.\""
        ),
    )
    status: Optional[str] = Field(
        default=None,
        description='Status based on match score: "Approved", "Needs Improvement", or "Not a Match".',
    )


class AnalysisResult(CamelModel):
    match_score: int = Field(ge=0, le=100)
    score_rationale: str
    matching_skills: List[str] = []
    missing_skills: List[str] = []
    implied_skills: str = ""
    status: MatchStatus


class ConversationTurn(CamelModel):
    role: Literal["user", "model"]
    content: str


class AgentRequest(CamelModel):
    history: List[ConversationTurn] = []
    prompt: str = ""
    job_id: Optional[str] = None
    resume_text: Optional[str] = None


class AgentResponse(CamelModel):
    response: str


class InterviewQuestions(CamelModel):
    questions: List[str] = Field(
        min_length=5, max_length=5,
        description=(
            "Exactly 5 interview questions that progressively increase in difficulty, "
            "from basic screening to complex, scenario-based ones."
        ),
    )


class QuestionsRequest(CamelModel):
    job_description: Optional[str] = None
    job_id: Optional[str] = None


class EvaluateAnswerRequest(CamelModel):
    job_description: str
    question: str
    user_answer: str


class AnswerEvaluation(CamelModel):
    score: int = Field(
        ge=1, le=10,
        description="Score from 1 to 10 for the answer, based on relevance, clarity, and technical accuracy.",
    )
    feedback: str = Field(
        description="Constructive feedback highlighting strengths and areas for improvement.",
    )


class AnalysisHistoryRecord(CamelModel):
    id: Optional[str] = None
    resume_file_name: str
    job_description_ref: str
    job_title: Optional[str] = None
    match_score: int
    status: MatchStatus
    username: Optional[str] = None
    created_at: datetime = Field(default_factory=_utcnow)


class UserCreate(CamelModel):
    username: str = Field(min_length=3, max_length=40)
    email: EmailStr
    password: str = Field(min_length=8)
    role: Literal["user", "admin"] = "user"


class User(CamelModel):
    id: str
    username: str
    email: EmailStr
    role: Literal["user", "admin"] = "user"
    created_at: datetime = Field(default_factory=_utcnow)


class UserSummary(User):
    analysis_count: int = 0


class LoginRequest(CamelModel):
    username: str
    password: str
