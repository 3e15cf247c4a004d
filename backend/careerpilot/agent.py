"""Conversational career agent.

The agent keeps no state of its own: every call re-derives where the
conversation stands from the history the client sends back.

* Gathering: the current episode lacks a job description or a resume, so the
  agent asks for whatever is missing.
* ReadyToAnalyze: both are present, the analysis tool runs once.
* PresentingResult: the analysis is rendered; strong matches get an offer to
  practise interview questions.
* InterviewOffered: the user accepts the offer and five questions are
  generated for the analysed role.

An episode is the run of user turns since the last presented analysis, so a
new request after a result starts gathering again.
"""
import re
from dataclasses import dataclass
from typing import List, Optional, Sequence

from pydantic import Field

from .analysis import SkillAnalyzer
from .catalog import BUILTIN_JOBS, find_job_by_title
from .gemini_client import LLMClient, ToolDefinition
from .interview import InterviewCoach
from .log import get_logger
from .models import AnalysisRequest, AnalysisResult, CamelModel, ConversationTurn, JobDescription
from .prompts import AGENT_SYSTEM_PROMPT
from .status import INTERVIEW_THRESHOLD

logger = get_logger("agent")

ANALYSIS_HEADER = "### Analysis Complete!"
QUESTIONS_HEADER = "### Interview Practice"
INTERVIEW_OFFER = (
    "Your profile is a strong match. Would you like to practice interview questions for this role?"
)

_SECTION_RE = re.compile(
    r"^[ \t]*(?:#{1,6}[ \t]*)?(?:\*\*)?(job description|r[eé]sum[eé]|cv)(?:\*\*)?[ \t]*:[ \t]*(?:\*\*)?",
    re.IGNORECASE | re.MULTILINE,
)
_ASSENT_RE = re.compile(
    r"^\s*(yes|yeah|yep|yup|sure|ok|okay|please|absolutely|of course|definitely|let'?s)\b",
    re.IGNORECASE,
)
_DECLINE_RE = re.compile(r"\b(no|nope|not|never|later|don['’]?t|do not)\b", re.IGNORECASE)


class QuestionsToolInput(CamelModel):
    job_description: str = Field(description="The full job description text.")


ANALYZE_TOOL = ToolDefinition(
    name="analyzeResume",
    description=(
        "Analyzes a resume against a job description to provide a match score and skill gap analysis. "
        "Use it only when both the job description and the resume text are present."
    ),
    parameters=AnalysisRequest,
)
QUESTIONS_TOOL = ToolDefinition(
    name="generateInterviewQuestions",
    description="Generates 5 interview questions of increasing difficulty for a job description.",
    parameters=QuestionsToolInput,
)


@dataclass
class Materials:
    job_description: Optional[str] = None
    job_title: Optional[str] = None
    resume: Optional[str] = None

    @property
    def complete(self) -> bool:
        return bool(self.job_description and self.resume)

    @property
    def empty(self) -> bool:
        return not (self.job_description or self.resume)


def _sections(text: str):
    matches = list(_SECTION_RE.finditer(text))
    for i, match in enumerate(matches):
        end = matches[i + 1].start() if i + 1 < len(matches) else len(text)
        label = match.group(1).lower()
        kind = "job" if label.startswith("job") else "resume"
        yield kind, text[match.end():end].strip()


def gather_materials(user_texts: Sequence[str], jobs: Sequence[JobDescription]) -> Materials:
    """Collect the job description and resume supplied across user turns; later turns win."""
    found = Materials()
    for text in user_texts:
        sections = list(_sections(text))
        for kind, content in sections:
            if not content:
                continue
            if kind == "job":
                found.job_description, found.job_title = content, None
            else:
                found.resume = content
        if not sections:
            job = find_job_by_title(text, jobs)
            if job is not None:
                found.job_description, found.job_title = job.description, job.title
    return found


def split_episodes(history: Sequence[ConversationTurn]) -> List[List[str]]:
    episodes: List[List[str]] = [[]]
    for turn in history:
        if turn.role == "model" and turn.content.lstrip().startswith(ANALYSIS_HEADER):
            episodes.append([])
        elif turn.role == "user":
            episodes[-1].append(turn.content)
    return episodes


def is_assent(text: str) -> bool:
    if _DECLINE_RE.search(text):
        return False
    return bool(_ASSENT_RE.match(text)) or "practice" in text.lower()


def _bullets(items: Sequence[str], empty: str) -> str:
    if not items:
        return empty
    return "\n".join(f"- {item}" for item in items)


def format_analysis(result: AnalysisResult) -> str:
    parts = [
        ANALYSIS_HEADER,
        "",
        "Here's how your resume stacks up against the job description:",
        "",
        f"**Match Score:** **{result.match_score}%** ({result.status.value})",
        f"*{result.score_rationale}*",
        "",
        "---",
        "",
        "#### ✅ Matching Skills",
        _bullets(result.matching_skills, "None found."),
        "",
        "---",
        "",
        "#### ❌ Missing Skills",
        _bullets(result.missing_skills, "None. Great job!"),
        "",
        "---",
        "",
        "#### ✨ Implied Skills",
        f"*{result.implied_skills}*" if result.implied_skills else "None identified.",
        "",
    ]
    if result.match_score >= INTERVIEW_THRESHOLD:
        parts.append(INTERVIEW_OFFER)
    else:
        parts.append("I am ready for your next request. You can ask me to analyze another resume.")
    return "\n".join(parts)


def format_questions(questions: Sequence[str], job_title: Optional[str] = None) -> str:
    role = f" for **{job_title}**" if job_title else ""
    lines = [QUESTIONS_HEADER, "", f"Here are 5 questions{role}, from screening to advanced:", ""]
    lines.extend(f"{n}. {q}" for n, q in enumerate(questions, start=1))
    lines += ["", "Answer them one at a time and I can help you reflect on your responses."]
    return "\n".join(lines)


def ask_for_missing(materials: Materials) -> str:
    if materials.job_description and not materials.resume:
        role = f" for **{materials.job_title}**" if materials.job_title else ""
        return (
            f"Thanks, I have the job description{role}. Now please paste your **resume** text "
            "after a `Resume:` heading so I can run the analysis."
        )
    if materials.resume and not materials.job_description:
        return (
            "Thanks, I have your resume. Which role should I compare it against? Paste the "
            "**job description** after a `Job Description:` heading, or name one of our roles "
            "(for example Data Analyst or Backend Developer)."
        )
    return (
        "I can analyze your resume against a job description. Please share the **job description** "
        "(after a `Job Description:` heading, or just name a role such as Data Analyst) and your "
        "**resume** text (after a `Resume:` heading)."
    )


class CareerAgent:
    def __init__(
        self,
        llm: LLMClient,
        analyzer: Optional[SkillAnalyzer] = None,
        coach: Optional[InterviewCoach] = None,
        jobs: Sequence[JobDescription] = BUILTIN_JOBS,
    ):
        self.llm = llm
        self.analyzer = analyzer or SkillAnalyzer(llm)
        self.coach = coach or InterviewCoach(llm)
        self.jobs = list(jobs)

    async def respond(self, history: Sequence[ConversationTurn], prompt: str) -> str:
        episodes = split_episodes(history)
        current = gather_materials(episodes[-1] + [prompt], self.jobs)
        analysed = gather_materials(episodes[-2], self.jobs) if len(episodes) > 1 else None
        last_model = next((t.content for t in reversed(history) if t.role == "model"), "")

        if current.complete:
            logger.info("Running analysis tool")
            result = await self.analyzer.analyze_text(current.job_description, current.resume)
            return format_analysis(result)

        if analysed and current.empty and INTERVIEW_OFFER in last_model and is_assent(prompt):
            return await self._questions(analysed)

        if not current.empty or analysed is None:
            return ask_for_missing(current)

        return await self._converse(history, prompt, analysed)

    async def _questions(self, analysed: Materials) -> str:
        logger.info("Running interview question tool")
        questions = await self.coach.generate_questions(analysed.job_description)
        return format_questions(questions, analysed.job_title)

    async def _converse(self, history: Sequence[ConversationTurn], prompt: str, analysed: Materials) -> str:
        response = await self.llm.generate(
            prompt,
            system=AGENT_SYSTEM_PROMPT,
            history=history,
            tools=[ANALYZE_TOOL, QUESTIONS_TOOL],
        )
        call = response.tool_call
        if call is None:
            return response.text or ask_for_missing(Materials())
        if call.name == QUESTIONS_TOOL.name and analysed.job_description:
            return await self._questions(analysed)
        # The model may not supply analysis inputs itself; they must come from the user.
        logger.info("Refusing model-initiated tool call %r", call.name)
        return ask_for_missing(Materials())
