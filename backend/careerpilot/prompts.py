"""Prompt templates for skill analysis and interview practice.

The scoring rubric is kept as versioned data (``Rubric``) and rendered into
the prompt, so wording can change without touching the weighting, the
equivalency policy or the status thresholds.
"""
import json
from dataclasses import dataclass, field
from typing import Dict, Tuple

from .models import AnalysisRequest
from .status import APPROVED_THRESHOLD, NEEDS_IMPROVEMENT_THRESHOLD

EMPTY_RESUME_MARKER = "[No resume content could be extracted. Treat every requirement as missing.]"


@dataclass(frozen=True)
class RubricStep:
    title: str
    instructions: Tuple[str, ...]


@dataclass(frozen=True)
class Rubric:
    version: str
    persona: str
    harshness: str
    core_weight: float
    preferred_weight: float
    conceptual_mappings: Dict[str, str] = field(default_factory=dict)
    equivalencies: Tuple[Tuple[str, str], ...] = ()

    @property
    def status_bands(self) -> Tuple[Tuple[int, int, str], ...]:
        return (
            (APPROVED_THRESHOLD, 100, "Approved"),
            (NEEDS_IMPROVEMENT_THRESHOLD, APPROVED_THRESHOLD - 1, "Needs Improvement"),
            (0, NEEDS_IMPROVEMENT_THRESHOLD - 1, "Not a Match"),
        )

    @property
    def steps(self) -> Tuple[RubricStep, ...]:
        mappings = ", ".join(f"{k} -> {v}" for k, v in self.conceptual_mappings.items())
        equivalents = ", ".join(f"{a} vs {b}" for a, b in self.equivalencies)
        core_pct = round(self.core_weight * 100)
        preferred_pct = round(self.preferred_weight * 100)
        return (
            RubricStep("Job Description Analysis", (
                "Extract the required skills and group them as Core Requirements "
                "(must-have for the role) and Preferred Skills (secondary / nice-to-have).",
            )),
            RubricStep("Resume Analysis", (
                "Identify every skill the resume states directly.",
            )),
            RubricStep("Conceptual Mapping & Skill Equivalency", (
                f"Apply Conceptual Mapping (e.g., {mappings}).",
                f"Apply Skill Equivalency for close alternatives (e.g., {equivalents}).",
            )),
            RubricStep("Project & Accomplishment Quality", (
                "Distinguish meaningful usage in projects or work history from keyword-only listing.",
            )),
            RubricStep("Implied Skills", (
                "Write a concise narrative (`impliedSkills`) describing inferred skills with examples.",
            )),
            RubricStep("Gap Analysis", (
                "Matching Skills: overlap between the job's Core/Preferred skills and the resume "
                "(direct, mapped, or implied).",
                "Missing Skills: required by the job but absent from the resume.",
                "A skill must never appear in both lists, and each list must not repeat a skill.",
            )),
            RubricStep("Weighted Match Score", (
                f"Core Requirements carry {core_pct}% of the weight, Preferred Skills {preferred_pct}%.",
                "Penalize missing skills proportionally to their importance; reduce the penalty for close equivalents.",
                "Apply an Irrelevancy Multiplier: skills not tied to the job description add nothing.",
                "Apply a Project Quality Multiplier: strong, relevant projects raise the score, "
                "keyword-only mentions do not.",
                "Return an integer `matchScore` between 0 and 100.",
            )),
            RubricStep("Status", tuple(
                f"{low}-{high} -> {label}" for low, high, label in self.status_bands
            )),
        )


RUBRIC = Rubric(
    version="2024-06-harsh-v3",
    persona=(
        "You are an expert AI career analyst with the critical eye of a senior hiring manager."
    ),
    harshness=(
        "Perform a harsh, realistic analysis of the Resume against the Job Description. "
        "Focus only on the skills, technologies, and experience explicitly required for the role."
    ),
    core_weight=0.7,
    preferred_weight=0.3,
    conceptual_mappings={
        "MongoDB": "NoSQL",
        "Express.js": "Node.js",
        "PostgreSQL": "Relational Databases",
        "PyTorch": "Deep Learning",
    },
    equivalencies=(("SQL", "NoSQL"), ("AWS", "GCP")),
)


def _render_schema_example() -> str:
    example = {
        "matchScore": "integer 0-100",
        "scoreRationale": "string",
        "matchingSkills": ["string"],
        "missingSkills": ["string"],
        "impliedSkills": "string",
        "status": '"Approved" | "Needs Improvement" | "Not a Match"',
    }
    return json.dumps(example, indent=2)


def render_rubric(rubric: Rubric = RUBRIC) -> str:
    lines = []
    for n, step in enumerate(rubric.steps, start=1):
        lines.append(f"{n}. **{step.title}**")
        lines.extend(f"   - {item}" for item in step.instructions)
    return "\n".join(lines)


ANALYSIS_PROMPT_TEMPLATE = """{persona} {harshness}

Follow these steps:

{rubric}

Return output strictly as JSON in this shape (rubric {version}):
{schema}

Job Description:
{job_description}

Resume:
{resume}
"""


def build_analysis_prompt(request: AnalysisRequest, rubric: Rubric = RUBRIC) -> str:
    resume = request.resume if request.resume.strip() else EMPTY_RESUME_MARKER
    return ANALYSIS_PROMPT_TEMPLATE.format(
        persona=rubric.persona,
        harshness=rubric.harshness,
        rubric=render_rubric(rubric),
        version=rubric.version,
        schema=_render_schema_example(),
        job_description=request.job_description,
        resume=resume,
    )


QUESTIONS_PROMPT_TEMPLATE = """You are a senior hiring manager preparing for an interview. Based on the provided Job Description, generate a list of exactly 5 interview questions. The questions should cover the key skills and responsibilities mentioned. They MUST progressively increase in difficulty:
- Question 1: A basic introductory or screening question.
- Questions 2-3: Intermediate questions about specific skills or experiences.
- Questions 4-5: Advanced, scenario-based, or behavioral questions that require deep thought.

Return JSON: {{"questions": ["...", "...", "...", "...", "..."]}}

Job Description:
{job_description}
"""


def build_questions_prompt(job_description: str) -> str:
    return QUESTIONS_PROMPT_TEMPLATE.format(job_description=job_description)


EVALUATION_PROMPT_TEMPLATE = """You are an expert interviewer evaluating a candidate's response. Analyze the user's answer in the context of the Job Description and the specific Question asked.

Your evaluation should be fair and constructive. Avoid being overly harsh for minor omissions, but remain realistic about the quality of the answer. A good answer is clear, relevant, and demonstrates the skills required in the job description.

Job Description:
{job_description}

Question Asked:
"{question}"

User's Answer:
"{user_answer}"

Provide an integer score from 1 to 10 based on the quality of the answer (clarity, relevance, accuracy). Also, provide concise, constructive feedback explaining the score. Be specific about what was good and what could be improved.

Return JSON: {{"score": <integer 1-10>, "feedback": "..."}}
"""


def build_evaluation_prompt(job_description: str, question: str, user_answer: str) -> str:
    return EVALUATION_PROMPT_TEMPLATE.format(
        job_description=job_description,
        question=question,
        user_answer=user_answer,
    )


AGENT_SYSTEM_PROMPT = """You are a friendly and helpful AI Career Agent. Your only goal is to assist the user in analyzing their resume against a job description and practising for the interview that follows.

- You need both a job description and a resume before any analysis. If either is missing, ask for it.
- Never make up analysis results. Only present results that come from the 'analyzeResume' tool.
- Use the 'generateInterviewQuestions' tool when the user wants to practise interview questions for the analysed role.
- Format answers in clear, readable markdown.
"""
