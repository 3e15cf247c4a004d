import re
from typing import Iterable, List

from pydantic import ValidationError

from .errors import ExtractionError, MalformedModelOutput, ResumeUnreadable
from .gemini_client import LLMClient
from .log import get_logger
from .models import AnalysisOutput, AnalysisRequest, AnalysisResult
from .pdf_utils import extract_text_from_pdf_bytes
from .prompts import build_analysis_prompt
from .status import status_for_score

logger = get_logger("analysis")

_SKILL_NOISE = re.compile(r"[^0-9a-z+#]+")


def skill_key(skill: str) -> str:
    """Comparison key for skill names: "Node.js", "NodeJS" and "node js" collide."""
    return _SKILL_NOISE.sub("", skill.casefold())


def unique_skills(skills: Iterable[str], exclude: Iterable[str] = ()) -> List[str]:
    seen = {skill_key(s) for s in exclude}
    out = []
    for skill in skills:
        name = skill.strip()
        key = skill_key(name)
        if not key or key in seen:
            continue
        seen.add(key)
        out.append(name)
    return out


def finalize(output: AnalysisOutput) -> AnalysisResult:
    """Apply the local status mapping and the skill-list invariants."""
    if output.status and output.status != status_for_score(output.match_score).value:
        logger.info(
            "Overriding model status %r for score %d", output.status, output.match_score
        )
    matching = unique_skills(output.matching_skills)
    missing = unique_skills(output.missing_skills, exclude=matching)
    return AnalysisResult(
        match_score=output.match_score,
        score_rationale=output.score_rationale,
        matching_skills=matching,
        missing_skills=missing,
        implied_skills=output.implied_skills,
        status=status_for_score(output.match_score),
    )


class SkillAnalyzer:
    """Résumé-to-job-description matching workflow."""

    def __init__(self, llm: LLMClient):
        self.llm = llm

    async def analyze(self, job_description: str, resume_file: bytes) -> AnalysisResult:
        try:
            resume_text = extract_text_from_pdf_bytes(resume_file)
        except ExtractionError as e:
            raise ResumeUnreadable(f"Could not read resume: {e.message}") from e
        logger.info("Extracted resume text length: %d", len(resume_text))
        return await self.analyze_text(job_description, resume_text)

    async def analyze_text(self, job_description: str, resume_text: str) -> AnalysisResult:
        request = AnalysisRequest(job_description=job_description, resume=resume_text)
        prompt = build_analysis_prompt(request)
        response = await self.llm.generate(prompt, AnalysisOutput)
        if response.data is None:
            raise MalformedModelOutput("The language model did not return a structured analysis.")
        try:
            output = AnalysisOutput.model_validate(response.data)
        except ValidationError as e:
            logger.warning("Analysis output failed validation: %s", e.errors(include_url=False))
            raise MalformedModelOutput("The language model returned an analysis in an unexpected shape.") from e
        return finalize(output)
