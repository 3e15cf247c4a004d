from careerpilot.models import AnalysisRequest
from careerpilot.prompts import (
    EMPTY_RESUME_MARKER,
    RUBRIC,
    build_analysis_prompt,
    build_evaluation_prompt,
    build_questions_prompt,
)


def test_rubric_steps_are_ordered():
    titles = [step.title for step in RUBRIC.steps]

    assert titles == [
        "Job Description Analysis",
        "Resume Analysis",
        "Conceptual Mapping & Skill Equivalency",
        "Project & Accomplishment Quality",
        "Implied Skills",
        "Gap Analysis",
        "Weighted Match Score",
        "Status",
    ]


def test_rubric_favours_core_requirements():
    assert RUBRIC.core_weight > RUBRIC.preferred_weight
    assert abs(RUBRIC.core_weight + RUBRIC.preferred_weight - 1) < 1e-9


def test_status_step_uses_mapper_thresholds():
    status_step = RUBRIC.steps[-1]

    assert status_step.instructions == (
        "75-100 -> Approved",
        "50-74 -> Needs Improvement",
        "0-49 -> Not a Match",
    )


def test_analysis_prompt_embeds_inputs_verbatim():
    jd = "Backend role.\n" + "Requires Python and {curly} braces. " * 200
    resume = "Built APIs with FastAPI; deployed on AWS. " * 300
    prompt = build_analysis_prompt(AnalysisRequest(job_description=jd, resume=resume))

    assert jd in prompt
    assert resume in prompt
    assert RUBRIC.persona in prompt
    assert "harsh" in prompt
    assert "MongoDB -> NoSQL" in prompt
    assert '"matchScore"' in prompt
    assert prompt.index("1. **Job Description Analysis**") < prompt.index("8. **Status**")


def test_empty_resume_is_flagged():
    prompt = build_analysis_prompt(AnalysisRequest(job_description="Data Analyst", resume="  "))

    assert EMPTY_RESUME_MARKER in prompt


def test_questions_prompt():
    prompt = build_questions_prompt("Cyber Security Analyst")

    assert "exactly 5 interview questions" in prompt
    assert prompt.rstrip().endswith("Cyber Security Analyst")


def test_evaluation_prompt():
    prompt = build_evaluation_prompt("Web Developer", "What is the DOM?", "A tree of nodes.")

    assert '"What is the DOM?"' in prompt
    assert '"A tree of nodes."' in prompt
    assert "Avoid being overly harsh for minor omissions" in prompt
