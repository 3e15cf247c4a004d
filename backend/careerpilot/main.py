from typing import List, Optional

from fastapi import BackgroundTasks, Depends, FastAPI, File, Form, HTTPException, Request, UploadFile
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pymongo.errors import PyMongoError
from starlette.exceptions import HTTPException as StarletteHTTPException

from .agent import CareerAgent
from .analysis import SkillAnalyzer
from .auth import Principal, get_principal, require_admin, require_user, with_configured_role
from .config import CORS_ORIGINS, MAX_RESUME_BYTES
from .db import Store, get_database
from .errors import CareerPilotError, ResumeUnreadable
from .gemini_client import GeminiClient, LLMClient
from .interview import InterviewCoach
from .log import get_logger
from .models import (
    AgentRequest,
    AgentResponse,
    AnalysisHistoryRecord,
    AnalysisRequest,
    AnalysisResult,
    AnswerEvaluation,
    EvaluateAnswerRequest,
    InterviewQuestions,
    JobCreate,
    JobDescription,
    LoginRequest,
    QuestionsRequest,
    User,
    UserCreate,
    UserSummary,
)

logger = get_logger("api")

AGENT_ANALYSIS_PROMPT = (
    "Please analyze my resume against the following job description.\n\n"
    "**Job Description:**\n{job_description}\n\n**Resume:**\n{resume}"
)

app = FastAPI(title="CareerPilot AI", version="0.1.0")

app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(CareerPilotError)
async def careerpilot_error_handler(request: Request, exc: CareerPilotError):
    logger.warning("%s on %s: %s", type(exc).__name__, request.url.path, exc.message)
    return JSONResponse(status_code=exc.status_code, content={"message": exc.message})


@app.exception_handler(PyMongoError)
async def database_error_handler(request: Request, exc: PyMongoError):
    logger.error("Database error on %s: %s", request.url.path, exc)
    return JSONResponse(status_code=503, content={"message": "The database is currently unavailable."})


@app.exception_handler(StarletteHTTPException)
async def http_error_handler(request: Request, exc: StarletteHTTPException):
    return JSONResponse(status_code=exc.status_code, content={"message": exc.detail})


def get_llm() -> LLMClient:
    return GeminiClient()


def get_store() -> Store:
    return Store(get_database())


def get_analyzer(llm: LLMClient = Depends(get_llm)) -> SkillAnalyzer:
    return SkillAnalyzer(llm)


def get_coach(llm: LLMClient = Depends(get_llm)) -> InterviewCoach:
    return InterviewCoach(llm)


async def get_agent(llm: LLMClient = Depends(get_llm), store: Store = Depends(get_store)) -> CareerAgent:
    return CareerAgent(llm, jobs=await store.list_jobs())


async def record_history(store: Store, record: AnalysisHistoryRecord):
    """Append a history record; the analysis response never depends on it."""
    try:
        await store.append_analysis(record)
    except PyMongoError as e:
        logger.error("Failed to persist analysis history: %s", e)


@app.get("/health")
async def health():
    return {"status": "ok"}


@app.post("/api/analyze", response_model=AnalysisResult)
async def analyze(body: AnalysisRequest, analyzer: SkillAnalyzer = Depends(get_analyzer)):
    return await analyzer.analyze_text(body.job_description, body.resume)


@app.post("/api/analyze/upload", response_model=AnalysisResult)
async def analyze_upload(
    background_tasks: BackgroundTasks,
    file: UploadFile = File(...),
    job_description: Optional[str] = Form(None),
    job_id: Optional[str] = Form(None),
    principal: Principal = Depends(get_principal),
    store: Store = Depends(get_store),
    analyzer: SkillAnalyzer = Depends(get_analyzer),
):
    """Upload a resume PDF with a catalog job id or a pasted job description."""
    if not (file.filename or "").lower().endswith(".pdf"):
        raise HTTPException(status_code=400, detail="Only PDF uploads accepted.")

    if job_id:
        job = await store.get_job(job_id)
        text, job_ref, job_title = job.description, job.id, job.title
    elif job_description and job_description.strip():
        text, job_ref, job_title = job_description, "custom", None
    else:
        raise HTTPException(status_code=400, detail="Provide a job_id or a job_description.")

    if file.size is not None and file.size > MAX_RESUME_BYTES:
        raise ResumeUnreadable(
            f"Could not read resume: The uploaded file exceeds the {MAX_RESUME_BYTES // (1024 * 1024)} MB limit."
        )
    content = await file.read()
    result = await analyzer.analyze(text, content)

    record = AnalysisHistoryRecord(
        resume_file_name=file.filename,
        job_description_ref=job_ref,
        job_title=job_title,
        match_score=result.match_score,
        status=result.status,
        username=principal.username,
    )
    background_tasks.add_task(record_history, store, record)
    return result


@app.post("/api/agent", response_model=AgentResponse)
async def agent_turn(
    body: AgentRequest,
    store: Store = Depends(get_store),
    agent: CareerAgent = Depends(get_agent),
):
    prompt = body.prompt
    if body.job_id and body.resume_text:
        job = await store.get_job(body.job_id)
        prompt = AGENT_ANALYSIS_PROMPT.format(job_description=job.description, resume=body.resume_text)
    if not prompt.strip():
        raise HTTPException(status_code=400, detail="A prompt is required.")
    return AgentResponse(response=await agent.respond(body.history, prompt))


@app.get("/api/jobs", response_model=List[JobDescription])
async def list_jobs(store: Store = Depends(get_store)):
    return await store.list_jobs()


@app.get("/api/jobs/{job_id}", response_model=JobDescription)
async def get_job(job_id: str, store: Store = Depends(get_store)):
    return await store.get_job(job_id)


@app.post("/api/jobs", response_model=JobDescription, status_code=201)
async def create_job(
    body: JobCreate,
    store: Store = Depends(get_store),
    admin: Principal = Depends(require_admin),
):
    job = await store.create_job(body)
    logger.info("Job %s created by %s", job.id, admin.username)
    return job


@app.post("/api/interview/questions", response_model=InterviewQuestions)
async def interview_questions(
    body: QuestionsRequest,
    store: Store = Depends(get_store),
    coach: InterviewCoach = Depends(get_coach),
):
    if body.job_id:
        text = (await store.get_job(body.job_id)).description
    elif body.job_description and body.job_description.strip():
        text = body.job_description
    else:
        raise HTTPException(status_code=400, detail="Provide a jobId or a jobDescription.")
    return InterviewQuestions(questions=await coach.generate_questions(text))


@app.post("/api/interview/evaluate", response_model=AnswerEvaluation)
async def interview_evaluate(body: EvaluateAnswerRequest, coach: InterviewCoach = Depends(get_coach)):
    return await coach.evaluate_answer(body.job_description, body.question, body.user_answer)


@app.get("/api/history", response_model=List[AnalysisHistoryRecord])
async def history(principal: Principal = Depends(require_user), store: Store = Depends(get_store)):
    return await store.list_history(principal.username)


@app.post("/api/users", response_model=User, status_code=201)
async def register(body: UserCreate, store: Store = Depends(get_store)):
    if body.role == "admin":
        raise HTTPException(status_code=403, detail="Admin accounts cannot be self-registered.")
    return await store.create_user(with_configured_role(body))


@app.post("/api/login", response_model=User)
async def login(body: LoginRequest, store: Store = Depends(get_store)):
    user = await store.authenticate(body.username, body.password)
    if user is None:
        raise HTTPException(status_code=401, detail="Invalid username or password.")
    return with_configured_role(user)


@app.get("/api/admin/users", response_model=List[UserSummary])
async def admin_users(store: Store = Depends(get_store), admin: Principal = Depends(require_admin)):
    return await store.list_users()
