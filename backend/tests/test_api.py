from pymongo.errors import ServerSelectionTimeoutError

from careerpilot import config, main
from careerpilot.agent import INTERVIEW_OFFER
from careerpilot.errors import ModelCallFailed
from careerpilot.main import app, get_store
from fakes import FakeStore, analysis_payload, make_pdf

JD = "Backend Developer: Python, SQL, AWS."


def test_health(client):
    assert client.get("/health").json() == {"status": "ok"}


def test_analyze_overrides_model_status(client, llm):
    llm.responses.append(analysis_payload(score=82, status="Needs Improvement"))

    resp = client.post("/api/analyze", json={"jobDescription": JD, "resume": "Python and SQL developer"})

    assert resp.status_code == 200
    assert resp.json() == {
        "matchScore": 82,
        "scoreRationale": "Strong core coverage, weak on cloud.",
        "matchingSkills": ["Python", "SQL"],
        "missingSkills": ["AWS"],
        "impliedSkills": "Built REST API with FastAPI -> implies API Development.",
        "status": "Approved",
    }


def test_analyze_malformed_model_output(client, llm):
    payload = analysis_payload()
    del payload["matchScore"]
    llm.responses.append(payload)

    resp = client.post("/api/analyze", json={"jobDescription": JD, "resume": "Python"})

    assert resp.status_code == 502
    assert "message" in resp.json()


def test_analyze_model_call_failed(client, llm):
    llm.responses.append(ModelCallFailed("Gemini API key not configured."))

    resp = client.post("/api/analyze", json={"jobDescription": JD, "resume": "Python"})

    assert resp.status_code == 502
    assert resp.json() == {"message": "Gemini API key not configured."}


def test_analyze_requires_both_fields(client):
    resp = client.post("/api/analyze", json={"jobDescription": JD})

    assert resp.status_code == 422


def test_upload_rejects_non_pdf(client):
    resp = client.post(
        "/api/analyze/upload",
        files={"file": ("resume.docx", b"PK...", "application/octet-stream")},
        data={"job_id": "data-analyst"},
    )

    assert resp.status_code == 400
    assert resp.json() == {"message": "Only PDF uploads accepted."}


def test_upload_unreadable_pdf(client, llm, store):
    resp = client.post(
        "/api/analyze/upload",
        files={"file": ("resume.pdf", b"not really a pdf", "application/pdf")},
        data={"job_id": "data-analyst"},
    )

    assert resp.status_code == 422
    assert resp.json()["message"].startswith("Could not read resume")
    assert llm.calls == []
    assert store.analyses == []


def test_upload_records_history(client, llm, store, user_headers):
    llm.responses.append(analysis_payload(score=64, status="Approved"))

    resp = client.post(
        "/api/analyze/upload",
        files={"file": ("My_Resume_V2.pdf", make_pdf(["SQL dashboards", "Python"]), "application/pdf")},
        data={"job_id": "data-analyst"},
        headers=user_headers,
    )

    assert resp.status_code == 200
    assert resp.json()["status"] == "Needs Improvement"
    (record,) = store.analyses
    assert record.resume_file_name == "My_Resume_V2.pdf"
    assert record.job_description_ref == "data-analyst"
    assert record.job_title == "Data Analyst"
    assert record.match_score == 64
    assert record.username == "jane_smith"

    history = client.get("/api/history", headers=user_headers).json()
    assert [h["resumeFileName"] for h in history] == ["My_Resume_V2.pdf"]


def test_upload_with_pasted_job_description(client, llm, store):
    llm.responses.append(analysis_payload(score=30))

    resp = client.post(
        "/api/analyze/upload",
        files={"file": ("cv.pdf", make_pdf(["Python"]), "application/pdf")},
        data={"job_description": JD},
    )

    assert resp.status_code == 200
    assert JD in llm.calls[0]["prompt"]
    assert store.analyses[0].job_description_ref == "custom"


def test_history_failure_does_not_fail_analysis(client, llm, store):
    store.fail_history = True
    llm.responses.append(analysis_payload(score=90))

    resp = client.post(
        "/api/analyze/upload",
        files={"file": ("cv.pdf", make_pdf(["Python"]), "application/pdf")},
        data={"job_id": "backend-developer"},
    )

    assert resp.status_code == 200
    assert resp.json()["matchScore"] == 90


def test_upload_unknown_job(client, llm):
    resp = client.post(
        "/api/analyze/upload",
        files={"file": ("cv.pdf", make_pdf(["Python"]), "application/pdf")},
        data={"job_id": "astronaut"},
    )

    assert resp.status_code == 404
    assert resp.json() == {"message": "Job astronaut not found."}
    assert llm.calls == []


def test_jobs_catalog(client):
    jobs = client.get("/api/jobs").json()

    assert len(jobs) == 7
    assert {"id", "title", "description"} <= set(jobs[0])
    assert client.get("/api/jobs/ml-engineer").json()["title"] == "Machine Learning Engineer"
    assert client.get("/api/jobs/nope").status_code == 404


def test_create_job_requires_admin(client, user_headers, admin_headers):
    body = {"title": "Site Reliability Engineer", "description": "Keep things up."}

    assert client.post("/api/jobs", json=body).status_code == 403
    assert client.post("/api/jobs", json=body, headers=user_headers).status_code == 403

    resp = client.post("/api/jobs", json=body, headers=admin_headers)
    assert resp.status_code == 201
    assert len(client.get("/api/jobs").json()) == 8


def test_agent_title_only_never_analyses(client, llm):
    resp = client.post("/api/agent", json={"history": [], "prompt": "Data Analyst"})

    assert resp.status_code == 200
    assert "resume" in resp.json()["response"].lower()
    assert llm.calls == []


def test_agent_with_job_id_and_resume_text(client, llm):
    llm.responses.append(analysis_payload(score=90, status="Approved"))

    resp = client.post(
        "/api/agent",
        json={"history": [], "jobId": "backend-developer", "resumeText": "Python APIs on AWS"},
    )

    assert resp.status_code == 200
    assert INTERVIEW_OFFER in resp.json()["response"]
    assert "Python APIs on AWS" in llm.calls[0]["prompt"]


def test_agent_rejects_empty_prompt(client):
    resp = client.post("/api/agent", json={"history": [], "prompt": "  "})

    assert resp.status_code == 400


def test_interview_questions_by_job_id(client, llm):
    llm.responses.append({"questions": ["q1", "q2", "q3", "q4", "q5"]})

    resp = client.post("/api/interview/questions", json={"jobId": "web-developer"})

    assert resp.json() == {"questions": ["q1", "q2", "q3", "q4", "q5"]}
    assert "React" in llm.calls[0]["prompt"]


def test_interview_evaluation_out_of_range(client, llm):
    llm.responses.append({"score": 42, "feedback": "Great"})

    resp = client.post(
        "/api/interview/evaluate",
        json={"jobDescription": JD, "question": "Why Python?", "userAnswer": "It is readable."},
    )

    assert resp.status_code == 502
    assert "could not be evaluated" in resp.json()["message"]


def test_history_requires_sign_in(client):
    assert client.get("/api/history").status_code == 401


def test_register_login_and_admin_listing(client, store, admin_headers, user_headers):
    body = {"username": "jane_smith", "email": "jane.smith@example.com", "password": "s3cret-pass"}

    created = client.post("/api/users", json=body)
    assert created.status_code == 201
    assert "password" not in created.text
    assert client.post("/api/users", json=body).status_code == 409

    assert client.post("/api/login", json={"username": "jane_smith", "password": "wrong-pass"}).status_code == 401
    login = client.post("/api/login", json={"username": "jane_smith", "password": "s3cret-pass"})
    assert login.json()["role"] == "user"

    assert client.get("/api/admin/users", headers=user_headers).status_code == 403
    users = client.get("/api/admin/users", headers=admin_headers).json()
    assert [(u["username"], u["analysisCount"]) for u in users] == [("jane_smith", 0)]
    assert "passwordHash" not in users[0] and "password_hash" not in users[0]


def test_admin_cannot_self_register(client):
    body = {"username": "mallory", "email": "m@example.com", "password": "s3cret-pass", "role": "admin"}

    assert client.post("/api/users", json=body).status_code == 403


def test_unknown_role_header(client):
    assert client.get("/api/history", headers={"X-User": "x", "X-Role": "root"}).status_code == 400


class DownStore(FakeStore):
    """A store whose database cannot be reached."""

    async def list_jobs(self):
        raise ServerSelectionTimeoutError("localhost:27017: connection refused")

    async def list_history(self, username):
        raise ServerSelectionTimeoutError("localhost:27017: connection refused")


def test_database_outage_returns_message(client, user_headers):
    down = DownStore()
    app.dependency_overrides[get_store] = lambda: down

    resp = client.get("/api/jobs")
    assert resp.status_code == 503
    assert resp.json() == {"message": "The database is currently unavailable."}

    resp = client.get("/api/history", headers=user_headers)
    assert resp.status_code == 503
    assert "message" in resp.json()


def test_configured_admin_can_sign_in_and_create_jobs(client, monkeypatch):
    monkeypatch.setattr(config, "ADMIN_USERNAMES", {"root"})
    body = {"username": "root", "email": "root@example.com", "password": "s3cret-pass"}

    assert client.post("/api/users", json=body).json()["role"] == "admin"
    login = client.post("/api/login", json={"username": "root", "password": "s3cret-pass"}).json()
    assert login["role"] == "admin"

    headers = {"X-User": login["username"], "X-Role": login["role"]}
    job = {"title": "Site Reliability Engineer", "description": "Keep things up."}
    assert client.post("/api/jobs", json=job, headers=headers).status_code == 201
    assert client.get("/api/admin/users", headers=headers).status_code == 200


def test_upload_over_size_limit_rejected_before_analysis(client, llm, monkeypatch):
    monkeypatch.setattr(main, "MAX_RESUME_BYTES", 1024 * 1024)

    resp = client.post(
        "/api/analyze/upload",
        files={"file": ("resume.pdf", b"%PDF-1.4" + b"0" * (2 * 1024 * 1024), "application/pdf")},
        data={"job_id": "data-analyst"},
    )

    assert resp.status_code == 422
    assert "1 MB limit" in resp.json()["message"]
    assert llm.calls == []
