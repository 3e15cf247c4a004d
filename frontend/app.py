import os

import requests
import streamlit as st

# FastAPI backend URL
BACKEND_URL = os.getenv("BACKEND_URL", "http://127.0.0.1:8000")
INTERVIEW_THRESHOLD = 75

st.set_page_config(page_title="CareerPilot AI", layout="wide")


def _headers():
    user = st.session_state.get("user")
    if not user:
        return {}
    return {"X-User": user["username"], "X-Role": user["role"]}


def api(method, path, **kwargs):
    """Call the backend; returns (payload, error_message)."""
    try:
        resp = requests.request(method, f"{BACKEND_URL}{path}", headers=_headers(), timeout=120, **kwargs)
    except requests.RequestException as e:
        return None, f"Backend unreachable: {e}"
    if resp.ok:
        return resp.json(), None
    try:
        return None, resp.json().get("message", resp.text)
    except ValueError:
        return None, resp.text


@st.cache_data(ttl=60)
def load_jobs():
    jobs, _ = api("GET", "/api/jobs")
    return jobs or []


def render_result(result):
    status = result["status"]
    score = result["matchScore"]
    if status == "Approved":
        st.success(f"**{status}** with a match score of {score}%")
    elif status == "Needs Improvement":
        st.warning(f"**{status}** with a match score of {score}%")
    else:
        st.error(f"**{status}** with a match score of {score}%")
    st.progress(score / 100)
    st.write(result["scoreRationale"])

    col1, col2 = st.columns(2)
    with col1:
        st.subheader("✅ Matching Skills")
        for skill in result["matchingSkills"] or ["None found."]:
            st.write(f"- {skill}")
    with col2:
        st.subheader("❌ Missing Skills")
        for skill in result["missingSkills"] or ["None. Great job!"]:
            st.write(f"- {skill}")
    st.subheader("✨ Implied Skills")
    st.write(result["impliedSkills"] or "None identified.")


def analysis_page():
    st.title("🧭 CareerPilot AI")
    st.markdown("### Upload your resume and see how it matches the role")

    jobs = load_jobs()
    titles = {job["title"]: job for job in jobs}
    choice = st.selectbox("Job description", ["Paste my own"] + list(titles))
    if choice == "Paste my own":
        job_description = st.text_area("Paste the Job Description here")
        job = None
    else:
        job = titles[choice]
        job_description = job["description"]
        st.caption(job_description)

    uploaded_file = st.file_uploader("Upload your resume (PDF only)", type=["pdf"])

    if uploaded_file and job_description and st.button("Analyze Resume"):
        with st.spinner("Analyzing your profile... The AI is comparing your resume to the job description."):
            files = {"file": (uploaded_file.name, uploaded_file, "application/pdf")}
            data = {"job_id": job["id"]} if job else {"job_description": job_description}
            result, error = api("POST", "/api/analyze/upload", files=files, data=data)
        if error:
            st.error(f"❌ Analysis failed: {error}")
        else:
            st.session_state["result"] = result
            st.session_state["job_description"] = job_description
            st.session_state.pop("questions", None)

    result = st.session_state.get("result")
    if result:
        render_result(result)
        if result["matchScore"] >= INTERVIEW_THRESHOLD:
            st.info("Your profile is a strong match. Practice the interview from the **Interview** page.")


def interview_page():
    st.title("🎤 Interview Practice")
    job_description = st.session_state.get("job_description")
    result = st.session_state.get("result")
    if not job_description or not result:
        st.info("Run an analysis first.")
        return
    if result["matchScore"] < INTERVIEW_THRESHOLD:
        st.warning("Interview practice unlocks at a match score of 75 or more.")
        return

    if "questions" not in st.session_state:
        with st.spinner("Generating questions..."):
            payload, error = api("POST", "/api/interview/questions", json={"jobDescription": job_description})
        if error:
            st.error(error)
            return
        st.session_state["questions"] = payload["questions"]
        st.session_state["question_index"] = 0

    questions = st.session_state["questions"]
    index = st.session_state.get("question_index", 0)
    st.subheader(f"Question {index + 1} of {len(questions)}")
    st.write(questions[index])
    answer = st.text_area("Your answer", key=f"answer_{index}")

    if st.button("Submit Answer") and answer.strip():
        with st.spinner("Evaluating..."):
            evaluation, error = api(
                "POST",
                "/api/interview/evaluate",
                json={"jobDescription": job_description, "question": questions[index], "userAnswer": answer},
            )
        if error:
            st.error(error)
        else:
            st.metric("Score", f"{evaluation['score']} / 10")
            st.write(evaluation["feedback"])

    prev_col, next_col = st.columns(2)
    if prev_col.button("Previous", disabled=index == 0):
        st.session_state["question_index"] = index - 1
        st.rerun()
    if next_col.button("Next", disabled=index >= len(questions) - 1):
        st.session_state["question_index"] = index + 1
        st.rerun()


def agent_page():
    st.title("🤖 Career Agent")
    history = st.session_state.setdefault("chat_history", [])
    for turn in history:
        with st.chat_message("assistant" if turn["role"] == "model" else "user"):
            st.markdown(turn["content"])

    prompt = st.chat_input("Paste a job description and your resume, or name a role")
    if prompt:
        with st.chat_message("user"):
            st.markdown(prompt)
        with st.spinner("Thinking..."):
            payload, error = api("POST", "/api/agent", json={"history": history, "prompt": prompt})
        reply = payload["response"] if payload else f"Sorry, something went wrong: {error}"
        if payload:
            history.append({"role": "user", "content": prompt})
            history.append({"role": "model", "content": reply})
        with st.chat_message("assistant"):
            st.markdown(reply)

    if history and st.button("New conversation"):
        st.session_state["chat_history"] = []
        st.rerun()


def history_page():
    st.title("📜 Analysis History")
    if not st.session_state.get("user"):
        st.info("Sign in to see your past analyses.")
        return
    records, error = api("GET", "/api/history")
    if error:
        st.error(error)
        return
    if not records:
        st.write("No analyses yet.")
        return
    st.dataframe(
        [
            {
                "Resume File": r["resumeFileName"],
                "Job Description": r.get("jobTitle") or r["jobDescriptionRef"],
                "Match Score": f"{r['matchScore']}%",
                "Status": r["status"],
                "Date": r["createdAt"][:10],
            }
            for r in records
        ],
        use_container_width=True,
    )


def admin_page():
    st.title("🛠️ Admin Dashboard")
    users, error = api("GET", "/api/admin/users")
    if error:
        st.error(error)
    else:
        st.subheader("Registered Users")
        st.dataframe(
            [
                {
                    "Username": u["username"],
                    "Email": u["email"],
                    "Analyses Ran": u["analysisCount"],
                    "Registration Date": u["createdAt"][:10],
                }
                for u in users
            ],
            use_container_width=True,
        )

    st.subheader("Add a Job Description")
    with st.form("new_job"):
        title = st.text_input("Title")
        description = st.text_area("Description")
        if st.form_submit_button("Create") and title and description:
            job, error = api("POST", "/api/jobs", json={"title": title, "description": description})
            if error:
                st.error(error)
            else:
                load_jobs.clear()
                st.success(f"Created job {job['title']}")


def account_sidebar():
    user = st.session_state.get("user")
    if user:
        st.sidebar.write(f"Signed in as **{user['username']}** ({user['role']})")
        if st.sidebar.button("Sign out"):
            st.session_state.pop("user")
            st.rerun()
        return

    with st.sidebar.expander("Sign in / Register"):
        username = st.text_input("Username")
        password = st.text_input("Password", type="password")
        email = st.text_input("Email (register only)")
        sign_in, register = st.columns(2)
        if sign_in.button("Sign in"):
            user, error = api("POST", "/api/login", json={"username": username, "password": password})
            if error:
                st.error(error)
            else:
                st.session_state["user"] = user
                st.rerun()
        if register.button("Register"):
            user, error = api(
                "POST", "/api/users", json={"username": username, "email": email, "password": password}
            )
            if error:
                st.error(error)
            else:
                st.session_state["user"] = user
                st.rerun()


PAGES = {
    "Analyze": analysis_page,
    "Interview": interview_page,
    "Career Agent": agent_page,
    "History": history_page,
}

account_sidebar()
pages = dict(PAGES)
if (st.session_state.get("user") or {}).get("role") == "admin":
    pages["Admin"] = admin_page
page = st.sidebar.radio("Navigate", list(pages))
pages[page]()
