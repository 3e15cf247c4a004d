from typing import List, Optional, Sequence

from rapidfuzz import fuzz, process, utils

from .models import JobDescription

BUILTIN_JOBS: List[JobDescription] = [
    JobDescription(
        id="data-analyst",
        title="Data Analyst",
        description=(
            "Data Analyst Job Description: We are seeking a detail-oriented Data Analyst to join our team. "
            "The Data Analyst will be responsible for interpreting data, analyzing results using statistical "
            "techniques, and providing ongoing reports. The ideal candidate will have strong analytical skills, "
            "experience with data models, and the ability to turn data into actionable insights."
        ),
    ),
    JobDescription(
        id="cyber-security-analyst",
        title="Cyber Security Analyst",
        description=(
            "Cyber Security Analyst Job Description: We are looking for a vigilant Cyber Security Analyst to "
            "protect our computer networks and systems. You will be responsible for monitoring, detecting, "
            "investigating, analyzing, and responding to security events. A strong understanding of network "
            "security, threat intelligence, and incident response is required."
        ),
    ),
    JobDescription(
        id="web-developer",
        title="Web Developer",
        description=(
            "Web Developer Job Description: We are hiring a passionate Web Developer to design and build "
            "user-friendly websites and web applications. Responsibilities include front-end development using "
            "HTML, CSS, JavaScript, and modern frameworks like React, as well as back-end integration. A keen eye "
            "for design and a commitment to creating a seamless user experience are essential."
        ),
    ),
    JobDescription(
        id="backend-developer",
        title="Backend Developer",
        description=(
            "Backend Developer Job Description: We are seeking an experienced Backend Developer to build and "
            "maintain the server-side logic of our applications. You will be responsible for developing and "
            "managing databases, APIs, and server infrastructure. Proficiency in languages like Python, Java, or "
            "Node.js and experience with cloud platforms is required."
        ),
    ),
    JobDescription(
        id="ml-engineer",
        title="Machine Learning Engineer",
        description=(
            "Machine Learning Engineer Job Description: We are seeking a talented Machine Learning (ML) Engineer "
            "to join our innovative team. The ML Engineer will be responsible for designing, developing, and "
            "deploying machine learning models to solve complex business problems. The ideal candidate will have "
            "a solid foundation in computer science, mathematics, and statistics, along with hands-on experience "
            "in building and optimizing ML models."
        ),
    ),
    JobDescription(
        id="ai-engineer",
        title="AI Engineer",
        description=(
            "AI Engineer Job Description: We are looking for a skilled and creative AI Engineer to join our "
            "forward-thinking team. The AI Engineer will be responsible for developing and implementing "
            "artificial intelligence solutions that drive business innovation. The ideal candidate will have a "
            "strong background in AI/ML, deep learning, natural language processing (NLP), and computer vision, "
            "as well as experience in building and deploying AI-powered applications."
        ),
    ),
    JobDescription(
        id="cse",
        title="Computer Science Engineer",
        description=(
            "Computer Science Engineer Job Description: We are hiring a motivated and skilled Computer Science "
            "Engineer to join our dynamic engineering team. The Computer Science Engineer will be responsible for "
            "designing, developing, and maintaining software applications and systems. The ideal candidate will "
            "have a strong understanding of computer science fundamentals, data structures, algorithms, and "
            "software development best practices."
        ),
    ),
]

_BY_ID = {job.id: job for job in BUILTIN_JOBS}


def get_builtin_job(job_id: str) -> Optional[JobDescription]:
    return _BY_ID.get(job_id)


def find_job_by_title(text: str, jobs: Sequence[JobDescription], score_cutoff: float = 88) -> Optional[JobDescription]:
    """Resolve a short message such as "data analyst role" to a known job."""
    cleaned = utils.default_process(text)
    if not cleaned or not jobs or len(cleaned.split()) > 8:
        return None
    words = set(cleaned.split())
    for job in sorted(jobs, key=lambda j: -len(j.title.split())):
        if set(utils.default_process(job.title).split()) <= words:
            return job
    # misspelt titles
    titles = [job.title for job in jobs]
    match = process.extractOne(
        text, titles, scorer=fuzz.ratio, processor=utils.default_process, score_cutoff=score_cutoff
    )
    if match is None:
        return None
    return jobs[match[2]]
