import hashlib
import hmac
import os
from typing import List, Optional

from bson import ObjectId
from motor.motor_asyncio import AsyncIOMotorClient, AsyncIOMotorDatabase
from pymongo.errors import PyMongoError

from .catalog import BUILTIN_JOBS, get_builtin_job
from .config import MONGO_DB, MONGODB_URI
from .errors import JobNotFound, UserExists
from .log import get_logger
from .models import AnalysisHistoryRecord, JobCreate, JobDescription, User, UserCreate, UserSummary

logger = get_logger("db")

_client: Optional[AsyncIOMotorClient] = None

# never returned to callers
_SECRET_FIELDS = {"password_hash": 0}


def get_database() -> AsyncIOMotorDatabase:
    global _client
    if _client is None:
        _client = AsyncIOMotorClient(MONGODB_URI)
    return _client[MONGO_DB]


def hash_password(password: str, salt: Optional[bytes] = None) -> str:
    salt = salt or os.urandom(16)
    digest = hashlib.pbkdf2_hmac("sha256", password.encode("utf-8"), salt, 200_000)
    return f"{salt.hex()}${digest.hex()}"


def verify_password(password: str, stored: str) -> bool:
    salt_hex, _ = stored.split("$", 1)
    return hmac.compare_digest(hash_password(password, bytes.fromhex(salt_hex)), stored)


def _job_from_doc(doc) -> JobDescription:
    return JobDescription(id=str(doc["_id"]), title=doc["title"], description=doc["description"])


class Store:
    """Queries over the ``users``, ``job_descriptions`` and ``analyses`` collections."""

    def __init__(self, db: AsyncIOMotorDatabase):
        self.users = db["users"]
        self.jobs = db["job_descriptions"]
        self.analyses = db["analyses"]

    async def list_jobs(self) -> List[JobDescription]:
        """Built-in jobs followed by stored ones; the built-ins alone when the database is down."""
        try:
            docs = await self.jobs.find({}).sort("title", 1).to_list(length=None)
        except PyMongoError as e:
            logger.error("Failed to load stored job descriptions: %s", e)
            return list(BUILTIN_JOBS)
        return list(BUILTIN_JOBS) + [_job_from_doc(d) for d in docs]

    async def get_job(self, job_id: str) -> JobDescription:
        builtin = get_builtin_job(job_id)
        if builtin is not None:
            return builtin
        if not ObjectId.is_valid(job_id):
            raise JobNotFound(f"Job {job_id} not found.")
        doc = await self.jobs.find_one({"_id": ObjectId(job_id)})
        if not doc:
            raise JobNotFound(f"Job {job_id} not found.")
        return _job_from_doc(doc)

    async def create_job(self, job: JobCreate) -> JobDescription:
        result = await self.jobs.insert_one({"title": job.title, "description": job.description})
        return JobDescription(id=str(result.inserted_id), title=job.title, description=job.description)

    async def append_analysis(self, record: AnalysisHistoryRecord) -> str:
        doc = record.model_dump(exclude={"id"})
        doc["status"] = record.status.value
        result = await self.analyses.insert_one(doc)
        return str(result.inserted_id)

    async def list_history(self, username: str) -> List[AnalysisHistoryRecord]:
        cursor = self.analyses.find({"username": username}).sort("created_at", -1)
        docs = await cursor.to_list(length=None)
        return [
            AnalysisHistoryRecord(id=str(d.pop("_id")), **d)
            for d in docs
        ]

    async def create_user(self, user: UserCreate) -> User:
        if await self.users.find_one({"username": user.username}):
            raise UserExists(f"User {user.username} already exists.")
        created = User(id="", username=user.username, email=user.email, role=user.role)
        doc = created.model_dump(exclude={"id"})
        doc["password_hash"] = hash_password(user.password)
        result = await self.users.insert_one(doc)
        return created.model_copy(update={"id": str(result.inserted_id)})

    async def authenticate(self, username: str, password: str) -> Optional[User]:
        doc = await self.users.find_one({"username": username})
        if not doc or not verify_password(password, doc.get("password_hash", "$")):
            return None
        doc.pop("password_hash", None)
        return User(id=str(doc.pop("_id")), **doc)

    async def list_users(self) -> List[UserSummary]:
        counts = await self.analyses.aggregate(
            [{"$group": {"_id": "$username", "count": {"$sum": 1}}}]
        ).to_list(length=None)
        by_user = {c["_id"]: c["count"] for c in counts}
        docs = await self.users.find({}, _SECRET_FIELDS).sort("created_at", 1).to_list(length=None)
        return [
            UserSummary(id=str(d.pop("_id")), analysis_count=by_user.get(d.get("username"), 0), **d)
            for d in docs
        ]
