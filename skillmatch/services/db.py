import uuid
from datetime import datetime
from typing import Any, Dict, Iterable, List, Optional, Tuple

import motor.motor_asyncio
from pymongo import ASCENDING, DESCENDING, ReturnDocument
from pymongo.errors import DuplicateKeyError

from skillmatch.config import MONGO_DETAILS, DB_NAME
from skillmatch.utils.logging_config import get_logger

logger = get_logger(__name__)


def create_database(mongo_details: str = None, db_name: str = None):
    """Create the Motor client and return the database handle."""
    db_name = db_name or DB_NAME
    logger.info(f"Initializing MongoDB connection to database: {db_name}")
    client = motor.motor_asyncio.AsyncIOMotorClient(mongo_details or MONGO_DETAILS)
    return client[db_name]


def to_dict(doc):
    if not doc:
        return None
    doc = dict(doc)
    doc["id"] = str(doc.pop("_id"))
    return doc


def _new_id() -> str:
    return str(uuid.uuid4())


class RecordStore:
    """Resumes, jobs and matches keyed by unique string ids."""

    def __init__(self, db):
        self.db = db
        self.resumes_coll = db["resumes"]
        self.jobs_coll = db["jobs"]
        self.matches_coll = db["matches"]

    async def init_indexes(self):
        """Index initialization for collections."""
        logger.info("Starting database index initialization")

        try:
            await self.matches_coll.create_index(
                [("resume_id", ASCENDING), ("job_id", ASCENDING)], unique=True
            )
            logger.debug("Created compound unique index on matches.(resume_id, job_id)")
        except Exception as e:
            if "already exists" in str(e).lower():
                logger.debug("Compound index on matches.(resume_id, job_id) already exists")
            else:
                logger.warning(f"Could not create unique index on matches.(resume_id, job_id): {e}")

        try:
            await self.matches_coll.create_index([("job_id", ASCENDING), ("similarity_score", DESCENDING)])
            await self.resumes_coll.create_index([("created_at", DESCENDING)])
            await self.jobs_coll.create_index([("created_at", DESCENDING)])
            logger.debug("Created listing indexes")
        except Exception as e:
            logger.warning(f"Could not create some listing indexes: {e}")

        logger.info("Database index initialization completed")

    # -------- Resumes --------
    async def create_resume(self, file_name: str, raw_text: str, extracted_skills: Dict[str, Any]) -> Dict[str, Any]:
        doc = {
            "_id": _new_id(),
            "file_name": file_name,
            "raw_text": raw_text,
            "extracted_skills": extracted_skills,
            "vector_id": None,
            "created_at": datetime.utcnow(),
        }
        await self.resumes_coll.insert_one(doc)
        return to_dict(doc)

    async def get_resume(self, resume_id: str) -> Optional[Dict[str, Any]]:
        return to_dict(await self.resumes_coll.find_one({"_id": resume_id}))

    async def get_resumes_by_ids(self, resume_ids: Iterable[str]) -> Dict[str, Dict[str, Any]]:
        ids = list(dict.fromkeys(resume_ids))
        if not ids:
            return {}
        cursor = self.resumes_coll.find({"_id": {"$in": ids}}, {"raw_text": 0})
        docs = await cursor.to_list(length=None)
        return {d["id"]: d for d in map(to_dict, docs)}

    async def list_resumes(self, skip: int = 0, limit: int = 10) -> Tuple[List[Dict[str, Any]], int]:
        cursor = self.resumes_coll.find({}, {"raw_text": 0}).sort("created_at", DESCENDING).skip(skip).limit(limit)
        docs = [to_dict(d) for d in await cursor.to_list(length=None)]
        for d in docs:
            d["match_count"] = await self.matches_coll.count_documents({"resume_id": d["id"]})
        return docs, await self.resumes_coll.count_documents({})

    async def set_resume_vector(self, resume_id: str, vector_id: str) -> None:
        await self.resumes_coll.update_one({"_id": resume_id}, {"$set": {"vector_id": vector_id}})

    async def delete_resume(self, resume_id: str) -> bool:
        await self.matches_coll.delete_many({"resume_id": resume_id})
        result = await self.resumes_coll.delete_one({"_id": resume_id})
        return result.deleted_count > 0

    # -------- Job Descriptions --------
    async def create_job(self, title: str, description: str, required_skills: Dict[str, Any],
                         company: Optional[str] = None) -> Dict[str, Any]:
        doc = {
            "_id": _new_id(),
            "title": title,
            "company": company,
            "description": description,
            "required_skills": required_skills,
            "vector_id": None,
            "created_at": datetime.utcnow(),
        }
        await self.jobs_coll.insert_one(doc)
        return to_dict(doc)

    async def get_job(self, job_id: str) -> Optional[Dict[str, Any]]:
        return to_dict(await self.jobs_coll.find_one({"_id": job_id}))

    async def list_jobs(self, skip: int = 0, limit: int = 10) -> Tuple[List[Dict[str, Any]], int]:
        cursor = self.jobs_coll.find({}, {"description": 0}).sort("created_at", DESCENDING).skip(skip).limit(limit)
        docs = [to_dict(d) for d in await cursor.to_list(length=None)]
        for d in docs:
            d["match_count"] = await self.matches_coll.count_documents({"job_id": d["id"]})
        return docs, await self.jobs_coll.count_documents({})

    async def set_job_vector(self, job_id: str, vector_id: str) -> None:
        await self.jobs_coll.update_one({"_id": job_id}, {"$set": {"vector_id": vector_id}})

    async def delete_job(self, job_id: str) -> bool:
        await self.matches_coll.delete_many({"job_id": job_id})
        result = await self.jobs_coll.delete_one({"_id": job_id})
        return result.deleted_count > 0

    # -------- Matches --------
    async def upsert_match(self, resume_id: str, job_id: str, fields: Dict[str, Any]) -> Dict[str, Any]:
        """Insert or replace the single match for (resume_id, job_id); last write wins."""
        now = datetime.utcnow()
        key = {"resume_id": resume_id, "job_id": job_id}
        update = {
            "$set": {**fields, "updated_at": now},
            "$setOnInsert": {"_id": _new_id(), "created_at": now},
        }
        try:
            doc = await self.matches_coll.find_one_and_update(
                key, update, upsert=True, return_document=ReturnDocument.AFTER
            )
        except DuplicateKeyError:
            # a concurrent request inserted the pair first; overwrite it
            logger.debug(f"Concurrent upsert for match {resume_id}/{job_id}, updating existing record")
            doc = await self.matches_coll.find_one_and_update(
                key, {"$set": {**fields, "updated_at": now}}, return_document=ReturnDocument.AFTER
            )
        return to_dict(doc)

    async def list_matches_for_job(self, job_id: str) -> List[Dict[str, Any]]:
        cursor = self.matches_coll.find({"job_id": job_id}).sort("similarity_score", DESCENDING)
        return [to_dict(d) for d in await cursor.to_list(length=None)]

    async def list_matches_for_resume(self, resume_id: str) -> List[Dict[str, Any]]:
        cursor = self.matches_coll.find({"resume_id": resume_id}).sort("similarity_score", DESCENDING)
        return [to_dict(d) for d in await cursor.to_list(length=None)]
