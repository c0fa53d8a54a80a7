"""
Attempt Store
MongoDB persistence for user profiles and finalized quiz attempts
FILE: brainquest/db/attempt_store.py
"""
from typing import List, Optional, Protocol, Dict, Any
from datetime import datetime, timezone
import logging

from motor.motor_asyncio import AsyncIOMotorDatabase
from pydantic import ValidationError

from brainquest.models.attempt import AttemptRecord, UserProfile
from brainquest.services.errors import PersistenceFailure

logger = logging.getLogger(__name__)


class AttemptGateway(Protocol):
    """Read/write contract the quiz core needs from storage"""

    async def save_attempt(self, record: AttemptRecord) -> None:
        ...

    async def get_attempts(self, user_id: str, limit: Optional[int] = None) -> List[AttemptRecord]:
        ...

    async def get_profile(self, user_id: str) -> Optional[UserProfile]:
        ...

    async def upsert_profile(self, profile: UserProfile) -> UserProfile:
        ...

    async def list_profiles(self) -> List[UserProfile]:
        ...


def parse_attempt(doc: Dict[str, Any]) -> Optional[AttemptRecord]:
    """
    Convert a scores document to an AttemptRecord

    Returns None for documents that fail validation so one corrupt
    record never hides the rest of a user's history.
    """
    doc = {k: v for k, v in doc.items() if k != "_id"}
    try:
        return AttemptRecord.model_validate(doc)
    except ValidationError as e:
        logger.warning(f"⚠️ Skipping malformed attempt record for {doc.get('userId')}: {e.error_count()} errors")
        return None


def parse_profile(doc: Dict[str, Any]) -> Optional[UserProfile]:
    doc = {k: v for k, v in doc.items() if k != "_id" and v is not None}
    try:
        return UserProfile.model_validate(doc)
    except ValidationError as e:
        logger.warning(f"⚠️ Skipping malformed user profile {doc.get('uid')}: {e.error_count()} errors")
        return None


class MongoAttemptStore:
    """AttemptGateway backed by the users and scores collections"""

    def __init__(
        self,
        db: AsyncIOMotorDatabase,
        users_collection: str = "users",
        scores_collection: str = "scores"
    ):
        self.db = db
        self.users = db[users_collection]
        self.scores = db[scores_collection]

    async def save_attempt(self, record: AttemptRecord) -> None:
        """
        Append an attempt to the user's history

        Raises:
            PersistenceFailure: If the insert fails
        """
        try:
            await self.scores.insert_one(record.model_dump(by_alias=True))
            logger.info(
                f"✅ Saved attempt for user {record.user_id} "
                f"(score={record.score}/{record.total}, category={record.category})"
            )
        except Exception as e:
            logger.error(f"❌ Failed to save attempt for user {record.user_id}: {e}")
            raise PersistenceFailure(f"Failed to save attempt: {str(e)}")

    async def get_attempts(self, user_id: str, limit: Optional[int] = None) -> List[AttemptRecord]:
        """
        Get a user's attempts, newest first

        Args:
            user_id: Owning user
            limit: Optional maximum number of attempts

        Returns:
            Valid attempt records; malformed documents are skipped
        """
        try:
            cursor = self.scores.find({"userId": user_id}).sort("timestamp", -1)
            if limit:
                cursor = cursor.limit(limit)

            records = []
            async for doc in cursor:
                record = parse_attempt(doc)
                if record is not None:
                    records.append(record)

            logger.debug(f"📊 Retrieved {len(records)} attempts for user {user_id}")
            return records

        except Exception as e:
            logger.error(f"❌ Failed to retrieve attempts for user {user_id}: {e}")
            raise PersistenceFailure(f"Failed to retrieve attempts: {str(e)}")

    async def get_profile(self, user_id: str) -> Optional[UserProfile]:
        try:
            doc = await self.users.find_one({"uid": user_id})
        except Exception as e:
            logger.error(f"❌ Failed to retrieve profile {user_id}: {e}")
            raise PersistenceFailure(f"Failed to retrieve profile: {str(e)}")

        if not doc:
            logger.warning(f"⚠️ Profile not found: {user_id}")
            return None
        return parse_profile(doc)

    async def upsert_profile(self, profile: UserProfile) -> UserProfile:
        """Create or update the profile, keeping the original createdAt"""
        created_at = profile.created_at or datetime.now(timezone.utc)
        try:
            await self.users.update_one(
                {"uid": profile.user_id},
                {
                    "$set": {"name": profile.name, "email": profile.email},
                    "$setOnInsert": {"createdAt": created_at}
                },
                upsert=True
            )
            logger.info(f"✅ Saved profile for user {profile.user_id}")
        except Exception as e:
            logger.error(f"❌ Failed to save profile {profile.user_id}: {e}")
            raise PersistenceFailure(f"Failed to save profile: {str(e)}")

        stored = await self.get_profile(profile.user_id)
        return stored or profile

    async def list_profiles(self) -> List[UserProfile]:
        """All user profiles ordered by uid"""
        try:
            profiles = []
            async for doc in self.users.find({}).sort("uid", 1):
                profile = parse_profile(doc)
                if profile is not None:
                    profiles.append(profile)
            logger.debug(f"📊 Retrieved {len(profiles)} user profiles")
            return profiles

        except Exception as e:
            logger.error(f"❌ Failed to list user profiles: {e}")
            raise PersistenceFailure(f"Failed to list user profiles: {str(e)}")
