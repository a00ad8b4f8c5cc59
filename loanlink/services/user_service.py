import logging
from datetime import datetime, timezone
from typing import Any, Dict, List

from pymongo.errors import DuplicateKeyError, PyMongoError

from loanlink.core.exceptions import NotFoundError, StoreError
from loanlink.database.connection import USERS_COLLECTION
from loanlink.helpers.response_builder import build_insert_summary, build_update_summary
from loanlink.helpers.validation import parse_payload, strip_identifier
from loanlink.schemas.user_schemas import RoleUpdate, UserRoleEnum, UserUpsert

logger = logging.getLogger(__name__)


class UserService:
    """Users collection access: login upsert, lookups and role changes."""

    def __init__(self, store, default_role: str = UserRoleEnum.borrower.value):
        self.store = store
        self.default_role = UserRoleEnum(default_role).value

    async def _collection(self):
        return await self.store.get_collection(USERS_COLLECTION)

    # Inserts the user on first login, afterwards only advances last_loggedIn
    async def upsert(self, user_data: Dict[str, Any]) -> Dict[str, Any]:
        profile = parse_payload(UserUpsert, user_data)
        email = str(profile.email)
        users = await self._collection()

        try:
            existing = await users.find_one({"email": email})
            if existing:
                logger.info(f"User {email} already exists, updating last login")
                return await self._touch_last_login(users, email)

            now = datetime.now(timezone.utc)
            document = strip_identifier(profile.model_dump(exclude_none=True, mode="json"))
            document.update({
                "email": email,
                "role": profile.role.value if profile.role else self.default_role,
                "created_at": now,
                "last_loggedIn": now,
            })
            try:
                result = await users.insert_one(document)
            except DuplicateKeyError:
                # lost an insert race against a concurrent login with the same email
                logger.info(f"User {email} was created concurrently, updating last login")
                return await self._touch_last_login(users, email)

            logger.info(f"Saved new user {email} with role {document['role']}")
            return build_insert_summary(result)
        except PyMongoError as e:
            logger.error(f"Failed to upsert user {email}: {e}")
            raise StoreError(f"Database service unavailable: {e}") from e

    async def _touch_last_login(self, users, email: str) -> Dict[str, Any]:
        result = await users.update_one(
            {"email": email},
            {"$set": {"last_loggedIn": datetime.now(timezone.utc)}},
        )
        return build_update_summary(result)

    async def find_by_email(self, email: str) -> Dict[str, Any]:
        users = await self._collection()
        try:
            user = await users.find_one({"email": email})
        except PyMongoError as e:
            logger.error(f"Failed to look up user {email}: {e}")
            raise StoreError(f"Database service unavailable: {e}") from e

        if not user:
            logger.warning(f"User {email} not found")
            raise NotFoundError(f"User '{email}' not found")
        return user

    async def get_role(self, email: str) -> Dict[str, Any]:
        users = await self._collection()
        try:
            user = await users.find_one({"email": email}, {"_id": 0, "role": 1})
        except PyMongoError as e:
            logger.error(f"Failed to look up role for {email}: {e}")
            raise StoreError(f"Database service unavailable: {e}") from e

        if not user:
            logger.warning(f"User {email} not found")
            raise NotFoundError(f"User '{email}' not found")
        return {"role": user.get("role")}

    async def set_role(self, email: str, role: Any) -> Dict[str, Any]:
        """Change a user's role.

        Only borrower, manager and admin can be assigned; anything else is
        rejected before the store is touched. Setting the role a user already
        has is reported as ``unchanged`` rather than as an error.
        """
        requested = parse_payload(RoleUpdate, {"role": role}).role.value

        users = await self._collection()
        try:
            current = await users.find_one({"email": email}, {"role": 1})
            if not current:
                logger.warning(f"Role update for unknown user {email}")
                raise NotFoundError(f"User '{email}' not found")

            if current.get("role") == requested:
                logger.info(f"User {email} already has role {requested}")
                return {
                    "acknowledged": True,
                    "matchedCount": 1,
                    "modifiedCount": 0,
                    "upsertedId": None,
                    "upsertedCount": 0,
                    "role": requested,
                    "status": "unchanged",
                }

            result = await users.update_one({"email": email}, {"$set": {"role": requested}})
        except PyMongoError as e:
            logger.error(f"Failed to update role for {email}: {e}")
            raise StoreError(f"Database service unavailable: {e}") from e

        if result.matched_count == 0:
            # deleted between the lookup and the update
            raise NotFoundError(f"User '{email}' not found")

        logger.info(f"User {email} role changed from {current.get('role')} to {requested}")
        summary = build_update_summary(result)
        summary["role"] = requested
        summary["status"] = "updated"
        return summary

    async def list_all(self) -> List[Dict[str, Any]]:
        users = await self._collection()
        try:
            return await users.find().to_list(length=None)
        except PyMongoError as e:
            logger.error(f"Failed to list users: {e}")
            raise StoreError(f"Database service unavailable: {e}") from e
