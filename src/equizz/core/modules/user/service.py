from typing import Any
from uuid import UUID

import bcrypt
import structlog
from pymongo.asynchronous.database import AsyncDatabase
from pymongo.errors import DuplicateKeyError

from equizz import utils
from equizz.core.core import Service
from equizz.core.modules.user.models import User, UserRole
from equizz.core.modules.user.validators import MAX_PASSWORD_BYTES, normalize_email, validate_password
from equizz.errors import NotFoundError, ValidationError

logger = structlog.get_logger(__name__)


def hash_password(password: str) -> str:
    return bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt()).decode("utf-8")


def check_password(password: str, password_hash: str) -> bool:
    encoded = password.encode("utf-8")
    # Such a password could never have been stored
    if len(encoded) > MAX_PASSWORD_BYTES:
        return False
    return bcrypt.checkpw(encoded, password_hash.encode("utf-8"))


class UserService(Service):
    """Manages user accounts. Every lookup reads the database; nothing is cached per process."""

    def __init__(self, database: AsyncDatabase[dict[str, Any]]) -> None:
        super().__init__(database)
        self._collection = database.get_collection("users")

    async def on_start(self) -> None:
        """Initialize indexes and the default admin user."""
        await self._collection.create_index([("email", 1)], unique=True)
        await self._collection.create_index(
            [("matricule", 1)], unique=True, partialFilterExpression={"matricule": {"$type": "string"}}
        )
        await self._collection.create_index([("role", 1), ("class_id", 1)])
        await self.ensure_admin_user_exists()

    async def find_user(self, user_id: UUID) -> User | None:
        doc = await self._collection.find_one({"_id": user_id})
        return User.model_validate(doc) if doc is not None else None

    async def get_user(self, user_id: UUID) -> User:
        """Get user by ID."""
        user = await self.find_user(user_id)
        if user is None:
            raise NotFoundError(f"User '{user_id}' not found", code="USER_NOT_FOUND")
        return user

    async def has_user(self, user_id: UUID) -> bool:
        return await self._collection.count_documents({"_id": user_id}, limit=1) > 0

    async def get_user_by_identifier(self, identifier: str) -> User | None:
        """Find a user by email or matricule."""
        identifier = identifier.strip()
        query = {"$or": [{"email": normalize_email(identifier)}, {"matricule": identifier}]}
        doc = await self._collection.find_one(query)
        return User.model_validate(doc) if doc is not None else None

    async def verify_credentials(self, identifier: str, password: str) -> User | None:
        """Return the user if the password matches, None otherwise."""
        user = await self.get_user_by_identifier(identifier)
        if user is None or not check_password(password, user.password_hash):
            return None
        return user

    async def create_user(
        self,
        email: str,
        password: str,
        first_name: str,
        last_name: str,
        role: UserRole = UserRole.STUDENT,
        matricule: str | None = None,
        class_id: UUID | None = None,
    ) -> User:
        """Create user with hashed password."""
        email = normalize_email(email)
        matricule = matricule.strip() if matricule else None
        validate_password(password)

        if await self._collection.count_documents({"email": email}, limit=1):
            raise ValidationError("Email already exists", code="USER_EXISTS")
        if matricule and await self._collection.count_documents({"matricule": matricule}, limit=1):
            raise ValidationError("Matricule already exists", code="USER_EXISTS")

        user = User(
            email=email,
            matricule=matricule,
            password_hash=hash_password(password),
            first_name=first_name,
            last_name=last_name,
            role=role,
            class_id=class_id,
        )
        try:
            await self._collection.insert_one(user.to_mongo())
        except DuplicateKeyError as e:
            # Concurrent registration with the same email or matricule
            raise ValidationError("User already exists", code="USER_EXISTS") from e
        logger.info("user_created", user_id=str(user.id), role=user.role)
        return user

    async def change_password(self, user_id: UUID, old_password: str, new_password: str) -> None:
        """Change user password after verifying current password."""
        user = await self.get_user(user_id)
        if not check_password(old_password, user.password_hash):
            raise ValidationError("Invalid current password", code="INVALID_PASSWORD")
        await self.reset_password(user_id, new_password)

    async def reset_password(self, user_id: UUID, new_password: str) -> None:
        validate_password(new_password)
        result = await self._collection.update_one(
            {"_id": user_id}, {"$set": {"password_hash": hash_password(new_password), "updated_at": utils.now()}}
        )
        if result.matched_count == 0:
            raise NotFoundError(f"User '{user_id}' not found", code="USER_NOT_FOUND")

    async def update_class(self, user_id: UUID, class_id: UUID | None) -> User:
        result = await self._collection.update_one(
            {"_id": user_id}, {"$set": {"class_id": class_id, "updated_at": utils.now()}}
        )
        if result.matched_count == 0:
            raise NotFoundError(f"User '{user_id}' not found", code="USER_NOT_FOUND")
        return await self.get_user(user_id)

    async def delete_user(self, user_id: UUID) -> None:
        result = await self._collection.delete_one({"_id": user_id})
        if result.deleted_count == 0:
            raise NotFoundError(f"User '{user_id}' not found", code="USER_NOT_FOUND")
        logger.info("user_deleted", user_id=str(user_id))

    async def list_students(self, class_id: UUID | None = None) -> list[User]:
        query: dict[str, Any] = {"role": UserRole.STUDENT}
        if class_id is not None:
            query["class_id"] = class_id
        return await User.list_cursor(self._collection.find(query).sort("last_name", 1))

    async def count_students(self, class_id: UUID | None = None) -> int:
        query: dict[str, Any] = {"role": UserRole.STUDENT}
        if class_id is not None:
            query["class_id"] = class_id
        return await self._collection.count_documents(query)

    async def ensure_admin_user_exists(self) -> None:
        """Create default admin user if no admin exists."""
        if await self._collection.count_documents({"role": UserRole.ADMIN}, limit=1):
            return
        config = self.core.config
        try:
            await self.create_user(
                config.default_admin_email, config.default_admin_password, "Admin", "System", role=UserRole.ADMIN
            )
        except ValidationError:
            # Another instance created it first, or the email is taken by a non-admin account
            logger.warning("default_admin_not_created", email=config.default_admin_email)
