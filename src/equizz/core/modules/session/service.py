import asyncio
import contextlib
import secrets
from datetime import timedelta
from typing import Any
from uuid import UUID, uuid4

import structlog
from pymongo.asynchronous.database import AsyncDatabase

from equizz import utils
from equizz.core.core import Service
from equizz.core.modules.session.device import DeviceParser, merge_device_info, parse_device_info
from equizz.core.modules.session.models import (
    AccessTokenGrant,
    CleanupReport,
    ClientInfo,
    RevokedBy,
    Session,
    SessionView,
    TokenPair,
    VerifiedToken,
)
from equizz.core.modules.session.tokens import JwtTokenSigner, TokenSigner
from equizz.errors import InvalidRefreshTokenError, SessionInvalidError, TokenInvalidError, UserNotFoundError

logger = structlog.get_logger(__name__)

ACCESS_TOKEN_TYPE = "access"
REFRESH_TOKEN_BYTES = 64


def revocation_fields(revoked_by: RevokedBy, reason: str) -> dict[str, Any]:
    """$set payload moving a session to its terminal revoked state."""
    return {"is_active": False, "revoked_at": utils.now(), "revoked_by": revoked_by, "revoked_reason": reason}


class SessionService(Service):
    """Issues, verifies and revokes access/refresh token pairs backed by session documents.

    All cross-request coordination goes through the sessions collection: the
    unique refresh_token index and updates guarded on is_active. No session
    state is kept in process memory.
    """

    def __init__(self, database: AsyncDatabase[dict[str, Any]]) -> None:
        super().__init__(database)
        self._collection = database.get_collection("sessions")
        self._signer: TokenSigner | None = None
        self._cleanup_task: asyncio.Task[None] | None = None
        self.device_parser: DeviceParser = parse_device_info

    async def on_start(self) -> None:
        """Create indexes and start the periodic cleanup loop."""
        await self._collection.create_index([("refresh_token", 1)], unique=True)
        await self._collection.create_index([("user_id", 1), ("is_active", 1)])
        await self._collection.create_index([("access_token", 1)])
        await self._collection.create_index([("last_activity", 1)])
        # TTL index: MongoDB removes sessions once expires_at has passed
        await self._collection.create_index([("expires_at", 1)], expireAfterSeconds=0)

        interval_hours = self.core.config.session_cleanup_interval_hours
        if interval_hours > 0:
            self._cleanup_task = asyncio.create_task(self._cleanup_loop(interval_hours * 3600))

    async def on_stop(self) -> None:
        if self._cleanup_task is not None:
            self._cleanup_task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await self._cleanup_task
            self._cleanup_task = None

    @property
    def signer(self) -> TokenSigner:
        if self._signer is None:
            self._signer = JwtTokenSigner(self.core.config.jwt_secret, self.core.config.jwt_algorithm)
        return self._signer

    def set_signer(self, signer: TokenSigner) -> None:
        self._signer = signer

    @property
    def access_token_ttl(self) -> timedelta:
        return timedelta(minutes=self.core.config.access_token_ttl_minutes)

    @property
    def refresh_token_ttl(self) -> timedelta:
        return timedelta(days=self.core.config.refresh_token_ttl_days)

    def _mint_access_token(self, user_id: UUID, session_id: UUID) -> str:
        payload = {"sub": str(user_id), "type": ACCESS_TOKEN_TYPE, "sid": str(session_id)}
        return self.signer.sign(payload, self.access_token_ttl)

    async def generate_token_pair(self, user_id: UUID, client: ClientInfo | None = None) -> TokenPair:
        """Open a new session for the user and return its tokens.

        Expired sessions are retired and the least recently active ones are
        revoked so that the user stays within max_sessions_per_user.
        """
        await self._enforce_session_limit(user_id)

        session_id = uuid4()
        current = utils.now()
        session = Session(
            id=session_id,
            user_id=user_id,
            refresh_token=secrets.token_hex(REFRESH_TOKEN_BYTES),
            access_token=self._mint_access_token(user_id, session_id),
            device_info=self.device_parser(client or ClientInfo()),
            last_activity=current,
            created_at=current,
            expires_at=current + self.refresh_token_ttl,
        )
        await self._collection.insert_one(session.to_mongo())
        logger.info("session_created", user_id=str(user_id), session_id=str(session_id))

        return TokenPair(
            access_token=session.access_token,
            refresh_token=session.refresh_token,
            expires_in=int(self.access_token_ttl.total_seconds()),
            session_id=session_id,
        )

    async def _enforce_session_limit(self, user_id: UUID) -> None:
        current = utils.now()
        # Already-inactive sessions keep their original revocation metadata
        await self._collection.update_many(
            {"user_id": user_id, "is_active": True, "expires_at": {"$lte": current}},
            {"$set": revocation_fields(RevokedBy.SYSTEM, "Expired or inactive")},
        )

        active = await Session.list_cursor(
            self._collection.find({"user_id": user_id, "is_active": True, "expires_at": {"$gt": current}}).sort(
                "last_activity", -1
            )
        )
        limit = self.core.config.max_sessions_per_user
        if len(active) < limit:
            return

        # Keep the (limit - 1) most recent so the new session brings the count back to limit
        evicted = [session.id for session in active[limit - 1 :]]
        result = await self._collection.update_many(
            {"_id": {"$in": evicted}, "is_active": True},
            {"$set": revocation_fields(RevokedBy.SYSTEM, "Session limit exceeded")},
        )
        logger.info("session_limit_enforced", user_id=str(user_id), revoked=result.modified_count)

    async def refresh_access_token(self, refresh_token: str, client: ClientInfo | None = None) -> AccessTokenGrant:
        """Exchange a refresh token for a new access token.

        The refresh token itself is not rotated. Unknown, expired and revoked
        tokens are all reported the same way.
        """
        doc = await self._collection.find_one(
            {"refresh_token": refresh_token, "is_active": True, "expires_at": {"$gt": utils.now()}}
        )
        if doc is None:
            raise InvalidRefreshTokenError
        session = Session.model_validate(doc)

        if not await self.core.services.user.has_user(session.user_id):
            await self.revoke_session(session.id, RevokedBy.SYSTEM, "User not found")
            raise UserNotFoundError

        access_token = self._mint_access_token(session.user_id, session.id)
        device_info = merge_device_info(session.device_info, client or ClientInfo(), self.device_parser)
        result = await self._collection.update_one(
            {"_id": session.id, "is_active": True},
            {
                "$set": {
                    "access_token": access_token,
                    "last_activity": utils.now(),
                    "device_info": device_info.model_dump(),
                }
            },
        )
        if result.matched_count == 0:
            # Revoked between lookup and update
            raise InvalidRefreshTokenError

        return AccessTokenGrant(
            access_token=access_token,
            expires_in=int(self.access_token_ttl.total_seconds()),
            session_id=session.id,
        )

    async def verify_access_token(self, token: str) -> VerifiedToken:
        """Validate an access token and the session it belongs to.

        Raises:
            TokenExpiredError: Signature valid but past exp (client should refresh)
            TokenInvalidError: Bad signature, malformed, or not an access token
            SessionInvalidError: Token no longer matches a usable session
        """
        payload = self.signer.verify(token)
        if payload.get("type") != ACCESS_TOKEN_TYPE:
            raise TokenInvalidError("Invalid token type")
        try:
            user_id = UUID(str(payload.get("sub")))
        except ValueError as e:
            raise TokenInvalidError from e

        current = utils.now()
        doc = await self._collection.find_one(
            {"access_token": token, "user_id": user_id, "is_active": True, "expires_at": {"$gt": current}}
        )
        if doc is None:
            raise SessionInvalidError

        # Unguarded: concurrent touches are last-write-wins
        await self._collection.update_one({"_id": doc["_id"]}, {"$set": {"last_activity": current}})
        return VerifiedToken(user_id=user_id, session_id=doc["_id"], decoded=payload)

    async def revoke_session(
        self, session_id: UUID, revoked_by: RevokedBy = RevokedBy.USER, reason: str = "Manual logout"
    ) -> bool:
        """Revoke one session. Returns False if it is missing or already inactive."""
        result = await self._collection.update_one(
            {"_id": session_id, "is_active": True}, {"$set": revocation_fields(revoked_by, reason)}
        )
        if result.modified_count == 0:
            return False
        logger.info("session_revoked", session_id=str(session_id), revoked_by=revoked_by, reason=reason)
        return True

    async def revoke_all_user_sessions(
        self,
        user_id: UUID,
        exclude_session_id: UUID | None = None,
        revoked_by: RevokedBy = RevokedBy.USER,
        reason: str = "Logout all devices",
    ) -> int:
        """Revoke every active session of a user, optionally sparing one. Returns the count revoked."""
        query: dict[str, Any] = {"user_id": user_id, "is_active": True}
        if exclude_session_id is not None:
            query["_id"] = {"$ne": exclude_session_id}
        result = await self._collection.update_many(query, {"$set": revocation_fields(revoked_by, reason)})
        logger.info(
            "user_sessions_revoked",
            user_id=str(user_id),
            revoked=result.modified_count,
            revoked_by=revoked_by,
            reason=reason,
        )
        return result.modified_count

    async def get_user_sessions(self, user_id: UUID, current_session_id: UUID | None = None) -> list[SessionView]:
        """Usable sessions of a user, most recently active first."""
        sessions = await Session.list_cursor(
            self._collection.find({"user_id": user_id, "is_active": True, "expires_at": {"$gt": utils.now()}}).sort(
                "last_activity", -1
            )
        )
        return [SessionView.from_domain(session, current_session_id) for session in sessions]

    async def find_active_session(self, session_id: UUID, user_id: UUID) -> Session | None:
        doc = await self._collection.find_one({"_id": session_id, "user_id": user_id, "is_active": True})
        return Session.model_validate(doc) if doc is not None else None

    async def get_session(self, session_id: UUID) -> Session | None:
        doc = await self._collection.find_one({"_id": session_id})
        return Session.model_validate(doc) if doc is not None else None

    async def perform_periodic_cleanup(self) -> CleanupReport:
        """Retire idle sessions and purge long-revoked ones.

        Best-effort housekeeping: failures are logged and never propagate.
        """
        config = self.core.config
        try:
            idle = await self._collection.update_many(
                {"is_active": True, "last_activity": {"$lt": utils.days_ago(config.session_inactivity_days)}},
                {"$set": revocation_fields(RevokedBy.SYSTEM, "Inactivity timeout")},
            )
            purged = await self._collection.delete_many(
                {"is_active": False, "revoked_at": {"$lt": utils.days_ago(config.revoked_session_retention_days)}}
            )
        except Exception:
            logger.exception("session_cleanup_failed")
            return CleanupReport()

        report = CleanupReport(deactivated=idle.modified_count, deleted=purged.deleted_count)
        logger.info("session_cleanup_completed", deactivated=report.deactivated, deleted=report.deleted)
        return report

    async def _cleanup_loop(self, interval_seconds: float) -> None:
        while True:
            await asyncio.sleep(interval_seconds)
            await self.perform_periodic_cleanup()
