"""Session stores.

Both stores answer with the same ``AuthResult`` shape so endpoints never care
which one is configured. ``logout`` and ``check_current_user`` swallow their own
failures: a broken session simply reads as "nobody is signed in".
"""
from __future__ import annotations

import json
import logging
import secrets
import uuid
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Optional, Protocol

from pydantic import BaseModel
from pymongo.errors import PyMongoError

from models.user import StoredUser, User
from repositories.base import BaseRepository
from repositories.users import UserRepository
from services.security import (
    create_access_token,
    decode_access_token,
    get_password_hash,
    is_reserved_identity,
    verify_password,
)


logger = logging.getLogger(__name__)

RESERVED_MESSAGE = "This username or email is reserved. Please choose a different one."


class AuthResult(BaseModel):
    success: bool
    user: Optional[User] = None
    token: Optional[str] = None
    error: Optional[str] = None


class SessionStore(Protocol):
    async def login(self, username: str, password: str) -> AuthResult: ...

    async def register(
        self, username: str, email: str, password: str, extra: Optional[Dict[str, Any]] = None
    ) -> AuthResult: ...

    async def logout(self, token: str) -> AuthResult: ...

    async def ensure_admin(self, username: str, email: str, password: str) -> User: ...

    async def check_current_user(self, token: Optional[str]) -> Optional[User]: ...


class LocalSessionStore:
    """Demo store persisted to a JSON file.

    Passwords are kept in plain text; only suitable for local demos.
    """

    def __init__(self, path: str | Path) -> None:
        self.path = Path(path)

    def _load(self) -> Dict[str, Any]:
        if not self.path.exists():
            return {"users": {}, "sessions": {}}
        with self.path.open("r", encoding="utf-8") as fh:
            data = json.load(fh)
        data.setdefault("users", {})
        data.setdefault("sessions", {})
        return data

    def _save(self, data: Dict[str, Any]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        with self.path.open("w", encoding="utf-8") as fh:
            json.dump(data, fh, indent=2)

    @staticmethod
    def _public_user(record: Dict[str, Any]) -> User:
        return User(
            _id=record["id"],
            username=record["username"],
            email=record.get("email"),
            is_admin=bool(record.get("is_admin", False)),
            extra=record.get("extra", {}),
            created_at=datetime.fromisoformat(record["created_at"]),
        )

    @staticmethod
    def _new_record(
        username: str, email: str, password: str, extra: Optional[Dict[str, Any]] = None, *, is_admin: bool = False
    ) -> Dict[str, Any]:
        now = datetime.now(timezone.utc)
        return {
            "id": f"{username}_{int(now.timestamp() * 1000)}",
            "username": username,
            "email": email,
            "password": password,
            "is_admin": is_admin,
            "extra": dict(extra or {}),
            "created_at": now.isoformat(),
        }

    def _open_session(self, data: Dict[str, Any], user_key: str) -> str:
        token = secrets.token_urlsafe(32)
        data["sessions"][token] = user_key
        self._save(data)
        return token

    async def login(self, username: str, password: str) -> AuthResult:
        try:
            data = self._load()
            key = username.lower()
            record = data["users"].get(key)
            if not record:
                return AuthResult(success=False, error="User not found. Please register first.")
            if record["password"] != password:
                return AuthResult(success=False, error="Invalid password. Please try again.")
            token = self._open_session(data, key)
            logger.info("auth.login_success", extra={"username": record["username"], "backend": "local"})
            return AuthResult(success=True, user=self._public_user(record), token=token)
        except (OSError, ValueError) as exc:
            logger.exception("auth.local_store_error")
            return AuthResult(success=False, error=str(exc) or "Login failed. Please try again.")

    async def register(
        self, username: str, email: str, password: str, extra: Optional[Dict[str, Any]] = None
    ) -> AuthResult:
        try:
            if is_reserved_identity(username, email):
                return AuthResult(success=False, error=RESERVED_MESSAGE)
            data = self._load()
            key = username.lower()
            if key in data["users"]:
                return AuthResult(
                    success=False,
                    error="Username already exists. Please choose a different username.",
                )
            if any((u.get("email") or "").lower() == email.lower() for u in data["users"].values()):
                return AuthResult(
                    success=False,
                    error="Email already registered. Please use a different email.",
                )
            record = self._new_record(username, email, password, extra)
            data["users"][key] = record
            # Registration signs the user straight in
            token = self._open_session(data, key)
            logger.info("auth.registered", extra={"username": username, "backend": "local"})
            return AuthResult(success=True, user=self._public_user(record), token=token)
        except (OSError, ValueError) as exc:
            logger.exception("auth.local_store_error")
            return AuthResult(success=False, error=str(exc) or "Registration failed. Please try again.")

    async def ensure_admin(self, username: str, email: str, password: str) -> User:
        """Create the studio admin, or flag an existing account as admin."""
        data = self._load()
        key = username.lower()
        record = data["users"].get(key)
        if record is None:
            record = self._new_record(username, email, password, is_admin=True)
            data["users"][key] = record
        else:
            record["is_admin"] = True
        self._save(data)
        logger.info("auth.admin_ensured", extra={"username": username, "backend": "local"})
        return self._public_user(record)

    async def logout(self, token: str) -> AuthResult:
        try:
            data = self._load()
            if data["sessions"].pop(token, None) is not None:
                self._save(data)
            return AuthResult(success=True)
        except (OSError, ValueError) as exc:
            logger.exception("auth.local_store_error")
            return AuthResult(success=False, error=str(exc) or "Logout failed.")

    async def check_current_user(self, token: Optional[str]) -> Optional[User]:
        if not token:
            return None
        try:
            data = self._load()
            key = data["sessions"].get(token)
            record = data["users"].get(key) if key else None
            return self._public_user(record) if record else None
        except (OSError, ValueError, KeyError):
            logger.exception("auth.local_store_error")
            return None


class HostedSessionStore:
    """Users in Mongo with bcrypt hashes; sessions are JWTs backed by a session document."""

    sessions_collection = "sessions"

    def __init__(self, users: UserRepository) -> None:
        self.users = users
        self.sessions = BaseRepository(users.db)

    @staticmethod
    def _public_user(stored: StoredUser) -> User:
        return User.model_validate(stored.model_dump(exclude={"hashed_password"}))

    async def _issue_token(self, user: StoredUser) -> str:
        session_id = uuid.uuid4().hex
        await self.sessions.insert_one(self.sessions_collection, {"session_id": session_id, "user_id": str(user.id)})
        return create_access_token({"sub": str(user.id), "username": user.username, "sid": session_id})

    async def login(self, username: str, password: str) -> AuthResult:
        try:
            user = await self.users.get_by_username(username.strip())
            if not user or not verify_password(password, user.hashed_password):
                logger.warning("auth.login_failed", extra={"username": username})
                return AuthResult(success=False, error="Invalid username/password.")
            token = await self._issue_token(user)
            logger.info("auth.login_success", extra={"username": user.username, "backend": "hosted"})
            return AuthResult(success=True, user=self._public_user(user), token=token)
        except PyMongoError:
            logger.exception("auth.login_error")
            return AuthResult(success=False, error="Login failed. Please check your credentials.")

    async def register(
        self, username: str, email: str, password: str, extra: Optional[Dict[str, Any]] = None
    ) -> AuthResult:
        try:
            if is_reserved_identity(username, email):
                return AuthResult(success=False, error=RESERVED_MESSAGE)
            if await self.users.get_by_username(username):
                return AuthResult(success=False, error="Account already exists for this username.")
            if await self.users.get_by_email(email):
                return AuthResult(success=False, error="Account already exists for this email address.")
            created = await self.users.create(
                StoredUser(
                    username=username,
                    email=email,
                    hashed_password=get_password_hash(password),
                    extra=dict(extra or {}),
                )
            )
            token = await self._issue_token(created)
            logger.info("auth.registered", extra={"username": username, "backend": "hosted"})
            return AuthResult(success=True, user=self._public_user(created), token=token)
        except PyMongoError:
            logger.exception("auth.register_error")
            return AuthResult(success=False, error="Registration failed. Please try again.")

    async def ensure_admin(self, username: str, email: str, password: str) -> User:
        """Create the studio admin, or flag an existing account as admin."""
        existing = await self.users.get_by_username(username)
        if existing is None:
            saved = await self.users.create(
                StoredUser(username=username, email=email, hashed_password=get_password_hash(password), is_admin=True)
            )
        else:
            existing.is_admin = True
            saved = await self.users.update(existing)
        logger.info("auth.admin_ensured", extra={"username": username, "backend": "hosted"})
        return self._public_user(saved)

    async def logout(self, token: str) -> AuthResult:
        payload = decode_access_token(token)
        if not payload:
            return AuthResult(success=True)
        try:
            await self.sessions.delete_one(self.sessions_collection, {"session_id": payload.get("sid")})
            return AuthResult(success=True)
        except PyMongoError:
            logger.exception("auth.logout_error")
            return AuthResult(success=False, error="Logout failed.")

    async def check_current_user(self, token: Optional[str]) -> Optional[User]:
        if not token:
            return None
        payload = decode_access_token(token)
        if not payload or not payload.get("sid"):
            return None
        try:
            session = await self.sessions.find_one(self.sessions_collection, {"session_id": payload["sid"]})
            if not session:
                return None
            # Re-fetch so a deleted account drops its sessions
            user = await self.users.get_by_id(payload.get("sub"))
            return self._public_user(user) if user else None
        except PyMongoError:
            logger.exception("auth.check_user_error")
            return None
