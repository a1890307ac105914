# cinesync/services/user_store.py

from __future__ import annotations

from datetime import datetime
from typing import Dict, Iterable, List, Optional, Tuple
import uuid

from cinesync.core.errors import BadRequest, Conflict, NotFound
from cinesync.core.logging import get_logger
from cinesync.core.security import MAX_PASSWORD_BYTES, hash_password, verify_password
from cinesync.models.user import PublicUser, Role, User

logger = get_logger(__name__)

MIN_SEARCH_QUERY_LENGTH = 2
MIN_PASSWORD_LENGTH = 6


# ============================================================================
# USER ACCOUNTS
# ============================================================================

class UserStore:
    """
    In-memory user accounts.

    Emails are unique and compared case-insensitively. Emails listed in
    ``admin_emails`` are given the admin role when they register.

    Attributes:
        users: Dictionary mapping user_id -> User
    """

    def __init__(self, admin_emails: Iterable[str] = ()) -> None:
        self.users: Dict[str, User] = {}
        self._ids_by_email: Dict[str, str] = {}
        self.admin_emails = {e.strip().lower() for e in admin_emails}

    @staticmethod
    def normalize_email(email: str) -> str:
        return email.strip().lower()

    def register_user(self, email: str, password: str, name: str) -> User:
        """
        Create an account.

        Raises:
            BadRequest: malformed email, blank name, or a password that is
                too short or longer than bcrypt accepts
            Conflict: the email is already registered
        """
        email = self.normalize_email(email)
        name = name.strip()

        if "@" not in email or email.startswith("@") or email.endswith("@"):
            raise BadRequest("Invalid email address")
        if len(password) < MIN_PASSWORD_LENGTH:
            raise BadRequest(f"Password must be at least {MIN_PASSWORD_LENGTH} characters")
        if len(password.encode("utf-8")) > MAX_PASSWORD_BYTES:
            raise BadRequest(f"Password must be at most {MAX_PASSWORD_BYTES} bytes")
        if not name:
            raise BadRequest("Name is required")
        if email in self._ids_by_email:
            raise Conflict("User already exists")

        role = Role.ADMIN if email in self.admin_emails else Role.USER
        user = User(
            id=str(uuid.uuid4()),
            email=email,
            name=name,
            password_hash=hash_password(password),
            role=role,
        )
        self.users[user.id] = user
        self._ids_by_email[email] = user.id
        logger.info("✓ Registered user %s (%s)", user.id, role.value)
        return user

    def authenticate(self, email: str, password: str) -> Optional[User]:
        user = self.get_by_email(email)
        if not user or not user.is_active:
            return None
        if not verify_password(password, user.password_hash):
            return None
        return user

    def get_user(self, user_id: str) -> Optional[User]:
        return self.users.get(user_id)

    def get_by_email(self, email: str) -> Optional[User]:
        user_id = self._ids_by_email.get(self.normalize_email(email))
        return self.users.get(user_id) if user_id else None

    def set_role(self, user_id: str, role: Role) -> User:
        user = self.users.get(user_id)
        if not user:
            raise NotFound("User not found")
        user.role = role
        logger.info("✓ User %s role set to %s", user_id, role.value)
        return user

    def search_users_for_invite(
        self, query: str, requester_id: str, limit: int = 10
    ) -> List[PublicUser]:
        """
        Find users to invite to a watch room.

        Case-insensitive substring match on name or email. The requester and
        deactivated accounts are never returned. Queries shorter than two
        characters after trimming return an empty list.
        """
        needle = (query or "").strip().lower()
        if len(needle) < MIN_SEARCH_QUERY_LENGTH:
            return []

        matches = [
            user
            for user in self.users.values()
            if user.id != requester_id
            and user.is_active
            and (needle in user.name.lower() or needle in user.email)
        ]
        matches.sort(key=lambda u: (u.name.lower(), u.email))
        return [user.public() for user in matches[:limit]]

    def list_users(
        self, search: str = "", role: Optional[Role] = None, limit: int = 50
    ) -> Tuple[List[User], int]:
        """Admin listing, newest first. Returns (page, total matching)."""
        needle = search.strip().lower()
        matches = [
            user
            for user in self.users.values()
            if (not needle or needle in user.name.lower() or needle in user.email)
            and (role is None or user.role == role)
        ]
        matches.sort(key=lambda u: u.created_at, reverse=True)
        return matches[:limit], len(matches)

    def count(self, created_since: Optional[datetime] = None) -> int:
        if created_since is None:
            return len(self.users)
        return sum(1 for u in self.users.values() if u.created_at >= created_since)
