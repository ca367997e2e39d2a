"""
User accounts for the demo authentication, kept in their own JSON document:

    {"users": [...], "lastUserId": 3}
"""
import logging
from typing import Callable, List, Optional

from pydantic import ValidationError as PydanticValidationError

from database import JsonDocument
from errors import NotFound, PersistenceError, ValidationError
from schemas import Role, User, utcnow

logger = logging.getLogger(__name__)


class UserStore:
    def __init__(self, path):
        self.document = JsonDocument(path)

    def _read(self) -> dict:
        data = self.document.read() or {}
        data.setdefault("users", [])
        data.setdefault("lastUserId", 0)
        return data

    def _users(self, data: dict) -> List[User]:
        try:
            return [User.model_validate(u) for u in data["users"]]
        except PydanticValidationError as e:
            raise PersistenceError(f"Corrupt record in {self.document.path.name}") from e

    def _write(self, data: dict, users: List[User]):
        data["users"] = [u.model_dump(mode="json", by_alias=True) for u in users]
        self.document.write(data)

    def list(self) -> List[User]:
        return self._users(self._read())

    def count(self) -> int:
        return len(self._read()["users"])

    def get(self, user_id: str) -> User:
        user = next((u for u in self.list() if u.id == str(user_id)), None)
        if user is None:
            raise NotFound("User not found")
        return user

    def get_by_email(self, email: str) -> Optional[User]:
        email = email.strip().lower()
        return next((u for u in self.list() if u.email.lower() == email), None)

    def add(self, name: str, email: str, password_hash: str, role: Role = Role.user,
            phone: str = "", address: Optional[dict] = None) -> User:
        if self.get_by_email(email) is not None:
            raise ValidationError("User already exists")
        data = self._read()
        users = self._users(data)
        new_id = int(data["lastUserId"]) + 1
        now = utcnow()
        user = User(
            id=str(new_id),
            name=name,
            email=email.strip().lower(),
            password=password_hash,
            role=role,
            phone=phone or "",
            address=address or {},
            created_at=now,
            last_login=now,
        )
        users.append(user)
        data["lastUserId"] = new_id
        self._write(data, users)
        logger.info("User registered: %s <%s>", user.id, user.email)
        return user

    def update(self, user_id: str, **changes) -> User:
        data = self._read()
        users = self._users(data)
        for i, user in enumerate(users):
            if user.id == str(user_id):
                break
        else:
            raise NotFound("User not found")

        changes = {k: v for k, v in changes.items() if v is not None}
        if "email" in changes:
            changes["email"] = changes["email"].strip().lower()
            other = self.get_by_email(changes["email"])
            if other is not None and other.id != user.id:
                raise ValidationError("Email is already in use")
        try:
            users[i] = User.model_validate({**user.model_dump(), **changes})
        except PydanticValidationError as e:
            raise ValidationError(e.errors()[0]["msg"]) from e
        self._write(data, users)
        return users[i]

    def update_last_login(self, user_id: str) -> User:
        return self.update(user_id, last_login=utcnow())

    def set_role(self, user_id: str, role: str) -> User:
        if role not in (Role.admin.value, Role.user.value):
            raise ValidationError('Invalid role. Must be "admin" or "user"')
        user = self.update(user_id, role=Role(role))
        logger.info("User %s is now %s", user.id, user.role.value)
        return user

    def delete(self, user_id: str) -> User:
        data = self._read()
        users = self._users(data)
        user = next((u for u in users if u.id == str(user_id)), None)
        if user is None:
            raise NotFound("User not found")
        self._write(data, [u for u in users if u.id != user.id])
        logger.info("User deleted: %s", user.id)
        return user

    def ensure_admin(self, name: str, email: str, password: str, hasher: Callable[[str], str]) -> User:
        """Create the configured admin account unless that email is already registered."""
        existing = self.get_by_email(email)
        if existing is not None:
            return existing
        return self.add(name, email, hasher(password), role=Role.admin)
