from __future__ import annotations

from portal.errors import ValidationError
from portal.models.user import User, UserRole
from portal.stores.base import EntityStore


class UsersStore(EntityStore[User]):
    model = User
    entity_name = "User"

    def _matches_key(self, item: User, key: str) -> bool:
        # Callers reference users by email or by generated id.
        return item.email == key or item.id == key

    def _check_create(self, entity: User) -> None:
        if self.find_by_email(entity.email):
            raise ValidationError("An account with this email already exists", field="email")
        if any(u.id == entity.id for u in self._items):
            raise ValidationError("Duplicate user id", field="id")

    def _check_update(self, current: User, updated: User) -> None:
        if updated.role != current.role:
            raise ValidationError("Role cannot be changed", field="role")
        if updated.id != current.id:
            raise ValidationError("User id cannot be changed", field="id")
        if updated.email != current.email and self.find_by_email(updated.email):
            raise ValidationError("An account with this email already exists", field="email")

    def find_by_email(self, email: str) -> User | None:
        return self.find(lambda u: u.email == email)

    def find_by_id(self, user_id: str) -> User | None:
        return self.find(lambda u: u.id == user_id or u.email == user_id)

    def by_role(self, role: UserRole | str) -> list[User]:
        role = UserRole(role)
        return list(self.list(lambda u: u.role == role))

    def stats(self) -> dict[str, int]:
        return {
            "total": len(self),
            "admins": self.count(lambda u: u.role == UserRole.ADMIN),
            "teachers": self.count(lambda u: u.role == UserRole.TEACHER),
            "students": self.count(lambda u: u.role == UserRole.STUDENT),
        }
