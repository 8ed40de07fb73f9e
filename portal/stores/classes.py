from __future__ import annotations

from portal.errors import ValidationError
from portal.models.school_class import SchoolClass
from portal.stores.base import EntityStore


class ClassesStore(EntityStore[SchoolClass]):
    """Classes collection. Capacity on enrollment is enforced by the enrollment service."""

    model = SchoolClass
    entity_name = "Class"

    def _check_create(self, entity: SchoolClass) -> None:
        if self.exists(entity.id):
            raise ValidationError(f"Duplicate class id: {entity.id}", field="id")

    def find_by_ref(self, ref: str) -> SchoolClass | None:
        """Resolve a class reference given either as id or as class name."""
        return self.find(lambda c: c.id == ref) or self.find(lambda c: c.class_name == ref)

    def taught_by(self, identifiers: set[str]) -> list[SchoolClass]:
        return list(self.list(lambda c: c.teacher_id is not None and c.teacher_id in identifiers))
