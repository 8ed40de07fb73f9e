from __future__ import annotations

import logging

from portal.errors import NotFound, ValidationError
from portal.models.assignment import Assignment, Submission
from portal.models.base import utcnow
from portal.stores.base import EntityStore

logger = logging.getLogger(__name__)


class AssignmentsStore(EntityStore[Assignment]):
    model = Assignment
    entity_name = "Assignment"

    def _check_create(self, entity: Assignment) -> None:
        if self.exists(entity.id):
            raise ValidationError(f"Duplicate assignment id: {entity.id}", field="id")

    def _check_update(self, current: Assignment, updated: Assignment) -> None:
        if updated.class_id != current.class_id:
            raise ValidationError("An assignment cannot move to another class", field="class_id")
        for submission in updated.submissions.values():
            if submission.score is not None and submission.score > updated.points:
                raise ValidationError(
                    f"Points cannot drop below an existing score ({submission.score})", field="points"
                )

    def for_class(self, class_id: str) -> list[Assignment]:
        return list(self.list(lambda a: a.class_id == class_id))

    def submit(self, assignment_id: str, student_id: str, content: str = "", attachment: str | None = None) -> Assignment:
        """Store the student's submission, replacing any earlier one."""
        if not (content or "").strip() and not attachment:
            raise ValidationError("A submission needs an answer or an attachment", field="content")
        index = self._index_of(assignment_id)
        current = self._items[index]
        submissions = dict(current.submissions)
        replaced = student_id in submissions
        submissions[student_id] = Submission(
            student_id=student_id, content=content, attachment=attachment, submitted_at=utcnow()
        )
        updated = current.model_copy(update={"submissions": submissions, "updated_at": utcnow()})
        logger.info(f"{'Resubmission' if replaced else 'Submission'} by {student_id} for {assignment_id}")
        return self._replace(index, updated)

    def submission_for(self, assignment_id: str, student_id: str) -> Submission | None:
        return self.get(assignment_id).submissions.get(student_id)

    def grade(self, assignment_id: str, student_id: str, score: float, feedback: str | None = None) -> Assignment:
        index = self._index_of(assignment_id)
        current = self._items[index]
        submission = current.submissions.get(student_id)
        if submission is None:
            raise NotFound("Submission", f"{assignment_id}/{student_id}")
        if score < 0 or score > current.points:
            raise ValidationError(f"Score must be between 0 and {current.points}", field="score")
        graded = submission.model_copy(update={"score": score, "feedback": feedback, "graded_at": utcnow()})
        submissions = {**current.submissions, student_id: graded}
        updated = current.model_copy(update={"submissions": submissions, "updated_at": utcnow()})
        return self._replace(index, updated)
