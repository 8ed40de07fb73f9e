"""Posts collection: reactions, pinning and append-only comments."""
from __future__ import annotations

import logging

from portal.errors import ValidationError
from portal.models.base import utcnow
from portal.models.post import Comment, Post
from portal.models.user import UserRole
from portal.stores.base import EntityStore

logger = logging.getLogger(__name__)

PIN_ROLES = {UserRole.ADMIN.value, UserRole.TEACHER.value}


def _toggle(actors: list[str], actor_id: str) -> list[str]:
    if actor_id in actors:
        return [a for a in actors if a != actor_id]
    return [*actors, actor_id]


class PostsStore(EntityStore[Post]):
    model = Post
    entity_name = "Post"

    def _check_create(self, entity: Post) -> None:
        if self.exists(entity.id):
            raise ValidationError(f"Duplicate post id: {entity.id}", field="id")
        self._check_pin(entity)

    def _check_update(self, current: Post, updated: Post) -> None:
        if updated.is_pinned and not current.is_pinned:
            self._check_pin(updated)

    @staticmethod
    def _check_pin(post: Post) -> None:
        if post.is_pinned and post.poster.role not in PIN_ROLES:
            raise ValidationError("Only admin and teacher posts can be pinned", field="is_pinned")

    def _mutate(self, post_id: str, **changes) -> Post:
        index = self._index_of(post_id)
        current = self._items[index]
        updated = self._build({**current.model_dump(), **changes})
        return self._replace(index, updated)

    def toggle_like(self, post_id: str, actor_id: str) -> Post:
        current = self._items[self._index_of(post_id)]
        return self._mutate(post_id, liked_by=_toggle(current.liked_by, actor_id))

    def toggle_favorite(self, post_id: str, actor_id: str) -> Post:
        current = self._items[self._index_of(post_id)]
        return self._mutate(post_id, favorited_by=_toggle(current.favorited_by, actor_id))

    def toggle_pin(self, post_id: str) -> Post:
        current = self._items[self._index_of(post_id)]
        return self.update(post_id, {"is_pinned": not current.is_pinned})

    def add_comment(self, post_id: str, text: str, author: str) -> Post:
        current = self._items[self._index_of(post_id)]
        if not (text or "").strip():
            raise ValidationError("Comment text is required", field="text")
        comment = Comment(text=text, author=author, timestamp=utcnow())
        logger.debug(f"Comment by {author} on post {post_id}")
        return self._mutate(post_id, comments=[*current.model_dump()["comments"], comment.model_dump()])

    def posts_by(self, user_id: str) -> list[Post]:
        return list(self.list(lambda p: user_id in p.poster.identifiers))
