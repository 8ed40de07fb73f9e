"""Post and assignment visibility, feed ordering."""
from __future__ import annotations

from typing import Iterable

from portal.models.assignment import Assignment
from portal.models.post import Post, Visibility
from portal.models.school_class import SchoolClass
from portal.rbac import Viewer
from portal.services.enrollment import EnrollmentService
from portal.stores.assignments import AssignmentsStore
from portal.stores.posts import PostsStore


def class_refs(classes: Iterable[SchoolClass]) -> set[str]:
    """Ids and names: both forms occur as post targets."""
    refs: set[str] = set()
    for school_class in classes:
        refs.add(school_class.id)
        refs.add(school_class.class_name)
    return refs


def is_post_visible(post: Post, viewer: Viewer, visible_class_refs: set[str]) -> bool:
    if post.visibility in (Visibility.PUBLIC, Visibility.STUDENTS):
        # "students" is as wide as "public".
        return True
    if post.visibility == Visibility.CLASS:
        return post.target_class in visible_class_refs
    return bool(viewer.identifiers & post.poster.identifiers)


def sort_posts(posts: Iterable[Post]) -> list[Post]:
    """Pinned first, then newest first; equal keys keep input order."""
    return sorted(
        posts,
        key=lambda p: (
            0 if p.is_pinned else 1,
            -p.timestamp.timestamp(),
        ),
    )


def visible_posts_for(viewer: Viewer, posts: Iterable[Post], classes_visible_to_viewer: Iterable[SchoolClass]) -> list[Post]:
    refs = class_refs(classes_visible_to_viewer)
    return sort_posts(p for p in posts if is_post_visible(p, viewer, refs))


def feed_for(viewer: Viewer, posts: PostsStore, enrollment: EnrollmentService) -> list[Post]:
    return visible_posts_for(viewer, posts.list(), enrollment.visible_classes_for(viewer))


def visible_assignments_for(viewer: Viewer, assignments: AssignmentsStore, enrollment: EnrollmentService) -> list[Assignment]:
    class_ids = {c.id for c in enrollment.visible_classes_for(viewer)}
    return list(assignments.list(lambda a: a.class_id in class_ids))
