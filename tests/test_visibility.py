from datetime import datetime, timedelta, timezone

from portal.models.post import Post
from portal.rbac import AdminViewer, StudentViewer, TeacherViewer
from portal.services.visibility import (
    class_refs,
    feed_for,
    is_post_visible,
    sort_posts,
    visible_assignments_for,
    visible_posts_for,
)

BASE = datetime(2026, 1, 1, tzinfo=timezone.utc)


def _post(post_id, day, **extra):
    data = {
        "id": post_id,
        "title": post_id,
        "timestamp": BASE + timedelta(days=day),
        "poster": {"id": "author@x.com", "role": "teacher"},
        **extra,
    }
    return Post.model_validate(data)


def test_feed_scenario(portal, make_class):
    c1 = make_class("C1", student_list=["s@x.com"])
    make_class("C2")
    posts = [
        _post("p1", 1, visibility="public"),
        _post("p2", 2, visibility="class", target_class=c1.id),
        _post("p3", 3, visibility="class", target_class="C2"),
        _post("p4", 4, visibility="private", poster={"id": "t@x.com", "role": "teacher"}),
    ]
    viewer = StudentViewer("s@x.com")
    visible = visible_posts_for(viewer, posts, portal.enrollment.visible_classes_for(viewer))
    assert [p.id for p in visible] == ["p2", "p1"]


def test_students_visibility_is_public(portal):
    post = _post("p", 0, visibility="students")
    for viewer in (StudentViewer("s@x.com"), TeacherViewer("t@x.com"), AdminViewer("a@x.com")):
        assert is_post_visible(post, viewer, set())


def test_private_only_for_poster():
    post = _post("p", 0, visibility="private", poster={"id": "user_1", "email": "me@x.com"})
    assert is_post_visible(post, StudentViewer("me@x.com"), set())
    assert is_post_visible(post, StudentViewer("other@x.com", aliases=frozenset({"user_1"})), set())
    assert not is_post_visible(post, StudentViewer("other@x.com"), set())
    assert not is_post_visible(post, AdminViewer("admin@x.com"), set())


def test_class_post_matches_by_id_or_name(portal, make_class):
    school_class = make_class("Physics", teacher_id="t@x.com")
    refs = class_refs([school_class])
    viewer = TeacherViewer("t@x.com")
    assert is_post_visible(_post("a", 0, visibility="class", target_class=school_class.id), viewer, refs)
    assert is_post_visible(_post("b", 0, visibility="class", target_class="Physics"), viewer, refs)
    assert not is_post_visible(_post("c", 0, visibility="class", target_class="Chemistry"), viewer, refs)


def test_published_class_posts_reach_unenrolled_students(portal, make_class):
    school_class = make_class("Published", teacher_id="t@x.com")
    posts = [_post("p", 0, visibility="class", target_class=school_class.id)]
    viewer = StudentViewer("stranger@x.com")
    assert [p.id for p in visible_posts_for(viewer, posts, portal.enrollment.visible_classes_for(viewer))] == ["p"]


def test_ordering_pinned_first_then_newest():
    posts = [
        _post("old", 1),
        _post("pinned-old", 0, is_pinned=True),
        _post("new", 5),
        _post("pinned-new", 3, is_pinned=True),
    ]
    assert [p.id for p in sort_posts(posts)] == ["pinned-new", "pinned-old", "new", "old"]


def test_ordering_is_stable_for_equal_keys():
    posts = [_post("a", 2), _post("b", 2), _post("c", 2)]
    assert [p.id for p in sort_posts(posts)] == ["a", "b", "c"]


def test_feed_for_reads_stores(seeded_portal):
    admin = AdminViewer("admin@school.edu", aliases=frozenset({"user_admin"}))
    assert [p.id for p in feed_for(admin, seeded_portal.posts, seeded_portal.enrollment)][0] == "p1"


def test_visible_assignments_follow_class_visibility(seeded_portal):
    teacher2 = TeacherViewer("teacher2@school.edu")
    ids = {a.id for a in visible_assignments_for(teacher2, seeded_portal.assignments, seeded_portal.enrollment)}
    assert ids == {"1003"}
    admin = AdminViewer("admin@school.edu")
    assert len(visible_assignments_for(admin, seeded_portal.assignments, seeded_portal.enrollment)) == 3


def test_class_post_scenario(portal, make_class):
    c1 = make_class("C1", id="c1", student_list=["in@x.com"])
    make_class("C2", id="c2", student_list=["out@x.com"])
    portal.posts.create(
        {"title": "Quiz", "visibility": "class", "target_class": c1.id, "poster": {"id": "t@x.com", "role": "teacher"}}
    )
    enrolled = feed_for(StudentViewer("in@x.com"), portal.posts, portal.enrollment)
    other = feed_for(StudentViewer("out@x.com"), portal.posts, portal.enrollment)
    assert [p.title for p in enrolled] == ["Quiz"]
    assert other == []
