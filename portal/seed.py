"""Demonstration dataset used when a collection is absent or unreadable."""
from datetime import date, datetime, timezone

from portal.models.assignment import Assignment
from portal.models.post import Comment, Post, Poster, Visibility
from portal.models.school_class import SchoolClass
from portal.models.user import User, UserRole

DEMO_PASSWORD = "password123"
DEMO_SCHOOL = "Springfield High"


def _user(email: str, name: str, role: UserRole, **extra) -> User:
    return User(
        id=f"user_{email.split('@')[0]}",
        email=email,
        name=name,
        role=role,
        password=DEMO_PASSWORD,
        school_name=DEMO_SCHOOL,
        **extra,
    )


def demo_users() -> list[User]:
    return [
        _user("admin@school.edu", "School Admin", UserRole.ADMIN),
        _user("teacher1@school.edu", "Grace Hopper", UserRole.TEACHER),
        _user("teacher2@school.edu", "Howard Zinn", UserRole.TEACHER),
        _user("student@example.com", "Sam Student", UserRole.STUDENT, dob="2008-04-12"),
        _user("alice@school.edu", "Alice Adams", UserRole.STUDENT),
        _user("bob@school.edu", "Bob Brown", UserRole.STUDENT),
        _user("charlie@school.edu", "Charlie Chen", UserRole.STUDENT),
        _user("diana@school.edu", "Diana Diaz", UserRole.STUDENT),
        _user("eve@school.edu", "Eve Evans", UserRole.STUDENT),
    ]


def demo_classes() -> list[SchoolClass]:
    return [
        SchoolClass(
            id="c201",
            class_name="Advanced React Development",
            subject="Computer Science",
            section="A",
            schedule="Mon/Wed/Fri 9:00 AM",
            teacher_id="teacher1@school.edu",
            student_list=["student@example.com", "alice@school.edu", "bob@school.edu"],
        ),
        SchoolClass(
            id="c202",
            class_name="World History",
            subject="History",
            section="B",
            schedule="Tue/Thu 1:00 PM",
            teacher_id="teacher2@school.edu",
            student_list=["student@example.com", "charlie@school.edu"],
        ),
        SchoolClass(
            id="c203",
            class_name="Introduction to Python",
            subject="Programming",
            section="C",
            schedule="Mon/Wed 3:00 PM",
            teacher_id="teacher1@school.edu",
            student_list=["diana@school.edu", "eve@school.edu"],
        ),
    ]


def demo_posts() -> list[Post]:
    def poster(email: str, name: str, role: UserRole) -> Poster:
        return Poster(id=email, email=email, name=name, role=role.value)

    return [
        Post(
            id="p1",
            title="Welcome back!",
            description="The new term starts Monday. Check your class schedules.",
            timestamp=datetime(2026, 1, 5, 8, 0, tzinfo=timezone.utc),
            poster=poster("admin@school.edu", "School Admin", UserRole.ADMIN),
            visibility=Visibility.PUBLIC,
            is_pinned=True,
        ),
        Post(
            id="p2",
            title="React project kickoff",
            description="Bring your laptops on Wednesday.",
            timestamp=datetime(2026, 1, 6, 9, 30, tzinfo=timezone.utc),
            poster=poster("teacher1@school.edu", "Grace Hopper", UserRole.TEACHER),
            visibility=Visibility.CLASS,
            target_class="c201",
        ),
        Post(
            id="p3",
            title="Study group",
            description="Anyone up for a history study group on Friday?",
            timestamp=datetime(2026, 1, 7, 16, 15, tzinfo=timezone.utc),
            poster=poster("student@example.com", "Sam Student", UserRole.STUDENT),
            visibility=Visibility.STUDENTS,
            liked_by=["alice@school.edu"],
            comments=[
                Comment(
                    text="Count me in!",
                    author="charlie@school.edu",
                    timestamp=datetime(2026, 1, 7, 17, 0, tzinfo=timezone.utc),
                )
            ],
        ),
    ]


def demo_assignments() -> list[Assignment]:
    return [
        Assignment(
            id="1001",
            class_id="c201",
            title="Build a React Counter Component",
            description="Create a functional component that increments and decrements a counter.",
            due_date=date(2026, 1, 15),
            points=100,
            created_by="teacher1@school.edu",
        ),
        Assignment(
            id="1002",
            class_id="c201",
            title="React Hooks Deep Dive",
            description="Explain useState, useEffect and useContext with code examples.",
            due_date=date(2026, 1, 20),
            points=50,
            created_by="teacher1@school.edu",
        ),
        Assignment(
            id="1003",
            class_id="c202",
            title="Essay: Industrial Revolution Impact",
            description="1500 words on the social, economic and political impacts.",
            due_date=date(2026, 1, 18),
            points=100,
            created_by="teacher2@school.edu",
        ),
    ]
