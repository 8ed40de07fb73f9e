import pytest

from portal.config import Settings
from portal.db import build_portal
from portal.models.user import UserRole
from portal.storage import MemoryKeyValueStore, PersistenceAdapter

PASSWORD = "secret123"


@pytest.fixture
def kv():
    return MemoryKeyValueStore()


@pytest.fixture
def adapter(kv):
    return PersistenceAdapter(kv)


@pytest.fixture
def settings():
    return Settings(storage_backend="memory", seed_demo_data=False)


@pytest.fixture
def portal(settings, kv):
    return build_portal(settings, kv=kv)


@pytest.fixture
def seeded_portal(kv):
    return build_portal(Settings(storage_backend="memory", seed_demo_data=True), kv=kv)


@pytest.fixture
def make_user(portal):
    def _make(email, role=UserRole.STUDENT, name=None, **extra):
        return portal.users.create(
            {
                "email": email,
                "name": name or email.split("@")[0].title(),
                "role": role,
                "password": PASSWORD,
                "school_name": "Test School",
                **extra,
            }
        )

    return _make


@pytest.fixture
def make_class(portal):
    def _make(class_name="Algebra", **extra):
        return portal.classes.create({"class_name": class_name, "subject": "Math", "section": "A", **extra})

    return _make
