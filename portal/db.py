"""Storage backend selection and wiring of stores and services."""
from __future__ import annotations

from dataclasses import dataclass
import logging
from typing import Optional

from pymongo import MongoClient

from portal.config import Settings, settings as default_settings
from portal.seed import demo_assignments, demo_classes, demo_posts, demo_users
from portal.services.auth import AuthenticationService, RegistrationService
from portal.services.enrollment import EnrollmentService
from portal.services.sessions import SessionManager
from portal.storage import (
    FileKeyValueStore,
    KeyValueStore,
    MemoryKeyValueStore,
    MongoKeyValueStore,
    PersistenceAdapter,
)
from portal.stores import AssignmentsStore, ClassesStore, PostsStore, UsersStore

logger = logging.getLogger(__name__)


@dataclass
class Portal:
    settings: Settings
    adapter: PersistenceAdapter
    users: UsersStore
    classes: ClassesStore
    posts: PostsStore
    assignments: AssignmentsStore
    enrollment: EnrollmentService
    auth: AuthenticationService
    registration: RegistrationService
    sessions: SessionManager


_portal: Optional[Portal] = None
_mongo_client: Optional[MongoClient] = None


def build_kv_store(config: Settings) -> KeyValueStore:
    global _mongo_client
    if config.storage_backend == "memory":
        return MemoryKeyValueStore()
    if config.storage_backend == "mongo":
        _mongo_client = MongoClient(config.mongodb_url)
        collection = _mongo_client[config.mongodb_db_name][config.mongodb_collection]
        return MongoKeyValueStore(collection)
    return FileKeyValueStore(config.storage_dir)


def build_portal(config: Settings, kv: Optional[KeyValueStore] = None) -> Portal:
    adapter = PersistenceAdapter(kv if kv is not None else build_kv_store(config), prefix=config.storage_prefix)
    seed = config.seed_demo_data
    users = UsersStore(adapter, seed=demo_users if seed else None)
    classes = ClassesStore(adapter, seed=demo_classes if seed else None)
    posts = PostsStore(adapter, seed=demo_posts if seed else None)
    assignments = AssignmentsStore(adapter, seed=demo_assignments if seed else None)
    logger.info(
        f"Loaded {len(users)} users, {len(classes)} classes, {len(posts)} posts, "
        f"{len(assignments)} assignments ({config.storage_backend} storage)"
    )
    return Portal(
        settings=config,
        adapter=adapter,
        users=users,
        classes=classes,
        posts=posts,
        assignments=assignments,
        enrollment=EnrollmentService(classes, users),
        auth=AuthenticationService(
            users,
            max_attempts=config.max_login_attempts,
            lockout_minutes=config.lockout_minutes,
        ),
        registration=RegistrationService(users),
        sessions=SessionManager(adapter, users, timeout_minutes=config.session_timeout_minutes),
    )


def db_startup(config: Optional[Settings] = None) -> Portal:
    """Load every collection and build the services."""
    global _portal
    _portal = build_portal(config or default_settings)
    return _portal


def db_shutdown() -> None:
    global _portal, _mongo_client
    if _mongo_client:
        _mongo_client.close()
        _mongo_client = None
    _portal = None


def get_portal() -> Portal:
    if _portal is None:
        return db_startup()
    return _portal
