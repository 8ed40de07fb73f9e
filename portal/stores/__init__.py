"""Entity stores: one owned collection each."""
from portal.stores.base import EntityStore
from portal.stores.users import UsersStore
from portal.stores.classes import ClassesStore
from portal.stores.posts import PostsStore
from portal.stores.assignments import AssignmentsStore

__all__ = ["EntityStore", "UsersStore", "ClassesStore", "PostsStore", "AssignmentsStore"]
