"""Posts feed: per-viewer visibility, reactions, pinning and comments."""
from fastapi import APIRouter, Query

from portal.api.deps import CurrentUser, CurrentViewer, PortalDep
from portal.errors import PermissionDenied
from portal.models.post import CommentCreate, Post, PostCreate, PostUpdate
from portal.rbac import can_modify_post, viewer_for
from portal.services.flows import post_creation_flow
from portal.services.visibility import feed_for
from portal.services.workflow import run_flow

router = APIRouter()


def _owned_post(portal, user, post_id: str) -> Post:
    post = portal.posts.get(post_id)
    if not can_modify_post(viewer_for(user), post):
        raise PermissionDenied("Only the poster or an admin can change this post")
    return post


def _visible_post(portal, viewer, post_id: str) -> Post:
    for post in feed_for(viewer, portal.posts, portal.enrollment):
        if post.id == post_id:
            return post
    raise PermissionDenied("Not authorized for this post")


@router.get("/")
async def list_feed(
    viewer: CurrentViewer,
    portal: PortalDep,
    limit: int = Query(default=50, ge=1, le=100),
    offset: int = Query(default=0, ge=0),
):
    posts = feed_for(viewer, portal.posts, portal.enrollment)
    page = posts[offset : offset + limit]
    return {
        "items": [p.model_dump(mode="json") for p in page],
        "limit": limit,
        "offset": offset,
        "total": len(posts),
    }


@router.get("/mine")
async def my_posts(user: CurrentUser, portal: PortalDep):
    return [p.model_dump(mode="json") for p in portal.posts.posts_by(user.email)]


@router.post("/", status_code=201)
async def create_post(data: PostCreate, user: CurrentUser, portal: PortalDep):
    post = run_flow(post_creation_flow(portal.posts, user), data.model_dump(mode="json"))
    return post.model_dump(mode="json")


@router.patch("/{post_id}")
async def update_post(post_id: str, data: PostUpdate, user: CurrentUser, portal: PortalDep):
    _owned_post(portal, user, post_id)
    return portal.posts.update(post_id, data.model_dump(mode="json", exclude_unset=True)).model_dump(mode="json")


@router.delete("/{post_id}", status_code=204)
async def delete_post(post_id: str, user: CurrentUser, portal: PortalDep):
    _owned_post(portal, user, post_id)
    portal.posts.remove(post_id)
    return None


@router.post("/{post_id}/like")
async def toggle_like(post_id: str, user: CurrentUser, viewer: CurrentViewer, portal: PortalDep):
    _visible_post(portal, viewer, post_id)
    return portal.posts.toggle_like(post_id, user.email).model_dump(mode="json")


@router.post("/{post_id}/favorite")
async def toggle_favorite(post_id: str, user: CurrentUser, viewer: CurrentViewer, portal: PortalDep):
    _visible_post(portal, viewer, post_id)
    return portal.posts.toggle_favorite(post_id, user.email).model_dump(mode="json")


@router.post("/{post_id}/pin")
async def toggle_pin(post_id: str, user: CurrentUser, portal: PortalDep):
    _owned_post(portal, user, post_id)
    return portal.posts.toggle_pin(post_id).model_dump(mode="json")


@router.post("/{post_id}/comments", status_code=201)
async def add_comment(post_id: str, data: CommentCreate, user: CurrentUser, viewer: CurrentViewer, portal: PortalDep):
    _visible_post(portal, viewer, post_id)
    return portal.posts.add_comment(post_id, data.text, user.email).model_dump(mode="json")
