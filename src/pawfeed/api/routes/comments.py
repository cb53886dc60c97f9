"""Post comment API: reply forest and comment actions."""

from fastapi import APIRouter, Depends, status

from pawfeed.comments.service import CommentService
from pawfeed.comments.thread_builder import count_nodes
from pawfeed.dependencies import get_comment_service
from pawfeed.models.comment import CommentCreate, CommentDocument, CommentUpdate

router = APIRouter(tags=["Comments"])


def _comment_out(comment: CommentDocument) -> dict:
    return comment.model_dump(mode="json")


@router.get("/posts/{post_id}/comments")
async def get_comment_forest(
    post_id: str,
    service: CommentService = Depends(get_comment_service),
) -> dict:
    """Return the reply forest for a post, oldest top-level comment first."""
    forest = await service.load_forest(post_id)
    return {
        "post_id": post_id,
        "total": count_nodes(forest),
        "comments": [node.to_dict(service.principal_id) for node in forest],
    }


@router.post("/posts/{post_id}/comments", status_code=status.HTTP_201_CREATED)
async def add_comment(
    post_id: str,
    body: CommentCreate,
    service: CommentService = Depends(get_comment_service),
) -> dict:
    comment = await service.add_comment(post_id, body.text, body.parent_id)
    return _comment_out(comment)


@router.patch("/comments/{comment_id}")
async def edit_comment(
    comment_id: str,
    body: CommentUpdate,
    service: CommentService = Depends(get_comment_service),
) -> dict:
    comment = await service.edit_comment(comment_id, body.text)
    return _comment_out(comment)


@router.delete("/comments/{comment_id}")
async def delete_comment(
    comment_id: str,
    service: CommentService = Depends(get_comment_service),
) -> dict:
    await service.delete_comment(comment_id)
    return {"id": comment_id, "deleted": True}


@router.post("/comments/{comment_id}/like")
async def toggle_like(
    comment_id: str,
    service: CommentService = Depends(get_comment_service),
) -> dict:
    liked = await service.toggle_comment_like(comment_id)
    comment = await service.get_comment(comment_id)
    return {"id": comment_id, "liked": liked, "like_count": len(set(comment.liked_by))}
