import uuid
from typing import List, Literal, Optional

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from soundscore.core.rate_limit import rate_limit
from soundscore.core.security import csrf_protect, get_current_user, get_current_user_optional
from soundscore.models.user import User
from soundscore.schemas.comment import (
    CommentCreate,
    CommentResponse,
    CommentUpdate,
    ReactionCreate,
    ReactionSummary,
    UserCommentResponse,
)
from soundscore.schemas.report import ReportCreate, ReportResponse
from soundscore.services.comment_service import CommentService
from soundscore.services.database import get_db
from soundscore.services.report_service import ReportService
from soundscore.services.user_service import UserService

router = APIRouter(dependencies=[Depends(csrf_protect)])


@router.get("/comments/releases/{release_id}", response_model=List[CommentResponse])
async def list_release_comments(
    release_id: int,
    sort_by: Literal["date", "rating", "likes"] = "date",
    db: AsyncSession = Depends(get_db),
    current_user: Optional[User] = Depends(get_current_user_optional)
):
    return await CommentService(db).list_for_release(release_id, sort_by=sort_by, viewer=current_user)

@router.post(
    "/comments/releases/{release_id}",
    response_model=CommentResponse,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(rate_limit("comments"))]
)
async def create_comment(
    release_id: int,
    comment_data: CommentCreate,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    return await CommentService(db).create_comment(current_user, release_id, comment_data)

@router.get("/comments/users/{user_id}", response_model=List[UserCommentResponse])
async def comments_by_user(
    user_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
    current_user: Optional[User] = Depends(get_current_user_optional)
):
    return await UserService(db).get_user_comments(user_id, viewer=current_user)

@router.put("/comments/{comment_id}", response_model=CommentResponse)
async def update_comment(
    comment_id: int,
    comment_data: CommentUpdate,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    return await CommentService(db).update_comment(comment_id, current_user, comment_data)

@router.delete("/comments/{comment_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_comment(comment_id: int, db: AsyncSession = Depends(get_db), current_user: User = Depends(get_current_user)):
    await CommentService(db).delete_comment(comment_id, current_user)

@router.post("/comments/{comment_id}/react", response_model=ReactionSummary)
async def react_to_comment(
    comment_id: int,
    reaction: ReactionCreate,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    return await CommentService(db).react(comment_id, current_user, reaction.reaction_type)

@router.delete("/comments/{comment_id}/react", response_model=ReactionSummary)
async def remove_reaction(comment_id: int, db: AsyncSession = Depends(get_db), current_user: User = Depends(get_current_user)):
    return await CommentService(db).remove_reaction(comment_id, current_user)

@router.post(
    "/comments/{comment_id}/report",
    response_model=ReportResponse,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(rate_limit("reports"))]
)
async def report_comment(
    comment_id: int,
    report_data: ReportCreate,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    return await ReportService(db).create_report(comment_id, current_user, report_data.reason)
