"""Comments repository: CRUD, replies, votes and flags on deliberation comments."""

from .citizens import citizen_id
from .errors import CommentNotFoundError, CommentsError, InvalidCitizenError, StoreError
from .models import (
    AuthorSummary,
    Comment,
    CommentCreate,
    CommentQuery,
    Flag,
    FlagReason,
    Reply,
    ReplyCreate,
    Vote,
    VoteValue,
)
from .repo import CommentsRepository

__all__ = [
    "AuthorSummary",
    "Comment",
    "CommentCreate",
    "CommentQuery",
    "CommentNotFoundError",
    "CommentsError",
    "CommentsRepository",
    "Flag",
    "FlagReason",
    "InvalidCitizenError",
    "Reply",
    "ReplyCreate",
    "StoreError",
    "Vote",
    "VoteValue",
    "citizen_id",
]
