"""Domain-level errors for the comments repository."""

from pymongo.errors import PyMongoError

# Store failures are re-raised unchanged; this name is what callers catch.
StoreError = PyMongoError


class CommentsError(Exception):
    """Base class for comments repository errors."""


class CommentNotFoundError(CommentsError):
    """Raised when a comment cannot be located by id."""

    def __init__(self, comment_id: str):
        self.comment_id = comment_id
        super().__init__(f"Comment {comment_id} not found")


class InvalidCitizenError(CommentsError, ValueError):
    """Raised when a citizen reference carries no usable id."""
