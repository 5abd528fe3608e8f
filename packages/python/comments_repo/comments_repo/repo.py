"""Async persistence layer for comments on deliberation subjects."""

from __future__ import annotations

from contextlib import contextmanager
from typing import Any, Iterable, Iterator, List, Mapping, Optional, Union

from loguru import logger
from motor.motor_asyncio import AsyncIOMotorDatabase
from pymongo import ASCENDING, DESCENDING
from pymongo.errors import PyMongoError

from db_core import MongoDocument, get_db, id_selector, ids_selector

from .citizens import citizen_id
from .errors import CommentNotFoundError
from .models import (
    AuthorSummary,
    Comment,
    CommentCreate,
    CommentQuery,
    FlagReason,
    Reply,
    ReplyCreate,
    VoteValue,
)

COMMENTS_COLLECTION = "comments"
CITIZENS_COLLECTION = "citizens"

# Citizen fields copied into AuthorSummary when populating authors.
AUTHOR_PROJECTION = {"first_name": 1, "last_name": 1, "avatar": 1}

SUBJECT_INDEX_NAME = "context_reference_created_at"


def _map_by_property(source: Iterable[MongoDocument], prop: str) -> List[Any]:
    """Project ``prop`` out of every mapping in ``source``."""
    return [item[prop] for item in source]


@contextmanager
def _store_errors(action: str, **fields: Any) -> Iterator[None]:
    try:
        yield
    except PyMongoError as exc:
        logger.warning("Found error while {action} {fields}: {error}", action=action, fields=fields, error=exc)
        raise


class CommentsRepository:
    """
    Reads and writes the comments collection.

    Every mutation loads the whole comment, changes it in memory and replaces
    the stored document. There is no locking: two callers mutating the same
    comment concurrently can lose one of the updates.
    """

    def __init__(
        self,
        db: Optional[AsyncIOMotorDatabase] = None,
        comments_collection: str = COMMENTS_COLLECTION,
        citizens_collection: str = CITIZENS_COLLECTION,
    ):
        db = db if db is not None else get_db()
        self.comments = db[comments_collection]
        self.citizens = db[citizens_collection]

    # ---------------------------------------------------------
    # READ
    # ---------------------------------------------------------
    async def list_all(self) -> List[Comment]:
        """Return every stored comment with authors left as citizen ids."""

        logger.debug("Looking for all comments")
        with _store_errors("listing comments"):
            docs = [doc async for doc in self.comments.find({})]

        logger.debug("Delivering comments {ids}", ids=_map_by_property(docs, "_id"))
        return [Comment.model_validate(doc) for doc in docs]

    async def get_for(self, query: Union[CommentQuery, Mapping[str, Any]]) -> List[Comment]:
        """Return the comments on a subject, newest first, with authors populated."""

        selector = query if isinstance(query, CommentQuery) else CommentQuery.model_validate(query)
        logger.debug(
            "Looking for comments for {context} {reference}",
            context=selector.context,
            reference=selector.reference,
        )

        with _store_errors("listing comments", context=selector.context, reference=selector.reference):
            cursor = self.comments.find(selector.model_dump()).sort("created_at", DESCENDING)
            comments = [Comment.model_validate(doc) async for doc in cursor]
            await self._populate_authors(comments)

        logger.debug("Delivering {count} comments", count=len(comments))
        return comments

    # ---------------------------------------------------------
    # CREATE
    # ---------------------------------------------------------
    async def create(self, comment: Union[CommentCreate, Mapping[str, Any]]) -> Comment:
        """
        Persist a new comment and return it with its author populated.

        Raises:
            pydantic.ValidationError: if a required field is missing or empty.
        """

        payload = comment if isinstance(comment, CommentCreate) else CommentCreate.model_validate(comment)
        logger.info(
            "Creating new comment {text!r} for {context} {reference}",
            text=payload.text,
            context=payload.context,
            reference=payload.reference,
        )

        model = Comment(
            text=payload.text,
            author=payload.author,
            context=payload.context,
            reference=payload.reference,
        )
        with _store_errors("creating comment", context=payload.context, reference=payload.reference):
            await self.comments.insert_one(model.to_document())
            await self._populate_authors([model])

        logger.debug("Delivering comment {comment_id}", comment_id=model.id)
        return model

    async def reply(self, comment_id: str, reply: Union[ReplyCreate, Mapping[str, Any]]) -> Reply:
        """
        Append a reply to a comment and return the new reply.

        A failure to persist the parent is raised; the reply is only returned
        once it is stored.
        """

        payload = reply if isinstance(reply, ReplyCreate) else ReplyCreate.model_validate(reply)
        logger.debug("Looking for comment {comment_id} to reply", comment_id=comment_id)
        comment = await self._fetch(comment_id)

        doc = comment.add_reply(payload)
        logger.info("Creating reply {reply_id} for comment {comment_id}", reply_id=doc.id, comment_id=comment.id)
        await self._save(comment)

        logger.debug("Delivering reply {reply_id}", reply_id=doc.id)
        return doc

    # ---------------------------------------------------------
    # VOTES & FLAGS
    # ---------------------------------------------------------
    async def upvote(self, comment_id: str, citizen: Any) -> Comment:
        return await self._vote(comment_id, citizen, VoteValue.POSITIVE)

    async def downvote(self, comment_id: str, citizen: Any) -> Comment:
        return await self._vote(comment_id, citizen, VoteValue.NEGATIVE)

    async def flag(self, comment_id: str, citizen: Any) -> Comment:
        """Report the comment as spam on behalf of ``citizen``."""

        author = citizen_id(citizen)
        comment = await self._fetch(comment_id)

        logger.info("Flagging comment {comment_id} by {citizen}", comment_id=comment.id, citizen=author)
        comment.flag(author, FlagReason.SPAM)
        await self._save(comment)

        logger.debug("Delivering comment {comment_id}", comment_id=comment.id)
        return comment

    async def unflag(self, comment_id: str, citizen: Any) -> Comment:
        author = citizen_id(citizen)
        comment = await self._fetch(comment_id)

        logger.info("Unflagging comment {comment_id} by {citizen}", comment_id=comment.id, citizen=author)
        if not comment.unflag(author):
            logger.debug("Citizen {citizen} had not flagged comment {comment_id}", citizen=author, comment_id=comment.id)
        await self._save(comment)

        logger.debug("Delivering comment {comment_id}", comment_id=comment.id)
        return comment

    # ---------------------------------------------------------
    # MAINTENANCE
    # ---------------------------------------------------------
    async def ensure_indexes(self) -> str:
        """Create the index backing ``get_for`` lookups and ordering."""

        with _store_errors("creating indexes"):
            return await self.comments.create_index(
                [("context", ASCENDING), ("reference", ASCENDING), ("created_at", DESCENDING)],
                name=SUBJECT_INDEX_NAME,
            )

    # ---------------------------------------------------------
    # helpers
    # ---------------------------------------------------------
    async def _vote(self, comment_id: str, citizen: Any, value: VoteValue) -> Comment:
        author = citizen_id(citizen)
        comment = await self._fetch(comment_id)

        logger.info(
            "Voting {value} on comment {comment_id} by {citizen}",
            value=value.value,
            comment_id=comment.id,
            citizen=author,
        )
        comment.vote(author, value)
        await self._save(comment)

        logger.debug("Delivering comment {comment_id}", comment_id=comment.id)
        return comment

    async def _fetch(self, comment_id: str) -> Comment:
        with _store_errors("looking up comment", comment_id=comment_id):
            doc = await self.comments.find_one({"_id": id_selector(comment_id)})
        if doc is None:
            logger.warning("Comment {comment_id} not found", comment_id=comment_id)
            raise CommentNotFoundError(comment_id)
        return Comment.model_validate(doc)

    async def _save(self, comment: Comment) -> None:
        document = comment.to_document()
        with _store_errors("saving comment", comment_id=comment.id):
            result = await self.comments.replace_one({"_id": document["_id"]}, document)
        if result.matched_count == 0:
            # Removed between the lookup and the write.
            logger.warning("Comment {comment_id} vanished before save", comment_id=comment.id)
            raise CommentNotFoundError(comment.id)

    async def _populate_authors(self, comments: List[Comment]) -> None:
        """Replace citizen ids in ``author`` with their public summary, in place."""

        author_ids = sorted({comment.author_id for comment in comments if isinstance(comment.author, str)})
        if not author_ids:
            return

        cursor = self.citizens.find({"_id": ids_selector(author_ids)}, AUTHOR_PROJECTION)
        summaries = {}
        for doc in [doc async for doc in cursor]:
            summary = AuthorSummary.from_document(doc)
            summaries[summary.id] = summary

        for comment in comments:
            summary = summaries.get(comment.author_id)
            if summary is not None:
                comment.author = summary
