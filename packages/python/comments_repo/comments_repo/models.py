"""Pydantic models describing comments, their replies, votes and flags."""

from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum
from typing import Any, List, Mapping, Optional, Union
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, Field, PrivateAttr, computed_field, field_validator, model_validator

from db_core import MutableMongoDocument

from .citizens import citizen_id, full_name


class VoteValue(str, Enum):
    """Polarity of a citizen's vote on a comment."""

    POSITIVE = "positive"
    NEGATIVE = "negative"


class FlagReason(str, Enum):
    """Reasons a citizen can report a comment for."""

    SPAM = "spam"


def _now() -> datetime:
    return datetime.now(timezone.utc)


def _new_id() -> str:
    return uuid4().hex


class AuthorSummary(BaseModel):
    """Public fields of a citizen, resolved when a comment's author is populated."""

    id: str
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    full_name: str = ""
    avatar: Optional[str] = None

    @classmethod
    def from_document(cls, doc: Mapping[str, Any]) -> "AuthorSummary":
        return cls(
            id=str(doc.get("_id") or doc["id"]),
            first_name=doc.get("first_name"),
            last_name=doc.get("last_name"),
            full_name=full_name(doc.get("first_name"), doc.get("last_name")),
            avatar=doc.get("avatar"),
        )


class _StoredModel(BaseModel):
    """Remembers the raw ``_id``/``author`` a document was read with.

    Legacy documents key comments and citizens by ObjectId; the models expose
    them as strings and put the original values back when writing.
    """

    _stored_id: Any = PrivateAttr(default=None)
    _stored_author: Any = PrivateAttr(default=None)

    @model_validator(mode="wrap")
    @classmethod
    def _remember_stored_keys(cls, data: Any, handler: Any) -> Any:
        model = handler(data)
        if isinstance(data, Mapping):
            model._stored_id = data.get("_id")
            model._stored_author = data.get("author")
        return model

    def _restore_keys(self, data: MutableMongoDocument) -> MutableMongoDocument:
        stored_id = self._stored_id
        if stored_id is not None and "_id" in data and str(stored_id) == data["_id"]:
            data["_id"] = stored_id
        stored_author = self._stored_author
        if isinstance(stored_author, (str, Mapping)) or stored_author is None:
            return data
        if str(stored_author) == data.get("author"):
            data["author"] = stored_author
        return data


class Vote(_StoredModel):
    model_config = ConfigDict(use_enum_values=True)

    author: str
    value: VoteValue
    created_at: datetime = Field(default_factory=_now)

    @field_validator("author", mode="before")
    @classmethod
    def _author_id(cls, value: Any) -> str:
        return citizen_id(value)


class Flag(_StoredModel):
    model_config = ConfigDict(use_enum_values=True)

    author: str
    value: FlagReason = FlagReason.SPAM
    created_at: datetime = Field(default_factory=_now)

    @field_validator("author", mode="before")
    @classmethod
    def _author_id(cls, value: Any) -> str:
        return citizen_id(value)


class Reply(_StoredModel):
    """A reply embedded in its parent comment; it has no lifecycle of its own."""

    model_config = ConfigDict(populate_by_name=True)

    id: str = Field(default_factory=_new_id, alias="_id")
    text: str
    author: str
    created_at: datetime = Field(default_factory=_now)

    @field_validator("id", mode="before")
    @classmethod
    def _stringify_id(cls, value: Any) -> Any:
        return str(value) if value is not None else value

    @field_validator("author", mode="before")
    @classmethod
    def _author_id(cls, value: Any) -> str:
        return citizen_id(value)


# Derived from votes/flags; never written back to the store.
_COMPUTED_FIELDS = {"upvotes", "downvotes", "score", "flags_count", "flagged"}


class Comment(_StoredModel):
    """
    A comment on a subject identified by ``context``/``reference``.

    ``author`` holds the citizen id as stored, or an ``AuthorSummary`` once
    the repository has populated it.
    """

    model_config = ConfigDict(populate_by_name=True)

    id: str = Field(default_factory=_new_id, alias="_id")
    text: str
    author: Union[AuthorSummary, str]
    context: str
    reference: str
    created_at: datetime = Field(default_factory=_now)
    replies: List[Reply] = Field(default_factory=list)
    votes: List[Vote] = Field(default_factory=list)
    flags: List[Flag] = Field(default_factory=list)

    @field_validator("id", mode="before")
    @classmethod
    def _stringify_id(cls, value: Any) -> Any:
        return str(value) if value is not None else value

    @field_validator("author", mode="before")
    @classmethod
    def _normalise_author(cls, value: Any) -> Any:
        if isinstance(value, (AuthorSummary, Mapping)):
            return value
        return citizen_id(value)

    @computed_field
    @property
    def upvotes(self) -> int:
        return sum(1 for vote in self.votes if vote.value == VoteValue.POSITIVE)

    @computed_field
    @property
    def downvotes(self) -> int:
        return sum(1 for vote in self.votes if vote.value == VoteValue.NEGATIVE)

    @computed_field
    @property
    def score(self) -> int:
        return self.upvotes - self.downvotes

    @computed_field
    @property
    def flags_count(self) -> int:
        return len(self.flags)

    @computed_field
    @property
    def flagged(self) -> bool:
        return bool(self.flags)

    @property
    def author_id(self) -> str:
        return citizen_id(self.author)

    def vote_of(self, citizen: Any) -> Optional[Vote]:
        author = citizen_id(citizen)
        return next((vote for vote in self.votes if vote.author == author), None)

    def flagged_by(self, citizen: Any) -> bool:
        author = citizen_id(citizen)
        return any(flag.author == author for flag in self.flags)

    def vote(self, citizen: Any, value: Union[VoteValue, str]) -> Vote:
        """Register ``citizen``'s vote, replacing any vote they cast before."""

        author = citizen_id(citizen)
        vote = Vote(author=author, value=VoteValue(value))
        self.votes = [existing for existing in self.votes if existing.author != author]
        self.votes.append(vote)
        return vote

    def flag(self, citizen: Any, reason: Union[FlagReason, str] = FlagReason.SPAM) -> Flag:
        """Mark the comment as reported by ``citizen``; one flag per citizen."""

        author = citizen_id(citizen)
        flag = Flag(author=author, value=FlagReason(reason))
        self.flags = [existing for existing in self.flags if existing.author != author]
        self.flags.append(flag)
        return flag

    def unflag(self, citizen: Any) -> bool:
        """Clear ``citizen``'s flag. Returns False if they had not flagged it."""

        author = citizen_id(citizen)
        remaining = [existing for existing in self.flags if existing.author != author]
        removed = len(remaining) != len(self.flags)
        self.flags = remaining
        return removed

    def add_reply(self, reply: "ReplyCreate") -> Reply:
        doc = Reply(text=reply.text, author=reply.author)
        self.replies.append(doc)
        return doc

    def to_document(self) -> MutableMongoDocument:
        """Serialise for storage: author as a plain id, no computed tallies.

        Ids and authors read as ObjectIds are written back as ObjectIds.
        """

        data = self.model_dump(by_alias=True, exclude=_COMPUTED_FIELDS)
        data["author"] = self.author_id
        self._restore_keys(data)
        for key in ("replies", "votes", "flags"):
            for model, item in zip(getattr(self, key), data[key]):
                model._restore_keys(item)
        return data


class CommentCreate(BaseModel):
    """Payload for creating a comment on a subject."""

    model_config = ConfigDict(str_strip_whitespace=True)

    text: str = Field(min_length=1)
    author: str = Field(min_length=1)
    context: str = Field(min_length=1)
    reference: str = Field(min_length=1)

    @field_validator("author", mode="before")
    @classmethod
    def _author_id(cls, value: Any) -> str:
        return citizen_id(value)


class CommentQuery(BaseModel):
    """Subject selector used to list the comments on it."""

    context: str
    reference: str


class ReplyCreate(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    text: str = Field(min_length=1)
    author: str = Field(min_length=1)

    @field_validator("author", mode="before")
    @classmethod
    def _author_id(cls, value: Any) -> str:
        return citizen_id(value)
