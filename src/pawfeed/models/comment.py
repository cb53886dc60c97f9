"""Pydantic models for post comments."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field, field_validator

from pawfeed.services.clock import EPOCH, parse_timestamp


class CommentDocument(BaseModel):
    """A flat comment or reply as stored in ``post_comments``."""

    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    id: str
    post_id: str | None = Field(None, alias="postId")
    parent_id: str | None = Field(None, alias="parentCommentId")
    author_id: str = Field("", alias="userId")
    author_name: str | None = Field(None, alias="userName")
    text: str = ""
    timestamp: datetime = Field(EPOCH, alias="createdAt")
    updated_at: datetime | None = Field(None, alias="updatedAt")
    liked_by: list[str] = Field(default_factory=list, alias="likes")
    mentioned_users: list[str] = Field(default_factory=list, alias="mentionedUsers")

    @field_validator("id", "post_id", "author_name", mode="before")
    @classmethod
    def _coerce_optional_str(cls, value):
        if value is None:
            return None
        return str(value)

    @field_validator("author_id", "text", mode="before")
    @classmethod
    def _null_is_empty(cls, value):
        if value is None:
            return ""
        return str(value)

    @field_validator("parent_id", mode="before")
    @classmethod
    def _blank_parent_is_top_level(cls, value):
        if value in ("", None):
            return None
        return str(value)

    @field_validator("timestamp", mode="before")
    @classmethod
    def _coerce_timestamp(cls, value):
        return parse_timestamp(value)

    @field_validator("updated_at", mode="before")
    @classmethod
    def _coerce_updated_at(cls, value):
        if value is None:
            return None
        return parse_timestamp(value)

    @field_validator("liked_by", "mentioned_users", mode="before")
    @classmethod
    def _coerce_id_list(cls, value):
        if not value or not isinstance(value, (list, tuple, set)):
            return []
        return [str(v) for v in value if v is not None]


class CommentCreate(BaseModel):
    model_config = ConfigDict(extra="forbid")

    text: str = Field(..., min_length=1, max_length=5000)
    parent_id: str | None = None


class CommentUpdate(BaseModel):
    model_config = ConfigDict(extra="forbid")

    text: str = Field(..., min_length=1, max_length=5000)
