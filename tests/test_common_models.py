"""Test common Pydantic models, error responses and comment document parsing."""

from datetime import datetime, timezone

import pytest
from pydantic import ValidationError

from pawfeed.models.comment import CommentCreate, CommentDocument
from pawfeed.models.common import ErrorDetail, ErrorResponse
from pawfeed.services.clock import EPOCH


def test_error_response_serializes_without_empty_details():
    error_resp = ErrorResponse(
        error=ErrorDetail(
            code="NOT_FOUND",
            message="Comment 'c1' not found",
            trace_id="trc_err_001",
            timestamp=datetime(2026, 2, 21, 10, 30, tzinfo=timezone.utc),
        ),
    )
    dumped = error_resp.model_dump(mode="json", exclude_none=True)
    assert dumped["schema_version"] == "1.0"
    assert dumped["error"]["code"] == "NOT_FOUND"
    assert "details" not in dumped["error"]


def test_error_response_rejects_unknown_fields():
    """ErrorResponse should reject unknown fields (extra='forbid')."""
    with pytest.raises(ValidationError):
        ErrorResponse(
            error=ErrorDetail(
                code="TEST",
                message="test",
                trace_id="trc_test_001",
                timestamp=datetime.now(timezone.utc),
            ),
            unexpected="value",
        )


def test_error_detail_requires_trace_id():
    with pytest.raises(ValidationError):
        ErrorDetail(code="TEST", message="test", trace_id="", timestamp=datetime.now(timezone.utc))


def test_comment_document_reads_stored_field_names():
    doc = CommentDocument.model_validate(
        {
            "id": "c1",
            "postId": "p1",
            "parentCommentId": "",
            "userId": "u1",
            "userName": "Ana",
            "text": "hi",
            "createdAt": "2026-01-02T03:04:05Z",
            "likes": ["u2", 7],
            "userProfileImage": "ignored",
        }
    )
    assert doc.parent_id is None
    assert doc.author_id == "u1"
    assert doc.timestamp == datetime(2026, 1, 2, 3, 4, 5, tzinfo=timezone.utc)
    assert doc.liked_by == ["u2", "7"]
    assert doc.updated_at is None


def test_comment_document_bad_timestamp_is_epoch():
    assert CommentDocument.model_validate({"id": "c1", "createdAt": "yesterday"}).timestamp == EPOCH


def test_comment_create_rejects_extra_fields():
    with pytest.raises(ValidationError):
        CommentCreate(text="hi", author_id="someone-else")
