"""Tests for request schemas (src/feedback/schemas)."""

import pytest
from hypothesis import given
from hypothesis import strategies as st
from pydantic import ValidationError

from src.feedback.models import CommentPriority
from src.feedback.schemas import (
    BulkStatusUpdate,
    CommentCreate,
    CommentUpdate,
    ProjectCreate,
    ProjectExtend,
    ProjectUpdate,
)
from src.feedback.schemas.pagination import MAX_PER_PAGE, PageParams
from tests.helpers import PNG_DATA_URL

pytestmark = pytest.mark.unit


def _fields(exc: ValidationError) -> set[tuple]:
    return {tuple(error["loc"]) for error in exc.errors()}


class TestProjectCreate:
    def test_defaults(self) -> None:
        data = ProjectCreate(name="  Demo  ", owner_email="a@b.com")
        assert data.name == "Demo"
        assert data.max_comments == 100
        assert data.notify_email is False
        assert data.webhook_url is None

    @pytest.mark.parametrize("name", ["x", " y ", "n" * 101])
    def test_name_length(self, name: str) -> None:
        with pytest.raises(ValidationError) as exc_info:
            ProjectCreate(name=name, owner_email="a@b.com")
        assert ("name",) in _fields(exc_info.value)

    @pytest.mark.parametrize("max_comments", [0, 1001])
    def test_max_comments_range(self, max_comments: int) -> None:
        with pytest.raises(ValidationError):
            ProjectCreate(name="Demo", owner_email="a@b.com", max_comments=max_comments)

    def test_webhook_must_be_https(self) -> None:
        with pytest.raises(ValidationError) as exc_info:
            ProjectCreate(name="Demo", owner_email="a@b.com", webhook_url="http://x.example")
        assert ("webhook_url",) in _fields(exc_info.value)

    def test_blank_webhook_means_none(self) -> None:
        data = ProjectCreate(name="Demo", owner_email="a@b.com", webhook_url="  ")
        assert data.webhook_url is None

    def test_bad_email(self) -> None:
        with pytest.raises(ValidationError) as exc_info:
            ProjectCreate(name="Demo", owner_email="not-an-email")
        assert ("owner_email",) in _fields(exc_info.value)


@given(name=st.text(min_size=2, max_size=100).filter(lambda s: 2 <= len(s.strip()) <= 100))
def test_project_names_within_bounds_accepted(name: str):
    assert ProjectCreate(name=name, owner_email="a@b.com").name == name.strip()


def test_project_update_tracks_only_supplied_fields():
    data = ProjectUpdate(status="inactive")
    assert data.model_dump(exclude_unset=True) == {"status": "inactive"}
    assert ProjectUpdate().model_dump(exclude_unset=True) == {}


def test_project_extend_bounds():
    assert ProjectExtend().days == 30
    with pytest.raises(ValidationError):
        ProjectExtend(days=366)
    with pytest.raises(ValidationError):
        ProjectExtend(days=0)


class TestCommentCreate:
    def _payload(self, **overrides) -> dict:
        payload = {
            "project_code": "ab3-x9q-77k",
            "url": "https://example.com/page",
            "text": "Header overlaps the logo",
        }
        payload.update(overrides)
        return payload

    def test_normalizes_code_and_defaults_priority(self) -> None:
        data = CommentCreate(**self._payload())
        assert data.project_code == "AB3-X9Q-77K"
        assert data.priority == CommentPriority.NORMAL

    def test_accepts_screenshot_coordinates_and_metadata(self) -> None:
        data = CommentCreate(
            **self._payload(
                screenshot=PNG_DATA_URL,
                coordinates={"x": 10, "y": 20, "width": 300, "height": 200},
                metadata={"user_agent": "Mozilla/5.0", "screen_resolution": "1920x1080"},
            )
        )
        assert data.coordinates is not None and data.coordinates.width == 300
        assert data.metadata is not None and data.metadata.screen_resolution == "1920x1080"

    @pytest.mark.parametrize(
        ("field", "value"),
        [
            ("project_code", "NOTREAL"),
            ("url", "ftp://example.com"),
            ("text", "   "),
            ("text", "t" * 2001),
            ("priority", "urgent"),
            ("screenshot", "data:image/gif;base64,R0lGODlhAQABAAAAACw="),
        ],
    )
    def test_rejects_invalid_fields(self, field: str, value: str) -> None:
        with pytest.raises(ValidationError) as exc_info:
            CommentCreate(**self._payload(**{field: value}))
        assert (field,) in _fields(exc_info.value)

    def test_rejects_missing_required_fields(self) -> None:
        with pytest.raises(ValidationError) as exc_info:
            CommentCreate(url="https://example.com")
        assert {("project_code",), ("text",)} <= _fields(exc_info.value)

    def test_rejects_zero_size_coordinates(self) -> None:
        with pytest.raises(ValidationError):
            CommentCreate(**self._payload(coordinates={"x": 0, "y": 0, "width": 0, "height": 5}))


def test_comment_update_and_bulk_status_parse_enums():
    assert CommentUpdate(status="resolved").model_dump(exclude_unset=True) == {
        "status": "resolved"
    }
    with pytest.raises(ValidationError):
        BulkStatusUpdate(ids=[], status="done")


class TestPageParams:
    def test_clamps_out_of_range_values(self) -> None:
        params = PageParams.clamp(page=0, per_page=1000)
        assert params.page == 1
        assert params.per_page == MAX_PER_PAGE

    def test_defaults_and_offset(self) -> None:
        params = PageParams.clamp(page=3)
        assert params.per_page == 20
        assert params.offset == 40
