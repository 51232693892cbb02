"""
Tests for event comment threads
"""

import pytest
from datetime import datetime, timedelta, timezone
from httpx import AsyncClient

from drawn_to_run.models.comment import Comment
from conftest import create_event

BASE_TIME = datetime(2026, 3, 1, 9, 0, tzinfo=timezone.utc)


async def add_comment(db_session, event, user, content, parent=None, minute=0):
    created = BASE_TIME + timedelta(minutes=minute)
    comment = Comment(
        event_id=event.id,
        user_id=user.id,
        parent_id=parent.id if parent else None,
        content=content,
        created_at=created,
        updated_at=created,
    )
    db_session.add(comment)
    await db_session.commit()
    await db_session.refresh(comment)
    return comment


async def add_chain(db_session, event, user, length):
    """Root plus replies, each nested under the previous one"""
    chain = []
    parent = None
    for i in range(length):
        parent = await add_comment(db_session, event, user, f"level {i}", parent=parent, minute=i)
        chain.append(parent)
    return chain


class TestCommentThread:
    """Reading the threaded view"""

    @pytest.mark.asyncio
    async def test_thread_order_and_depths(self, client: AsyncClient, db_session, test_organizer, test_user):
        event = await create_event(db_session, test_organizer, id=7)
        a = await add_comment(db_session, event, test_user, "A", minute=1)
        b = await add_comment(db_session, event, test_user, "B", minute=2)
        c = await add_comment(db_session, event, test_user, "C", parent=b, minute=3)
        d = await add_comment(db_session, event, test_user, "D", parent=c, minute=4)

        response = await client.get("/api/events/7/comments", params={"page": 1, "limit": 50})

        assert response.status_code == 200
        body = response.json()
        assert body["success"] is True
        assert [item["id"] for item in body["data"]] == [a.id, b.id, c.id, d.id]
        assert [item["depth"] for item in body["data"]] == [0, 0, 1, 2]
        assert body["data"][0]["user"]["name"] == test_user.name
        assert body["meta"] == {"page": 1, "limit": 50, "total": 4, "totalPages": 1}

    @pytest.mark.asyncio
    async def test_total_counts_hidden_deep_replies(self, client: AsyncClient, db_session, test_event, test_user):
        await add_chain(db_session, test_event, test_user, 5)

        response = await client.get(f"/api/events/{test_event.id}/comments")

        assert response.status_code == 200
        body = response.json()
        assert [item["depth"] for item in body["data"]] == [0, 1, 2, 3]
        assert body["meta"]["total"] == 5

    @pytest.mark.asyncio
    async def test_limit_is_clamped(self, client: AsyncClient, test_event):
        response = await client.get(f"/api/events/{test_event.id}/comments", params={"limit": 500})

        assert response.status_code == 200
        assert response.json()["meta"]["limit"] == 100

    @pytest.mark.asyncio
    async def test_page_below_one_is_rejected(self, client: AsyncClient, test_event):
        response = await client.get(f"/api/events/{test_event.id}/comments", params={"page": 0})

        assert response.status_code == 422
        error = response.json()["error"]
        assert error["code"] == "VALIDATION_ERROR"
        assert error["details"][0]["field"] == "page"

    @pytest.mark.asyncio
    async def test_second_page(self, client: AsyncClient, db_session, test_event, test_user):
        for minute in range(3):
            await add_comment(db_session, test_event, test_user, f"root {minute}", minute=minute)

        response = await client.get(f"/api/events/{test_event.id}/comments", params={"page": 2, "limit": 2})

        body = response.json()
        assert [item["content"] for item in body["data"]] == ["root 2"]
        assert body["meta"]["totalPages"] == 2

    @pytest.mark.asyncio
    async def test_unknown_event(self, client: AsyncClient):
        response = await client.get("/api/events/9999/comments")

        assert response.status_code == 404
        assert response.json()["error"]["message"] == "Event not found"


class TestCreateComment:
    """Posting comments and replies"""

    @pytest.mark.asyncio
    async def test_create_root_comment(self, client: AsyncClient, test_event, test_user, auth_headers_user):
        response = await client.post(
            f"/api/events/{test_event.id}/comments",
            json={"content": "See you at the start line"},
            headers=auth_headers_user
        )

        assert response.status_code == 201
        data = response.json()["data"]
        assert data["parent_id"] is None
        assert data["event_id"] == test_event.id
        assert data["user"]["id"] == test_user.id

    @pytest.mark.asyncio
    async def test_reply_at_allowed_depth(self, client: AsyncClient, db_session, test_event, test_user, auth_headers_user):
        root, reply = await add_chain(db_session, test_event, test_user, 2)

        response = await client.post(
            f"/api/events/{test_event.id}/comments",
            json={"content": "third level", "parent_id": reply.id},
            headers=auth_headers_user
        )

        assert response.status_code == 201
        assert response.json()["data"]["parent_id"] == reply.id

    @pytest.mark.asyncio
    async def test_reply_too_deep_is_rejected(self, client: AsyncClient, db_session, test_event, test_user, auth_headers_user):
        chain = await add_chain(db_session, test_event, test_user, 3)

        response = await client.post(
            f"/api/events/{test_event.id}/comments",
            json={"content": "fourth level", "parent_id": chain[-1].id},
            headers=auth_headers_user
        )

        assert response.status_code == 400
        assert response.json()["error"]["message"] == "Maximum comment nesting depth reached"

    @pytest.mark.asyncio
    async def test_parent_from_another_event(self, client: AsyncClient, db_session, test_organizer, test_event, test_user, auth_headers_user):
        other_event = await create_event(db_session, test_organizer, title="Hill Climb")
        foreign = await add_comment(db_session, other_event, test_user, "elsewhere")

        response = await client.post(
            f"/api/events/{test_event.id}/comments",
            json={"content": "reply", "parent_id": foreign.id},
            headers=auth_headers_user
        )

        assert response.status_code == 400
        assert response.json()["error"]["message"] == "Parent comment does not belong to this event"

    @pytest.mark.asyncio
    async def test_missing_parent(self, client: AsyncClient, test_event, auth_headers_user):
        response = await client.post(
            f"/api/events/{test_event.id}/comments",
            json={"content": "reply", "parent_id": 4242},
            headers=auth_headers_user
        )

        assert response.status_code == 400
        assert response.json()["error"]["message"] == "Parent comment not found"

    @pytest.mark.asyncio
    async def test_empty_content(self, client: AsyncClient, test_event, auth_headers_user):
        response = await client.post(
            f"/api/events/{test_event.id}/comments",
            json={"content": ""},
            headers=auth_headers_user
        )

        assert response.status_code == 422
        details = response.json()["error"]["details"]
        assert details == [{"field": "content", "message": "Comment content is required"}]

    @pytest.mark.asyncio
    async def test_malformed_json(self, client: AsyncClient, test_event, auth_headers_user):
        response = await client.post(
            f"/api/events/{test_event.id}/comments",
            content='{"content": "unterminated',
            headers={**auth_headers_user, "Content-Type": "application/json"}
        )

        assert response.status_code == 400
        assert response.json()["error"] == {
            "message": "Invalid JSON in request body",
            "code": "BAD_REQUEST",
            "details": None
        }

    @pytest.mark.asyncio
    async def test_requires_authentication(self, client: AsyncClient, test_event):
        response = await client.post(
            f"/api/events/{test_event.id}/comments",
            json={"content": "anonymous"}
        )

        assert response.status_code == 401
        assert response.json()["error"]["code"] == "UNAUTHORIZED"


class TestCommentDepthSetting:
    """The reply limit follows the configured display depth"""

    @pytest.mark.asyncio
    async def test_shallower_limit_rejects_earlier(self, db_session, test_event, test_user):
        from drawn_to_run.core.exceptions import BadRequestError
        from drawn_to_run.services.comment_service import CommentService

        root, reply = await add_chain(db_session, test_event, test_user, 2)
        service = CommentService(db_session, max_depth=2)

        created = await service.create_comment(test_event.id, test_user, "ok", parent_id=root.id)
        assert created.parent_id == root.id

        with pytest.raises(BadRequestError) as exc_info:
            await service.create_comment(test_event.id, test_user, "too deep", parent_id=reply.id)
        assert exc_info.value.message == "Maximum comment nesting depth reached"

    @pytest.mark.asyncio
    async def test_default_limit_allows_three_levels(self, db_session, test_event, test_user):
        from drawn_to_run.services.comment_service import CommentService

        root, reply = await add_chain(db_session, test_event, test_user, 2)

        created = await CommentService(db_session).create_comment(
            test_event.id, test_user, "third level", parent_id=reply.id
        )

        assert await CommentService(db_session).comment_depth(created.id) == 2
