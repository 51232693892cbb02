"""
Tests for event endpoints
"""

import pytest
from datetime import datetime, timedelta, timezone
from httpx import AsyncClient

from drawn_to_run.models import EventStatus, Registration, UserRole
from conftest import auth_headers, create_event, create_user


def event_payload(**overrides):
    payload = {
        "title": "Harbour Half Marathon",
        "description": "Out and back along the harbour wall",
        "event_date": (datetime.now(timezone.utc) + timedelta(days=60)).isoformat(),
        "location": "Harbour Front",
        "distance_options": ["10K", "Half Marathon"],
        "capacity": 500,
        "registration_fee": 40.0,
    }
    payload.update(overrides)
    return payload


class TestListEvents:
    """Browsing active events"""

    @pytest.mark.asyncio
    async def test_lists_active_events_soonest_first(self, client: AsyncClient, db_session, test_organizer):
        now = datetime.now(timezone.utc)
        later = await create_event(db_session, test_organizer, title="Later", event_date=now + timedelta(days=20))
        sooner = await create_event(db_session, test_organizer, title="Sooner", event_date=now + timedelta(days=5))
        await create_event(db_session, test_organizer, title="Called Off", status=EventStatus.CANCELLED)

        response = await client.get("/api/events")

        assert response.status_code == 200
        data = response.json()["data"]
        assert [e["id"] for e in data["events"]] == [sooner.id, later.id]
        assert data["events"][0]["organizer"]["name"] == test_organizer.name
        assert data["meta"] == {"page": 1, "limit": 20, "total": 2, "totalPages": 1}

    @pytest.mark.asyncio
    async def test_search_and_distance_filters(self, client: AsyncClient, db_session, test_organizer):
        await create_event(db_session, test_organizer, title="Forest Trail Run", distance_options=["15K"])
        await create_event(db_session, test_organizer, title="City 5K", distance_options=["5K"])

        by_search = await client.get("/api/events", params={"search": "trail"})
        assert [e["title"] for e in by_search.json()["data"]["events"]] == ["Forest Trail Run"]

        by_distance = await client.get("/api/events", params={"distance": "5K"})
        assert [e["title"] for e in by_distance.json()["data"]["events"]] == ["City 5K"]

    @pytest.mark.asyncio
    async def test_tag_filter(self, client: AsyncClient, db_session, test_organizer, test_tags, auth_headers_organizer):
        tagged = await create_event(db_session, test_organizer, title="Tagged")
        await create_event(db_session, test_organizer, title="Untagged")
        await client.post(
            f"/api/events/{tagged.id}/tags",
            json={"tagIds": [test_tags[0].id]},
            headers=auth_headers_organizer
        )

        response = await client.get("/api/events", params={"tags": f"{test_tags[0].id}"})

        events = response.json()["data"]["events"]
        assert [e["title"] for e in events] == ["Tagged"]
        assert events[0]["tags"][0]["name"] == "Trail"

    @pytest.mark.asyncio
    async def test_registration_count(self, client: AsyncClient, db_session, test_event, test_user):
        db_session.add(Registration(user_id=test_user.id, event_id=test_event.id, distance="5K"))
        await db_session.commit()

        response = await client.get("/api/events")

        assert response.json()["data"]["events"][0]["registration_count"] == 1

    @pytest.mark.asyncio
    async def test_limit_over_maximum_rejected(self, client: AsyncClient):
        response = await client.get("/api/events", params={"limit": 101})

        assert response.status_code == 422
        assert response.json()["error"]["details"][0]["field"] == "limit"

    @pytest.mark.asyncio
    async def test_unknown_sort_rejected(self, client: AsyncClient):
        response = await client.get("/api/events", params={"sort": "price"})

        assert response.status_code == 422


class TestCreateEvent:
    """Publishing events"""

    @pytest.mark.asyncio
    async def test_organizer_creates_event(self, client: AsyncClient, test_organizer, auth_headers_organizer):
        response = await client.post("/api/events", json=event_payload(), headers=auth_headers_organizer)

        assert response.status_code == 201
        data = response.json()["data"]
        assert data["created_by"] == test_organizer.id
        assert data["status"] == "active"
        assert data["distance_options"] == ["10K", "Half Marathon"]
        assert data["tags"] == []

    @pytest.mark.asyncio
    async def test_participant_cannot_create(self, client: AsyncClient, auth_headers_user):
        response = await client.post("/api/events", json=event_payload(), headers=auth_headers_user)

        assert response.status_code == 403
        assert response.json()["error"]["message"] == "Insufficient permissions"

    @pytest.mark.asyncio
    async def test_distance_options_required(self, client: AsyncClient, auth_headers_organizer):
        response = await client.post(
            "/api/events",
            json=event_payload(distance_options=[]),
            headers=auth_headers_organizer
        )

        assert response.status_code == 422
        assert response.json()["error"]["details"] == [
            {"field": "distance_options", "message": "At least one distance option required"}
        ]


class TestEventDetail:
    """Single event reads and changes"""

    @pytest.mark.asyncio
    async def test_get_event(self, client: AsyncClient, test_event, test_organizer):
        response = await client.get(f"/api/events/{test_event.id}")

        assert response.status_code == 200
        data = response.json()["data"]
        assert data["title"] == test_event.title
        assert data["comment_count"] == 0
        assert data["organizer"]["email"] == test_organizer.email

    @pytest.mark.asyncio
    async def test_missing_event(self, client: AsyncClient):
        response = await client.get("/api/events/424242")

        assert response.status_code == 404
        assert response.json()["error"]["code"] == "NOT_FOUND"

    @pytest.mark.asyncio
    async def test_creator_updates_event(self, client: AsyncClient, test_event, auth_headers_organizer):
        response = await client.put(
            f"/api/events/{test_event.id}",
            json={"title": "Riverside 10K (new course)", "status": "cancelled"},
            headers=auth_headers_organizer
        )

        assert response.status_code == 200
        data = response.json()["data"]
        assert data["title"] == "Riverside 10K (new course)"
        assert data["status"] == "cancelled"

    @pytest.mark.asyncio
    async def test_other_organizer_cannot_update(self, client: AsyncClient, db_session, test_event):
        rival = await create_user(db_session, UserRole.ORGANIZER, "Rival Organizer")

        response = await client.put(
            f"/api/events/{test_event.id}",
            json={"title": "Hijacked"},
            headers=auth_headers(rival)
        )

        assert response.status_code == 403

    @pytest.mark.asyncio
    async def test_empty_update_rejected(self, client: AsyncClient, test_event, auth_headers_organizer):
        response = await client.put(f"/api/events/{test_event.id}", json={}, headers=auth_headers_organizer)

        assert response.status_code == 400
        assert response.json()["error"]["message"] == "No valid fields to update"

    @pytest.mark.asyncio
    async def test_completed_event_is_admin_only(self, client: AsyncClient, db_session, test_organizer, auth_headers_organizer, auth_headers_admin):
        event = await create_event(db_session, test_organizer, status=EventStatus.COMPLETED)

        response = await client.put(f"/api/events/{event.id}", json={"title": "Edited"}, headers=auth_headers_organizer)
        assert response.status_code == 403

        response = await client.put(f"/api/events/{event.id}", json={"title": "Edited"}, headers=auth_headers_admin)
        assert response.status_code == 200


class TestDeleteEvent:
    """Removing events"""

    @pytest.mark.asyncio
    async def test_admin_deletes_event(self, client: AsyncClient, test_event, auth_headers_admin):
        response = await client.delete(f"/api/events/{test_event.id}", headers=auth_headers_admin)

        assert response.status_code == 200
        assert response.json()["data"]["deleted_event"] == {"id": test_event.id, "title": test_event.title}

        follow_up = await client.get(f"/api/events/{test_event.id}")
        assert follow_up.status_code == 404

    @pytest.mark.asyncio
    async def test_organizer_cannot_delete(self, client: AsyncClient, test_event, auth_headers_organizer):
        response = await client.delete(f"/api/events/{test_event.id}", headers=auth_headers_organizer)

        assert response.status_code == 403

    @pytest.mark.asyncio
    async def test_event_with_registrations_is_kept(self, client: AsyncClient, db_session, test_event, test_user, auth_headers_admin):
        db_session.add(Registration(user_id=test_user.id, event_id=test_event.id, distance="5K"))
        await db_session.commit()

        response = await client.delete(f"/api/events/{test_event.id}", headers=auth_headers_admin)

        assert response.status_code == 409
        assert response.json()["error"]["message"].startswith("Cannot delete event with existing registrations")


class TestEventTags:
    """Attaching and detaching tags"""

    @pytest.mark.asyncio
    async def test_assign_and_remove(self, client: AsyncClient, test_event, test_tags, auth_headers_organizer):
        tag_ids = [test_tags[0].id, test_tags[2].id]

        response = await client.post(
            f"/api/events/{test_event.id}/tags",
            json={"tagIds": tag_ids},
            headers=auth_headers_organizer
        )
        assert response.status_code == 200

        # Re-assigning is harmless
        response = await client.post(
            f"/api/events/{test_event.id}/tags",
            json={"tagIds": tag_ids},
            headers=auth_headers_organizer
        )
        assert response.status_code == 200

        detail = await client.get(f"/api/events/{test_event.id}")
        assert sorted(t["name"] for t in detail.json()["data"]["tags"]) == ["Beginner Friendly", "Trail"]

        response = await client.request(
            "DELETE",
            f"/api/events/{test_event.id}/tags",
            json={"tagIds": [test_tags[0].id]},
            headers=auth_headers_organizer
        )
        assert response.status_code == 200

        detail = await client.get(f"/api/events/{test_event.id}")
        assert [t["name"] for t in detail.json()["data"]["tags"]] == ["Beginner Friendly"]

    @pytest.mark.asyncio
    async def test_invalid_tag_ids(self, client: AsyncClient, test_event, test_tags, auth_headers_organizer):
        response = await client.post(
            f"/api/events/{test_event.id}/tags",
            json={"tagIds": [test_tags[0].id, 9999]},
            headers=auth_headers_organizer
        )

        assert response.status_code == 400
        assert response.json()["error"]["message"] == "Invalid tag IDs: 9999"

    @pytest.mark.asyncio
    async def test_participant_cannot_tag(self, client: AsyncClient, test_event, test_tags, auth_headers_user):
        response = await client.post(
            f"/api/events/{test_event.id}/tags",
            json={"tagIds": [test_tags[0].id]},
            headers=auth_headers_user
        )

        assert response.status_code == 403
