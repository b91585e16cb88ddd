"""End-to-end request lifecycle over HTTP."""
import pytest

from agencyhub.db.enums import ViewerKind


@pytest.mark.asyncio
async def test_request_lifecycle(client_for, tenant):
    client = client_for(tenant.client, tenant.agency, ViewerKind.CLIENT)
    staff = client_for(tenant.staff, tenant.agency, ViewerKind.STAFF)
    owner = client_for(tenant.owner, tenant.agency, ViewerKind.OWNER)

    async with client, staff, owner:
        # Client files an urgent bug
        response = await client.post(
            f"/projects/{tenant.project.id}/requests",
            json={
                "title": "Checkout button broken",
                "description": "Clicking Pay does nothing on mobile",
                "type": "bug",
                "priority": "urgent",
            },
        )
        assert response.status_code == 201
        request_id = response.json()["id"]
        assert response.json()["status"] == "submitted"

        # Owner assigns staff; staff starts work
        response = await owner.post(
            f"/requests/{request_id}/assignments", json={"user_id": str(tenant.staff.id)}
        )
        assert response.status_code == 200
        response = await staff.patch(f"/requests/{request_id}", json={"status": "in_progress"})
        assert response.json()["status"] == "in_progress"
        assert [a["user_id"] for a in response.json()["assignees"]] == [str(tenant.staff.id)]

        # Time is logged in free text
        response = await staff.post(
            f"/requests/{request_id}/time-entries", json={"duration": "1h 30m"}
        )
        assert response.status_code == 201
        response = await staff.get(f"/requests/{request_id}/time-entries")
        assert response.json()["total_minutes"] == 90
        assert response.json()["total_display"] == "1h 30m"

        # Client can no longer edit once work has started
        response = await client.patch(f"/requests/{request_id}", json={"title": "Edited"})
        assert response.status_code == 403

        # Completion stamps the request
        response = await staff.patch(f"/requests/{request_id}", json={"status": "complete"})
        assert response.json()["completed_by"] == str(tenant.staff.id)
        assert response.json()["completed_at"] is not None

        # Client rates, then changes their mind
        response = await client.get(f"/requests/{request_id}/rating")
        assert response.status_code == 404
        first = await client.put(f"/requests/{request_id}/rating", json={"rating": 4})
        assert first.status_code == 200
        second = await client.put(
            f"/requests/{request_id}/rating", json={"rating": 5, "feedback": "Quick fix"}
        )
        assert second.json()["id"] == first.json()["id"]
        assert second.json()["rating"] == 5

        response = await owner.get("/agency/rating-stats")
        assert response.json() == {"average": 5.0, "count": 1}

        # Activity trail is visible to staff only
        response = await staff.get(f"/requests/{request_id}/activity")
        kinds = {entry["activity_type"] for entry in response.json()}
        assert {"request_created", "assigned", "status_changed", "time_logged", "rated"} <= kinds
        response = await client.get(f"/requests/{request_id}/activity")
        assert response.status_code == 403


@pytest.mark.asyncio
async def test_thread_partition_over_http(client_for, tenant):
    client = client_for(tenant.client, tenant.agency, ViewerKind.CLIENT)
    staff = client_for(tenant.staff, tenant.agency, ViewerKind.STAFF)

    async with client, staff:
        response = await client.post(
            f"/projects/{tenant.project.id}/requests",
            json={"title": "Typo", "description": "On the about page"},
        )
        request_id = response.json()["id"]

        await staff.post(f"/requests/{request_id}/messages", json={"content": "Fixing now"})
        await staff.post(
            f"/requests/{request_id}/messages",
            json={"content": "Third typo this month", "is_internal": True},
        )
        response = await client.post(
            f"/requests/{request_id}/messages", json={"content": "psst", "is_internal": True}
        )
        assert response.status_code == 403

        client_view = (await client.get(f"/requests/{request_id}/messages")).json()
        staff_view = (await staff.get(f"/requests/{request_id}/messages")).json()
        assert [m["content"] for m in client_view] == ["Fixing now"]
        assert len(staff_view) == 2


@pytest.mark.asyncio
async def test_list_filters_over_http(client_for, tenant):
    async with client_for(tenant.staff, tenant.agency, ViewerKind.STAFF) as staff:
        for title, priority in (("a", "normal"), ("b", "urgent"), ("c", "urgent")):
            await staff.post(
                f"/projects/{tenant.project.id}/requests",
                json={"title": title, "description": "d", "priority": priority},
            )

        response = await staff.get(
            f"/projects/{tenant.project.id}/requests",
            params={"priority": "urgent", "order": "asc", "per_page": 1},
        )
        data = response.json()
        assert data["total"] == 2
        assert data["pages"] == 2
        assert len(data["items"]) == 1
        assert data["items"][0]["title"] in {"b", "c"}


@pytest.mark.asyncio
async def test_cross_tenant_request_is_404(client_for, tenant, other_tenant):
    async with client_for(tenant.client, tenant.agency, ViewerKind.CLIENT) as client:
        response = await client.post(
            f"/projects/{tenant.project.id}/requests",
            json={"title": "Mine", "description": "d"},
        )
        request_id = response.json()["id"]

    async with client_for(other_tenant.staff, other_tenant.agency, ViewerKind.STAFF) as outsider:
        assert (await outsider.get(f"/requests/{request_id}")).status_code == 404
        assert (await outsider.get(f"/requests/{request_id}/messages")).status_code == 404
