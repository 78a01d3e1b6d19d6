"""Endpoint tests through the ASGI app."""

from helpers import at


def session_body(device="desk-1", platform="windows", app="Code.exe", start="09:00", end="10:00", tz="UTC"):
    return {
        "deviceId": device,
        "devicePlatform": platform,
        "appName": app,
        "startTime": at(start).isoformat(),
        "endTime": at(end).isoformat(),
        "timeZone": tz,
    }


class TestLogSession:

    async def test_logs_native_session(self, client):
        response = await client.post("/api/v1/log-session", json=session_body())

        assert response.status_code == 200
        assert response.json() == {"success": True, "filtered": False, "durationAddedMs": 3600000}

    async def test_filtered_web_session_is_success(self, client):
        await client.post("/api/v1/log-session", json=session_body())
        response = await client.post(
            "/api/v1/log-session",
            json=session_body(device="ext-1", platform="web", app="youtube.com", start="09:10", end="09:20")
        )

        assert response.status_code == 200
        assert response.json() == {"success": True, "filtered": True, "durationAddedMs": 0}

    async def test_invalid_range(self, client):
        response = await client.post("/api/v1/log-session", json=session_body(start="10:00", end="09:00"))

        assert response.status_code == 400
        body = response.json()
        assert body["success"] is False
        assert body["code"] == "InvalidRange"
        assert body["retryable"] is False

    async def test_invalid_timezone(self, client):
        response = await client.post("/api/v1/log-session", json=session_body(tz="Nowhere/Special"))

        assert response.status_code == 400
        assert response.json()["code"] == "InvalidTimeZone"

    async def test_unknown_platform_fails_validation(self, client):
        response = await client.post("/api/v1/log-session", json=session_body(platform="amiga"))
        assert response.status_code == 422

    async def test_device_conflict(self, client, ingest, other_user):
        await ingest("desk-1", "windows", "Code.exe", at("07:00"), at("08:00"), user_id=other_user.id)

        response = await client.post("/api/v1/log-session", json=session_body())

        assert response.status_code == 403
        assert response.json()["code"] == "DeviceConflict"


class TestStats:

    async def test_get_stats(self, client):
        await client.post("/api/v1/log-session", json=session_body(start="09:30", end="11:00"))

        response = await client.get(
            "/api/v1/stats", params={"from": "2024-01-15", "to": "2024-01-15", "timeZone": "UTC"}
        )

        assert response.status_code == 200
        data = response.json()["data"]
        assert data["fromDate"] == "2024-01-15"
        assert data["timeZone"] == "UTC"
        assert sorted(data["hourly"]) == ["10", "9"]
        assert data["hourly"]["9"][0]["totalTimeMs"] == 30 * 60 * 1000
        assert data["hourly"]["9"][0]["timelines"][0]["deviceId"]
        assert data["summary"]["totalTimeMs"] == 90 * 60 * 1000
        assert [row["name"] for row in data["categoryDistribution"]] == [
            "productive", "distracting", "neutral", "uncategorized"
        ]
        assert len(data["activityProfile"]) == 24
        assert data["cursor"].startswith("2024-01-15T11:00:00")
        (meta,) = data["apps"].values()
        assert meta["appName"] == "Code.exe"

    async def test_post_stats_with_known_apps_and_since(self, client):
        await client.post("/api/v1/log-session", json=session_body(start="09:00", end="09:30"))
        params = {"from": "2024-01-15", "to": "2024-01-15", "timeZone": "UTC"}
        first = (await client.get("/api/v1/stats", params=params)).json()["data"]

        await client.post("/api/v1/log-session", json=session_body(start="10:00", end="10:05"))
        response = await client.post(
            "/api/v1/stats",
            params={**params, "since": first["cursor"]},
            json={"knownAppIds": list(first["apps"])}
        )

        assert response.status_code == 200
        data = response.json()["data"]
        assert data["apps"] == {}
        assert list(data["hourly"]) == ["10"]
        assert data["daily"][0]["totalTimeMs"] == 5 * 60 * 1000

    async def test_get_stats_known_app_ids_query(self, client):
        await client.post("/api/v1/log-session", json=session_body())
        params = {"from": "2024-01-15", "to": "2024-01-15", "timeZone": "UTC"}
        first = (await client.get("/api/v1/stats", params=params)).json()["data"]

        response = await client.get("/api/v1/stats", params={**params, "knownAppIds": list(first["apps"])})
        assert response.json()["data"]["apps"] == {}

    async def test_bad_timezone_reads_as_utc(self, client):
        response = await client.get("/api/v1/stats", params={"timeZone": "Bogus/Zone"})

        assert response.status_code == 200
        assert response.json()["data"]["timeZone"] == "UTC"


class TestAppCategory:

    async def test_update_category(self, client):
        await client.post("/api/v1/log-session", json=session_body())
        stats = (await client.get(
            "/api/v1/stats", params={"from": "2024-01-15", "to": "2024-01-15", "timeZone": "UTC"}
        )).json()["data"]
        (app_id,) = stats["apps"]

        response = await client.patch(f"/api/v1/apps/{app_id}/category", json={"category": "productive"})

        assert response.status_code == 200
        assert response.json()["data"] == {
            "appId": app_id, "appName": "Code.exe", "category": "productive", "autoSuggested": False
        }

    async def test_unknown_app(self, client):
        response = await client.patch("/api/v1/apps/nope/category", json={"category": "neutral"})

        assert response.status_code == 404
        assert response.json()["code"] == "AppNotFound"

    async def test_unknown_category(self, client):
        response = await client.patch("/api/v1/apps/nope/category", json={"category": "fun"})
        assert response.status_code == 422


class TestHealth:

    async def test_health(self, client):
        response = await client.get("/api/v1/health")

        assert response.status_code == 200
        assert response.json() == {"status": "ok"}
