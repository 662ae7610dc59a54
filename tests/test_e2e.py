"""
End-to-end flows over HTTP: permanent and temporary blocks, expiry through
both the lazy path and the sweeper, and the resulting audit trail.
"""


class TestPermanentBlockFlow:
    def test_block_check_unblock_check(self, client):
        assert client.post("/api/countries/block", json={"countryCode": "FR"}).status_code == 200

        resp = client.get("/api/ip/check-block/90.84.0.1")
        assert resp.json()["isBlocked"] is True

        assert client.delete("/api/countries/block/FR").status_code == 204

        resp = client.get("/api/ip/check-block/90.84.0.1")
        assert resp.json()["isBlocked"] is False

        actions = [
            (item["action"], item["blockedStatus"])
            for item in client.get("/api/logs/blocked-attempts").json()["items"]
        ]
        assert actions == [
            ("check", False),
            ("unblock", False),
            ("check", True),
            ("block", True),
        ]


class TestTemporaryBlockFlow:
    def test_expires_through_lazy_read(self, client, clock):
        resp = client.post(
            "/api/countries/temporal-block",
            json={"countryCode": "DE", "durationMinutes": 1},
        )
        assert resp.status_code == 200
        assert client.get("/api/ip/check-block/88.198.50.1").json()["isBlocked"] is True

        clock.advance(minutes=1, seconds=1)

        assert client.get("/api/ip/check-block/88.198.50.1").json()["isBlocked"] is False
        assert client.get("/api/countries/blocked").json()["totalCount"] == 0

    def test_expires_through_sweeper(self, client, app, clock):
        client.post("/api/countries/block", json={"countryCode": "FR"})
        client.post(
            "/api/countries/temporal-block",
            json={"countryCode": "DE", "durationMinutes": 1},
        )
        clock.advance(minutes=5)

        # Listing does not evaluate expiry until a sweep runs
        listed = client.get("/api/countries/blocked").json()
        assert {item["countryCode"] for item in listed["items"]} == {"FR", "DE"}

        assert app.state.expiry_sweeper.sweep_once() == 1

        listed = client.get("/api/countries/blocked").json()
        assert [item["countryCode"] for item in listed["items"]] == ["FR"]

    def test_reblock_after_expiry(self, client, clock):
        body = {"countryCode": "DE", "durationMinutes": 1}
        assert client.post("/api/countries/temporal-block", json=body).status_code == 200
        assert client.post("/api/countries/temporal-block", json=body).status_code == 409

        clock.advance(minutes=2)
        assert client.post("/api/countries/temporal-block", json=body).status_code == 200
