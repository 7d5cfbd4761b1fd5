class TestVenueLifecycle:
    def test_create_search_delete(self, client, consultant_headers):
        response = client.post(
            "/api/venues", json={"name": "Test Venue", "standardCommission": 15.5}, headers=consultant_headers
        )
        assert response.status_code == 201
        venue = response.json()["data"]
        assert venue["standardCommission"] == "15.50"

        listed = client.get("/api/venues", params={"search": "Test"}, headers=consultant_headers)
        assert listed.status_code == 200
        assert [v["id"] for v in listed.json()["data"]["data"]] == [venue["id"]]

        deleted = client.delete(f"/api/venues/{venue['id']}", headers=consultant_headers)
        assert deleted.status_code == 200
        assert deleted.json()["message"] == "Venue deleted successfully"

        again = client.delete(f"/api/venues/{venue['id']}", headers=consultant_headers)
        assert again.status_code == 404
        assert again.json()["error"]["code"] == "NOT_FOUND"

    def test_blank_commission_defaults_to_zero(self, client, consultant_headers):
        response = client.post(
            "/api/venues", json={"name": "Free Venue", "standardCommission": ""}, headers=consultant_headers
        )
        assert response.status_code == 201
        assert response.json()["data"]["standardCommission"] == "0.00"

    def test_commission_out_of_range(self, client, consultant_headers):
        for rate in (-1, 100.01, "12.345"):
            response = client.post(
                "/api/venues", json={"name": "Bad", "standardCommission": rate}, headers=consultant_headers
            )
            assert response.status_code == 400, rate
            assert response.json()["error"]["details"][0]["field"] == "standardCommission"

    def test_location_filter(self, client, create_venue_record, consultant_headers):
        create_venue_record(consultant_headers, name="North", location="Manchester")
        create_venue_record(consultant_headers, name="South", location="Brighton")

        response = client.get("/api/venues", params={"location": "manch"}, headers=consultant_headers)
        assert [v["name"] for v in response.json()["data"]["data"]] == ["North"]

    def test_sort_by_commission(self, client, create_venue_record, consultant_headers):
        create_venue_record(consultant_headers, name="Low", standardCommission=5)
        create_venue_record(consultant_headers, name="High", standardCommission=20)

        response = client.get(
            "/api/venues",
            params={"sortBy": "standardCommission", "sortOrder": "desc"},
            headers=consultant_headers,
        )
        assert [v["name"] for v in response.json()["data"]["data"]] == ["High", "Low"]


class TestVenueDeletionGuard:
    def test_venue_used_in_proposal_cannot_be_deleted(
        self, client, create_client_record, create_venue_record, create_proposal_record, consultant_headers
    ):
        acme = create_client_record(consultant_headers)
        venue = create_venue_record(consultant_headers)
        create_proposal_record(consultant_headers, acme["id"], [venue["id"]])

        response = client.delete(f"/api/venues/{venue['id']}", headers=consultant_headers)
        assert response.status_code == 409
        assert "Venue has 1 proposal(s) and 0 booking(s)" in response.json()["error"]["message"]

    def test_detail_lists_proposals(
        self, client, create_client_record, create_venue_record, create_proposal_record, consultant_headers
    ):
        acme = create_client_record(consultant_headers)
        venue = create_venue_record(consultant_headers)
        proposal = create_proposal_record(consultant_headers, acme["id"], [venue["id"]])

        detail = client.get(f"/api/venues/{venue['id']}", headers=consultant_headers).json()["data"]
        assert [p["proposalId"] for p in detail["proposals"]] == [proposal["id"]]
        assert detail["proposals"][0]["clientName"] == "Acme Events"
