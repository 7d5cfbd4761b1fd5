from datetime import date, timedelta


def advance(client, headers, booking_id, status):
    response = client.put(f"/api/bookings/{booking_id}/status", json={"status": status}, headers=headers)
    assert response.status_code == 200, response.text


class TestDashboard:
    def test_counts_values_and_expiring_options(self, client, booking_setup, consultant_headers):
        expiry = (date.today() + timedelta(days=3)).isoformat()
        booking = booking_setup(consultant_headers, optionExpiry=expiry)
        advance(client, consultant_headers, booking["id"], "option")

        response = client.get("/api/reports/dashboard", headers=consultant_headers)
        assert response.status_code == 200
        data = response.json()["data"]
        assert data["scope"] == "own"
        assert data["counts"] == {"clients": 1, "venues": 1, "proposals": 1, "bookings": 1}
        assert data["bookingsByStatus"]["option"] == 1
        assert data["bookingsByStatus"]["draft"] == 0
        assert data["totalBookedValue"] == "0.00"
        assert data["expiringWithinDays"] == 7
        assert [o["bookingId"] for o in data["expiringOptions"]] == [booking["id"]]
        assert data["expiringOptions"][0]["daysRemaining"] == 3

    def test_booked_value_and_outstanding_claims(self, client, booking_setup, consultant_headers):
        booking = booking_setup(consultant_headers, optionExpiry=date.today().isoformat())
        advance(client, consultant_headers, booking["id"], "option")
        advance(client, consultant_headers, booking["id"], "confirmed")
        client.post(
            "/api/claims", json={"bookingId": booking["id"], "status": "sent"}, headers=consultant_headers
        )

        data = client.get("/api/reports/dashboard", headers=consultant_headers).json()["data"]
        assert data["totalBookedValue"] == "9500.00"
        assert data["totalCommission"] == "950.00"
        assert data["claimsOutstanding"] == "950.00"
        assert data["expiringOptions"] == []

    def test_scope_follows_view_all_reports(self, client, booking_setup, consultant_headers, other_headers, admin_headers):
        booking_setup(consultant_headers)

        other = client.get("/api/reports/dashboard", headers=other_headers).json()["data"]
        assert other["counts"]["bookings"] == 0

        admin = client.get("/api/reports/dashboard", headers=admin_headers).json()["data"]
        assert admin["scope"] == "all"
        assert admin["counts"]["bookings"] == 1


class TestPipeline:
    def test_stages_in_workflow_order(self, client, booking_setup, consultant_headers):
        booking_setup(consultant_headers)

        data = client.get("/api/reports/pipeline", headers=consultant_headers).json()["data"]
        assert [stage["status"] for stage in data["stages"]] == [
            "draft",
            "proposal_sent",
            "option",
            "confirmed",
            "completed",
        ]
        sent = data["stages"][1]
        assert sent == {"status": "proposal_sent", "count": 1, "totalValue": "9500.00", "commission": "950.00"}
        assert data["stages"][0]["totalValue"] == "0.00"
        assert data["proposals"][1] == {
            "status": "sent",
            "count": 1,
            "totalValue": "9500.00",
            "expectedCommission": "950.00",
        }


class TestCommissionReport:
    def test_claim_buckets_use_derived_overdue(self, client, booking_setup, consultant_headers):
        booking = booking_setup(consultant_headers)
        long_ago = (date.today() - timedelta(days=60)).isoformat()
        client.post(
            "/api/claims",
            json={"bookingId": booking["id"], "status": "sent", "sentDate": long_ago, "amount": 300},
            headers=consultant_headers,
        )
        client.post(
            "/api/claims",
            json={"bookingId": booking["id"], "status": "paid", "amount": 200},
            headers=consultant_headers,
        )
        client.post("/api/claims", json={"bookingId": booking["id"], "amount": 50}, headers=consultant_headers)

        data = client.get("/api/reports/commission", headers=consultant_headers).json()["data"]
        assert data["claimsByStatus"]["overdue"] == {"count": 1, "amount": "300.00"}
        assert data["claimsByStatus"]["sent"] == {"count": 0, "amount": "0.00"}
        assert data["claimsByStatus"]["paid"] == {"count": 1, "amount": "200.00"}
        assert data["claimsByStatus"]["draft"] == {"count": 1, "amount": "50.00"}
        assert data["expectedCommission"] == "950.00"
        assert data["bookedCommission"] == "0.00"
        assert data["claimed"] == "500.00"
        assert data["paid"] == "200.00"
        assert data["outstanding"] == "300.00"

    def test_requires_authentication(self, client):
        assert client.get("/api/reports/commission").status_code == 401
