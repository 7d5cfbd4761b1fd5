from datetime import date, timedelta

import pytest

from venue_crm.domain.claims.service import effective_status


@pytest.fixture
def booking(booking_setup, consultant_headers):
    return booking_setup(consultant_headers)


def create_claim(client, headers, **body):
    response = client.post("/api/claims", json=body, headers=headers)
    assert response.status_code == 201, response.text
    return response.json()["data"]


class TestEffectiveStatus:
    def test_sent_past_terms_reads_overdue(self):
        today = date(2025, 6, 30)
        assert effective_status("sent", date(2025, 5, 1), today) == "overdue"
        assert effective_status("sent", date(2025, 6, 15), today) == "sent"
        assert effective_status("sent", None, today) == "sent"
        assert effective_status("paid", date(2025, 1, 1), today) == "paid"


class TestClaimCreation:
    def test_defaults_from_booking(self, client, consultant_headers, booking):
        claim = create_claim(client, consultant_headers, bookingId=booking["id"])
        assert claim["amount"] == "950.00"
        assert claim["status"] == "draft"
        assert claim["effectiveStatus"] == "draft"
        assert claim["invoiceNumber"] == f"INV-{date.today():%Y%m%d}-{booking['id']}-1"
        assert claim["booking"]["venueName"] == "Grand Hall"
        assert claim["sentDate"] is None

    def test_invoice_numbers_are_sequential(self, client, consultant_headers, booking):
        first = create_claim(client, consultant_headers, bookingId=booking["id"])
        second = create_claim(client, consultant_headers, bookingId=booking["id"], amount="100.00")
        assert first["invoiceNumber"].endswith("-1")
        assert second["invoiceNumber"].endswith("-2")
        assert second["amount"] == "100.00"

    def test_duplicate_invoice_number(self, client, consultant_headers, booking):
        create_claim(client, consultant_headers, bookingId=booking["id"], invoiceNumber="INV-CUSTOM")
        response = client.post(
            "/api/claims",
            json={"bookingId": booking["id"], "invoiceNumber": "INV-CUSTOM"},
            headers=consultant_headers,
        )
        assert response.status_code == 409
        assert response.json()["error"]["field"] == "invoiceNumber"

    def test_created_as_sent_stamps_sent_date(self, client, consultant_headers, booking):
        claim = create_claim(client, consultant_headers, bookingId=booking["id"], status="sent")
        assert claim["sentDate"] == date.today().isoformat()

    def test_unknown_booking(self, client, consultant_headers):
        response = client.post("/api/claims", json={"bookingId": 404}, headers=consultant_headers)
        assert response.status_code == 400
        assert response.json()["error"]["field"] == "bookingId"

    def test_negative_amount(self, client, consultant_headers, booking):
        response = client.post(
            "/api/claims", json={"bookingId": booking["id"], "amount": -1}, headers=consultant_headers
        )
        assert response.status_code == 400


class TestClaimStatus:
    def test_sent_then_paid_stamps_dates(self, client, consultant_headers, booking):
        claim = create_claim(client, consultant_headers, bookingId=booking["id"])

        sent = client.put(f"/api/claims/{claim['id']}", json={"status": "sent"}, headers=consultant_headers)
        assert sent.json()["data"]["sentDate"] == date.today().isoformat()

        paid = client.put(f"/api/claims/{claim['id']}", json={"status": "paid"}, headers=consultant_headers)
        data = paid.json()["data"]
        assert data["status"] == "paid"
        assert data["paidDate"] == date.today().isoformat()
        assert data["sentDate"] == date.today().isoformat()

    def test_leaving_paid_clears_paid_date(self, client, consultant_headers, booking):
        claim = create_claim(client, consultant_headers, bookingId=booking["id"], status="paid")
        assert claim["paidDate"] == date.today().isoformat()

        reopened = client.put(f"/api/claims/{claim['id']}", json={"status": "sent"}, headers=consultant_headers)
        data = reopened.json()["data"]
        assert data["status"] == "sent"
        assert data["paidDate"] is None
        assert data["sentDate"] == date.today().isoformat()

    def test_explicit_paid_date_is_kept_when_leaving_paid(self, client, consultant_headers, booking):
        claim = create_claim(client, consultant_headers, bookingId=booking["id"], status="paid")
        response = client.put(
            f"/api/claims/{claim['id']}",
            json={"status": "draft", "paidDate": "2025-01-15"},
            headers=consultant_headers,
        )
        assert response.json()["data"]["paidDate"] == "2025-01-15"

    def test_old_sent_claim_is_overdue(self, client, consultant_headers, booking):
        long_ago = (date.today() - timedelta(days=45)).isoformat()
        claim = create_claim(client, consultant_headers, bookingId=booking["id"], status="sent", sentDate=long_ago)
        assert claim["status"] == "sent"
        assert claim["effectiveStatus"] == "overdue"
        assert claim["isOverdue"] is True

        overdue = client.get("/api/claims", params={"status": "overdue"}, headers=consultant_headers)
        assert [c["id"] for c in overdue.json()["data"]["data"]] == [claim["id"]]

        sent = client.get("/api/claims", params={"status": "sent"}, headers=consultant_headers)
        assert sent.json()["data"]["data"] == []

    def test_status_cannot_be_cleared(self, client, consultant_headers, booking):
        claim = create_claim(client, consultant_headers, bookingId=booking["id"])
        response = client.put(f"/api/claims/{claim['id']}", json={"status": None}, headers=consultant_headers)
        assert response.status_code == 400


class TestClaimAccess:
    def test_booking_filter_and_scope(self, client, consultant_headers, other_headers, admin_headers, booking):
        claim = create_claim(client, consultant_headers, bookingId=booking["id"])

        by_booking = client.get("/api/claims", params={"bookingId": booking["id"]}, headers=consultant_headers)
        assert [c["id"] for c in by_booking.json()["data"]["data"]] == [claim["id"]]

        assert client.get("/api/claims", headers=other_headers).json()["data"]["data"] == []
        assert client.get(f"/api/claims/{claim['id']}", headers=other_headers).status_code == 403
        assert client.get(f"/api/claims/{claim['id']}", headers=admin_headers).status_code == 200

    def test_cannot_claim_on_someone_elses_booking(self, client, other_headers, booking):
        response = client.post("/api/claims", json={"bookingId": booking["id"]}, headers=other_headers)
        assert response.status_code == 403

    def test_invoice_pdf_and_delete(self, client, consultant_headers, booking):
        claim = create_claim(client, consultant_headers, bookingId=booking["id"], status="sent")

        pdf = client.get(f"/api/claims/{claim['id']}/invoice", headers=consultant_headers)
        assert pdf.status_code == 200
        assert pdf.content.startswith(b"%PDF")
        assert claim["invoiceNumber"] in pdf.headers["content-disposition"]

        deleted = client.delete(f"/api/claims/{claim['id']}", headers=consultant_headers)
        assert deleted.status_code == 200
        assert client.get(f"/api/claims/{claim['id']}", headers=consultant_headers).status_code == 404
