from datetime import date, timedelta

import pytest
from sqlalchemy.exc import IntegrityError

from venue_crm import storage
from venue_crm.errors import translate_db_error
from venue_crm.models import Booking


class FakeStorageClient:
    def __init__(self):
        self.objects = {}

    def put_object(self, Bucket, Key, Body, ContentType, ContentDisposition):
        self.objects[Key] = {"body": Body, "content_type": ContentType, "disposition": ContentDisposition}

    def generate_presigned_url(self, operation, Params, ExpiresIn):
        return f"https://storage.test/{Params['Key']}?expires={ExpiresIn}"


@pytest.fixture
def fake_storage(monkeypatch):
    fake = FakeStorageClient()
    monkeypatch.setattr(storage, "get_storage_client", lambda: fake)
    return fake


def advance(client, headers, booking_id, status, **extra):
    return client.put(f"/api/bookings/{booking_id}/status", json={"status": status, **extra}, headers=headers)


class TestBookingCreation:
    def test_values_copied_from_proposal_venue(self, booking_setup, consultant_headers):
        booking = booking_setup(consultant_headers, notes="Hold the date")
        assert booking["status"] == "proposal_sent"
        assert booking["totalValue"] == "9500.00"
        assert booking["commissionAmount"] == "950.00"
        assert booking["client"]["name"] == "Acme Events"
        assert booking["venue"]["detail"] == "London"
        assert booking["allowedTransitions"] == ["option"]
        assert booking["documents"] == []
        assert booking["notes"] == "Hold the date"

    def test_draft_proposal_starts_booking_as_draft(
        self, client, create_client_record, create_venue_record, create_proposal_record, consultant_headers
    ):
        acme = create_client_record(consultant_headers)
        venue = create_venue_record(consultant_headers)
        proposal = create_proposal_record(consultant_headers, acme["id"], [venue["id"]])

        response = client.post(
            "/api/bookings", json={"proposalId": proposal["id"], "venueId": venue["id"]}, headers=consultant_headers
        )
        assert response.status_code == 201
        assert response.json()["data"]["status"] == "draft"

    def test_venue_must_belong_to_proposal(
        self, client, create_client_record, create_venue_record, create_proposal_record, consultant_headers
    ):
        acme = create_client_record(consultant_headers)
        venue = create_venue_record(consultant_headers)
        other_venue = create_venue_record(consultant_headers, name="Elsewhere")
        proposal = create_proposal_record(consultant_headers, acme["id"], [venue["id"]])

        response = client.post(
            "/api/bookings",
            json={"proposalId": proposal["id"], "venueId": other_venue["id"]},
            headers=consultant_headers,
        )
        assert response.status_code == 400
        assert response.json()["error"]["field"] == "venueId"

    def test_unknown_proposal(self, client, consultant_headers):
        response = client.post("/api/bookings", json={"proposalId": 42, "venueId": 1}, headers=consultant_headers)
        assert response.status_code == 400
        assert response.json()["error"]["field"] == "proposalId"

    def test_one_booking_per_proposal_venue(self, client, booking_setup, consultant_headers):
        booking = booking_setup(consultant_headers)
        response = client.post(
            "/api/bookings",
            json={"proposalId": booking["proposalId"], "venueId": booking["venueId"]},
            headers=consultant_headers,
        )
        assert response.status_code == 409

    def test_database_rejects_second_booking_for_proposal_venue(
        self, db, booking_setup, consultant_headers, consultant_user
    ):
        booking = booking_setup(consultant_headers)
        db.add(
            Booking(
                proposal_id=booking["proposalId"],
                client_id=booking["clientId"],
                venue_id=booking["venueId"],
                status="draft",
                documents=[],
                created_by=consultant_user.id,
            )
        )
        with pytest.raises(IntegrityError) as excinfo:
            db.commit()
        db.rollback()

        error = translate_db_error(excinfo.value)
        assert error.status_code == 409
        assert db.query(Booking).count() == 1


class TestBookingWorkflow:
    def test_full_forward_path(self, client, booking_setup, consultant_headers):
        booking = booking_setup(consultant_headers)
        expiry = (date.today() + timedelta(days=10)).isoformat()

        response = advance(client, consultant_headers, booking["id"], "option", optionExpiry=expiry)
        assert response.status_code == 200
        assert response.json()["data"]["optionExpiry"] == expiry
        assert response.json()["data"]["isOptionExpired"] is False

        assert advance(client, consultant_headers, booking["id"], "confirmed").status_code == 200
        completed = advance(client, consultant_headers, booking["id"], "completed")
        assert completed.json()["data"]["status"] == "completed"
        assert completed.json()["data"]["allowedTransitions"] == []

    def test_draft_to_proposal_sent(
        self, client, create_client_record, create_venue_record, create_proposal_record, consultant_headers
    ):
        acme = create_client_record(consultant_headers)
        venue = create_venue_record(consultant_headers)
        proposal = create_proposal_record(consultant_headers, acme["id"], [venue["id"]])
        booking = client.post(
            "/api/bookings", json={"proposalId": proposal["id"], "venueId": venue["id"]}, headers=consultant_headers
        ).json()["data"]

        response = advance(client, consultant_headers, booking["id"], "proposal_sent")
        assert response.status_code == 200
        assert response.json()["data"]["status"] == "proposal_sent"

    def test_skipping_ahead_is_rejected(self, client, booking_setup, consultant_headers):
        booking = booking_setup(consultant_headers)
        response = advance(client, consultant_headers, booking["id"], "completed")
        assert response.status_code == 409
        error = response.json()["error"]
        assert error["code"] == "INVALID_STATUS_TRANSITION"
        assert error["details"] == {"from": "proposal_sent", "to": "completed", "allowed": ["option"]}

    def test_moving_backwards_is_rejected(self, client, booking_setup, consultant_headers):
        booking = booking_setup(consultant_headers, optionExpiry=date.today().isoformat())
        advance(client, consultant_headers, booking["id"], "option")
        advance(client, consultant_headers, booking["id"], "confirmed")

        response = advance(client, consultant_headers, booking["id"], "option")
        assert response.status_code == 409
        assert response.json()["error"]["code"] == "INVALID_STATUS_TRANSITION"

    def test_same_status_is_noop(self, client, booking_setup, consultant_headers):
        booking = booking_setup(consultant_headers)
        response = advance(client, consultant_headers, booking["id"], "proposal_sent")
        assert response.status_code == 200
        assert response.json()["data"]["status"] == "proposal_sent"

    def test_same_status_still_applies_expiry_and_notes(self, client, booking_setup, consultant_headers):
        booking = booking_setup(consultant_headers)
        advance(client, consultant_headers, booking["id"], "option", optionExpiry="2099-01-01")

        response = advance(
            client, consultant_headers, booking["id"], "option", optionExpiry="2099-06-01", notes="Extended"
        )
        assert response.status_code == 200
        data = response.json()["data"]
        assert data["status"] == "option"
        assert data["optionExpiry"] == "2099-06-01"
        assert data["notes"] == "Extended"

    def test_option_needs_expiry(self, client, booking_setup, consultant_headers):
        booking = booking_setup(consultant_headers)
        response = advance(client, consultant_headers, booking["id"], "option")
        assert response.status_code == 400
        assert response.json()["error"]["field"] == "optionExpiry"

    def test_expired_option_is_flagged(self, client, booking_setup, consultant_headers):
        booking = booking_setup(consultant_headers)
        yesterday = (date.today() - timedelta(days=1)).isoformat()
        response = advance(client, consultant_headers, booking["id"], "option", optionExpiry=yesterday)
        assert response.json()["data"]["isOptionExpired"] is True

    def test_option_expiry_cannot_be_cleared_while_on_option(self, client, booking_setup, consultant_headers):
        booking = booking_setup(consultant_headers, optionExpiry=date.today().isoformat())
        advance(client, consultant_headers, booking["id"], "option")

        response = client.put(
            f"/api/bookings/{booking['id']}", json={"optionExpiry": None}, headers=consultant_headers
        )
        assert response.status_code == 400

    def test_unknown_status(self, client, booking_setup, consultant_headers):
        booking = booking_setup(consultant_headers)
        assert advance(client, consultant_headers, booking["id"], "cancelled").status_code == 400


class TestBookingEditing:
    def test_update_amounts(self, client, booking_setup, consultant_headers):
        booking = booking_setup(consultant_headers)
        response = client.put(
            f"/api/bookings/{booking['id']}",
            json={"totalValue": "10000.50", "commissionAmount": 1000},
            headers=consultant_headers,
        )
        assert response.status_code == 200
        data = response.json()["data"]
        assert data["totalValue"] == "10000.50"
        assert data["commissionAmount"] == "1000.00"
        assert data["status"] == "proposal_sent"

    def test_filters(self, client, booking_setup, consultant_headers):
        booking = booking_setup(consultant_headers)

        by_status = client.get("/api/bookings", params={"status": "proposal_sent"}, headers=consultant_headers)
        assert by_status.json()["data"]["pagination"]["total"] == 1

        by_venue = client.get("/api/bookings", params={"venueId": booking["venueId"] + 100}, headers=consultant_headers)
        assert by_venue.json()["data"]["pagination"]["total"] == 0

        by_search = client.get("/api/bookings", params={"search": "grand"}, headers=consultant_headers)
        assert [b["id"] for b in by_search.json()["data"]["data"]] == [booking["id"]]

    def test_other_consultant_cannot_see_booking(self, client, booking_setup, consultant_headers, other_headers):
        booking = booking_setup(consultant_headers)
        assert client.get(f"/api/bookings/{booking['id']}", headers=other_headers).status_code == 403
        assert client.get("/api/bookings", headers=other_headers).json()["data"]["data"] == []

    def test_delete_cascades_claims(self, client, db, booking_setup, consultant_headers):
        from venue_crm.models import CommissionClaim

        booking = booking_setup(consultant_headers)
        client.post("/api/claims", json={"bookingId": booking["id"]}, headers=consultant_headers)

        response = client.delete(f"/api/bookings/{booking['id']}", headers=consultant_headers)
        assert response.status_code == 200
        assert db.query(CommissionClaim).count() == 0


class TestBookingDocuments:
    def test_upload_pdf(self, client, booking_setup, consultant_headers, fake_storage):
        booking = booking_setup(consultant_headers)
        response = client.post(
            f"/api/bookings/{booking['id']}/documents",
            files={"file": ("contract.pdf", b"%PDF-1.4 signed", "application/pdf")},
            headers=consultant_headers,
        )
        assert response.status_code == 201
        document = response.json()["data"]
        assert document["filename"] == "contract.pdf"
        assert document["key"].startswith(f"bookings/{booking['id']}/")
        assert document["key"].endswith("-contract.pdf")
        assert document["url"].startswith("https://storage.test/")
        assert fake_storage.objects[document["key"]]["body"] == b"%PDF-1.4 signed"

        stored = client.get(f"/api/bookings/{booking['id']}", headers=consultant_headers).json()["data"]
        assert [d["id"] for d in stored["documents"]] == [document["id"]]

    def test_rejects_unsupported_type(self, client, booking_setup, consultant_headers, fake_storage):
        booking = booking_setup(consultant_headers)
        response = client.post(
            f"/api/bookings/{booking['id']}/documents",
            files={"file": ("script.exe", b"MZ", "application/octet-stream")},
            headers=consultant_headers,
        )
        assert response.status_code == 400
        assert fake_storage.objects == {}

    def test_rejects_dangerous_filename(self, client, booking_setup, consultant_headers, fake_storage):
        booking = booking_setup(consultant_headers)
        response = client.post(
            f"/api/bookings/{booking['id']}/documents",
            files={"file": ("..evil.pdf", b"%PDF", "application/pdf")},
            headers=consultant_headers,
        )
        assert response.status_code == 400
        assert "dangerous" in response.json()["error"]["message"]

    def test_rejects_oversized_file(self, client, booking_setup, consultant_headers, fake_storage):
        booking = booking_setup(consultant_headers)
        response = client.post(
            f"/api/bookings/{booking['id']}/documents",
            files={"file": ("big.pdf", b"0" * (64 * 1024 + 1), "application/pdf")},
            headers=consultant_headers,
        )
        assert response.status_code == 413
        assert response.json()["error"]["code"] == "PAYLOAD_TOO_LARGE"


class TestBookingConfirmation:
    def test_confirmation_requires_confirmed_status(self, client, booking_setup, consultant_headers):
        booking = booking_setup(consultant_headers)
        response = client.get(f"/api/bookings/{booking['id']}/confirmation", headers=consultant_headers)
        assert response.status_code == 409

    def test_confirmation_pdf(self, client, booking_setup, consultant_headers):
        booking = booking_setup(consultant_headers, optionExpiry=date.today().isoformat())
        advance(client, consultant_headers, booking["id"], "option")
        advance(client, consultant_headers, booking["id"], "confirmed")

        response = client.get(f"/api/bookings/{booking['id']}/confirmation", headers=consultant_headers)
        assert response.status_code == 200
        assert response.content.startswith(b"%PDF")
