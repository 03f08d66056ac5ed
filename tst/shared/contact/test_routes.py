"""
Tests for the contact submission and verification endpoints.
"""
from datetime import timedelta

import pytest
from fastapi import status

from contact_service.shared.contact.database import (
    ContactBlacklist,
    ContactRateLimit,
    ContactSubmission,
)
from contact_service.shared.database import utcnow
from contact_service.shared.errors import DeliveryResult
from contact_service.shared.push.database import PushSubscription

CLIENT_IP = "198.51.100.7"


def post_contact(client, payload, ip=CLIENT_IP):
    return client.post("/contact", json=payload, headers={"X-Forwarded-For": ip})


class TestContactSubmission:
    """Accepted submissions and their side effects."""

    def test_valid_submission_is_stored_and_emailed(self, client, mailer, count_rows, db_session, contact_payload):
        response = post_contact(client, contact_payload)

        assert response.status_code == status.HTTP_200_OK
        assert "Thank you" in response.json()["message"]

        submission = db_session.query(ContactSubmission).one()
        assert submission.name == "Alice"
        assert submission.email == "alice@example.com"
        assert submission.verified is False
        assert len(submission.verify_token) >= 40

        assert mailer.owner_notifications == ["alice@example.com"]
        assert mailer.verification_emails == [("alice@example.com", submission.verify_token)]
        assert count_rows(ContactRateLimit, source_address=CLIENT_IP) == 1

    def test_optional_fields_are_stored(self, client, db_session, contact_payload):
        contact_payload.update(service="Web design", budget="  $5k ", deadline="")

        response = post_contact(client, contact_payload)

        assert response.status_code == status.HTTP_200_OK
        submission = db_session.query(ContactSubmission).one()
        assert submission.service == "Web design"
        assert submission.budget == "$5k"
        assert submission.deadline is None

    def test_email_is_normalized(self, client, db_session, contact_payload):
        contact_payload["email"] = "  Alice@Example.COM "

        post_contact(client, contact_payload)

        assert db_session.query(ContactSubmission).one().email == "alice@example.com"

    def test_tokens_are_unique(self, client, mailer, contact_payload):
        post_contact(client, contact_payload)
        post_contact(client, contact_payload)

        tokens = [token for _, token in mailer.verification_emails]
        assert len(set(tokens)) == 2

    def test_owner_email_failure_reports_partial_success(self, client, mailer, count_rows, contact_payload):
        mailer.owner_result = DeliveryResult.failed("SMTP down")

        response = post_contact(client, contact_payload)

        assert response.status_code == status.HTTP_202_ACCEPTED
        assert "owner notification" in response.json()["error"]
        assert count_rows(ContactSubmission) == 1
        # Verification email is still attempted
        assert len(mailer.verification_emails) == 1

    def test_verification_email_failure_reports_partial_success(self, client, mailer, count_rows, contact_payload):
        mailer.verification_result = DeliveryResult.failed("mailbox unavailable")

        response = post_contact(client, contact_payload)

        assert response.status_code == status.HTTP_202_ACCEPTED
        assert "verification email" in response.json()["error"]
        assert count_rows(ContactSubmission) == 1

    def test_mailer_exception_does_not_stop_later_side_effects(
        self, client, mailer, push_sender, db_session, count_rows, contact_payload
    ):
        db_session.add(PushSubscription(endpoint="https://push.example/a", p256dh="key", auth="secret"))
        db_session.commit()
        mailer.owner_error = RuntimeError("header value appears to contain an embedded header")

        response = post_contact(client, contact_payload)

        assert response.status_code == status.HTTP_202_ACCEPTED
        assert response.json()["error"] == "Failed to send: owner notification"
        assert count_rows(ContactSubmission) == 1
        assert len(mailer.verification_emails) == 1
        assert push_sender.delivered == ["https://push.example/a"]

    def test_push_fan_out_removes_gone_subscription(self, client, push_sender, db_session, count_rows, contact_payload):
        for n in range(3):
            db_session.add(PushSubscription(endpoint=f"https://push.example/{n}", p256dh="key", auth="secret"))
        db_session.commit()
        push_sender.results["https://push.example/1"] = DeliveryResult.gone("410")

        response = post_contact(client, contact_payload)

        assert response.status_code == status.HTTP_200_OK
        assert sorted(push_sender.delivered) == ["https://push.example/0", "https://push.example/2"]
        assert push_sender.payloads[0]["body"] == "Alice sent a message"
        assert count_rows(PushSubscription) == 2
        assert count_rows(PushSubscription, endpoint="https://push.example/1") == 0

    def test_push_failures_do_not_fail_request(self, client, push_sender, db_session, count_rows, contact_payload):
        db_session.add(PushSubscription(endpoint="https://push.example/a", p256dh="key", auth="secret"))
        db_session.add(PushSubscription(endpoint="https://push.example/b", p256dh="key", auth="secret"))
        db_session.commit()
        push_sender.results["https://push.example/a"] = DeliveryResult.failed("timeout")

        response = post_contact(client, contact_payload)

        assert response.status_code == status.HTTP_200_OK
        assert push_sender.delivered == ["https://push.example/b"]
        # Only gone subscriptions are removed
        assert count_rows(PushSubscription) == 2

    def test_missing_push_configuration_skips_fan_out(self, app, client, contact_payload):
        from contact_service.shared.contact.dependencies import get_push_sender
        app.dependency_overrides[get_push_sender] = lambda: None

        response = post_contact(client, contact_payload)

        assert response.status_code == status.HTTP_200_OK


class TestContactValidation:
    """Rejected submissions never write a submission."""

    @pytest.mark.parametrize("missing", ["name", "email", "message"])
    def test_missing_required_field(self, client, mailer, count_rows, contact_payload, missing):
        del contact_payload[missing]

        response = post_contact(client, contact_payload)

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.json()["message"] == "Missing required fields"
        assert count_rows(ContactSubmission) == 0
        assert count_rows(ContactRateLimit) == 0
        assert count_rows(ContactBlacklist) == 0
        assert mailer.owner_notifications == []

    def test_blank_field_counts_as_missing(self, client, contact_payload):
        contact_payload["message"] = "   "

        response = post_contact(client, contact_payload)

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.json()["message"] == "Missing required fields"

    def test_empty_body(self, client, count_rows):
        response = client.post("/contact")

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert count_rows(ContactSubmission) == 0

    def test_malformed_json(self, client):
        response = client.post("/contact", content=b"{not json", headers={"Content-Type": "application/json"})

        assert response.status_code == status.HTTP_400_BAD_REQUEST

    def test_invalid_email_format(self, client, count_rows, contact_payload):
        contact_payload["email"] = "not-an-email"

        response = post_contact(client, contact_payload)

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.json()["message"] == "Invalid email format"
        assert count_rows(ContactBlacklist) == 0
        assert count_rows(ContactSubmission) == 0

    def test_disposable_email_is_blacklisted(self, client, db_session, count_rows, contact_payload):
        contact_payload["email"] = "x@mailinator.com"

        response = post_contact(client, contact_payload)

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        record = db_session.query(ContactBlacklist).one()
        assert record.reason == "disposable email"
        assert record.source_address == CLIENT_IP
        assert record.email == "x@mailinator.com"
        assert count_rows(ContactSubmission) == 0
        assert count_rows(ContactRateLimit) == 0

    def test_disposable_domain_is_case_insensitive(self, client, count_rows, contact_payload):
        contact_payload["email"] = "x@MailInator.COM"

        response = post_contact(client, contact_payload)

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert count_rows(ContactBlacklist, reason="disposable email") == 1

    @pytest.mark.parametrize("message", [
        "Visit http://a.example http://b.example and https://c.example today",
        "HELLO THERE I NEED A WEBSITE NOW",
        "Best online casino bonus for you",
    ])
    def test_spam_content_is_blacklisted(self, client, count_rows, contact_payload, message):
        contact_payload["message"] = message

        response = post_contact(client, contact_payload)

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert count_rows(ContactBlacklist) == 1
        assert count_rows(ContactBlacklist, reason="spam content detected") == 1
        assert count_rows(ContactSubmission) == 0

    def test_two_links_are_allowed(self, client, contact_payload):
        contact_payload["message"] = "My sites: https://one.example and https://two.example"

        response = post_contact(client, contact_payload)

        assert response.status_code == status.HTTP_200_OK


class TestBlacklist:
    """Blacklisted addresses and emails are denied."""

    def test_blacklisted_address(self, client, db_session, count_rows, contact_payload):
        db_session.add(ContactBlacklist(source_address=CLIENT_IP, email="other@example.com", reason="spam content detected"))
        db_session.commit()

        response = post_contact(client, contact_payload)

        assert response.status_code == status.HTTP_403_FORBIDDEN
        assert response.json()["message"] == "Access denied"
        assert count_rows(ContactBlacklist) == 1
        assert count_rows(ContactSubmission) == 0

    def test_blacklisted_email_from_new_address(self, client, db_session, contact_payload):
        db_session.add(ContactBlacklist(source_address="203.0.113.1", email="alice@example.com", reason="disposable email"))
        db_session.commit()

        response = post_contact(client, contact_payload, ip="192.0.2.55")

        assert response.status_code == status.HTTP_403_FORBIDDEN

    def test_blacklist_checked_before_rate_limit(self, client, db_session, contact_payload):
        db_session.add(ContactBlacklist(source_address=CLIENT_IP, email="x@mailinator.com", reason="disposable email"))
        for _ in range(5):
            db_session.add(ContactRateLimit(source_address=CLIENT_IP))
        db_session.commit()

        response = post_contact(client, contact_payload)

        assert response.status_code == status.HTTP_403_FORBIDDEN


class TestRateLimiting:
    """At most five accepted submissions per address per hour."""

    def test_sixth_submission_is_rejected(self, client, count_rows, contact_payload):
        for _ in range(5):
            assert post_contact(client, contact_payload).status_code == status.HTTP_200_OK

        response = post_contact(client, contact_payload)

        assert response.status_code == status.HTTP_429_TOO_MANY_REQUESTS
        assert count_rows(ContactRateLimit, source_address=CLIENT_IP) == 5
        assert count_rows(ContactSubmission) == 5

    def test_rate_limit_checked_before_email_checks(self, client, db_session, count_rows, contact_payload):
        for _ in range(5):
            db_session.add(ContactRateLimit(source_address=CLIENT_IP))
        db_session.commit()
        contact_payload["email"] = "x@mailinator.com"

        response = post_contact(client, contact_payload)

        assert response.status_code == status.HTTP_429_TOO_MANY_REQUESTS
        assert count_rows(ContactBlacklist) == 0

    def test_other_addresses_are_unaffected(self, client, db_session, contact_payload):
        for _ in range(5):
            db_session.add(ContactRateLimit(source_address=CLIENT_IP))
        db_session.commit()

        response = post_contact(client, contact_payload, ip="192.0.2.10")

        assert response.status_code == status.HTTP_200_OK

    def test_expired_records_do_not_count(self, client, db_session, count_rows, contact_payload):
        two_hours_ago = utcnow() - timedelta(hours=2)
        for _ in range(5):
            db_session.add(ContactRateLimit(source_address=CLIENT_IP, created_at=two_hours_ago))
        db_session.commit()

        response = post_contact(client, contact_payload)

        assert response.status_code == status.HTTP_200_OK
        # Expired records are purged, leaving only the new one
        assert count_rows(ContactRateLimit, source_address=CLIENT_IP) == 1


class TestContactErrors:
    """Configuration problems and error-detail gating."""

    def test_get_not_allowed(self, client):
        response = client.get("/contact")

        assert response.status_code == status.HTTP_405_METHOD_NOT_ALLOWED
        assert "message" in response.json()

    def test_missing_smtp_configuration(self, database, monkeypatch, count_rows, contact_payload):
        from fastapi.testclient import TestClient
        from contact_service.app import create_app
        monkeypatch.delenv("SMTP_USER", raising=False)
        monkeypatch.delenv("SMTP_PASSWORD", raising=False)
        client = TestClient(create_app(database))

        response = post_contact(client, contact_payload)

        assert response.status_code == status.HTTP_500_INTERNAL_SERVER_ERROR
        assert response.json()["message"] == "Email configuration missing"
        assert "SMTP_PASSWORD" in response.json()["error"]
        assert count_rows(ContactSubmission) == 0

    def test_missing_database_configuration(self, app, monkeypatch, contact_payload):
        from fastapi.testclient import TestClient
        from contact_service.shared.database import DatabaseHandle
        monkeypatch.delenv("DATABASE_URL", raising=False)
        app.state.database = DatabaseHandle()

        response = post_contact(TestClient(app), contact_payload)

        assert response.status_code == status.HTTP_500_INTERNAL_SERVER_ERROR
        assert response.json()["message"] == "Database configuration missing"

    def test_error_detail_hidden_in_production(self, client, monkeypatch, contact_payload):
        monkeypatch.setenv("ENVIRONMENT", "production")
        del contact_payload["email"]

        response = post_contact(client, contact_payload)

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.json() == {"message": "Missing required fields"}

    def test_error_detail_shown_in_development(self, client, contact_payload):
        del contact_payload["email"]

        response = post_contact(client, contact_payload)

        assert response.json()["error"] == "Required: email"


class TestVerification:
    """Email verification via GET /verify."""

    def test_round_trip(self, client, mailer, db_session, contact_payload):
        post_contact(client, contact_payload)
        _, token = mailer.verification_emails[0]

        response = client.get("/verify", params={"token": token}, follow_redirects=False)

        assert response.status_code == status.HTTP_302_FOUND
        assert response.headers["location"] == "https://example.test/verified.html"
        submission = db_session.query(ContactSubmission).one()
        assert submission.verified is True
        assert submission.verify_token is None

        second = client.get("/verify", params={"token": token}, follow_redirects=False)

        assert second.headers["location"] == "https://example.test/verify-error.html"

    def test_missing_token(self, client):
        response = client.get("/verify", follow_redirects=False)

        assert response.status_code == status.HTTP_302_FOUND
        assert response.headers["location"] == "https://example.test/verify-error.html"

    def test_unknown_token(self, client, db_session):
        db_session.add(ContactSubmission(name="Bob", email="bob@example.com", message="Hi there", verify_token="known"))
        db_session.commit()

        response = client.get("/verify", params={"token": "unknown"}, follow_redirects=False)

        assert response.headers["location"] == "https://example.test/verify-error.html"
        db_session.expire_all()
        assert db_session.query(ContactSubmission).one().verified is False

    def test_database_unavailable_redirects_to_error(self, app, monkeypatch):
        from fastapi.testclient import TestClient
        from contact_service.shared.database import DatabaseHandle
        monkeypatch.delenv("DATABASE_URL", raising=False)
        app.state.database = DatabaseHandle()

        response = TestClient(app).get("/verify", params={"token": "abc"}, follow_redirects=False)

        assert response.headers["location"] == "https://example.test/verify-error.html"
