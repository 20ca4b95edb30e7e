"""HTTP-level tests against an isolated app instance."""
import json
import re

import pytest
from fastapi.testclient import TestClient

from main import create_app
from services.notification_service import DeliveryResult

REFERENCE_RE = re.compile(r"^PAY4ME-\d+-[A-Z0-9]{9}$")


def auth_header(token):
    return {"Authorization": f"Bearer {token}"}


def test_health(client):
    resp = client.get("/api/health")
    assert resp.status_code == 200
    body = resp.json()
    assert body["success"] is True
    assert body["message"] == "Pay4Me API is running"
    assert body["timestamp"]


def test_register_login_purchase_and_history(client):
    resp = client.post("/api/auth/register", json={
        "name": "Ada", "email": "a@x.com", "phone": "08012345678", "password": "secret1",
    })
    assert resp.status_code == 200
    registered = resp.json()
    assert registered["success"] is True and registered["token"]
    assert "password" not in registered["user"]

    resp = client.post("/api/auth/login", json={"email": "a@x.com", "password": "secret1"})
    assert resp.status_code == 200
    login = resp.json()
    assert login["user"]["id"] == registered["user"]["id"]

    purchase = {"network": "MTN", "phone": "08012345678", "amount": 500}
    resp = client.post("/api/airtime/purchase", json=purchase)
    assert resp.status_code == 401
    assert resp.json() == {"success": False, "message": "Access token required"}

    resp = client.post("/api/airtime/purchase", json=purchase, headers=auth_header(login["token"]))
    assert resp.status_code == 200
    tx = resp.json()["transaction"]
    assert tx["status"] == "successful"
    assert REFERENCE_RE.match(tx["reference"])
    assert tx["userId"] == registered["user"]["id"]

    resp = client.get("/api/transactions", headers=auth_header(login["token"]))
    assert resp.status_code == 200
    assert resp.json()["transactions"] == [tx]


def test_duplicate_registration_returns_400(client, register_user, services):
    register_user()
    resp = client.post("/api/auth/register", json={
        "name": "Ada", "email": "a@x.com", "phone": "08012345678", "password": "secret1",
    })
    assert resp.status_code == 400
    assert resp.json() == {"success": False, "message": "Email already registered"}
    assert len(services.users) == 1


def test_register_requires_all_fields(client):
    resp = client.post("/api/auth/register", json={"name": "Ada", "email": "a@x.com"})
    assert resp.status_code == 400
    assert resp.json()["message"] == "All fields are required"


def test_malformed_body_is_a_400(client):
    resp = client.post("/api/auth/register", json={"name": {"first": "Ada"}})
    assert resp.status_code == 400
    assert resp.json()["success"] is False


def test_login_with_wrong_password(client, register_user):
    register_user()
    resp = client.post("/api/auth/login", json={"email": "a@x.com", "password": "nope"})
    assert resp.status_code == 401
    assert resp.json()["message"] == "Invalid email or password"


def test_invalid_token_is_forbidden(client, register_user):
    token = register_user()["token"]
    header, payload, signature = token.split(".")
    pos = len(signature) // 2
    bad_sig = signature[:pos] + ("A" if signature[pos] != "A" else "B") + signature[pos + 1:]
    resp = client.get("/api/transactions", headers=auth_header(".".join([header, payload, bad_sig])))
    assert resp.status_code == 403
    assert resp.json() == {"success": False, "message": "Invalid or expired token"}


def test_token_resolves_to_registered_identity(client, register_user, services):
    registered = register_user()
    claims = services.auth.verify_token(registered["token"])
    assert claims == {"id": registered["user"]["id"], "email": "a@x.com", "name": "Ada"}


def test_other_payment_endpoints(client, register_user):
    token = register_user()["token"]
    headers = auth_header(token)

    resp = client.post("/api/data/purchase", headers=headers, json={
        "network": "glo", "phone": "08112345678", "plan": "2gb", "planText": "2GB - 30 Days",
    })
    assert resp.status_code == 200
    assert resp.json()["message"] == "2GB - 30 Days purchase for 08112345678 on GLO successful"

    resp = client.post("/api/betting/fund", headers=headers, json={"platform": "sportybet", "userId": "SB123", "amount": "1000"})
    assert resp.status_code == 200
    assert resp.json()["transaction"]["platform"] == "SportyBet"

    resp = client.post("/api/tv/subscribe", headers=headers, json={
        "provider": "dstv", "smartcard": "1234567890", "packageValue": "compact", "packageText": "DStv Compact",
    })
    assert resp.status_code == 200
    assert resp.json()["transaction"]["package"] == "compact"

    resp = client.post("/api/airtime/purchase", headers=headers, json={"network": "MTN", "phone": "08012345678"})
    assert resp.status_code == 400

    types = [t["type"] for t in client.get("/api/transactions", headers=headers).json()["transactions"]]
    assert types == ["data", "betting", "tv"]


def test_transactions_are_scoped_to_user(client, register_user):
    ada = register_user()
    bob = register_user(name="Bob", email="b@x.com", phone="09012345678")
    client.post("/api/airtime/purchase", headers=auth_header(ada["token"]), json={"network": "MTN", "phone": "08012345678", "amount": 100})
    resp = client.get("/api/transactions", headers=auth_header(bob["token"]))
    assert resp.json()["transactions"] == []


def test_send_and_verify_otp_in_echo_mode(client):
    resp = client.post("/api/auth/send-otp", json={"email": "a@x.com", "phone": None, "type": "email"})
    assert resp.status_code == 200
    body = resp.json()
    assert body["success"] is True
    assert body["delivered"] is False
    otp = body["otp"]

    resp = client.post("/api/auth/verify-otp", json={"email": "a@x.com", "otp": "000000"})
    assert resp.status_code == 400
    assert resp.json()["message"] == "Invalid OTP. Please try again."

    resp = client.post("/api/auth/verify-otp", json={"email": "a@x.com", "otp": otp})
    assert resp.status_code == 200
    assert resp.json() == {"success": True, "message": "OTP verified successfully"}

    resp = client.post("/api/auth/verify-otp", json={"email": "a@x.com", "otp": otp})
    assert resp.status_code == 400
    assert resp.json()["message"] == "No OTP found. Please request a new one."


def test_expired_otp_via_api(client, clock):
    otp = client.post("/api/auth/send-otp", json={"phone": "08012345678", "type": "phone"}).json()["otp"]
    clock.advance(300)
    resp = client.post("/api/auth/verify-otp", json={"phone": "08012345678", "otp": otp})
    assert resp.status_code == 400
    assert resp.json()["message"] == "OTP expired. Please request a new one."


@pytest.mark.parametrize("payload,message", [
    ({"type": "email"}, "Email or phone number required"),
    ({"email": "a@x.com", "type": "fax"}, "Verification type must be 'email' or 'phone'"),
    ({"email": "a@x.com", "type": "phone"}, "Phone number required for SMS verification"),
    ({"phone": "12345", "type": "phone"}, "Please enter a valid Nigerian phone number"),
])
def test_send_otp_validation(client, payload, message):
    resp = client.post("/api/auth/send-otp", json=payload)
    assert resp.status_code == 400
    assert resp.json() == {"success": False, "message": message}


def test_verify_otp_requires_code(client):
    resp = client.post("/api/auth/verify-otp", json={"email": "a@x.com"})
    assert resp.status_code == 400
    assert resp.json()["message"] == "Identifier and OTP required"


def test_otp_not_echoed_when_echo_disabled(settings, clock):
    settings.otp_echo = False
    client = TestClient(create_app(settings, clock=clock))
    body = client.post("/api/auth/send-otp", json={"email": "a@x.com", "type": "email"}).json()
    assert body["success"] is True
    assert "otp" not in body


def test_delivery_failure_is_surfaced(client, services):
    class BrokenSMS:
        enabled = True

        def send(self, recipient, subject, body, html=None):
            return DeliveryResult(delivered=False, channel="phone", error="gateway timeout")

    services.notifications.notifiers["phone"] = BrokenSMS()
    body = client.post("/api/auth/send-otp", json={"phone": "08012345678", "type": "phone"}).json()
    assert body["success"] is True
    assert body["delivered"] is False
    assert body["message"] == "OTP generated but delivery failed. Please try again."
    # the code is pending regardless of delivery
    assert services.otp.pending("08012345678") is not None


def test_support_ticket_submission(client, services):
    resp = client.post("/api/support/submit", json={
        "name": "Ada", "email": "a@x.com", "phone": "08012345678",
        "category": "billing", "subject": "Double charge", "message": "I was charged twice",
    })
    assert resp.status_code == 200
    ticket = resp.json()["ticket"]
    assert ticket["status"] == "open"
    assert re.match(r"^SUP-\d+-[A-Z0-9]{5}$", ticket["ticketId"])
    assert services.tickets.records[0]["subject"] == "Double charge"

    resp = client.post("/api/support/submit", json={"name": "Ada"})
    assert resp.status_code == 400
    assert resp.json()["message"] == "All fields are required"


def test_profile_read_and_partial_update(client, register_user):
    headers = auth_header(register_user()["token"])

    resp = client.get("/api/profile", headers=headers)
    assert resp.status_code == 200
    user = resp.json()["user"]
    assert "password" not in user
    assert user["name"] == "Ada"

    resp = client.put("/api/profile", headers=headers, json={"aboutMe": "Loves bills", "profilePicture": "data:image/png;base64,AAAA"})
    assert resp.json()["user"]["aboutMe"] == "Loves bills"

    resp = client.put("/api/profile", headers=headers, json={"aboutMe": ""})
    assert resp.status_code == 200
    body = resp.json()
    assert body["message"] == "Profile updated successfully"
    assert body["user"]["aboutMe"] == ""
    assert body["user"]["name"] == "Ada"
    assert body["user"]["phone"] == "08012345678"
    assert body["user"]["profilePicture"] == "data:image/png;base64,AAAA"
    assert body["user"]["updatedAt"]
    assert "password" not in body["user"]


def test_profile_rejects_blank_name(client, register_user):
    headers = auth_header(register_user()["token"])
    resp = client.put("/api/profile", headers=headers, json={"name": ""})
    assert resp.status_code == 400
    assert client.get("/api/profile", headers=headers).json()["user"]["name"] == "Ada"


def test_profile_for_unknown_user_is_404(client, services):
    token = services.auth.issue_token(99, "ghost@x.com", "Ghost")
    resp = client.get("/api/profile", headers=auth_header(token))
    assert resp.status_code == 404
    assert resp.json() == {"success": False, "message": "User not found"}


def test_unknown_route_uses_error_envelope(client):
    resp = client.get("/api/nope")
    assert resp.status_code == 404
    assert resp.json()["success"] is False


def test_data_survives_restart(settings, clock, register_user, client):
    registered = register_user()
    client.post("/api/airtime/purchase", headers=auth_header(registered["token"]), json={"network": "MTN", "phone": "08012345678", "amount": 50})

    restarted = TestClient(create_app(settings, clock=clock))
    resp = restarted.post("/api/auth/login", json={"email": "a@x.com", "password": "secret1"})
    assert resp.status_code == 200
    token = resp.json()["token"]
    assert len(restarted.get("/api/transactions", headers=auth_header(token)).json()["transactions"]) == 1


def test_app_starts_with_malformed_records_on_disk(settings, clock, data_dir):
    data_dir.mkdir(parents=True)
    (data_dir / "users.json").write_text(json.dumps(["junk"]))
    (data_dir / "otps.json").write_text(json.dumps({"a@x.com": "123456", "b@x.com": {"otp": "123456", "expiresAt": "soon"}}))

    client = TestClient(create_app(settings, clock=clock))
    resp = client.post("/api/auth/register", json={
        "name": "Ada", "email": "a@x.com", "phone": "08012345678", "password": "secret1",
    })
    assert resp.status_code == 200
    assert resp.json()["user"]["id"] == 1

    resp = client.post("/api/auth/verify-otp", json={"email": "a@x.com", "otp": "123456"})
    assert resp.status_code == 400
    assert resp.json()["message"] == "No OTP found. Please request a new one."
