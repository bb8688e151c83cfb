"""Integration tests for the mock signing server"""

import hashlib
import pytest
from fastapi.testclient import TestClient
from mocks.signing_server.main import app, payment_hash


@pytest.fixture
def signing_client() -> TestClient:
    return TestClient(app)


@pytest.fixture
def signing_body() -> dict:
    return {
        "txnid": "txn_1700000000000_0",
        "amount": "1019.00",
        "productinfo": "Influencer Starter Package",
        "firstname": "Asha Rao",
        "email": "asha@example.com",
        "phone": "9876543210",
        "surl": "http://localhost:3000/payment-success?txnId=txn_1700000000000_0&status=success",
        "furl": "http://localhost:3000/payment-failure?txnId=txn_1700000000000_0&status=failure",
        "udf1": "user_42",
        "udf2": "pkg_starter",
        "udf3": "influencer",
        "udf4": "one-time",
        "udf5": "",
    }


def test_hash_covers_key_fields_and_salt(signing_client: TestClient, signing_body: dict):
    response = signing_client.post("/api/payu-hash", json=signing_body)

    assert response.status_code == 200
    data = response.json()
    expected = "|".join(
        ["test_key", "txn_1700000000000_0", "1019.00", "Influencer Starter Package", "Asha Rao", "asha@example.com",
         "user_42", "pkg_starter", "influencer", "one-time", "", "", "", "", "", "", "test_salt"]
    )
    assert data["hash"] == hashlib.sha512(expected.encode("utf-8")).hexdigest()
    assert data["hash"] == payment_hash(data, "test_salt")
    assert data["payuBaseUrl"] == "https://test.payu.in/_payment"
    assert data["key"] == "test_key"


def test_standing_instruction_fields_pass_through(signing_client: TestClient, signing_body: dict):
    signing_body["si"] = "1"
    signing_body["si_details"] = '{"billingCycle": "MONTHLY"}'

    data = signing_client.post("/api/payu-hash", json=signing_body).json()

    assert data["si"] == "1"
    assert data["si_details"] == '{"billingCycle": "MONTHLY"}'


def test_missing_fields_rejected(signing_client: TestClient, signing_body: dict):
    del signing_body["email"]

    response = signing_client.post("/api/payu-hash", json=signing_body)

    assert response.status_code == 400
    assert "Missing" in response.json()["error"]


@pytest.mark.parametrize("mode,status_code,text", [("rate_limit", 429, "Too many Requests"), ("unavailable", 503, "")])
def test_failure_modes(signing_client: TestClient, signing_body: dict, mode: str, status_code: int, text: str):
    response = signing_client.post("/api/payu-hash", json=signing_body, headers={"X-Mock-Failure": mode})

    assert response.status_code == status_code
    assert response.text == text
