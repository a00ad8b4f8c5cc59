import asyncio
from types import SimpleNamespace

import stripe
from bson import ObjectId

APPLICATION = {
    "loanTitle": "X",
    "loanAmount": "500",
    "category": "Personal",
    "firstName": "A",
    "lastName": "B",
    "userEmail": "a@x.com",
}


def test_root_and_health(client):
    resp = client.get("/")
    assert resp.status_code == 200
    assert resp.text == "LoanLink Server is running"

    health = client.get("/health")
    assert health.status_code == 200
    assert health.json()["status"] == "healthy"
    assert health.headers["X-Content-Type-Options"] == "nosniff"


def test_apply_then_list_user_applications(client):
    resp = client.post("/apply-loan", json=APPLICATION)
    assert resp.status_code == 201
    inserted_id = resp.json()["insertedId"]
    assert ObjectId.is_valid(inserted_id)

    resp = client.get("/loan-applications/user/a@x.com")
    assert resp.status_code == 200
    applications = resp.json()
    assert len(applications) == 1
    application = applications[0]
    assert application["_id"] == inserted_id
    assert application["status"] == "pending"
    assert application["applicationFeeStatus"] == "unpaid"
    assert application["loanAmount"] == 500
    assert isinstance(application["application_date"], str)

    assert client.get("/my-loans/a@x.com").json() == applications
    assert len(client.get("/pending-loans").json()) == 1


def test_apply_missing_field_is_bad_request(client, database):
    payload = {key: value for key, value in APPLICATION.items() if key != "category"}

    resp = client.post("/apply-loan", json=payload)

    assert resp.status_code == 400
    error = resp.json()["error"]
    assert error["code"] == "validation_error"
    assert "category" in error["message"]
    assert asyncio.run(database["loanApplications"].count_documents({})) == 0


def test_list_applications_newest_first_and_cancel(client):
    first = client.post("/apply-loan", json=APPLICATION).json()["insertedId"]
    second = client.post("/apply-loan", json=dict(APPLICATION, userEmail="b@x.com")).json()["insertedId"]

    listed = client.get("/loan-applications").json()
    dates = [a["application_date"] for a in listed]
    assert dates == sorted(dates, reverse=True)
    assert {a["_id"] for a in listed} == {first, second}

    resp = client.delete(f"/loan-applications/{first}")
    assert resp.status_code == 200
    assert resp.json() == {"acknowledged": True, "deletedCount": 1}

    assert client.delete(f"/loan-applications/{first}").status_code == 404
    assert client.delete("/loan-applications/not-a-valid-id").status_code == 400


def test_loan_catalog_endpoints(client, database):
    asyncio.run(database["loans"].insert_many([
        {"title": "Home Equity", "category": "Mortgage"},
        {"title": "Auto Loan", "category": "Vehicle"},
    ]))

    assert len(client.get("/loans").json()) == 2
    home = client.get("/loans", params={"search": "home"}).json()
    assert [l["title"] for l in home] == ["Home Equity"]
    assert len(client.get("/loans", params={"search": "loan"}).json()) == 1

    loan_id = home[0]["_id"]
    assert client.get(f"/loans/{loan_id}").json()["title"] == "Home Equity"

    resp = client.put(f"/loans/{loan_id}", json={"interestRate": 6.1})
    assert resp.status_code == 200
    assert resp.json()["matchedCount"] == 1
    assert client.get(f"/loans/{loan_id}").json()["interestRate"] == 6.1

    resp = client.delete(f"/loans/{loan_id}")
    assert resp.json()["deletedCount"] == 1
    assert client.get(f"/loans/{loan_id}").status_code == 404


def test_create_loan(client):
    resp = client.post("/loans", json={"title": "Student Loan", "category": "Education"})

    assert resp.status_code == 201
    loan_id = resp.json()["insertedId"]
    assert client.get(f"/loans/{loan_id}").json()["category"] == "Education"


def test_malformed_loan_id_is_bad_request_not_not_found(client):
    resp = client.get("/loans/not-a-valid-id")

    assert resp.status_code == 400
    assert resp.json()["error"]["code"] == "validation_error"
    assert client.put("/loans/not-a-valid-id", json={"title": "x"}).status_code == 400
    assert client.delete(f"/loans/{ObjectId()}").status_code == 404


def test_loan_write_with_operator_field_is_bad_request(client):
    loan_id = client.post("/loans", json={"title": "Student Loan"}).json()["insertedId"]

    resp = client.put(f"/loans/{loan_id}", json={"$inc": 1})

    assert resp.status_code == 400
    assert resp.json()["error"]["code"] == "validation_error"
    assert client.post("/loans", json={"$where": "1"}).status_code == 400


def test_emails_are_stored_and_matched_exactly_as_sent(client):
    assert client.post("/user", json={"email": "Bob@Example.COM"}).status_code == 200
    assert client.get("/users/Bob@Example.COM").json()["email"] == "Bob@Example.COM"
    assert client.get("/user/role/Bob@Example.COM").json() == {"role": "borrower"}

    assert client.post("/user", json={"email": "dev@localhost"}).status_code == 200
    assert client.post("/apply-loan", json=dict(APPLICATION, userEmail="Ana@Example.COM")).status_code == 201
    applications = client.get("/my-loans/Ana@Example.COM").json()
    assert [a["userEmail"] for a in applications] == ["Ana@Example.COM"]


def test_user_upsert_role_lookup_and_role_update(client):
    first = client.post("/user", json={"email": "ana@example.com", "name": "Ana"})
    assert first.status_code == 200
    assert "insertedId" in first.json()

    again = client.post("/user", json={"email": "ana@example.com"})
    assert again.json()["matchedCount"] == 1

    assert len(client.get("/users").json()) == 1
    profile = client.get("/users/ana@example.com").json()
    assert profile["name"] == "Ana"
    assert isinstance(profile["_id"], str)
    assert client.get("/user/role/ana@example.com").json() == {"role": "borrower"}

    changed = client.patch("/users/role/ana@example.com", json={"role": "admin"})
    assert changed.status_code == 200
    assert changed.json()["status"] == "updated"
    assert client.get("/user/role/ana@example.com").json() == {"role": "admin"}

    repeated = client.patch("/users/role/ana@example.com", json={"role": "admin"})
    assert repeated.status_code == 200
    assert repeated.json()["status"] == "unchanged"

    invalid = client.patch("/users/role/ana@example.com", json={"role": "owner"})
    assert invalid.status_code == 400


def test_unknown_user_is_not_found(client):
    assert client.get("/users/ghost@example.com").status_code == 404
    assert client.get("/user/role/ghost@example.com").status_code == 404
    assert client.patch("/users/role/ghost@example.com", json={"role": "admin"}).status_code == 404


def test_user_upsert_requires_email(client):
    resp = client.post("/user", json={"name": "Anonymous"})

    assert resp.status_code == 400
    assert "email" in resp.json()["error"]["message"]


def test_default_role_comes_from_settings(client, test_settings):
    test_settings.DEFAULT_USER_ROLE = "customer"

    client.post("/user", json={"email": "cara@example.com"})

    assert client.get("/user/role/cara@example.com").json() == {"role": "customer"}


def test_create_payment_intent(client, monkeypatch):
    captured = {}

    def fake_create(**kwargs):
        captured.update(kwargs)
        return SimpleNamespace(client_secret="pi_abc_secret_def")

    monkeypatch.setattr(stripe.PaymentIntent, "create", fake_create)

    resp = client.post("/create-payment-intent", json={"price": 15.5})

    assert resp.status_code == 200
    assert resp.json() == {"clientSecret": "pi_abc_secret_def"}
    assert captured["amount"] == 1550
    assert captured["currency"] == "usd"


def test_payment_gateway_error_is_reported(client, monkeypatch):
    def fake_create(**kwargs):
        raise stripe.AuthenticationError("Invalid API Key provided: sk_test_****")

    monkeypatch.setattr(stripe.PaymentIntent, "create", fake_create)

    resp = client.post("/create-payment-intent", json={"price": 15})

    assert resp.status_code == 502
    assert resp.json()["error"]["message"] == "Invalid API Key provided: sk_test_****"


def test_store_failure_is_service_unavailable(client, store):
    from loanlink.core.exceptions import StoreError

    async def broken_collection(name):
        raise StoreError("Database service unavailable: connection refused")

    store.get_collection = broken_collection

    resp = client.get("/pending-loans")

    assert resp.status_code == 503
    assert resp.json()["error"]["code"] == "store_unavailable"
