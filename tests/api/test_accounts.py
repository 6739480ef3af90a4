"""
Tests for account API endpoints.

These test the HTTP layer: status codes, response format
and error mapping. Business rules are tested in
tests/services/.
"""

from decimal import Decimal


def open_via_api(client, customer_id, account_type="Saving", currency="USD", deposit="5.00", **extra):
    return client.post("/accounts", json={
        "customer_id": customer_id,
        "account_type": account_type,
        "currency": currency,
        "initial_deposit": deposit,
        **extra,
    })


class TestOpenAccount:

    def test_open_returns_201(self, client, customers):
        response = open_via_api(client, customers["jane"])
        assert response.status_code == 201

    def test_open_returns_data(self, client, customers):
        data = open_via_api(client, customers["jane"], deposit="12.50").json()
        assert len(data["account_no"]) == 9
        assert data["account_name"] == "Jane Doe's Saving Account (USD)"
        assert data["currency"] == "USD"
        assert Decimal(data["balance"]) == Decimal("12.50")
        assert data["status"] == "Active"

    def test_second_saving_returns_422(self, client, customers):
        open_via_api(client, customers["jane"])
        response = open_via_api(client, customers["jane"])
        assert response.status_code == 422
        assert response.json()["detail"]["kind"] == "limit_exceeded"

    def test_unknown_customer_returns_404(self, client, customers):
        response = open_via_api(client, 999)
        assert response.status_code == 404
        assert response.json()["detail"]["kind"] == "not_found"

    def test_below_minimum_returns_400(self, client, customers):
        response = open_via_api(client, customers["jane"], currency="KHR", deposit="100")
        assert response.status_code == 400
        assert "Minimum opening deposit" in response.json()["detail"]["message"]

    def test_fixed_with_maturity(self, client, customers):
        response = open_via_api(
            client, customers["jane"], "Fixed", maturity_date="2027-03-10",
        )
        assert response.status_code == 201
        assert response.json()["maturity_date"] == "2027-03-10"


class TestGetAccount:

    def test_get_by_id(self, client, customers):
        created = open_via_api(client, customers["jane"]).json()
        response = client.get(f"/accounts/{created['id']}")
        assert response.status_code == 200
        assert response.json()["account_no"] == created["account_no"]

    def test_get_by_number(self, client, customers):
        created = open_via_api(client, customers["jane"]).json()
        response = client.get(f"/accounts/by-number/{created['account_no']}")
        assert response.json()["id"] == created["id"]

    def test_amounts_use_currency_scale(self, client, customers):
        usd = open_via_api(client, customers["jane"], deposit="40.00").json()
        khr = open_via_api(client, customers["jane"], currency="KHR", deposit="20000").json()

        usd_data = client.get(f"/accounts/{usd['id']}").json()
        khr_data = client.get(f"/accounts/{khr['id']}").json()
        assert usd_data["balance"] == "40.00"
        assert usd_data["over_limit"] == "0.00"
        assert khr_data["balance"] == "20000"

    def test_missing_account_returns_404(self, client):
        assert client.get("/accounts/9999").status_code == 404

    def test_malformed_number_returns_400(self, client):
        response = client.get("/accounts/by-number/12ab")
        assert response.status_code == 400
        assert response.json()["detail"]["kind"] == "validation_error"


class TestFreezeAndDelete:

    def test_freeze_then_deposit_returns_409(self, client, customers):
        created = open_via_api(client, customers["jane"]).json()

        response = client.patch(
            f"/accounts/{created['account_no']}/freeze", json={"frozen": True},
        )
        assert response.status_code == 200
        assert response.json()["status"] == "Frozen"

        response = client.post("/transactions/deposit", json={
            "account_id": created["id"], "amount": "1.00",
        })
        assert response.status_code == 409
        assert response.json()["detail"]["kind"] == "state_error"

    def test_delete_hides_account(self, client, customers):
        created = open_via_api(client, customers["jane"]).json()

        response = client.delete(f"/accounts/{created['account_no']}")
        assert response.status_code == 200
        assert response.json()["status"] == "Deleted"

        assert client.get(f"/accounts/{created['id']}").status_code == 404
        assert client.delete(f"/accounts/{created['account_no']}").status_code == 409


class TestCustomerViews:

    def test_list_accounts(self, client, customers):
        open_via_api(client, customers["jane"])
        open_via_api(client, customers["jane"], "Checking")
        response = client.get(f"/customers/{customers['jane']}/accounts")
        assert len(response.json()) == 2

    def test_account_types(self, client, customers):
        open_via_api(client, customers["jane"], "Checking")
        data = client.get(f"/customers/{customers['jane']}/account-types").json()
        assert data["available"] == [
            "Saving Account (USD)",
            "Saving Account (KHR)",
            "Fixed Account",
        ]

    def test_account_limits(self, client, customers):
        open_via_api(client, customers["jane"], currency="KHR", deposit="20000")
        data = client.get(f"/customers/{customers['jane']}/account-limits").json()
        assert data["limits"]["Saving (KHR)"] == "1/1"
        assert data["limits"]["Saving (USD)"] == "0/1"


class TestDailyLimit:

    def test_saving_account_limit(self, client, customers):
        created = open_via_api(client, customers["jane"], deposit="100.00").json()
        client.post("/transactions/withdraw", json={
            "account_id": created["id"], "amount": "40.00",
        })

        data = client.get(f"/accounts/{created['id']}/daily-limit").json()
        assert data["subject_to_limit"] is True
        assert Decimal(data["daily_limit"]) == Decimal("5000")
        assert Decimal(data["remaining"]) == Decimal("4960")
        assert data["remaining"] == "4960.00"

    def test_checking_account_has_no_limit(self, client, customers):
        created = open_via_api(client, customers["jane"], "Checking").json()
        data = client.get(f"/accounts/{created['id']}/daily-limit").json()
        assert data["subject_to_limit"] is False
        assert data["remaining"] is None
