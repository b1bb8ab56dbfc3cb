"""
Integration tests for the enterprise billing endpoints.
"""

from datetime import date

import pytest

from packages.billing.repositories.usage_repository import UsageRepository

JANUARY = date(2025, 1, 1)
GIB = 1024**3


async def _meter_january(user_id: int):
    repo = UsageRepository()
    await repo.add_to_period(
        user_id, JANUARY, resources_created=10, files_uploaded=2, storage_bytes=2 * GIB
    )
    await repo.add_feature_activation(user_id, JANUARY, "chatbot", 3)


@pytest.mark.asyncio
class TestAccess:
    @pytest.mark.parametrize(
        "method,path",
        [
            ("get", "/api/v1/billing/usage"),
            ("get", "/api/v1/billing/calculate"),
            ("get", "/api/v1/billing/invoices"),
            ("post", "/api/v1/billing/generate-invoice"),
        ],
    )
    async def test_anonymous_is_unauthorized(self, client, method, path):
        response = await getattr(client, method)(path)

        assert response.status_code == 401

    async def test_individual_is_forbidden(
        self, client, individual_account, auth_headers
    ):
        response = await client.get(
            "/api/v1/billing/usage", headers=auth_headers(individual_account)
        )

        assert response.status_code == 403
        assert response.json()["error"] == "forbidden"


@pytest.mark.asyncio
class TestUsageAndCalculation:
    async def test_current_usage_starts_empty(
        self, client, enterprise_account, auth_headers
    ):
        response = await client.get(
            "/api/v1/billing/usage", headers=auth_headers(enterprise_account)
        )

        assert response.status_code == 200
        body = response.json()
        assert body["resourcesCreated"] == 0
        assert body["features"] == {}
        assert len(body["period"]) == 7

    async def test_usage_counts_created_links(
        self, client, enterprise_account, auth_headers
    ):
        headers = auth_headers(enterprise_account)
        await client.post(
            "/api/v1/shorten",
            json={"url": "https://example.com", "metadata": {"isInterestForm": True}},
            headers=headers,
        )

        body = (await client.get("/api/v1/billing/usage", headers=headers)).json()

        assert body["resourcesCreated"] == 1
        assert body["features"] == {"interest_form": 1}

    async def test_calculate_month(self, client, enterprise_account, auth_headers):
        await _meter_january(enterprise_account.user.id)

        response = await client.get(
            "/api/v1/billing/calculate?month=2025-01",
            headers=auth_headers(enterprise_account),
        )

        assert response.status_code == 200
        body = response.json()
        assert body["period"] == "2025-01"
        assert body["breakdown"]["totalAmount"] == 2.62
        assert body["breakdown"]["features"]["chatbot"]["amount"] == 1.5

    async def test_invalid_month(self, client, enterprise_account, auth_headers):
        response = await client.get(
            "/api/v1/billing/calculate?month=2025-13",
            headers=auth_headers(enterprise_account),
        )

        assert response.status_code == 400


@pytest.mark.asyncio
class TestInvoices:
    async def test_generate_and_pay(self, client, enterprise_account, auth_headers):
        headers = auth_headers(enterprise_account)
        await _meter_january(enterprise_account.user.id)

        generated = await client.post(
            "/api/v1/billing/generate-invoice", json={"month": "2025-01"}, headers=headers
        )
        invoice_id = generated.json()["id"]
        paid = await client.post(
            f"/api/v1/billing/invoices/{invoice_id}/pay",
            json={"paymentReference": "wire_42", "paymentMethod": "bank_transfer"},
            headers=headers,
        )
        paid_again = await client.post(
            f"/api/v1/billing/invoices/{invoice_id}/pay",
            json={"paymentReference": "wire_43"},
            headers=headers,
        )

        assert generated.status_code == 201
        assert generated.json()["amount"] == 2.62
        assert generated.json()["invoiceType"] == "monthly_usage"
        assert generated.json()["status"] == "pending"
        assert paid.status_code == 200
        assert paid.json()["status"] == "paid"
        assert paid.json()["paymentReference"] == "wire_42"
        assert paid_again.status_code == 409

    async def test_duplicate_invoice(self, client, enterprise_account, auth_headers):
        headers = auth_headers(enterprise_account)
        await _meter_january(enterprise_account.user.id)
        await client.post(
            "/api/v1/billing/generate-invoice", json={"month": "2025-01"}, headers=headers
        )

        response = await client.post(
            "/api/v1/billing/generate-invoice", json={"month": "2025-01"}, headers=headers
        )

        assert response.status_code == 409

    async def test_month_without_usage(self, client, enterprise_account, auth_headers):
        response = await client.post(
            "/api/v1/billing/generate-invoice",
            json={"month": "2024-06"},
            headers=auth_headers(enterprise_account),
        )

        assert response.status_code == 404

    async def test_list_includes_registration_fee(
        self, client, enterprise_account, auth_headers
    ):
        response = await client.get(
            "/api/v1/billing/invoices", headers=auth_headers(enterprise_account)
        )

        assert response.status_code == 200
        invoices = response.json()["invoices"]
        assert len(invoices) == 1
        assert invoices[0]["invoiceType"] == "registration_fee"
        assert invoices[0]["status"] == "paid"
        assert invoices[0]["amount"] == 10.0

    async def test_cannot_pay_someone_elses_invoice(
        self, client, enterprise_account, auth_headers
    ):
        await _meter_january(enterprise_account.user.id)
        generated = await client.post(
            "/api/v1/billing/generate-invoice",
            json={"month": "2025-01"},
            headers=auth_headers(enterprise_account),
        )
        other = await client.post(
            "/api/v1/auth/register/enterprise",
            json={
                "organizationName": "Initech",
                "password": "initech-secret",
                "website": "https://initech.example.com",
            },
        )
        other_id = other.json()["user"]["id"]
        await client.post(
            "/api/v1/auth/enterprise/activate",
            json={"userId": other_id, "paymentReference": "pay_x"},
        )
        other_headers = {"Authorization": f"Bearer {other.json()['token']}"}

        response = await client.post(
            f"/api/v1/billing/invoices/{generated.json()['id']}/pay",
            json={"paymentReference": "steal"},
            headers=other_headers,
        )

        assert response.status_code == 404
