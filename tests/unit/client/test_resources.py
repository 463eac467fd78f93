"""
Tests unitaires: Client - Resources

Chemins, méthodes et paramètres de query des groupes d'endpoints métier.
"""

from datetime import date

import pytest

from koshflow.client import ApiClient, CrudResource
from koshflow.network import ServerError

from tests.fake_backend import FakeBackend


class TestCrudResources:
    """list / get / create / update / delete."""

    @pytest.mark.asyncio
    @pytest.mark.parametrize("name", ["contacts", "products", "transactions", "taxes", "accounts"])
    async def test_crud_paths(self, authed_client: ApiClient, name: str) -> None:
        resource = getattr(authed_client, name)
        assert isinstance(resource, CrudResource)

        listed = await resource.list()
        fetched = await resource.get("id-1")
        created = await resource.create({"name": "X"})
        updated = await resource.update("id-1", {"name": "Y"})
        deleted = await resource.delete("id-1")

        assert (listed["method"], listed["path"], listed["params"]) == ("GET", f"/{name}", {})
        assert (fetched["method"], fetched["path"]) == ("GET", f"/{name}/id-1")
        assert (created["method"], created["json"]) == ("POST", {"name": "X"})
        assert (updated["method"], updated["path"], updated["json"]) == ("PUT", f"/{name}/id-1", {"name": "Y"})
        assert (deleted["method"], deleted["path"]) == ("DELETE", f"/{name}/id-1")

    @pytest.mark.asyncio
    async def test_list_filters_drop_none(self, authed_client: ApiClient) -> None:
        data = await authed_client.contacts.list(search="Sharma", type=None, page=2)

        assert data["params"] == {"search": "Sharma", "page": "2"}

    @pytest.mark.asyncio
    async def test_resources_retry_transient_errors(
        self, backend: FakeBackend, authed_client: ApiClient
    ) -> None:
        backend.script("GET", "/taxes", 503)

        data = await authed_client.taxes.list()

        assert data["path"] == "/taxes"
        assert len(backend.calls_to("/taxes")) == 2

    @pytest.mark.asyncio
    async def test_resources_refresh_on_401(self, backend: FakeBackend, authed_client: ApiClient) -> None:
        backend.expire_access_tokens()

        data = await authed_client.accounts.hierarchy()

        assert data["path"] == "/accounts/hierarchy/tree"
        assert backend.refresh_calls == 1

    @pytest.mark.asyncio
    async def test_resources_raise_after_retries(self, backend: FakeBackend, authed_client: ApiClient) -> None:
        backend.script("GET", "/products/inventory/low-stock", 500, 500, 500, 500)

        with pytest.raises(ServerError):
            await authed_client.products.low_stock()


class TestSpecificEndpoints:
    """Endpoints spécifiques par ressource."""

    @pytest.mark.asyncio
    async def test_contact_summary(self, authed_client: ApiClient) -> None:
        data = await authed_client.contacts.summary("c1")

        assert data["path"] == "/contacts/c1/summary"

    @pytest.mark.asyncio
    async def test_adjust_stock(self, authed_client: ApiClient) -> None:
        data = await authed_client.products.adjust_stock("p1", 5, "IN", cost_price=120.5)

        assert data["method"] == "POST"
        assert data["path"] == "/products/p1/adjust-stock"
        assert data["json"] == {"quantity": 5, "type": "IN", "costPrice": 120.5}

    @pytest.mark.asyncio
    async def test_adjust_stock_invalid_type(self, backend: FakeBackend, authed_client: ApiClient) -> None:
        with pytest.raises(ValueError):
            await authed_client.products.adjust_stock("p1", 5, "TRANSFER")

        assert backend.calls_to("/products/p1/adjust-stock") == []

    @pytest.mark.asyncio
    async def test_transactions_list_camel_case_params(self, authed_client: ApiClient) -> None:
        data = await authed_client.transactions.list(
            type="SALE",
            contact_id="c1",
            start_date=date(2026, 4, 1),
            end_date="2026-04-30",
            sort_by="date",
            sort_order="desc",
        )

        assert data["params"] == {
            "type": "SALE",
            "contactId": "c1",
            "startDate": "2026-04-01",
            "endDate": "2026-04-30",
            "sortBy": "date",
            "sortOrder": "desc",
        }

    @pytest.mark.asyncio
    async def test_transaction_update_status(self, authed_client: ApiClient) -> None:
        data = await authed_client.transactions.update_status("t1", "APPROVED", "ok")

        assert data["method"] == "PATCH"
        assert data["path"] == "/transactions/t1/status"
        assert data["json"] == {"status": "APPROVED", "comments": "ok"}

    @pytest.mark.asyncio
    async def test_transaction_summary(self, authed_client: ApiClient) -> None:
        data = await authed_client.transactions.summary(start_date="2026-04-01")

        assert data["path"] == "/transactions/summary/overview"
        assert data["params"] == {"startDate": "2026-04-01"}

    @pytest.mark.asyncio
    async def test_accounts_list_and_balance(self, authed_client: ApiClient) -> None:
        listed = await authed_client.accounts.list(parent_id="acc-root")
        balance = await authed_client.accounts.balance("acc-1", end_date=date(2026, 3, 31))

        assert listed["params"] == {"parentId": "acc-root"}
        assert balance["path"] == "/accounts/acc-1/balance"
        assert balance["params"] == {"endDate": "2026-03-31"}


class TestReports:
    """Rapports financiers."""

    @pytest.mark.asyncio
    async def test_report_paths(self, authed_client: ApiClient) -> None:
        reports = authed_client.reports

        assert (await reports.dashboard())["path"] == "/reports/dashboard"
        assert (await reports.profit_loss("2026-04-01", "2026-06-30"))["params"] == {
            "startDate": "2026-04-01",
            "endDate": "2026-06-30",
        }
        assert (await reports.balance_sheet())["params"] == {}
        assert (await reports.balance_sheet(date(2026, 3, 31)))["params"] == {"asOfDate": "2026-03-31"}
        assert (await reports.cash_flow("2026-04-01", "2026-06-30"))["path"] == "/reports/cash-flow"
        assert (await reports.aging())["path"] == "/reports/aging"

    @pytest.mark.asyncio
    async def test_sales_report_grouping(self, authed_client: ApiClient) -> None:
        data = await authed_client.reports.sales("2026-04-01", "2026-04-30", group_by="week")

        assert data["path"] == "/reports/sales"
        assert data["params"]["groupBy"] == "week"

    @pytest.mark.asyncio
    async def test_sales_report_invalid_grouping(self, authed_client: ApiClient) -> None:
        with pytest.raises(ValueError):
            await authed_client.reports.sales("2026-04-01", "2026-04-30", group_by="year")
