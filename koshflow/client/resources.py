"""
KOSHFLOW Client - Client - Resources

Groupes d'endpoints métier. Tous passent par ApiClient.request_with_retry:
cycle 401 → refresh puis retry avec backoff sur erreurs transitoires.
"""

from datetime import date
from typing import TYPE_CHECKING, Any, Dict, Optional, Union

from ..network.interfaces import HttpMethod

if TYPE_CHECKING:
    from .api_client import ApiClient

DateLike = Union[str, date]

STOCK_ADJUSTMENT_TYPES = ("IN", "OUT", "ADJUSTMENT")
SALES_GROUPINGS = ("day", "week", "month")


def _iso(value: Optional[DateLike]) -> Optional[str]:
    if isinstance(value, date):
        return value.isoformat()
    return value


class Resource:
    """Base: un préfixe d'URL et une référence au client."""

    path: str = ""

    def __init__(self, client: "ApiClient") -> None:
        self._client = client

    async def _call(
        self,
        suffix: str = "",
        method: HttpMethod = HttpMethod.GET,
        json: Any = None,
        params: Optional[Dict[str, Any]] = None,
    ) -> Any:
        return await self._client.request_with_retry(
            f"{self.path}{suffix}", method, json=json, params=params
        )


class CrudResource(Resource):
    """list / get / create / update / delete sur un préfixe."""

    async def list(self, **filters: Any) -> Any:
        """Liste filtrée. Les filtres None sont ignorés."""
        return await self._call(params=filters)

    async def get(self, item_id: str) -> Any:
        return await self._call(f"/{item_id}")

    async def create(self, data: Dict[str, Any]) -> Any:
        return await self._call(method=HttpMethod.POST, json=data)

    async def update(self, item_id: str, data: Dict[str, Any]) -> Any:
        return await self._call(f"/{item_id}", HttpMethod.PUT, json=data)

    async def delete(self, item_id: str) -> Any:
        return await self._call(f"/{item_id}", HttpMethod.DELETE)


class ContactsResource(CrudResource):
    path = "/contacts"

    async def list(
        self,
        search: Optional[str] = None,
        type: Optional[str] = None,
        page: Optional[int] = None,
        limit: Optional[int] = None,
    ) -> Any:
        return await super().list(search=search, type=type, page=page, limit=limit)

    async def summary(self, contact_id: str) -> Any:
        return await self._call(f"/{contact_id}/summary")


class ProductsResource(CrudResource):
    path = "/products"

    async def list(
        self,
        search: Optional[str] = None,
        type: Optional[str] = None,
        page: Optional[int] = None,
        limit: Optional[int] = None,
    ) -> Any:
        return await super().list(search=search, type=type, page=page, limit=limit)

    async def adjust_stock(
        self,
        product_id: str,
        quantity: float,
        type: str,
        notes: Optional[str] = None,
        cost_price: Optional[float] = None,
    ) -> Any:
        """
        Mouvement de stock.

        Raises:
            ValueError: type hors IN / OUT / ADJUSTMENT
        """
        if type not in STOCK_ADJUSTMENT_TYPES:
            raise ValueError(f"Invalid stock adjustment type: {type}")

        payload: Dict[str, Any] = {"quantity": quantity, "type": type}
        if notes is not None:
            payload["notes"] = notes
        if cost_price is not None:
            payload["costPrice"] = cost_price
        return await self._call(f"/{product_id}/adjust-stock", HttpMethod.POST, json=payload)

    async def low_stock(self) -> Any:
        return await self._call("/inventory/low-stock")


class TransactionsResource(CrudResource):
    path = "/transactions"

    async def list(
        self,
        type: Optional[str] = None,
        status: Optional[str] = None,
        contact_id: Optional[str] = None,
        start_date: Optional[DateLike] = None,
        end_date: Optional[DateLike] = None,
        page: Optional[int] = None,
        limit: Optional[int] = None,
        sort_by: Optional[str] = None,
        sort_order: Optional[str] = None,
    ) -> Any:
        return await self._call(
            params={
                "type": type,
                "status": status,
                "contactId": contact_id,
                "startDate": _iso(start_date),
                "endDate": _iso(end_date),
                "page": page,
                "limit": limit,
                "sortBy": sort_by,
                "sortOrder": sort_order,
            }
        )

    async def update_status(
        self, transaction_id: str, status: str, comments: Optional[str] = None
    ) -> Any:
        return await self._call(
            f"/{transaction_id}/status",
            HttpMethod.PATCH,
            json={"status": status, "comments": comments},
        )

    async def summary(
        self,
        start_date: Optional[DateLike] = None,
        end_date: Optional[DateLike] = None,
        type: Optional[str] = None,
    ) -> Any:
        return await self._call(
            "/summary/overview",
            params={"startDate": _iso(start_date), "endDate": _iso(end_date), "type": type},
        )


class TaxesResource(CrudResource):
    path = "/taxes"

    async def list(
        self,
        search: Optional[str] = None,
        type: Optional[str] = None,
        page: Optional[int] = None,
        limit: Optional[int] = None,
    ) -> Any:
        return await super().list(search=search, type=type, page=page, limit=limit)


class AccountsResource(CrudResource):
    path = "/accounts"

    async def list(
        self,
        type: Optional[str] = None,
        parent_id: Optional[str] = None,
        page: Optional[int] = None,
        limit: Optional[int] = None,
    ) -> Any:
        return await self._call(
            params={"type": type, "parentId": parent_id, "page": page, "limit": limit}
        )

    async def hierarchy(self) -> Any:
        return await self._call("/hierarchy/tree")

    async def balance(
        self,
        account_id: str,
        start_date: Optional[DateLike] = None,
        end_date: Optional[DateLike] = None,
    ) -> Any:
        return await self._call(
            f"/{account_id}/balance",
            params={"startDate": _iso(start_date), "endDate": _iso(end_date)},
        )


class ReportsResource(Resource):
    """Rapports financiers (lecture seule)."""

    path = "/reports"

    async def dashboard(
        self, start_date: Optional[DateLike] = None, end_date: Optional[DateLike] = None
    ) -> Any:
        return await self._call(
            "/dashboard", params={"startDate": _iso(start_date), "endDate": _iso(end_date)}
        )

    async def profit_loss(self, start_date: DateLike, end_date: DateLike) -> Any:
        return await self._call(
            "/profit-loss", params={"startDate": _iso(start_date), "endDate": _iso(end_date)}
        )

    async def balance_sheet(self, as_of_date: Optional[DateLike] = None) -> Any:
        return await self._call("/balance-sheet", params={"asOfDate": _iso(as_of_date)})

    async def cash_flow(self, start_date: DateLike, end_date: DateLike) -> Any:
        return await self._call(
            "/cash-flow", params={"startDate": _iso(start_date), "endDate": _iso(end_date)}
        )

    async def aging(self, as_of_date: Optional[DateLike] = None) -> Any:
        return await self._call("/aging", params={"asOfDate": _iso(as_of_date)})

    async def sales(
        self,
        start_date: DateLike,
        end_date: DateLike,
        group_by: Optional[str] = None,
    ) -> Any:
        """
        Raises:
            ValueError: group_by hors day / week / month
        """
        if group_by is not None and group_by not in SALES_GROUPINGS:
            raise ValueError(f"Invalid sales grouping: {group_by}")
        return await self._call(
            "/sales",
            params={
                "startDate": _iso(start_date),
                "endDate": _iso(end_date),
                "groupBy": group_by,
            },
        )
