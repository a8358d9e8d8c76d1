"""
Paginated producers of item batches for wishlists, categories and searches.
"""
import asyncio
import logging
import math
import re
from enum import Enum
from typing import AsyncIterator, Awaitable, Callable, Dict, List, Optional, Any, Tuple

from ..exceptions import AuthenticationLostError, QueryError, RateLimitedError
from ..models.api_models import Item
from ..models.interfaces import IItemSource, IQueryClient
from ..models.stores import Store
from .error_handler import ErrorHandler

WISHLIST_PAGE_SIZE = 24  # fixed by the storefront
SEARCH_PAGE_SIZE = 20
PRODUCT_DETAIL_OPERATION = "GetSelectProduct"


class QueryKind(Enum):
    """Kind of paginated source, valued by its GraphQL operation name."""
    WISHLIST = "WishlistItems"
    CATEGORY = "CategoryV4"
    SEARCH = "SearchV4"


class PaginatedItemSource(IItemSource):
    """
    Walks every result page of one wishlist, category or search.

    One batch is yielded per result page (per product for categories, whose
    pages only carry product ids). Failures of the first page propagate;
    later pages that fail with a plain ``QueryError`` are logged and skipped.
    Authentication loss and rate limiting always propagate.
    """

    def __init__(self, client: IQueryClient, store: Store, kind: QueryKind, sha256_hash: str,
                 query: Optional[str] = None, title_regex: Optional[str] = None,
                 price_range: Optional[Tuple[float, float]] = None,
                 product_sha256: Optional[str] = None,
                 sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
                 error_handler: Optional[ErrorHandler] = None):
        self.logger = logging.getLogger(__name__)
        self.client = client
        self.store = store
        self.kind = kind
        self.sha256_hash = sha256_hash
        self.query = query
        self.title_regex = re.compile(title_regex, re.IGNORECASE) if title_regex else None
        self.price_range = price_range
        self.product_sha256 = product_sha256
        self.sleep = sleep
        self.error_handler = error_handler or ErrorHandler()

        if kind in (QueryKind.CATEGORY, QueryKind.SEARCH) and not query:
            raise ValueError(f"{kind.name.lower()} source requires a query")
        if kind == QueryKind.CATEGORY and not product_sha256:
            raise ValueError("category source requires the product detail query hash")

    @property
    def name(self) -> str:
        if self.kind == QueryKind.WISHLIST:
            return "wishlist"
        return f"{self.kind.name.lower()} '{self.query}'"

    def batches(self) -> AsyncIterator[List[Item]]:
        if self.kind == QueryKind.WISHLIST:
            return self._wishlist_batches()
        if self.kind == QueryKind.SEARCH:
            return self._search_batches()
        return self._category_batches()

    def _matches_title(self, title: Optional[str]) -> bool:
        if self.title_regex is None:
            return True
        return bool(self.title_regex.search(title or ""))

    async def _pause(self) -> None:
        await self.sleep(self.store.get_sleep_time() / 1000)

    async def _query_page(self, operation: str, sha256_hash: str,
                          variables: Dict[str, Any], first: bool) -> Optional[Dict[str, Any]]:
        """Run one page query. Returns None for a skipped follow-up page."""
        try:
            return await self.client.query(operation, sha256_hash, variables)
        except (AuthenticationLostError, RateLimitedError):
            raise
        except QueryError as e:
            if first:
                raise
            self.error_handler.handle_query_error(e, self.name)
            return None

    # Wishlist

    def _wishlist_variables(self, offset: int) -> Dict[str, Any]:
        return {
            "hasMarketplace": True,
            "shouldFetchBasket": True,
            "limit": WISHLIST_PAGE_SIZE,
            "offset": offset
        }

    async def _wishlist_batches(self) -> AsyncIterator[List[Item]]:
        operation = self.kind.value
        data = await self._query_page(operation, self.sha256_hash, self._wishlist_variables(0), first=True)
        wishlist = _section(data, "wishlistItems")
        yield Item.list_from_dicts(wishlist.get("items"))

        total = _as_int(wishlist.get("total"))
        pages = math.ceil(total / WISHLIST_PAGE_SIZE) if total else 1
        for page in range(1, pages):
            await self._pause()
            data = await self._query_page(
                operation, self.sha256_hash, self._wishlist_variables(page * WISHLIST_PAGE_SIZE), first=False
            )
            if data is not None:
                yield Item.list_from_dicts(_section(data, "wishlistItems").get("items"))

    # Search

    def _search_variables(self, page: int) -> Dict[str, Any]:
        filters = []
        if self.price_range:
            low, high = self.price_range
            filters = [f"currentprice:{_format_number(low)}-{_format_number(high)}"]
        return {
            "hasMarketplace": True,
            "isCitrus": False,
            "isDemonstrationModelAvailabilityActive": False,
            "withMarketingInfos": False,
            "isTeaserV3Active": False,
            "experiment": "mp",
            "filters": filters,
            "page": page,
            "query": self.query,
            "pageSize": SEARCH_PAGE_SIZE,
            "productFilters": [filters] if filters else []
        }

    def _search_items(self, data: Optional[Dict[str, Any]]) -> List[Item]:
        products = _section(data, "searchV4").get("products")
        if not isinstance(products, list):
            return []
        items = Item.list_from_dicts([
            product.get("productAggregate") for product in products if isinstance(product, dict)
        ])
        return [item for item in items if self._matches_title(item.product.title if item.product else None)]

    async def _search_batches(self) -> AsyncIterator[List[Item]]:
        operation = self.kind.value
        data = await self._query_page(operation, self.sha256_hash, self._search_variables(1), first=True)
        yield self._search_items(data)

        page_count = _page_count(_section(data, "searchV4"))
        for page in range(2, page_count + 1):
            await self._pause()
            data = await self._query_page(operation, self.sha256_hash, self._search_variables(page), first=False)
            if data is not None:
                yield self._search_items(data)

    # Category

    def _category_variables(self, page: int) -> Dict[str, Any]:
        return {
            "hasMarketplace": True,
            "filters": [],
            "wcsId": self.query,
            "page": page
        }

    def _category_product_ids(self, data: Optional[Dict[str, Any]]) -> List[str]:
        products = _section(data, "categoryV4").get("products")
        if not isinstance(products, list):
            return []
        product_ids = []
        for product in products:
            if not isinstance(product, dict) or not product.get("productId"):
                continue
            details = product.get("details") if isinstance(product.get("details"), dict) else {}
            if self._matches_title(details.get("title")):
                product_ids.append(str(product["productId"]))
        return product_ids

    async def _category_batches(self) -> AsyncIterator[List[Item]]:
        operation = self.kind.value
        data = await self._query_page(operation, self.sha256_hash, self._category_variables(1), first=True)
        product_ids = self._category_product_ids(data)

        page_count = _page_count(_section(data, "categoryV4"))
        for page in range(2, page_count + 1):
            await self._pause()
            data = await self._query_page(operation, self.sha256_hash, self._category_variables(page), first=False)
            if data is not None:
                product_ids.extend(self._category_product_ids(data))

        self.logger.debug(f"Category {self.query} lists {len(product_ids)} matching products")
        for product_id in product_ids:
            data = await self._query_page(
                PRODUCT_DETAIL_OPERATION, self.product_sha256,
                {"hasMarketplace": True, "id": product_id}, first=False
            )
            if data is not None:
                yield [Item.from_dict(data)]
            await self._pause()


def _section(data: Optional[Dict[str, Any]], key: str) -> Dict[str, Any]:
    section = (data or {}).get(key)
    return section if isinstance(section, dict) else {}


def _as_int(value: Any) -> int:
    try:
        return int(value)
    except (TypeError, ValueError):
        return 0


def _page_count(section: Dict[str, Any]) -> int:
    paging = section.get("paging")
    if not isinstance(paging, dict):
        return 1
    return max(_as_int(paging.get("pageCount")), 1)


def _format_number(value: float) -> str:
    return str(int(value)) if float(value).is_integer() else str(value)
