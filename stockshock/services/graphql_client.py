"""
HTTP transport for the storefront GraphQL API.
"""
import asyncio
import json
import logging
import socket
import time
import uuid
from typing import Dict, Optional, Any

import aiohttp

from ..exceptions import AuthenticationLostError, QueryError, RateLimitedError
from ..models.interfaces import IQueryClient
from ..models.stores import Store

logger = logging.getLogger(__name__)

DEFAULT_CLIENT_VERSION = "8.0.0"


class GraphQLClient(IQueryClient):
    """
    Persisted query client bound to one storefront.

    The session is created lazily and reused for every request. An
    authenticated session (cookie jar filled by a login collaborator) can be
    handed in through ``session``.
    """

    def __init__(self, store: Store, client_version: str = DEFAULT_CLIENT_VERSION,
                 cache_busting: bool = True, request_timeout: float = 10,
                 session: Optional[aiohttp.ClientSession] = None):
        self.store = store
        self.client_version = client_version
        self.cache_busting = cache_busting
        self.request_timeout = request_timeout
        self.session = session
        self._owns_session = session is None

        self.connection_limit = 10
        self.connection_limit_per_host = 5
        self.dns_cache_ttl = 300
        self.keepalive_timeout = 30

    @property
    def endpoint(self) -> str:
        return f"{self.store.base_url}/api/v1/graphql"

    async def get_session(self) -> aiohttp.ClientSession:
        """Get or create the aiohttp session."""
        if self.session is None or self.session.closed:
            conn = aiohttp.TCPConnector(
                limit=self.connection_limit,
                limit_per_host=self.connection_limit_per_host,
                ttl_dns_cache=self.dns_cache_ttl,
                keepalive_timeout=self.keepalive_timeout,
                enable_cleanup_closed=True,
                family=socket.AF_INET
            )
            timeout = aiohttp.ClientTimeout(
                total=self.request_timeout,
                connect=min(10, self.request_timeout / 2)
            )
            self.session = aiohttp.ClientSession(
                connector=conn,
                timeout=timeout,
                cookie_jar=aiohttp.CookieJar(unsafe=True)
            )
            self._owns_session = True
        return self.session

    async def close(self) -> None:
        """Close the session if this client created it."""
        if self.session and self._owns_session and not self.session.closed:
            await self.session.close()
        self.session = None

    def build_headers(self, operation: str) -> Dict[str, str]:
        """Headers the storefront expects on every GraphQL request."""
        return {
            "content-type": "application/json",
            "apollographql-client-name": "pwa-client",
            "apollographql-client-version": self.client_version,
            "x-operation": operation,
            "x-cacheable": "false",
            "x-mms-language": self.store.language_code,
            "x-mms-country": self.store.country_code,
            "x-mms-salesline": self.store.sales_line,
            "x-flow-id": str(uuid.uuid4()),
            "Pragma": "no-cache",
            "Cache-Control": "no-cache",
            "Referer": f"{self.store.base_url}/"
        }

    def build_params(self) -> Dict[str, str]:
        if not self.cache_busting:
            return {}
        return {"anti-cache": str(int(time.time() * 1000))}

    def build_payload(self, operation: str, sha256_hash: str, variables: Dict[str, Any]) -> Dict[str, Any]:
        return {
            "operationName": operation,
            "variables": variables,
            "extensions": {
                "pwa": {
                    "salesLine": self.store.sales_line,
                    "country": self.store.country_code,
                    "language": self.store.language_code
                },
                "persistedQuery": {
                    "version": 1,
                    "sha256Hash": sha256_hash
                }
            }
        }

    async def query(self, operation: str, sha256_hash: str, variables: Dict[str, Any]) -> Dict[str, Any]:
        """
        Run a persisted query.

        Args:
            operation: GraphQL operation name, e.g. ``WishlistItems``
            sha256_hash: Persisted query hash for the operation
            variables: Query variables

        Returns:
            The ``data`` object of the response

        Raises:
            AuthenticationLostError: On 401/403
            RateLimitedError: On 429
            QueryError: On any other failed request or GraphQL errors
        """
        session = await self.get_session()
        try:
            async with session.post(
                self.endpoint,
                params=self.build_params(),
                headers=self.build_headers(operation),
                json=self.build_payload(operation, sha256_hash, variables)
            ) as response:
                status = response.status
                text = await response.text()
                retry_after = response.headers.get("Retry-After")
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            raise QueryError(operation, None, f"request failed: {e}") from e

        if status in (401, 403):
            raise AuthenticationLostError(operation, status, "session is no longer authenticated")
        if status == 429:
            raise RateLimitedError(operation, _parse_retry_after(retry_after))
        if status != 200:
            raise QueryError(operation, status, f"unexpected status code {status}")

        try:
            body = json.loads(text)
        except ValueError as e:
            raise QueryError(operation, status, "response is not valid JSON") from e

        if not isinstance(body, dict):
            raise QueryError(operation, status, "response is not a JSON object")
        if body.get("errors"):
            raise QueryError(operation, status, f"GraphQL errors: {body['errors']}")

        data = body.get("data")
        if not isinstance(data, dict):
            raise QueryError(operation, status, "response has no data")
        logger.debug(f"{operation} query succeeded")
        return data


def _parse_retry_after(value: Optional[str]) -> Optional[float]:
    if value is None:
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        return None
