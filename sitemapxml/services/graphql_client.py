import logging
from typing import Any, Callable, Dict, Optional

import httpx

from sitemapxml.errors import UpstreamFetchFailure

logger = logging.getLogger(__name__)

TIMEOUT = 15  # seconds


class GraphQLRequestClient:
    """Minimal GraphQL-over-HTTP client for the content delivery endpoint."""

    def __init__(
        self,
        endpoint: str,
        api_key: str = "",
        timeout: float = TIMEOUT,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.endpoint = endpoint
        self.api_key = api_key
        self.timeout = timeout
        self._transport = transport

    async def request(self, query: str, variables: Dict[str, Any]) -> Dict[str, Any]:
        """POST *query* with *variables* and return the ``data`` object.

        Raises:
            UpstreamFetchFailure: on network errors, non-2xx responses,
                undecodable bodies, or GraphQL ``errors``.
        """
        headers = {"sc_apikey": self.api_key} if self.api_key else {}
        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
                response = await client.post(
                    self.endpoint,
                    json={"query": query, "variables": variables},
                    headers=headers,
                )
                response.raise_for_status()
                body = response.json()
        except httpx.HTTPError as exc:
            logger.error("GraphQL request to %s failed: %s", self.endpoint, exc)
            raise UpstreamFetchFailure(f"GraphQL request failed: {exc}") from exc
        except ValueError as exc:
            raise UpstreamFetchFailure("GraphQL endpoint returned a non-JSON body") from exc

        if not isinstance(body, dict):
            raise UpstreamFetchFailure("GraphQL endpoint returned an unexpected body")
        if body.get("errors"):
            messages = "; ".join(
                str(err.get("message", err)) if isinstance(err, dict) else str(err)
                for err in body["errors"]
            )
            raise UpstreamFetchFailure(f"GraphQL errors: {messages}")
        if body.get("data") is None:
            raise UpstreamFetchFailure("GraphQL response has no data")
        return body["data"]


def create_client_factory(
    endpoint: Optional[str], api_key: str = ""
) -> Optional[Callable[[], GraphQLRequestClient]]:
    """Return a factory producing clients for *endpoint*, or *None* when unset."""
    if not endpoint:
        return None

    def factory() -> GraphQLRequestClient:
        return GraphQLRequestClient(endpoint, api_key)

    return factory
