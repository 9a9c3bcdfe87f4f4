from typing import Any, Dict, List, Optional
from urllib.parse import quote

import httpx

from automap.canonical.event_type import EventTypeSummary
from automap.governance.policy import MappingMode
from automap.observability.logger import logger
from automap.utils.exceptions import PlatformError


class PlatformClient:
    """
    Async REST client for the event ingestion platform.

    The login call sets a session cookie which the underlying client's cookie
    jar attaches to every following request.
    """

    def __init__(
        self,
        base_url: str,
        email: Optional[str] = None,
        password: Optional[str] = None,
        timeout: float = 60.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.email = email
        self.password = password
        self._client = httpx.AsyncClient(
            base_url=self.base_url,
            timeout=timeout,
            transport=transport,
        )

    async def __aenter__(self) -> "PlatformClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    # ------------------------------------------
    # Transport
    # ------------------------------------------
    async def _request(self, method: str, path: str, json: Any = None) -> Any:
        try:
            resp = await self._client.request(method, path, json=json)
            resp.raise_for_status()
        except httpx.HTTPStatusError as e:
            raise PlatformError(
                f"{method} {path} failed with HTTP {e.response.status_code}: "
                f"{e.response.text[:200]}",
                method=method,
                path=path,
                status_code=e.response.status_code,
            ) from e
        except httpx.HTTPError as e:
            raise PlatformError(
                f"{method} {path} failed: {e}",
                method=method,
                path=path,
            ) from e

        if not resp.content:
            return None
        try:
            return resp.json()
        except ValueError:
            return resp.text

    # ------------------------------------------
    # Platform operations
    # ------------------------------------------
    async def login(self) -> None:
        if not self.email or not self.password:
            raise PlatformError("Platform credentials are not configured", method="POST", path="/login")
        await self._request("POST", "/login", json={"email": self.email, "password": self.password})
        logger.debug(f"Logged in to {self.base_url} as {self.email}")

    async def list_event_types(self) -> List[EventTypeSummary]:
        data = await self._request("GET", "/event-types")
        if not isinstance(data, list):
            raise PlatformError("Event type listing is not a list", method="GET", path="/event-types")
        return [EventTypeSummary.from_dict(e) for e in data if isinstance(e, dict)]

    async def get_event_type(self, name: str) -> Dict[str, Any]:
        return await self._request("GET", f"/event-types/{_segment(name)}")

    async def run_auto_map(self, event_type: Dict[str, Any]) -> Dict[str, Any]:
        name = event_type.get("name", "")
        return await self._request("POST", f"/event-types/{_segment(name)}/auto-map", json=event_type)

    async def create_table(self, schema: str, table: str, columns: List[Dict[str, Any]]) -> Any:
        return await self._request("POST", f"/tables/{_segment(schema)}/{_segment(table)}", json=columns)

    async def commit_mapping(self, name: str, body: Dict[str, Any]) -> Any:
        """
        body: {name, mapping: {tableName, schema}, fields, mappingMode}
        """
        payload = {"mappingMode": MappingMode.STRICT, **body}
        return await self._request("POST", f"/event-types/{_segment(name)}/mapping", json=payload)

    async def delete_event_type(self, name: str) -> Any:
        return await self._request("DELETE", f"/event-types/{_segment(name)}")


def _segment(value: str) -> str:
    return quote(value, safe=".")
