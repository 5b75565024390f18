"""Live-tab registry served over HTTP by a browser-side companion."""

from __future__ import annotations

import logging
from urllib.parse import quote

from mru_tabs.exceptions import RegistryQueryError
from mru_tabs.history.models import TabRecord
from mru_tabs.history.parser import parse_record
from mru_tabs.registry.base import BaseTabRegistry

logger = logging.getLogger(__name__)


class HttpTabRegistry(BaseTabRegistry):
    """Registry client for a companion endpoint.

    The endpoint exposes ``GET /tabs`` returning ``{instance_id: record|null}``,
    plus ``PUT`` and ``DELETE`` on ``/tabs/{instance_id}``.

    Args:
        base_url: Endpoint root, e.g. ``http://127.0.0.1:8765``.
        timeout: Per-request timeout in seconds.
        transport: Optional httpx transport (used by tests).
    """

    def __init__(self, base_url: str, timeout: float = 2.0, transport=None):
        if not base_url:
            raise RegistryQueryError(
                "Registry URL is required. "
                "Pass it directly or set MRU_TABS_REGISTRY_URL in your environment."
            )
        try:
            import httpx  # noqa: F401
        except ImportError:
            raise ImportError(
                "httpx is required for HttpTabRegistry. "
                "Install with: pip install mru-tabs[http]"
            )
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._transport = transport

    def _client(self):
        import httpx

        return httpx.AsyncClient(
            base_url=self.base_url,
            timeout=self.timeout,
            transport=self._transport,
        )

    async def query(self) -> dict[str, TabRecord | None]:
        try:
            async with self._client() as client:
                response = await client.get("/tabs", headers={"Accept": "application/json"})
                response.raise_for_status()
                data = response.json()
        except Exception as e:
            raise RegistryQueryError(f"Live tab query failed: {e}") from e

        if not isinstance(data, dict):
            raise RegistryQueryError("Live tab query returned a non-object payload")

        tabs: dict[str, TabRecord | None] = {}
        for instance_id, raw in data.items():
            tabs[str(instance_id)] = parse_record(raw) if raw else None
        logger.debug("Registry reported %d instances", len(tabs))
        return tabs

    async def publish(self, instance_id: str, record: TabRecord) -> None:
        try:
            async with self._client() as client:
                response = await client.put(
                    f"/tabs/{quote(instance_id, safe='')}", json=record.to_dict()
                )
                response.raise_for_status()
        except Exception as e:
            raise RegistryQueryError(f"Failed to publish tab {instance_id}: {e}") from e

    async def unregister(self, instance_id: str) -> None:
        try:
            async with self._client() as client:
                response = await client.delete(f"/tabs/{quote(instance_id, safe='')}")
                if response.status_code != 404:
                    response.raise_for_status()
        except Exception as e:
            raise RegistryQueryError(f"Failed to unregister tab {instance_id}: {e}") from e
