"""Health probes for the services docinbox depends on."""

from __future__ import annotations

from typing import Protocol

import httpx

from docinbox.models import ProbeResult, ServiceStatus

_HEALTHY = ProbeResult(status=ServiceStatus.HEALTHY, ok=True)


class Probe(Protocol):
    """Read-only check of one dependent service. Raises on failure."""

    async def check(self) -> ProbeResult: ...


class CredentialProbe:
    """Reports a service as configured when its credentials are present."""

    def __init__(self, present: bool) -> None:
        self._present = present

    async def check(self) -> ProbeResult:
        if self._present:
            return _HEALTHY
        return ProbeResult(status=ServiceStatus.NOT_CONFIGURED, ok=False)


class DatabaseProbe:
    """Queries the documents table through the Supabase REST endpoint.

    In demo mode no request is made and the database reports ``demo_mode``.
    """

    def __init__(
        self,
        base_url: str | None,
        api_key: str | None,
        timeout: float = 5.0,
    ) -> None:
        self._base_url = base_url
        self._api_key = api_key
        self._timeout = timeout

    @property
    def demo_mode(self) -> bool:
        return not (self._base_url and self._api_key)

    async def check(self) -> ProbeResult:
        if self.demo_mode:
            return ProbeResult(status=ServiceStatus.DEMO_MODE, ok=True)

        url = f"{self._base_url.rstrip('/')}/rest/v1/documents"  # type: ignore[union-attr]
        headers = {
            "apikey": self._api_key or "",
            "Authorization": f"Bearer {self._api_key}",
        }
        async with httpx.AsyncClient(verify=True) as client:
            resp = await client.get(
                url,
                params={"select": "count", "limit": "1"},
                headers=headers,
                timeout=self._timeout,
            )
            resp.raise_for_status()
        return _HEALTHY
