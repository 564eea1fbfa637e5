"""
providers/cloudflare_client.py

Responsibility: Implements the DNSProvider protocol using the Cloudflare REST API.
All Cloudflare HTTP calls are concentrated here — no other file may call the
Cloudflare API directly.
Does NOT: read configuration, compute diffs, or contain scheduling logic.
"""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator
from typing import Any

import httpx

from exceptions import DnsProviderError
from providers.dns_provider import DnsRecord, TunnelConnection

logger = logging.getLogger(__name__)

_CLOUDFLARE_BASE = "https://api.cloudflare.com/client/v4"

# Cloudflare caps DNS record listing at 5000 per page; 100 keeps pages small
_PER_PAGE = 100


class CloudflareClient:
    """
    Implements DNSProvider for the Cloudflare v4 API (Tunnels + DNS).

    All outbound Cloudflare requests go through the injected httpx.AsyncClient,
    making this class fully testable without real network calls (use respx.mock).

    Collaborators:
        - httpx.AsyncClient: injected HTTP client; must be kept alive externally
        - DNSProvider: this class satisfies the protocol contract
    """

    def __init__(self, http_client: httpx.AsyncClient, api_token: str) -> None:
        """
        Initialises the client with an HTTP client and a Cloudflare API token.

        Args:
            http_client: A long-lived httpx.AsyncClient instance.
            api_token: A Cloudflare API token with Tunnel read and DNS edit
                       permissions.
        """
        self._client = http_client
        self._headers = {
            "Authorization": f"Bearer {api_token}",
            "Content-Type": "application/json",
        }

    # ---------------------------------------------------------------------------
    # DNSProvider implementation
    # ---------------------------------------------------------------------------

    async def list_connections(self, tunnel_id: str, account_id: str) -> AsyncIterator[TunnelConnection]:
        """
        Streams every live connection of a Cloudflare Tunnel.

        The API groups connections by cloudflared client; each client carries
        a "conns" list. One TunnelConnection is yielded per entry.

        Args:
            tunnel_id: The tunnel's UUID.
            account_id: The Cloudflare account ID owning the tunnel.

        Yields:
            TunnelConnection instances.

        Raises:
            DnsProviderError: If the Cloudflare API returns an error.
        """
        url = f"{_CLOUDFLARE_BASE}/accounts/{account_id}/cfd_tunnel/{tunnel_id}/connections"

        logger.debug("GET %s", url)
        data = await self._request("GET", url)

        for client in data.get("result") or []:
            client_id = client.get("id", "")
            for conn in client.get("conns") or []:
                yield TunnelConnection(
                    client_id=client_id,
                    origin_ip=conn.get("origin_ip") or None,
                    colo_name=conn.get("colo_name", ""),
                )

    async def list_records(self, zone_id: str, name: str, record_type: str) -> list[DnsRecord]:
        """
        Returns every record of one type whose name matches exactly.

        Follows result_info.total_pages until all pages are consumed.

        Args:
            zone_id: The Cloudflare zone ID.
            name: The fully-qualified DNS name.
            record_type: "A" or "AAAA".

        Returns:
            A list of DnsRecord instances, possibly empty.

        Raises:
            DnsProviderError: If any page request fails.
        """
        url = f"{_CLOUDFLARE_BASE}/zones/{zone_id}/dns_records"
        records: list[DnsRecord] = []
        page = 1

        while True:
            params: dict[str, Any] = {
                "type": record_type,
                "name.exact": name,
                "per_page": _PER_PAGE,
                "page": page,
            }
            logger.debug("GET %s params=%s", url, params)
            data = await self._request("GET", url, params=params)

            records.extend(self._parse_record(r, zone_id) for r in data.get("result") or [])

            total_pages = (data.get("result_info") or {}).get("total_pages") or 1
            if page >= total_pages:
                return records
            page += 1

    async def create_record(
        self,
        zone_id: str,
        name: str,
        record_type: str,
        content: str,
        ttl: int = 60,
        proxied: bool = False,
    ) -> DnsRecord:
        """
        Creates a new DNS record in the given Cloudflare zone.

        Args:
            zone_id: The Cloudflare zone ID.
            name: The fully-qualified DNS name for the new record.
            record_type: "A" or "AAAA".
            content: The IP address for the new record.
            ttl: Record TTL in seconds.
            proxied: Whether the record is proxied through Cloudflare.

        Returns:
            The newly created DnsRecord.

        Raises:
            DnsProviderError: If the Cloudflare API returns an error.
        """
        url = f"{_CLOUDFLARE_BASE}/zones/{zone_id}/dns_records"
        payload: dict[str, Any] = {
            "type": record_type,
            "name": name,
            "content": content,
            "ttl": ttl,
            "proxied": proxied,
        }

        logger.debug("POST %s payload=%s", url, payload)
        data = await self._request("POST", url, json=payload)

        result = data.get("result")
        if not isinstance(result, dict):
            raise DnsProviderError(f"Cloudflare API returned no record for POST {url}")
        return self._parse_record(result, zone_id)

    async def delete_record(self, zone_id: str, record_id: str) -> None:
        """
        Deletes a DNS record from the given Cloudflare zone.

        Args:
            zone_id: The Cloudflare zone ID.
            record_id: The Cloudflare-assigned unique record identifier.

        Raises:
            DnsProviderError: If the Cloudflare API returns an error.
        """
        url = f"{_CLOUDFLARE_BASE}/zones/{zone_id}/dns_records/{record_id}"

        logger.debug("DELETE %s", url)
        await self._request("DELETE", url)

    # ---------------------------------------------------------------------------
    # Internal helpers
    # ---------------------------------------------------------------------------

    async def _request(
        self,
        method: str,
        url: str,
        *,
        params: dict[str, Any] | None = None,
        json: dict[str, Any] | None = None,
    ) -> dict[str, Any]:
        """
        Sends an authenticated HTTP request to the Cloudflare API.

        Args:
            method: HTTP verb ("GET", "POST", "DELETE").
            url: Full URL of the Cloudflare API endpoint.
            params: Optional query-string parameters.
            json: Optional JSON request body.

        Returns:
            The parsed JSON response body as a dict.

        Raises:
            DnsProviderError: If the HTTP call fails or the API returns
                              success=false in the response body.
        """
        try:
            response = await self._client.request(
                method, url, headers=self._headers, params=params, json=json
            )
            response.raise_for_status()
        except httpx.HTTPStatusError as exc:
            raise DnsProviderError(
                f"Cloudflare API error {exc.response.status_code} for {method} {url}: "
                f"{exc.response.text}"
            ) from exc
        except httpx.RequestError as exc:
            raise DnsProviderError(
                f"Network error calling Cloudflare API ({method} {url}): {exc}"
            ) from exc

        try:
            body: dict[str, Any] = response.json()
        except ValueError as exc:
            raise DnsProviderError(
                f"Cloudflare API returned a non-JSON body for {method} {url}"
            ) from exc

        # NOTE: Cloudflare wraps all responses in {"success": bool, "result": ...}
        if not body.get("success", False):
            errors = body.get("errors", [])
            raise DnsProviderError(
                f"Cloudflare API returned success=false for {method} {url}. "
                f"Errors: {errors}"
            )

        return body

    @staticmethod
    def _parse_record(raw: dict[str, Any], zone_id: str) -> DnsRecord:
        """
        Converts a raw Cloudflare API record dict into a typed DnsRecord.

        Args:
            raw: A single record object from the Cloudflare API response.
            zone_id: The zone the record was requested from.

        Returns:
            A DnsRecord populated from the raw dict.

        Raises:
            DnsProviderError: If the record is not an object or has no id.
        """
        record_id = raw.get("id") if isinstance(raw, dict) else None
        if not record_id:
            raise DnsProviderError(f"Cloudflare API returned a record without an id: {raw!r}")

        return DnsRecord(
            id=record_id,
            name=raw.get("name", ""),
            type=raw.get("type", ""),
            content=raw.get("content") or "",
            ttl=raw.get("ttl", 1),
            proxied=raw.get("proxied", False),
            zone_id=raw.get("zone_id") or zone_id,
        )
