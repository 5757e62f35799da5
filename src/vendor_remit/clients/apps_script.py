"""Client for the Google Apps Script web app behind the vendor spreadsheet.

The script exposes a single endpoint. Every call is a POST whose body names
an action and its payload; the script answers with
``{"success": bool, "data": ..., "error": str}``. The body is sent as
``text/plain`` so that browsers treat it as a simple request, and Apps Script
answers through a redirect, so redirects are always followed.
"""

import json
from typing import Any

import httpx
import structlog

from vendor_remit.config import get_settings
from vendor_remit.models import BankInfo, GenerationResult, TransferItem, Vendor

logger = structlog.get_logger(__name__)

UNKNOWN_SCRIPT_ERROR = "An unknown error occurred in the Apps Script execution."


class AppsScriptError(Exception):
    """Base exception for Apps Script errors."""

    def __init__(self, message: str, status_code: int | None = None, details: Any = None):
        super().__init__(message)
        self.status_code = status_code
        self.details = details


class AppsScriptConfigError(AppsScriptError):
    """The script URL is missing or not an https URL."""

    pass


class ConnectivityError(AppsScriptError):
    """The request never got an HTTP answer."""

    pass


class DownloadError(AppsScriptError):
    """The generated remittance file could not be retrieved."""

    pass


class AppsScriptClient:
    """Async client for the vendor directory and remittance generator."""

    def __init__(self, script_url: str | None = None, timeout: float | None = None):
        settings = get_settings()
        self.script_url = script_url if script_url is not None else settings.apps_script_url
        self._timeout = timeout or settings.http_timeout
        self._client: httpx.AsyncClient | None = None

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create HTTP client."""
        if self._client is None:
            self._client = httpx.AsyncClient(
                timeout=httpx.Timeout(self._timeout),
                follow_redirects=True,
            )
        return self._client

    async def close(self) -> None:
        """Close the HTTP client."""
        if self._client:
            await self._client.aclose()
            self._client = None

    async def __aenter__(self) -> "AppsScriptClient":
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        await self.close()

    # === Transport ===

    async def _call(self, action: str, payload: dict[str, Any]) -> Any:
        """Run one script action and return its ``data``."""
        if not self.script_url.startswith("https://"):
            raise AppsScriptConfigError(
                "Please set APPS_SCRIPT_URL to the https URL of your deployed Apps Script."
            )

        client = await self._get_client()
        try:
            response = await client.post(
                self.script_url,
                content=json.dumps({"action": action, "payload": payload}, ensure_ascii=False),
                headers={"Content-Type": "text/plain;charset=utf-8"},
            )
        except httpx.RequestError as e:
            logger.warning("script_unreachable", action=action, error=str(e))
            raise ConnectivityError(f"Failed to fetch: {e}") from e

        if not response.is_success:
            raise AppsScriptError(
                f"Network request failed with status: {response.status_code}",
                status_code=response.status_code,
            )

        try:
            result = response.json()
        except ValueError as e:
            raise AppsScriptError(
                "Apps Script returned a non-JSON response",
                status_code=response.status_code,
                details={"raw": response.text[:500] if response.text else "empty response"},
            ) from e

        if not isinstance(result, dict) or not result.get("success"):
            error = result.get("error") if isinstance(result, dict) else None
            raise AppsScriptError(
                error or UNKNOWN_SCRIPT_ERROR,
                status_code=response.status_code,
                details=result,
            )

        logger.debug("script_action_completed", action=action)
        return result.get("data")

    @staticmethod
    def _as_list(data: Any) -> list[dict[str, Any]]:
        if not isinstance(data, list):
            return []
        return [entry for entry in data if isinstance(entry, dict)]

    # === Vendor directory ===

    async def search_vendors(self, term: str) -> list[Vendor]:
        data = await self._call("search", {"searchTerm": term})
        vendors = [Vendor.from_dict(entry) for entry in self._as_list(data)]
        logger.info("vendors_found", term=term, count=len(vendors))
        return vendors

    async def search_banks(self, term: str) -> list[BankInfo]:
        data = await self._call("searchBank", {"searchTerm": term})
        return [BankInfo.from_dict(entry) for entry in self._as_list(data)]

    async def add_vendor(self, vendor_data: dict[str, Any]) -> dict[str, Any]:
        """Create a vendor; the directory assigns its id."""
        payload = {key: value for key, value in vendor_data.items() if key != "id"}
        data = await self._call("add", {"vendorData": payload})
        logger.info("vendor_created", name=payload.get("name"))
        return data if isinstance(data, dict) else {"status": str(data or "")}

    # === Remittance generation ===

    async def update_main_data(self, items: list[TransferItem]) -> GenerationResult:
        """Write the batch into the sheet and get a link to the remittance file."""
        data = await self._call("updateMainData", {"items": [item.to_dict() for item in items]})
        if not isinstance(data, dict) or not data.get("downloadUrl"):
            raise AppsScriptError("Apps Script did not return a download URL", details=data)
        result = GenerationResult(
            status=str(data.get("status", "")),
            download_url=str(data["downloadUrl"]),
        )
        logger.info("main_data_updated", item_count=len(items), status=result.status)
        return result

    async def fetch_artifact(self, url: str) -> bytes:
        """Download the generated remittance file."""
        client = await self._get_client()
        try:
            response = await client.get(url)
        except httpx.RequestError as e:
            raise ConnectivityError(f"Failed to fetch: {e}") from e

        if not response.is_success:
            raise DownloadError(
                f"Download failed with status: {response.status_code}",
                status_code=response.status_code,
            )
        logger.info("artifact_downloaded", size=len(response.content))
        return response.content
