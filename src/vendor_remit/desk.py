"""Remittance desk - coordinates vendor search, the batch and sheet generation.

The desk owns the transfer batch for one operator session. It:
- searches the vendor directory, ignoring answers to superseded searches
- persists the batch to the session store after every change
- submits eligible lines for generation and saves the returned sheet
- turns failures into messages an operator can act on
"""

from datetime import date
from pathlib import Path
from typing import Any

import structlog

from vendor_remit.batch import BatchValidationError, TransferBatch
from vendor_remit.clients.apps_script import AppsScriptClient, ConnectivityError
from vendor_remit.config import get_settings
from vendor_remit.download import save_remittance
from vendor_remit.models import FeeReason, Vendor
from vendor_remit.session_store import SessionStore

logger = structlog.get_logger(__name__)

MIN_SEARCH_LENGTH = 2

CONNECTIVITY_MARKERS = ("Failed to fetch", "CORS")
MISSING_ROW_MARKER = "row not found in Column B"

CONNECTIVITY_MESSAGE = (
    "The directory service refused the connection. Check your network, then make sure "
    "the Apps Script is deployed with the latest code as a new version and that "
    "APPS_SCRIPT_URL points at that deployment."
)


def describe_search_error(error: BaseException) -> str:
    """Operator-facing message for a failed vendor search."""
    message = str(error)
    if isinstance(error, ConnectivityError) or any(m in message for m in CONNECTIVITY_MARKERS):
        return CONNECTIVITY_MESSAGE
    return f"Search failed: {message}"


def describe_generation_error(error: BaseException) -> str:
    """Operator-facing message for a failed generation."""
    if isinstance(error, BatchValidationError):
        return str(error)
    message = str(error) or "Unknown error, check the logs."
    if MISSING_ROW_MARKER in message:
        parts = message.split("'")
        missing = parts[1] if len(parts) > 1 and parts[1] else "keyword"
        return (
            f'Update failed: check your "mainData" sheet and make sure column B '
            f'has a cell containing "{missing}".'
        )
    return f"Update failed: {message}"


class RemittanceDesk:
    """Session-level controller for searching vendors and paying them.

    Usage:
        async with AppsScriptClient() as client:
            desk = RemittanceDesk(client, SessionStore(settings.session_dir))
            await desk.search("acme")
            desk.add_to_batch(desk.search_results[0])
            desk.set_amount_payable(desk.search_results[0].id, "1000")
            path = await desk.generate()
    """

    def __init__(
        self,
        client: AppsScriptClient,
        store: SessionStore,
        fresh_start: bool = False,
        download_dir: Path | str | None = None,
        file_suffix: str | None = None,
    ):
        settings = get_settings()
        self._client = client
        self._store = store
        self._download_dir = Path(download_dir) if download_dir is not None else settings.download_dir
        self._file_suffix = file_suffix or settings.remittance_file_suffix

        if fresh_start:
            # Equivalent of a hard reload: start over with an empty batch
            store.discard_batch()
            items = []
        else:
            items = store.load_batch()
        self.batch = TransferBatch(items, on_change=store.save_batch)

        self.search_term = ""
        self.search_results: list[Vendor] = []
        self.search_error: str | None = None
        self.is_searching = False
        self._search_seq = 0

        self.last_saved_path: Path | None = None
        self._logger = logger.bind(component="remittance_desk")

    # === Search ===

    async def search(self, term: str) -> list[Vendor]:
        """Search the directory. Only the latest search may update results."""
        self.search_term = term
        self._search_seq += 1
        seq = self._search_seq

        if len(term) < MIN_SEARCH_LENGTH:
            self.search_results = []
            self.search_error = None
            self.is_searching = False
            return []

        self.is_searching = True
        self.search_error = None
        self.search_results = []
        try:
            results = await self._client.search_vendors(term)
        except Exception as e:
            self._logger.warning("search_failed", term=term, error=str(e))
            if seq == self._search_seq:
                self.search_error = describe_search_error(e)
            return []
        finally:
            if seq == self._search_seq:
                self.is_searching = False

        if seq != self._search_seq:
            self._logger.debug("stale_search_dropped", term=term)
            return results
        self.search_results = results
        return results

    async def add_new_vendor(self, vendor_data: dict[str, Any]) -> None:
        """Create a vendor in the directory, then search for it by name."""
        await self._client.add_vendor(vendor_data)
        await self.search(str(vendor_data.get("name", "")))

    # === Batch ===

    def add_to_batch(self, vendor: Vendor) -> bool:
        return self.batch.add_vendor(vendor)

    def remove_from_batch(self, vendor_id: str) -> None:
        self.batch.remove_vendor(vendor_id)

    def set_amount_payable(self, vendor_id: str, raw: Any) -> None:
        self.batch.set_amount_payable(vendor_id, raw)

    def set_manual_fee(self, vendor_id: str, raw: Any) -> None:
        self.batch.set_manual_fee(vendor_id, raw)

    def set_fee_reason(self, vendor_id: str, reason: FeeReason | str) -> None:
        self.batch.set_fee_reason(vendor_id, reason)

    # === Generation ===

    async def generate(self, today: date | None = None) -> Path | None:
        """Generate the remittance sheet and save it.

        Returns the saved path, or None with ``batch.generate_error`` set.
        """
        batch = self.batch
        if batch.is_generating:
            self._logger.warning("generation_already_running")
            return None

        batch.is_generating = True
        batch.generate_error = None
        batch.download_url = None
        try:
            items = batch.generation_items()
            result = await self._client.update_main_data(items)
            content = await self._client.fetch_artifact(result.download_url)
            path = save_remittance(content, self._download_dir, today, self._file_suffix)
        except Exception as e:
            self._logger.warning("generation_failed", error=str(e), error_type=type(e).__name__)
            batch.generate_error = describe_generation_error(e)
            return None
        finally:
            batch.is_generating = False

        batch.download_url = result.download_url
        self.last_saved_path = path
        self._logger.info("generation_completed", item_count=len(items), path=str(path))
        return path
