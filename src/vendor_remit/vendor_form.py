"""New-vendor form: draft state, parsed-text merge and bank lookup."""

from collections.abc import Awaitable, Callable
from dataclasses import dataclass, fields, replace
from typing import Any

import structlog

from vendor_remit.clients.apps_script import AppsScriptClient
from vendor_remit.clients.gemini import VendorTextParser
from vendor_remit.config import get_settings
from vendor_remit.debounce import Debouncer
from vendor_remit.models import BankInfo, ParsedVendorFields

logger = structlog.get_logger(__name__)

# Backing tables of the directory spreadsheet. Only the vendor table keeps tax ids.
DEFAULT_SHEET = "廠商"
SHEET_OPTIONS = ("廠商", "玉山", "朴子市農會", "幼教", "個人", "少用到", "債權人")

MIN_LOOKUP_LENGTH = 2

REQUIRED_FIELD_LABELS = {
    "name": "vendor name",
    "bank": "bank name",
    "bank_code": "bank code",
    "account_number": "account number",
}


@dataclass(frozen=True)
class VendorDraft:
    """Form contents for a vendor that does not exist yet."""

    name: str = ""
    bank: str = ""
    bank_code: str = ""
    account_number: str = ""
    sheet_name: str = DEFAULT_SHEET
    tax_id: str = ""
    address: str = ""
    remarks: str = ""

    @property
    def keeps_tax_id(self) -> bool:
        return self.sheet_name == DEFAULT_SHEET

    def missing_required(self) -> list[str]:
        return [label for name, label in REQUIRED_FIELD_LABELS.items() if not getattr(self, name)]

    def to_payload(self) -> dict[str, Any]:
        """Wire form for the directory's add action (no id)."""
        return {
            "name": self.name,
            "bank": self.bank,
            "bankCode": self.bank_code,
            "accountNumber": self.account_number,
            "sheetName": self.sheet_name,
            "taxId": self.tax_id if self.keeps_tax_id else "",
            "address": self.address,
            "remarks": self.remarks,
        }


def merge_parsed(draft: VendorDraft, parsed: ParsedVendorFields) -> VendorDraft:
    """Overlay parsed fields on the draft; empty parsed values keep the draft's."""
    return replace(
        draft,
        name=parsed.name or draft.name,
        bank=parsed.bank or draft.bank,
        bank_code=parsed.bank_code or draft.bank_code,
        account_number=parsed.account_number or draft.account_number,
        tax_id=(parsed.tax_id or draft.tax_id) if draft.keeps_tax_id else "",
        address=parsed.address or draft.address,
        remarks=parsed.remarks or draft.remarks,
    )


class VendorForm:
    """State and actions behind the add-vendor dialog."""

    def __init__(
        self,
        client: AppsScriptClient,
        parser: VendorTextParser | None = None,
        debounce_delay: float | None = None,
    ):
        delay = debounce_delay if debounce_delay is not None else get_settings().bank_search_debounce
        self._client = client
        self._parser = parser
        self._bank_lookup = Debouncer(delay, self._lookup_banks)
        self.reset()

    @property
    def can_parse(self) -> bool:
        return self._parser is not None

    @property
    def bank_lookup(self) -> Debouncer:
        return self._bank_lookup

    def reset(self) -> None:
        self.draft = VendorDraft()
        self.error: str | None = None
        self.bank_suggestions: list[BankInfo] = []
        self.is_searching_bank = False
        self.is_parsing = False
        self.is_submitting = False
        self._bank_lookup.cancel()

    def set_field(self, name: str, value: str) -> None:
        if name not in {f.name for f in fields(VendorDraft)}:
            raise ValueError(f"Unknown vendor field: {name}")
        self.draft = replace(self.draft, **{name: value})
        if name == "sheet_name" and not self.draft.keeps_tax_id:
            self.draft = replace(self.draft, tax_id="")

    # === Bank lookup ===

    def on_bank_input(self, value: str) -> None:
        """Typing a bank name invalidates the code and schedules a lookup."""
        self.draft = replace(self.draft, bank=value, bank_code="")
        self._schedule_lookup(value)

    def _schedule_lookup(self, term: str) -> None:
        if len(term.strip()) < MIN_LOOKUP_LENGTH:
            self._bank_lookup.cancel()
            self.bank_suggestions = []
            return
        self._bank_lookup.trigger(term)

    def choose_bank(self, bank: BankInfo) -> None:
        self.draft = replace(self.draft, bank=bank.full_name, bank_code=bank.full_code)
        self.bank_suggestions = []
        self._bank_lookup.cancel()

    async def _lookup_banks(self, term: str) -> None:
        self.is_searching_bank = True
        try:
            self.bank_suggestions = await self._client.search_banks(term)
        except Exception as e:
            # Suggestions are a convenience; a failed lookup must not block the form
            logger.warning("bank_lookup_failed", term=term, error=str(e))
        finally:
            self.is_searching_bank = False

    # === Free-text parsing ===

    async def parse_text(self, text: str) -> bool:
        """Prefill the draft from pasted text. Returns True if anything was parsed."""
        if self._parser is None or not text.strip():
            return False
        self.is_parsing = True
        self.error = None
        try:
            parsed = await self._parser.parse(text)
            if parsed is None:
                self.error = "Could not extract vendor details from the provided text."
                return False
            self.draft = merge_parsed(self.draft, parsed)
            if parsed.bank:
                self._schedule_lookup(parsed.bank)
            return True
        except Exception as e:
            logger.error("vendor_text_parse_error", error=str(e))
            self.error = f"Error while parsing: {e}"
            return False
        finally:
            self.is_parsing = False

    # === Submit ===

    async def submit(self, handler: Callable[[dict[str, Any]], Awaitable[Any]]) -> bool:
        """Validate the draft and hand its payload to `handler`."""
        missing = self.draft.missing_required()
        if missing:
            self.error = "Please fill in the " + ", ".join(missing) + "."
            return False
        self.error = None
        self.is_submitting = True
        try:
            await handler(self.draft.to_payload())
            return True
        except Exception as e:
            logger.error("vendor_submit_failed", error=str(e))
            self.error = f"Failed to add vendor: {e}"
            return False
        finally:
            self.is_submitting = False
