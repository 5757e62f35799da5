"""vendor-remit - vendor transfer batches and remittance sheet generation."""

__version__ = "0.1.0"

from vendor_remit.batch import BatchValidationError, TransferBatch
from vendor_remit.clients import (
    AppsScriptClient,
    AppsScriptError,
    ConnectivityError,
    DownloadError,
    VendorTextParser,
    init_vendor_parser,
)
from vendor_remit.config import configure_logging, get_settings
from vendor_remit.debounce import Debouncer
from vendor_remit.desk import RemittanceDesk
from vendor_remit.models import (
    BankInfo,
    BatchTotals,
    FeeReason,
    ParsedVendorFields,
    TransferItem,
    Vendor,
    parse_amount,
)
from vendor_remit.session_store import SessionStore
from vendor_remit.vendor_form import VendorDraft, VendorForm, merge_parsed

__all__ = [
    # Version
    "__version__",
    # Models
    "Vendor",
    "BankInfo",
    "TransferItem",
    "FeeReason",
    "BatchTotals",
    "ParsedVendorFields",
    "parse_amount",
    # Batch engine
    "TransferBatch",
    "BatchValidationError",
    "RemittanceDesk",
    "SessionStore",
    "Debouncer",
    # Vendor form
    "VendorDraft",
    "VendorForm",
    "merge_parsed",
    # Clients
    "AppsScriptClient",
    "AppsScriptError",
    "ConnectivityError",
    "DownloadError",
    "VendorTextParser",
    "init_vendor_parser",
    # Config
    "get_settings",
    "configure_logging",
]
