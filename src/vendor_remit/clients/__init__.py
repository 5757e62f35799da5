"""Remote service clients for vendor-remit."""

from vendor_remit.clients.apps_script import (
    AppsScriptClient,
    AppsScriptConfigError,
    AppsScriptError,
    ConnectivityError,
    DownloadError,
)
from vendor_remit.clients.gemini import VendorTextParser, init_vendor_parser

__all__ = [
    # Apps Script
    "AppsScriptClient",
    "AppsScriptError",
    "AppsScriptConfigError",
    "ConnectivityError",
    "DownloadError",
    # Gemini
    "VendorTextParser",
    "init_vendor_parser",
]
