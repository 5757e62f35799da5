"""Pytest configuration and fixtures."""

import os
from unittest.mock import AsyncMock, MagicMock

import pytest

# Set test environment variables before importing settings
os.environ.setdefault("APPS_SCRIPT_URL", "https://script.example.test/macros/s/test/exec")
os.environ.setdefault("SHEET_URL", "https://docs.example.test/spreadsheets/d/test/edit")

from vendor_remit.models import Vendor  # noqa: E402


@pytest.fixture
def mock_vendor_records():
    """Vendor records as the directory returns them."""
    return [
        {
            "id": "v1",
            "name": "朴子市農會",
            "bank": "朴子市農會 本會",
            "bankCode": "6160018",
            "accountNumber": "00112233445566",
            "sheetName": "朴子市農會",
        },
        {
            "id": "v2",
            "name": "Green Valley Seeds Co.",
            "bank": "玉山銀行 嘉義分行",
            "bankCode": "8080123",
            "accountNumber": "0123456789012",
            "sheetName": "廠商",
            "taxId": "12345678",
            "address": "No. 1, Zhongshan Rd., Puzi City",
        },
    ]


@pytest.fixture
def vendors(mock_vendor_records):
    return [Vendor.from_dict(record) for record in mock_vendor_records]


@pytest.fixture
def make_vendor():
    def _make(vendor_id: str, name: str | None = None) -> Vendor:
        return Vendor(
            id=vendor_id,
            name=name or f"Vendor {vendor_id}",
            bank="Test Bank",
            bank_code="0000000",
            account_number="000111222",
        )

    return _make


@pytest.fixture
def mock_script_client():
    """AppsScriptClient stand-in with async actions."""
    client = MagicMock()
    client.search_vendors = AsyncMock(return_value=[])
    client.search_banks = AsyncMock(return_value=[])
    client.add_vendor = AsyncMock(return_value={"status": "ok"})
    client.update_main_data = AsyncMock()
    client.fetch_artifact = AsyncMock(return_value=b"PK\x03\x04xlsx-bytes")
    return client


@pytest.fixture
def script_response():
    """Factory for mocked httpx responses carrying a JSON payload."""

    def _make(payload, status_code: int = 200):
        response = MagicMock()
        response.status_code = status_code
        response.is_success = 200 <= status_code < 300
        response.json.return_value = payload
        response.text = str(payload)
        response.content = b"content"
        return response

    return _make
