"""Vendor directory records and transfer batch line items.

Wire dictionaries use the camelCase keys of the Apps Script service; the
dataclasses use snake_case attributes and convert at the boundary.
"""

import re
from dataclasses import asdict, dataclass, replace
from enum import Enum
from typing import Any

_LEADING_INT = re.compile(r"^\s*([+-]?)(\d+)")

# Largest amount accepted; anything above is treated as unparseable
MAX_AMOUNT = 10**15 - 1
_MAX_DIGITS = len(str(MAX_AMOUNT))


def parse_amount(raw: Any) -> int:
    """Coerce user or stored input to a non-negative integer amount.

    A string is read up to its first non-digit ("150.7" and "150abc" both give
    150). Anything unparseable, absent, negative or above MAX_AMOUNT becomes 0.
    Never raises.
    """
    if isinstance(raw, bool) or raw is None:
        return 0
    if isinstance(raw, int):
        value = raw
    elif isinstance(raw, float):
        if raw != raw or abs(raw) > MAX_AMOUNT:
            return 0
        value = int(raw)
    elif isinstance(raw, str):
        match = _LEADING_INT.match(raw)
        if not match:
            return 0
        sign, digits = match.groups()
        digits = digits.lstrip("0") or "0"
        if sign == "-" or len(digits) > _MAX_DIGITS:
            return 0
        value = int(digits)
    else:
        return 0
    if value < 0 or value > MAX_AMOUNT:
        return 0
    return value


class FeeReason(str, Enum):
    """Why a line carries no manual transfer fee."""

    UNSET = ""  # internal deduction: fee comes out of the payable amount
    CASH = "cash"
    WAIVED = "waived"

    @classmethod
    def coerce(cls, value: Any) -> "FeeReason":
        """Map a stored or user value to a reason, unknown values to UNSET."""
        if isinstance(value, cls):
            return value
        try:
            return cls(value or "")
        except ValueError:
            return cls.UNSET


def _optional_str(value: Any) -> str | None:
    if value is None:
        return None
    return str(value)


@dataclass(frozen=True)
class Vendor:
    """A record in the remote vendor directory."""

    id: str
    name: str
    bank: str
    bank_code: str
    account_number: str
    sheet_name: str | None = None
    tax_id: str | None = None
    address: str | None = None
    remarks: str | None = None

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Vendor":
        return cls(
            id=str(data.get("id", "")),
            name=str(data.get("name") or ""),
            bank=str(data.get("bank") or ""),
            bank_code=str(data.get("bankCode") or ""),
            account_number=str(data.get("accountNumber") or ""),
            sheet_name=_optional_str(data.get("sheetName")),
            tax_id=_optional_str(data.get("taxId")),
            address=_optional_str(data.get("address")),
            remarks=_optional_str(data.get("remarks")),
        )

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "id": self.id,
            "name": self.name,
            "bank": self.bank,
            "bankCode": self.bank_code,
            "accountNumber": self.account_number,
        }
        optional = {
            "sheetName": self.sheet_name,
            "taxId": self.tax_id,
            "address": self.address,
            "remarks": self.remarks,
        }
        data.update({key: value for key, value in optional.items() if value is not None})
        return data


@dataclass(frozen=True)
class BankInfo:
    """A bank suggestion returned by the directory's bank lookup."""

    full_name: str
    full_code: str

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "BankInfo":
        return cls(
            full_name=str(data.get("fullName") or ""),
            full_code=str(data.get("fullCode") or ""),
        )


@dataclass(frozen=True)
class TransferItem:
    """A vendor staged for payment, with its editable monetary fields."""

    vendor: Vendor
    amount_payable: int = 0
    manual_fee: int = 0
    actual_amount: int = 0
    fee_reason: FeeReason = FeeReason.UNSET

    @classmethod
    def from_vendor(cls, vendor: Vendor) -> "TransferItem":
        return cls(vendor=vendor)

    @property
    def id(self) -> str:
        return self.vendor.id

    @property
    def is_eligible(self) -> bool:
        """Whether the line carries anything worth sending for generation."""
        return (
            self.amount_payable > 0
            or self.manual_fee > 0
            or self.fee_reason is not FeeReason.UNSET
        )

    def with_amount_payable(self, amount: int) -> "TransferItem":
        return replace(
            self,
            amount_payable=amount,
            actual_amount=amount - self.manual_fee,
        )

    def with_manual_fee(self, fee: int) -> "TransferItem":
        reason = FeeReason.UNSET if fee > 0 else self.fee_reason
        return replace(
            self,
            manual_fee=fee,
            actual_amount=self.amount_payable - fee,
            fee_reason=reason,
        )

    def with_fee_reason(self, reason: FeeReason) -> "TransferItem":
        return replace(
            self,
            fee_reason=reason,
            manual_fee=0,
            actual_amount=self.amount_payable,
        )

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "TransferItem":
        """Rebuild an item from its wire form.

        Monetary fields are coerced and the actual amount is derived again, so
        a stale or hand-edited actualAmount never survives a reload.
        """
        item = cls(
            vendor=Vendor.from_dict(data),
            amount_payable=parse_amount(data.get("amountPayable")),
        )
        reason = FeeReason.coerce(data.get("feeReason"))
        if reason is not FeeReason.UNSET:
            return item.with_fee_reason(reason)
        return item.with_manual_fee(parse_amount(data.get("manualFee")))

    def to_dict(self) -> dict[str, Any]:
        data = self.vendor.to_dict()
        data.update(
            {
                "amountPayable": self.amount_payable,
                "manualFee": self.manual_fee,
                "actualAmount": self.actual_amount,
                "feeReason": self.fee_reason.value,
            }
        )
        return data


@dataclass(frozen=True)
class BatchTotals:
    """Sums over every line of a batch."""

    total_payable: int = 0
    total_fee: int = 0
    total_actual: int = 0

    def to_dict(self) -> dict[str, int]:
        return asdict(self)


@dataclass(frozen=True)
class ParsedVendorFields:
    """Best-effort vendor fields extracted from free text."""

    name: str
    bank: str
    bank_code: str
    account_number: str
    tax_id: str = ""
    address: str = ""
    remarks: str = ""

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "ParsedVendorFields":
        return cls(
            name=str(data.get("name") or ""),
            bank=str(data.get("bank") or ""),
            bank_code=str(data.get("bankCode") or ""),
            account_number=str(data.get("accountNumber") or ""),
            tax_id=str(data.get("taxId") or ""),
            address=str(data.get("address") or ""),
            remarks=str(data.get("remarks") or ""),
        )


@dataclass(frozen=True)
class GenerationResult:
    """Reply from the remote remittance generator."""

    status: str
    download_url: str
