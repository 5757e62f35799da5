"""Transfer batch state and amount derivation.

The batch is an ordered tuple of TransferItem replaced as a whole on every
mutation. Any edit invalidates the last generated remittance sheet.
"""

from collections.abc import Callable, Iterable, Iterator
from typing import Any

import structlog

from vendor_remit.models import BatchTotals, FeeReason, TransferItem, Vendor, parse_amount

logger = structlog.get_logger(__name__)


class BatchValidationError(Exception):
    """The batch cannot be submitted as it stands."""

    pass


class TransferBatch:
    """Vendors staged for payment plus transient generation state.

    Usage:
        batch = TransferBatch(on_change=store.save_batch)
        batch.add_vendor(vendor)
        batch.set_amount_payable(vendor.id, "1000")
        batch.compute_totals()
    """

    def __init__(
        self,
        items: Iterable[TransferItem] = (),
        on_change: Callable[[list[TransferItem]], None] | None = None,
    ):
        self._items: tuple[TransferItem, ...] = tuple(items)
        self._on_change = on_change

        # Not persisted
        self.is_generating = False
        self.generate_error: str | None = None
        self.download_url: str | None = None

    @property
    def items(self) -> tuple[TransferItem, ...]:
        return self._items

    @property
    def vendor_ids(self) -> set[str]:
        return {item.id for item in self._items}

    def __len__(self) -> int:
        return len(self._items)

    def __iter__(self) -> Iterator[TransferItem]:
        return iter(self._items)

    def contains(self, vendor_id: str) -> bool:
        return any(item.id == vendor_id for item in self._items)

    def get(self, vendor_id: str) -> TransferItem | None:
        for item in self._items:
            if item.id == vendor_id:
                return item
        return None

    # === Mutations ===

    def _commit(self, items: tuple[TransferItem, ...]) -> None:
        self._items = items
        if self._on_change:
            self._on_change(list(items))

    def _invalidate(self) -> None:
        """Forget the last generated sheet and its error."""
        self.download_url = None
        self.generate_error = None

    def _update(self, vendor_id: str, change: Callable[[TransferItem], TransferItem]) -> None:
        self._commit(
            tuple(change(item) if item.id == vendor_id else item for item in self._items)
        )
        self._invalidate()

    def add_vendor(self, vendor: Vendor) -> bool:
        """Append a vendor with zeroed amounts. Returns False if already present."""
        if self.contains(vendor.id):
            logger.debug("vendor_already_in_batch", vendor_id=vendor.id)
            return False
        self._commit(self._items + (TransferItem.from_vendor(vendor),))
        self._invalidate()
        logger.info("vendor_added_to_batch", vendor_id=vendor.id, batch_size=len(self._items))
        return True

    def remove_vendor(self, vendor_id: str) -> None:
        self._commit(tuple(item for item in self._items if item.id != vendor_id))
        logger.info("vendor_removed_from_batch", vendor_id=vendor_id, batch_size=len(self._items))

    def set_amount_payable(self, vendor_id: str, raw: Any) -> None:
        amount = parse_amount(raw)
        self._update(vendor_id, lambda item: item.with_amount_payable(amount))

    def set_manual_fee(self, vendor_id: str, raw: Any) -> None:
        fee = parse_amount(raw)
        self._update(vendor_id, lambda item: item.with_manual_fee(fee))

    def set_fee_reason(self, vendor_id: str, reason: FeeReason | str) -> None:
        fee_reason = FeeReason.coerce(reason)
        self._update(vendor_id, lambda item: item.with_fee_reason(fee_reason))

    # === Derived values ===

    def compute_totals(self) -> BatchTotals:
        return BatchTotals(
            total_payable=sum(item.amount_payable for item in self._items),
            total_fee=sum(item.manual_fee for item in self._items),
            total_actual=sum(item.actual_amount for item in self._items),
        )

    def eligible_items(self) -> list[TransferItem]:
        return [item for item in self._items if item.is_eligible]

    def generation_items(self) -> list[TransferItem]:
        """Return the lines to submit, or raise if there is nothing to send."""
        if not self._items:
            raise BatchValidationError("The transfer batch is empty; add at least one vendor.")
        eligible = self.eligible_items()
        if not eligible:
            raise BatchValidationError(
                "No eligible line items: enter a payable amount or fee for at least one vendor."
            )
        return eligible
