"""Tests for the transfer batch engine."""

import random

import pytest

from vendor_remit.batch import BatchValidationError, TransferBatch
from vendor_remit.models import FeeReason, TransferItem


def _assert_derived(item: TransferItem) -> None:
    if item.fee_reason is FeeReason.UNSET:
        assert item.actual_amount == item.amount_payable - item.manual_fee
    else:
        assert item.manual_fee == 0
        assert item.actual_amount == item.amount_payable


class TestAddRemove:
    def test_add_appends_zeroed_item(self, vendors):
        batch = TransferBatch()

        assert batch.add_vendor(vendors[0]) is True

        assert len(batch) == 1
        item = batch.items[0]
        assert item.amount_payable == 0
        assert item.manual_fee == 0
        assert item.actual_amount == 0
        assert item.fee_reason is FeeReason.UNSET

    def test_adding_same_id_twice_is_noop(self, vendors):
        batch = TransferBatch()
        batch.add_vendor(vendors[0])
        batch.set_amount_payable("v1", "500")

        assert batch.add_vendor(vendors[0]) is False

        assert len(batch) == 1
        assert batch.items[0].amount_payable == 500

    def test_insertion_order_is_kept(self, make_vendor):
        batch = TransferBatch()
        for vendor_id in ("c", "a", "b"):
            batch.add_vendor(make_vendor(vendor_id))

        assert [item.id for item in batch] == ["c", "a", "b"]

    def test_remove_unknown_id_is_noop(self, vendors):
        batch = TransferBatch()
        batch.add_vendor(vendors[0])

        batch.remove_vendor("missing")

        assert batch.vendor_ids == {"v1"}

    def test_remove_drops_item(self, vendors):
        batch = TransferBatch()
        batch.add_vendor(vendors[0])
        batch.add_vendor(vendors[1])

        batch.remove_vendor("v1")

        assert batch.vendor_ids == {"v2"}

    def test_add_clears_previous_generation(self, vendors):
        batch = TransferBatch()
        batch.download_url = "https://x/y.xlsx"
        batch.generate_error = "old error"

        batch.add_vendor(vendors[0])

        assert batch.download_url is None
        assert batch.generate_error is None


class TestDerivation:
    def test_payable_minus_fee(self, vendors):
        batch = TransferBatch()
        batch.add_vendor(vendors[0])

        batch.set_amount_payable("v1", "1000")
        batch.set_manual_fee("v1", "20")

        item = batch.get("v1")
        assert item.actual_amount == 980

    def test_cash_reason_zeroes_fee(self, vendors):
        batch = TransferBatch()
        batch.add_vendor(vendors[0])
        batch.set_amount_payable("v1", "200")
        batch.set_manual_fee("v1", "50")

        batch.set_fee_reason("v1", FeeReason.CASH)

        item = batch.get("v1")
        assert item.manual_fee == 0
        assert item.actual_amount == 200
        assert item.fee_reason is FeeReason.CASH

    def test_positive_fee_clears_reason(self, vendors):
        batch = TransferBatch()
        batch.add_vendor(vendors[0])
        batch.set_amount_payable("v1", "200")
        batch.set_fee_reason("v1", "waived")

        batch.set_manual_fee("v1", "15")

        item = batch.get("v1")
        assert item.fee_reason is FeeReason.UNSET
        assert item.actual_amount == 185

    def test_zero_fee_keeps_reason(self, vendors):
        batch = TransferBatch()
        batch.add_vendor(vendors[0])
        batch.set_amount_payable("v1", "200")
        batch.set_fee_reason("v1", "cash")

        batch.set_manual_fee("v1", "")

        item = batch.get("v1")
        assert item.fee_reason is FeeReason.CASH
        assert item.actual_amount == 200

    def test_payable_change_with_reason_active(self, vendors):
        batch = TransferBatch()
        batch.add_vendor(vendors[0])
        batch.set_fee_reason("v1", "waived")

        batch.set_amount_payable("v1", "750")

        assert batch.get("v1").actual_amount == 750

    @pytest.mark.parametrize("raw", ["", "abc", "-40", None])
    def test_bad_input_becomes_zero(self, vendors, raw):
        batch = TransferBatch()
        batch.add_vendor(vendors[0])
        batch.set_amount_payable("v1", "300")

        batch.set_amount_payable("v1", raw)
        batch.set_manual_fee("v1", raw)

        item = batch.get("v1")
        assert item.amount_payable == 0
        assert item.manual_fee == 0
        assert item.actual_amount == 0

    def test_oversized_input_becomes_zero(self, vendors):
        batch = TransferBatch()
        batch.add_vendor(vendors[0])
        batch.set_amount_payable("v1", "300")

        batch.set_amount_payable("v1", "1" * 5000)
        batch.set_manual_fee("v1", "9" * 5000)

        item = batch.get("v1")
        assert item.amount_payable == 0
        assert item.manual_fee == 0
        assert item.actual_amount == 0

    def test_derivation_holds_for_any_edit_sequence(self, vendors):
        rng = random.Random(7)
        batch = TransferBatch()
        batch.add_vendor(vendors[0])
        inputs = ["0", "5", "120", "3000", "", "x", "-9", "42.5"]

        for _ in range(300):
            action = rng.choice(["payable", "fee", "reason"])
            if action == "payable":
                batch.set_amount_payable("v1", rng.choice(inputs))
            elif action == "fee":
                batch.set_manual_fee("v1", rng.choice(inputs))
            else:
                batch.set_fee_reason("v1", rng.choice(list(FeeReason)))
            _assert_derived(batch.get("v1"))

    def test_edit_unknown_id_changes_nothing(self, vendors):
        batch = TransferBatch()
        batch.add_vendor(vendors[0])
        before = batch.items

        batch.set_amount_payable("missing", "100")

        assert batch.items == before

    def test_edit_invalidates_generation(self, vendors):
        batch = TransferBatch()
        batch.add_vendor(vendors[0])
        batch.download_url = "https://x/y.xlsx"
        batch.generate_error = "boom"

        batch.set_manual_fee("v1", "10")

        assert batch.download_url is None
        assert batch.generate_error is None

    def test_items_are_replaced_not_mutated(self, vendors):
        batch = TransferBatch()
        batch.add_vendor(vendors[0])
        snapshot = batch.items

        batch.set_amount_payable("v1", "100")

        assert snapshot[0].amount_payable == 0
        assert batch.items[0].amount_payable == 100


class TestTotals:
    def test_empty_batch_totals_are_zero(self):
        totals = TransferBatch().compute_totals()

        assert totals.total_payable == 0
        assert totals.total_fee == 0
        assert totals.total_actual == 0

    def test_totals_sum_each_field(self, make_vendor):
        batch = TransferBatch()
        for vendor_id, payable, fee in (("a", "1000", "20"), ("b", "500", "0"), ("c", "40", "60")):
            batch.add_vendor(make_vendor(vendor_id))
            batch.set_amount_payable(vendor_id, payable)
            batch.set_manual_fee(vendor_id, fee)

        totals = batch.compute_totals()

        assert totals.total_payable == 1540
        assert totals.total_fee == 80
        assert totals.total_actual == 980 + 500 - 20
        assert totals.to_dict() == {
            "total_payable": 1540,
            "total_fee": 80,
            "total_actual": 1460,
        }


class TestEligibility:
    def test_all_zero_batch_is_rejected(self, make_vendor):
        batch = TransferBatch()
        for vendor_id in ("a", "b", "c"):
            batch.add_vendor(make_vendor(vendor_id))

        with pytest.raises(BatchValidationError, match="No eligible line items"):
            batch.generation_items()

    def test_empty_batch_is_rejected(self):
        with pytest.raises(BatchValidationError, match="empty"):
            TransferBatch().generation_items()

    def test_filter_keeps_payable_fee_or_reason(self, make_vendor):
        batch = TransferBatch()
        for vendor_id in ("payable", "fee", "reason", "idle"):
            batch.add_vendor(make_vendor(vendor_id))
        batch.set_amount_payable("payable", "10")
        batch.set_manual_fee("fee", "15")
        batch.set_fee_reason("reason", "cash")

        eligible = batch.generation_items()

        assert [item.id for item in eligible] == ["payable", "fee", "reason"]


class TestChangeHook:
    def test_hook_receives_each_new_list(self, vendors):
        seen: list[list[TransferItem]] = []
        batch = TransferBatch(on_change=seen.append)

        batch.add_vendor(vendors[0])
        batch.add_vendor(vendors[0])
        batch.set_amount_payable("v1", "9")
        batch.remove_vendor("v1")

        assert len(seen) == 3
        assert seen[1][0].amount_payable == 9
        assert seen[2] == []
