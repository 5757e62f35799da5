"""Tests for remittance file naming and saving."""

from datetime import date

from vendor_remit.download import remittance_filename, save_remittance


def test_filename_uses_compact_date():
    assert remittance_filename(date(2024, 3, 9)) == "20240309農會匯款單.xlsx"


def test_filename_custom_suffix():
    assert remittance_filename(date(2024, 12, 31), "_remittance.xlsx") == "20241231_remittance.xlsx"


def test_filename_defaults_to_today():
    name = remittance_filename()

    assert len(name) == len("YYYYMMDD") + len("農會匯款單.xlsx")
    assert name[:8].isdigit()


def test_save_overwrites_same_day(tmp_path):
    day = date(2024, 3, 9)
    save_remittance(b"first", tmp_path / "out", day)

    path = save_remittance(b"second", tmp_path / "out", day)

    assert path == tmp_path / "out" / "20240309農會匯款單.xlsx"
    assert path.read_bytes() == b"second"
