"""Naming and saving of generated remittance files."""

from datetime import UTC, date, datetime
from pathlib import Path

import structlog

logger = structlog.get_logger(__name__)

DEFAULT_SUFFIX = "農會匯款單.xlsx"


def remittance_filename(day: date | None = None, suffix: str = DEFAULT_SUFFIX) -> str:
    """File name for a remittance sheet: ``YYYYMMDD`` followed by `suffix`.

    The date defaults to today in UTC.
    """
    day = day or datetime.now(UTC).date()
    return f"{day:%Y%m%d}{suffix}"


def save_remittance(
    content: bytes,
    directory: Path | str,
    day: date | None = None,
    suffix: str = DEFAULT_SUFFIX,
) -> Path:
    """Write the file into `directory`, replacing one of the same name."""
    target_dir = Path(directory)
    target_dir.mkdir(parents=True, exist_ok=True)
    path = target_dir / remittance_filename(day, suffix)
    path.write_bytes(content)
    logger.info("remittance_saved", path=str(path), size=len(content))
    return path
