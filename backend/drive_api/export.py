"""
Spreadsheet export of scraped records.
"""

from datetime import datetime, timezone
from pathlib import Path
from typing import List, Optional, Sequence, Tuple
import logging

import pandas as pd

from drive_scraper.base import CardRecord, RECORD_COLUMNS
from drive_scraper.utils.normalizers import sanitize_file_name, vehicle_file_part

logger = logging.getLogger(__name__)

SHEET_NAME = "Car Data"


def records_to_frame(records: Sequence[CardRecord]) -> pd.DataFrame:
    """One row per record, columns in export order."""
    return pd.DataFrame([r.to_row() for r in records], columns=RECORD_COLUMNS)


def build_file_name(vehicles: Optional[List[str]], now: Optional[datetime] = None) -> str:
    """
    Build the spreadsheet name from the vehicle list and a timestamp.

    Examples:
        ['kia seltos', 'mg 5'] -> car_data_kia_seltos_mg_5_2024-01-01T08-00-00-000Z.xlsx
        [] -> car_data_all_cars_<timestamp>.xlsx
    """
    if vehicles and vehicles[0] != "":
        vehicles_part = "_".join(vehicle_file_part(v) for v in vehicles)
    else:
        vehicles_part = "all_cars"

    now = now or datetime.now(timezone.utc)
    timestamp = now.strftime("%Y-%m-%dT%H-%M-%S-") + f"{now.microsecond // 1000:03d}Z"
    return f"car_data_{sanitize_file_name(vehicles_part)}_{timestamp}.xlsx"


def generate_excel_file(
    records: Sequence[CardRecord],
    vehicles: Optional[List[str]],
    output_dir: Path,
) -> Tuple[Path, str]:
    """
    Write records to an .xlsx file.

    Returns:
        Tuple of (file_path, file_name)
    """
    output_dir = Path(output_dir)
    output_dir.mkdir(parents=True, exist_ok=True)

    file_name = build_file_name(vehicles)
    file_path = output_dir / file_name

    records_to_frame(records).to_excel(file_path, sheet_name=SHEET_NAME, index=False)
    logger.info(f"Wrote {len(records)} record(s) to {file_path}")
    return file_path, file_name
