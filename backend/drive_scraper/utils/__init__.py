"""Shared utilities for scrapers."""

from .normalizers import (
    normalize_whitespace,
    vehicle_slug,
    vehicle_file_part,
    sanitize_file_name,
)
from .extractors import (
    extract_year,
    join_features,
    classify_price_lines,
    extract_mileage,
    extract_insurance,
)

__all__ = [
    'normalize_whitespace',
    'vehicle_slug',
    'vehicle_file_part',
    'sanitize_file_name',
    'extract_year',
    'join_features',
    'classify_price_lines',
    'extract_mileage',
    'extract_insurance',
]
