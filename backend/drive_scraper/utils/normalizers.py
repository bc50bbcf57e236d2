"""
Text normalization utilities for scrapers.

These functions standardize scraped text and vehicle names into the
formats used for URLs and file names.
"""

import re


def normalize_whitespace(text: str) -> str:
    """
    Collapse whitespace runs to single spaces and trim.

    Examples:
        "  Automatic \\n  5 seats " -> "Automatic 5 seats"
    """
    if not text:
        return ''
    return re.sub(r'\s+', ' ', text).strip()


def vehicle_slug(name: str) -> str:
    """
    Convert a vehicle name to its listing URL path.

    Examples:
        kia seltos -> kia/seltos
        Mitsubishi  ASX -> mitsubishi/asx
    """
    return re.sub(r'\s+', '/', name.strip().lower())


def vehicle_file_part(name: str) -> str:
    """
    Convert a vehicle name to a file name fragment.

    Examples:
        kia seltos -> kia_seltos
        mg/gt -> mg_gt
    """
    return re.sub(r'\s+', '_', name.strip().lower()).replace('/', '_')


def sanitize_file_name(text: str, max_length: int = 100) -> str:
    """
    Replace anything outside [A-Za-z0-9-_] with underscores, collapse
    repeats and truncate.
    """
    cleaned = re.sub(r'[^a-zA-Z0-9\-_]', '_', text)
    cleaned = re.sub(r'_+', '_', cleaned)
    return cleaned[:max_length]
