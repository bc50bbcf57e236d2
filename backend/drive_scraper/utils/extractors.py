"""
Data extraction utilities for scrapers.

These functions classify text already pulled out of a page. They never
touch the browser, so they can be tested against plain line lists.
"""

import re
from typing import Dict, Iterable, List, Tuple

from ..base import NOT_AVAILABLE
from .normalizers import normalize_whitespace


TOTAL_PATTERN = re.compile(r'Total:', re.IGNORECASE)
CURRENCY_MARKER = 'AED'

KM_PATTERN = re.compile(r'([\d,]+)\s*km', re.IGNORECASE)
PER_KM_PRICE_PATTERN = re.compile(r'AED\s?(\d+(?:\.\d+)?)', re.IGNORECASE)

COMPREHENSIVE_LABEL = 'Comprehensive Insurance'
EXCESS_PATTERN = re.compile(r'excess amount.*\d+.*AED', re.IGNORECASE)
DEPOSIT_FREE_PATTERN = re.compile(r'deposit[- ]free ride.*AED', re.IGNORECASE)


def extract_year(model_text: str) -> str:
    """
    Extract the model year from the model line.

    Examples:
        "Kia Seltos 2023 or similar" -> "2023"
        "Kia Seltos" -> "N/A"
    """
    match = re.search(r'\d{4}', model_text or '')
    return match.group(0) if match else NOT_AVAILABLE


def join_features(texts: Iterable[str]) -> str:
    """
    Join feature badge texts into one description.

    Examples:
        ["Automatic", " 5  seats "] -> "Automatic, 5 seats"
        [] -> "N/A"
    """
    parts = [t.strip() for t in texts if t and t.strip()]
    if not parts:
        return NOT_AVAILABLE
    return normalize_whitespace(', '.join(parts))


def classify_price_lines(lines: Iterable[Tuple[str, bool]]) -> Dict[str, str]:
    """
    Classify the paragraphs of a card's price block.

    Each line is a (text, struck) pair where `struck` says whether the
    paragraph carries the cross-out marker. Lines are taken top to bottom
    and the last match of each category wins:
        "Total: AED 1,050"   -> total = "AED 1,050"
        ("AED 140", True)    -> cross_price
        ("AED 105", False)   -> actual_price

    Returns:
        Dict with cross_price, actual_price and total
    """
    result = {
        'cross_price': NOT_AVAILABLE,
        'actual_price': NOT_AVAILABLE,
        'total': NOT_AVAILABLE,
    }

    for text, struck in lines:
        text = (text or '').strip()
        if TOTAL_PATTERN.search(text):
            result['total'] = TOTAL_PATTERN.sub('', text, count=1).strip()
        elif CURRENCY_MARKER in text and struck:
            result['cross_price'] = text
        elif CURRENCY_MARKER in text:
            result['actual_price'] = text

    return result


def extract_mileage(texts: Iterable[str]) -> str:
    """
    Build the mileage allowance description from the mileage panel texts.

    Examples:
        ["250 km included", "then AED 0.5 per extra km"]
            -> "250 km, then 0.5 AED per km"
    """
    combined = ' '.join(t.strip() for t in texts if t)

    km_match = KM_PATTERN.search(combined)
    price_match = PER_KM_PRICE_PATTERN.search(combined)

    if km_match and price_match:
        km = km_match.group(1).replace(',', '')
        return f"{km} km, then {price_match.group(1)} AED per km"

    return NOT_AVAILABLE


def extract_insurance(lines: List[str]) -> str:
    """
    Pick the insurance and deposit terms out of the insurance panel lines.

    Matched lines are kept in scan order and joined with newlines. A bare
    "Deposit" line followed by an amount becomes " or Deposit AED 1,500".
    """
    lines = [line.strip() for line in lines if line and line.strip()]
    result = []

    for i, line in enumerate(lines):
        if COMPREHENSIVE_LABEL in line:
            result.append(line)

        if EXCESS_PATTERN.search(line):
            result.append(line)

        if DEPOSIT_FREE_PATTERN.search(line):
            result.append(line)

        if line.lower() == 'deposit' and i + 1 < len(lines) and CURRENCY_MARKER in lines[i + 1]:
            result.append(f" or {line} {lines[i + 1]}")

    return '\n'.join(result) if result else NOT_AVAILABLE
