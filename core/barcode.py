"""Barcode canonicalization.

Barcodes arrive with spaces, dashes, check-digit separators or as stripped
integers. Lookup providers compare digit strings, so every caller works from
the canonical digit form and its padded EAN-13 variant.
"""

import re

NON_DIGITS = re.compile(r"\D+")


def canonicalize_barcode(raw: str | None) -> str | None:
    """Reduce a barcode to its canonical digit string.

    12 and 13 digit codes (UPC-A / EAN-13) are kept verbatim. Any other length
    has leading zeros removed, falling back to the digit string when that
    would leave nothing.

    Returns:
        Canonical digits, or None when the input holds no digits
    """
    if not raw:
        return None
    digits = NON_DIGITS.sub("", str(raw))
    if not digits:
        return None
    if len(digits) in (12, 13):
        return digits
    return digits.lstrip("0") or digits


def barcode_variants(canonical: str | None) -> list[str]:
    """Ordered barcodes to try against lookup providers.

    The canonical form comes first; a 12-digit UPC is followed by its
    zero-padded 13-digit EAN equivalent.
    """
    if not canonical:
        return []
    variants = [canonical]
    if len(canonical) == 12:
        variants.append(canonical.zfill(13))
    return variants
