"""Serving size normalization for free-text portion descriptions."""

import re

from food_scan_api.models.food_scan import ServingUnits

DEFAULT_SERVING = "1 serving"

# A standard US can; used when the text only says "can"/"lata"/"33cl".
CAN_VOLUME_ML = 355

MASS_RE = re.compile(r"(\d+(?:\.\d+)?)\s?g\b", re.IGNORECASE)
VOLUME_RE = re.compile(r"(\d+(?:\.\d+)?)\s?ml\b", re.IGNORECASE)
COUNT_RE = re.compile(
    r"(\d+)\s?(x|pcs?|pieces?|cookies?|bars?|eggs?|slices?)", re.IGNORECASE
)
CAN_RE = re.compile(r"\b(?:cans?|latas?|33\s?cl)\b", re.IGNORECASE)


def normalize_serving_size(raw: str | None) -> tuple[str, ServingUnits]:
    """
    Parse a serving description into canonical text plus structured units.

    Args:
        raw: Serving text from the model (e.g. "2 bars (80 g)", "355 ml can")

    Returns:
        Tuple of (serving text, units). Several unit kinds may be set at once.
    """
    if not raw or not raw.strip():
        return DEFAULT_SERVING, ServingUnits()

    text = raw.strip()
    units = ServingUnits()

    if mass := MASS_RE.search(text):
        units.mass_g = float(mass.group(1))
    if volume := VOLUME_RE.search(text):
        units.volume_ml = float(volume.group(1))
    if count := COUNT_RE.search(text):
        units.count = int(count.group(1))

    if units.volume_ml is None and CAN_RE.search(text):
        units.volume_ml = float(CAN_VOLUME_ML)

    return text, units
