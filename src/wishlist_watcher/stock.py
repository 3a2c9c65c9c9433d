from __future__ import annotations

import re

"""
Stock levels (per tracked item):

  0   -> out of stock
  -1  -> pre-order / not available for immediate purchase
  N>0 -> N units in stock
"""

OUT_OF_STOCK = 0
PRE_ORDER = -1

# Order matters: status text can satisfy several of these at once.
_OUT_OF_STOCK_RE = re.compile(r"Out of stock")
_PRE_ORDER_RE = re.compile(r"Pre-order")
_LOW_STOCK_RE = re.compile(r"Only ([0-9]) left in stock")
_IN_STOCK_RE = re.compile(r"([0-9]+)\+? in stock")


class ClassificationError(ValueError):
    """Raised when stock status text matches none of the known patterns."""

    def __init__(self, text: str):
        super().__init__(f"No stock level found for {text!r}")
        self.text = text


def classify(text: str) -> int:
    if _OUT_OF_STOCK_RE.search(text):
        return OUT_OF_STOCK
    if _PRE_ORDER_RE.search(text):
        return PRE_ORDER
    m = _LOW_STOCK_RE.search(text) or _IN_STOCK_RE.search(text)
    if m:
        return int(m.group(1))
    raise ClassificationError(text)


def describe_level(level: int) -> str:
    if level == OUT_OF_STOCK:
        return "out of stock"
    if level == PRE_ORDER:
        return "pre-order"
    return f"{level} in stock"
