"""Numeric helper functions shared across the application."""

from __future__ import annotations

from typing import Optional, Union


def as_probability(value: Optional[Union[str, float]]) -> Optional[float]:
    """
    Convert percentage-style inputs to decimals while preserving None.

    Text ending in ``%`` is always a percentage, so ``"1%"`` becomes ``0.01``.
    Bare values above 1 are read as percentages too, so ``5`` becomes ``0.05``
    while ``1`` stays a certain failure.
    """
    if value is None:
        return None
    if isinstance(value, str):
        text = value.strip()
        if text.endswith("%"):
            text = text[:-1].strip()
            if not text:
                return None
            return float(text) / 100.0
        if not text:
            return None
        value = float(text)
    numeric = float(value)
    if numeric > 1.0:
        return numeric / 100.0
    return numeric


def parse_bool(value: str) -> bool:
    text = value.strip().lower()
    if text in {"1", "true", "yes", "on", "y"}:
        return True
    if text in {"0", "false", "no", "off", "n"}:
        return False
    raise ValueError(f"Cannot interpret {value!r} as a boolean")


__all__ = ["as_probability", "parse_bool"]
