"""Resolve raw cell fills to canonical ``#RRGGBB`` colours.

Resolution is an ordered chain of strategies. Each strategy looks at one
colour reference and either returns a canonical colour or ``None`` to let the
next strategy try. The background slot of a fill is tried first, then the
foreground/pattern slot. A fill with nothing resolvable has no colour, which
is an expected outcome rather than an error.
"""

from __future__ import annotations

import re
from collections.abc import Mapping, Sequence
from typing import Protocol

from agri_calendar_extraction.services.color_palettes import (
    INDEXED_PALETTE,
    THEME_PALETTE,
)
from agri_calendar_extraction.workbook import (
    ArgbColor,
    ColorRef,
    FillDescriptor,
    IndexedColor,
    RgbColor,
    ThemeColor,
)

_HEX6 = re.compile(r"^[0-9A-Fa-f]{6}$")
_HEX8 = re.compile(r"^[0-9A-Fa-f]{8}$")


def normalize_hex(value: str) -> str | None:
    """Return ``#RRGGBB`` for six hex digits (with or without ``#``)."""
    digits = value.strip().lstrip("#")
    if not _HEX6.match(digits):
        return None
    return f"#{digits.upper()}"


def apply_tint(hex_color: str, tint: float) -> str:
    """Lighten (tint > 0) or darken (tint < 0) a colour.

    Positive tints move each channel toward 255 by ``tint``; negative tints
    move it toward 0 by ``|tint|``. Tints are clamped to [-1, 1].

    Args:
        hex_color: Six hex digits, optionally prefixed with ``#``.
        tint: Signed tint fraction.

    Returns:
        The tinted colour as ``#RRGGBB``.
    """
    digits = hex_color.lstrip("#")
    tint = max(-1.0, min(1.0, tint))
    channels = []
    for i in (0, 2, 4):
        channel = int(digits[i : i + 2], 16)
        if tint > 0:
            channel = channel + (255 - channel) * tint
        elif tint < 0:
            channel = channel * (1 + tint)
        channels.append(max(0, min(255, round(channel))))
    return "#" + "".join(f"{c:02X}" for c in channels)


class ColorStrategy(Protocol):
    """One step of the resolution chain."""

    name: str

    def resolve(self, ref: ColorRef) -> str | None: ...


class DirectRgbStrategy:
    """Six hex digits are used as-is."""

    name = "rgb"

    def resolve(self, ref: ColorRef) -> str | None:
        if isinstance(ref, RgbColor):
            return normalize_hex(ref.hex)
        return None


class ArgbStrategy:
    """Eight hex digits: the leading alpha byte is discarded."""

    name = "argb"

    def resolve(self, ref: ColorRef) -> str | None:
        if isinstance(ref, ArgbColor) and _HEX8.match(ref.hex.strip()):
            return normalize_hex(ref.hex.strip()[2:])
        return None


class IndexedPaletteStrategy:
    name = "indexed"

    def __init__(self, palette: Mapping[int, str] = INDEXED_PALETTE) -> None:
        self._palette = palette

    def resolve(self, ref: ColorRef) -> str | None:
        if not isinstance(ref, IndexedColor):
            return None
        entry = self._palette.get(ref.index)
        return normalize_hex(entry) if entry else None


class ThemeTintStrategy:
    name = "theme"

    def __init__(self, palette: Mapping[int, str] = THEME_PALETTE) -> None:
        self._palette = palette

    def resolve(self, ref: ColorRef) -> str | None:
        if not isinstance(ref, ThemeColor):
            return None
        base = self._palette.get(ref.index)
        if base is None:
            return None
        return apply_tint(base, ref.tint) if ref.tint else normalize_hex(base)


DEFAULT_STRATEGIES: tuple[ColorStrategy, ...] = (
    DirectRgbStrategy(),
    ArgbStrategy(),
    IndexedPaletteStrategy(),
    ThemeTintStrategy(),
)


class ColorResolver:
    """Resolve fills by running an ordered strategy chain.

    The resolver holds no mutable state; one instance can be shared by any
    number of concurrent parses.

    Args:
        strategies: Strategies in evaluation order. The first to return a
            colour wins.
    """

    def __init__(self, strategies: Sequence[ColorStrategy] = DEFAULT_STRATEGIES) -> None:
        self._strategies = tuple(strategies)

    @property
    def strategies(self) -> tuple[ColorStrategy, ...]:
        return self._strategies

    def resolve_ref(self, ref: ColorRef | None) -> str | None:
        """Resolve a single colour reference."""
        if ref is None:
            return None
        for strategy in self._strategies:
            color = strategy.resolve(ref)
            if color is not None:
                return color
        return None

    def resolve(self, fill: FillDescriptor | None) -> str | None:
        """Resolve a fill to ``#RRGGBB``, or None when it carries no colour.

        Args:
            fill: Raw fill descriptor of a cell.

        Returns:
            Canonical colour from the background slot, else from the
            foreground slot, else None.
        """
        if fill is None:
            return None
        return self.resolve_ref(fill.background) or self.resolve_ref(fill.foreground)
