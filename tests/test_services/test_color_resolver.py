"""Tests for fill colour resolution."""

import pytest

from agri_calendar_extraction.services.color_palettes import (
    INDEXED_PALETTE,
    THEME_PALETTE,
)
from agri_calendar_extraction.services.color_resolver import (
    DEFAULT_STRATEGIES,
    ArgbStrategy,
    ColorResolver,
    DirectRgbStrategy,
    IndexedPaletteStrategy,
    ThemeTintStrategy,
    apply_tint,
    normalize_hex,
)
from agri_calendar_extraction.workbook import (
    NO_FILL,
    ArgbColor,
    FillDescriptor,
    IndexedColor,
    RgbColor,
    ThemeColor,
)


def _channels(color: str) -> tuple[int, int, int]:
    return tuple(int(color[i : i + 2], 16) for i in (1, 3, 5))  # type: ignore[return-value]


class TestNormalizeHex:
    @pytest.mark.parametrize(
        ("raw", "expected"),
        [("ff0000", "#FF0000"), ("#00b0f0", "#00B0F0"), (" BF9000 ", "#BF9000")],
    )
    def test_valid(self, raw: str, expected: str) -> None:
        assert normalize_hex(raw) == expected

    @pytest.mark.parametrize("raw", ["", "FFF", "GG0000", "FF00000"])
    def test_invalid(self, raw: str) -> None:
        assert normalize_hex(raw) is None


class TestApplyTint:
    def test_zero_tint_is_identity(self) -> None:
        assert apply_tint("4472C4", 0.0) == "#4472C4"

    def test_positive_tint_lightens(self) -> None:
        assert apply_tint("000000", 0.5) == "#808080"

    def test_negative_tint_darkens(self) -> None:
        assert apply_tint("FFFFFF", -0.5) == "#808080"

    def test_full_tints_reach_extremes(self) -> None:
        assert apply_tint("4472C4", 1.0) == "#FFFFFF"
        assert apply_tint("4472C4", -1.0) == "#000000"

    def test_out_of_range_tint_is_clamped(self) -> None:
        assert apply_tint("4472C4", 3.0) == "#FFFFFF"
        assert apply_tint("4472C4", -3.0) == "#000000"


class TestStrategies:
    def test_direct_rgb(self) -> None:
        assert DirectRgbStrategy().resolve(RgbColor("ff0000")) == "#FF0000"
        assert DirectRgbStrategy().resolve(ArgbColor("FFFF0000")) is None

    def test_argb_discards_alpha(self) -> None:
        assert ArgbStrategy().resolve(ArgbColor("FFBF9000")) == "#BF9000"

    def test_argb_ignores_alpha_value(self) -> None:
        assert ArgbStrategy().resolve(ArgbColor("00BF9000")) == "#BF9000"

    def test_argb_rejects_malformed(self) -> None:
        assert ArgbStrategy().resolve(ArgbColor("ZZBF9000")) is None

    def test_indexed_uses_palette(self) -> None:
        assert IndexedPaletteStrategy().resolve(IndexedColor(2)) == "#FF0000"

    def test_indexed_agricultural_extension(self) -> None:
        assert IndexedPaletteStrategy().resolve(IndexedColor(66)) == "#BF9000"

    def test_indexed_unknown_index(self) -> None:
        assert IndexedPaletteStrategy().resolve(IndexedColor(500)) is None

    def test_indexed_custom_palette(self) -> None:
        strategy = IndexedPaletteStrategy({2: "123456"})
        assert strategy.resolve(IndexedColor(2)) == "#123456"

    def test_theme_without_tint(self) -> None:
        assert ThemeTintStrategy().resolve(ThemeColor(4)) == "#5B9BD5"

    def test_theme_unknown_index(self) -> None:
        assert ThemeTintStrategy().resolve(ThemeColor(42)) is None


class TestColorResolver:
    def test_argb_descriptor(self, resolver: ColorResolver) -> None:
        fill = FillDescriptor(background=ArgbColor("FFBF9000"))
        assert resolver.resolve(fill) == "#BF9000"

    def test_indexed_descriptor_matches_table_entry(
        self, resolver: ColorResolver
    ) -> None:
        fill = FillDescriptor(background=IndexedColor(2))
        assert resolver.resolve(fill) == f"#{INDEXED_PALETTE[2]}"
        assert resolver.resolve(fill) == "#FF0000"

    def test_indexed_descriptor_independent_of_other_slot(
        self, resolver: ColorResolver
    ) -> None:
        fill = FillDescriptor(background=IndexedColor(2), foreground=ThemeColor(4, 0.4))
        assert resolver.resolve(fill) == "#FF0000"

    def test_theme_black_half_tint_between_black_and_white(
        self, resolver: ColorResolver
    ) -> None:
        assert THEME_PALETTE[1] == "000000"
        color = resolver.resolve(FillDescriptor(background=ThemeColor(1, 0.5)))

        assert color is not None
        channels = _channels(color)
        assert all(0 < c < 255 for c in channels)
        assert color == "#808080"

    def test_background_wins_over_foreground(self, resolver: ColorResolver) -> None:
        fill = FillDescriptor(
            background=RgbColor("00FF00"), foreground=RgbColor("0000FF")
        )
        assert resolver.resolve(fill) == "#00FF00"

    def test_falls_back_to_foreground(self, resolver: ColorResolver) -> None:
        fill = FillDescriptor(
            background=IndexedColor(999), foreground=ArgbColor("FF0000FF")
        )
        assert resolver.resolve(fill) == "#0000FF"

    def test_empty_fill_has_no_color(self, resolver: ColorResolver) -> None:
        assert resolver.resolve(NO_FILL) is None
        assert resolver.resolve(None) is None

    def test_unresolvable_fill_has_no_color(self, resolver: ColorResolver) -> None:
        fill = FillDescriptor(background=ThemeColor(42), foreground=IndexedColor(999))
        assert resolver.resolve(fill) is None

    def test_default_strategy_order(self, resolver: ColorResolver) -> None:
        assert [s.name for s in resolver.strategies] == [
            "rgb",
            "argb",
            "indexed",
            "theme",
        ]
        assert resolver.strategies == DEFAULT_STRATEGIES

    def test_custom_strategy_chain(self) -> None:
        resolver = ColorResolver([IndexedPaletteStrategy({7: "ABCDEF"})])
        assert resolver.resolve(FillDescriptor(background=IndexedColor(7))) == "#ABCDEF"
        assert resolver.resolve(FillDescriptor(background=RgbColor("FF0000"))) is None

    def test_resolution_is_stable(self, resolver: ColorResolver) -> None:
        fill = FillDescriptor(background=ThemeColor(5, -0.25))
        assert resolver.resolve(fill) == resolver.resolve(fill)
