"""Immutable colour tables for indexed and theme colour references.

Both tables are read-only mappings built once at import time.
"""

from types import MappingProxyType

# Excel's legacy palette, 0-63, plus 64 (system foreground).
_EXCEL_INDEXED = (
    "000000", "FFFFFF", "FF0000", "00FF00", "0000FF", "FFFF00", "FF00FF", "00FFFF",
    "000000", "FFFFFF", "FF0000", "00FF00", "0000FF", "FFFF00", "FF00FF", "00FFFF",
    "800000", "008000", "000080", "808000", "800080", "008080", "C0C0C0", "808080",
    "9999FF", "993366", "FFFFCC", "CCFFFF", "660066", "FF8080", "0066CC", "CCCCFF",
    "000080", "FF00FF", "FFFF00", "00FFFF", "800080", "800000", "008080", "0000FF",
    "00CCFF", "CCFFFF", "CCFFCC", "FFFF99", "99CCFF", "FF99CC", "CC99FF", "FFCC99",
    "3366FF", "33CCCC", "99CC00", "FFCC00", "FF9900", "FF6600", "666699", "969696",
    "003366", "339966", "003300", "333300", "993300", "993366", "333399", "333333",
    "000000",
)

# Colours used by the ministry calendar templates for site selection, land
# preparation, harvest, nursery, planting and post-harvest activities.
_AGRICULTURAL_INDEXED = {
    65: "00B0F0",
    66: "BF9000",
    67: "FF6600",
    68: "008000",
    69: "800080",
}

INDEXED_PALETTE: MappingProxyType[int, str] = MappingProxyType(
    {**dict(enumerate(_EXCEL_INDEXED)), **_AGRICULTURAL_INDEXED}
)

# Office 2013+ default theme: lt1, dk1, lt2, dk2, accent1-6.
THEME_PALETTE: MappingProxyType[int, str] = MappingProxyType(
    dict(
        enumerate(
            (
                "FFFFFF",
                "000000",
                "E7E6E6",
                "44546A",
                "5B9BD5",
                "ED7D31",
                "A5A5A5",
                "FFC000",
                "4472C4",
                "70AD47",
            )
        )
    )
)
