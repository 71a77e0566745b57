"""
Icon size tables.

Static, read-only tables of named target sizes grouped by platform. The
Android density buckets must match what Android tooling expects exactly.
Additional tables can be registered at runtime.

Functions:
    get_size_table: Look up a table by platform name
    list_platforms: Names of all registered tables
    register_size_table: Add a custom table
"""

from dataclasses import dataclass
from typing import Dict, List, Tuple

from IS_Libs.constants import PLATFORM_ANDROID, PLATFORM_ANDROID_STORE, PLATFORM_IOS


@dataclass(frozen=True)
class SizeTableEntry:
    """One named export size."""
    name: str
    pixel_size: int

    def __post_init__(self):
        if not self.name:
            raise ValueError("SizeTableEntry name cannot be empty")
        if int(self.pixel_size) <= 0:
            raise ValueError(f"pixel_size must be > 0, got {self.pixel_size}")


@dataclass(frozen=True)
class SizeTable:
    """Sizes for one platform.

    Attributes:
        platform: Platform name, also the top-level folder of exported files
        entries: Ordered size entries
        path_template: Relative output path; '{name}' is replaced per entry
        download_template: File name used when an entry is offered on its own
    """
    platform: str
    entries: Tuple[SizeTableEntry, ...]
    path_template: str
    download_template: str = "{platform}_{name}.png"

    def path_for(self, entry: SizeTableEntry) -> str:
        return f"{self.platform}/{self.path_template.format(name=entry.name, size=entry.pixel_size)}"

    def download_name_for(self, entry: SizeTableEntry) -> str:
        return self.download_template.format(platform=self.platform, name=entry.name, size=entry.pixel_size)

    def __iter__(self):
        return iter(self.entries)

    def __len__(self) -> int:
        return len(self.entries)


def _entries(*pairs: Tuple[str, int]) -> Tuple[SizeTableEntry, ...]:
    return tuple(SizeTableEntry(name, size) for name, size in pairs)


ANDROID_DENSITIES = SizeTable(
    platform=PLATFORM_ANDROID,
    entries=_entries(
        ("mdpi", 48),
        ("hdpi", 72),
        ("xhdpi", 96),
        ("xxhdpi", 144),
        ("xxxhdpi", 192),
    ),
    path_template="res/drawable-{name}/ic_launcher.png",
    download_template="ic_launcher_{name}.png",
)

ANDROID_STORE_LISTING = SizeTable(
    platform=PLATFORM_ANDROID_STORE,
    entries=_entries(("ic_launcher-web", 512)),
    path_template="{name}.png",
    download_template="{name}.png",
)

IOS_APP_ICONS = SizeTable(
    platform=PLATFORM_IOS,
    entries=_entries(
        ("AppIcon20x20@1x", 20),
        ("AppIcon20x20@2x", 40),
        ("AppIcon20x20@3x", 60),
        ("AppIcon29x29@1x", 29),
        ("AppIcon29x29@2x", 58),
        ("AppIcon29x29@3x", 87),
        ("AppIcon40x40@1x", 40),
        ("AppIcon40x40@2x", 80),
        ("AppIcon40x40@3x", 120),
        ("AppIcon60x60@2x", 120),
        ("AppIcon60x60@3x", 180),
        ("AppIcon76x76@1x", 76),
        ("AppIcon76x76@2x", 152),
        ("AppIcon83.5x83.5@2x", 167),
        ("ItunesArtwork@2x", 1024),
    ),
    path_template="AppIcon.appiconset/{name}.png",
    download_template="{name}.png",
)

_size_tables: Dict[str, SizeTable] = {
    ANDROID_DENSITIES.platform: ANDROID_DENSITIES,
    ANDROID_STORE_LISTING.platform: ANDROID_STORE_LISTING,
    IOS_APP_ICONS.platform: IOS_APP_ICONS,
}


def get_size_table(platform: str) -> SizeTable:
    """
    Raises:
        KeyError: If no table is registered for the platform
    """
    try:
        return _size_tables[platform]
    except KeyError:
        available = ", ".join(list_platforms())
        raise KeyError(f"Unknown platform '{platform}'. Available platforms: {available}")


def list_platforms() -> List[str]:
    return sorted(_size_tables)


def register_size_table(table: SizeTable, replace: bool = False) -> None:
    """
    Register an additional size table.

    Raises:
        RuntimeError: If the platform exists and replace is False
    """
    if table.platform in _size_tables and not replace:
        raise RuntimeError(
            f"Size table '{table.platform}' is already registered. "
            f"Pass replace=True to override it."
        )
    _size_tables[table.platform] = table
