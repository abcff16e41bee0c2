from __future__ import annotations

"""Immutable layout configuration.

Colours, page geometry and layout constants live in one frozen value that
is handed to the assembler. `load_config()` reads the few knobs that can be
tuned from the environment.
"""

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional, Tuple

from reportlab.lib import colors


BASE_DIR = Path(__file__).resolve().parent.parent
DEFAULT_FONT_PATH = BASE_DIR / "fonts" / "Cairo-VariableFont_slnt,wght.ttf"
SYSTEM_FONT_PATHS: Tuple[str, ...] = (
    "/usr/share/fonts/truetype/dejavu/DejaVuSans.ttf",
    "/usr/share/fonts/dejavu/DejaVuSans.ttf",
)


def _rgb(r: float, g: float, b: float):
    return field(default_factory=lambda: colors.Color(r, g, b))


@dataclass(frozen=True)
class Palette:
    primary: colors.Color = _rgb(0.102, 0.318, 0.545)
    secondary: colors.Color = _rgb(0.851, 0.373, 0.008)
    accent: colors.Color = _rgb(0.2, 0.6, 0.5)
    sold: colors.Color = _rgb(0.8, 0.2, 0.2)
    available: colors.Color = _rgb(0.2, 0.6, 0.3)
    text: colors.Color = _rgb(0.2, 0.2, 0.2)
    light_gray: colors.Color = _rgb(0.96, 0.96, 0.96)
    dark_gray: colors.Color = _rgb(0.3, 0.3, 0.3)
    white: colors.Color = _rgb(1, 1, 1)
    card_border: colors.Color = _rgb(0.85, 0.85, 0.85)
    image_frame: colors.Color = _rgb(0.9, 0.9, 0.9)


@dataclass(frozen=True)
class PageGeometry:
    width: float = 595
    height: float = 842
    margin: float = 50
    header_height: float = 90
    # Distance from the page top to the first content baseline.
    content_top: float = 120
    # Nothing but the footer goes below this y.
    content_floor: float = 110

    @property
    def content_width(self) -> float:
        return self.width - 2 * self.margin

    @property
    def right_edge(self) -> float:
        return self.width - self.margin


@dataclass(frozen=True)
class BrochureConfig:
    palette: Palette = field(default_factory=Palette)
    geometry: PageGeometry = field(default_factory=PageGeometry)

    font_path: Optional[Path] = DEFAULT_FONT_PATH
    fallback_font_paths: Tuple[str, ...] = SYSTEM_FONT_PATHS

    section_title_size: float = 20
    description_size: float = 14
    line_height: float = 1.6
    description_max_lines: int = 7
    continuation_marker: str = "... والمزيد"

    cover_image_height: float = 280

    detail_cards_per_row: int = 3
    detail_card_height: float = 70
    detail_spacing_x: float = 10
    detail_spacing_y: float = 20

    features_per_row: int = 2
    feature_height: float = 30
    feature_spacing_y: float = 15
    feature_size: float = 14

    gallery_per_page: int = 4
    gallery_per_row: int = 2
    gallery_cell_width: float = 220
    gallery_cell_height: float = 160
    gallery_spacing_x: float = 40
    gallery_spacing_y: float = 50

    logo_height: float = 45
    logo_max_count: int = 2

    image_timeout_s: float = 15.0
    image_fetch_workers: int = 4


def _env_float(name: str, default: float) -> float:
    raw = (os.environ.get(name) or "").strip()
    if not raw:
        return default
    try:
        return float(raw)
    except ValueError:
        return default


def load_config() -> BrochureConfig:
    font_raw = (os.environ.get("BROCHURE_FONT_PATH") or "").strip()
    return BrochureConfig(
        font_path=Path(font_raw) if font_raw else DEFAULT_FONT_PATH,
        image_timeout_s=_env_float("IMAGE_TIMEOUT_S", 15.0),
        image_fetch_workers=max(1, int(_env_float("IMAGE_FETCH_WORKERS", 4))),
    )
