from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, Optional, Union

from reportlab.pdfbase import pdfmetrics
from reportlab.pdfbase.ttfonts import TTFont, TTFError


logger = logging.getLogger(__name__)

DEFAULT_FONT = "Helvetica"


@dataclass(frozen=True)
class BrochureFont:
    """A registered font name plus the measuring function the layout engines use."""

    name: str
    embedded: bool

    def measure(self, text: str, size: float) -> float:
        return pdfmetrics.stringWidth(text or "", self.name, size)


def _font_name_for(path: Path) -> str:
    stem = path.stem.split("-")[0].split(",")[0]
    return f"Brochure-{stem or 'Custom'}"


def _try_register(path: Path) -> Optional[str]:
    name = _font_name_for(path)
    try:
        pdfmetrics.getFont(name)
        return name
    except KeyError:
        pass
    if not path.is_file():
        logger.info("Font not found: %s", path)
        return None
    try:
        pdfmetrics.registerFont(TTFont(name, str(path)))
    except (TTFError, OSError, ValueError) as exc:
        logger.warning("Font %s could not be loaded: %s", path, exc)
        return None
    return name


def load_font(
    preferred: Optional[Union[str, Path]] = None,
    fallbacks: Iterable[Union[str, Path]] = (),
) -> BrochureFont:
    """Register the preferred TTF, trying fallbacks and then built-in Helvetica.

    Never raises: a missing font is recovered by falling back.
    """
    candidates = [preferred] if preferred else []
    candidates.extend(fallbacks)
    for candidate in candidates:
        name = _try_register(Path(candidate))
        if name:
            return BrochureFont(name=name, embedded=True)
    logger.warning("No TTF font available, falling back to %s", DEFAULT_FONT)
    return BrochureFont(name=DEFAULT_FONT, embedded=False)
