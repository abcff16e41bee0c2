from __future__ import annotations

"""Image fetching for brochure pages.

References are URLs or local paths (uploaded files). Local paths are only
read from the configured upload roots. Each one is fetched and
decoded independently; a failure only costs that image. Fetches run in a
small thread pool and results come back in the order of the references.
"""

import io
import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, List, Optional, Sequence, Tuple
from urllib.parse import urlparse

import requests
from PIL import Image
from reportlab.lib.utils import ImageReader

from .errors import ResourceUnavailable


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class LoadedImage:
    reference: str
    reader: ImageReader
    width: int
    height: int
    fmt: str

    @property
    def ratio(self) -> float:
        return self.width / self.height if self.height else 1.0


def image_format(reference: str) -> str:
    """PNG when the path ends with .png, JPEG otherwise. Query strings are ignored."""
    path = urlparse(reference).path if _is_url(reference) else reference
    return "PNG" if path.lower().endswith(".png") else "JPEG"


def _is_url(reference: str) -> bool:
    return urlparse(reference).scheme in ("http", "https")


def fit_inside(ratio: float, box_width: float, box_height: float) -> tuple[float, float]:
    """Largest (width, height) with aspect `ratio` that fits the box."""
    if ratio <= 0:
        return box_width, box_height
    if ratio > box_width / box_height:
        return box_width, box_width / ratio
    return box_height * ratio, box_height


class ImageLoader:
    def __init__(
        self,
        *,
        timeout_s: float = 15.0,
        max_workers: int = 4,
        session: Optional[requests.Session] = None,
        local_roots: Iterable[str | Path] = (),
    ):
        self.timeout_s = timeout_s
        self.max_workers = max(1, int(max_workers))
        self._http = session or requests
        self.local_roots: Tuple[Path, ...] = tuple(Path(r).resolve() for r in local_roots)

    def _local_path(self, reference: str) -> Path:
        path = Path(reference).resolve()
        if not any(path.is_relative_to(root) for root in self.local_roots):
            raise ResourceUnavailable(reference, "local path outside the upload directories")
        return path

    def _read_bytes(self, reference: str) -> bytes:
        if _is_url(reference):
            try:
                resp = self._http.get(reference, timeout=self.timeout_s)
                resp.raise_for_status()
            except requests.RequestException as exc:
                raise ResourceUnavailable(reference, str(exc)) from exc
            return resp.content
        path = self._local_path(reference)
        try:
            return path.read_bytes()
        except OSError as exc:
            raise ResourceUnavailable(reference, str(exc)) from exc

    def fetch(self, reference: str) -> LoadedImage:
        fmt = image_format(reference)
        data = self._read_bytes(reference)
        try:
            img = Image.open(io.BytesIO(data), formats=[fmt])
            img.load()
        except Image.DecompressionBombError as exc:
            raise ResourceUnavailable(reference, f"image too large ({exc})") from exc
        except Exception as exc:
            # Pillow raises a mix of types for broken input.
            raise ResourceUnavailable(reference, f"not a {fmt} image ({exc})") from exc
        width, height = img.size
        if not width or not height:
            raise ResourceUnavailable(reference, "empty image")
        return LoadedImage(reference=reference, reader=ImageReader(img), width=width, height=height, fmt=fmt)

    def load(self, reference: str) -> Optional[LoadedImage]:
        """Fetch one image, logging and returning None when it is unavailable."""
        try:
            return self.fetch(reference)
        except ResourceUnavailable as exc:
            logger.warning("Image unavailable, leaving its cell blank: %s", exc)
            return None

    def load_many(self, references: Sequence[str]) -> List[Optional[LoadedImage]]:
        refs = list(references)
        if len(refs) <= 1 or self.max_workers == 1:
            return [self.load(r) for r in refs]
        with ThreadPoolExecutor(max_workers=min(self.max_workers, len(refs))) as pool:
            return list(pool.map(self.load, refs))
