from __future__ import annotations

import io
from copy import deepcopy
from typing import Dict, Iterable, List, Optional

import pytest
import requests
from PIL import Image
from reportlab.lib.utils import ImageReader

from brochure_core.fonts import BrochureFont
from brochure_core.images import LoadedImage
from brochure_core.render_pdf import BrochureAssembler


HELVETICA = BrochureFont(name="Helvetica", embedded=False)


def make_image(reference: str, width: int = 40, height: int = 30) -> LoadedImage:
    img = Image.new("RGB", (width, height), (200, 120, 60))
    return LoadedImage(reference=reference, reader=ImageReader(img), width=width, height=height, fmt="JPEG")


def png_bytes(width: int = 40, height: int = 30) -> bytes:
    buf = io.BytesIO()
    Image.new("RGB", (width, height), (10, 80, 160)).save(buf, format="PNG")
    return buf.getvalue()


def jpeg_bytes(width: int = 40, height: int = 30) -> bytes:
    buf = io.BytesIO()
    Image.new("RGB", (width, height), (160, 80, 10)).save(buf, format="JPEG")
    return buf.getvalue()


class FakeLoader:
    """Stands in for ImageLoader: every reference loads except the failing ones."""

    def __init__(self, failing: Iterable[str] = ()):
        self.failing = set(failing)
        self.requested: List[str] = []

    def load_many(self, references) -> List[Optional[LoadedImage]]:
        refs = list(references)
        self.requested.extend(refs)
        return [None if r in self.failing else make_image(r) for r in refs]


class FakeResponse:
    def __init__(self, content: bytes = b"", status_code: int = 200, payload=None):
        self.content = content
        self.status_code = status_code
        self._payload = payload
        self.text = content.decode("latin-1") if content else ""

    @property
    def ok(self) -> bool:
        return self.status_code < 400

    def raise_for_status(self) -> None:
        if self.status_code >= 400:
            raise requests.HTTPError(f"{self.status_code} error")

    def json(self):
        if self._payload is None:
            raise ValueError("no json")
        return self._payload


class FakeHTTP:
    """Minimal requests-like session mapping URLs to responses or exceptions."""

    def __init__(self, routes: Optional[Dict[str, object]] = None):
        self.routes = routes or {}
        self.calls: List[tuple] = []

    def _respond(self, method: str, url: str, **kwargs):
        self.calls.append((method, url, kwargs))
        outcome = self.routes.get(url)
        if outcome is None:
            raise requests.ConnectionError(f"unreachable: {url}")
        if isinstance(outcome, Exception):
            raise outcome
        if isinstance(outcome, list):
            return outcome.pop(0)
        return outcome

    def get(self, url: str, **kwargs):
        return self._respond("GET", url, **kwargs)

    def post(self, url: str, **kwargs):
        return self._respond("POST", url, **kwargs)


BASE_PROPERTY = {
    "title": "Seaside villa",
    "description": "Bright villa with a large garden and a private pool close to the beach.",
    "price": 1250000,
    "currency": "SAR",
    "type": "Villa",
    "status": "AVAILABLE",
    "bedrooms": 5,
    "bathrooms": 4,
    "parking": 2,
    "area": 625.5,
    "location": "North Obhur",
    "city": "Jeddah",
    "country": "Saudi Arabia",
    "images": ["https://img.example.com/cover.jpg"],
    "features": [],
    "yearBuilt": 2020,
    "contactInfo": "+966 50 123 4567",
    "companyLogos": [],
    "marketer": {"name": "Ahmed Mansour", "role": "Property marketer"},
}


@pytest.fixture
def payload() -> dict:
    return deepcopy(BASE_PROPERTY)


@pytest.fixture
def fake_loader() -> FakeLoader:
    return FakeLoader()


@pytest.fixture
def assembler(fake_loader) -> BrochureAssembler:
    return BrochureAssembler(loader=fake_loader, font=HELVETICA)
