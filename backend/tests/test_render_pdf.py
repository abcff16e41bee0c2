from __future__ import annotations

import re
from datetime import date

import pytest
from PIL import Image

from brochure_core.errors import BuildFailure
from brochure_core.fonts import BrochureFont
from brochure_core.images import ImageLoader
from brochure_core.render_pdf import (
    BrochureAssembler,
    Section,
    arabic_date,
    format_number,
    next_section,
    status_display,
)
from brochure_core.schema import PropertyStatus, validate_property, validate_user
from conftest import HELVETICA, FakeHTTP, FakeLoader, FakeResponse, jpeg_bytes


PAGE_RE = re.compile(rb"/Type\s*/Page\b")


def images(n: int) -> list:
    return [f"https://img.example.com/{i}.jpg" for i in range(n)]


def sections(brochure) -> list:
    return [p.section for p in brochure.pages]


# --------------------------------------------------------------------------- #
# Section order
# --------------------------------------------------------------------------- #

class TestSectionOrder:
    def test_full_sequence(self):
        assert next_section(Section.COVER, 3) is Section.DETAILS
        assert next_section(Section.DETAILS, 3) is Section.GALLERY
        assert next_section(Section.GALLERY, 3) is Section.DONE

    @pytest.mark.parametrize("count", [0, 1])
    def test_gallery_skipped_without_second_image(self, count):
        assert next_section(Section.DETAILS, count) is Section.DONE


# --------------------------------------------------------------------------- #
# Whole documents
# --------------------------------------------------------------------------- #

class TestBuild:
    def test_single_image_gives_cover_and_details(self, assembler, payload):
        brochure = assembler.build(validate_property(payload))
        assert brochure.pdf.startswith(b"%PDF")
        assert sections(brochure) == [Section.COVER, Section.DETAILS]
        assert len(PAGE_RE.findall(brochure.pdf)) == 2

    def test_seven_images_give_two_gallery_pages(self, assembler, payload):
        payload["images"] = images(7)
        brochure = assembler.build(validate_property(payload))
        gallery = brochure.pages_in(Section.GALLERY)
        assert len(gallery) == 2
        assert [p.filled for p in gallery] == [4, 2]
        assert brochure.page_count == 4
        assert len(PAGE_RE.findall(brochure.pdf)) == 4

    def test_failed_gallery_image_leaves_blank_cell(self, payload):
        payload["images"] = images(4)
        loader = FakeLoader(failing={payload["images"][2]})
        brochure = BrochureAssembler(loader=loader, font=HELVETICA).build(validate_property(payload))
        (gallery,) = brochure.pages_in(Section.GALLERY)
        assert (gallery.filled, gallery.blank) == (2, 1)

    def test_failed_cover_image_still_builds(self, payload):
        loader = FakeLoader(failing={payload["images"][0]})
        brochure = BrochureAssembler(loader=loader, font=HELVETICA).build(validate_property(payload))
        cover = brochure.pages_in(Section.COVER)[0]
        assert (cover.filled, cover.blank) == (0, 1)
        assert brochure.page_count == 2

    def test_images_fetched_once_in_source_order(self, assembler, fake_loader, payload):
        payload["images"] = images(3)
        payload["companyLogos"] = ["https://img.example.com/logo.png"]
        assembler.build(validate_property(payload))
        assert fake_loader.requested == images(3) + ["https://img.example.com/logo.png"]

    def test_many_features_continue_on_another_details_page(self, assembler, payload):
        payload["features"] = [f"Feature number {i}" for i in range(60)]
        brochure = assembler.build(validate_property(payload))
        details = brochure.pages_in(Section.DETAILS)
        assert len(details) >= 2
        assert sum(1 for page in details if page.features) >= 2
        placed = [f for page in details for f in page.features]
        assert placed == payload["features"]
        assert sections(brochure)[0] is Section.COVER

    def test_oversized_gallery_image_is_left_blank(self, payload, monkeypatch):
        monkeypatch.setattr(Image, "MAX_IMAGE_PIXELS", 100)
        payload["images"] = images(3)
        routes = {u: FakeResponse(jpeg_bytes(8, 8)) for u in payload["images"]}
        routes[payload["images"][1]] = FakeResponse(jpeg_bytes(60, 40))
        loader = ImageLoader(session=FakeHTTP(routes))
        brochure = BrochureAssembler(loader=loader, font=HELVETICA).build(validate_property(payload))
        gallery = brochure.pages_in(Section.GALLERY)[0]
        assert (gallery.filled, gallery.blank) == (1, 1)
        assert brochure.pdf.startswith(b"%PDF")

    def test_loader_crash_becomes_build_failure(self, payload):
        class ExplodingLoader:
            def load_many(self, references):
                raise RuntimeError("pool died")

        with pytest.raises(BuildFailure, match="pool died"):
            BrochureAssembler(loader=ExplodingLoader(), font=HELVETICA).build(validate_property(payload))

    def test_long_description_stays_on_one_page(self, assembler, payload):
        payload["description"] = "\n".join(["A long paragraph about the house and the garden."] * 40)
        brochure = assembler.build(validate_property(payload))
        assert sections(brochure) == [Section.COVER, Section.DETAILS]

    def test_sold_property_with_user_and_logos(self, assembler, payload):
        payload["status"] = "SOLD"
        payload["features"] = ["Pool", "Garden", "Central AC"]
        payload["companyLogos"] = ["https://img.example.com/l1.png", "https://img.example.com/l2.png"]
        user = validate_user({"name": "Sara", "email": "sara@example.com", "phone": "0500000000"})
        brochure = assembler.build(validate_property(payload), user, today=date(2024, 5, 1), file_number=42)
        assert brochure.page_count == 2

    def test_unexpected_error_becomes_build_failure(self, fake_loader, payload):
        class BrokenFont(BrochureFont):
            def measure(self, text, size):
                raise RuntimeError("metrics exploded")

        broken = BrochureAssembler(loader=fake_loader, font=BrokenFont(name="Helvetica", embedded=False))
        with pytest.raises(BuildFailure):
            broken.build(validate_property(payload))


# --------------------------------------------------------------------------- #
# Display helpers
# --------------------------------------------------------------------------- #

def test_format_number():
    assert format_number(174147140) == "174,147,140"
    assert format_number(625.5) == "625.5"
    assert format_number(0) == "0"


def test_arabic_date_is_not_empty():
    assert arabic_date(date(2024, 1, 1)).endswith("2024")


def test_status_display():
    assert status_display(PropertyStatus.SOLD) == "مباع"
    assert status_display(PropertyStatus.AVAILABLE) == "متاح"
