from __future__ import annotations

"""Property brochure renderer (cover, details, gallery).

Pages are drawn straight onto a ReportLab canvas. Text placement comes from
`text_flow.wrap_text` and card/bullet/thumbnail placement from `grid`; this
module only decides what goes where and in which order.

Arabic text is right-aligned: each line's right edge sits on the content
edge and the line grows leftward by its measured width.

The public entrypoints are `BrochureAssembler.build(...)` and the
`render_property_pdf(...)` shortcut used by the API.
"""

import io
import logging
import random
from pathlib import Path
from dataclasses import dataclass, field
from datetime import date
from enum import Enum
from typing import Callable, Dict, List, Optional, Sequence

from reportlab.pdfgen import canvas

from .config import BrochureConfig, load_config
from .errors import BrochureError, BuildFailure
from .fonts import BrochureFont, load_font
from .grid import GridSpec, chunked, grid_height, layout_grid, row_count, rows_that_fit
from .images import ImageLoader, LoadedImage, fit_inside
from .schema import PropertyRecord, PropertyStatus, UserInfo
from .text_flow import block_height, wrap_text


logger = logging.getLogger(__name__)


class Section(str, Enum):
    COVER = "cover"
    DETAILS = "details"
    GALLERY = "gallery"
    DONE = "done"


def next_section(current: Section, image_count: int) -> Section:
    """Cover -> Details -> Gallery -> Done. The gallery needs a second image."""
    if current is Section.COVER:
        return Section.DETAILS
    if current is Section.DETAILS:
        return Section.GALLERY if image_count > 1 else Section.DONE
    return Section.DONE


@dataclass
class PageReport:
    section: Section
    filled: int = 0
    blank: int = 0
    features: List[str] = field(default_factory=list)


@dataclass(frozen=True)
class Brochure:
    pdf: bytes
    pages: List[PageReport] = field(default_factory=list)

    @property
    def page_count(self) -> int:
        return len(self.pages)

    def pages_in(self, section: Section) -> List[PageReport]:
        return [p for p in self.pages if p.section is section]


# ---------- display strings ----------

STATUS_LABELS: Dict[PropertyStatus, str] = {
    PropertyStatus.AVAILABLE: "متاح",
    PropertyStatus.SOLD: "مباع",
}

PAGE_TITLES: Dict[Section, str] = {
    Section.COVER: "عرض عقاري",
    Section.DETAILS: "تفاصيل العقار",
    Section.GALLERY: "معرض الصور",
}

_AR_WEEKDAYS = ["الاثنين", "الثلاثاء", "الأربعاء", "الخميس", "الجمعة", "السبت", "الأحد"]
_AR_MONTHS = [
    "يناير", "فبراير", "مارس", "أبريل", "مايو", "يونيو",
    "يوليو", "أغسطس", "سبتمبر", "أكتوبر", "نوفمبر", "ديسمبر",
]


def arabic_date(d: date) -> str:
    return f"{_AR_WEEKDAYS[d.weekday()]}، {d.day} {_AR_MONTHS[d.month - 1]} {d.year}"


def format_number(value: float) -> str:
    """1234567 -> '1,234,567'; 625.5 -> '625.5'."""
    v = float(value)
    if v.is_integer():
        return f"{int(v):,}"
    return f"{v:,.2f}".rstrip("0").rstrip(".")


def status_display(status: PropertyStatus) -> str:
    return STATUS_LABELS.get(status, str(status.value))


# ---------- one build ----------

class _BrochureBuild:
    """Drawing state for a single document. Never shared between builds."""

    def __init__(
        self,
        cfg: BrochureConfig,
        font: BrochureFont,
        record: PropertyRecord,
        user: Optional[UserInfo],
        images: Sequence[Optional[LoadedImage]],
        logos: Sequence[Optional[LoadedImage]],
        today: date,
        file_number: int,
    ):
        self.cfg = cfg
        self.geo = cfg.geometry
        self.pal = cfg.palette
        self.font = font
        self.record = record
        self.user = user
        self.images = list(images)
        self.logos = [logo for logo in logos if logo is not None]
        self.today = today
        self.file_number = file_number

        self.buffer = io.BytesIO()
        self.canv = canvas.Canvas(self.buffer, pagesize=(self.geo.width, self.geo.height))
        self.canv.setTitle(record.title)
        self.canv.setAuthor(record.marketer.name)
        self.pages: List[PageReport] = []
        self._page_open = False

    # --- primitives ---

    def _measure(self, text: str, size: float) -> float:
        return self.font.measure(text, size)

    def _fit_size(self, text: str, base: float, max_width: float, floor: float = 9.0) -> float:
        size = float(base)
        while size > floor:
            if self._measure(text, size) <= max_width:
                return size
            size -= 0.5
        return floor

    def _text(self, x: float, y: float, text: str, size: float, color) -> None:
        self.canv.setFillColor(color)
        self.canv.setFont(self.font.name, size)
        self.canv.drawString(x, y, text)

    def _text_right(self, right: float, y: float, text: str, size: float, color) -> None:
        self._text(right - self._measure(text, size), y, text, size, color)

    def _text_center(self, cx: float, y: float, text: str, size: float, color) -> None:
        self._text(cx - self._measure(text, size) / 2, y, text, size, color)

    def _card(self, x: float, y_top: float, w: float, h: float, *, fill=None, radius: float = 8) -> None:
        self.canv.setStrokeColor(self.pal.card_border)
        self.canv.setFillColor(fill or self.pal.light_gray)
        self.canv.setLineWidth(1)
        self.canv.roundRect(x, y_top - h, w, h, radius=radius, stroke=1, fill=1)

    def _image(self, img: LoadedImage, x: float, y_bottom: float, w: float, h: float) -> None:
        self.canv.drawImage(img.reader, x, y_bottom, width=w, height=h, mask="auto")

    # --- page chrome ---

    def _start_page(self, section: Section) -> PageReport:
        if self._page_open:
            self.canv.showPage()
        self._page_open = True
        report = PageReport(section)
        self.pages.append(report)
        self._header(PAGE_TITLES[section])
        self._footer()
        return report

    def _header(self, title: str) -> None:
        geo, pal = self.geo, self.pal
        top = geo.height
        self.canv.setFillColor(pal.primary)
        self.canv.rect(0, top - geo.header_height, geo.width, geo.header_height, stroke=0, fill=1)

        self._text_right(geo.width - 20, top - 50, title, 21, pal.white)

        self._text(70, top - 40, "رقم الجوال", 12, pal.white)
        self._text(30, top - 60, self.record.contact_info, 12, pal.white)

        if self.user is not None:
            self._text_center(geo.width / 2, top - 20, self.user.name, 14, pal.white)
        marketer = self.record.marketer
        self._text_center(geo.width / 2, top - 40, marketer.name, 16, pal.white)
        self._text_center(geo.width / 2, top - 60, marketer.role, 12, pal.white)

    def _footer(self) -> None:
        geo, pal = self.geo, self.pal
        self._text(20, 30, f"ملف رقم: {self.file_number}", 10, pal.dark_gray)
        self._text_right(geo.width - 20, 30, f"تم إنشاء العرض في {arabic_date(self.today)}", 10, pal.dark_gray)

        # Status is translated for display only here.
        status = self.record.status
        label = status_display(status)
        badge_w = self._measure(label, 14) + 30
        badge_x = (geo.width - badge_w) / 2
        self.canv.setFillColor(pal.sold if status is PropertyStatus.SOLD else pal.available)
        self.canv.setStrokeColor(pal.card_border)
        self.canv.roundRect(badge_x, 50, badge_w, 30, radius=15, stroke=1, fill=1)
        self._text_center(geo.width / 2, 60, label, 14, pal.white)

    def _section_title(self, y: float, text: str, size: Optional[float] = None) -> None:
        self._text_right(self.geo.right_edge, y, text, size or self.cfg.section_title_size, self.pal.primary)

    # --- cover ---

    def cover(self) -> None:
        geo, pal, cfg = self.geo, self.pal, self.cfg
        report = self._start_page(Section.COVER)
        y = geo.height - geo.content_top

        hero = self.images[0] if self.images else None
        box_h = cfg.cover_image_height
        if hero is not None:
            w, h = fit_inside(hero.ratio, geo.content_width, box_h)
            x = (geo.width - w) / 2
            self.canv.setFillColor(pal.image_frame)
            self.canv.roundRect(x - 5, y - h - 5, w + 10, h + 10, radius=8, stroke=0, fill=1)
            self._image(hero, x, y - h, w, h)
            report.filled += 1
        else:
            report.blank += 1
        y -= box_h + 50

        title = self.record.title
        size = self._fit_size(title, 28, geo.content_width)
        self._text_center(geo.width / 2, y, title, size, pal.primary)
        y -= 45

        price = f"{format_number(self.record.price)} {self.record.currency}"
        self._text_center(geo.width / 2, y, price, 22, pal.secondary)
        y -= 35

        r = self.record
        location = f"{r.location}, {r.city}, {r.country}"
        size = self._fit_size(location, 16, geo.content_width)
        self._text_center(geo.width / 2, y, location, size, pal.dark_gray)
        y -= 40

        self._detail_cards(y)

    def _detail_rows(self) -> List[tuple]:
        r = self.record
        return [
            ("المساحة", f"{format_number(r.area)} م²"),
            ("الغرف", str(r.bedrooms)),
            ("الحمامات", str(r.bathrooms)),
            ("مواقف السيارات", str(r.parking)),
            ("سنة البناء", str(r.year_built) if r.year_built else "-"),
            ("نوع العقار", r.property_type),
        ]

    def _detail_cards(self, y_top: float) -> float:
        geo, pal, cfg = self.geo, self.pal, self.cfg
        per_row = cfg.detail_cards_per_row
        cell_w = (geo.content_width - (per_row - 1) * cfg.detail_spacing_x) / per_row
        spec = GridSpec(
            per_row=per_row,
            cell_width=cell_w,
            cell_height=cfg.detail_card_height,
            origin_x=geo.margin,
            origin_y=y_top,
            spacing_x=cfg.detail_spacing_x,
            spacing_y=cfg.detail_spacing_y,
        )
        details = self._detail_rows()
        for cell, (label, value) in zip(layout_grid(len(details), spec), details):
            cell = cell.mirrored(geo.margin, geo.right_edge)
            self._card(cell.x, cell.y, cell.width, cell.height)
            cx = cell.x + cell.width / 2
            self._text_center(cx, cell.y - 25, label, 12, pal.dark_gray)
            size = self._fit_size(value, 16, cell.width - 16)
            self._text_center(cx, cell.y - 50, value, size, pal.primary)
        return y_top - grid_height(len(details), spec)

    # --- details ---

    def details(self) -> None:
        geo = self.geo
        self._start_page(Section.DETAILS)
        y = geo.height - geo.content_top
        y = self._description(y)
        y = self._features(y)
        y = self._contact(y)
        self._logos(y)

    def _continue_details(self) -> float:
        self._start_page(Section.DETAILS)
        return self.geo.height - self.geo.content_top

    def _ensure_room(self, y: float, needed: float) -> float:
        """Start a continuation page when `needed` points do not fit above the floor."""
        if y - needed >= self.geo.content_floor:
            return y
        return self._continue_details()

    def _description(self, y: float) -> float:
        geo, cfg = self.geo, self.cfg
        if not self.record.description.strip():
            return y
        self._section_title(y, "وصف العقار:")
        y -= 40
        lines = wrap_text(
            self.record.description,
            geo.content_width,
            cfg.description_size,
            self._measure,
            max_lines=cfg.description_max_lines,
            marker=cfg.continuation_marker,
        )
        step = cfg.description_size * cfg.line_height
        for i, line in enumerate(lines):
            # Right edge fixed, line grows leftward.
            self._text(geo.right_edge - line.width, y - i * step, line.text, line.size, self.pal.text)
        return y - block_height(lines, cfg.line_height) - 30

    def _features(self, y: float) -> float:
        geo, pal, cfg = self.geo, self.pal, self.cfg
        features = [f.strip() for f in self.record.features if f and f.strip()]
        if not features:
            return y

        spec = GridSpec(
            per_row=cfg.features_per_row,
            cell_width=geo.content_width / cfg.features_per_row,
            cell_height=cfg.feature_height,
            origin_x=geo.margin,
            origin_y=y,
            spacing_y=cfg.feature_spacing_y,
        )
        y = self._ensure_room(y, 40 + spec.cell_height)
        self._section_title(y, "المميزات الرئيسية:")
        y -= 40

        remaining: Sequence[str] = features
        while remaining:
            rows = rows_that_fit(y, geo.content_floor, spec)
            if rows == 0:
                y = self._continue_details()
                self._section_title(y, "المميزات الرئيسية (تابع):")
                y -= 40
                continue
            batch, remaining = remaining[: rows * spec.per_row], remaining[rows * spec.per_row:]
            page_spec = spec.moved_to(y)
            self.pages[-1].features.extend(batch)
            for cell, feature in zip(layout_grid(len(batch), page_spec), batch):
                cell = cell.mirrored(geo.margin, geo.right_edge)
                right = cell.x + cell.width - 15
                self._text(right - 6, cell.y - 15, "•", cfg.feature_size, pal.accent)
                size = self._fit_size(feature, cfg.feature_size, cell.width - 40)
                self._text_right(right - 15, cell.y - 20, feature, size, pal.text)
            y -= row_count(len(batch), spec.per_row) * spec.row_pitch
        return y - 25

    def _contact(self, y: float) -> float:
        geo, pal = self.geo, self.pal
        card_h = 90
        y = self._ensure_room(y, 40 + card_h)
        self._section_title(y, "معلومات التواصل:")
        y -= 40

        self._card(geo.margin, y, geo.content_width, card_h)
        self._text(geo.margin + 20, y - 40, "التواصل", 12, pal.dark_gray)
        self._text(geo.margin + 20, y - 67, self.record.contact_info, 16, pal.primary)

        inner_right = geo.right_edge - 20
        marketer = self.record.marketer
        self._text_right(inner_right, y - 40, marketer.name, 16, pal.primary)
        self._text_right(inner_right, y - 63, marketer.role, 14, pal.dark_gray)
        return y - card_h - 20

    def _logos(self, y: float) -> float:
        geo, cfg = self.geo, self.cfg
        logos = self.logos[: cfg.logo_max_count]
        if not logos:
            return y
        h = cfg.logo_height
        y = self._ensure_room(y, h)
        right = geo.right_edge
        for logo in logos:
            w, lh = fit_inside(logo.ratio, geo.content_width / max(1, len(logos)) - 15, h)
            self._image(logo, right - w, y - lh, w, lh)
            right -= w + 15
        return y - h - 20

    # --- gallery ---

    def gallery(self) -> None:
        geo, pal, cfg = self.geo, self.pal, self.cfg
        shots = self.images[1:]
        total = row_count(len(shots), cfg.gallery_per_page)
        for page_no, (_, batch) in enumerate(chunked(shots, cfg.gallery_per_page), start=1):
            report = self._start_page(Section.GALLERY)
            y = geo.height - geo.content_top
            self._section_title(y, "صور العقار:", 22)
            self.canv.setStrokeColor(pal.light_gray)
            self.canv.setLineWidth(1)
            self.canv.line(geo.margin, y - 10, geo.right_edge, y - 10)
            y -= 30

            spec = GridSpec(
                per_row=cfg.gallery_per_row,
                cell_width=cfg.gallery_cell_width,
                cell_height=cfg.gallery_cell_height,
                origin_x=geo.margin,
                origin_y=y,
                spacing_x=cfg.gallery_spacing_x,
                spacing_y=cfg.gallery_spacing_y,
            )
            for cell, shot in zip(layout_grid(len(batch), spec), batch):
                if shot is None:
                    report.blank += 1
                    continue
                w, h = fit_inside(shot.ratio, cell.width, cell.height)
                x = cell.x + (cell.width - w) / 2
                top = cell.y - (cell.height - h) / 2
                self._image(shot, x, top - h, w, h)
                report.filled += 1

            self._text_center(geo.width / 2, 90, f"صفحة صور {page_no}/{total}", 12, pal.dark_gray)

    # --- output ---

    def finish(self) -> bytes:
        if self._page_open:
            self.canv.showPage()
            self._page_open = False
        self.canv.save()
        return self.buffer.getvalue()


# ---------- assembler ----------

class BrochureAssembler:
    """Builds the cover/details/gallery brochure for one property at a time.

    The assembler itself holds only configuration, the registered font and
    the image loader, so one instance can serve concurrent requests.
    """

    def __init__(
        self,
        config: Optional[BrochureConfig] = None,
        *,
        loader: Optional[ImageLoader] = None,
        font: Optional[BrochureFont] = None,
        image_roots: Sequence[str | Path] = (),
    ):
        self.config = config or load_config()
        self.loader = loader or ImageLoader(
            timeout_s=self.config.image_timeout_s,
            max_workers=self.config.image_fetch_workers,
            local_roots=image_roots,
        )
        self.font = font or load_font(self.config.font_path, self.config.fallback_font_paths)

    def build(
        self,
        record: PropertyRecord,
        user: Optional[UserInfo] = None,
        *,
        today: Optional[date] = None,
        file_number: Optional[int] = None,
    ) -> Brochure:
        try:
            # Images and logos are fetched in one batch, before any drawing.
            refs = list(record.images) + list(record.company_logos[: self.config.logo_max_count])
            loaded = self.loader.load_many(refs)
            images, logos = loaded[: len(record.images)], loaded[len(record.images):]
            missing = sum(1 for img in images if img is None)
            if missing:
                logger.warning("%d of %d images unavailable for %r", missing, len(images), record.title)

            build = _BrochureBuild(
                self.config,
                self.font,
                record,
                user,
                images,
                logos,
                today or date.today(),
                file_number if file_number is not None else random.randint(1000, 9999),
            )
            steps: Dict[Section, Callable[[], None]] = {
                Section.COVER: build.cover,
                Section.DETAILS: build.details,
                Section.GALLERY: build.gallery,
            }
            section = Section.COVER
            while section is not Section.DONE:
                steps[section]()
                section = next_section(section, len(record.images))
            pdf = build.finish()
        except BrochureError:
            raise
        except Exception as exc:
            logger.exception("PDF build failed for %r", record.title)
            raise BuildFailure(str(exc) or exc.__class__.__name__) from exc

        logger.info("Built brochure for %r: %d pages, %d bytes", record.title, len(build.pages), len(pdf))
        return Brochure(pdf=pdf, pages=build.pages)


def render_property_pdf(
    record: PropertyRecord,
    user: Optional[UserInfo] = None,
    *,
    assembler: Optional[BrochureAssembler] = None,
) -> bytes:
    return (assembler or BrochureAssembler()).build(record, user).pdf
