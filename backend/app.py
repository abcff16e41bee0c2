from __future__ import annotations

import logging
import os
import re
import shutil
import time
from pathlib import Path
from typing import Any, Dict, List, Optional
from urllib.parse import quote

from dotenv import load_dotenv
from fastapi import FastAPI, File, Form, Request, UploadFile
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, Response

# Load local .env before importing modules that read env vars.
load_dotenv()

from brochure_core.errors import BuildFailure, PropertyValidationError, RelayError
from brochure_core.render_pdf import BrochureAssembler
from brochure_core.sample import SAMPLE_PROPERTY
from brochure_core.schema import validate_property, validate_user
from brochure_core.whatsapp import WhatsAppClient, WhatsAppSettings, fetch_remote_pdf

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

app = FastAPI(title="Property Brochure API")

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

BASE_DIR = Path(__file__).resolve().parent
UPLOAD_DIR = Path(os.environ.get("UPLOAD_DIR") or BASE_DIR / "uploads")
LOGO_DIR = Path(os.environ.get("LOGO_DIR") or BASE_DIR / "logos")
UPLOAD_DIR.mkdir(parents=True, exist_ok=True)
LOGO_DIR.mkdir(parents=True, exist_ok=True)

MAX_FORM_IMAGES = 10

# Local image paths are only read from the directories the form handler writes.
ASSEMBLER = BrochureAssembler(image_roots=(UPLOAD_DIR, LOGO_DIR))


# ---------- errors ----------

@app.exception_handler(PropertyValidationError)
async def _validation_error(request: Request, exc: PropertyValidationError):
    return JSONResponse(status_code=400, content={"error": "Validation error", "details": exc.messages})


@app.exception_handler(BuildFailure)
async def _build_failure(request: Request, exc: BuildFailure):
    return JSONResponse(status_code=500, content={"error": "Failed to generate PDF", "details": str(exc)})


@app.exception_handler(RelayError)
async def _relay_error(request: Request, exc: RelayError):
    return JSONResponse(status_code=500, content={"error": exc.message, "details": exc.details})


# ---------- helpers ----------

def _report_filename(title: str) -> str:
    slug = re.sub(r"\s+", "-", title.strip())
    return f"تقرير-{slug}-{int(time.time() * 1000)}.pdf"


def _pdf_response(pdf: bytes, filename: str) -> Response:
    # Header values must be latin-1, so the real name goes in filename*.
    disposition = f"attachment; filename=\"property-report.pdf\"; filename*=UTF-8''{quote(filename)}"
    return Response(
        content=pdf,
        media_type="application/pdf",
        headers={"Content-Disposition": disposition},
    )


def _num(value: Optional[str], default, cast=float):
    try:
        return cast(value) if value not in (None, "") else default
    except (TypeError, ValueError):
        return default


def _masked(recipient: str) -> str:
    return f"***{recipient[-4:]}" if len(recipient) > 4 else "***"


def _save_upload(upload: UploadFile, target_dir: Path, prefix: str = "") -> str:
    name = Path(upload.filename or "upload").name
    path = target_dir / f"{prefix}{int(time.time() * 1000)}-{name}"
    with path.open("wb") as fh:
        shutil.copyfileobj(upload.file, fh)
    return str(path)


# ---------- endpoints ----------

@app.get("/health")
def health():
    return {"ok": True}


@app.post("/generate-pdf")
def generate_pdf(payload: Dict[str, Any]):
    body = dict(payload or {})
    user = validate_user(body.pop("user", None))
    record = validate_property(body)
    brochure = ASSEMBLER.build(record, user)
    return _pdf_response(brochure.pdf, _report_filename(record.title))


@app.post("/generate-pdf-form")
def generate_pdf_form(
    title: Optional[str] = Form(None),
    description: Optional[str] = Form(None),
    price: Optional[str] = Form(None),
    area: Optional[str] = Form(None),
    bedrooms: Optional[str] = Form(None),
    bathrooms: Optional[str] = Form(None),
    parking: Optional[str] = Form(None),
    year_built: Optional[str] = Form(None, alias="yearBuilt"),
    location: Optional[str] = Form(None),
    city: Optional[str] = Form(None),
    contact_info: Optional[str] = Form(None, alias="contactInfo"),
    status: Optional[str] = Form(None),
    property_type: Optional[str] = Form(None, alias="type"),
    features: Optional[str] = Form(None),
    marketer_name: Optional[str] = Form(None, alias="marketerName"),
    marketer_role: Optional[str] = Form(None, alias="marketerRole"),
    images: List[UploadFile] = File(default=[]),
    logo1: Optional[UploadFile] = File(None),
    logo2: Optional[UploadFile] = File(None),
):
    """Multipart variant: uploaded files become local image references."""
    image_paths = [_save_upload(f, UPLOAD_DIR) for f in images[:MAX_FORM_IMAGES] if f.filename]
    logos = [
        _save_upload(logo, LOGO_DIR, prefix=f"logo{i}-")
        for i, logo in enumerate([logo1, logo2], start=1)
        if logo is not None and logo.filename
    ]

    prop = {
        "title": title or "عقار بدون عنوان",
        "description": description or "لا يوجد وصف متاح",
        "price": _num(price, 0),
        "area": _num(area, 0),
        "bedrooms": _num(bedrooms, 0, int),
        "bathrooms": _num(bathrooms, 0, int),
        "parking": _num(parking, 0, int),
        "yearBuilt": _num(year_built, time.localtime().tm_year, int),
        "location": location or "موقع غير محدد",
        "city": city or "مدينة غير محددة",
        "contactInfo": contact_info or "غير متوفر",
        "status": status or "AVAILABLE",
        "currency": "SAR",
        "type": property_type or "RESIDENTIAL",
        "features": [f.strip() for f in (features or "").split(",") if f.strip()],
        "images": image_paths,
        "companyLogos": logos,
        "marketer": {
            "name": marketer_name or "أحمد منصور",
            "role": marketer_role or "مسوق عقاري",
        },
    }
    record = validate_property(prop)
    brochure = ASSEMBLER.build(record)
    return _pdf_response(brochure.pdf, _report_filename(record.title))


@app.get("/sample-property")
def sample_property():
    return SAMPLE_PROPERTY


@app.get("/generate-sample-pdf")
def generate_sample_pdf():
    record = validate_property(SAMPLE_PROPERTY)
    brochure = ASSEMBLER.build(record)
    return _pdf_response(brochure.pdf, "sample-property-report.pdf")


@app.post("/send-pdf-whatsapp")
def send_pdf_whatsapp(payload: Dict[str, Any]):
    prop = (payload or {}).get("property")
    recipient = str((payload or {}).get("recipient") or "").strip()
    if not prop or not recipient:
        return JSONResponse(status_code=400, content={"error": "property and recipient are required in body"})

    settings = WhatsAppSettings.from_env()
    remote_url = (os.environ.get("PDF_API_URL") or "").strip()
    if remote_url:
        pdf = fetch_remote_pdf(remote_url, prop)
    else:
        record = validate_property(prop)
        pdf = ASSEMBLER.build(record).pdf

    result = WhatsAppClient(settings).send_pdf(recipient, pdf)
    logger.info("PDF sent via WhatsApp to %s", _masked(recipient))
    return {"success": True, "sendResult": result}


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host="0.0.0.0", port=int(os.environ.get("PORT") or 3000))
