from __future__ import annotations

"""Send a generated PDF as a WhatsApp document message.

Two calls against the WhatsApp Cloud API: upload the bytes to the media
endpoint to get a media id, then send a `document` message that references
that id. No retries; the caller decides what to do with a RelayError.
"""

import logging
import os
from dataclasses import dataclass
from typing import Any, Dict, Optional

import requests

from .errors import RelayError


logger = logging.getLogger(__name__)

GRAPH_BASE_URL = "https://graph.facebook.com"
DEFAULT_API_VERSION = "v18.0"
DEFAULT_FILENAME = "property.pdf"


@dataclass(frozen=True)
class WhatsAppSettings:
    token: str
    phone_number_id: str
    api_version: str = DEFAULT_API_VERSION
    base_url: str = GRAPH_BASE_URL
    timeout_s: float = 30.0

    @classmethod
    def from_env(cls) -> "WhatsAppSettings":
        token = (os.environ.get("WHATSAPP_TOKEN") or "").strip()
        phone_id = (os.environ.get("PHONE_NUMBER_ID") or "").strip()
        if not token or not phone_id:
            raise RelayError("WhatsApp is not configured (WHATSAPP_TOKEN / PHONE_NUMBER_ID).")
        return cls(
            token=token,
            phone_number_id=phone_id,
            api_version=(os.environ.get("WHATSAPP_API_VERSION") or DEFAULT_API_VERSION).strip(),
        )


def _json_or_text(resp: requests.Response) -> Any:
    try:
        return resp.json()
    except ValueError:
        return resp.text


class WhatsAppClient:
    def __init__(self, settings: WhatsAppSettings, *, session: Optional[requests.Session] = None):
        self.settings = settings
        self._http = session or requests.Session()

    def _url(self, leaf: str) -> str:
        s = self.settings
        return f"{s.base_url}/{s.api_version}/{s.phone_number_id}/{leaf}"

    def _auth(self) -> Dict[str, str]:
        return {"Authorization": f"Bearer {self.settings.token}"}

    def upload_document(self, pdf: bytes, filename: str = DEFAULT_FILENAME) -> str:
        """Upload PDF bytes and return the media id."""
        try:
            resp = self._http.post(
                self._url("media"),
                headers=self._auth(),
                data={"messaging_product": "whatsapp"},
                files={"file": (filename, pdf, "application/pdf")},
                timeout=self.settings.timeout_s,
            )
        except requests.RequestException as exc:
            raise RelayError("Failed to upload PDF to WhatsApp", str(exc)) from exc
        result = _json_or_text(resp)
        media_id = result.get("id") if isinstance(result, dict) else None
        if not media_id:
            logger.warning("WhatsApp media upload rejected (%s): %s", resp.status_code, result)
            raise RelayError("Failed to upload PDF to WhatsApp", result)
        return str(media_id)

    def send_document(self, recipient: str, media_id: str, filename: str = DEFAULT_FILENAME) -> Dict[str, Any]:
        payload = {
            "messaging_product": "whatsapp",
            "to": recipient,
            "type": "document",
            "document": {"id": media_id, "filename": filename},
        }
        try:
            resp = self._http.post(
                self._url("messages"),
                headers=self._auth(),
                json=payload,
                timeout=self.settings.timeout_s,
            )
        except requests.RequestException as exc:
            raise RelayError("Failed to send PDF via WhatsApp", str(exc)) from exc
        result = _json_or_text(resp)
        if not isinstance(result, dict) or not result.get("messages"):
            logger.warning("WhatsApp message rejected (%s): %s", resp.status_code, result)
            raise RelayError("Failed to send PDF via WhatsApp", result)
        return result

    def send_pdf(self, recipient: str, pdf: bytes, filename: str = DEFAULT_FILENAME) -> Dict[str, Any]:
        media_id = self.upload_document(pdf, filename)
        logger.info("Uploaded %d-byte PDF to WhatsApp as media %s", len(pdf), media_id)
        return self.send_document(recipient, media_id, filename)


def fetch_remote_pdf(url: str, payload: Dict[str, Any], *, timeout_s: float = 60.0, session: Any = None) -> bytes:
    """Ask a remote /generate-pdf endpoint for the document bytes."""
    http = session or requests
    try:
        resp = http.post(url, json=payload, timeout=timeout_s)
    except requests.RequestException as exc:
        raise RelayError("PDF generation failed", str(exc)) from exc
    if not resp.ok:
        raise RelayError("PDF generation failed", resp.text)
    return resp.content
