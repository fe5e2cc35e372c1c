"""
Google Slides API backend.
Handles OAuth2 (installed-app token or service account) and converts page elements
into Shape tuples: geometry from size x transform (EMU -> points), runs from textElements.
"""
import logging
import os
from pathlib import Path
from typing import Any, Dict, List, Optional

from google.auth.exceptions import GoogleAuthError
from google.auth.transport.requests import Request
from google.oauth2 import service_account
from google.oauth2.credentials import Credentials
from google_auth_oauthlib.flow import InstalledAppFlow
from googleapiclient.discovery import build
from googleapiclient.errors import HttpError

from agenda_board.agenda.backends.base import (
    Presentation,
    PresentationBackend,
    Shape,
    ShapeGeometry,
    Slide,
    TextRun,
    emu_to_points,
)
from agenda_board.agenda.errors import PresentationAccessError

SCOPES = ["https://www.googleapis.com/auth/presentations.readonly"]


def _expand_path(path_str: str) -> str:
    """Expand user and env vars in path."""
    s = os.path.expanduser(path_str)
    s = os.path.expandvars(s)
    return s


def _to_points(magnitude: Optional[float], unit: Optional[str]) -> float:
    if magnitude is None:
        return 0.0
    if unit == "PT":
        return float(magnitude)
    return emu_to_points(float(magnitude))


def element_geometry(element: Dict[str, Any]) -> ShapeGeometry:
    """Rendered rectangle of a page element in points. Shear and rotation are ignored."""
    size = element.get("size") or {}
    transform = element.get("transform") or {}
    unit = transform.get("unit", "EMU")
    width = size.get("width") or {}
    height = size.get("height") or {}
    return ShapeGeometry(
        x=_to_points(transform.get("translateX", 0), unit),
        y=_to_points(transform.get("translateY", 0), unit),
        width=_to_points(width.get("magnitude"), width.get("unit")) * transform.get("scaleX", 1),
        height=_to_points(height.get("magnitude"), height.get("unit")) * transform.get("scaleY", 1),
    )


def element_runs(element: Dict[str, Any]) -> List[TextRun]:
    """Text runs of a shape element in document order, with external link urls."""
    text = (element.get("shape") or {}).get("text") or {}
    runs = []
    for text_element in text.get("textElements", []):
        if "textRun" in text_element:
            text_run = text_element["textRun"]
            link = (text_run.get("style") or {}).get("link") or {}
            runs.append(TextRun(text_run.get("content", ""), link.get("url") or None))
        elif "autoText" in text_element:
            runs.append(TextRun(text_element["autoText"].get("content", "")))
    return runs


def convert_presentation(data: Dict[str, Any]) -> Presentation:
    """Convert a presentations.get response into a Presentation tuple (top-level shapes only)."""
    slides = []
    for page in data.get("slides", []):
        shapes = []
        for element in page.get("pageElements", []):
            if "shape" not in element:
                continue
            shapes.append(
                Shape(
                    object_id=element.get("objectId"),
                    geometry=element_geometry(element),
                    runs=element_runs(element),
                )
            )
        slides.append(Slide(object_id=page.get("objectId"), shapes=shapes))
    return Presentation(
        presentation_id=data.get("presentationId"),
        title=data.get("title", ""),
        slides=slides,
    )


class GoogleSlidesBackend(PresentationBackend):
    """Reads presentations with the Slides API v1."""

    def __init__(self, config: Dict[str, Any], logger: Optional[logging.Logger] = None):
        self.config = config or {}
        self.logger = logger or logging.getLogger(__name__)
        self.service_account_file = self._path_option("service_account_file")
        self.client_secret_path = self._path_option("client_secret_path")
        self.token_path = self._path_option("token_file")
        self._service = None

    def _path_option(self, key: str) -> Optional[str]:
        value = self.config.get(key)
        return _expand_path(str(value)) if value else None

    def _load_credentials(self):
        if self.service_account_file:
            return service_account.Credentials.from_service_account_file(
                self.service_account_file, scopes=SCOPES
            )

        creds = None
        token_path = Path(self.token_path) if self.token_path else None
        if token_path and token_path.exists():
            try:
                creds = Credentials.from_authorized_user_file(str(token_path), SCOPES)
            except ValueError as e:
                self.logger.warning(f"Could not load Slides token {token_path}: {e}")

        if creds and creds.valid:
            return creds
        if creds and creds.expired and creds.refresh_token:
            try:
                creds.refresh(Request())
            except GoogleAuthError as e:
                self.logger.warning(f"Slides token refresh failed: {e}")
                creds = None
        if not creds or not creds.valid:
            if not self.client_secret_path or not Path(self.client_secret_path).exists():
                raise PresentationAccessError(
                    f"No usable Google credentials: client secret not found ({self.client_secret_path})"
                )
            flow = InstalledAppFlow.from_client_secrets_file(self.client_secret_path, SCOPES)
            creds = flow.run_local_server(port=0)

        if token_path:
            token_path.parent.mkdir(parents=True, exist_ok=True)
            token_path.write_text(creds.to_json())
        return creds

    def _ensure_service(self):
        if self._service is None:
            try:
                creds = self._load_credentials()
                self._service = build("slides", "v1", credentials=creds, cache_discovery=False)
            except PresentationAccessError:
                raise
            except (GoogleAuthError, OSError, ValueError) as e:
                raise PresentationAccessError(f"Could not authorize Google Slides access: {e}") from e
        return self._service

    def open(self, document_id: str) -> Presentation:
        service = self._ensure_service()
        try:
            data = service.presentations().get(presentationId=document_id).execute()
        except HttpError as e:
            status = getattr(e.resp, "status", "?")
            raise PresentationAccessError(
                f"Could not open presentation {document_id} (HTTP {status})"
            ) from e
        presentation = convert_presentation(data)
        self.logger.debug(
            f"Opened presentation {document_id} '{presentation.title}' with {len(presentation.slides)} slide(s)"
        )
        return presentation
