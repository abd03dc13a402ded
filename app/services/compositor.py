"""Export: burn signed signature marks into the PDF.

Each source page that carries marks gets a one-page reportlab overlay of the same
size merged on top of it. Pending and rejected marks are never drawn. The overlay
canvas is built in invariant mode so identical input yields identical bytes.
"""
from __future__ import annotations

import logging
import re
from io import BytesIO
from typing import Iterable

from PyPDF2 import PdfReader, PdfWriter
from PyPDF2.errors import PdfReadError
from PyPDF2.generic import ContentStream, DictionaryObject, NameObject
from reportlab.lib.colors import HexColor, black
from reportlab.pdfbase import pdfmetrics
from reportlab.pdfgen import canvas
from sqlalchemy.orm import Session

from app.models.signature import Signature, SignatureStatus
from app.services import audit_log
from app.services.coordinates import to_pdf_y
from app.services.errors import InvalidArgument
from app.services.policy import Actor, Operation, actor_user_id, authorize
from app.services.signatures import get_document, list_signed

logger = logging.getLogger("uvicorn.error")

DEFAULT_PDF_FONT = "Helvetica"

# Browser font families mapped onto the PDF standard 14 fonts
FONT_ALIASES = {
    "arial": "Helvetica",
    "helvetica": "Helvetica",
    "sans-serif": "Helvetica",
    "verdana": "Helvetica",
    "times": "Times-Roman",
    "times new roman": "Times-Roman",
    "timesroman": "Times-Roman",
    "serif": "Times-Roman",
    "georgia": "Times-Roman",
    "courier": "Courier",
    "courier new": "Courier",
    "monospace": "Courier",
    "helvetica-bold": "Helvetica-Bold",
    "helvetica-oblique": "Helvetica-Oblique",
    "times-bold": "Times-Bold",
    "times-italic": "Times-Italic",
    "courier-bold": "Courier-Bold",
    "symbol": "Symbol",
    "zapfdingbats": "ZapfDingbats",
}

_HEX_COLOR = re.compile(r"^#?([0-9a-fA-F]{6})$")


def resolve_font(requested: str | None) -> str:
    """Registered reportlab font, else a standard-font alias, else Helvetica."""
    name = (requested or "").strip()
    if not name:
        return DEFAULT_PDF_FONT
    alias = FONT_ALIASES.get(name.lower())
    if alias:
        return alias
    try:
        pdfmetrics.getFont(name)
        return name
    except KeyError:
        return DEFAULT_PDF_FONT


def resolve_color(value: str | None):
    match = _HEX_COLOR.match((value or "").strip())
    if not match:
        return black
    return HexColor(f"#{match.group(1)}")


def missing_glyphs(text: str, font_name: str) -> str:
    """Characters neither the font nor reportlab's substitution fonts can encode.

    reportlab draws these as blank notdef boxes.
    """
    font = pdfmetrics.getFont(font_name)
    if getattr(font, "_multiByte", 0):
        return ""
    chain = [font] + list(getattr(font, "substitutionFonts", []))
    missing = []
    for ch in text or "":
        for candidate in chain:
            encoding = "UTF16" if "UCS-2" in candidate.encName else candidate.encName
            try:
                ch.encode(encoding)
                break
            except UnicodeEncodeError:
                continue
            except LookupError:
                break
        else:
            missing.append(ch)
    return "".join(dict.fromkeys(missing))


def _draw_page_overlay(width: float, height: float, marks: list[Signature]) -> BytesIO:
    buf = BytesIO()
    overlay = canvas.Canvas(buf, pagesize=(width, height), invariant=1, pageCompression=0)
    for sig in marks:
        font = resolve_font(sig.font)
        try:
            overlay.setFont(font, sig.font_size)
        except KeyError:
            font = DEFAULT_PDF_FONT
            overlay.setFont(font, sig.font_size)
        missing = missing_glyphs(sig.text, font)
        if missing:
            logger.info(
                "Export: signature %s has characters %r that font %s cannot show; they render as blanks",
                sig.id, missing, font,
            )
        overlay.setFillColor(resolve_color(sig.color))
        overlay.drawString(sig.x, to_pdf_y(height, sig.y), sig.text)
    overlay.showPage()
    overlay.save()
    buf.seek(0)
    return buf


def _font_names(page) -> set[str]:
    resources = page.get("/Resources")
    if resources is None:
        return set()
    fonts = resources.get_object().get("/Font")
    return set(fonts.get_object()) if fonts is not None else set()


def _rename_overlay_fonts(overlay_page, taken: set[str]) -> None:
    """Move the overlay's font resources to names the source page does not use.

    merge_page resolves a resource name clash with a random suffix, which would
    make the output differ between runs.
    """
    resources = overlay_page["/Resources"].get_object()
    if "/Font" not in resources:
        return
    fonts = resources["/Font"].get_object()
    prefix = "/Sig"
    while any(prefix + key[1:] in taken for key in fonts):
        prefix += "X"
    mapping = {key: NameObject(prefix + key[1:]) for key in fonts}
    renamed = DictionaryObject()
    for key in sorted(fonts):
        renamed[mapping[key]] = fonts.raw_get(key)
    resources[NameObject("/Font")] = renamed

    content = ContentStream(overlay_page.get_contents(), overlay_page.pdf)
    for operands, operator in content.operations:
        if operator == b"Tf" and operands and operands[0] in mapping:
            operands[0] = mapping[operands[0]]
    overlay_page[NameObject("/Contents")] = content


def render_signed_pdf(source_pdf: bytes, signatures: Iterable[Signature]) -> bytes:
    """New PDF bytes with every signed mark drawn on its page. source_pdf is not modified."""
    try:
        reader = PdfReader(BytesIO(source_pdf))
        pages = list(reader.pages)
    except (PdfReadError, ValueError) as e:
        raise InvalidArgument("Stored PDF could not be read") from e

    by_page: dict[int, list[Signature]] = {}
    for sig in signatures:
        if sig.status != SignatureStatus.signed:
            continue
        if sig.page < 1 or sig.page > len(pages):
            logger.info(
                "Export: skipping signature %s on page %s (document has %s pages)",
                sig.id, sig.page, len(pages),
            )
            continue
        by_page.setdefault(sig.page, []).append(sig)

    writer = PdfWriter()
    for index, page in enumerate(pages, start=1):
        marks = by_page.get(index)
        if marks:
            width = float(page.mediabox.width)
            height = float(page.mediabox.height)
            overlay_page = PdfReader(_draw_page_overlay(width, height, marks)).pages[0]
            _rename_overlay_fonts(overlay_page, _font_names(page))
            page.merge_page(overlay_page)
        writer.add_page(page)

    out = BytesIO()
    writer.write(out)
    return out.getvalue()


def export_document(
    db: Session,
    document_id: int,
    actor: Actor,
    storage,
    *,
    ip_address: str | None = None,
) -> tuple[str, bytes]:
    """(download filename, signed PDF bytes). Any storage failure aborts the export."""
    document = get_document(db, document_id)
    authorize(actor, Operation.read, document)

    signed = list_signed(db, document.id)
    source = storage.get(document.storage_locator)
    pdf_bytes = render_signed_pdf(source, signed)

    audit_log.record(
        db,
        document.id,
        actor_user_id(actor),
        audit_log.ACTION_DOWNLOADED,
        {"signed_marks": len(signed)},
        ip_address=ip_address,
    )
    return f"signed-{document.filename}", pdf_bytes
