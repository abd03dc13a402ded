import logging
from io import BytesIO

import pytest
from PyPDF2 import PdfReader

from app.models.signature import Signature, SignatureStatus
from app.services import compositor, signatures
from app.services.errors import DependencyFailure, InvalidArgument
from app.services.policy import UserActor
from tests.conftest import PAGE_HEIGHT, make_pdf


def _mark(page, x, y, text, status=SignatureStatus.signed, **kw):
    return Signature(
        id=kw.pop("id", None), page=page, x=x, y=y, text=text,
        font=kw.get("font", "Arial"), font_size=kw.get("font_size", 24),
        color=kw.get("color", "#000000"), status=status,
    )


def _page_texts(pdf: bytes) -> list[str]:
    return [page.extract_text() or "" for page in PdfReader(BytesIO(pdf)).pages]


def test_only_signed_marks_are_drawn(pdf_bytes):
    marks = [
        _mark(1, 100, 100, "Alice Signed"),
        _mark(1, 100, 300, "Bob Pending", SignatureStatus.pending),
        _mark(2, 100, 100, "Carol Rejected", SignatureStatus.rejected),
        _mark(2, 100, 500, "Dave Signed"),
    ]
    page1, page2 = _page_texts(compositor.render_signed_pdf(pdf_bytes, marks))
    assert page1.count("Alice Signed") == 1
    assert page2.count("Dave Signed") == 1
    joined = page1 + page2
    assert "Bob Pending" not in joined
    assert "Carol Rejected" not in joined
    assert "Page 1" in page1 and "Page 2" in page2


def test_out_of_range_page_is_skipped(pdf_bytes):
    marks = [_mark(5, 10, 10, "Nowhere"), _mark(1, 10, 10, "Here")]
    pages = _page_texts(compositor.render_signed_pdf(pdf_bytes, marks))
    assert len(pages) == 2
    assert "Here" in pages[0]
    assert "Nowhere" not in "".join(pages)


def test_render_is_byte_identical_for_same_input(pdf_bytes):
    marks = [_mark(1, 200, 200, "Same"), _mark(2, 50, 60, "Again", color="#ff0000", font="Courier")]
    first = compositor.render_signed_pdf(pdf_bytes, marks)
    second = compositor.render_signed_pdf(pdf_bytes, marks)
    assert first == second


def test_source_bytes_are_untouched(pdf_bytes):
    original = bytes(pdf_bytes)
    compositor.render_signed_pdf(pdf_bytes, [_mark(1, 1, 1, "x")])
    assert pdf_bytes == original


def test_overlay_flips_y_axis():
    overlay = compositor._draw_page_overlay(1200, PAGE_HEIGHT, [_mark(1, 200, 200, "Flip")]).getvalue()
    assert b"1 0 0 1 200 1400 Tm" in overlay


def test_overlay_uses_page_height_of_each_page():
    overlay = compositor._draw_page_overlay(612, 792, [_mark(1, 72, 100, "Letter")]).getvalue()
    assert b"1 0 0 1 72 692 Tm" in overlay


@pytest.mark.parametrize(
    "requested, expected",
    [
        ("Arial", "Helvetica"),
        ("times new roman", "Times-Roman"),
        ("Courier", "Courier"),
        ("Helvetica-Bold", "Helvetica-Bold"),
        ("Comic Sans", "Helvetica"),
        ("", "Helvetica"),
        (None, "Helvetica"),
    ],
)
def test_font_resolution_falls_back_to_helvetica(requested, expected):
    assert compositor.resolve_font(requested) == expected


def test_unknown_font_still_exports(pdf_bytes):
    pages = _page_texts(compositor.render_signed_pdf(pdf_bytes, [_mark(1, 10, 10, "Fancy", font="Brush Script")]))
    assert "Fancy" in pages[0]


def test_malformed_color_falls_back_to_black():
    assert compositor.resolve_color("nope").hexval() == "0x000000"
    assert compositor.resolve_color("#1A2B3C").hexval() == "0x1a2b3c"


def test_unreadable_source_is_rejected():
    with pytest.raises(InvalidArgument):
        compositor.render_signed_pdf(b"not a pdf", [])


def test_export_document(db, document, owner, storage):
    actor = UserActor(owner.id)
    sig = signatures.create_signature(db, document.id, actor, page=1, x=200, y=200, text="Olivia")
    signatures.create_signature(db, document.id, actor, page=2, x=10, y=10, text="Left pending")
    signatures.set_status(db, sig.id, actor, SignatureStatus.signed)

    filename, pdf = compositor.export_document(db, document.id, actor, storage)
    assert filename == "signed-contract.pdf"
    page1, page2 = _page_texts(pdf)
    assert "Olivia" in page1
    assert "Left pending" not in page1 + page2
    # Stored original is unchanged
    assert storage.get(document.storage_locator) == make_pdf()


def test_export_aborts_when_blob_is_missing(db, document, owner, storage):
    storage.delete(document.storage_locator)
    with pytest.raises(DependencyFailure):
        compositor.export_document(db, document.id, UserActor(owner.id), storage)


def test_overlay_fonts_do_not_clash_with_page_fonts(pdf_bytes):
    # Source pages from reportlab already use /F1
    out = compositor.render_signed_pdf(pdf_bytes, [_mark(1, 200, 200, "Named")])
    page = PdfReader(BytesIO(out)).pages[0]
    fonts = set(page["/Resources"]["/Font"])
    assert {"/F1", "/SigF1"} <= fonts
    assert all(len(name) < 10 for name in fonts)
    assert "Named" in page.extract_text()


def test_repeated_export_of_same_marks_is_identical(db, document, owner, storage):
    actor = UserActor(owner.id)
    sig = signatures.create_signature(db, document.id, actor, page=1, x=200, y=200)
    signatures.set_status(db, sig.id, actor, SignatureStatus.signed)
    _, first = compositor.export_document(db, document.id, actor, storage)
    _, second = compositor.export_document(db, document.id, actor, storage)
    assert first == second


def test_missing_glyphs():
    # Greek comes from the Symbol substitution font; CJK has no glyph at all
    assert compositor.missing_glyphs("Zoë 王小明 Ωmega", "Helvetica") == "王小明"
    assert compositor.missing_glyphs("Plain ASCII", "Helvetica") == ""


def test_unshowable_characters_are_logged(pdf_bytes, caplog):
    caplog.set_level(logging.INFO, logger="uvicorn.error")
    compositor.render_signed_pdf(pdf_bytes, [_mark(1, 10, 10, "Zoë 王小明", id=7)])
    messages = [r.getMessage() for r in caplog.records]
    assert any("signature 7" in m and "王小明" in m for m in messages)
