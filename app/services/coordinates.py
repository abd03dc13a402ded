"""Coordinate mapping between a page rendered on screen and the PDF's own page space.

Screen space is whatever the client rendered: CSS pixels, origin at the top-left of
the viewport. Document space is PDF points at the page's intrinsic size, still
measured from the top-left; the y-axis is flipped only when drawing into the PDF
(see to_pdf_y). The scale factor is recomputed from the geometry supplied with each
call, so a resized viewer or a page with different dimensions never reuses a stale
factor.
"""
from __future__ import annotations

import math
from dataclasses import dataclass

from app.services.errors import InvalidArgument


@dataclass(frozen=True)
class ContainerRect:
    """Bounding rect of the rendered page element on screen."""
    left: float = 0.0
    top: float = 0.0


def _finite(value, name: str) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise InvalidArgument(f"{name} must be a number")
    if not math.isfinite(value):
        raise InvalidArgument(f"{name} must be a finite number")
    return float(value)


def scale_factor(rendered_page_width: float | None, intrinsic_page_width: float | None) -> float:
    """intrinsic / rendered. Rejects pages whose size is not known yet."""
    if rendered_page_width is None or intrinsic_page_width is None:
        raise InvalidArgument("Page has not been rendered yet; its width is unknown")
    rendered = _finite(rendered_page_width, "rendered_page_width")
    intrinsic = _finite(intrinsic_page_width, "intrinsic_page_width")
    if rendered <= 0 or intrinsic <= 0:
        raise InvalidArgument("Page width must be greater than zero")
    return intrinsic / rendered


def screen_to_document(
    pointer_x: float,
    pointer_y: float,
    container: ContainerRect,
    rendered_page_width: float | None,
    intrinsic_page_width: float | None,
) -> tuple[float, float]:
    scale = scale_factor(rendered_page_width, intrinsic_page_width)
    px = _finite(pointer_x, "pointer_x")
    py = _finite(pointer_y, "pointer_y")
    return (px - container.left) * scale, (py - container.top) * scale


def document_to_screen(
    doc_x: float,
    doc_y: float,
    container: ContainerRect,
    rendered_page_width: float | None,
    intrinsic_page_width: float | None,
) -> tuple[float, float]:
    scale = scale_factor(rendered_page_width, intrinsic_page_width)
    dx = _finite(doc_x, "x")
    dy = _finite(doc_y, "y")
    return dx / scale + container.left, dy / scale + container.top


def apply_drag(
    doc_x: float,
    doc_y: float,
    delta_x: float,
    delta_y: float,
    rendered_page_width: float | None,
    intrinsic_page_width: float | None,
) -> tuple[float, float]:
    """Move a stored position by an on-screen drag delta. Only the delta is scaled."""
    scale = scale_factor(rendered_page_width, intrinsic_page_width)
    return (
        _finite(doc_x, "x") + _finite(delta_x, "delta_x") * scale,
        _finite(doc_y, "y") + _finite(delta_y, "delta_y") * scale,
    )


def to_pdf_y(page_height: float, stored_y: float) -> float:
    # PDF origin is bottom-left
    return page_height - stored_y
