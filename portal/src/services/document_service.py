"""
PDF bundle rendering.

Renders the nine document sections for one candidate onto fixed-size pages.
Each section is measured, shrunk to fit the printable area when necessary,
and then placed by the layout planner. Rendering is synchronous (reportlab
and image fetching block), so API handlers run it in a worker thread.
"""

import io
import re
import structlog
import time
from typing import Any, Dict, Optional

from fastapi import Response
from fastapi.concurrency import run_in_threadpool
from reportlab.lib.units import mm
from reportlab.pdfgen import canvas
from reportlab.platypus import KeepInFrame

from portal.src.config import Settings
from portal.src.documents.assets import ImageLoader
from portal.src.documents.layout import PageGeometry, page_count, plan_layout
from portal.src.documents.sections import DocumentContext, build_sections
from shared.tracing import trace_function

logger = structlog.get_logger(__name__)

CANDIDATE_PREVIEW_FILENAME = "application-preview.pdf"


def admin_preview_filename(name: Optional[str]) -> str:
    """Download name for the admin copy of a candidate's documents."""
    cleaned = re.sub(r"[^\w .-]", "", name or "", flags=re.ASCII).strip()
    return f"user-{cleaned or 'application'}-preview.pdf"


class DocumentService:
    """Renders candidate document bundles."""

    def __init__(self, settings: Settings):
        self.settings = settings

    def geometry(self, page_size: str) -> PageGeometry:
        return PageGeometry.named(
            page_size,
            margin=self.settings.document_margin_mm,
            gap=self.settings.document_section_gap_mm,
        )

    @trace_function("document_render_bundle")
    def render_bundle(
        self,
        candidate: Dict[str, Any],
        exam: Dict[str, Any],
        page_size: str,
        title: Optional[str] = None
    ) -> bytes:
        """
        Render the full document bundle.

        Args:
            candidate: Candidate document (camelCase keys)
            exam: Exam window fields (examName, heldDate, startDate, endDate, examCount)
            page_size: Named page size (``legal`` or ``a4``)
            title: PDF title metadata

        Returns:
            PDF bytes

        Raises:
            ValueError: If the page size is unknown
        """
        started = time.perf_counter()
        geometry = self.geometry(page_size)
        page_width = geometry.width * mm
        page_height = geometry.height * mm
        content_width = geometry.content_width * mm
        content_height = geometry.content_height * mm

        buffer = io.BytesIO()
        pdf = canvas.Canvas(buffer, pagesize=(page_width, page_height))
        pdf.setTitle(title or CANDIDATE_PREVIEW_FILENAME)
        pdf.setAuthor(self.settings.app_name)
        pdf.setSubject(exam.get("examName") or "")

        with ImageLoader(
            timeout=self.settings.document_image_timeout,
            assets_dir=self.settings.document_assets_dir,
            max_bytes=self.settings.document_image_max_bytes,
            allowed_hosts=self.settings.document_image_allowed_hosts,
        ) as images:
            context = DocumentContext(
                candidate=candidate,
                exam=exam,
                images=images,
                content_width=content_width,
            )
            frames = [
                KeepInFrame(content_width, content_height, content=flowables, mode="shrink", name=name)
                for name, flowables in build_sections(context)
            ]

            heights = []
            for frame in frames:
                _, height = frame.wrapOn(pdf, content_width, content_height)
                heights.append(min(height, content_height) / mm)

            placements = plan_layout(heights, geometry)

            current_page = 0
            for placement, frame in zip(placements, frames):
                if placement.page != current_page:
                    pdf.showPage()
                    current_page = placement.page
                top = placement.y * mm
                frame.drawOn(pdf, geometry.margin * mm, page_height - top - placement.height * mm)

        pdf.showPage()
        pdf.save()

        data = buffer.getvalue()
        logger.info(
            "document_bundle_rendered",
            page_size=page_size,
            sections=len(frames),
            pages=page_count(placements),
            size_bytes=len(data),
            duration_ms=round((time.perf_counter() - started) * 1000, 2),
        )
        return data

    async def render(
        self,
        candidate: Dict[str, Any],
        exam: Dict[str, Any],
        page_size: str,
        title: Optional[str] = None
    ) -> bytes:
        """Render the bundle in a worker thread."""
        return await run_in_threadpool(self.render_bundle, candidate, exam, page_size, title)


def pdf_response(data: bytes, filename: str) -> Response:
    """Attachment response for a rendered bundle."""
    return Response(
        content=data,
        media_type="application/pdf",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )
