"""
Page layout planning for the document bundle.

Sections are stacked top to bottom on fixed-size pages. The planner is pure
(heights in, placements out) so pagination can be tested without rendering.

Rules, applied per section in order, with ``y`` starting at the top margin:

1. If the section would cross the bottom margin and the page already holds
   something (``y`` is not at the top margin), start a new page.
2. Place the section at ``y`` and advance ``y`` by its height plus the gap.
3. If more sections remain and ``y`` has passed the bottom margin, start a
   new page.

A section taller than the printable area is placed at the top of its own
page; callers shrink such sections to the printable height first.
"""

from dataclasses import dataclass
from typing import Dict, List, Sequence, Tuple

# Portrait page sizes in millimetres (width, height)
PAGE_SIZES_MM: Dict[str, Tuple[float, float]] = {
    "legal": (215.9, 355.6),
    "a4": (210.0, 297.0),
}


@dataclass(frozen=True)
class PageGeometry:
    """Page dimensions, margin and inter-section gap (all in millimetres)."""
    width: float
    height: float
    margin: float = 10.0
    gap: float = 5.0

    @classmethod
    def named(cls, name: str, margin: float = 10.0, gap: float = 5.0) -> "PageGeometry":
        """
        Geometry for a named page size.

        Raises:
            ValueError: If the page size is unknown
        """
        try:
            width, height = PAGE_SIZES_MM[name.lower()]
        except KeyError:
            raise ValueError(f"Unknown page size: {name}. Expected one of {sorted(PAGE_SIZES_MM)}")
        return cls(width=width, height=height, margin=margin, gap=gap)

    @property
    def content_width(self) -> float:
        return self.width - 2 * self.margin

    @property
    def content_height(self) -> float:
        return self.height - 2 * self.margin

    @property
    def bottom(self) -> float:
        """Lowest y (from the top edge) content may reach."""
        return self.height - self.margin


@dataclass(frozen=True)
class Placement:
    """Where one section lands: page index (0-based) and top offset."""
    index: int
    page: int
    y: float
    height: float


def plan_layout(heights: Sequence[float], geometry: PageGeometry) -> List[Placement]:
    """
    Assign each section a page and vertical offset.

    Args:
        heights: Section heights in millimetres, in document order
        geometry: Page geometry

    Returns:
        One Placement per section, in the same order
    """
    placements: List[Placement] = []
    page = 0
    y = geometry.margin

    for index, height in enumerate(heights):
        if y + height > geometry.bottom and y != geometry.margin:
            page += 1
            y = geometry.margin

        placements.append(Placement(index=index, page=page, y=y, height=height))
        y += height + geometry.gap

        if index < len(heights) - 1 and y > geometry.bottom:
            page += 1
            y = geometry.margin

    return placements


def page_count(placements: Sequence[Placement]) -> int:
    """Pages used by a plan (at least one)."""
    if not placements:
        return 1
    return placements[-1].page + 1
