from __future__ import annotations

import logging
import re
from pathlib import Path

from contracts.bbox import BoundingBox

logger = logging.getLogger(__name__)

EPS_HEADER_SOURCE = "eps_header"

# DSC comment: integer corners only. "(atend)" and real-valued variants fall through.
_BBOX_COMMENT_RE = re.compile(rb"%%BoundingBox:\s+(\d+)\s+(\d+)\s+(\d+)\s+(\d+)")


def parse_header_bbox(content: bytes) -> BoundingBox | None:
    m = _BBOX_COMMENT_RE.search(content)
    if not m:
        return None
    llx, lly, urx, ury = (int(g) for g in m.groups())
    try:
        bbox = BoundingBox(llx=llx, lly=lly, urx=urx, ury=ury, source=EPS_HEADER_SOURCE)
    except ValueError:
        logger.warning("Ignoring inverted %%%%BoundingBox comment: %s", m.group(0)[:80])
        return None
    # Some exporters write "0 0 0 0"; the render probe decides those.
    if bbox.is_degenerate:
        logger.warning("Ignoring zero-area %%%%BoundingBox comment: %s", m.group(0)[:80])
        return None
    return bbox


def read_header_bbox(file: Path) -> BoundingBox | None:
    """
    Fast path for EPS/PS: read the %%BoundingBox DSC comment without rendering.

    Returns None when the comment is missing or the file cannot be read;
    the caller then falls back to the render probe.
    """

    try:
        content = file.read_bytes()
    except OSError as e:
        logger.warning("EPS header read failed for %s: %s", file.name, e)
        return None

    bbox = parse_header_bbox(content)
    if bbox is None:
        logger.debug("No %%%%BoundingBox comment in %s", file.name)
    return bbox
