"""
Map OCR geometry to highlight boxes.

Coordinate system:
- Boxes stay in the OCR provider's native coordinates (pixels, or 0-1 when Vision
  only returned normalized vertices). The UI decides how to scale them.
- Each box is scored against the phrase list on its own text only; it does not
  consult the full-text findings.
"""

from __future__ import annotations

from typing import Iterable, List, Optional, Sequence, Tuple

from adscreen.models.schemas import ForbiddenPhraseRule, OcrBox, risk_rank
from adscreen.models.vision import BoundingPoly, Vertex, VisionTextResponse
from adscreen.services.phrase_matcher import phrase_matches


def normalize_vertices(vertices: Sequence[Vertex]) -> Tuple[float, float, float, float]:
    """Axis-aligned (x, y, w, h) around a vertex list."""
    if not vertices:
        return 0.0, 0.0, 0.0, 0.0
    xs = [v.x for v in vertices]
    ys = [v.y for v in vertices]
    min_x, min_y = min(xs), min(ys)
    return min_x, min_y, max(0.0, max(xs) - min_x), max(0.0, max(ys) - min_y)


def compute_box_risk(text: str, rules: Iterable[ForbiddenPhraseRule]) -> str:
    box_risk = "none"
    if not text:
        return box_risk
    for rule in rules:
        if not phrase_matches(text, rule.phrase):
            continue
        if risk_rank(rule.risk_level) > risk_rank(box_risk):
            box_risk = rule.risk_level
    return box_risk


def _make_box(text: str, poly: Optional[BoundingPoly], rules: List[ForbiddenPhraseRule]) -> Optional[OcrBox]:
    if not text or poly is None:
        return None
    vertices = poly.pick_vertices()
    if not vertices:
        return None
    x, y, w, h = normalize_vertices(vertices)
    if w <= 0 or h <= 0:
        return None
    return OcrBox(x=x, y=y, w=w, h=h, text=text, risk_level=compute_box_risk(text, rules))


def _boxes_from_pages(response: VisionTextResponse, rules: List[ForbiddenPhraseRule]) -> List[OcrBox]:
    boxes: List[OcrBox] = []
    for page in response.pages:
        for block in page.blocks:
            for paragraph in block.paragraphs:
                for word in paragraph.words:
                    box = _make_box(word.text, word.bounding_box, rules)
                    if box is not None:
                        boxes.append(box)
    return boxes


def _boxes_from_annotations(response: VisionTextResponse, rules: List[ForbiddenPhraseRule]) -> List[OcrBox]:
    boxes: List[OcrBox] = []
    # Entry 0 is the whole-image aggregate annotation.
    for annotation in response.text_annotations[1:]:
        box = _make_box(annotation.description, annotation.bounding_poly, rules)
        if box is not None:
            boxes.append(box)
    return boxes


def build_ocr_boxes(response: VisionTextResponse, rules: Iterable[ForbiddenPhraseRule]) -> List[OcrBox]:
    """Word-level boxes when the page tree is usable, otherwise flat annotation boxes."""
    rule_list = list(rules)
    boxes = _boxes_from_pages(response, rule_list)
    if boxes:
        return boxes
    return _boxes_from_annotations(response, rule_list)
