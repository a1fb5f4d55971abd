from adscreen.models.schemas import ForbiddenPhraseRule
from adscreen.models.vision import Vertex, VisionTextResponse
from adscreen.services.box_mapper import build_ocr_boxes, compute_box_risk, normalize_vertices
from fakes import make_vision_response

RULES = [
    ForbiddenPhraseRule(phrase="완치", risk_level="high"),
    ForbiddenPhraseRule(phrase="할인", risk_level="medium"),
    ForbiddenPhraseRule(phrase="할인이벤트", risk_level="low"),
]


def test_word_boxes_from_page_tree():
    response = make_vision_response("완치 보장", words=[("완치", 10, 20, 30, 12), ("보장", 50, 20, 28, 12)])
    boxes = build_ocr_boxes(response, RULES)
    assert [(b.text, b.x, b.y, b.w, b.h) for b in boxes] == [("완치", 10, 20, 30, 12), ("보장", 50, 20, 28, 12)]
    assert boxes[0].risk_level == "high"
    assert boxes[1].risk_level == "none"


def test_box_takes_highest_matching_tier():
    assert compute_box_risk("할인이벤트", RULES) == "medium"
    assert compute_box_risk("", RULES) == "none"


def test_degenerate_boxes_are_dropped():
    response = make_vision_response("완치 보장", words=[("완치", 10, 20, 0, 12), ("", 0, 0, 5, 5)])
    # Nothing usable in the page tree and no flat entries beyond the aggregate.
    assert build_ocr_boxes(response, RULES) == []


def test_falls_back_to_flat_annotations_without_aggregate():
    response = VisionTextResponse.model_validate(
        {
            "textAnnotations": [
                {"description": "할인 후기", "boundingPoly": {"vertices": [{"x": 0, "y": 0}, {"x": 200, "y": 80}]}},
                {"description": "할인", "boundingPoly": {"vertices": [{"x": 5, "y": 6}, {"x": 45, "y": 26}]}},
                {"description": "후기", "boundingPoly": {"vertices": [{"x": 50, "y": 6}, {"x": 90, "y": 26}]}},
            ]
        }
    )
    boxes = build_ocr_boxes(response, RULES)
    assert [b.text for b in boxes] == ["할인", "후기"]
    assert boxes[0].risk_level == "medium"
    assert (boxes[0].x, boxes[0].y, boxes[0].w, boxes[0].h) == (5, 6, 40, 20)


def test_normalized_vertices_used_when_pixel_vertices_missing():
    response = VisionTextResponse.model_validate(
        {
            "fullTextAnnotation": {
                "text": "완치",
                "pages": [
                    {
                        "blocks": [
                            {
                                "paragraphs": [
                                    {
                                        "words": [
                                            {
                                                "boundingBox": {
                                                    "normalizedVertices": [
                                                        {"x": 0.1, "y": 0.2},
                                                        {"x": 0.4, "y": 0.5},
                                                    ]
                                                },
                                                "symbols": [{"text": "완"}, {"text": "치"}],
                                            }
                                        ]
                                    }
                                ]
                            }
                        ]
                    }
                ],
            }
        }
    )
    boxes = build_ocr_boxes(response, RULES)
    assert len(boxes) == 1
    assert boxes[0].x == 0.1
    assert round(boxes[0].w, 6) == 0.3


def test_missing_coordinates_default_to_zero():
    assert normalize_vertices([Vertex(), Vertex(x=10, y=4)]) == (0, 0, 10, 4)
    assert normalize_vertices([]) == (0.0, 0.0, 0.0, 0.0)
