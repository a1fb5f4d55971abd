"""
Typed view of the Google Cloud Vision `images:annotate` text response.

Only the fields used for text extraction and box geometry are modelled;
everything else in the response is ignored.
"""

from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field


class _VisionModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")


class Vertex(_VisionModel):
    # Vision omits zero coordinates.
    x: float = 0
    y: float = 0


class BoundingPoly(_VisionModel):
    vertices: List[Vertex] = Field(default_factory=list)
    normalized_vertices: List[Vertex] = Field(default_factory=list, alias="normalizedVertices")

    def pick_vertices(self) -> List[Vertex]:
        return self.vertices if self.vertices else self.normalized_vertices


class Symbol(_VisionModel):
    text: str = ""


class Word(_VisionModel):
    bounding_box: Optional[BoundingPoly] = Field(default=None, alias="boundingBox")
    symbols: List[Symbol] = Field(default_factory=list)

    @property
    def text(self) -> str:
        return "".join(symbol.text for symbol in self.symbols)


class Paragraph(_VisionModel):
    words: List[Word] = Field(default_factory=list)


class Block(_VisionModel):
    paragraphs: List[Paragraph] = Field(default_factory=list)


class Page(_VisionModel):
    blocks: List[Block] = Field(default_factory=list)


class FullTextAnnotation(_VisionModel):
    text: str = ""
    pages: List[Page] = Field(default_factory=list)


class TextAnnotation(_VisionModel):
    description: str = ""
    bounding_poly: Optional[BoundingPoly] = Field(default=None, alias="boundingPoly")


class VisionStatus(_VisionModel):
    code: int = 0
    message: str = ""


class VisionTextResponse(_VisionModel):
    """One entry of `responses[]` for DOCUMENT_TEXT_DETECTION."""

    full_text_annotation: Optional[FullTextAnnotation] = Field(default=None, alias="fullTextAnnotation")
    text_annotations: List[TextAnnotation] = Field(default_factory=list, alias="textAnnotations")
    error: Optional[VisionStatus] = None

    @property
    def full_text(self) -> str:
        if self.full_text_annotation and self.full_text_annotation.text:
            return self.full_text_annotation.text
        if self.text_annotations:
            return self.text_annotations[0].description
        return ""

    @property
    def pages(self) -> List[Page]:
        return list(self.full_text_annotation.pages) if self.full_text_annotation else []
