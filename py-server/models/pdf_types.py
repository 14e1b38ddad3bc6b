"""
Pydantic models for PDF Element Extraction API
Raw page inputs read from the document source, and the document elements
served to the interactive overlay.
"""

from pydantic import BaseModel, ConfigDict, Field
from typing import List, Optional, Tuple, Any, Literal, Dict
from enum import Enum

class ElementType(str, Enum):
    """Top-level kind of a document element"""
    TEXT = "text"
    ANNOTATION = "annotation"
    IMAGE = "image"
    FORM_FIELD = "form-field"

class TextSubtype(str, Enum):
    """Semantic classification of a text run"""
    HEADING = "heading"
    SUBHEADING = "subheading"
    LIST_ITEM = "list-item"
    TITLE = "title"
    SYMBOL = "symbol"
    PARAGRAPH = "paragraph"

class ScaleStrategy(str, Enum):
    """How a session moves its element lists to a new scale"""
    REPARSE = "reparse"
    RESCALE = "rescale"

# Raw inputs from the document source (user space, origin bottom-left)
class RawTextRun(BaseModel):
    """Glyph run as emitted by the content-stream reader, in stream order"""
    model_config = ConfigDict(frozen=True)

    text: str
    transform: Tuple[float, float, float, float, float, float]  # [a, b, c, d, e, f], e/f = baseline origin
    width: float
    height: float
    font_name: str = ""
    end_of_line: bool = False
    direction: Literal["ltr", "rtl", "ttb"] = "ltr"

    @property
    def baseline_x(self) -> float:
        return self.transform[4]

    @property
    def baseline_y(self) -> float:
        return self.transform[5]

class RawFormField(BaseModel):
    """Field descriptors carried by a widget annotation"""
    model_config = ConfigDict(frozen=True)

    field_type: str  # /FT without the slash: Tx, Btn, Ch, Sig
    field_name: Optional[str] = None
    field_value: Optional[Any] = None
    required: bool = False
    read_only: bool = False

class RawAnnotation(BaseModel):
    """Annotation dictionary with a normalized rectangle"""
    model_config = ConfigDict(frozen=True)

    rect: Tuple[float, float, float, float]  # x0, y0, x1, y1 with x0 <= x1, y0 <= y1
    subtype: Optional[str] = None
    contents: Optional[str] = None
    title: Optional[str] = None
    url: Optional[str] = None
    dest: Optional[Any] = None
    field: Optional[RawFormField] = None

class RawImageOp(BaseModel):
    """Image paint operator found in the page content stream"""
    model_config = ConfigDict(frozen=True)

    operator_index: int
    name: str  # XObject resource name (e.g., '/Im1')

class PageViewport(BaseModel):
    """Viewport dimensions of a page at a given scale"""
    model_config = ConfigDict(frozen=True)

    width: float
    height: float
    scale: float

    @property
    def page_height(self) -> float:
        """Unscaled page height in user space"""
        return self.height / self.scale

# Output element
class BoundingBox(BaseModel):
    """Axis-aligned box in viewport pixel space"""
    x: float
    y: float
    width: float
    height: float

class DocumentElement(BoundingBox):
    """
    Interactive overlay element.

    Geometry is expressed in the viewport space of `scale` and must never be
    read without it. Elements are immutable; scale changes build new lists.
    """
    model_config = ConfigDict(frozen=True, use_enum_values=True)

    id: str
    type: ElementType
    subtype: str
    content: str
    pageNumber: int
    scale: float
    fontSize: Optional[float] = None  # text elements only
    fontFamily: Optional[str] = None  # text elements only
    metadata: Dict[str, Any] = Field(default_factory=dict)

# Configuration models
class ElementExtractionOptions(BaseModel):
    """Configuration for element extraction - toggles and text grouping tolerance"""
    extract_text: bool = Field(True, description="Extract text runs as text elements")
    extract_annotations: bool = Field(True, description="Extract annotation elements")
    extract_images: bool = Field(True, description="Extract image paint operators as image elements")
    extract_form_fields: bool = Field(True, description="Extract widget annotations as form-field elements")
    line_tolerance: float = Field(2.0, gt=0, description="Minimum baseline gap (user space) that starts a new line")
    line_height_ratio: float = Field(0.3, ge=0, description="Fraction of run height that starts a new line")

class RescaleRequest(BaseModel):
    """Request model for rescaling an existing element list"""
    elements: List[DocumentElement]
    new_scale: float = Field(..., gt=0, description="Target zoom factor")
    old_scale: float = Field(..., gt=0, description="Zoom factor the elements were computed at")

class ScaleChangeRequest(BaseModel):
    """Request model for changing the scale of a document session"""
    scale: float = Field(..., gt=0, le=10, description="New zoom factor")
    strategy: Optional[ScaleStrategy] = Field(None, description="reparse or rescale (session default if omitted)")

class SessionStateResponse(BaseModel):
    """Published view state of a document session"""
    sessionId: str
    pageCount: int
    scale: float
    generation: int
    elements: List[List[DocumentElement]] = Field(..., description="Element lists, one per page")
