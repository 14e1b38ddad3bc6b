"""Fakes and builders shared by the test modules"""

import time

import pikepdf
from pikepdf import Array, Dictionary, Name, String

from models.pdf_types import PageViewport, RawTextRun
from utils.errors import ParseFailure

PAGE_WIDTH = 612
PAGE_HEIGHT = 792


def make_run(text, x=72.0, y=700.0, height=10.0, width=50.0, font_name="Helvetica", end_of_line=False):
    """Text run with an upright transform whose vertical scale is the glyph height"""
    return RawTextRun(
        text=text,
        transform=(height, 0.0, 0.0, height, x, y),
        width=width,
        height=height,
        font_name=font_name,
        end_of_line=end_of_line,
    )


class FakePageSource:
    """In-memory page source; accessors raise when given an exception"""

    def __init__(self, page_number=1, runs=None, annotations=None, image_ops=None,
                 width=PAGE_WIDTH, height=PAGE_HEIGHT):
        self.page_number = page_number
        self.width = width
        self.height = height
        self.runs = runs or []
        self.annotations = annotations or []
        self.image_ops = image_ops or []

    @staticmethod
    def _value(value):
        if isinstance(value, Exception):
            raise value
        return value

    def get_viewport(self, scale):
        return PageViewport(width=self.width * scale, height=self.height * scale, scale=scale)

    def get_text_runs(self):
        return self._value(self.runs)

    def get_annotations(self):
        return self._value(self.annotations)

    def get_image_ops(self):
        return self._value(self.image_ops)


class FakeEngine:
    """Stands in for PDFEngine: serves fake pages and fake renders"""

    def __init__(self, pages, failing_pages=(), failing_renders=(), render_delay=0.0):
        self.pages = pages
        self.failing_pages = set(failing_pages)
        self.failing_renders = set(failing_renders)
        self.render_delay = render_delay
        self.is_open = False
        self.render_calls = []

    def open(self):
        self.is_open = True
        return self

    def close(self):
        self.is_open = False

    def get_page_count(self):
        return len(self.pages)

    def get_page(self, page_number):
        if page_number in self.failing_pages:
            raise ParseFailure(page_number, f"broken page {page_number}")
        return self.pages[page_number - 1]

    def render_page(self, page_number, scale):
        self.render_calls.append((page_number, scale))
        if self.render_delay:
            time.sleep(self.render_delay)
        if page_number in self.failing_renders:
            raise RuntimeError(f"rasterizer crashed on page {page_number}")
        return f"png-{page_number}@{scale}".encode()


def build_sample_pdf(path, pages=1):
    """Write a small PDF with text, a link, a text field and an image on every page"""
    pdf = pikepdf.new()
    font = pdf.make_indirect(Dictionary(
        Type=Name.Font,
        Subtype=Name.Type1,
        BaseFont=Name.Helvetica,
        Encoding=Name.WinAnsiEncoding,
    ))
    image = pikepdf.Stream(pdf, b'\x00\x80\xff')
    image.Type = Name.XObject
    image.Subtype = Name.Image
    image.Width = 1
    image.Height = 1
    image.ColorSpace = Name.DeviceRGB
    image.BitsPerComponent = 8

    content = (
        b"BT /F1 20 Tf 72 700 Td (HELLO WORLD) Tj ET\n"
        b"BT /F1 10 Tf 72 600 Td (Body text here) Tj ET\n"
        b"q 100 0 0 100 72 400 cm /Im1 Do Q\n"
    )

    for _ in range(pages):
        page = Dictionary(
            Type=Name.Page,
            MediaBox=Array([0, 0, PAGE_WIDTH, PAGE_HEIGHT]),
            Resources=Dictionary(
                Font=Dictionary(F1=font),
                XObject=Dictionary(Im1=image),
            ),
            Contents=pdf.make_stream(content),
        )
        pdf.pages.append(pikepdf.Page(page))

        link = pdf.make_indirect(Dictionary(
            Type=Name.Annot,
            Subtype=Name.Link,
            Rect=Array([72, 500, 172, 520]),
            A=Dictionary(S=Name.URI, URI=String("https://example.com")),
        ))
        widget = pdf.make_indirect(Dictionary(
            Type=Name.Annot,
            Subtype=Name.Widget,
            Rect=Array([72, 300, 272, 320]),
            FT=Name.Tx,
            T=String("student_name"),
            V=String("Ada"),
            Ff=2,
        ))
        pdf.pages[-1].obj.Annots = Array([link, widget])

    pdf.save(path)
    pdf.close()
    return path

