import pytest

from engine.config import EngineConfig
from engine.element_builder import ElementBuilder
from engine.page_source import PageSource
from engine.pdf_engine import PDFEngine
from utils.errors import ParseFailure
from utils.validation import PdfValidationError

PNG_SIGNATURE = b'\x89PNG\r\n\x1a\n'


@pytest.fixture
def engine(sample_pdf):
    with PDFEngine(sample_pdf) as engine:
        yield engine


def test_page_count(engine):
    assert engine.get_page_count() == 1
    assert "1 pages" in repr(engine)


def test_page_source_satisfies_protocol(engine):
    assert isinstance(engine.get_page(1), PageSource)


def test_text_runs_in_stream_order(engine):
    runs = engine.get_page(1).get_text_runs()

    assert [run.text for run in runs] == ["HELLO WORLD", "Body text here"]
    heading = runs[0]
    assert heading.baseline_x == pytest.approx(72)
    assert heading.baseline_y == pytest.approx(700)
    assert heading.height == pytest.approx(20)
    assert heading.width > 100
    assert heading.font_name == "Helvetica"
    assert all(run.end_of_line for run in runs)


def test_viewport_matches_mediabox(engine):
    viewport = engine.get_page(1).get_viewport(1.5)

    assert (viewport.width, viewport.height) == pytest.approx((918, 1188))
    assert viewport.page_height == pytest.approx(792)


def test_annotations_and_image_ops(engine):
    page = engine.get_page(1)

    link, widget = page.get_annotations()
    assert link.subtype == "Link"
    assert link.url == "https://example.com"
    assert widget.field.field_name == "student_name"

    [image] = page.get_image_ops()
    assert image.operator_index == 12
    assert image.name == "/Im1"


def test_end_to_end_elements(engine):
    builder = ElementBuilder.from_config(EngineConfig())

    [elements] = builder.build_document_elements(engine, 1.0)

    by_id = {element.id: element for element in elements}
    assert list(by_id) == ["text-1-0-0", "text-1-1-0", "annotation-1-0", "annotation-1-1", "image-1-0", "form-1-1"]
    assert by_id["text-1-0-0"].y == pytest.approx(92)
    assert by_id["text-1-0-0"].subtype == "heading"
    assert by_id["text-1-1-0"].subtype == "paragraph"
    assert by_id["annotation-1-0"].metadata["url"] == "https://example.com"
    assert by_id["form-1-1"].metadata["required"] is True
    assert by_id["image-1-0"].metadata["operatorIndex"] == 12


def test_page_sources_are_cached(engine):
    assert engine.get_page(1) is engine.get_page(1)


def test_caching_can_be_disabled(sample_pdf):
    with PDFEngine(sample_pdf, EngineConfig(enable_caching=False)) as engine:
        assert engine.get_page(1) is not engine.get_page(1)


@pytest.mark.parametrize("page_number", [0, 2])
def test_out_of_range_page_is_a_parse_failure(engine, page_number):
    with pytest.raises(ParseFailure) as excinfo:
        engine.get_page(page_number)
    assert excinfo.value.page_number == page_number


def test_render_page_returns_png(engine):
    png = engine.render_page(1, 1.0)

    assert png.startswith(PNG_SIGNATURE)


def test_render_rejects_bad_scale(engine):
    with pytest.raises(ValueError):
        engine.render_page(1, 0)


def test_closed_engine_refuses_work(sample_pdf):
    engine = PDFEngine(sample_pdf).open()
    engine.close()
    engine.close()

    with pytest.raises(RuntimeError):
        engine.get_page_count()


def test_missing_file(tmp_path):
    with pytest.raises(FileNotFoundError):
        PDFEngine(str(tmp_path / "nope.pdf"))


def test_non_pdf_is_rejected_on_open(tmp_path):
    path = tmp_path / "notes.pdf"
    path.write_bytes(b"just some text, not a document")

    with pytest.raises(PdfValidationError):
        PDFEngine(str(path)).open()
