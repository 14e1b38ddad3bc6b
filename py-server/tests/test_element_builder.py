import pytest

from engine.config import EngineConfig, PageRange
from engine.element_builder import ElementBuilder
from models.pdf_types import RawAnnotation, RawFormField
from tests.fakes import FakeEngine, FakePageSource, make_run


@pytest.fixture
def builder():
    builder = ElementBuilder.from_config(EngineConfig())
    yield builder
    builder.close()


def by_id(elements):
    return {element.id: element for element in elements}


def test_elements_are_ordered_by_kind(builder, sample_page):
    elements = builder.build_page_elements(sample_page, 1.0)

    assert [element.id for element in elements] == [
        "text-1-0-0",
        "text-1-1-0",
        "annotation-1-0",
        "annotation-1-1",
        "image-1-0",
        "form-1-1",
    ]


def test_text_geometry_and_classification(builder, sample_page):
    heading = by_id(builder.build_page_elements(sample_page, 1.0))["text-1-0-0"]

    assert heading.type == "text"
    assert heading.subtype == "heading"
    assert heading.content == "HELLO WORLD"
    assert (heading.x, heading.y, heading.width, heading.height) == pytest.approx((72, 92, 130, 20))
    assert heading.fontSize == pytest.approx(20)
    assert heading.fontFamily == "Helvetica"
    assert heading.metadata["lineIndex"] == 0
    assert heading.metadata["originalY"] == 700


def test_text_geometry_at_scale(builder, sample_page):
    heading = by_id(builder.build_page_elements(sample_page, 2.0))["text-1-0-0"]

    assert (heading.x, heading.y, heading.width, heading.height) == pytest.approx((144, 184, 260, 40))
    assert heading.fontSize == pytest.approx(40)
    assert heading.scale == 2.0
    # Classification uses unscaled glyph height
    assert heading.subtype == "heading"


def test_whitespace_runs_are_dropped_after_indexing(builder):
    page = FakePageSource(runs=[
        make_run("   ", x=72, y=600),
        make_run("visible", x=100, y=600),
        make_run("", x=150, y=600),
    ])

    elements = builder.build_page_elements(page, 1.0)

    assert [element.id for element in elements] == ["text-1-0-1"]
    assert all(element.content.strip() for element in elements)


def test_font_size_and_position_clamps(builder):
    page = FakePageSource(runs=[make_run("tiny footnote", x=-5, y=800, height=4, width=0.2)])

    element = builder.build_page_elements(page, 1.0)[0]

    assert element.x == 0
    assert element.y == 0
    assert element.width == 1
    assert element.height == 4
    assert element.fontSize == 8
    assert element.subtype == "paragraph"


def test_annotation_content_fallbacks_and_minimum_size(builder):
    page = FakePageSource(annotations=[
        RawAnnotation(rect=(10, 10, 12, 12), subtype="Text", contents="Remember this"),
        RawAnnotation(rect=(10, 10, 12, 12), subtype="Text", title="Reviewer"),
        RawAnnotation(rect=(10, 10, 12, 12), subtype="Highlight"),
        RawAnnotation(rect=(10, 10, 12, 12)),
    ])

    elements = builder.build_page_elements(page, 1.0)

    assert [element.content for element in elements] == [
        "Remember this",
        "Reviewer",
        "Highlight annotation",
        "Unknown annotation",
    ]
    assert all(element.width == 10 and element.height == 10 for element in elements)
    assert elements[0].metadata["hasContent"] is True
    assert elements[1].metadata["hasContent"] is False


def test_link_annotation_metadata(builder, sample_page):
    link = by_id(builder.build_page_elements(sample_page, 1.0))["annotation-1-0"]

    assert link.subtype == "Link"
    assert link.content == "Link annotation"
    assert (link.x, link.y, link.width, link.height) == pytest.approx((72, 272, 100, 20))
    assert link.metadata["url"] == "https://example.com"
    assert link.metadata["originalRect"] == [72, 500, 172, 520]


def test_widget_yields_annotation_and_form_field_with_shared_index(builder, sample_page):
    elements = by_id(builder.build_page_elements(sample_page, 1.0))

    assert "annotation-1-1" in elements
    form = elements["form-1-1"]
    assert form.type == "form-field"
    assert form.content == "student_name"
    assert (form.x, form.y, form.width, form.height) == pytest.approx((72, 472, 200, 20))
    assert form.metadata["fieldType"] == "Tx"
    assert form.metadata["fieldValue"] == "Ada"
    assert form.metadata["required"] is True
    assert form.metadata["readOnly"] is False


def test_form_field_without_name_and_minimum_size(builder):
    page = FakePageSource(annotations=[
        RawAnnotation(rect=(0, 0, 5, 5), subtype="Widget", field=RawFormField(field_type="Btn")),
    ])

    form = by_id(builder.build_page_elements(page, 1.0))["form-1-0"]

    assert form.content == "Btn field"
    assert (form.width, form.height) == (20, 15)


def test_images_use_stacked_placement(builder, sample_page):
    sample_page.image_ops = sample_page.image_ops * 2

    images = [element for element in builder.build_page_elements(sample_page, 1.5) if element.type == "image"]

    assert [image.id for image in images] == ["image-1-0", "image-1-1"]
    assert [image.content for image in images] == ["Image 1", "Image 2"]
    assert (images[1].x, images[1].y, images[1].width, images[1].height) == pytest.approx((75, 225, 150, 150))
    assert images[1].subtype == "embedded"
    assert images[1].metadata["imageIndex"] == 1


def test_failing_annotation_accessor_skips_only_annotation_kinds(builder, sample_page):
    sample_page.annotations = ValueError("Annotation 0 has no valid /Rect")

    elements = builder.build_page_elements(sample_page, 1.0)

    assert [element.id for element in elements] == ["text-1-0-0", "text-1-1-0", "image-1-0"]


def test_failing_text_accessor_keeps_other_kinds(builder, sample_page):
    sample_page.runs = RuntimeError("content stream is corrupt")

    kinds = {element.type for element in builder.build_page_elements(sample_page, 1.0)}

    assert kinds == {"annotation", "image", "form-field"}


def test_ids_are_unique_within_a_page(builder, sample_page):
    elements = builder.build_page_elements(sample_page, 1.0)

    assert len({element.id for element in elements}) == len(elements)


def test_disabled_kinds_are_not_built(sample_page):
    builder = ElementBuilder.from_config(EngineConfig(enable_image_processor=False, enable_annotation_processor=False))

    kinds = {element.type for element in builder.build_page_elements(sample_page, 1.0)}

    assert kinds == {"text", "form-field"}


def test_document_build_skips_unparseable_pages(builder):
    engine = FakeEngine(
        pages=[FakePageSource(page_number=n, runs=[make_run(f"page {n} text")]) for n in (1, 2, 3)],
        failing_pages={2},
    )

    pages = builder.build_document_elements(engine, 1.0)

    assert [len(page) for page in pages] == [1, 0, 1]
    assert pages[2][0].id == "text-3-0-0"


def test_document_build_respects_page_range(builder):
    engine = FakeEngine(pages=[FakePageSource(page_number=n, runs=[make_run("text")]) for n in (1, 2, 3)])

    pages = builder.build_document_elements(engine, 1.0, PageRange(start=2, end=3))

    assert [page[0].pageNumber for page in pages] == [2, 3]


def test_document_build_past_last_page_is_empty(builder):
    engine = FakeEngine(pages=[FakePageSource(page_number=n, runs=[make_run("text")]) for n in (1, 2, 3)])

    assert builder.build_document_elements(engine, 1.0, PageRange(start=5)) == []


def test_document_build_stops_when_told(builder, mocker):
    engine = FakeEngine(pages=[FakePageSource(page_number=n, runs=[make_run("text")]) for n in (1, 2, 3)])
    should_continue = mocker.Mock(side_effect=[True, False])

    pages = builder.build_document_elements(engine, 1.0, should_continue=should_continue)

    assert len(pages) == 1
    assert should_continue.call_count == 2
