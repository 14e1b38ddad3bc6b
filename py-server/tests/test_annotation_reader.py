import pytest
from pikepdf import Array, Dictionary, Name, String

from processors.annotation_reader import read_annotation, to_python
from utils.pdf_transforms import IDENTITY_MATRIX, page_matrix


def test_rect_is_normalized():
    annot = Dictionary(Subtype=Name.Square, Rect=Array([172, 520, 72, 500]))

    assert read_annotation(annot, IDENTITY_MATRIX).rect == (72, 500, 172, 520)


def test_rect_is_moved_into_page_space():
    annot = Dictionary(Subtype=Name.Square, Rect=Array([110, 120, 210, 220]))

    raw = read_annotation(annot, page_matrix((100, 100, 712, 892), 0))

    assert raw.rect == pytest.approx((10, 20, 110, 120))


@pytest.mark.parametrize("annot", [
    Dictionary(Subtype=Name.Link),
    Dictionary(Subtype=Name.Link, Rect=Array([0, 0, 10])),
])
def test_missing_or_short_rect_is_rejected(annot):
    with pytest.raises(ValueError, match="Rect"):
        read_annotation(annot, IDENTITY_MATRIX, index=3)


def test_markup_contents_and_title():
    annot = Dictionary(
        Subtype=Name.Text,
        Rect=Array([0, 0, 20, 20]),
        Contents=String("Check this"),
        T=String("Reviewer"),
    )

    raw = read_annotation(annot, IDENTITY_MATRIX)

    assert raw.subtype == "Text"
    assert raw.contents == "Check this"
    assert raw.title == "Reviewer"
    assert raw.field is None


def test_empty_contents_are_absent():
    annot = Dictionary(Subtype=Name.Text, Rect=Array([0, 0, 20, 20]), Contents=String(""))

    assert read_annotation(annot, IDENTITY_MATRIX).contents is None


def test_uri_action():
    annot = Dictionary(
        Subtype=Name.Link,
        Rect=Array([0, 0, 20, 20]),
        A=Dictionary(S=Name.URI, URI=String("https://example.com/docs")),
    )

    raw = read_annotation(annot, IDENTITY_MATRIX)

    assert raw.url == "https://example.com/docs"
    assert raw.dest is None


def test_named_destination_and_goto_action():
    named = Dictionary(Subtype=Name.Link, Rect=Array([0, 0, 20, 20]), Dest=String("chapter-2"))
    goto = Dictionary(
        Subtype=Name.Link,
        Rect=Array([0, 0, 20, 20]),
        A=Dictionary(S=Name.GoTo, D=Array([0, Name.XYZ, 0, 700, 0])),
    )

    assert read_annotation(named, IDENTITY_MATRIX).dest == "chapter-2"
    assert read_annotation(goto, IDENTITY_MATRIX).dest == [0, "XYZ", 0, 700, 0]


def test_widget_field_descriptors():
    annot = Dictionary(
        Subtype=Name.Widget,
        Rect=Array([72, 300, 272, 320]),
        FT=Name.Tx,
        T=String("student_name"),
        V=String("Ada"),
        Ff=2,
    )

    raw = read_annotation(annot, IDENTITY_MATRIX)

    # /T names the field on widgets
    assert raw.title is None
    assert raw.field.field_type == "Tx"
    assert raw.field.field_name == "student_name"
    assert raw.field.field_value == "Ada"
    assert raw.field.required is True
    assert raw.field.read_only is False


def test_widget_inherits_from_parent_field():
    parent = Dictionary(FT=Name.Ch, T=String("group"), Ff=1, V=String("B"))
    annot = Dictionary(Subtype=Name.Widget, Rect=Array([0, 0, 50, 20]), T=String("choice"), Parent=parent)

    field = read_annotation(annot, IDENTITY_MATRIX).field

    assert field.field_type == "Ch"
    assert field.field_name == "group.choice"
    assert field.field_value == "B"
    assert field.read_only is True
    assert field.required is False


def test_widget_without_field_type_has_no_field():
    annot = Dictionary(Subtype=Name.Widget, Rect=Array([0, 0, 50, 20]))

    assert read_annotation(annot, IDENTITY_MATRIX).field is None


def test_to_python_conversions():
    assert to_python(Name.Off) == "Off"
    assert to_python(String("yes")) == "yes"
    assert to_python(Array([1, Name.Fit, String("a")])) == [1, "Fit", "a"]
    assert to_python(None) is None
    assert to_python(True) is True
