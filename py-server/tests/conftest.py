import pytest

from models.pdf_types import RawAnnotation, RawFormField, RawImageOp
from tests.fakes import FakePageSource, build_sample_pdf, make_run


@pytest.fixture
def sample_page():
    """One page with a heading, body text, a link, a text field and an image"""
    return FakePageSource(
        page_number=1,
        runs=[
            make_run("HELLO WORLD", x=72, y=700, height=20, width=130),
            make_run("Body text here", x=72, y=600, height=10, width=70),
            make_run("   ", x=150, y=600, height=10, width=5),
        ],
        annotations=[
            RawAnnotation(rect=(72, 500, 172, 520), subtype="Link", url="https://example.com"),
            RawAnnotation(
                rect=(72, 300, 272, 320),
                subtype="Widget",
                field=RawFormField(field_type="Tx", field_name="student_name", field_value="Ada", required=True),
            ),
        ],
        image_ops=[RawImageOp(operator_index=12, name="/Im1")],
    )


@pytest.fixture
def sample_pdf(tmp_path):
    return str(build_sample_pdf(tmp_path / "sample.pdf"))


@pytest.fixture
def three_page_pdf(tmp_path):
    return str(build_sample_pdf(tmp_path / "three_pages.pdf", pages=3))
