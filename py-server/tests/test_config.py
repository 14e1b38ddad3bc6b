import pytest

from engine.config import EngineConfig, PageRange, SessionConfig, TextProcessorOptions
from extractors.element_extractor import engine_config_from_options
from models.pdf_types import ElementExtractionOptions


def test_defaults_are_valid():
    assert EngineConfig.default().validate()
    assert SessionConfig().validate()


def test_all_kinds_disabled_is_invalid():
    config = EngineConfig(
        enable_text_processor=False,
        enable_annotation_processor=False,
        enable_image_processor=False,
        enable_form_field_processor=False,
    )

    assert not config.validate()


def test_processor_options_from_dict():
    options = TextProcessorOptions.from_dict({'line_tolerance': 4.0, 'unknown': 1})

    assert options.line_tolerance == 4.0
    assert options.min_font_size == 8.0
    assert TextProcessorOptions.from_dict(None) == TextProcessorOptions()


def test_invalid_text_options():
    assert not TextProcessorOptions(line_tolerance=0).validate()
    assert not TextProcessorOptions(line_height_ratio=-1).validate()


def test_session_config_limits():
    assert not SessionConfig(render_stagger_seconds=-0.1).validate()
    assert not SessionConfig(max_sessions=0).validate()


def test_page_range_clamps_to_document():
    assert PageRange(start=2, end=9).to_page_numbers(4) == [2, 3, 4]
    assert PageRange.all_pages().to_page_numbers(3) == [1, 2, 3]
    assert PageRange(start=5).to_page_numbers(0) == []


def test_page_range_starting_past_the_end_is_empty():
    assert PageRange(start=5).to_page_numbers(3) == []
    assert PageRange(start=4, end=6).to_page_numbers(3) == []
    assert PageRange(start=3).to_page_numbers(3) == [3]


@pytest.mark.parametrize("start, end", [(0, None), (3, 2)])
def test_page_range_rejects_bad_bounds(start, end):
    with pytest.raises(ValueError):
        PageRange(start=start, end=end)


def test_api_options_map_onto_engine_config():
    config = engine_config_from_options(ElementExtractionOptions(extract_images=False, line_tolerance=3.0))

    assert config.enable_image_processor is False
    assert config.enable_text_processor is True
    assert config.text_processor_options['line_tolerance'] == 3.0
