import pytest

from transit_map_py.common.transit_types import TransitMode
from transit_map_py.config.feed_sources import FEED_SOURCES, dataset_output_path
from transit_map_py.config.operators import (
    BLACK,
    OPERATOR_CONFIGS,
    WHITE,
    LineColor,
    get_operator_config,
)
from transit_map_py.runtime_utils.transit_exception import UnknownOperator


def test_get_operator_config() -> None:
    """
    configured operators are found by id, others raise UnknownOperator
    """
    assert get_operator_config("lirr").name == "Long Island Rail Road"

    with pytest.raises(UnknownOperator) as error:
        get_operator_config("monorail")
    assert error.value.operator_id == "monorail"

    with pytest.raises(UnknownOperator):
        get_operator_config("subway", configs={})


def test_only_subway_enabled() -> None:
    """
    the subway is the only operator shown by default
    """
    assert [config.id for config in OPERATOR_CONFIGS.values() if config.enabled] == ["subway"]


def test_line_color_text_defaults_to_white() -> None:
    """
    configured text colors default to white unless given
    """
    line_colors = OPERATOR_CONFIGS["path"].line_colors

    assert line_colors["JSQ"] == LineColor("#FDB827", BLACK)
    assert line_colors["Hoboken-33rd Street"] == LineColor("#2E3E93", WHITE)
    assert "PATH" not in line_colors


def test_feed_sources() -> None:
    """
    every feed source has an operator configuration, only ferries are optional
    """
    for source in FEED_SOURCES:
        config = get_operator_config(source.operator_id)
        assert source.optional == (config.type == TransitMode.FERRY)

    assert {source.operator_id for source in FEED_SOURCES} == set(OPERATOR_CONFIGS)
    assert dataset_output_path("path", "out") == "out/path.json"
