from dataclasses import dataclass, field
from typing import Dict, Mapping, Optional

from transit_map_py.common.transit_types import TransitMode
from transit_map_py.runtime_utils.transit_exception import UnknownOperator

WHITE = "#FFFFFF"
BLACK = "#000000"


@dataclass(frozen=True)
class LineColor:
    """fill and text color for a line, as #RRGGBB"""

    color: str
    text_color: str = WHITE


@dataclass(frozen=True)
class OperatorConfig:
    """
    static description of a transit operator

    line_colors is keyed by route short name or long name. it takes
    precedence over the colors published in the operator's feed.
    """

    id: str
    name: str
    agency: str
    type: TransitMode
    color: str
    enabled: bool = False
    line_colors: Mapping[str, LineColor] = field(default_factory=dict)


def _colors(table: Dict[str, str], text_colors: Optional[Dict[str, str]] = None) -> Dict[str, LineColor]:
    """build a line color table, text defaults to white"""
    text_colors = text_colors or {}
    return {name: LineColor(color, text_colors.get(name, WHITE)) for name, color in table.items()}


SUBWAY_BLUE = "#0039A6"
SUBWAY_ORANGE = "#FF6319"
SUBWAY_YELLOW = "#FCCC0A"
SUBWAY_RED = "#EE352E"
SUBWAY_GREEN = "#00933C"
SUBWAY_SHUTTLE = "#808183"

subway = OperatorConfig(
    id="subway",
    name="NYC Subway",
    agency="MTA",
    type=TransitMode.SUBWAY,
    color=SUBWAY_BLUE,
    enabled=True,
    line_colors=_colors(
        {
            "A": SUBWAY_BLUE,
            "C": SUBWAY_BLUE,
            "E": SUBWAY_BLUE,
            "B": SUBWAY_ORANGE,
            "D": SUBWAY_ORANGE,
            "F": SUBWAY_ORANGE,
            "M": SUBWAY_ORANGE,
            "G": "#6CBE45",
            "L": "#A7A9AC",
            "J": "#996633",
            "Z": "#996633",
            "N": SUBWAY_YELLOW,
            "Q": SUBWAY_YELLOW,
            "R": SUBWAY_YELLOW,
            "W": SUBWAY_YELLOW,
            "1": SUBWAY_RED,
            "2": SUBWAY_RED,
            "3": SUBWAY_RED,
            "4": SUBWAY_GREEN,
            "5": SUBWAY_GREEN,
            "6": SUBWAY_GREEN,
            "7": "#B933AD",
            "S": SUBWAY_SHUTTLE,
            "SIR": SUBWAY_BLUE,
            "FS": SUBWAY_SHUTTLE,
            "GS": SUBWAY_SHUTTLE,
            "H": SUBWAY_SHUTTLE,
        },
        text_colors={"L": BLACK, "N": BLACK, "Q": BLACK, "R": BLACK, "W": BLACK},
    ),
)

lirr = OperatorConfig(
    id="lirr",
    name="Long Island Rail Road",
    agency="MTA",
    type=TransitMode.RAIL,
    color=SUBWAY_BLUE,
    line_colors=_colors(
        {
            "Babylon": "#00985F",
            "City Terminal Zone": "#4D5357",
            "Far Rockaway": "#6E3219",
            "Hempstead": "#CE8E00",
            "Long Beach": "#FF6319",
            "Montauk": "#00B2A9",
            "Oyster Bay": "#00AF3F",
            "Port Jefferson": "#006EC7",
            "Port Washington": "#C60C30",
            "Ronkonkoma": "#A626AA",
            "West Hempstead": "#00A1DE",
        },
        text_colors={"Hempstead": BLACK},
    ),
)

METRO_NORTH_NEW_HAVEN = "#EE0034"

metro_north = OperatorConfig(
    id="metro-north",
    name="Metro-North Railroad",
    agency="MTA",
    type=TransitMode.RAIL,
    color=SUBWAY_BLUE,
    line_colors=_colors(
        {
            "Hudson": "#009B3A",
            "Harlem": SUBWAY_BLUE,
            "New Haven": METRO_NORTH_NEW_HAVEN,
            "New Canaan": METRO_NORTH_NEW_HAVEN,
            "Danbury": METRO_NORTH_NEW_HAVEN,
            "Waterbury": METRO_NORTH_NEW_HAVEN,
            "Pascack Valley": "#8E258D",
            "Port Jervis": "#FF7900",
        }
    ),
)

PATH_NWK_WTC = "#D93A30"
PATH_HOB_WTC = "#009E58"
PATH_JSQ_33 = "#FDB827"
PATH_HOB_33 = "#2E3E93"

path = OperatorConfig(
    id="path",
    name="PATH",
    agency="Port Authority",
    type=TransitMode.SUBWAY,
    color="#E66B00",
    line_colors=_colors(
        {
            "Newark-World Trade Center": PATH_NWK_WTC,
            "Hoboken-World Trade Center": PATH_HOB_WTC,
            "Journal Square-33rd Street": PATH_JSQ_33,
            "Hoboken-33rd Street": PATH_HOB_33,
            "NWK": PATH_NWK_WTC,
            "WTC": PATH_NWK_WTC,
            "HOB": PATH_HOB_WTC,
            "JSQ": PATH_JSQ_33,
            "33S": PATH_HOB_33,
        },
        text_colors={"Journal Square-33rd Street": BLACK, "JSQ": BLACK},
    ),
)

nyc_ferry = OperatorConfig(
    id="nyc-ferry",
    name="NYC Ferry",
    agency="NYC Ferry",
    type=TransitMode.FERRY,
    color="#F7931E",
    line_colors=_colors(
        {
            "Astoria": "#0095DA",
            "East River": "#00B2A9",
            "Rockaway": "#F15A29",
            "South Brooklyn": "#FCCC0A",
            "Soundview": "#5C4084",
            "St. George": "#009B3A",
            "Governors Island": "#ED1C24",
        },
        text_colors={"South Brooklyn": BLACK},
    ),
)

staten_island_ferry = OperatorConfig(
    id="staten-island-ferry",
    name="Staten Island Ferry",
    agency="NYC DOT",
    type=TransitMode.FERRY,
    color="#FF6600",
)

NJT_NEC = "#D21034"
NJT_NJCL = "#FF6600"
NJT_RVL = "#0066CC"
NJT_MAIN_BERGEN = "#FFD700"
NJT_MOBO = "#00AA44"
NJT_MNE = "#7B2D8E"
NJT_PVL = "#8B4513"
NJT_ACL = "#00BFFF"

# long names are published both abbreviated and in full depending on the feed vintage
nj_transit_rail = OperatorConfig(
    id="nj-transit-rail",
    name="NJ Transit Rail",
    agency="NJ Transit",
    type=TransitMode.RAIL,
    color="#003366",
    line_colors=_colors(
        {
            "Northeast Corrdr": NJT_NEC,
            "Northeast Corridor": NJT_NEC,
            "No Jersey Coast": NJT_NJCL,
            "North Jersey Coast": NJT_NJCL,
            "Raritan Valley": NJT_RVL,
            "Main/Bergen": NJT_MAIN_BERGEN,
            "Main Line": NJT_MAIN_BERGEN,
            "Bergen County Line": NJT_MAIN_BERGEN,
            "Montclr-Boonton": NJT_MOBO,
            "Montclair-Boonton": NJT_MOBO,
            "Morris & Essex": NJT_MNE,
            "Morristown Line": NJT_MNE,
            "Gladstone Branch": NJT_MNE,
            "Pascack Valley": NJT_PVL,
            "Atlantic City": NJT_ACL,
            "Atlantic City Line": NJT_ACL,
            "NEC": NJT_NEC,
            "NJCL": NJT_NJCL,
            "RVL": NJT_RVL,
            "M&E": NJT_MNE,
            "MOBO": NJT_MOBO,
            "PVL": NJT_PVL,
            "ACL": NJT_ACL,
        },
        text_colors={
            "Main/Bergen": BLACK,
            "Main Line": BLACK,
            "Bergen County Line": BLACK,
        },
    ),
)

OPERATOR_CONFIGS: Dict[str, OperatorConfig] = {
    config.id: config
    for config in (
        subway,
        lirr,
        metro_north,
        path,
        nyc_ferry,
        nj_transit_rail,
        staten_island_ferry,
    )
}


def get_operator_config(
    operator_id: str,
    configs: Mapping[str, OperatorConfig] = OPERATOR_CONFIGS,
) -> OperatorConfig:
    """
    look up the configuration of an operator

    :raises UnknownOperator: operator_id has no configuration
    """
    try:
        return configs[operator_id]
    except KeyError as exception:
        raise UnknownOperator(operator_id) from exception
