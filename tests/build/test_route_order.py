from typing import Dict

import polars as pl

from transit_map_py.build.route_order import (
    attach_station_order,
    station_orders,
    stop_station_ids,
)
from transit_map_py.build.routes import build_routes
from transit_map_py.build.stations import build_stations, stop_route_map
from transit_map_py.build.trip_utils import trip_stop_sequences
from transit_map_py.config.operators import OperatorConfig
from transit_map_py.ingestion.tabular import GtfsTables, decode_resources

from ..test_resources import STOP_TIMES_HEADER, STOPS_HEADER, TRIPS_HEADER, csv_text


def subway_orders(tables: GtfsTables, subway: OperatorConfig) -> pl.DataFrame:
    """station orders of the routes of a decoded subway feed"""
    stations = build_stations(
        tables.stops,
        stop_route_map(tables.trips, tables.stop_times, subway.id),
        subway,
    )
    return station_orders(
        tables.trips,
        trip_stop_sequences(tables.stop_times),
        tables.stops,
        stations,
        subway.id,
    )


def test_stop_station_ids() -> None:
    """
    platforms resolve to their parent, other stops to themselves
    """
    tables = decode_resources(
        {
            "routes": "route_id\n",
            "trips": "route_id,trip_id\n",
            "stop_times": "trip_id,stop_id\n",
            "stops": csv_text(STOPS_HEADER, ["P,Parent,40.7,-74,1,,", "PN,Parent,40.7,-74,0,P,", "S,Stop,40.8,-74,,,"]),
        }
    )

    assert stop_station_ids(tables.stops, "path").sort("stop_id").rows() == [
        ("P", "path:P"),
        ("PN", "path:P"),
        ("S", "path:S"),
    ]


def test_station_orders(subway_tables: Dict[str, str], subway: OperatorConfig) -> None:
    """
    stations follow the longest trip of each route, resolved to their parent
    """
    orders = subway_orders(decode_resources(subway_tables), subway)

    assert orders.rows() == [
        ("subway:A", ["subway:P1", "subway:P2", "subway:S3"]),
        ("subway:X", ["subway:P1", "subway:P2"]),
        ("subway:Y", ["subway:S3"]),
    ]


def test_station_order_unique_and_known(subway_tables: Dict[str, str], subway: OperatorConfig) -> None:
    """
    a station visited twice keeps its first position, stops that are not
    stations are skipped
    """
    subway_tables["trips"] = csv_text(TRIPS_HEADER, ["L,wk,loop,"])
    subway_tables["stop_times"] = csv_text(
        STOP_TIMES_HEADER,
        [
            "loop,,,P1N,1",
            "loop,,,Z0,2",
            "loop,,,P2N,3",
            "loop,,,P1S,4",
            "loop,,,missing,5",
            "loop,,,S3,6",
        ],
    )

    orders = subway_orders(decode_resources(subway_tables), subway)

    assert orders.rows() == [("subway:L", ["subway:P1", "subway:P2", "subway:S3"])]
    for station_order in orders.get_column("station_order").to_list():
        assert len(station_order) == len(set(station_order))


def test_attach_station_order(subway_tables: Dict[str, str], subway: OperatorConfig) -> None:
    """
    routes without any station keep a NULL station order
    """
    subway_tables["routes"] = subway_tables["routes"] + "G,G,Crosstown Local,6CBE45,FFFFFF\n"
    tables = decode_resources(subway_tables)

    routes = attach_station_order(
        build_routes(tables.routes, subway),
        subway_orders(tables, subway),
    )

    assert routes.select("id", "station_order").rows() == [
        ("subway:A", ["subway:P1", "subway:P2", "subway:S3"]),
        ("subway:X", ["subway:P1", "subway:P2"]),
        ("subway:Y", ["subway:S3"]),
        ("subway:G", None),
    ]
