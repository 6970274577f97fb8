from typing import Dict, List

import polars as pl

# only the columns the map build reads are typed, any other column found in
# a table is kept as a String

routes = {
    "route_id": pl.String,
    "route_short_name": pl.String,
    "route_long_name": pl.String,
    "route_color": pl.String,
    "route_text_color": pl.String,
}

stops = {
    "stop_id": pl.String,
    "stop_name": pl.String,
    "stop_lat": pl.Float64,
    "stop_lon": pl.Float64,
    "location_type": pl.Int64,
    "parent_station": pl.String,
    "wheelchair_boarding": pl.Int64,
}

shapes = {
    "shape_id": pl.String,
    "shape_pt_lat": pl.Float64,
    "shape_pt_lon": pl.Float64,
    "shape_pt_sequence": pl.Int64,
}

trips = {
    "route_id": pl.String,
    "trip_id": pl.String,
    "shape_id": pl.String,
}

stop_times = {
    "trip_id": pl.String,
    "stop_id": pl.String,
    "stop_sequence": pl.Int64,
}

_schemas: Dict[str, Dict[str, pl.DataType]] = {
    "routes": routes,
    "stops": stops,
    "shapes": shapes,
    "trips": trips,
    "stop_times": stop_times,
}

REQUIRED_TABLES: List[str] = ["routes", "stops", "trips", "stop_times"]
OPTIONAL_TABLES: List[str] = ["shapes"]


def gtfs_schema_list() -> List[str]:
    """
    :return list of gtfs tables read from an archive, required tables first
    """
    return REQUIRED_TABLES + OPTIONAL_TABLES


def gtfs_schema(gtfs_table: str) -> Dict[str, pl.DataType]:
    """
    :param gtfs_table: (ie. stop_times or stop_times.txt)

    :return expected columns and polars dtypes of gtfs_table
    """
    return _schemas[gtfs_table.replace(".txt", "")]
