import dataframely as dy
import polars as pl

from transit_map_py.build.trip_utils import namespaced
from transit_map_py.common.transit_schemas import Station
from transit_map_py.common.transit_types import WHEELCHAIR_ACCESSIBLE, LocationType
from transit_map_py.config.operators import OperatorConfig
from transit_map_py.runtime_utils.process_logger import ProcessLogger

UNKNOWN_STATION_NAME = "Unknown Station"

EMPTY_ROUTE_IDS = pl.lit([], dtype=pl.List(pl.String))


def stop_route_map(trips: pl.DataFrame, stop_times: pl.DataFrame, operator_id: str) -> pl.DataFrame:
    """
    routes directly serving each stop, through trips and stop_times

    route ids are namespaced and listed in the order they are first found in
    stop_times. stop_times rows whose trip is not in trips are ignored.

    :return dataframe:
        stop_id -> String (raw gtfs stop_id)
        route_ids -> List(String)
    """
    trip_routes = (
        trips.filter(
            pl.col("trip_id").is_not_null(),
            pl.col("route_id").is_not_null(),
        )
        .unique(subset="trip_id", keep="first")
        .select(
            "trip_id",
            namespaced(operator_id, "route_id").alias("route_id"),
        )
    )

    return (
        stop_times.filter(
            pl.col("trip_id").is_not_null(),
            pl.col("stop_id").is_not_null(),
        )
        .select("trip_id", "stop_id")
        .with_row_index("stop_time_order")
        .join(trip_routes, on="trip_id", how="inner")
        .sort("stop_time_order")
        .group_by("stop_id", maintain_order=True)
        .agg(pl.col("route_id").unique(maintain_order=True).alias("route_ids"))
    )


def build_stations(
    stops: pl.DataFrame,
    stop_routes: pl.DataFrame,
    operator: OperatorConfig,
) -> dy.DataFrame[Station]:
    """
    stations of an operator from its stops.txt table

    for subway and rail operators only parent stations (location_type 1) and
    stops without a parent_station become stations, platforms are folded into
    their parent. other modes keep every stop. stops without a usable location
    (missing, non finite or a latitude of exactly 0) are dropped.

    a parent station is served by its own routes followed by the routes of its
    child platforms, in stops.txt order and without duplicates.

    :param stops: stops table
    :param stop_routes: routes serving each stop, as from stop_route_map

    :return dataframe in stops.txt order:
        id -> String
        system_id -> String
        name -> String
        latitude -> Float64
        longitude -> Float64
        route_ids -> List(String)
        is_transfer_point -> Bool
        accessibility -> Struct(ada: Bool, elevator: Bool)
    """
    logger = ProcessLogger("build_stations", operator_id=operator.id, stop_rows=stops.height)
    logger.log_start()

    stops = (
        stops.filter(pl.col("stop_id").is_not_null())
        .unique(subset="stop_id", keep="first", maintain_order=True)
        .with_row_index("stop_order")
    )
    is_station = (pl.col("location_type") == LocationType.STATION.value).fill_null(False)

    # routes of the child platforms, rolled up onto their parent
    child_routes = (
        stops.filter(pl.col("parent_station").is_not_null())
        .select("stop_order", "stop_id", "parent_station")
        .join(stop_routes, on="stop_id", how="inner")
        .sort("stop_order")
        .explode("route_ids")
        .group_by("parent_station", maintain_order=True)
        .agg(pl.col("route_ids").alias("child_route_ids"))
        .rename({"parent_station": "stop_id"})
    )

    candidates = stops
    if operator.type.collapses_platforms:
        candidates = candidates.filter(is_station | pl.col("parent_station").is_null())
        logger.add_metadata(platforms_folded=stops.height - candidates.height)

    located = candidates.filter(
        pl.col("stop_lat").is_not_null(),
        pl.col("stop_lon").is_not_null(),
        pl.col("stop_lat").is_finite(),
        pl.col("stop_lon").is_finite(),
        pl.col("stop_lat") != 0.0,
    )
    logger.add_metadata(unlocated_stops=candidates.height - located.height)

    stations = (
        located.join(stop_routes, on="stop_id", how="left")
        .join(child_routes, on="stop_id", how="left")
        .sort("stop_order")
        .with_columns(
            pl.concat_list(
                pl.col("route_ids").fill_null(EMPTY_ROUTE_IDS),
                pl.when(is_station & pl.col("child_route_ids").is_not_null())
                .then(pl.col("child_route_ids"))
                .otherwise(EMPTY_ROUTE_IDS),
            )
            .list.unique(maintain_order=True)
            .alias("route_ids"),
        )
        .with_columns(
            namespaced(operator.id, "stop_id").alias("id"),
            pl.lit(operator.id).alias("system_id"),
            pl.col("stop_name").fill_null(UNKNOWN_STATION_NAME).alias("name"),
            pl.col("stop_lat").alias("latitude"),
            pl.col("stop_lon").alias("longitude"),
            (pl.col("route_ids").list.len() > 1).alias("is_transfer_point"),
            pl.when(pl.col("wheelchair_boarding") == WHEELCHAIR_ACCESSIBLE)
            .then(pl.struct(ada=pl.lit(True), elevator=pl.lit(True)))
            .otherwise(None)
            .alias("accessibility"),
        )
        .select(Station.column_names())
    )

    valid = logger.log_dataframely_filter_results(*Station.filter(stations, cast=True))
    logger.log_complete()

    return valid
