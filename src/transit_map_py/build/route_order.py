import dataframely as dy
import polars as pl

from transit_map_py.build.trip_utils import namespaced, representative_trips
from transit_map_py.common.transit_schemas import Route, Station
from transit_map_py.runtime_utils.process_logger import ProcessLogger


def stop_station_ids(stops: pl.DataFrame, operator_id: str) -> pl.DataFrame:
    """
    station each stop belongs to, its parent_station if it has one, else itself

    :return dataframe:
        stop_id -> String (raw gtfs stop_id)
        station_id -> String (namespaced)
    """
    return (
        stops.filter(pl.col("stop_id").is_not_null())
        .unique(subset="stop_id", keep="first")
        .select(
            "stop_id",
            pl.concat_str(
                pl.lit(f"{operator_id}:"),
                pl.coalesce("parent_station", "stop_id"),
            ).alias("station_id"),
        )
    )


def station_orders(
    trips: pl.DataFrame,
    trip_stops: pl.DataFrame,
    stops: pl.DataFrame,
    stations: dy.DataFrame[Station],
    operator_id: str,
) -> pl.DataFrame:
    """
    ordered stations along each route, following the route's representative trip

    stops of the trip are resolved to their station, stations that were not
    built are skipped and a station visited twice keeps its first position.

    :param trips: trips table
    :param trip_stops: stop_time rows per trip, as from trip_stop_sequences
    :param stops: stops table
    :param stations: stations built for the operator

    :return dataframe, routes without any resolvable station are absent:
        id -> String (namespaced route id)
        station_order -> List(String)
    """
    built_stations = stations.select(pl.col("id").alias("station_id"))

    return (
        representative_trips(trips, trip_stops)
        .with_row_index("route_order")
        .select("route_order", "route_id", "trip_id")
        .join(trip_stops.with_row_index("stop_order"), on="trip_id", how="inner")
        .join(stop_station_ids(stops, operator_id), on="stop_id", how="inner")
        .join(built_stations, on="station_id", how="semi")
        .sort(["route_order", "stop_order"])
        .unique(subset=["route_id", "station_id"], keep="first", maintain_order=True)
        .group_by("route_id", maintain_order=True)
        .agg(pl.col("station_id").alias("station_order"))
        .select(
            namespaced(operator_id, "route_id").alias("id"),
            "station_order",
        )
    )


def attach_station_order(
    routes: dy.DataFrame[Route],
    orders: pl.DataFrame,
) -> dy.DataFrame[Route]:
    """
    set station_order on routes, routes without an order keep a NULL station_order
    """
    logger = ProcessLogger("attach_station_order", route_count=routes.height)
    logger.log_start()

    ordered_routes = (
        routes.drop("station_order")
        .with_row_index("route_order")
        .join(orders, on="id", how="left")
        .sort("route_order")
        .select(Route.column_names())
    )

    logger.add_metadata(ordered_routes=ordered_routes.filter(pl.col("station_order").is_not_null()).height)
    valid = Route.validate(ordered_routes, cast=True)
    logger.log_complete()

    return valid
