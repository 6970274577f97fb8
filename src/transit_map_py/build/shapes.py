from dataclasses import dataclass
from typing import Dict, List

import dataframely as dy
import polars as pl

from transit_map_py.build.trip_utils import namespaced, representative_trips
from transit_map_py.common.transit_schemas import RouteGeometry
from transit_map_py.runtime_utils.process_logger import ProcessLogger

# shapes whose western terminals are within this many degrees (on both axes)
# are variants of the same branch
CLUSTER_TOLERANCE_DEGREES = 0.015


@dataclass
class TerminalCluster:
    """
    shapes of a route that start from roughly the same western terminal

    the terminal is fixed by the first shape of the cluster, the
    representative is the shape with the most points (first one on ties)
    """

    west_lon: float
    west_lat: float
    shape_id: str
    point_count: int

    def contains(self, west_lon: float, west_lat: float) -> bool:
        """check if a western terminal is close enough to this cluster's terminal"""
        return (
            abs(self.west_lon - west_lon) < CLUSTER_TOLERANCE_DEGREES
            and abs(self.west_lat - west_lat) < CLUSTER_TOLERANCE_DEGREES
        )

    def offer(self, shape_id: str, point_count: int) -> None:
        """make shape_id the representative if it has more points"""
        if point_count > self.point_count:
            self.shape_id = shape_id
            self.point_count = point_count


def shape_points(shapes: pl.DataFrame) -> pl.DataFrame:
    """
    points of every shape ordered by shape_pt_sequence, with its western terminal

    points missing a coordinate or sequence are dropped. points with equal
    sequence keep their file order.

    :return dataframe:
        shape_id -> String
        lons -> List(Float64)
        lats -> List(Float64)
        west_lon -> Float64 (minimum longitude)
        west_lat -> Float64 (latitude of the first point at west_lon)
        east_lon -> Float64 (maximum longitude)
        point_count -> UInt32
    """
    return (
        shapes.filter(
            pl.col("shape_id").is_not_null(),
            pl.col("shape_pt_sequence").is_not_null(),
            pl.col("shape_pt_lat").is_finite(),
            pl.col("shape_pt_lon").is_finite(),
        )
        .sort(["shape_id", "shape_pt_sequence"], maintain_order=True)
        .group_by("shape_id", maintain_order=True)
        .agg(
            pl.col("shape_pt_lon").alias("lons"),
            pl.col("shape_pt_lat").alias("lats"),
            pl.col("shape_pt_lon").min().alias("west_lon"),
            pl.col("shape_pt_lat").get(pl.col("shape_pt_lon").arg_min()).alias("west_lat"),
            pl.col("shape_pt_lon").max().alias("east_lon"),
            pl.len().alias("point_count"),
        )
    )


def select_route_shapes(trips: pl.DataFrame, points: pl.DataFrame) -> pl.DataFrame:
    """
    pick the shapes drawn for each route

    a route's shapes are those referenced by its trips, considered in the
    order they are first referenced. they are clustered greedily on their
    western terminal and one shape is drawn per cluster, so branches keep
    their own line while short turns and variants of a branch collapse into
    the longest one.

    :param trips: trips table
    :param points: shape points, as from shape_points

    :return dataframe, routes in order of first appearance in trips:
        route_id -> String (raw gtfs route_id)
        shape_id -> String
    """
    candidates = (
        trips.filter(
            pl.col("route_id").is_not_null(),
            pl.col("shape_id").is_not_null(),
        )
        .select("route_id", "shape_id")
        .unique(maintain_order=True)
        .with_row_index("shape_order")
        .join(
            points.select("shape_id", "west_lon", "west_lat", "point_count"),
            on="shape_id",
            how="inner",
        )
        .sort("shape_order")
    )

    clusters_by_route: Dict[str, List[TerminalCluster]] = {}
    for shape in candidates.iter_rows(named=True):
        clusters = clusters_by_route.setdefault(shape["route_id"], [])
        for cluster in clusters:
            if cluster.contains(shape["west_lon"], shape["west_lat"]):
                cluster.offer(shape["shape_id"], shape["point_count"])
                break
        else:
            clusters.append(
                TerminalCluster(
                    west_lon=shape["west_lon"],
                    west_lat=shape["west_lat"],
                    shape_id=shape["shape_id"],
                    point_count=shape["point_count"],
                )
            )

    return pl.DataFrame(
        [
            (route_id, cluster.shape_id)
            for route_id, clusters in clusters_by_route.items()
            for cluster in clusters
        ],
        schema={"route_id": pl.String, "shape_id": pl.String},
        orient="row",
    )


def build_shape_geometries(
    trips: pl.DataFrame,
    shapes: pl.DataFrame,
    operator_id: str,
) -> dy.DataFrame[RouteGeometry]:
    """
    route geometries drawn from the shapes table

    :return dataframe, one row per selected shape:
        route_id -> String (namespaced)
        coordinates -> List(List(Float64)) of [lon, lat]
    """
    logger = ProcessLogger("build_shape_geometries", operator_id=operator_id, shape_rows=shapes.height)
    logger.log_start()

    points = shape_points(shapes)
    selected = select_route_shapes(trips, points)
    logger.add_metadata(shape_count=points.height, selected_shapes=selected.height)

    geometries = (
        selected.with_row_index("geometry_order")
        .join(points.select("shape_id", "lons", "lats"), on="shape_id", how="inner")
        .sort("geometry_order")
        .explode(["lons", "lats"])
        .group_by("geometry_order", maintain_order=True)
        .agg(
            pl.col("route_id").first(),
            pl.concat_list("lons", "lats").alias("coordinates"),
        )
        .select(
            namespaced(operator_id, "route_id").alias("route_id"),
            "coordinates",
        )
    )

    valid = logger.log_dataframely_filter_results(*RouteGeometry.filter(geometries, cast=True))
    logger.log_complete()

    return valid


def build_stop_geometries(
    trips: pl.DataFrame,
    trip_stops: pl.DataFrame,
    stops: pl.DataFrame,
    operator_id: str,
) -> dy.DataFrame[RouteGeometry]:
    """
    route geometries for feeds without shapes, a straight line between the
    stops of each route's representative trip

    trips with a single stop_time row are not drawn, stops without a finite
    location are skipped and a line needs at least two resolved stops.

    :param trips: trips table
    :param trip_stops: stop_time rows per trip, as from trip_stop_sequences
    :param stops: stops table

    :return dataframe, at most one row per route:
        route_id -> String (namespaced)
        coordinates -> List(List(Float64)) of [lon, lat]
    """
    logger = ProcessLogger("build_stop_geometries", operator_id=operator_id)
    logger.log_start()

    stop_locations = (
        stops.filter(
            pl.col("stop_id").is_not_null(),
            pl.col("stop_lat").is_finite(),
            pl.col("stop_lon").is_finite(),
        )
        .unique(subset="stop_id", keep="first")
        .select("stop_id", "stop_lon", "stop_lat")
    )

    geometries = (
        representative_trips(trips, trip_stops)
        .filter(pl.col("trip_rank") > 1)
        .with_row_index("geometry_order")
        .join(trip_stops.with_row_index("stop_order"), on="trip_id", how="inner")
        .join(stop_locations, on="stop_id", how="inner")
        .sort(["geometry_order", "stop_order"])
        .group_by("geometry_order", maintain_order=True)
        .agg(
            pl.col("route_id").first(),
            pl.concat_list("stop_lon", "stop_lat").alias("coordinates"),
        )
        .filter(pl.col("coordinates").list.len() > 1)
        .select(
            namespaced(operator_id, "route_id").alias("route_id"),
            "coordinates",
        )
    )

    valid = logger.log_dataframely_filter_results(*RouteGeometry.filter(geometries, cast=True))
    logger.log_complete()

    return valid
