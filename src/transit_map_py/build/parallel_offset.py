import dataframely as dy
import polars as pl

from transit_map_py.common.transit_schemas import RouteGeometry
from transit_map_py.runtime_utils.process_logger import ProcessLogger

# decimal places coordinates are rounded to when looking for shared track
GRID_PRECISION = 4

# spacing between neighbouring lines that share track
OFFSET_METERS = 10.0

# approximate meters per degree at the latitude of new york
METERS_PER_DEGREE_LON = 85_000.0
METERS_PER_DEGREE_LAT = 111_000.0


def offset_indices(geometries: pl.DataFrame) -> pl.DataFrame:
    """
    position of each route among the routes it shares track with

    coordinates are snapped to a grid and every route passing through a grid
    cell shares that cell. the overlap group of a geometry is every route
    sharing any of its cells (itself included), sorted by route id. a route
    at position idx of a group of size N gets offset idx - (N - 1) / 2, so
    the group is spread symmetrically around the original alignment. a route
    without company gets 0.

    a route with several geometries takes the group of its last geometry.

    :return dataframe:
        route_id -> String
        offset_index -> Float64
    """
    cells = (
        geometries.select("route_id", "coordinates")
        .with_row_index("geometry_index")
        .explode("coordinates")
        .filter(pl.col("coordinates").is_not_null())
        .select(
            "geometry_index",
            "route_id",
            pl.col("coordinates").list.get(0).round(GRID_PRECISION).alias("cell_lon"),
            pl.col("coordinates").list.get(1).round(GRID_PRECISION).alias("cell_lat"),
        )
        .unique()
    )

    cell_routes = cells.select(
        "cell_lon",
        "cell_lat",
        pl.col("route_id").alias("overlap_route_id"),
    ).unique()

    return (
        cells.join(cell_routes, on=["cell_lon", "cell_lat"], how="inner")
        .select("geometry_index", "route_id", "overlap_route_id")
        .unique()
        .with_columns((pl.col("overlap_route_id") < pl.col("route_id")).alias("sorts_before"))
        .group_by(["geometry_index", "route_id"])
        .agg(
            pl.len().alias("group_size"),
            pl.col("sorts_before").sum().alias("group_position"),
        )
        .sort("geometry_index")
        .unique(subset="route_id", keep="last", maintain_order=True)
        .select(
            "route_id",
            pl.when(pl.col("group_size") <= 1)
            .then(0.0)
            .otherwise(pl.col("group_position") - (pl.col("group_size") - 1) / 2)
            .cast(pl.Float64)
            .alias("offset_index"),
        )
    )


def apply_parallel_offsets(
    geometries: dy.DataFrame[RouteGeometry],
    offset_meters: float = OFFSET_METERS,
) -> dy.DataFrame[RouteGeometry]:
    """
    shift routes that share track sideways so that each one stays visible

    every point of a geometry is moved offset_index * offset_meters along the
    perpendicular of the local direction, taken from the previous point to the
    next point (the point itself at either end). points where that direction
    has no length are left in place, as are routes with an offset of 0.

    coordinate counts and geometry order are unchanged. with fewer than two
    geometries there is nothing to separate and the input is returned as is.
    """
    if geometries.height <= 1:
        return geometries

    logger = ProcessLogger("apply_parallel_offsets", geometry_count=geometries.height)
    logger.log_start()

    indices = offset_indices(geometries)
    logger.add_metadata(offset_routes=indices.filter(pl.col("offset_index") != 0.0).height)

    lon = pl.col("lon")
    lat = pl.col("lat")
    d_lon = pl.col("next_lon") - pl.col("prev_lon")
    d_lat = pl.col("next_lat") - pl.col("prev_lat")
    length = (d_lon.pow(2) + d_lat.pow(2)).sqrt()
    unmoved = (pl.col("offset_m") == 0.0) | (length == 0.0)

    offset_geometries = (
        geometries.with_row_index("geometry_index")
        .join(indices, on="route_id", how="left")
        .sort("geometry_index")
        .with_columns((pl.col("offset_index").fill_null(0.0) * offset_meters).alias("offset_m"))
        .explode("coordinates")
        .with_columns(
            pl.col("coordinates").list.get(0).alias("lon"),
            pl.col("coordinates").list.get(1).alias("lat"),
        )
        .with_columns(
            lon.shift(1).over("geometry_index").fill_null(lon).alias("prev_lon"),
            lat.shift(1).over("geometry_index").fill_null(lat).alias("prev_lat"),
            lon.shift(-1).over("geometry_index").fill_null(lon).alias("next_lon"),
            lat.shift(-1).over("geometry_index").fill_null(lat).alias("next_lat"),
        )
        .with_columns(
            pl.when(unmoved)
            .then(lon)
            .otherwise(lon + (-d_lat / length) * pl.col("offset_m") / METERS_PER_DEGREE_LON)
            .alias("offset_lon"),
            pl.when(unmoved)
            .then(lat)
            .otherwise(lat + (d_lon / length) * pl.col("offset_m") / METERS_PER_DEGREE_LAT)
            .alias("offset_lat"),
        )
        .group_by("geometry_index", maintain_order=True)
        .agg(
            pl.col("route_id").first(),
            pl.concat_list("offset_lon", "offset_lat").alias("coordinates"),
        )
        .select(RouteGeometry.column_names())
    )

    valid = RouteGeometry.validate(offset_geometries, cast=True)
    logger.log_complete()

    return valid
