import dataframely as dy
import polars as pl

from transit_map_py.build.trip_utils import namespaced
from transit_map_py.common.transit_schemas import Route
from transit_map_py.config.operators import WHITE, OperatorConfig
from transit_map_py.runtime_utils.process_logger import ProcessLogger


def line_color_table(operator: OperatorConfig, name_column: str) -> pl.DataFrame:
    """
    configured line colors of an operator as a frame that can be joined on name_column

    :return dataframe:
        {name_column} -> String
        {name_column}_color -> String
        {name_column}_text_color -> String
    """
    return pl.DataFrame(
        {
            name_column: list(operator.line_colors.keys()),
            f"{name_column}_color": [line.color for line in operator.line_colors.values()],
            f"{name_column}_text_color": [line.text_color for line in operator.line_colors.values()],
        },
        schema={
            name_column: pl.String,
            f"{name_column}_color": pl.String,
            f"{name_column}_text_color": pl.String,
        },
    )


def build_routes(routes: pl.DataFrame, operator: OperatorConfig) -> dy.DataFrame[Route]:
    """
    canonical routes of an operator from its routes.txt table

    colors are resolved in three tiers:
        1. configured line color, matched on short name and then long name
        2. route_color / route_text_color published in the feed
        3. operator color with white text

    short name falls back to route_id, long name to an empty string. rows
    without a route_id are dropped, a route_id repeated in the table keeps
    its first row.

    :return dataframe in routes.txt order:
        id -> String
        system_id -> String
        short_name -> String
        long_name -> String
        color -> String
        text_color -> String
        type -> String
        station_order -> List(String), always NULL here
        peak_headway_minutes -> Float64, always NULL here
        off_peak_headway_minutes -> Float64, always NULL here
    """
    logger = ProcessLogger("build_routes", operator_id=operator.id, route_rows=routes.height)
    logger.log_start()

    canonical_routes = (
        routes.filter(pl.col("route_id").is_not_null())
        .unique(subset="route_id", keep="first", maintain_order=True)
        .with_row_index("route_order")
        .with_columns(
            pl.coalesce("route_short_name", "route_id").alias("short_name"),
            pl.col("route_long_name").fill_null("").alias("long_name"),
        )
        .join(line_color_table(operator, "short_name"), on="short_name", how="left")
        .join(line_color_table(operator, "long_name"), on="long_name", how="left")
        .sort("route_order")
        .with_columns(
            pl.coalesce(
                "short_name_color",
                "long_name_color",
                pl.concat_str(pl.lit("#"), pl.col("route_color")),
                pl.lit(operator.color),
            ).alias("color"),
            pl.coalesce(
                "short_name_text_color",
                "long_name_text_color",
                pl.concat_str(pl.lit("#"), pl.col("route_text_color")),
                pl.lit(WHITE),
            ).alias("text_color"),
            namespaced(operator.id, "route_id").alias("id"),
            pl.lit(operator.id).alias("system_id"),
            pl.lit(operator.type.value).alias("type"),
            pl.lit(None, dtype=pl.List(pl.String)).alias("station_order"),
            pl.lit(None, dtype=pl.Float64).alias("peak_headway_minutes"),
            pl.lit(None, dtype=pl.Float64).alias("off_peak_headway_minutes"),
        )
        .select(Route.column_names())
    )

    valid = logger.log_dataframely_filter_results(*Route.filter(canonical_routes, cast=True))
    logger.log_complete()

    return valid
