import polars as pl


def namespaced(operator_id: str, column: str) -> pl.Expr:
    """{operator_id}:{column} for a raw gtfs identifier column, NULL when the identifier is NULL"""
    return pl.concat_str(pl.lit(f"{operator_id}:"), pl.col(column))


def trip_stop_sequences(stop_times: pl.DataFrame) -> pl.DataFrame:
    """
    order the stop_time rows of every trip by stop_sequence

    rows without a stop_sequence are ordered as if it were 0, rows with equal
    stop_sequence keep their file order. rows missing a trip_id or stop_id are
    dropped.

    :return dataframe:
        trip_id -> String
        stop_id -> String
        stop_sequence -> Int64
    """
    return (
        stop_times.filter(
            pl.col("trip_id").is_not_null(),
            pl.col("stop_id").is_not_null(),
        )
        .select(
            "trip_id",
            "stop_id",
            pl.col("stop_sequence").fill_null(0),
        )
        .sort(["trip_id", "stop_sequence"], maintain_order=True)
    )


def representative_trips(
    trips: pl.DataFrame,
    trip_stops: pl.DataFrame,
    rank_by: pl.Expr = pl.len(),
) -> pl.DataFrame:
    """
    pick one trip per route to stand in for the whole route

    each trip is ranked by rank_by, aggregated over the trip's rows in
    trip_stops (by default the number of stop_time rows). the highest ranked
    trip of a route wins, ties go to the trip found first in trips.txt. this
    is a "good enough" choice, not a guarantee of the longest alignment.

    :param trips: trips table (route_id, trip_id)
    :param trip_stops: stop_time rows per trip, as from trip_stop_sequences
    :param rank_by: aggregation expression evaluated per trip

    :return dataframe, one row per route in order of first appearance in trips:
        route_id -> String
        trip_id -> String
        trip_rank -> rank_by dtype (trips without stop_times rank 0)
    """
    trip_rank = trip_stops.group_by("trip_id").agg(rank_by.alias("trip_rank"))

    return (
        trips.filter(
            pl.col("route_id").is_not_null(),
            pl.col("trip_id").is_not_null(),
        )
        .select("route_id", "trip_id")
        .with_row_index("trip_order")
        .with_columns(pl.col("trip_order").min().over("route_id").alias("route_order"))
        .join(trip_rank, on="trip_id", how="left")
        .with_columns(pl.col("trip_rank").fill_null(0))
        .sort(["trip_rank", "trip_order"], descending=[True, False])
        .unique(subset="route_id", keep="first")
        .sort("route_order")
        .select("route_id", "trip_id", "trip_rank")
    )
