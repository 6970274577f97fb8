import polars as pl

from transit_map_py.build.trip_utils import representative_trips, trip_stop_sequences

from ..test_resources import STOP_TIMES_HEADER, TRIPS_HEADER, table


def test_trip_stop_sequences() -> None:
    """
    stops of each trip are ordered by stop_sequence, a missing sequence orders
    as 0 and equal sequences keep their file order
    """
    stop_times = table(
        "stop_times",
        STOP_TIMES_HEADER,
        [
            "T1,,,S3,3",
            "T1,,,S1,1",
            "T2,,,S9,",
            "T1,,,S2,2",
            "T2,,,S8,1",
            "T2,,,S7,",
            "T1,,,,4",
        ],
    )

    trip_stops = trip_stop_sequences(stop_times)

    t1 = trip_stops.filter(pl.col("trip_id") == "T1")
    assert t1.get_column("stop_id").to_list() == ["S1", "S2", "S3"]

    t2 = trip_stops.filter(pl.col("trip_id") == "T2")
    assert t2.get_column("stop_id").to_list() == ["S9", "S7", "S8"]
    assert t2.get_column("stop_sequence").to_list() == [0, 0, 1]


def test_representative_trips() -> None:
    """
    the trip with the most stop_times rows represents its route, ties go to
    the trip found first in trips
    """
    trips = table(
        "trips",
        TRIPS_HEADER,
        [
            "R2,wk,short,",
            "R1,wk,first_long,",
            "R1,wk,second_long,",
            "R1,wk,shorter,",
            "R2,wk,long,",
            "R3,wk,no_stops,",
        ],
    )
    stop_times = table(
        "stop_times",
        STOP_TIMES_HEADER,
        [
            "short,,,A,1",
            "first_long,,,A,1",
            "first_long,,,B,2",
            "second_long,,,A,1",
            "second_long,,,B,2",
            "shorter,,,A,1",
            "long,,,A,1",
            "long,,,B,2",
            "long,,,C,3",
        ],
    )

    representatives = representative_trips(trips, trip_stop_sequences(stop_times))

    assert representatives.select("route_id", "trip_id").rows() == [
        ("R2", "long"),
        ("R1", "first_long"),
        ("R3", "no_stops"),
    ]
    assert representatives.get_column("trip_rank").to_list() == [3, 2, 0]


def test_representative_trips_rank_by() -> None:
    """
    trips can be ranked by any aggregation of their stops
    """
    trips = table("trips", TRIPS_HEADER, ["R1,wk,loop,", "R1,wk,line,"])
    stop_times = table(
        "stop_times",
        STOP_TIMES_HEADER,
        [
            "loop,,,A,1",
            "loop,,,B,2",
            "loop,,,A,3",
            "loop,,,B,4",
            "line,,,A,1",
            "line,,,B,2",
            "line,,,C,3",
        ],
    )

    by_rows = representative_trips(trips, trip_stop_sequences(stop_times))
    by_stops = representative_trips(
        trips,
        trip_stop_sequences(stop_times),
        rank_by=pl.col("stop_id").n_unique(),
    )

    assert by_rows.get_column("trip_id").to_list() == ["loop"]
    assert by_stops.get_column("trip_id").to_list() == ["line"]
