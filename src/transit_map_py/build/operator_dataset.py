from io import BytesIO
from typing import Mapping, Union

from transit_map_py.build.parallel_offset import apply_parallel_offsets
from transit_map_py.build.route_order import attach_station_order, station_orders
from transit_map_py.build.routes import build_routes
from transit_map_py.build.shapes import build_shape_geometries, build_stop_geometries
from transit_map_py.build.stations import build_stations, stop_route_map
from transit_map_py.build.trip_utils import trip_stop_sequences
from transit_map_py.config.operators import (
    OPERATOR_CONFIGS,
    OperatorConfig,
    get_operator_config,
)
from transit_map_py.dataset.dataset import Dataset, Operator
from transit_map_py.ingestion.archive_reader import read_gtfs_resources
from transit_map_py.ingestion.tabular import decode_resources
from transit_map_py.runtime_utils.process_logger import ProcessLogger


def build_operator_dataset(
    operator_id: str,
    archive: Union[bytes, BytesIO],
    configs: Mapping[str, OperatorConfig] = OPERATOR_CONFIGS,
) -> Dataset:
    """
    build the map dataset of one operator from its GTFS archive

    geometries come from shapes.txt when the feed has shape points, otherwise
    they are drawn between the stops of each route's representative trip.

    :param operator_id: configured operator (ie. subway)
    :param archive: GTFS zip archive of the operator
    :param configs: operator configurations to look operator_id up in

    :raises UnknownOperator: operator_id is not in configs
    :raises MissingResource: a required table is not in the archive
    :raises InvalidArchive: archive is not a zip file
    """
    operator = get_operator_config(operator_id, configs)

    logger = ProcessLogger("build_operator_dataset", operator_id=operator.id)
    logger.log_start()

    try:
        tables = decode_resources(read_gtfs_resources(archive, source=operator.id))

        routes = build_routes(tables.routes, operator)
        stations = build_stations(
            tables.stops,
            stop_route_map(tables.trips, tables.stop_times, operator.id),
            operator,
        )

        trip_stops = trip_stop_sequences(tables.stop_times)
        routes = attach_station_order(
            routes,
            station_orders(tables.trips, trip_stops, tables.stops, stations, operator.id),
        )

        if tables.has_shapes:
            assert tables.shapes is not None
            geometries = build_shape_geometries(tables.trips, tables.shapes, operator.id)
        else:
            logger.add_metadata(stop_geometry_fallback=True)
            geometries = build_stop_geometries(tables.trips, trip_stops, tables.stops, operator.id)

        geometries = apply_parallel_offsets(geometries)
    except Exception as exception:
        logger.log_failure(exception)
        raise

    logger.add_metadata(
        route_count=routes.height,
        station_count=stations.height,
        geometry_count=geometries.height,
    )
    logger.log_complete()

    return Dataset(
        operator=Operator.from_config(operator),
        routes=routes,
        stations=stations,
        route_geometries=geometries,
    )
