import json
import os
from pathlib import Path
from typing import Any, Dict, List, Type, Union

import dataframely as dy
import polars as pl

from transit_map_py.common.transit_schemas import Route, RouteGeometry, Station
from transit_map_py.common.transit_types import TransitMode
from transit_map_py.config.feed_sources import OUTPUT_DIR, dataset_output_path
from transit_map_py.dataset.dataset import Dataset, Operator
from transit_map_py.runtime_utils.process_logger import ProcessLogger

# frame column -> artifact key, consumed by the map renderer
OPERATOR_KEYS = {
    "id": "id",
    "name": "name",
    "agency": "agency",
    "type": "type",
    "color": "color",
    "enabled": "enabled",
}

ROUTE_KEYS = {
    "id": "id",
    "system_id": "systemId",
    "short_name": "shortName",
    "long_name": "longName",
    "color": "color",
    "text_color": "textColor",
    "type": "type",
    "station_order": "stationOrder",
    "peak_headway_minutes": "peakHeadwayMinutes",
    "off_peak_headway_minutes": "offPeakHeadwayMinutes",
}

STATION_KEYS = {
    "id": "id",
    "system_id": "systemId",
    "name": "name",
    "latitude": "latitude",
    "longitude": "longitude",
    "route_ids": "routeIds",
    "is_transfer_point": "isTransferPoint",
    "accessibility": "accessibility",
}

ROUTE_GEOMETRY_KEYS = {
    "route_id": "routeId",
    "coordinates": "coordinates",
}


def frame_to_records(frame: pl.DataFrame, keys: Dict[str, str]) -> List[Dict[str, Any]]:
    """rows of a frame as artifact records, NULL values are left out of the record"""
    return [{keys[column]: value for column, value in row.items() if value is not None} for row in frame.to_dicts()]


def records_to_frame(records: List[Dict[str, Any]], keys: Dict[str, str], schema: Type[dy.Schema]) -> pl.DataFrame:
    """artifact records as a frame of schema, keys left out of a record become NULL"""
    if not records:
        return schema.create_empty()

    columns = {key: column for column, key in keys.items()}
    rows = [{columns[key]: value for key, value in record.items() if key in columns} for record in records]

    return pl.from_dicts(rows, schema=schema.polars_schema())


def dataset_to_json(dataset: Dataset) -> Dict[str, Any]:
    """
    artifact document of a dataset

    {"system": {...}, "routes": [...], "stations": [...], "routeGeometries": [...]}
    """
    operator = {
        OPERATOR_KEYS["id"]: dataset.operator.id,
        OPERATOR_KEYS["name"]: dataset.operator.name,
        OPERATOR_KEYS["agency"]: dataset.operator.agency,
        OPERATOR_KEYS["type"]: dataset.operator.type.value,
        OPERATOR_KEYS["color"]: dataset.operator.color,
        OPERATOR_KEYS["enabled"]: dataset.operator.enabled,
    }

    return {
        "system": operator,
        "routes": frame_to_records(dataset.routes, ROUTE_KEYS),
        "stations": frame_to_records(dataset.stations, STATION_KEYS),
        "routeGeometries": frame_to_records(dataset.route_geometries, ROUTE_GEOMETRY_KEYS),
    }


def dataset_from_json(document: Dict[str, Any]) -> Dataset:
    """dataset of an artifact document, frames are validated against their schemas"""
    system = document["system"]
    operator = Operator(
        id=system[OPERATOR_KEYS["id"]],
        name=system[OPERATOR_KEYS["name"]],
        agency=system[OPERATOR_KEYS["agency"]],
        type=TransitMode(system[OPERATOR_KEYS["type"]]),
        color=system[OPERATOR_KEYS["color"]],
        enabled=system[OPERATOR_KEYS["enabled"]],
    )

    return Dataset(
        operator=operator,
        routes=Route.validate(records_to_frame(document["routes"], ROUTE_KEYS, Route), cast=True),
        stations=Station.validate(records_to_frame(document["stations"], STATION_KEYS, Station), cast=True),
        route_geometries=RouteGeometry.validate(
            records_to_frame(document["routeGeometries"], ROUTE_GEOMETRY_KEYS, RouteGeometry),
            cast=True,
        ),
    )


def write_dataset(dataset: Dataset, output_dir: str = OUTPUT_DIR) -> Path:
    """
    write a dataset to {output_dir}/{operator_id}.json, creating output_dir if needed

    :return path of the written artifact
    """
    output_path = Path(dataset_output_path(dataset.operator.id, output_dir))
    logger = ProcessLogger(
        "write_dataset",
        operator_id=dataset.operator.id,
        output_path=str(output_path),
    )
    logger.log_start()

    try:
        os.makedirs(output_dir, exist_ok=True)
        with open(output_path, "w", encoding="utf-8") as f:
            json.dump(dataset_to_json(dataset), f, indent=2)
    except Exception as exception:
        logger.log_failure(exception)
        raise

    logger.add_metadata(
        route_count=dataset.routes.height,
        station_count=dataset.stations.height,
        geometry_count=dataset.route_geometries.height,
        file_size_kb=round(output_path.stat().st_size / 1024, 1),
    )
    logger.log_complete()

    return output_path


def read_dataset(path: Union[str, Path]) -> Dataset:
    """read a dataset artifact written by write_dataset"""
    with open(path, "r", encoding="utf-8") as f:
        return dataset_from_json(json.load(f))
