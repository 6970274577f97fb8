from dataclasses import dataclass
from typing import Dict, Optional

import polars as pl

from transit_map_py.ingestion.gtfs_schema_map import gtfs_schema
from transit_map_py.runtime_utils.process_logger import ProcessLogger


@dataclass(frozen=True)
class GtfsTables:
    """decoded tables of one GTFS archive, shapes is None when the archive has no shapes.txt"""

    routes: pl.DataFrame
    stops: pl.DataFrame
    trips: pl.DataFrame
    stop_times: pl.DataFrame
    shapes: Optional[pl.DataFrame] = None

    @property
    def has_shapes(self) -> bool:
        """a shapes table exists and contains at least one point"""
        return self.shapes is not None and self.shapes.height > 0


def decode_table(text: str, gtfs_table: str) -> pl.DataFrame:
    """
    create frame from the text of a gtfs table

    every field is read as a String first so that a single malformed value
    can not fail the table. rows with more fields than the header are
    truncated and rows with fewer fields are padded with NULL values.

    dataframe will include all columns that are defined in gtfs_schema_map for
    gtfs_table, defined columns missing from the text are added with all NULL
    values. defined columns are cast to their schema dtype, values that can not
    be cast become NULL.

    :param text: contents of the table file, header row first
    :param gtfs_table: (ie. stop_times)

    :return gtfs_table as polars DataFrame
    """
    logger = ProcessLogger("decode_table", table=gtfs_table)
    logger.log_start()
    table_schema = gtfs_schema(gtfs_table)

    if text.strip():
        frame = pl.read_csv(
            text.encode("utf-8"),
            has_header=True,
            infer_schema_length=0,
            truncate_ragged_lines=True,
        )
        frame = frame.rename({column: column.strip() for column in frame.columns})
    else:
        logger.add_metadata(empty_table=True)
        frame = pl.DataFrame(schema={column: pl.String for column in table_schema})

    # update String values containing only spaces to NULL
    frame = frame.with_columns(pl.col(pl.String).str.strip_chars()).with_columns(
        pl.when(pl.col(pl.String).str.len_chars() == 0).then(None).otherwise(pl.col(pl.String)).name.keep()
    )

    expected_columns = set(table_schema.keys())
    columns_in_text = set(frame.columns)

    # log missing columns
    missing_columns = expected_columns.difference(columns_in_text)
    if missing_columns:
        logger.add_metadata(
            missing_columns_count=len(missing_columns),
            missing_columns=",".join(sorted(missing_columns)),
        )

    # log unexpected columns
    unexpected_columns = columns_in_text.difference(expected_columns)
    if unexpected_columns:
        logger.add_metadata(
            unexpected_columns_count=len(unexpected_columns),
            unexpected_columns=",".join(sorted(unexpected_columns)),
        )

    frame = frame.with_columns(
        [pl.lit(None).cast(table_schema[column]).alias(column) for column in missing_columns]
    ).with_columns(
        [pl.col(column).cast(dtype, strict=False) for column, dtype in table_schema.items()]
    )

    logger.add_metadata(row_count=frame.height)
    logger.log_complete()

    return frame


def decode_resources(resources: Dict[str, str]) -> GtfsTables:
    """
    decode every table extracted from a GTFS archive

    :param resources: table name -> table text, as returned by read_gtfs_resources
    """
    shapes = None
    if "shapes" in resources:
        shapes = decode_table(resources["shapes"], "shapes")

    return GtfsTables(
        routes=decode_table(resources["routes"], "routes"),
        stops=decode_table(resources["stops"], "stops"),
        trips=decode_table(resources["trips"], "trips"),
        stop_times=decode_table(resources["stop_times"], "stop_times"),
        shapes=shapes,
    )
