#!/usr/bin/env python

import argparse
import logging
import os
import signal
import sys
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional, Sequence

from transit_map_py.aws.s3 import upload_file
from transit_map_py.build.operator_dataset import build_operator_dataset
from transit_map_py.config.feed_sources import (
    ARCHIVE_DIR,
    FEED_SOURCES,
    OUTPUT_DIR,
    S3_PUBLISH,
    FeedSource,
    dataset_publish_location,
)
from transit_map_py.config.operators import (
    OPERATOR_CONFIGS,
    OperatorConfig,
    get_operator_config,
)
from transit_map_py.dataset.io import write_dataset
from transit_map_py.ingestion.download import cached_archive
from transit_map_py.runtime_utils.env_validation import validate_environment
from transit_map_py.runtime_utils.process_logger import ProcessLogger
from transit_map_py.runtime_utils.shutdown import handle_sigterm, sigterm_received
from transit_map_py.runtime_utils.transit_exception import (
    PipelineAborted,
    UnknownOperator,
)

logging.getLogger().setLevel("INFO")

DESCRIPTION = """Build the transit map dataset of each configured operator from its GTFS feed"""


@dataclass
class OperatorResult:
    """dataset written for one operator"""

    operator_id: str
    output_path: str
    route_count: int
    station_count: int
    geometry_count: int
    published: bool = False


@dataclass
class OperatorFailure:
    """operator whose dataset could not be built, optional failures are expected"""

    operator_id: str
    error_type: str
    message: str
    optional: bool


@dataclass
class RunSummary:
    """outcome of every operator in a pipeline run"""

    results: List[OperatorResult] = field(default_factory=list)
    failures: List[OperatorFailure] = field(default_factory=list)
    skipped: List[str] = field(default_factory=list)

    @property
    def aborted(self) -> bool:
        """a non-optional operator failed"""
        return any(not failure.optional for failure in self.failures)

    def totals(self) -> Dict[str, int]:
        """route, station and geometry counts over every built operator"""
        return {
            "total_routes": sum(result.route_count for result in self.results),
            "total_stations": sum(result.station_count for result in self.results),
            "total_geometries": sum(result.geometry_count for result in self.results),
        }

    def log(self) -> None:
        """log one line per built operator, then the totals and failures of the run"""
        for result in self.results:
            operator_log = ProcessLogger(
                "operator_summary",
                operator_id=result.operator_id,
                route_count=result.route_count,
                station_count=result.station_count,
                geometry_count=result.geometry_count,
                output_path=result.output_path,
                published=result.published,
            )
            operator_log.log_start()
            operator_log.log_complete()

        summary_log = ProcessLogger(
            "run_summary",
            built_operators=len(self.results),
            failed_operators=len(self.failures),
            **self.totals(),
        )
        summary_log.log_start()
        if self.failures:
            summary_log.add_metadata(
                expected_failures=[f.operator_id for f in self.failures if f.optional],
                unexpected_failures=[f.operator_id for f in self.failures if not f.optional],
            )
            for failure in self.failures:
                logging.warning(
                    f"operator_id={failure.operator_id}, optional={failure.optional}, "
                    f"error_type={failure.error_type}, message={failure.message}"
                )
        if self.skipped:
            summary_log.add_metadata(skipped_operators=self.skipped)
        summary_log.log_complete()


def process_operator(
    source: FeedSource,
    output_dir: str = OUTPUT_DIR,
    archive_dir: str = ARCHIVE_DIR,
    refresh: bool = False,
    publish_bucket: str = S3_PUBLISH,
    configs: Mapping[str, OperatorConfig] = OPERATOR_CONFIGS,
) -> OperatorResult:
    """
    obtain the archive of one feed source, build its dataset, write it and
    publish it if a bucket is given

    failures of optional sources are logged as warnings, any other failure is
    logged as an error. in both cases the exception is raised to the caller.
    """
    logger = ProcessLogger(
        "process_operator",
        operator_id=source.operator_id,
        optional=source.optional,
    )
    logger.log_start()

    try:
        # unconfigured operators fail before their archive is fetched
        get_operator_config(source.operator_id, configs)
        archive = cached_archive(source, archive_dir, refresh)
        dataset = build_operator_dataset(source.operator_id, archive, configs)
        output_path = write_dataset(dataset, output_dir)

        published = False
        if publish_bucket:
            published = upload_file(
                str(output_path),
                dataset_publish_location(source.operator_id, publish_bucket),
            )
    except Exception as exception:
        if source.optional:
            logger.log_warning(exception)
        else:
            logger.log_failure(exception)
        raise

    result = OperatorResult(
        operator_id=source.operator_id,
        output_path=str(output_path),
        route_count=dataset.routes.height,
        station_count=dataset.stations.height,
        geometry_count=dataset.route_geometries.height,
        published=published,
    )
    logger.add_metadata(published=published)
    logger.log_complete()

    return result


def start_operator(source: FeedSource, *args: Any) -> Optional[OperatorResult]:
    """process_operator unless SIGTERM was received before the operator started"""
    if sigterm_received():
        return None
    return process_operator(source, *args)


def run_pipeline(
    sources: Sequence[FeedSource],
    output_dir: str = OUTPUT_DIR,
    archive_dir: str = ARCHIVE_DIR,
    refresh: bool = False,
    max_workers: int = 1,
    publish_bucket: str = S3_PUBLISH,
    configs: Mapping[str, OperatorConfig] = OPERATOR_CONFIGS,
) -> RunSummary:
    """
    build the datasets of every feed source

    operators are built independently of each other, up to max_workers at a
    time. a failed operator does not stop the others. once SIGTERM is received
    operators that have not started yet are skipped.

    :raises PipelineAborted: after the summary is logged, if a non-optional
        operator failed
    """
    summary = RunSummary()

    with ThreadPoolExecutor(max_workers=max_workers) as executor:
        futures = [
            (
                source,
                executor.submit(
                    start_operator,
                    source,
                    output_dir,
                    archive_dir,
                    refresh,
                    publish_bucket,
                    configs,
                ),
            )
            for source in sources
        ]

        for source, future in futures:
            if sigterm_received() and future.cancel():
                summary.skipped.append(source.operator_id)
                continue

            try:
                result = future.result()
            except Exception as exception:
                summary.failures.append(
                    OperatorFailure(
                        operator_id=source.operator_id,
                        error_type=type(exception).__name__,
                        message=str(exception),
                        optional=source.optional,
                    )
                )
                continue

            if result is None:
                summary.skipped.append(source.operator_id)
            else:
                summary.results.append(result)

    summary.log()

    if summary.aborted:
        failed = ", ".join(f.operator_id for f in summary.failures if not f.optional)
        raise PipelineAborted(f"Required operators failed: {failed}")

    return summary


def select_sources(
    operator_ids: Optional[Sequence[str]] = None,
    sources: Sequence[FeedSource] = tuple(FEED_SOURCES),
) -> List[FeedSource]:
    """
    feed sources of the requested operators in the order they were requested,
    every source when no operator is requested

    :raises UnknownOperator: an operator id has no feed source
    """
    if not operator_ids:
        return list(sources)

    by_id = {source.operator_id: source for source in sources}
    unknown = [operator_id for operator_id in operator_ids if operator_id not in by_id]
    if unknown:
        raise UnknownOperator(", ".join(unknown))

    return [by_id[operator_id] for operator_id in dict.fromkeys(operator_ids)]


def parse_args(args: List[str]) -> argparse.Namespace:
    """parse args for running this entrypoint script"""
    parser = argparse.ArgumentParser(description=DESCRIPTION)
    parser.add_argument(
        "operators",
        nargs="*",
        metavar="OPERATOR",
        help="operator ids to build, every operator when none are given",
    )
    parser.add_argument(
        "--all",
        action="store_true",
        dest="all_operators",
        help="build every operator, ignoring any operator ids given",
    )
    parser.add_argument(
        "--output-dir",
        default=OUTPUT_DIR,
        dest="output_dir",
        help="directory datasets are written to",
    )
    parser.add_argument(
        "--archive-dir",
        default=ARCHIVE_DIR,
        dest="archive_dir",
        help="directory downloaded GTFS archives are cached in",
    )
    parser.add_argument(
        "--refresh",
        action="store_true",
        dest="refresh",
        help="download archives even if a cached copy exists",
    )
    parser.add_argument(
        "--max-workers",
        default=1,
        type=int,
        dest="max_workers",
        help="number of operators built at the same time",
    )
    parser.add_argument(
        "--publish-bucket",
        default=S3_PUBLISH,
        dest="publish_bucket",
        help="s3 bucket datasets are uploaded to, no upload when empty",
    )

    parsed = parser.parse_args(args)
    if parsed.max_workers < 1:
        parser.error("--max-workers must be at least 1")

    return parsed


def main(args: argparse.Namespace) -> None:
    """build and write the datasets of the requested operators"""
    main_process_logger = ProcessLogger("main", **vars(args))
    main_process_logger.log_start()

    try:
        sources = select_sources(None if args.all_operators else args.operators)
        run_pipeline(
            sources,
            output_dir=args.output_dir,
            archive_dir=args.archive_dir,
            refresh=args.refresh,
            max_workers=args.max_workers,
            publish_bucket=args.publish_bucket,
        )
    except Exception as exception:
        main_process_logger.log_failure(exception)
        raise

    main_process_logger.log_complete()


def start() -> None:
    """configure and start the transit map build"""
    # parse arguments from the command line
    parsed_args = parse_args(sys.argv[1:])

    # setup handling shutdown commands
    signal.signal(signal.SIGTERM, handle_sigterm)

    # configure the environment
    os.environ["SERVICE_NAME"] = "transit_map"
    required_variables = ["SERVICE_NAME"]
    if parsed_args.publish_bucket:
        required_variables.append("AWS_DEFAULT_REGION")
    validate_environment(
        required_variables=required_variables,
        optional_variables=[
            "TRANSIT_MAP_ARCHIVE_DIR",
            "TRANSIT_MAP_OUTPUT_DIR",
            "PUBLISH_BUCKET",
        ],
    )

    # run main method
    try:
        main(parsed_args)
    except UnknownOperator as exception:
        available = ", ".join(source.operator_id for source in FEED_SOURCES)
        logging.error(f"{exception}. Available operators: {available}")
        sys.exit(1)
    except PipelineAborted:
        sys.exit(1)


if __name__ == "__main__":
    start()
