import json
import os
from pathlib import Path
from typing import List
from unittest.mock import MagicMock, patch

import pytest

from transit_map_py.config.feed_sources import FEED_SOURCES, FeedSource
from transit_map_py.pipeline import (
    OperatorResult,
    parse_args,
    process_operator,
    run_pipeline,
    select_sources,
    start,
)
from transit_map_py.runtime_utils.transit_exception import (
    PipelineAborted,
    UnknownOperator,
)

FEED_URL = "https://example.com/gtfs.zip"


def cache_archives(archive_dir: Path, archives: dict) -> List[FeedSource]:
    """write archives where cached_archive finds them, return their sources"""
    sources = []
    for operator_id, (archive, optional) in archives.items():
        source = FeedSource(operator_id, FEED_URL, optional=optional)
        with open(source.archive_path(str(archive_dir)), "wb") as f:
            f.write(archive)
        sources.append(source)
    return sources


def test_parse_args_defaults() -> None:
    """
    without arguments every operator is built sequentially without publishing
    """
    args = parse_args([])

    assert args.operators == []
    assert not args.all_operators
    assert not args.refresh
    assert args.max_workers == 1


def test_parse_args() -> None:
    """
    operators, directories and flags are read from the command line
    """
    args = parse_args(
        [
            "subway",
            "path",
            "--output-dir",
            "out",
            "--archive-dir",
            "cache",
            "--refresh",
            "--max-workers",
            "3",
            "--publish-bucket",
            "bucket",
        ]
    )

    assert args.operators == ["subway", "path"]
    assert args.output_dir == "out"
    assert args.archive_dir == "cache"
    assert args.refresh
    assert args.max_workers == 3
    assert args.publish_bucket == "bucket"


def test_parse_args_workers() -> None:
    """
    at least one worker is required
    """
    with pytest.raises(SystemExit):
        parse_args(["--max-workers", "0"])


def test_select_sources() -> None:
    """
    sources are returned in the requested order, every source when none is
    requested, unknown operators are rejected
    """
    assert select_sources() == FEED_SOURCES
    assert [s.operator_id for s in select_sources(["path", "subway", "path"])] == ["path", "subway"]

    with pytest.raises(UnknownOperator) as error:
        select_sources(["subway", "monorail", "hyperloop"])
    assert error.value.operator_id == "monorail, hyperloop"


@pytest.mark.parametrize("max_workers", [1, 3])
def test_run_pipeline(subway_archive: bytes, tmp_path: Path, max_workers: int) -> None:
    """
    every operator is built and written, the summary totals their counts
    """
    output_dir = os.path.join(tmp_path, "systems")
    sources = cache_archives(tmp_path, {"subway": (subway_archive, False), "path": (subway_archive, False)})

    summary = run_pipeline(sources, output_dir=output_dir, archive_dir=str(tmp_path), max_workers=max_workers)

    assert [result.operator_id for result in summary.results] == ["subway", "path"]
    assert not summary.failures
    assert not summary.aborted
    assert summary.totals() == {"total_routes": 6, "total_stations": 6, "total_geometries": 4}
    for operator_id in ("subway", "path"):
        with open(os.path.join(output_dir, f"{operator_id}.json"), "r", encoding="utf-8") as f:
            assert json.load(f)["system"]["id"] == operator_id


def test_optional_failure_skipped(subway_archive: bytes, tmp_path: Path) -> None:
    """
    an optional operator that fails is reported and the run carries on
    """
    sources = cache_archives(
        tmp_path,
        {
            "nyc-ferry": (b"<html>maintenance</html>", True),
            "subway": (subway_archive, False),
        },
    )

    summary = run_pipeline(sources, output_dir=str(tmp_path / "out"), archive_dir=str(tmp_path))

    assert [result.operator_id for result in summary.results] == ["subway"]
    assert len(summary.failures) == 1
    failure = summary.failures[0]
    assert failure.operator_id == "nyc-ferry"
    assert failure.optional
    assert failure.error_type == "InvalidArchive"
    assert not summary.aborted


def test_required_failure_aborts(subway_archive: bytes, tmp_path: Path, caplog: pytest.LogCaptureFixture) -> None:
    """
    a required operator that fails aborts the run after the summary, the other
    operators are still written
    """
    sources = cache_archives(
        tmp_path,
        {
            "lirr": (b"not a zip", False),
            "subway": (subway_archive, False),
        },
    )
    output_dir = tmp_path / "out"

    with pytest.raises(PipelineAborted) as error:
        run_pipeline(sources, output_dir=str(output_dir), archive_dir=str(tmp_path))

    assert "lirr" in str(error.value)
    assert os.path.exists(output_dir / "subway.json")
    assert "process_name=run_summary" in caplog.text
    assert "unexpected_failures=['lirr']" in caplog.text


@patch("transit_map_py.pipeline.cached_archive")
def test_unconfigured_operator_not_fetched(fetch: MagicMock, tmp_path: Path) -> None:
    """
    a feed source without an operator configuration fails before its archive
    is downloaded
    """
    source = FeedSource("monorail", FEED_URL)

    with pytest.raises(UnknownOperator):
        process_operator(source, output_dir=str(tmp_path / "out"), archive_dir=str(tmp_path))

    fetch.assert_not_called()


def test_sigterm_skips_pending_operators(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    """
    once SIGTERM is received operators that have not started are skipped, the
    operator being built is finished
    """
    started = []

    def build(source: FeedSource, *_: object) -> OperatorResult:
        started.append(source.operator_id)
        monkeypatch.setenv("GOT_SIGTERM", "TRUE")
        return OperatorResult(source.operator_id, str(tmp_path), 1, 1, 1)

    sources = [FeedSource(operator_id, FEED_URL) for operator_id in ("subway", "lirr", "path")]

    with patch("transit_map_py.pipeline.process_operator", side_effect=build):
        summary = run_pipeline(sources, archive_dir=str(tmp_path), max_workers=1)

    assert started == ["subway"]
    assert [result.operator_id for result in summary.results] == ["subway"]
    assert summary.skipped == ["lirr", "path"]
    assert not summary.failures


@patch("transit_map_py.pipeline.upload_file")
def test_publish(upload: MagicMock, subway_archive: bytes, tmp_path: Path) -> None:
    """
    with a publish bucket each written dataset is uploaded
    """
    upload.return_value = True
    sources = cache_archives(tmp_path, {"subway": (subway_archive, False)})

    summary = run_pipeline(
        sources,
        output_dir=str(tmp_path / "out"),
        archive_dir=str(tmp_path),
        publish_bucket="transit-map-public",
    )

    assert summary.results[0].published
    file_name, location = upload.call_args.args
    assert file_name == str(tmp_path / "out" / "subway.json")
    assert location.s3_uri == "s3://transit-map-public/transit_map/systems/subway.json"


@patch("transit_map_py.pipeline.upload_file")
def test_no_publish_bucket(upload: MagicMock, subway_archive: bytes, tmp_path: Path) -> None:
    """
    without a publish bucket nothing is uploaded
    """
    sources = cache_archives(tmp_path, {"subway": (subway_archive, False)})

    summary = run_pipeline(sources, output_dir=str(tmp_path / "out"), archive_dir=str(tmp_path), publish_bucket="")

    assert not summary.results[0].published
    upload.assert_not_called()


@patch("transit_map_py.pipeline.signal.signal")
def test_start_unknown_operator(_: MagicMock, monkeypatch: pytest.MonkeyPatch, caplog: pytest.LogCaptureFixture) -> None:
    """
    unknown operators exit with status 1 and list the available operators
    """
    monkeypatch.setenv("SERVICE_NAME", "test")
    monkeypatch.setattr("sys.argv", ["transit_map", "monorail"])

    with pytest.raises(SystemExit) as error:
        start()

    assert error.value.code == 1
    assert "Unknown operator: monorail" in caplog.text
    assert "Available operators: subway, lirr" in caplog.text


@patch("transit_map_py.pipeline.signal.signal")
def test_start(_: MagicMock, subway_archive: bytes, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    """
    the command line builds the requested operators from cached archives
    """
    monkeypatch.setenv("SERVICE_NAME", "test")
    cache_archives(tmp_path, {"subway": (subway_archive, False)})
    output_dir = tmp_path / "out"
    monkeypatch.setattr(
        "sys.argv",
        ["transit_map", "subway", "--archive-dir", str(tmp_path), "--output-dir", str(output_dir)],
    )

    start()

    assert os.path.exists(output_dir / "subway.json")
