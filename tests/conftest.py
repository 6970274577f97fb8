"""
this file contains fixtures that are intended to be used across multiple test
files
"""

from typing import Dict, Iterator

import pytest
from _pytest.monkeypatch import MonkeyPatch

from transit_map_py.config.operators import OPERATOR_CONFIGS, OperatorConfig

from .test_resources import SUBWAY_TABLES, gtfs_zip


@pytest.fixture(autouse=True, name="sigterm_patch")
def fixture_sigterm_patch(monkeypatch: MonkeyPatch) -> Iterator[None]:
    """
    a SIGTERM flag left in the environment by another process would make the
    pipeline skip every operator. make sure each test starts without it.
    """
    monkeypatch.delenv("GOT_SIGTERM", raising=False)

    yield


@pytest.fixture(name="subway")
def fixture_subway() -> OperatorConfig:
    """configuration of the subway operator"""
    return OPERATOR_CONFIGS["subway"]


@pytest.fixture(name="subway_tables")
def fixture_subway_tables() -> Dict[str, str]:
    """table texts of a small subway feed, copied so a test can change them"""
    return dict(SUBWAY_TABLES)


@pytest.fixture(name="subway_archive")
def fixture_subway_archive(subway_tables: Dict[str, str]) -> bytes:
    """small subway feed as a gtfs archive"""
    return gtfs_zip(subway_tables)
