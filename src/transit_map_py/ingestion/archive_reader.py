import posixpath
import zipfile
from dataclasses import dataclass, field
from io import BytesIO
from typing import Dict, Union

from transit_map_py.ingestion.gtfs_schema_map import (
    REQUIRED_TABLES,
    gtfs_schema_list,
)
from transit_map_py.runtime_utils.process_logger import ProcessLogger
from transit_map_py.runtime_utils.transit_exception import (
    InvalidArchive,
    MissingResource,
)


@dataclass
class GtfsArchive:
    """
    GTFS archive held in memory

    table files are matched on file name, so feeds that nest their tables in
    a folder inside of the zip are read the same as flat ones. members that
    are not text tables used by the map build are ignored.
    """

    source: str
    gtfs_bytes: BytesIO

    members: Dict[str, str] = field(init=False)

    def __post_init__(self) -> None:
        self.members = {}
        try:
            with zipfile.ZipFile(self.gtfs_bytes) as zf:
                file_list = [info.filename for info in zf.infolist() if not info.is_dir()]
        except zipfile.BadZipFile as exception:
            raise InvalidArchive(f"{self.source} is not a zip archive") from exception

        tables = gtfs_schema_list()
        for member in file_list:
            file_name = posixpath.basename(member)
            if not file_name.endswith(".txt"):
                continue
            table = file_name[: -len(".txt")]
            if table in tables and table not in self.members:
                self.members[table] = member

    def has_table(self, table: str) -> bool:
        """check if table (ie. shapes) is in the archive"""
        return table in self.members

    def table_text(self, table: str) -> str:
        """
        read a table from the archive as text

        undecodable bytes are replaced rather than failing the whole table,
        a byte order mark at the start of the file is dropped.

        :param table: (ie. stop_times)
        """
        if not self.has_table(table):
            raise MissingResource(table, self.source)

        with zipfile.ZipFile(self.gtfs_bytes) as zf:
            with zf.open(self.members[table]) as f_bytes:
                return f_bytes.read().decode("utf-8-sig", errors="replace")


def read_gtfs_resources(archive: Union[bytes, BytesIO], source: str = "archive") -> Dict[str, str]:
    """
    extract the text of every table used by the map build from a GTFS archive

    :param archive: raw archive bytes
    :param source: name of the archive used in logs and errors (ie. operator id)

    :return table name (routes, stops, shapes, trips, stop_times) -> table text,
        shapes is only present if the archive contains it

    :raises MissingResource: a required table is not in the archive
    :raises InvalidArchive: archive is not a zip file
    """
    logger = ProcessLogger("read_gtfs_resources", source=source)
    logger.log_start()

    if isinstance(archive, bytes):
        archive = BytesIO(archive)

    try:
        gtfs_archive = GtfsArchive(source, archive)

        missing = [table for table in REQUIRED_TABLES if not gtfs_archive.has_table(table)]
        if missing:
            raise MissingResource(missing[0], source)

        resources = {table: gtfs_archive.table_text(table) for table in gtfs_archive.members}
    except Exception as exception:
        logger.log_failure(exception)
        raise

    logger.add_metadata(
        tables=",".join(sorted(resources)),
        has_shapes=("shapes" in resources),
    )
    logger.log_complete()

    return resources
