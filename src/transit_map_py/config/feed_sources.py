import os
from dataclasses import dataclass
from typing import List

# local directory constants
ARCHIVE_DIR: str = os.environ.get("TRANSIT_MAP_ARCHIVE_DIR", os.path.join("data", "raw", "gtfs"))
OUTPUT_DIR: str = os.environ.get("TRANSIT_MAP_OUTPUT_DIR", os.path.join("public", "data", "systems"))

# bucket constants, publishing is skipped when unset
S3_PUBLISH: str = os.environ.get("PUBLISH_BUCKET", "")

# prefix constants
TRANSIT_MAP = "transit_map"
SYSTEMS = os.path.join(TRANSIT_MAP, "systems")


@dataclass(frozen=True)
class FeedSource:
    """
    where an operator's GTFS archive is published

    a failure to obtain or process an optional feed skips the operator,
    a failure of any other feed aborts the run
    """

    operator_id: str
    url: str
    optional: bool = False

    def archive_path(self, archive_dir: str = ARCHIVE_DIR) -> str:
        """local path the downloaded archive is cached at"""
        return os.path.join(archive_dir, f"{self.operator_id}.zip")


@dataclass
class S3Location:
    """
    wrapper for a bucket name and prefix pair used to define an s3 location
    """

    bucket: str
    prefix: str

    @property
    def s3_uri(self) -> str:
        """generate the full s3 uri for the location"""
        return f"s3://{self.bucket}/{self.prefix}"


def dataset_output_path(operator_id: str, output_dir: str = OUTPUT_DIR) -> str:
    """local path of an operator's dataset artifact"""
    return os.path.join(output_dir, f"{operator_id}.json")


def dataset_publish_location(operator_id: str, bucket: str = S3_PUBLISH) -> S3Location:
    """s3 location an operator's dataset artifact is published to"""
    return S3Location(bucket=bucket, prefix=os.path.join(SYSTEMS, f"{operator_id}.json"))


MTA_DEVELOPER_DATA = "http://web.mta.info/developers/data"

FEED_SOURCES: List[FeedSource] = [
    FeedSource("subway", f"{MTA_DEVELOPER_DATA}/nyct/subway/google_transit.zip"),
    FeedSource("lirr", f"{MTA_DEVELOPER_DATA}/lirr/google_transit.zip"),
    FeedSource("metro-north", f"{MTA_DEVELOPER_DATA}/mnr/google_transit.zip"),
    FeedSource(
        "path",
        "https://github.com/transitland/gtfs-archives-not-hosted-elsewhere/raw/master/path-nj-us.zip",
    ),
    # connexionz feed is frequently unavailable
    FeedSource(
        "nyc-ferry",
        "http://nycferry.connexionz.net/rtt/public/utility/gtfs.aspx",
        optional=True,
    ),
    FeedSource("nj-transit-rail", "https://www.njtransit.com/rail_data.zip"),
    FeedSource(
        "staten-island-ferry",
        "https://data.cityofnewyork.us/api/views/b57i-ri22/files/data"
        "?accessType=DOWNLOAD&filename=Staten_Island_Ferry_GTFS.zip",
        optional=True,
    ),
]
