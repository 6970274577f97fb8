import os
from io import BytesIO
from urllib import request
from urllib.error import URLError

from transit_map_py.config.feed_sources import ARCHIVE_DIR, FeedSource
from transit_map_py.runtime_utils.process_logger import ProcessLogger
from transit_map_py.runtime_utils.transit_exception import UpstreamFetchFailure


def fetch_archive(url: str) -> bytes:
    """
    download an archive with a single GET, redirects are followed by urllib

    :raises UpstreamFetchFailure: for any http or network error
    """
    logger = ProcessLogger("fetch_archive", url=url)
    logger.log_start()

    try:
        with request.urlopen(url) as response:
            status = response.status
            if status != 200:
                raise UpstreamFetchFailure(url, f"HTTP {status}")
            archive = response.read()
    except UpstreamFetchFailure as exception:
        logger.log_failure(exception)
        raise
    except (URLError, OSError, ValueError) as exception:
        failure = UpstreamFetchFailure(url, str(exception))
        logger.log_failure(failure)
        raise failure from exception

    logger.add_metadata(archive_bytes=len(archive))
    logger.log_complete()

    return archive


def cached_archive(
    source: FeedSource,
    archive_dir: str = ARCHIVE_DIR,
    refresh: bool = False,
) -> BytesIO:
    """
    Create buffer of an operator's archive, downloading it if no local copy exists

    :param source: feed to obtain
    :param archive_dir: folder downloaded archives are kept in
    :param refresh: download even if a local copy exists

    :return BytesIO buffer
    """
    archive_path = source.archive_path(archive_dir)
    logger = ProcessLogger(
        "cached_archive",
        operator_id=source.operator_id,
        archive_path=archive_path,
    )
    logger.log_start()

    if os.path.exists(archive_path) and not refresh:
        logger.add_metadata(cached=True)
        with open(archive_path, "rb") as f:
            archive = f.read()
    else:
        logger.add_metadata(cached=False)
        archive = fetch_archive(source.url)
        os.makedirs(archive_dir, exist_ok=True)
        with open(archive_path, "wb") as f:
            f.write(archive)

    logger.log_complete()

    return BytesIO(archive)
