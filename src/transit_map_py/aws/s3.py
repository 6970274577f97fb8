import os

import boto3

from transit_map_py.config.feed_sources import S3Location
from transit_map_py.runtime_utils.process_logger import ProcessLogger


def get_s3_client() -> boto3.client:
    """Thin function needed for stubbing tests"""
    return boto3.client("s3")


def upload_file(
    file_name: str,
    location: S3Location,
    content_type: str = "application/json",
) -> bool:
    """
    Upload a local file to an S3 Bucket

    :param file_name: local file path to upload
    :param location: S3 location to upload to
    :param content_type: Content-Type the object is served with

    :return: True if file was uploaded, else False
    """
    upload_log = ProcessLogger(
        "s3_upload_file",
        file_name=file_name,
        object_path=location.s3_uri,
        content_type=content_type,
    )
    upload_log.log_start()

    try:
        if not os.path.exists(file_name):
            raise FileNotFoundError(f"{file_name} not found locally")

        s3_client = get_s3_client()

        with open(file_name, "rb") as f:
            s3_client.put_object(
                Bucket=location.bucket,
                Key=location.prefix,
                Body=f.read(),
                ContentType=content_type,
            )

        upload_log.log_complete()

        return True

    except Exception as exception:
        upload_log.log_failure(exception=exception)
        return False
