class TransitMapException(Exception):
    """
    Generic exception for the transit map data pipeline
    """


class MissingResource(TransitMapException):
    """
    A required GTFS table is not present in an operator's archive
    """

    def __init__(self, resource: str, archive: str = "archive"):
        message = f"{resource}.txt not found in {archive}"
        super().__init__(message)
        self.resource = resource


class InvalidArchive(TransitMapException):
    """
    Archive bytes could not be opened as a zip file
    """


class UnknownOperator(TransitMapException):
    """
    Requested operator has no configuration entry
    """

    def __init__(self, operator_id: str):
        message = f"Unknown operator: {operator_id}"
        super().__init__(message)
        self.operator_id = operator_id


class MalformedRow(TransitMapException):
    """
    Data row with missing or invalid required fields.

    Not raised by the pipeline, malformed rows are dropped during frame
    validation and only counted in the process logs.
    """


class UpstreamFetchFailure(TransitMapException):
    """
    Operator archive could not be obtained from its source
    """

    def __init__(self, url: str, reason: str):
        message = f"Failed to download {url}: {reason}"
        super().__init__(message)
        self.url = url
        self.reason = reason


class PipelineAborted(TransitMapException):
    """
    Raised after a run summary when a non-optional operator failed
    """
