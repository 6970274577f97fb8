import os
from typing import List, Optional

from transit_map_py.runtime_utils.process_logger import ProcessLogger


def validate_environment(
    required_variables: List[str],
    optional_variables: Optional[List[str]] = None,
) -> None:
    """
    ensure that the environment has all the variables its required to have
    before starting triggering main, making certain errors easier to debug.
    """
    process_logger = ProcessLogger("validate_env")
    process_logger.log_start()

    missing_required = [key for key in required_variables if os.environ.get(key, None) is None]

    if optional_variables:
        # log optional variables so a run can be reproduced from its logs
        for key in optional_variables:
            process_logger.add_metadata(**{key: os.environ.get(key, None)})

    if missing_required:
        exception = EnvironmentError(f"Missing required environment variables {missing_required}")
        process_logger.log_failure(exception)
        raise exception

    process_logger.log_complete()
