from enum import Enum

# https://gtfs.org/documentation/schedule/reference/#stopstxt
# location_type
# 0 (or empty) - Stop or platform. A location where passengers board or disembark.
# 1 - Station. A physical structure or area that contains one or more platforms.
# wheelchair_boarding
# 1 - Some vehicles at this stop can be boarded by a rider in a wheelchair.


class TransitMode(str, Enum):
    """
    Transit modes an operator can be configured with
    """

    SUBWAY = "subway"
    RAIL = "rail"
    BUS = "bus"
    FERRY = "ferry"

    @property
    def collapses_platforms(self) -> bool:
        """subway and rail feeds model platforms as children of a station"""
        return self in (TransitMode.SUBWAY, TransitMode.RAIL)


class LocationType(Enum):
    """
    GTFS location_type values used when building stations
    """

    STOP = 0
    STATION = 1


WHEELCHAIR_ACCESSIBLE = 1
