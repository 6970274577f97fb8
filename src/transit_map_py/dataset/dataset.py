from dataclasses import dataclass

import dataframely as dy

from transit_map_py.common.transit_schemas import Route, RouteGeometry, Station
from transit_map_py.common.transit_types import TransitMode
from transit_map_py.config.operators import OperatorConfig


@dataclass(frozen=True)
class Operator:
    """operator summary written at the top of a dataset"""

    id: str
    name: str
    agency: str
    type: TransitMode
    color: str
    enabled: bool

    @classmethod
    def from_config(cls, config: OperatorConfig) -> "Operator":
        """operator summary of a configured operator"""
        return cls(
            id=config.id,
            name=config.name,
            agency=config.agency,
            type=config.type,
            color=config.color,
            enabled=config.enabled,
        )


@dataclass
class Dataset:
    """
    everything the map renders for one operator, rebuilt from scratch on every run
    """

    operator: Operator
    routes: dy.DataFrame[Route]
    stations: dy.DataFrame[Station]
    route_geometries: dy.DataFrame[RouteGeometry]
