"""Route feature module: route variants, controls, waves and name matching."""

from .models import Control, RouteVariant, RouteTable
from .catalog import RouteCatalog, RouteConfigError, build_route_table
from .matching import MATCH_STRATEGIES, find_candidates, select_control, split_suffix
from .service import RouteModel, wave_code

__all__ = [
    "Control",
    "RouteVariant",
    "RouteTable",
    "RouteCatalog",
    "RouteConfigError",
    "build_route_table",
    "MATCH_STRATEGIES",
    "find_candidates",
    "select_control",
    "split_suffix",
    "RouteModel",
    "wave_code",
]
