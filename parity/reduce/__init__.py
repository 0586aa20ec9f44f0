from .units import (
    UnitKind,
    RemovableUnit,
    UnitParser,
    UnitError,
    UnitParseError,
    UnitRemovalError,
    GRANULARITY_ORDER,
    DEFAULT_STATEMENT_DENYLIST,
)
from .minimizer import (
    Minimizer,
    MinimizationResult,
    MinimizationState,
    ReproductionPolicy,
    DEFAULT_MAX_PASSES,
)

__all__ = [
    'UnitKind',
    'RemovableUnit',
    'UnitParser',
    'UnitError',
    'UnitParseError',
    'UnitRemovalError',
    'GRANULARITY_ORDER',
    'DEFAULT_STATEMENT_DENYLIST',
    'Minimizer',
    'MinimizationResult',
    'MinimizationState',
    'ReproductionPolicy',
    'DEFAULT_MAX_PASSES',
]
