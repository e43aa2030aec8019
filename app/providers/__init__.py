"""External data provider interfaces."""

from .base import CircuitBreaker, CircuitBreakerOpen
from .compendium import CompendiumCatalog

__all__ = [
    "CircuitBreaker",
    "CircuitBreakerOpen",
    "CompendiumCatalog",
]
