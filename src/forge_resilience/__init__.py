"""
Forge Resilience - retry and response-cache primitives for Dev Forge.

- forge_resilience.core: TTL cache, purge timer, errors, logging, settings
- forge_resilience.execution: retry engine, rate limiter, composed executor
"""

__version__ = "0.1.0"

from forge_resilience.core import *  # noqa
from forge_resilience.execution import *  # noqa
