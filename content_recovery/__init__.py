"""
Content Recovery: structured records from unreliable model output
"""

import importlib.metadata
import logging

from .client import RetryingInvoker
from .config import RecoverySettings, get_settings
from .core import (
    GenerationAttempt,
    GenerationConfig,
    GenerationRequest,
    InvocationOutcome,
    Provenance,
    RecoveredRecord,
)
from .exceptions import (
    ConfigurationError,
    ContentRecoveryError,
    GenerationFailure,
    SchemaDefinitionError,
)
from .pipeline import ContentGenerator, RecoveryPipeline, recover
from .response import StructuralExtractor, normalize
from .response.coercer import SchemaCoercer
from .schemas import (
    RecordSchema,
    StrategyContext,
    available_schemas,
    get_schema,
    register_schema,
)
from .telemetry import InMemoryReporter, TelemetryContext

# Version handling
try:
    __version__ = importlib.metadata.version("content-recovery")
except importlib.metadata.PackageNotFoundError:
    __version__ = "development"

# Library logging stays silent unless the application configures handlers.
logging.getLogger(__name__).addHandler(logging.NullHandler())

# Public API
__all__ = [
    # Entry points
    "recover",
    "RecoveryPipeline",
    "ContentGenerator",
    "RetryingInvoker",
    # Components
    "StructuralExtractor",
    "SchemaCoercer",
    "normalize",
    # Schemas
    "RecordSchema",
    "StrategyContext",
    "available_schemas",
    "get_schema",
    "register_schema",
    # Configuration
    "RecoverySettings",
    "get_settings",
    # Data types
    "GenerationAttempt",
    "GenerationConfig",
    "GenerationRequest",
    "InvocationOutcome",
    "Provenance",
    "RecoveredRecord",
    # Exceptions
    "ContentRecoveryError",
    "GenerationFailure",
    "SchemaDefinitionError",
    "ConfigurationError",
    # Telemetry
    "TelemetryContext",
    "InMemoryReporter",
]
