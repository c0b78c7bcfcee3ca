"""
Construction Stages

REST backend for construction stages, with a small rule-chain validation
library used to check request payloads before they are stored.
"""

__version__ = "1.0.0"

# Validation library
from .validation import (
    FieldError,
    RuleConfigurationError,
    RuleDescriptor,
    RuleRegistry,
    RuleValidator,
)

# Service layer
from .main import AppConfig, DurationUnit, StageStatus
from .repository import ConstructionStageRepository
from .service import (
    STAGE_RULES,
    ConstructionStagesService,
    StageNotFoundError,
    StageValidationError,
)

__all__ = [
    # Validation
    "RuleValidator",
    "RuleDescriptor",
    "RuleRegistry",
    "RuleConfigurationError",
    "FieldError",
    # Service
    "ConstructionStagesService",
    "ConstructionStageRepository",
    "STAGE_RULES",
    "StageNotFoundError",
    "StageValidationError",
    # Types
    "AppConfig",
    "DurationUnit",
    "StageStatus",
    # Meta
    "__version__",
]
