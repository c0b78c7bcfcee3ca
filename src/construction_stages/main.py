"""
Configuration and Types for the Construction Stages service
"""

import os
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Optional, Union

# Values a decoded request body can carry for a single field
Value = Union[str, int, float, bool, None]
Record = Dict[str, Any]


class StageStatus(Enum):
    """Construction stage lifecycle status"""
    NEW = "NEW"
    PLANNED = "PLANNED"
    DELETED = "DELETED"


class DurationUnit(Enum):
    """Unit the stage duration is expressed in"""
    HOURS = "HOURS"
    DAYS = "DAYS"
    WEEKS = "WEEKS"


# ISO 8601 layout accepted for stage dates
DATE_FORMAT = "%Y-%m-%dT%H:%M:%SZ"


@dataclass
class AppConfig:
    """Configuration for the HTTP service and its storage"""
    database_path: str = field(
        default_factory=lambda: os.getenv("CONSTRUCTION_STAGES_DB", "construction_stages.db")
    )
    host: str = field(
        default_factory=lambda: os.getenv("HOST", "0.0.0.0")
    )
    port: int = field(
        default_factory=lambda: int(os.getenv("PORT", "8080"))
    )
    log_level: str = field(
        default_factory=lambda: os.getenv("LOG_LEVEL", "INFO")
    )
    log_file: Optional[str] = field(
        default_factory=lambda: os.getenv("LOG_FILE")
    )
