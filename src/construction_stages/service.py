"""
Construction Stages Service

Business operations on construction stages: validates payloads against
the stage rule table, derives the duration and talks to the repository.
"""

import logging
from typing import Any, Dict, List, Mapping, Optional

from .main import DurationUnit, Record
from .repository import ConstructionStageRepository
from .validation import RuleValidator
from .validation.rules import parse_timestamp

logger = logging.getLogger(__name__)

STAGE_RULES: Dict[str, str] = {
    "name": "required|string|max:255",
    "startDate": "required|dateFormat",
    "endDate": "dateFormat|after:startDate|nullable",
    "duration": "skip",
    "durationUnit": "in:HOURS,DAYS,WEEKS|nullable",
    "color": "hexColor|nullable",
    "externalId": "string|max:255|nullable",
    "status": "default:NEW|required|in:NEW,PLANNED,DELETED",
}


class StageNotFoundError(LookupError):
    """Raised when no construction stage exists for an id"""

    def __init__(self, stage_id: int):
        super().__init__(f"There is no construction stage with id: {stage_id}")
        self.stage_id = stage_id


class StageValidationError(ValueError):
    """Raised when a payload fails the stage rule table"""

    def __init__(self, message: str, errors: Dict[str, List[Dict[str, Any]]]):
        super().__init__(message)
        self.errors = errors


def calculate_duration(start_date: str, end_date: str, unit: DurationUnit) -> float:
    """
    Time between two stage dates in the given unit.

    Hours and days are whole units; weeks are days / 7.
    """
    start = parse_timestamp(start_date)
    end = parse_timestamp(end_date)
    if start is None or end is None:
        raise ValueError(f"Cannot compute duration between {start_date!r} and {end_date!r}")

    delta = end - start
    if unit is DurationUnit.HOURS:
        return float(int(delta.total_seconds() // 3600))
    if unit is DurationUnit.DAYS:
        return float(delta.days)
    return delta.days / 7


class ConstructionStagesService:
    """
    Operations behind the /constructionStages endpoints.

    Each call builds its own RuleValidator; STAGE_RULES is shared and
    never modified.
    """

    def __init__(
        self,
        repository: ConstructionStageRepository,
        rules: Optional[Mapping[str, str]] = None,
    ):
        self.repository = repository
        self.rules = rules or STAGE_RULES

    def get_all(self) -> List[Dict[str, Any]]:
        return self.repository.list_all()

    def get_single(self, stage_id: int) -> Dict[str, Any]:
        stage = self.repository.get(stage_id)
        if stage is None:
            raise StageNotFoundError(stage_id)
        return stage

    def create(self, payload: Mapping[str, Any]) -> Dict[str, Any]:
        """Validate and insert a new stage; returns the stored stage"""
        record = self._validated(payload)
        self._apply_duration(record)

        stage_id = self.repository.insert(record)
        return self.get_single(stage_id)

    def patch(self, stage_id: int, changes: Mapping[str, Any]) -> Dict[str, Any]:
        """
        Partially update a stage.

        None and "" values are ignored, so a patch never clears a column.
        The stored stage merged with the changes must still satisfy the
        rule table.
        """
        current = self.get_single(stage_id)

        updates = {
            name: value
            for name, value in changes.items()
            if value is not None and value != ""
        }
        merged = {name: current.get(name) for name in self.rules}
        merged.update(updates)

        record = self._validated(merged)
        self._apply_duration(record)

        # Only write what the caller sent, plus anything derived from it
        changed = {
            name: record[name]
            for name in record
            if name in updates or record[name] != current.get(name)
        }
        if not self.repository.update_columns(stage_id, changed):
            raise StageNotFoundError(stage_id)

        return self.get_single(stage_id)

    def delete(self, stage_id: int) -> str:
        """Soft delete: the stage stays stored with status DELETED"""
        if self.repository.find_active(stage_id) is None:
            raise StageNotFoundError(stage_id)

        self.repository.mark_deleted(stage_id)
        return f"Construction Stage with id: {stage_id} deleted successfully!"

    def _validated(self, payload: Mapping[str, Any]) -> Record:
        validator = RuleValidator(payload, self.rules)
        if not validator.validate():
            message = validator.format_errors()
            logger.info(f"Rejected construction stage payload: {message!r}")
            raise StageValidationError(message, validator.errors_as_dict())
        return validator.data

    @staticmethod
    def _apply_duration(record: Record) -> None:
        if not record.get("endDate"):
            record["duration"] = None
            return

        unit = DurationUnit(record.get("durationUnit") or DurationUnit.DAYS.value)
        record["duration"] = calculate_duration(record["startDate"], record["endDate"], unit)
        record["durationUnit"] = unit.value
