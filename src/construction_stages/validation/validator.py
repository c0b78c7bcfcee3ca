"""
Rule Validator

Checks a record against per-field rule chains such as
``"required|string|max:255"``.

Rules of a chain run left to right, and every chain runs in rule-table
order, so a rule can see what an earlier one did:

- ``default`` writes into the record before ``required`` looks at it
- ``nullable`` drops the errors that earlier rules recorded for its field

Data problems are collected into the error map and reported by the boolean
result of ``validate()``. A malformed rule table raises
``RuleConfigurationError`` and aborts validation.
"""

import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Mapping, Optional

from ..main import Record
from .rules import (
    DEFAULT_REGISTRY,
    OutcomeKind,
    RuleChain,
    RuleConfigurationError,
    RuleDescriptor,
    RuleRegistry,
    parse_rule_chain,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class FieldError:
    """A single validation error recorded for a field"""
    message: str
    code: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {"message": self.message, "code": self.code}


ErrorMap = Dict[str, List[FieldError]]


class RuleValidator:
    """
    Validates one record against a rule table. Use once, then discard.

    Usage:
        validator = RuleValidator(payload, {"name": "required|string|max:255"})
        if not validator.validate():
            print(validator.format_errors())
        clean = validator.data
    """

    def __init__(
        self,
        record: Optional[Mapping[str, Any]],
        rules: Mapping[str, RuleChain],
        registry: Optional[RuleRegistry] = None,
    ):
        self._data: Record = dict(record or {})
        self._rules = rules
        self._registry = registry or DEFAULT_REGISTRY
        self._errors: ErrorMap = {}

    @property
    def data(self) -> Record:
        """The record as it stands after validation (defaults applied)"""
        return dict(self._data)

    def validate(self) -> bool:
        """
        Apply every rule chain to the record.

        Returns:
            True if no field has an error left

        Raises:
            RuleConfigurationError: unknown rule or unusable rule parameters
        """
        for name, chain in self._rules.items():
            for descriptor in parse_rule_chain(chain):
                self._apply_rule(name, descriptor)

        if self._errors:
            logger.debug(f"Validation failed for fields: {', '.join(self._errors)}")
        return not self._errors

    def errors(self) -> ErrorMap:
        """Snapshot of the recorded errors, keyed by field"""
        return {name: list(errors) for name, errors in self._errors.items()}

    def errors_as_dict(self) -> Dict[str, List[Dict[str, Any]]]:
        return {
            name: [error.to_dict() for error in errors]
            for name, errors in self._errors.items()
        }

    def format_errors(self) -> str:
        """One line per field: ``field: message, message``"""
        return "\n".join(
            f"{name}: {', '.join(error.message for error in errors)}"
            for name, errors in self._errors.items()
        )

    def _apply_rule(self, name: str, descriptor: RuleDescriptor) -> None:
        try:
            handler = self._registry.get(descriptor.name)
            outcome = handler(name, list(descriptor.params), self._data)
        except RuleConfigurationError as e:
            e.field = e.field or name
            logger.error(f"Bad rule '{descriptor}' for field '{name}': {e}")
            raise

        if outcome.kind is OutcomeKind.FAIL:
            self._errors.setdefault(name, []).append(
                FieldError(message=outcome.message, code=outcome.code)
            )
        elif outcome.kind is OutcomeKind.CLEAR:
            self._errors.pop(name, None)
