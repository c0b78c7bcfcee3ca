"""
Validation Rules

Rule descriptors, rule outcomes and the registry of built-in rule handlers.

A rule handler has the signature ``(field, params, record) -> RuleOutcome``.
Handlers may read the record and, for ``default``, write into it, but they
never touch the error map: they report PASS, FAIL or CLEAR and the
validator applies the outcome.
"""

import logging
import re
from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Callable, Dict, Iterator, List, Optional, Sequence, Tuple, Union

from ..main import DATE_FORMAT, Record

logger = logging.getLogger(__name__)

HEX_COLOR_PATTERN = re.compile(r"#([A-Fa-f0-9]{6}|[A-Fa-f0-9]{3})")


class RuleConfigurationError(Exception):
    """Raised when a rule table is malformed (not when data is invalid)"""

    def __init__(self, message: str, rule: str = "", field: str = "", code: Optional[str] = None):
        super().__init__(message)
        self.rule = rule
        self.field = field
        self.code = code


@dataclass(frozen=True)
class RuleDescriptor:
    """A rule name plus its string parameters, e.g. ``max:255``"""
    name: str
    params: Tuple[str, ...] = ()

    @classmethod
    def parse(cls, token: str) -> "RuleDescriptor":
        name, *params = token.split(":")
        return cls(name=name, params=tuple(params))

    def __str__(self) -> str:
        return ":".join([self.name, *self.params])


RuleChain = Union[str, Sequence[RuleDescriptor]]


def parse_rule_chain(chain: RuleChain) -> List[RuleDescriptor]:
    """Parse ``"required|string|max:255"`` into descriptors, in declared order"""
    if isinstance(chain, str):
        return [RuleDescriptor.parse(token) for token in chain.split("|")]
    return list(chain)


class OutcomeKind(Enum):
    """What the validator should do after a rule ran"""
    PASS = "pass"
    FAIL = "fail"
    CLEAR = "clear"


@dataclass(frozen=True)
class RuleOutcome:
    """Result of applying a single rule to a single field"""
    kind: OutcomeKind
    message: str = ""
    code: Optional[str] = None

    @classmethod
    def passed(cls) -> "RuleOutcome":
        return cls(OutcomeKind.PASS)

    @classmethod
    def fail(cls, message: str, code: Optional[str] = None) -> "RuleOutcome":
        return cls(OutcomeKind.FAIL, message=message, code=code)

    @classmethod
    def clear(cls) -> "RuleOutcome":
        return cls(OutcomeKind.CLEAR)


RuleHandler = Callable[[str, List[str], Record], RuleOutcome]


class RuleRegistry:
    """
    Maps rule names to handlers.

    Built once at import time; validators only read from it, so a registry
    can be shared between concurrent requests. Extend it with ``register``:

        registry = RuleRegistry(DEFAULT_REGISTRY)

        @registry.register("uppercase")
        def _uppercase(field, params, record):
            ...
    """

    def __init__(self, base: Optional["RuleRegistry"] = None):
        self._handlers: Dict[str, RuleHandler] = dict(base._handlers) if base else {}

    def register(self, name: str) -> Callable[[RuleHandler], RuleHandler]:
        def decorator(handler: RuleHandler) -> RuleHandler:
            self._handlers[name] = handler
            return handler
        return decorator

    def get(self, name: str) -> RuleHandler:
        try:
            return self._handlers[name]
        except KeyError:
            raise RuleConfigurationError(
                f"Validation rule '{name}' does not exist.", rule=name
            ) from None

    def __contains__(self, name: object) -> bool:
        return name in self._handlers

    def __iter__(self) -> Iterator[str]:
        return iter(self._handlers)


DEFAULT_REGISTRY = RuleRegistry()


# --- Value predicates ---


def is_present(record: Record, name: str) -> bool:
    """A field is present when it exists and is not None"""
    return record.get(name) is not None


def is_empty(value: Any) -> bool:
    """Loose emptiness: None, False, 0, 0.0, "", "0" and empty containers"""
    if value is None or value is False:
        return True
    if isinstance(value, str):
        return value in ("", "0")
    if isinstance(value, (int, float)):
        return value == 0
    if isinstance(value, (list, tuple, dict, set)):
        return len(value) == 0
    return False


def is_null(value: Any) -> bool:
    """Narrower than is_empty: only None or the exact empty string"""
    return value is None or value == ""


def as_text(value: Any) -> str:
    """String form used for length and membership checks"""
    if isinstance(value, bool):
        return "1" if value else ""
    return str(value)


def parse_timestamp(value: Any) -> Optional[datetime]:
    """Parse an ISO 8601 timestamp, treating naive values as UTC"""
    if not isinstance(value, str) or not value:
        return None
    try:
        parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def _require_param(rule: str, name: str, params: List[str]) -> str:
    if not params or params[0] == "":
        raise RuleConfigurationError(
            f"Validation rule '{rule}' on field '{name}' needs a parameter.",
            rule=rule,
            field=name,
        )
    return params[0]


# --- Built-in rules ---


@DEFAULT_REGISTRY.register("required")
def validate_required(name: str, params: List[str], record: Record) -> RuleOutcome:
    if is_empty(record.get(name)):
        return RuleOutcome.fail(f"The {name} field is required.")
    return RuleOutcome.passed()


@DEFAULT_REGISTRY.register("string")
def validate_string(name: str, params: List[str], record: Record) -> RuleOutcome:
    if is_present(record, name) and not isinstance(record[name], str):
        return RuleOutcome.fail(f"The {name} field must be a string.")
    return RuleOutcome.passed()


@DEFAULT_REGISTRY.register("max")
def validate_max(name: str, params: List[str], record: Record) -> RuleOutcome:
    raw = _require_param("max", name, params)
    try:
        limit = int(raw)
    except ValueError:
        raise RuleConfigurationError(
            f"Validation rule 'max' on field '{name}' expects an integer, got '{raw}'.",
            rule="max",
            field=name,
        ) from None

    if is_present(record, name) and len(as_text(record[name])) > limit:
        return RuleOutcome.fail(f"The {name} field must not be greater than {limit} characters.")
    return RuleOutcome.passed()


@DEFAULT_REGISTRY.register("in")
def validate_in(name: str, params: List[str], record: Record) -> RuleOutcome:
    allowed = _require_param("in", name, params).split(",")

    if is_present(record, name) and as_text(record[name]) not in allowed:
        return RuleOutcome.fail(
            f"The {name} field must be one of: {', '.join(allowed)}",
            code="INVALID_VALUE",
        )
    return RuleOutcome.passed()


@DEFAULT_REGISTRY.register("dateFormat")
def validate_date_format(name: str, params: List[str], record: Record) -> RuleOutcome:
    value = record.get(name)
    valid = False
    if isinstance(value, str):
        try:
            valid = datetime.strptime(value, DATE_FORMAT).strftime(DATE_FORMAT) == value
        except ValueError:
            valid = False

    if not valid:
        return RuleOutcome.fail(
            f"The {name} field must be in the ISO 8601 format: Y-m-d\\TH:i:s\\Z",
            code="INVALID_DATE_FORMAT",
        )
    return RuleOutcome.passed()


@DEFAULT_REGISTRY.register("after")
def validate_after(name: str, params: List[str], record: Record) -> RuleOutcome:
    other = _require_param("after", name, params)

    reference = parse_timestamp(record.get(other))
    if reference is None:
        # Nothing to compare against; the other field's own rules report it
        logger.debug(f"Skipping 'after:{other}' on {name}: {other} is missing or unparseable")
        return RuleOutcome.passed()

    value = parse_timestamp(record.get(name))
    if value is None or value <= reference:
        return RuleOutcome.fail(f"The {name} must be after {other}.")
    return RuleOutcome.passed()


@DEFAULT_REGISTRY.register("hexColor")
def validate_hex_color(name: str, params: List[str], record: Record) -> RuleOutcome:
    if not is_present(record, name):
        return RuleOutcome.passed()

    value = record[name]
    if not isinstance(value, str) or not HEX_COLOR_PATTERN.fullmatch(value):
        return RuleOutcome.fail(f"The {name} field must be a valid HEX color code.")
    return RuleOutcome.passed()


@DEFAULT_REGISTRY.register("default")
def apply_default(name: str, params: List[str], record: Record) -> RuleOutcome:
    if not is_empty(record.get(name)):
        return RuleOutcome.passed()

    if not params:
        raise RuleConfigurationError(
            f"The {name} field must have a default value.",
            rule="default",
            field=name,
            code="DEFAULT_VALUE_REQUIRED",
        )

    record[name] = params[0]
    return RuleOutcome.passed()


@DEFAULT_REGISTRY.register("nullable")
def validate_nullable(name: str, params: List[str], record: Record) -> RuleOutcome:
    if is_null(record.get(name)):
        return RuleOutcome.clear()
    return RuleOutcome.passed()


@DEFAULT_REGISTRY.register("skip")
def validate_skip(name: str, params: List[str], record: Record) -> RuleOutcome:
    return RuleOutcome.passed()
