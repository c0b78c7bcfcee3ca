"""
Validation - rule-chain validation of request payloads.
"""

from .rules import (
    DEFAULT_REGISTRY,
    OutcomeKind,
    RuleConfigurationError,
    RuleDescriptor,
    RuleOutcome,
    RuleRegistry,
    is_empty,
    is_null,
    parse_rule_chain,
)
from .validator import ErrorMap, FieldError, RuleValidator

__all__ = [
    # Validator
    "RuleValidator",
    "FieldError",
    "ErrorMap",
    # Rules
    "RuleDescriptor",
    "RuleOutcome",
    "OutcomeKind",
    "RuleRegistry",
    "RuleConfigurationError",
    "DEFAULT_REGISTRY",
    "parse_rule_chain",
    "is_empty",
    "is_null",
]
