"""
Rule violations raised by the engine.

Every violation is a rejection: the state handed to transition() is
never modified, so callers can keep using it and re-prompt the player.
"""

from __future__ import annotations
from enum import Enum


class ViolationKind(str, Enum):
    PHASE = "PHASE_VIOLATION"
    CONFIGURATION = "CONFIGURATION_VIOLATION"
    IDENTIFIER = "IDENTIFIER_VIOLATION"
    CARDINALITY = "CARDINALITY_VIOLATION"
    BUSINESS_RULE = "BUSINESS_RULE_VIOLATION"


class GameRuleError(Exception):
    """Base class for all rejected actions."""
    kind: ViolationKind = ViolationKind.BUSINESS_RULE

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    @property
    def code(self) -> str:
        return self.kind.value


class PhaseViolationError(GameRuleError):
    """Action is not in the current phase's whitelist."""
    kind = ViolationKind.PHASE


class ConfigurationError(GameRuleError):
    """Player count or names are not acceptable."""
    kind = ViolationKind.CONFIGURATION


class IdentifierError(GameRuleError):
    """Unknown player, offer or card reference."""
    kind = ViolationKind.IDENTIFIER


class CardinalityError(GameRuleError):
    """Wrong number of cards, or an index outside its range."""
    kind = ViolationKind.CARDINALITY


class BusinessRuleError(GameRuleError):
    kind = ViolationKind.BUSINESS_RULE
