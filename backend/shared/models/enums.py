"""Domain enumerations for the Courtside schedule service."""
from __future__ import annotations

from enum import Enum


class Environment(str, Enum):
    DEV = "dev"
    STAGING = "staging"
    PRODUCTION = "production"


class MatchStatus(str, Enum):
    IN_PROGRESS = "in_progress"
    FINISHED = "finished"
    NOT_STARTED = "not_started"
    INTERRUPTED = "interrupted"
    UNKNOWN = "unknown"


class RoundCode(str, Enum):
    """Short tournament stage codes shown on the schedule board."""
    R1 = "R1"
    R2 = "R2"
    R3 = "R3"
    R4 = "R4"
    QF = "QF"
    SF = "SF"
    F = "F"


class TrustPolicy(str, Enum):
    """TLS certificate policy for the upstream polling endpoint."""
    VERIFY = "verify"
    TRUST_ALL = "trust_all"

    @property
    def verify_tls(self) -> bool:
        return self is TrustPolicy.VERIFY
