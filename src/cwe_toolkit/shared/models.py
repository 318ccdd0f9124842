"""
Core data models for the CWE toolkit using simple dataclasses.
"""

import os
from dataclasses import dataclass
from enum import Enum

from .exceptions import ConfigurationError

DEFAULT_BASE_URL = "https://cwe-api.mitre.org/api/v1"
DEFAULT_TIMEOUT = 30.0
DEFAULT_RATE_LIMIT_INTERVAL = 10.0
DEFAULT_MAX_RETRIES = 3
DEFAULT_RETRY_DELAY = 1.0
DEFAULT_USER_AGENT = "cwe-toolkit/0.1.0"


class RelationType(str, Enum):
    """Relation kinds defined by the CWE taxonomy."""

    CHILD_OF = "ChildOf"
    PARENT_OF = "ParentOf"
    MEMBER_OF = "MemberOf"
    HAS_MEMBER = "HasMember"
    CAN_PRECEDE = "CanPrecede"
    CAN_FOLLOW = "CanFollow"
    REQUIRED_BY = "RequiredBy"
    REQUIRES = "Requires"
    STARTS_WITH = "StartsWith"
    STARTED_FROM = "StartedFrom"
    STOPS_WITH = "StopsWith"
    STOPPED_BY = "StoppedBy"
    CAN_ALSO_BE = "CanAlsoBe"
    PEER_OF = "PeerOf"
    EQUIVALENCE = "Equivalence"
    IS = "Is"
    IS_A = "IsA"
    HAS_CORRESPONDING_WEAKNESS = "HasCorrespondingWeakness"

    @property
    def is_parent_oriented(self) -> bool:
        """True when the source of the relation sits below its target."""
        return self in PARENT_RELATIONS


PARENT_RELATIONS = frozenset(
    {
        RelationType.CHILD_OF,
        RelationType.MEMBER_OF,
        RelationType.CAN_FOLLOW,
        RelationType.REQUIRES,
        RelationType.STARTED_FROM,
        RelationType.STOPPED_BY,
        RelationType.IS_A,
    }
)


def is_parent_relation(relation_type: str) -> bool:
    """Check whether a relation kind implies containment (child to parent).

    Unknown relation kinds are treated as non-parent.
    """
    try:
        return RelationType(relation_type).is_parent_oriented
    except ValueError:
        return False


@dataclass
class Relation:
    """A typed edge from one CWE entry to another."""

    nature: str
    cwe_id: str
    view_id: str | None = None
    ordinal: str | None = None

    @property
    def is_parent(self) -> bool:
        return is_parent_relation(self.nature)


@dataclass
class VersionInfo:
    """Version metadata reported by the CWE REST service."""

    version: str
    release_date: str | None = None


@dataclass
class ClientConfig:
    """Configuration for the CWE API client and its transport."""

    base_url: str = DEFAULT_BASE_URL
    timeout: float = DEFAULT_TIMEOUT
    rate_limit_interval: float = DEFAULT_RATE_LIMIT_INTERVAL
    requests_per_second: float | None = None  # Overrides rate_limit_interval when positive
    max_retries: int = DEFAULT_MAX_RETRIES
    retry_delay: float = DEFAULT_RETRY_DELAY
    user_agent: str = DEFAULT_USER_AGENT

    def __post_init__(self):
        if not self.base_url:
            raise ConfigurationError("base_url must not be empty")
        if self.timeout <= 0:
            raise ConfigurationError("timeout must be positive", {"timeout": self.timeout})
        if self.max_retries < 0:
            raise ConfigurationError(
                "max_retries must not be negative", {"max_retries": self.max_retries}
            )
        if self.retry_delay < 0:
            raise ConfigurationError(
                "retry_delay must not be negative", {"retry_delay": self.retry_delay}
            )
        self.base_url = self.base_url.rstrip("/")

    @property
    def effective_interval(self) -> float:
        """Minimum number of seconds between two requests."""
        if self.requests_per_second and self.requests_per_second > 0:
            return 1.0 / self.requests_per_second
        return self.rate_limit_interval

    @classmethod
    def from_env(cls, prefix: str = "CWE_") -> "ClientConfig":
        """Build a configuration from environment variables.

        Recognized variables (with the default prefix): ``CWE_API_BASE_URL``,
        ``CWE_API_TIMEOUT``, ``CWE_RATE_LIMIT_INTERVAL``,
        ``CWE_REQUESTS_PER_SECOND``, ``CWE_MAX_RETRIES``, ``CWE_RETRY_DELAY``.
        Unset variables keep their defaults.
        """
        kwargs: dict[str, object] = {}

        base_url = os.getenv(f"{prefix}API_BASE_URL")
        if base_url:
            kwargs["base_url"] = base_url

        numeric_vars = {
            "timeout": (f"{prefix}API_TIMEOUT", float),
            "rate_limit_interval": (f"{prefix}RATE_LIMIT_INTERVAL", float),
            "requests_per_second": (f"{prefix}REQUESTS_PER_SECOND", float),
            "max_retries": (f"{prefix}MAX_RETRIES", int),
            "retry_delay": (f"{prefix}RETRY_DELAY", float),
        }
        for field_name, (env_name, cast) in numeric_vars.items():
            raw = os.getenv(env_name)
            if raw is None or raw.strip() == "":
                continue
            try:
                kwargs[field_name] = cast(raw)
            except ValueError as e:
                raise ConfigurationError(
                    f"Invalid value for {env_name}", {"value": raw}
                ) from e

        return cls(**kwargs)  # type: ignore[arg-type]
