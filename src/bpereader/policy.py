"""Space marker detection policies and their environment override."""

import logging
import os
from enum import Enum
from typing import Final, Literal

from .exceptions import PolicyError

log = logging.getLogger(__name__)

ENV_SPACE_POLICY: Final[str] = "BPEREADER_SPACE_POLICY"

SpacePolicyName = Literal["minimum", "legacy"]


class SpacePolicy(str, Enum):
    """
    How the loader picks the word-start marker among the base characters.

    MINIMUM takes the smallest character id over all records. LEGACY keeps
    the historical behaviour where an id of 0 also meant "nothing seen yet",
    so a leading 0 lets every later character replace the marker.
    """

    MINIMUM = "minimum"
    LEGACY = "legacy"

    @classmethod
    def get(cls, name: str) -> "SpacePolicy":
        """Get space policy by name (case-insensitive)."""
        try:
            return cls[name.strip().upper()]
        except KeyError:
            raise PolicyError(
                "unknown space policy",
                invalid_name=name,
                available=list_space_policies(),
            )


def list_space_policies() -> list[str]:
    """Return available space policy names."""
    return [policy.value for policy in SpacePolicy]


def default_space_policy() -> SpacePolicy:
    """Return the policy named by the environment, or MINIMUM when unset."""
    name = os.environ.get(ENV_SPACE_POLICY, "").strip()
    if not name:
        return SpacePolicy.MINIMUM
    log.debug(f"space policy {name!r} taken from {ENV_SPACE_POLICY}")
    return SpacePolicy.get(name)


__all__ = [
    "ENV_SPACE_POLICY",
    "SpacePolicyName",
    "SpacePolicy",
    "list_space_policies",
    "default_space_policy",
]
