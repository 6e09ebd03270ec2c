"""
Access Reader

Provides:
- Requester credentials (identity + access tags)
- Access requirements (any-of tag sets)
- The is_allowed predicate used before manual breaker control
"""

import logging
from dataclasses import dataclass, field
from typing import FrozenSet, Iterable, List, Optional

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Requester:
    """Actor issuing a command, with the access tags they carry"""
    identity: str
    access_tags: FrozenSet[str] = field(default_factory=frozenset)


@dataclass
class AccessRequirement:
    """
    Access a node demands.

    Satisfied when the requester holds every tag of at least one set.
    An empty requirement places no restriction.
    """
    tag_sets: List[FrozenSet[str]] = field(default_factory=list)

    @classmethod
    def from_lists(cls, tag_lists: Optional[Iterable[Iterable[str]]]) -> Optional['AccessRequirement']:
        """Build a requirement from plain lists (config / API payloads)"""
        if tag_lists is None:
            return None
        return cls([frozenset(tags) for tags in tag_lists])

    def is_unrestricted(self) -> bool:
        return len(self.tag_sets) == 0

    def to_lists(self) -> List[List[str]]:
        return [sorted(tags) for tags in self.tag_sets]


class AccessReader:
    """
    Evaluates requesters against node access requirements.

    A compromised (emagged) reader grants everything.
    """

    def __init__(self):
        self.stats = {
            "checks": 0,
            "granted": 0,
            "denied": 0,
        }

    def is_allowed(
        self,
        requester: Requester,
        requirement: Optional[AccessRequirement],
        compromised: bool = False,
    ) -> bool:
        """
        Check if requester may operate a node

        Args:
            requester: Credentials presented
            requirement: Node's requirement (None = no reader fitted)
            compromised: Whether the node's reader has been emagged

        Returns:
            True if access is granted
        """
        self.stats["checks"] += 1

        if compromised or requirement is None or requirement.is_unrestricted():
            allowed = True
        else:
            allowed = any(tags.issubset(requester.access_tags) for tags in requirement.tag_sets)

        self.stats["granted" if allowed else "denied"] += 1

        if not allowed:
            logger.debug(
                f"Access denied for {requester.identity}: holds {sorted(requester.access_tags)}, "
                f"needs one of {requirement.to_lists()}"
            )

        return allowed
