"""
Status enums backed by an explicit transition table.

Each subclass returns a mapping from every member to the set of members it
may move to. Terminal states map to an empty set.
"""

from enum import Enum
from typing import Dict, FrozenSet

from common.core.exceptions import InvalidTransitionError


class StatusEnum(str, Enum):
    @classmethod
    def transitions(cls) -> Dict["StatusEnum", FrozenSet["StatusEnum"]]:
        raise NotImplementedError

    def allowed_transitions(self) -> FrozenSet["StatusEnum"]:
        return self.transitions()[self]

    def can_transition_to(self, target: "StatusEnum") -> bool:
        return target in self.allowed_transitions()

    def is_terminal(self) -> bool:
        return not self.allowed_transitions()

    def transition_to(self, target: "StatusEnum") -> "StatusEnum":
        """Return ``target`` if the move is legal, else raise InvalidTransitionError."""
        if not self.can_transition_to(target):
            raise InvalidTransitionError(
                f"Cannot move {type(self).__name__} from {self.value} to {target.value}",
                current=self.value,
                target=target.value,
            )
        return target
