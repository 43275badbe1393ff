"""Capability gate over ``channels.matrix.actions``.

Policy is opt-out: a category is enabled unless the config sets it to
``false``. A missing key, a missing ``actions`` mapping and an explicit
``true`` all mean enabled, so a newly added category is live until someone
turns it off. Do not invert this default.
"""

from typing import Any, Iterable, List, Mapping, Optional, Tuple, Union

from matrix_actions.domain.accounts import matrix_section
from matrix_actions.domain.models import ActionCategory

# Always advertised, independent of the gate.
BASE_ACTIONS: Tuple[str, ...] = ("send", "poll")

CategoryLike = Union[ActionCategory, str]


def _category_name(category: CategoryLike) -> str:
    return category.value if isinstance(category, ActionCategory) else str(category)


class CapabilityGate:
    """Answers "is category C enabled?" for one config snapshot."""

    def __init__(self, actions: Optional[Mapping[str, Any]] = None):
        # Copied once; the caller's mapping is never read again.
        self._actions = dict(actions) if isinstance(actions, Mapping) else {}

    @classmethod
    def from_config(cls, cfg: Optional[Mapping[str, Any]]) -> "CapabilityGate":
        return cls(gate_config(cfg))

    def is_enabled(self, category: CategoryLike) -> bool:
        return self._actions.get(_category_name(category)) is not False

    def __call__(self, category: CategoryLike) -> bool:
        return self.is_enabled(category)

    def list_actions(
        self, entries: Iterable[Tuple[Optional[CategoryLike], Iterable[str]]]
    ) -> List[str]:
        """Advertised action names, ordered and deduplicated.

        ``entries`` pairs a category (``None`` for ungated) with the names it
        advertises.
        """
        names: List[str] = list(BASE_ACTIONS)
        for category, advertised in entries:
            if category is not None and not self.is_enabled(category):
                continue
            for name in advertised:
                if name not in names:
                    names.append(name)
        return names


def gate_config(cfg: Optional[Mapping[str, Any]]) -> Mapping[str, Any]:
    """Pull ``channels.matrix.actions`` out of a core config document."""
    actions = matrix_section(cfg).get("actions")
    return actions if isinstance(actions, Mapping) else {}
