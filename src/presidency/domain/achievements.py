"""Achievement rules for a presidency."""

from __future__ import annotations

from collections.abc import Callable, Collection, Sequence
from dataclasses import dataclass

from .enums import ActionCategory
from .models import AchievementUnlock, StatVector

Predicate = Callable[[StatVector], bool]


@dataclass(frozen=True, slots=True)
class AchievementRule:
    key: str
    predicate: Predicate
    description: str

    def unlock(self) -> AchievementUnlock:
        return AchievementUnlock(key=self.key, description=self.description)


ACHIEVEMENT_RULES: tuple[AchievementRule, ...] = (
    AchievementRule("stable_mandate", lambda s: s.stability >= 90, "Stability >= 90"),
    AchievementRule("economic_wizard", lambda s: s.economy >= 90, "Economy >= 90"),
    AchievementRule("chaos_master", lambda s: s.chaos >= 80, "Chaos >= 80"),
    AchievementRule(
        "iron_fist",
        lambda s: s.power >= 90 and s.justice < 30,
        "Power >= 90 while Justice < 30",
    ),
)

MYTHIC_DISTORTION = AchievementUnlock(
    key="distorted_realm", description="Distorted the fabric of state"
)


def evaluate_achievements(
    unlocked_keys: Collection[str],
    vector: StatVector,
    *,
    rules: Sequence[AchievementRule] = ACHIEVEMENT_RULES,
) -> list[AchievementUnlock]:
    """Return the unlocks earned by ``vector`` that are not yet owned.

    Rules are checked in table order.  Feeding the returned keys back into
    ``unlocked_keys`` makes a repeat call return nothing.
    """

    found: list[AchievementUnlock] = []
    for rule in rules:
        if rule.key not in unlocked_keys and rule.predicate(vector):
            found.append(rule.unlock())
    return found


def mythic_unlock(category: ActionCategory | str, key: str) -> AchievementUnlock | None:
    """Unconditional unlock fired by the cosmic ``distort`` act.

    Independent of the stat vector and of the rule table.  Guarding against a
    second firing for a session that already owns it is the caller's job.
    """

    if ActionCategory(category) is ActionCategory.COSMIC and key == "distort":
        return MYTHIC_DISTORTION
    return None
