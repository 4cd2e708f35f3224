"""Derive a task's plant from the assignee's employee record.

The assignee's free-text `plant` is matched against known plants by code first,
then by name. Both comparisons are exact after trimming and ignore case.
"""

from enum import Enum
from typing import Iterable, Optional

from dms.models.plant import Plant
from dms.models.user import User


class PlantMatchOutcome(str, Enum):
    MATCHED = "matched"
    EMPLOYEE_HAS_NO_PLANT = "EMPLOYEE_HAS_NO_PLANT"
    PLANT_NOT_MATCHED = "PLANT_NOT_MATCHED"


class PlantMatch:
    """Result of plant derivation."""

    def __init__(self, outcome: PlantMatchOutcome, plant: Optional[Plant] = None, plant_text: Optional[str] = None):
        self.outcome = outcome
        self.plant = plant
        self.plant_text = plant_text

    @property
    def matched(self) -> bool:
        return self.outcome == PlantMatchOutcome.MATCHED

    def __repr__(self) -> str:
        plant_id = self.plant.id if self.plant else None
        return f"PlantMatch(outcome={self.outcome.value!r}, plant_id={plant_id!r})"


def _norm(value: Optional[str]) -> str:
    return (value or "").strip().lower()


def match_plant(plant_text: Optional[str], plants: Iterable[Plant]) -> PlantMatch:
    """Match free text against plants; a code match wins over a name match."""
    needle = _norm(plant_text)
    if not needle:
        return PlantMatch(PlantMatchOutcome.EMPLOYEE_HAS_NO_PLANT)

    plants = list(plants)
    for plant in plants:
        if _norm(plant.code) == needle:
            return PlantMatch(PlantMatchOutcome.MATCHED, plant, plant_text)
    for plant in plants:
        if _norm(plant.name) == needle:
            return PlantMatch(PlantMatchOutcome.MATCHED, plant, plant_text)
    return PlantMatch(PlantMatchOutcome.PLANT_NOT_MATCHED, plant_text=plant_text)


def derive_plant_for_assignee(assignee: Optional[User], plants: Iterable[Plant]) -> PlantMatch:
    """Plant for a task assigned to `assignee`."""
    if assignee is None:
        return PlantMatch(PlantMatchOutcome.EMPLOYEE_HAS_NO_PLANT)
    return match_plant(assignee.plant, plants)
