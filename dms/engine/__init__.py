"""Business rules for DMS."""

from dms.engine.lifecycle import (
    ALLOWED_TRANSITIONS,
    apply_status_update,
    can_transition,
    days_until_due,
    is_due_soon,
    is_overdue,
)
from dms.engine.plant_match import PlantMatch, PlantMatchOutcome, derive_plant_for_assignee, match_plant
from dms.engine.permissions import default_permissions_for_role, has_permission, has_role_at_least, role_level

__all__ = [
    "ALLOWED_TRANSITIONS",
    "apply_status_update",
    "can_transition",
    "days_until_due",
    "is_due_soon",
    "is_overdue",
    "PlantMatch",
    "PlantMatchOutcome",
    "derive_plant_for_assignee",
    "match_plant",
    "default_permissions_for_role",
    "has_permission",
    "has_role_at_least",
    "role_level",
]
