from enum import Enum
from typing import FrozenSet, Union
import logging

from tripboard.core.errors import InvalidTransitionError

logger = logging.getLogger(__name__)


class TripStatus(str, Enum):
    """Visibility of a trip. ``Deleted`` is a soft delete."""

    SHOW = "Show"
    HIDDEN = "Hidden"
    DELETED = "Deleted"


INITIAL_STATUS = TripStatus.HIDDEN


def parse_status(value: Union[str, TripStatus]) -> TripStatus:
    try:
        return TripStatus(value)
    except ValueError:
        allowed = ", ".join(s.value for s in TripStatus)
        raise InvalidTransitionError(f"Unknown trip status '{value}'. Allowed: {allowed}")


def transition(current: Union[str, TripStatus], target: Union[str, TripStatus]) -> TripStatus:
    """Validate a status change requested by an administrator.

    Every status is reachable from every other; only unknown values are
    rejected. Returns the new status.
    """
    current_status = parse_status(current)
    target_status = parse_status(target)
    if current_status != target_status:
        logger.info(f"Trip status {current_status.value} -> {target_status.value}")
    return target_status


def public_statuses() -> FrozenSet[TripStatus]:
    """Statuses included in the public listing."""
    return frozenset({TripStatus.SHOW})


def admin_statuses(show_deleted: bool = False) -> FrozenSet[TripStatus]:
    """Statuses included in the admin listing."""
    statuses = {TripStatus.SHOW, TripStatus.HIDDEN}
    if show_deleted:
        statuses.add(TripStatus.DELETED)
    return frozenset(statuses)
