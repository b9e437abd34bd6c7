# room_status.py — room status at the start of a new occupancy day
from models import RoomStatusEnum

# Statuses the calendar never clears on its own
STICKY_STATUSES = frozenset({
    RoomStatusEnum.Roll,
    RoomStatusEnum.Out,
    RoomStatusEnum.Maintenance,
    RoomStatusEnum.OutOfOrder,
})

# One row per status; anything not sticky needs servicing again
NEXT_DAY_STATUS = {
    RoomStatusEnum.Dirty: RoomStatusEnum.Dirty,
    RoomStatusEnum.Clean: RoomStatusEnum.Dirty,
    RoomStatusEnum.Ready: RoomStatusEnum.Dirty,
    RoomStatusEnum.CleanInspected: RoomStatusEnum.Dirty,
    RoomStatusEnum.Roll: RoomStatusEnum.Roll,
    RoomStatusEnum.Out: RoomStatusEnum.Out,
    RoomStatusEnum.Maintenance: RoomStatusEnum.Maintenance,
    RoomStatusEnum.OutOfOrder: RoomStatusEnum.OutOfOrder,
}


def next_status(current) -> RoomStatusEnum:
    """Status a room takes at the reset boundary.

    Accepts an enum member or its string value; a missing status is
    treated as dirty. Raises ValueError for anything outside the enum.
    """
    if current is None:
        current = RoomStatusEnum.Dirty
    return NEXT_DAY_STATUS[RoomStatusEnum(current)]
