"""Room protocol errors.

Both are non-fatal: the join handler turns them into an ``errorJoin`` reply
carrying ``reason``. Every other missing precondition is a silent no-op.
"""


class ChessroomException(Exception):
    """Base class for room protocol errors."""
    reason = 'error'


class CapacityExceeded(ChessroomException):
    """Creating another room would exceed MAX_ROOMS."""
    reason = 'limitReached'

    def __init__(self, code, max_rooms):
        self.code = code
        self.max_rooms = max_rooms
        super().__init__(f"Cannot open room {code}: limit of {max_rooms} rooms reached")


class RoleTaken(ChessroomException):
    """The requested seat is held by another connection."""
    reason = 'roleTaken'

    def __init__(self, code, seat):
        self.code = code
        self.seat = seat
        super().__init__(f"Seat {seat} in room {code} is already taken")
