import threading
from typing import Dict, Optional

WHITE = 'white'
BLACK = 'black'
SEATS = (WHITE, BLACK)


def opponent(seat: str) -> str:
    return BLACK if seat == WHITE else WHITE


class GameRoom:
    """In-memory state for one game code.

    Only the room registry and the clock synchronizer touch these fields,
    and only while holding ``lock``.
    """

    def __init__(self, code: str, clock_seconds: int = 900):
        self.code = code
        self.clock_seconds = clock_seconds
        self.white: Optional[str] = None
        self.black: Optional[str] = None
        self.ready: Dict[str, bool] = {WHITE: False, BLACK: False}
        self.has_started = False
        self.move_count = 0
        self.active_timer: Optional[str] = None
        self.timers: Dict[str, int] = {WHITE: clock_seconds, BLACK: clock_seconds}
        self.lock = threading.RLock()
        # Set once the room has been removed from the registry
        self.closed = False

    def seat_of(self, sid: str) -> Optional[str]:
        # White wins if one connection holds both seats
        if sid is not None and self.white == sid:
            return WHITE
        if sid is not None and self.black == sid:
            return BLACK
        return None

    def occupant(self, seat: str) -> Optional[str]:
        return self.white if seat == WHITE else self.black

    def set_occupant(self, seat: str, sid: Optional[str]) -> None:
        if seat == WHITE:
            self.white = sid
        else:
            self.black = sid

    def both_occupied(self) -> bool:
        return self.white is not None and self.black is not None

    def is_empty(self) -> bool:
        return self.white is None and self.black is None

    def reset_ready(self) -> None:
        self.ready = {WHITE: False, BLACK: False}

    def reset_clocks(self) -> None:
        self.timers = {WHITE: self.clock_seconds, BLACK: self.clock_seconds}

    def time_sync(self) -> dict:
        return {
            'timers': dict(self.timers),
            'activeTimer': self.active_timer,
        }
