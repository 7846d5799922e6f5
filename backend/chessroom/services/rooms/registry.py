import logging
import threading
from contextlib import contextmanager
from typing import Any, Callable, Dict, Iterator, List, Optional

from chessroom.exceptions import CapacityExceeded, RoleTaken
from chessroom.models import GameRoom, SEATS, WHITE, BLACK, opponent

logger = logging.getLogger(__name__)

# notify(event, payload=None, *, room, skip_sid=None)
Notifier = Callable[..., None]


class RoomRegistry:
    """Mapping of game code -> GameRoom plus every operation that mutates it.

    Each operation runs under the room's own lock and emits its events
    through ``notify`` before releasing it, so clients observe events in
    the same order the state changed. The table lock only guards
    insertion and removal; it is always taken after a room lock, never
    before.
    """

    def __init__(self, notify: Notifier, max_rooms: int = 100, clock_seconds: int = 900):
        self.notify = notify
        self.max_rooms = max_rooms
        self.clock_seconds = clock_seconds
        self._rooms: Dict[str, GameRoom] = {}
        self._table_lock = threading.Lock()

    def __len__(self) -> int:
        return len(self._rooms)

    def get(self, code) -> Optional[GameRoom]:
        return self._rooms.get(code)

    def codes(self) -> List[str]:
        with self._table_lock:
            return list(self._rooms)

    @contextmanager
    def locked(self, code) -> Iterator[Optional[GameRoom]]:
        """Hold the lock of room ``code``; yields None if it does not exist."""
        room = self._rooms.get(code)
        if room is None:
            yield None
            return
        with room.lock:
            yield None if room.closed else room

    def _remove(self, room: GameRoom) -> None:
        with self._table_lock:
            if self._rooms.get(room.code) is room:
                del self._rooms[room.code]
            room.closed = True
        logger.info(f"[room-deleted] code={room.code} rooms={len(self._rooms)}")

    # ---- Seats ----

    def create_or_get(self, code: str) -> GameRoom:
        with self._table_lock:
            room = self._rooms.get(code)
            if room is not None:
                return room
            if len(self._rooms) >= self.max_rooms:
                logger.warning(f"[limit] code={code} rooms={len(self._rooms)} max={self.max_rooms}")
                raise CapacityExceeded(code, self.max_rooms)
            room = GameRoom(code, self.clock_seconds)
            self._rooms[code] = room
        logger.info(f"[room-created] code={code} rooms={len(self._rooms)}")
        return room

    def bind_seat(self, code: str, seat: str, sid: str) -> bool:
        """Bind ``sid`` to ``seat``. Returns True if the seat was vacant before."""
        with self.locked(code) as room:
            if room is None:
                return False
            holder = room.occupant(seat)
            if holder is not None and holder != sid:
                raise RoleTaken(code, seat)
            room.set_occupant(seat, sid)
            self.notify('playerJoined', {'color': seat}, room=code, skip_sid=sid)
            return holder is None

    def both_occupied(self, code: str, newly_bound: bool = False) -> bool:
        """True iff both seats are bound.

        When ``newly_bound`` marks the join that completed the pair and no
        clock is running, the room drops back to a fresh pre-match state.
        A rejoin while the clock runs leaves the match alone.
        """
        with self.locked(code) as room:
            if room is None or not room.both_occupied():
                return False
            if newly_bound:
                if room.active_timer is None:
                    room.has_started = False
                    room.reset_ready()
                self.notify('bothConnected', room=code)
            return True

    def join(self, code: str, color: Optional[str], sid: str) -> Optional[str]:
        """Seat ``sid`` in room ``code`` as ``color``, or spectate.

        Returns the bound seat, or None for a spectator. Raises
        CapacityExceeded or RoleTaken.
        """
        if color not in SEATS:
            # Spectators never create rooms, so they never see limitReached
            self.notify('playerJoined', {'color': None}, room=code, skip_sid=sid)
            return None
        while True:
            room = self.create_or_get(code)
            with room.lock:
                if room.closed:
                    # Deleted between lookup and lock; open a fresh one
                    continue
                newly_bound = self.bind_seat(code, color, sid)
                self.both_occupied(code, newly_bound=newly_bound)
                return color

    # ---- Match flow ----

    def set_ready(self, code: str, sid: str) -> None:
        with self.locked(code) as room:
            if room is None:
                return
            # The seat comes from the connection, never from the payload
            seat = room.seat_of(sid)
            if seat is None or room.ready[seat]:
                return
            room.ready[seat] = True
            self.notify('playerReady', {'color': seat}, room=code)

            if room.ready[WHITE] and room.ready[BLACK]:
                if room.active_timer is not None:
                    # Rejoined before the first move: resume the running clock, no second start
                    logger.info(f"[resume] code={code} active={room.active_timer} timers={room.timers}")
                    self.notify('timeSync', room.time_sync(), room=code)
                    return
                room.has_started = True
                room.reset_clocks()
                room.active_timer = WHITE
                logger.info(f"[start] code={code} clock={self.clock_seconds}s")
                self.notify('startGame', room=code)
                self.notify('timeSync', room.time_sync(), room=code)

    def relay_move(self, code: str, move: Any) -> None:
        with self.locked(code) as room:
            if room is not None:
                room.move_count += 1
                if room.active_timer is not None:
                    room.active_timer = opponent(room.active_timer)
                self.notify('timeSync', room.time_sync(), room=code)
            # The payload is relayed even when no room backs this code
            self.notify('newMove', move, room=code)

    def replay(self, code: str) -> None:
        with self.locked(code) as room:
            if room is None:
                return
            room.move_count = 0
            room.reset_clocks()
            room.active_timer = None
            room.reset_ready()
            room.has_started = False
            logger.info(f"[replay] code={code}")
            self.notify('gameReplayed', room=code)
            self.notify('timeSync', room.time_sync(), room=code)

    def resign(self, code: str, sid: str) -> Optional[str]:
        """End the match with the sender's seat as loser. Returns the winner."""
        with self.locked(code) as room:
            if room is None:
                return None
            loser = room.seat_of(sid)
            if loser is None:
                return None
            winner = opponent(loser)
            room.active_timer = None
            room.reset_ready()
            logger.info(f"[resign] code={code} loser={loser}")
            self.notify('gameResigned', {'winner': winner, 'loser': loser}, room=code)
            return winner

    def stop_timer(self, code: str) -> None:
        with self.locked(code) as room:
            if room is not None:
                room.active_timer = None

    def close_room(self, code: str, sid: str) -> bool:
        with self.locked(code) as room:
            if room is None or room.white is None or room.white != sid:
                return False
            self.notify('roomClosed', room=code)
            self._remove(room)
            return True

    def on_disconnect(self, code: str, sid: str) -> None:
        with self.locked(code) as room:
            if room is None:
                return
            # Decide the outcome from the seat about to be freed
            seat = room.seat_of(sid)
            active_game = room.has_started and room.move_count > 0

            if seat is not None:
                for s in SEATS:
                    if room.occupant(s) == sid:
                        room.set_occupant(s, None)
                        room.ready[s] = False

            self.notify('playerLeft', {'color': seat}, room=code, skip_sid=sid)

            if seat is not None and active_game:
                room.active_timer = None
                logger.info(f"[abort] code={code} seat={seat} moves={room.move_count}")
                self.notify('gameOverDisconnect', room=code)

            if room.is_empty():
                self._remove(room)
