from flask import current_app, request
from flask_socketio import emit, join_room, leave_room, rooms
from chessroom import socketio
from chessroom.exceptions import ChessroomException
from chessroom.services.rooms.registry import RoomRegistry
from typing import Any, Dict, Optional


# sid -> game code it last joined; connection-scoped, dropped on disconnect
_sid_to_code: Dict[str, str] = {}


def _get_sid() -> str:
    # type: ignore: request.sid exists in Socket.IO context
    return request.sid  # type: ignore

def _registry() -> RoomRegistry:
    return current_app.extensions['rooms']

def _payload_code(data: Any) -> Optional[str]:
    if not isinstance(data, dict):
        return None
    code = data.get('code')
    return str(code) if code not in (None, '') else None


def make_notifier(namespace: str):
    """Build the registry's outbound channel on top of ``socketio.emit``."""
    def notify(event: str, payload: Any = None, *, room: str, skip_sid: Optional[str] = None) -> None:
        args = () if payload is None else (payload,)
        socketio.emit(event, *args, to=room, skip_sid=skip_sid, namespace=namespace)
    return notify


def handle_connect(auth=None):
    current_app.logger.info(f"[connect] sid={_get_sid()}")


def handle_disconnect(reason=None):
    sid = _get_sid()
    code = _sid_to_code.pop(sid, None)
    current_app.logger.info(f"[disconnect] sid={sid} code={code}")
    if code is not None:
        _registry().on_disconnect(code, sid)


def handle_join_game(data):
    code = _payload_code(data)
    if code is None:
        current_app.logger.info(f"[join-skip] sid={_get_sid()} missing code")
        return
    color = data.get('color')
    sid = _get_sid()
    # Subscribe first so the joiner also receives bothConnected
    was_member = code in rooms()
    join_room(code)
    try:
        seat = _registry().join(code, color, sid)
    except ChessroomException as exc:
        if not was_member:
            leave_room(code)
        current_app.logger.info(f"[join-refused] sid={sid} code={code} reason={exc.reason}")
        emit('errorJoin', exc.reason)
        return
    # Replaces any earlier code; a seat held in that room is not freed on disconnect
    _sid_to_code[sid] = code
    current_app.logger.info(f"[join] sid={sid} code={code} seat={seat or 'spectator'}")


def handle_player_ready(data=None):
    sid = _get_sid()
    code = _sid_to_code.get(sid)
    if code is not None:
        _registry().set_ready(code, sid)


def handle_move(move=None):
    code = _sid_to_code.get(_get_sid())
    if code is None:
        current_app.logger.debug(f"[move-skip] sid={_get_sid()} has not joined a room")
        return
    _registry().relay_move(code, move)


def handle_resign(data):
    # Any payload color is ignored; the loser is the sender's own seat
    code = _payload_code(data)
    if code is not None:
        _registry().resign(code, _get_sid())


def handle_request_replay(data):
    code = _payload_code(data)
    if code is not None:
        _registry().replay(code)


def handle_stop_timer(data):
    code = _payload_code(data)
    if code is not None:
        _registry().stop_timer(code)


def handle_close_room(data):
    code = _payload_code(data)
    if code is not None and _registry().close_room(code, _get_sid()):
        current_app.logger.info(f"[close] sid={_get_sid()} code={code}")


_EVENTS = (
    ('connect', handle_connect),
    ('disconnect', handle_disconnect),
    ('joinGame', handle_join_game),
    ('join', handle_join_game),
    ('playerReady', handle_player_ready),
    ('ready', handle_player_ready),
    ('move', handle_move),
    ('resign', handle_resign),
    ('requestReplay', handle_request_replay),
    ('stopTimer', handle_stop_timer),
    ('closeRoom', handle_close_room),
)


def register_socketio_handlers(namespace: str = '/') -> None:
    """Register Socket.IO event handlers on ``namespace``.

    ``join`` and ``ready`` are accepted as aliases of ``joinGame`` and
    ``playerReady``.
    """
    for event, handler in _EVENTS:
        socketio.on_event(event, handler, namespace=namespace)
