import logging
import time

from chessroom import socketio
from chessroom.models import opponent
from .registry import RoomRegistry, Notifier


class ClockSynchronizer:
    """Advances the running clock of every room once per tick.

    - Decrements only rooms that have started and have an active side
    - On reaching zero: clamps to 0, emits gameOverTimeout and stops the clock
    - Otherwise emits timeSync when the remaining time is a multiple of
      ``resync_interval``; clients count down locally in between
    """

    def __init__(self, registry: RoomRegistry, notify: Notifier, resync_interval: int = 10, logger=None):
        self.registry = registry
        self.notify = notify
        self.resync_interval = resync_interval
        self.logger = logger or logging.getLogger(__name__)

    def tick(self) -> int:
        """Run one pass over all rooms. Returns how many clocks were running."""
        running = 0
        for code in self.registry.codes():
            with self.registry.locked(code) as room:
                if room is None or not room.has_started or room.active_timer is None:
                    continue
                running += 1
                side = room.active_timer
                remaining = room.timers[side] - 1

                if remaining <= 0:
                    room.timers[side] = 0
                    room.active_timer = None
                    winner = opponent(side)
                    self.logger.info(f"[timeout] code={code} loser={side} winner={winner}")
                    self.notify('gameOverTimeout', {'winner': winner}, room=code)
                    continue

                room.timers[side] = remaining
                if remaining % self.resync_interval == 0:
                    self.notify('timeSync', room.time_sync(), room=code)
        return running

    def run(self, interval: float = 1.0, heartbeat: int = 0) -> None:
        last_beat = time.time()
        while True:
            socketio.sleep(interval)
            try:
                running = self.tick()
            except Exception:
                # Keep the worker alive
                self.logger.exception("[clock-error] tick failed")
                continue
            if heartbeat and heartbeat > 0 and time.time() - last_beat >= heartbeat:
                last_beat = time.time()
                self.logger.info(f"[clock-heartbeat] rooms={len(self.registry)} running={running}")


def start_clock_worker(app) -> None:
    """Start the background clock for ``app``.

    No-ops in TESTING mode unless ENABLE_CLOCK_IN_TESTS is set; tests call
    ``tick()`` directly instead.
    """
    if app.config.get('TESTING') and not app.config.get('ENABLE_CLOCK_IN_TESTS'):
        return
    clock = app.extensions['room_clock']
    interval = float(app.config.get('CLOCK_TICK_SEC', 1))
    heartbeat = int(app.config.get('CLOCK_HEARTBEAT_SEC', 0))
    app.logger.info(f"[clock-start] interval={interval}s resync={clock.resync_interval}s")
    socketio.start_background_task(clock.run, interval, heartbeat)
