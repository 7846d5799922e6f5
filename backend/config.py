import os

class Config:
    SECRET_KEY = os.environ.get('SECRET_KEY') or 'you-will-never-guess'
    # Upper bound on concurrently open rooms
    MAX_ROOMS = int(os.environ.get('MAX_ROOMS', '100'))
    # Per-side clock allotment (seconds)
    CLOCK_SECONDS = int(os.environ.get('CLOCK_SECONDS', '900'))
    # Clock worker cadence (seconds)
    CLOCK_TICK_SEC = float(os.environ.get('CLOCK_TICK_SEC', '1'))
    # Broadcast timeSync when remaining seconds hit a multiple of this
    CLOCK_RESYNC_SEC = int(os.environ.get('CLOCK_RESYNC_SEC', '10'))
    # Optional: heartbeat interval for clock worker logs (sec). 0 disables.
    CLOCK_HEARTBEAT_SEC = int(os.environ.get('CLOCK_HEARTBEAT_SEC', '0'))
    SOCKETIO_NAMESPACE = os.environ.get('SOCKETIO_NAMESPACE', '/')
