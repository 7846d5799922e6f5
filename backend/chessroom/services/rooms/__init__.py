"""Room services: the seat/match registry and the clock synchronizer.

Nothing here imports Flask request context; socket handlers translate
events into registry calls and the registry reports back through an
injected notifier.
"""
