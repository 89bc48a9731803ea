"""Playback engine: delay model, timer backends, and the scheduler.

WHY: Everything time-dependent lives here so the core stays pure. The
scheduler is the single control surface presentation layers call.

HOW: timing.py computes delays, timers.py abstracts the single-shot
timer, scheduler.py is the play/pause state machine with navigation.
"""

from rsvp_reader.playback.scheduler import PlaybackScheduler, PlaybackState
from rsvp_reader.playback.timers import AsyncioTimer, BaseTimer

__all__ = ["AsyncioTimer", "BaseTimer", "PlaybackScheduler", "PlaybackState"]
