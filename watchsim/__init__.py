"""
watchsim - Wearable device simulation engine

This is the root package for watchsim, the state machine behind a simulated
smartwatch. Everything runs on a single logical clock so the whole device can
be driven deterministically from tests or in real time from the daemon.

Core modules:
- clock: Logical clock, 1Hz ticker and the named timer arena
- power: Power lifecycle (off / on / transient charging)
- alarm: Recurring daily alarm scheduling
- stopwatch: Elapsed time and lap tracking
- notifications: Notification list, popup slot and auto-generation
- battery: Battery sources and charge/discharge transitions
- cues: Audio cue handle table
- engine: Facade wiring the subsystems and producing state snapshots
"""

__version__ = "0.4.2"
