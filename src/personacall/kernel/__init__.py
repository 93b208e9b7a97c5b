"""
Kernel Package — in-process plumbing shared by calls and the HTTP layer.
"""

from personacall.kernel.event_bus import EventBus, media_topic, state_topic

__all__ = ["EventBus", "media_topic", "state_topic"]
