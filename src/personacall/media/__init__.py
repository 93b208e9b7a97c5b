"""
PersonaCall Media — speech playback kept in sync with the persona video.
"""

from personacall.media.sink import EventBusSink, PlaybackSink
from personacall.media.sync import MediaSyncController, PlaybackState

__all__ = [
    "EventBusSink",
    "MediaSyncController",
    "PlaybackSink",
    "PlaybackState",
]
