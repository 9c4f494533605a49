class MoodmapError(Exception):
    """Base class for errors raised by moodmap."""


class ToneServiceError(MoodmapError):
    """The tone analysis API could not score a message."""
