"""Exceptions raised by the tracking pipeline."""


class TagtrackError(Exception):
    pass


class CorrelationError(TagtrackError):
    """A control annotation does not fit the context's activity state."""


class ActivityAlreadyOpenError(CorrelationError):
    pass


class NoOpenActivityError(CorrelationError):
    pass
