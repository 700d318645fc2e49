class DashboardError(Exception):
    """Base exception for all dashboard errors."""
    pass

class CapacityExceeded(DashboardError):
    """Raised when a stream is started while every slot is occupied."""
    pass

class EmptySource(DashboardError):
    """Raised when a stream is started with a blank source reference."""
    pass

class InvalidSlot(DashboardError):
    """Raised when a slot index is outside the slot registry."""
    pass

class MissingModelProfile(DashboardError):
    """Raised when the selected model cannot be resolved from the catalog."""
    pass

class NoActiveStreams(DashboardError):
    """Raised when a session is saved with no stream bound to any slot."""
    pass

class SourceError(DashboardError):
    """Raised when a staged source cannot be prepared."""
    pass

class ConfigurationError(DashboardError):
    """Raised when configuration is invalid."""
    pass
