"""govwatch: POA Network governance ballot watcher."""

__version__ = "0.1.0"
