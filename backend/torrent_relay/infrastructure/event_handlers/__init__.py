from .logging_handler import LoggingEventHandler

__all__ = ["LoggingEventHandler"]
