"""
Web Interface Module

Provides the FastAPI server, the WebSocket event channel and the session coordinator.
"""

from .app import app
from .coordinator import SessionCoordinator
from .session import Session, SessionRegistry

__all__ = ['app', 'SessionCoordinator', 'Session', 'SessionRegistry']
