"""Room domain services: registry, grace-period timers and session flow.

Everything here is transport agnostic. Socket.IO handlers and HTTP routes
import from this package, keeping transport concerns separated from the
room lifecycle and game rules.
"""

from .registry import RoomRegistry
from .scheduler import GracePeriodManager
from .session import Channel, SessionCoordinator

__all__ = ['Channel', 'GracePeriodManager', 'RoomRegistry', 'SessionCoordinator']
