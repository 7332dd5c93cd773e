"""Message bus carrying store requests and canonical pushes."""

from frame_commander.bus.events import StorePush, StoreRequest
from frame_commander.bus.gateway import BusStoreGateway
from frame_commander.bus.queue import MessageBus

__all__ = ["BusStoreGateway", "MessageBus", "StorePush", "StoreRequest"]
