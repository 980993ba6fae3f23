"""
Remote drive transports.

``DriveClient`` is the capability contract the engine consumes;
``InMemoryDrive`` implements it without any network access.
"""

from .base import DriveClient
from .memory import InMemoryDrive

__all__ = [
    "DriveClient",
    "InMemoryDrive",
]
