"""
Shutdown Module - Black Box Interface

Purpose: Orderly process termination
Interface: ShutdownCoordinator, GracefulServer
Hidden: Signal plumbing, forced exit timer
"""

from .coordinator import GracefulServer, ShutdownCoordinator

__all__ = ["GracefulServer", "ShutdownCoordinator"]
