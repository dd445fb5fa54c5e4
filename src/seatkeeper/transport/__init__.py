"""Transport - adapters to the OS session manager.

Available adapters:
    Login1SessionDirectory: systemd-logind over the D-Bus system bus.
"""

from seatkeeper.transport.login1 import Login1SessionDirectory

__all__ = ["Login1SessionDirectory"]
