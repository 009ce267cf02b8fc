"""
Session module for shuffled flip-card practice runs.
"""

from .manager import SessionManager, Session, Direction

__all__ = [
    'SessionManager',
    'Session',
    'Direction'
]
