"""
System state re-exports.
"""
from core.db.system.system_store import get_system_state, get_system_stats, save_system_state

__all__ = ["get_system_state", "get_system_stats", "save_system_state"]
