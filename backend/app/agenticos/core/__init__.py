"""Core package"""
from agenticos.core.config import Settings, settings

__all__ = ["Settings", "settings"]
