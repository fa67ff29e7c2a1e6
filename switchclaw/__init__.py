"""
switchclaw - trigger and command router for chat bridges
"""

__version__ = "0.1.0"
__logo__ = "🦀"
