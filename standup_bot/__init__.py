"""
Stand-up Bot

Microsoft Teams bot that runs round-robin stand-ups: roster management,
turn-by-turn questions and a paginated summary posted to a chosen channel.
"""

__version__ = "1.0.0"
