"""
moodmap - A chatbot that maps the mood of a conversation.

This package scores chat messages with a tone analysis API, keeps a smoothed
mood point per participant, and replies with an emoji, a chart or an empathy
narrative.
"""

__version__ = "0.1.0"
