"""
RSS Relay - Relay new RSS/Atom entries to chat webhooks.

A Python application that polls RSS/Atom feeds on a schedule and posts
each new entry as a rich embed to every webhook configured for the feed.
"""

__version__ = "1.0.0"
