"""
wiki-bot: Chat command service for looking up wiki records.

Routes slash commands and live autocomplete requests to handlers that
search a MongoDB collection and answer with embed messages.
"""

__version__ = "0.1.0"
