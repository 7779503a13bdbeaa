"""Exception hierarchy for wiki-bot."""


class WikiBotError(Exception):
    """Base exception for wiki-bot failures."""


class ConfigError(ValueError, WikiBotError):
    """Missing or invalid configuration detected at startup."""


class RegistrationError(WikiBotError):
    """Invalid command registration (duplicate path, late registration)."""


class InvalidIdentifier(ValueError, WikiBotError):
    """A record identifier could not be parsed into a store key."""


class NotFound(LookupError, WikiBotError):
    """No document matched a single-document query."""


class ConnectionFailure(WikiBotError):
    """The document store is unreachable or a query failed transport-side."""


class StoreTimeout(ConnectionFailure):
    """A store operation ran past its deadline and was abandoned."""


class DecodeFailure(ValueError, WikiBotError):
    """A stored document could not be decoded into a Record."""
