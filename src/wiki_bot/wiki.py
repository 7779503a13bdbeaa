"""
Handlers for the /wiki command.

Submitting the command looks a record up by id and renders it. Typing in
the ``query`` option streams name-prefix matches back as choices.
"""

import logging
from collections.abc import Iterable
from typing import Any

from .embeds import error_embed, record_embed
from .errors import ConnectionFailure, DecodeFailure, StoreTimeout, WikiBotError
from .interactions import AutocompleteResult, InteractionEvent, MessageResponse
from .models import Record, Suggestion
from .store import DocumentStore, parse_object_id

logger = logging.getLogger(__name__)

QUERY_OPTION = "query"
DEFAULT_MAX_CHOICES = 25


def collect_suggestions(
    documents: Iterable[dict[str, Any]],
    limit: int = DEFAULT_MAX_CHOICES,
) -> list[Suggestion]:
    """
    Turn search results into at most ``limit`` choices with unique names.

    The first record seen for a display label wins. Documents that fail to decode
    are logged and skipped. A store error part-way through keeps whatever
    was gathered so far; a timeout propagates so the caller can discard it.
    """
    suggestions: list[Suggestion] = []
    seen_names: set[str] = set()
    if limit <= 0:
        return suggestions

    try:
        for document in documents:
            try:
                record = Record.from_document(document)
            except DecodeFailure as e:
                logger.warning(f"Error decoding record: {e}")
                continue

            suggestion = Suggestion.from_record(record)
            if suggestion.name in seen_names:
                continue

            seen_names.add(suggestion.name)
            suggestions.append(suggestion)
            if len(suggestions) >= limit:
                break
    except StoreTimeout:
        raise
    except ConnectionFailure as e:
        logger.error(f"Error during cursor iteration: {e}")

    return suggestions


class WikiLookup:
    """Renders the record whose id was picked in the ``query`` option."""

    def __init__(self, store: DocumentStore, collection: str, timeout: float | None = None):
        self.store = store
        self.collection = collection
        self.timeout = timeout

    def find(self, record_id: str) -> Record:
        """
        Fetch a record by its hex id.

        Raises:
            InvalidIdentifier: if the id cannot be parsed.
            NotFound: if no record has that id.
            ConnectionFailure: if the store could not answer.
        """
        object_id = parse_object_id(record_id)
        return self.store.find_one(self.collection, {"_id": object_id}, timeout=self.timeout)

    def __call__(self, event: InteractionEvent) -> MessageResponse:
        record_id = event.string_option(QUERY_OPTION)

        # Not-found and store failures share the error rendering
        try:
            embed = record_embed(self.find(record_id))
        except WikiBotError as e:
            logger.warning(f"Lookup of {record_id!r} failed: {e}")
            embed = error_embed(e)

        return MessageResponse(embeds=[embed], ephemeral=True)


class WikiAutocomplete:
    """Suggests record names that start with what the user has typed."""

    def __init__(
        self,
        store: DocumentStore,
        collection: str,
        timeout: float | None = 60.0,
        max_choices: int = DEFAULT_MAX_CHOICES,
    ):
        self.store = store
        self.collection = collection
        self.timeout = timeout
        self.max_choices = max_choices

    def suggest(self, query: str) -> list[Suggestion]:
        """
        Run the prefix search for ``query``.

        Never raises for store problems: a search that cannot start or
        runs out of time yields an empty list.
        """
        try:
            with self.store.search(self.collection, query, timeout=self.timeout) as cursor:
                return collect_suggestions(cursor, self.max_choices)
        except StoreTimeout as e:
            logger.warning(f"Autocomplete for {query!r} timed out: {e}")
        except ConnectionFailure as e:
            logger.error(f"Error getting records: {e}")
        return []

    def __call__(self, event: InteractionEvent) -> AutocompleteResult:
        return AutocompleteResult(choices=self.suggest(event.string_option(QUERY_OPTION)))
