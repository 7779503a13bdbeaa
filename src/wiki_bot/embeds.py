"""
Embed construction for wiki-bot responses.

Builds message embeds from a record or from an error, independent of how
the message is delivered.
"""

from dataclasses import dataclass, field
from typing import Any

from .models import Record


@dataclass
class EmbedField:
    name: str
    value: str
    inline: bool = False

    def to_dict(self) -> dict[str, Any]:
        return {"name": self.name, "value": self.value, "inline": self.inline}


@dataclass
class EmbedAuthor:
    """Embed author line: name, optional link and icon."""

    name: str
    url: str = ""
    icon_url: str = ""

    def to_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = {"name": self.name}
        if self.url:
            result["url"] = self.url
        if self.icon_url:
            result["icon_url"] = self.icon_url
        return result


@dataclass
class Embed:
    """A structured message body."""

    title: str | None = None
    description: str | None = None
    author: EmbedAuthor | None = None
    fields: list[EmbedField] = field(default_factory=list)

    def add_field(self, name: str, value: str, inline: bool = False) -> "Embed":
        self.fields.append(EmbedField(name=name, value=value, inline=inline))
        return self

    def to_dict(self) -> dict[str, Any]:
        """Convert to the platform's embed JSON, omitting empty parts."""
        result: dict[str, Any] = {}
        if self.title:
            result["title"] = self.title
        if self.description:
            result["description"] = self.description
        if self.author:
            result["author"] = self.author.to_dict()
        if self.fields:
            result["fields"] = [f.to_dict() for f in self.fields]
        return result


def record_embed(record: Record) -> Embed:
    """
    Render a record.

    The author line carries the record name, linked to the wiki page and
    illustrated with the record image. Each non-empty classification is
    appended as an inline field.
    """
    embed = Embed(
        description=record.description,
        author=EmbedAuthor(name=record.name, url=record.wiki_link, icon_url=record.image_link),
    )
    for label, value in record.classifications():
        embed.add_field(label, value, inline=True)
    return embed


def error_embed(error: Exception) -> Embed:
    """Render a failure as a single "Error" field."""
    return Embed().add_field("Error", str(error) or type(error).__name__)
