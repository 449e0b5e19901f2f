"""Content domain descriptors.

One generic search engine serves every indexed source. A ``ContentDomain``
tells it which physical fields play which role and which filters the source
supports.
"""

from dataclasses import dataclass
from typing import Dict, Optional, Type

from graypaper_search.models import Base, Discord, GraypaperSection, Message, Page


class UnknownDomainError(LookupError):
    """Raised when a search targets a domain that isn't registered."""


@dataclass(frozen=True)
class ContentDomain:
    """Field mapping and capabilities for one searchable table."""

    name: str
    model: Type[Base]
    primary_field: str
    secondary_field: str
    timestamp_field: Optional[str] = None
    sender_field: Optional[str] = None
    scope_field: Optional[str] = None
    site_field: Optional[str] = None
    supports_date_range: bool = False
    id_field: str = "id"
    embedding_field: str = "embedding"

    @property
    def supports_sender_filter(self) -> bool:
        return self.sender_field is not None

    @property
    def supports_channel_scope(self) -> bool:
        return self.scope_field is not None

    @property
    def supports_site_scope(self) -> bool:
        return self.site_field is not None

    def column(self, field: str):
        """Resolve a logical field name to the mapped model attribute."""
        try:
            return getattr(self.model, field)
        except AttributeError:
            raise ValueError(f"{self.name} has no field named {field!r}") from None


MESSAGES = ContentDomain(
    name="messages",
    model=Message,
    primary_field="content",
    secondary_field="sender",
    timestamp_field="timestamp",
    sender_field="sender",
    scope_field="room_id",
    supports_date_range=True,
)

GRAYPAPER = ContentDomain(
    name="graypaper",
    model=GraypaperSection,
    primary_field="title",
    secondary_field="text",
)

PAGES = ContentDomain(
    name="pages",
    model=Page,
    primary_field="title",
    secondary_field="content",
    timestamp_field="last_modified",
    site_field="site",
)

DISCORDS = ContentDomain(
    name="discords",
    model=Discord,
    primary_field="content",
    secondary_field="sender",
    timestamp_field="timestamp",
    sender_field="sender",
    scope_field="channel_id",
    supports_date_range=True,
)

DOMAINS: Dict[str, ContentDomain] = {
    domain.name: domain for domain in (MESSAGES, GRAYPAPER, PAGES, DISCORDS)
}


def get_domain(name: str) -> ContentDomain:
    try:
        return DOMAINS[name]
    except KeyError:
        raise UnknownDomainError(f"Unknown search domain: {name}") from None
