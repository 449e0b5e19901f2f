"""Search schemas for graypaper-search.

The request model mirrors the query string accepted by ``GET /search/{domain}``.
Result models keep the JSON field names the web client already reads, which is
why several of them are lower-cased or camel-cased aliases.
"""

from datetime import datetime
from enum import Enum
from typing import Generic, List, Optional, TypeVar

from pydantic import BaseModel, ConfigDict, Field, SerializeAsAny

MAX_PAGE_SIZE = 100
# OFFSET (page - 1) * pageSize must fit in a signed 64-bit SQL integer
MAX_PAGE = (2**63 - 1) // MAX_PAGE_SIZE + 1


class SearchMode(str, Enum):
    """Retrieval strategy for a query.

    - STRICT: every word of the phrase must appear, as a phrase, in one field
    - FUZZY: any word may match; phrase and primary-field hits are boosted
    - SEMANTIC: embedding similarity, with lexical fallback
    """

    STRICT = "strict"
    FUZZY = "fuzzy"
    SEMANTIC = "semantic"


class SearchRequest(BaseModel):
    """Validated query parameters for one search request."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    q: str
    page: int = Field(default=1, gt=0, le=MAX_PAGE)
    page_size: int = Field(default=10, gt=0, le=MAX_PAGE_SIZE, alias="pageSize")
    search_mode: SearchMode = Field(default=SearchMode.STRICT, alias="searchMode")
    filter_from: Optional[str] = None
    filter_since_gp: Optional[str] = None
    filter_before: Optional[str] = None
    filter_after: Optional[str] = None
    channel_id: Optional[str] = Field(default=None, alias="channelId")
    site: Optional[str] = None


class SearchFilter(BaseModel):
    """An inline ``key:value`` filter token extracted from a raw query."""

    model_config = ConfigDict(frozen=True)

    key: str
    value: str


class ParsedQuery(BaseModel):
    """A raw query split into its search phrase and inline filters."""

    phrase: str
    filters: List[SearchFilter] = Field(default_factory=list)


class SearchResult(BaseModel):
    """Fields shared by every domain result."""

    model_config = ConfigDict(populate_by_name=True)

    score: Optional[float] = None
    similarity: Optional[float] = None


class MessageResult(SearchResult):
    message_id: Optional[str] = Field(default=None, alias="messageid")
    sender: Optional[str] = None
    content: Optional[str] = None
    timestamp: datetime
    room_id: Optional[str] = Field(default=None, alias="roomid")


class GraypaperSectionResult(SearchResult):
    id: int
    title: str
    text: str


class PageResult(SearchResult):
    id: int
    url: str
    title: str
    content: str
    site: Optional[str] = None
    last_modified: datetime = Field(alias="lastModified")


class DiscordResult(SearchResult):
    message_id: Optional[str] = Field(default=None, alias="messageId")
    channel_id: Optional[str] = Field(default=None, alias="channelId")
    sender: Optional[str] = None
    author_id: Optional[str] = Field(default=None, alias="authorId")
    content: Optional[str] = None
    timestamp: datetime


ResultT = TypeVar("ResultT", bound=SearchResult)


class SearchResultPage(BaseModel, Generic[ResultT]):
    """One page of ranked results plus the full match count."""

    model_config = ConfigDict(populate_by_name=True)

    results: List[SerializeAsAny[ResultT]] = Field(default_factory=list)
    total: int = 0
    page: int
    page_size: int = Field(alias="pageSize")
    error: Optional[str] = None

    def to_response(self) -> dict:
        """JSON body for the API; ``error`` only appears when set."""
        payload = self.model_dump(mode="json", by_alias=True)
        if payload.get("error") is None:
            payload.pop("error", None)
        return payload
