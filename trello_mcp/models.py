"""Data model for the Trello client.

Upstream entity records only guarantee ``id``; every other field is
best-effort because Trello omits fields depending on the ``fields=`` query.
Unknown upstream fields are kept (``extra="allow"``).
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Generic, Literal, TypeVar

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

T = TypeVar("T")

Position = float | Literal["top", "bottom"]
LabelColor = Literal[
    "yellow", "purple", "blue", "red", "green", "orange", "black", "sky", "pink", "lime"
]
StatusFilter = Literal["all", "open", "closed"]


@dataclass(frozen=True)
class Credentials:
    """Trello API key and token. Never shown in reprs or logs."""

    api_key: str = field(repr=False)
    token: str = field(repr=False)

    @property
    def oauth_header(self) -> str:
        return f'OAuth oauth_consumer_key="{self.api_key}", oauth_token="{self.token}"'


@dataclass(frozen=True)
class RateLimitInfo:
    limit: int
    remaining: int
    reset_time: int

    @classmethod
    def from_headers(cls, headers) -> RateLimitInfo | None:
        """Parse Trello's x-rate-limit-api-key-* headers, or None if absent."""
        limit = headers.get("x-rate-limit-api-key-limit")
        if not limit:
            return None
        return cls(
            limit=_to_int(limit, 300),
            remaining=_to_int(headers.get("x-rate-limit-api-key-remaining"), 0),
            reset_time=_to_int(headers.get("x-rate-limit-api-key-reset"), 0),
        )


def _to_int(value: str | None, default: int) -> int:
    try:
        return int(value)
    except (TypeError, ValueError):
        return default


@dataclass
class TrelloResponse(Generic[T]):
    data: T
    rate_limit: RateLimitInfo | None = None


@dataclass
class RequestDescriptor:
    """One logical request; lives across all of its retry attempts."""

    method: str
    url: str
    json: dict[str, Any] | None = None
    data: dict[str, str] | None = None
    files: dict[str, Any] | None = None
    headers: dict[str, str] | None = None
    timeout: float | None = None
    binary: bool = False


# =========================================================================
# Upstream entity records
# =========================================================================


class TrelloModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="allow")


class Label(TrelloModel):
    id: str
    name: str | None = None
    color: str | None = None
    id_board: str | None = None
    uses: int | None = None


class CheckItem(TrelloModel):
    id: str
    name: str | None = None
    state: Literal["complete", "incomplete"] | None = None
    pos: float | None = None
    due: str | None = None
    id_member: str | None = None
    id_checklist: str | None = None


class Checklist(TrelloModel):
    id: str
    name: str | None = None
    id_board: str | None = None
    id_card: str | None = None
    pos: float | None = None
    check_items: list[CheckItem] = []


class AttachmentPreview(TrelloModel):
    id: str | None = None
    width: int | None = None
    height: int | None = None
    url: str | None = None


class Attachment(TrelloModel):
    id: str
    name: str | None = None
    url: str | None = None
    mime_type: str | None = None
    date: str | None = None
    size: int | None = Field(default=None, alias="bytes")
    is_upload: bool = False
    previews: list[AttachmentPreview] = []


class CardBadges(TrelloModel):
    votes: int | None = None
    comments: int | None = None
    attachments: int | None = None
    check_items: int | None = None
    check_items_checked: int | None = None
    description: bool | None = None
    due: str | None = None
    due_complete: bool | None = None


class Organization(TrelloModel):
    id: str
    name: str | None = None
    display_name: str | None = None
    desc: str | None = None
    url: str | None = None


class Member(TrelloModel):
    id: str
    full_name: str | None = None
    username: str | None = None
    initials: str | None = None
    avatar_url: str | None = None
    bio: str | None = None
    url: str | None = None
    boards: list[Board] = []
    organizations: list[Organization] = []


class Card(TrelloModel):
    id: str
    name: str | None = None
    desc: str | None = None
    closed: bool = False
    url: str | None = None
    short_url: str | None = None
    pos: float | None = None
    id_board: str | None = None
    id_list: str | None = None
    date_last_activity: str | None = None
    due: str | None = None
    due_complete: bool | None = None
    labels: list[Label] = []
    members: list[Member] = []
    checklists: list[Checklist] = []
    attachments: list[Attachment] = []
    badges: CardBadges | None = None


class TrelloList(TrelloModel):
    id: str
    name: str | None = None
    closed: bool = False
    pos: float | None = None
    subscribed: bool | None = None
    id_board: str | None = None
    cards: list[Card] = []


class Board(TrelloModel):
    id: str
    name: str | None = None
    desc: str | None = None
    closed: bool = False
    url: str | None = None
    short_url: str | None = None
    date_last_activity: str | None = None
    prefs: dict[str, Any] | None = None
    lists: list[TrelloList] = []
    cards: list[Card] = []


class Action(TrelloModel):
    """A card action (comment, move, update...).

    ``data`` is free-form: its keys depend on ``type``.
    """

    id: str
    type: str | None = None
    date: str | None = None
    id_member_creator: str | None = None
    data: dict[str, Any] = {}
    member_creator: Member | None = None


class SearchResults(TrelloModel):
    boards: list[Board] = []
    cards: list[Card] = []
    members: list[Member] = []
    organizations: list[Organization] = []


Member.model_rebuild()
Card.model_rebuild()
TrelloList.model_rebuild()
Board.model_rebuild()
Action.model_rebuild()
SearchResults.model_rebuild()


# =========================================================================
# Request bodies (serialized with upstream aliases, unset fields omitted)
# =========================================================================


class TrelloRequest(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_body(self) -> dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True, exclude_unset=True)


class CardCreate(TrelloRequest):
    name: str
    id_list: str
    desc: str | None = None
    pos: Position | None = None
    due: str | None = None
    id_members: list[str] | None = None
    id_labels: list[str] | None = None


class CardUpdate(TrelloRequest):
    """Card changes. Explicitly setting ``due=None`` clears the due date."""

    name: str | None = None
    desc: str | None = None
    closed: bool | None = None
    due: str | None = None
    due_complete: bool | None = None
    id_list: str | None = None
    pos: Position | None = None
    id_members: list[str] | None = None
    id_labels: list[str] | None = None


class CardMove(TrelloRequest):
    id_list: str
    pos: Position | None = None


class ListCreate(TrelloRequest):
    name: str
    id_board: str
    pos: Position | None = None


class LabelCreate(TrelloRequest):
    name: str
    color: LabelColor | None
    id_board: str


class LabelUpdate(TrelloRequest):
    name: str | None = None
    color: LabelColor | None = None


class AttachmentCreate(TrelloRequest):
    url: str | None = None
    name: str | None = None
    mime_type: str | None = None
    set_cover: bool | None = None


class ChecklistCreate(TrelloRequest):
    name: str | None = None
    id_checklist_source: str | None = None
    pos: Position | None = None


class ChecklistUpdate(TrelloRequest):
    name: str | None = None
    pos: Position | None = None


class CheckItemCreate(TrelloRequest):
    name: str
    pos: Position | None = None
    checked: bool | None = None
    due: str | None = None
    id_member: str | None = None


class CheckItemUpdate(TrelloRequest):
    name: str | None = None
    state: Literal["complete", "incomplete"] | None = None
    pos: Position | None = None


class SearchOptions(BaseModel):
    """Optional /search query parameters, sent under their own names."""

    model_config = ConfigDict(protected_namespaces=())

    id_boards: str | None = Field(default=None, serialization_alias="idBoards")
    id_organizations: str | None = Field(default=None, serialization_alias="idOrganizations")
    id_cards: str | None = Field(default=None, serialization_alias="idCards")
    model_types: str | None = Field(default=None, serialization_alias="modelTypes")
    board_fields: str | None = None
    boards_limit: int | None = None
    board_organization: bool | None = None
    card_fields: str | None = None
    cards_limit: int | None = None
    cards_page: int | None = None
    card_board: bool | None = None
    card_list: bool | None = None
    card_members: bool | None = None
    card_stickers: bool | None = None
    card_attachments: str | None = None
    organization_fields: str | None = None
    organizations_limit: int | None = None
    member_fields: str | None = None
    members_limit: int | None = None
    partial: bool | None = None

    def to_params(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True, exclude_none=True)
