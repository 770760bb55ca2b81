"""
Trello API client implementation.
"""

import asyncio
import logging
import math
import mimetypes
import os
import time
from functools import lru_cache, partial
from typing import Any, Literal
from urllib.parse import urlencode

import httpx
from pydantic import TypeAdapter, ValidationError
from tenacity import (
    AsyncRetrying,
    RetryCallState,
    retry_if_result,
    stop_after_attempt,
)

from .errors import ErrorCode, TrelloError, classify_error
from .models import (
    Action,
    Attachment,
    AttachmentCreate,
    Board,
    Card,
    CardCreate,
    CardMove,
    CardUpdate,
    CheckItem,
    CheckItemCreate,
    CheckItemUpdate,
    Checklist,
    ChecklistCreate,
    ChecklistUpdate,
    Credentials,
    Label,
    LabelCreate,
    LabelUpdate,
    ListCreate,
    Member,
    RateLimitInfo,
    RequestDescriptor,
    SearchOptions,
    SearchResults,
    StatusFilter,
    TrelloList,
    TrelloResponse,
)

logger = logging.getLogger(__name__)

BASE_URL = "https://api.trello.com/1"
USER_AGENT = "trello-mcp (python-httpx)"

MAX_ATTEMPTS = 3
DEFAULT_TIMEOUT = 15.0
BASE_DELAY = 1.0
MAX_DELAY = 10.0
DEFAULT_RETRY_AFTER = 60.0

Outcome = httpx.Response | TrelloError


async def _sleep(seconds: float) -> None:
    await asyncio.sleep(seconds)


def backoff_delay(attempt: int) -> float:
    """Exponential backoff for the given 1-based attempt: 1s, 2s, 4s... capped at 10s."""
    return min(BASE_DELAY * 2 ** (attempt - 1), MAX_DELAY)


def retry_after_seconds(response: httpx.Response) -> float:
    """Whole seconds to wait from a 429's retry-after header (60 if absent or invalid)."""
    try:
        seconds = float(response.headers.get("retry-after", ""))
    except ValueError:
        return DEFAULT_RETRY_AFTER
    if not math.isfinite(seconds) or seconds < 0:
        return DEFAULT_RETRY_AFTER
    return float(math.floor(seconds))


def _is_retryable(outcome: Outcome) -> bool:
    """Check if an attempt outcome is retryable (network errors, timeouts, 429, 5xx)."""
    if isinstance(outcome, TrelloError):
        return outcome.code in (ErrorCode.NETWORK_ERROR, ErrorCode.TIMEOUT_ERROR)
    return outcome.status_code == 429 or outcome.status_code >= 500


def _wait_for_retry(retry_state: RetryCallState) -> float:
    """Rate limits wait for retry-after; everything else backs off exponentially."""
    outcome = retry_state.outcome.result()
    if isinstance(outcome, httpx.Response) and outcome.status_code == 429:
        return retry_after_seconds(outcome)
    return backoff_delay(retry_state.attempt_number)


def _describe(outcome: Outcome) -> str:
    if isinstance(outcome, TrelloError):
        return outcome.code.value
    return f"HTTP {outcome.status_code}"


def _log_retry(operation: str, retry_state: RetryCallState) -> None:
    """Log retry attempts."""
    outcome = retry_state.outcome.result()
    reason = "Rate limited" if _describe(outcome) == "HTTP 429" else _describe(outcome)
    logger.warning(
        f"{reason} during {operation}, retrying in {retry_state.next_action.sleep:.1f}s "
        f"(attempt {retry_state.attempt_number}/{MAX_ATTEMPTS})",
        extra={
            "operation": operation,
            "attempt": retry_state.attempt_number,
            "delay": retry_state.next_action.sleep,
        },
    )


def _last_outcome(retry_state: RetryCallState) -> Outcome:
    return retry_state.outcome.result()


@lru_cache(maxsize=None)
def _adapter(shape: Any) -> TypeAdapter:
    return TypeAdapter(shape)


def _query_value(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (list, tuple)):
        return ",".join(str(item) for item in value)
    return str(value)


class TrelloClient:
    """
    Async client for the Trello REST API.

    Every method returns a :class:`TrelloResponse` holding the parsed payload and
    the rate limit snapshot of the final response, and raises only
    :class:`TrelloError`.

    Example:
        >>> async with TrelloClient(api_key="...", token="...") as client:
        ...     boards = await client.get_my_boards()
        ...     for board in boards.data:
        ...         print(board.name)
    """

    def __init__(
        self,
        api_key: str,
        token: str,
        *,
        base_url: str = BASE_URL,
        timeout: float = DEFAULT_TIMEOUT,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        """
        Initialize the Trello API client.

        Args:
            api_key: Trello API key
            token: Trello API token
            base_url: API root (default: https://api.trello.com/1)
            timeout: Per-attempt request timeout in seconds (default: 15.0)
            transport: Optional httpx transport, used by tests
        """
        self.credentials = Credentials(api_key=api_key, token=token)
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._client = httpx.AsyncClient(
            headers={"User-Agent": USER_AGENT, "Accept": "application/json"},
            timeout=timeout,
            follow_redirects=True,
            transport=transport,
        )

    async def __aenter__(self) -> "TrelloClient":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        """Close the HTTP client."""
        await self._client.aclose()

    def build_url(self, path: str, params: dict[str, Any] | None = None) -> str:
        """
        Build an authenticated API URL.

        Parameters whose value is None are omitted. The key and token query
        parameters are always set and cannot be overridden by ``params``.
        """
        query = {key: _query_value(value) for key, value in (params or {}).items() if value is not None}
        query["key"] = self.credentials.api_key
        query["token"] = self.credentials.token
        return f"{self.base_url}{path}?{urlencode(query)}"

    # =========================================================================
    # Retry/backoff engine
    # =========================================================================

    async def _send(self, descriptor: RequestDescriptor) -> Outcome:
        """Run one attempt. Transport failures come back classified, not raised."""
        try:
            return await self._client.request(
                descriptor.method,
                descriptor.url,
                json=descriptor.json,
                data=descriptor.data,
                files=descriptor.files,
                headers=descriptor.headers,
                timeout=descriptor.timeout or self.timeout,
            )
        except (httpx.HTTPError, httpx.InvalidURL) as e:
            return classify_error(e)

    async def _execute(self, descriptor: RequestDescriptor, operation: str) -> TrelloResponse[Any]:
        """
        Execute a request with bounded retries.

        Retries network errors, timeouts and 5xx responses with exponential
        backoff, and 429 responses after the server's retry-after delay. Other
        4xx responses fail immediately. At most MAX_ATTEMPTS attempts are made.

        Raises:
            TrelloError: Once the outcome is terminal or attempts are exhausted
        """
        started = time.monotonic()
        attempts = 0

        async def attempt() -> Outcome:
            nonlocal attempts
            attempts += 1
            outcome = await self._send(descriptor)
            self._log_attempt(operation, attempts, started, outcome)
            return outcome

        retrying = AsyncRetrying(
            stop=stop_after_attempt(MAX_ATTEMPTS),
            wait=_wait_for_retry,
            retry=retry_if_result(_is_retryable),
            before_sleep=partial(_log_retry, operation),
            retry_error_callback=_last_outcome,
            sleep=_sleep,
        )
        outcome = await retrying(attempt)

        if isinstance(outcome, httpx.Response) and outcome.is_success:
            return TrelloResponse(
                data=self._decode(outcome, descriptor, operation),
                rate_limit=RateLimitInfo.from_headers(outcome.headers),
            )

        error = classify_error(outcome)
        logger.error(
            f"Trello API {operation} failed after {attempts} attempt(s): {error.message}",
            extra={
                "operation": operation,
                "code": error.code.value,
                "status": error.status,
                "duration_ms": int((time.monotonic() - started) * 1000),
            },
        )
        raise error

    @staticmethod
    def _log_attempt(operation: str, attempt: int, started: float, outcome: Outcome) -> None:
        duration_ms = int((time.monotonic() - started) * 1000)
        if isinstance(outcome, TrelloError):
            status, rate_limit = None, None
        else:
            status, rate_limit = outcome.status_code, RateLimitInfo.from_headers(outcome.headers)
        logger.debug(
            f"Trello API {operation}: attempt {attempt} -> {_describe(outcome)} in {duration_ms}ms",
            extra={
                "operation": operation,
                "attempt": attempt,
                "status": status,
                "duration_ms": duration_ms,
                "rate_limit": rate_limit,
            },
        )

    @staticmethod
    def _decode(response: httpx.Response, descriptor: RequestDescriptor, operation: str) -> Any:
        if descriptor.binary:
            return response.content
        if not response.content:
            return None
        try:
            return response.json()
        except ValueError as e:
            raise TrelloError(
                message=f"Invalid JSON response from Trello API for {operation}",
                code=ErrorCode.UNKNOWN_ERROR,
                status=response.status_code,
                error=str(e),
            ) from e

    async def _request(
        self,
        method: str,
        path: str,
        operation: str,
        *,
        params: dict[str, Any] | None = None,
        json: dict[str, Any] | None = None,
        shape: Any = None,
    ) -> TrelloResponse[Any]:
        """
        Make an authenticated API request and parse the payload into ``shape``.

        Args:
            method: HTTP method (GET, POST, PUT, DELETE)
            path: API path (e.g., "/cards/abc123")
            operation: Human-readable label used in logs
            params: Query parameters; None values are dropped
            json: JSON body for POST/PUT requests
            shape: Type the payload is validated into; None discards the payload

        Returns:
            The typed response envelope

        Raises:
            TrelloError: If the request fails (after retries where applicable)
        """
        descriptor = RequestDescriptor(method=method, url=self.build_url(path, params), json=json)
        response = await self._execute(descriptor, operation)
        response.data = self._parse(shape, response.data, operation)
        return response

    @staticmethod
    def _parse(shape: Any, payload: Any, operation: str) -> Any:
        if shape is None:
            return None
        try:
            return _adapter(shape).validate_python(payload)
        except ValidationError as e:
            raise TrelloError(
                message=f"Unexpected response from Trello API for {operation}",
                code=ErrorCode.UNKNOWN_ERROR,
                error=str(e),
            ) from e

    # =========================================================================
    # Board Methods
    # =========================================================================

    async def get_my_boards(self, filter: StatusFilter = "open") -> TrelloResponse[list[Board]]:
        """
        List the boards of the authenticated member.

        Args:
            filter: "open" (default), "closed" or "all"

        Example:
            >>> response = await client.get_my_boards()
            >>> for board in response.data:
            ...     print(f"{board.name} ({board.id})")
        """
        return await self._request(
            "GET", "/members/me/boards", "Get user boards", params={"filter": filter}, shape=list[Board]
        )

    async def get_board(self, board_id: str, include_details: bool = False) -> TrelloResponse[Board]:
        """
        Get a board, optionally with its open lists and cards.

        Args:
            board_id: The id of the board
            include_details: Also fetch open lists and cards with members and labels
        """
        params = {}
        if include_details:
            params = {"lists": "open", "cards": "open", "card_members": True, "card_labels": True}
        return await self._request("GET", f"/boards/{board_id}", f"Get board {board_id}", params=params, shape=Board)

    async def get_board_lists(self, board_id: str, filter: StatusFilter = "open") -> TrelloResponse[list[TrelloList]]:
        return await self._request(
            "GET",
            f"/boards/{board_id}/lists",
            f"Get board {board_id} lists",
            params={"filter": filter},
            shape=list[TrelloList],
        )

    async def get_board_cards(
        self,
        board_id: str,
        *,
        attachments: str | None = None,
        members: str | None = None,
        filter: str | None = None,
    ) -> TrelloResponse[list[Card]]:
        """
        Get the cards of a board.

        Args:
            board_id: The id of the board
            attachments: "true", "false" or "cover" (optional)
            members: "true" or "false" (optional)
            filter: "all", "open" or "closed" (optional)
        """
        return await self._request(
            "GET",
            f"/boards/{board_id}/cards",
            f"Get cards in board {board_id}",
            params={"attachments": attachments, "members": members, "filter": filter},
            shape=list[Card],
        )

    async def get_board_members(self, board_id: str) -> TrelloResponse[list[Member]]:
        return await self._request(
            "GET", f"/boards/{board_id}/members", f"Get board {board_id} members", shape=list[Member]
        )

    async def get_board_labels(self, board_id: str) -> TrelloResponse[list[Label]]:
        return await self._request(
            "GET", f"/boards/{board_id}/labels", f"Get board {board_id} labels", shape=list[Label]
        )

    # =========================================================================
    # Card Methods
    # =========================================================================

    async def create_card(self, card: CardCreate) -> TrelloResponse[Card]:
        """
        Create a new card in a list.

        Example:
            >>> response = await client.create_card(CardCreate(name="New Card", id_list="5f..."))
            >>> print(response.data.short_url)
        """
        return await self._request("POST", "/cards", f'Create card "{card.name}"', json=card.to_body(), shape=Card)

    async def update_card(self, card_id: str, updates: CardUpdate) -> TrelloResponse[Card]:
        """
        Update card fields.

        Only fields explicitly set on ``updates`` are sent, so
        ``CardUpdate(due=None)`` removes the due date while ``CardUpdate()``
        leaves it untouched.
        """
        return await self._request(
            "PUT", f"/cards/{card_id}", f"Update card {card_id}", json=updates.to_body(), shape=Card
        )

    async def move_card(self, card_id: str, move: CardMove) -> TrelloResponse[Card]:
        return await self._request("PUT", f"/cards/{card_id}", f"Move card {card_id}", json=move.to_body(), shape=Card)

    async def get_card(self, card_id: str, include_details: bool = False) -> TrelloResponse[Card]:
        """
        Get a card.

        Args:
            card_id: The id of the card
            include_details: Also fetch members, labels, checklists and badges
        """
        params = {}
        if include_details:
            params = {"members": True, "labels": True, "checklists": "all", "badges": True}
        return await self._request("GET", f"/cards/{card_id}", f"Get card {card_id}", params=params, shape=Card)

    async def delete_card(self, card_id: str) -> TrelloResponse[None]:
        return await self._request("DELETE", f"/cards/{card_id}", f"Delete card {card_id}")

    async def get_card_actions(
        self, card_id: str, *, filter: str | None = None, limit: int | None = None
    ) -> TrelloResponse[list[Action]]:
        return await self._request(
            "GET",
            f"/cards/{card_id}/actions",
            f"Get actions for card {card_id}",
            params={"filter": filter, "limit": limit},
            shape=list[Action],
        )

    async def add_comment(self, card_id: str, text: str) -> TrelloResponse[Action]:
        """
        Add a comment to a card.

        Returns:
            The commentCard action that was created
        """
        return await self._request(
            "POST",
            f"/cards/{card_id}/actions/comments",
            f"Add comment to card {card_id}",
            json={"text": text},
            shape=Action,
        )

    # =========================================================================
    # Attachment Methods
    # =========================================================================

    async def get_card_attachments(
        self, card_id: str, fields: list[str] | None = None
    ) -> TrelloResponse[list[Attachment]]:
        return await self._request(
            "GET",
            f"/cards/{card_id}/attachments",
            f"Get attachments for card {card_id}",
            params={"fields": fields},
            shape=list[Attachment],
        )

    async def get_card_attachment(
        self, card_id: str, attachment_id: str, fields: list[str] | None = None
    ) -> TrelloResponse[Attachment]:
        return await self._request(
            "GET",
            f"/cards/{card_id}/attachments/{attachment_id}",
            f"Get attachment {attachment_id} for card {card_id}",
            params={"fields": fields},
            shape=Attachment,
        )

    async def add_attachment(
        self,
        card_id: str,
        attachment: AttachmentCreate,
        file_path: str | None = None,
    ) -> TrelloResponse[Attachment]:
        """
        Attach a link or a local file to a card.

        Args:
            card_id: The id of the card
            attachment: URL, name, MIME type and cover flag
            file_path: Local file to upload instead of a URL (optional)

        Raises:
            FileNotFoundError: If file_path does not exist (no request is made)
            TrelloError: If the upload fails
        """
        operation = f"Add attachment to card {card_id}"
        if file_path is None:
            return await self._request(
                "POST", f"/cards/{card_id}/attachments", operation, json=attachment.to_body(), shape=Attachment
            )

        if not os.path.exists(file_path):
            raise FileNotFoundError(f"File not found: {file_path}")

        filename = attachment.name or os.path.basename(file_path)
        content_type = attachment.mime_type or mimetypes.guess_type(filename)[0] or "application/octet-stream"
        content = await asyncio.to_thread(_read_bytes, file_path)

        form = {key: _query_value(value) for key, value in attachment.to_body().items() if key != "url"}
        form.setdefault("name", filename)
        form.setdefault("mimeType", content_type)
        descriptor = RequestDescriptor(
            method="POST",
            url=self.build_url(f"/cards/{card_id}/attachments"),
            data=form,
            files={"file": (filename, content, content_type)},
            timeout=max(self.timeout, 120.0),
        )
        response = await self._execute(descriptor, operation)
        response.data = self._parse(Attachment, response.data, operation)
        return response

    async def delete_attachment(self, card_id: str, attachment_id: str) -> TrelloResponse[None]:
        return await self._request(
            "DELETE",
            f"/cards/{card_id}/attachments/{attachment_id}",
            f"Delete attachment {attachment_id} from card {card_id}",
        )

    async def download_attachment(self, url: str) -> TrelloResponse[bytes]:
        """
        Download the binary content of an uploaded attachment.

        Trello serves attachment downloads only with an OAuth Authorization
        header; key and token are not added to the query string.

        Args:
            url: The attachment's download URL (``Attachment.url``)

        Returns:
            The raw file content
        """
        descriptor = RequestDescriptor(
            method="GET",
            url=url,
            headers={"Authorization": self.credentials.oauth_header, "Accept": "*/*"},
            binary=True,
        )
        return await self._execute(descriptor, "Download attachment")

    # =========================================================================
    # Checklist Methods
    # =========================================================================

    async def get_card_checklists(
        self,
        card_id: str,
        *,
        check_items: str | None = None,
        fields: list[str] | None = None,
    ) -> TrelloResponse[list[Checklist]]:
        return await self._request(
            "GET",
            f"/cards/{card_id}/checklists",
            f"Get checklists for card {card_id}",
            params={"checkItems": check_items, "fields": fields},
            shape=list[Checklist],
        )

    async def create_checklist(self, card_id: str, checklist: ChecklistCreate) -> TrelloResponse[Checklist]:
        return await self._request(
            "POST",
            f"/cards/{card_id}/checklists",
            f"Create checklist on card {card_id}",
            json=checklist.to_body(),
            shape=Checklist,
        )

    async def update_check_item(
        self, card_id: str, check_item_id: str, updates: CheckItemUpdate
    ) -> TrelloResponse[CheckItem]:
        """
        Update a check item on a card (rename, complete/incomplete, reorder).
        """
        return await self._request(
            "PUT",
            f"/cards/{card_id}/checkItem/{check_item_id}",
            f"Update check item {check_item_id} on card {card_id}",
            json=updates.to_body(),
            shape=CheckItem,
        )

    async def delete_check_item(self, card_id: str, check_item_id: str) -> TrelloResponse[None]:
        return await self._request(
            "DELETE",
            f"/cards/{card_id}/checkItem/{check_item_id}",
            f"Delete check item {check_item_id} from card {card_id}",
        )

    async def get_checklist(self, checklist_id: str, check_items: str | None = None) -> TrelloResponse[Checklist]:
        return await self._request(
            "GET",
            f"/checklists/{checklist_id}",
            f"Get checklist {checklist_id}",
            params={"checkItems": check_items},
            shape=Checklist,
        )

    async def update_checklist(self, checklist_id: str, updates: ChecklistUpdate) -> TrelloResponse[Checklist]:
        return await self._request(
            "PUT",
            f"/checklists/{checklist_id}",
            f"Update checklist {checklist_id}",
            json=updates.to_body(),
            shape=Checklist,
        )

    async def delete_checklist(self, checklist_id: str) -> TrelloResponse[None]:
        return await self._request("DELETE", f"/checklists/{checklist_id}", f"Delete checklist {checklist_id}")

    async def get_checklist_check_items(
        self, checklist_id: str, filter: str | None = None
    ) -> TrelloResponse[list[CheckItem]]:
        return await self._request(
            "GET",
            f"/checklists/{checklist_id}/checkItems",
            f"Get check items on checklist {checklist_id}",
            params={"filter": filter},
            shape=list[CheckItem],
        )

    async def create_check_item(self, checklist_id: str, item: CheckItemCreate) -> TrelloResponse[CheckItem]:
        return await self._request(
            "POST",
            f"/checklists/{checklist_id}/checkItems",
            f'Create check item "{item.name}" on checklist {checklist_id}',
            json=item.to_body(),
            shape=CheckItem,
        )

    async def get_check_item_on_checklist(
        self, checklist_id: str, check_item_id: str, fields: str | None = None
    ) -> TrelloResponse[CheckItem]:
        return await self._request(
            "GET",
            f"/checklists/{checklist_id}/checkItems/{check_item_id}",
            f"Get check item {check_item_id} on checklist {checklist_id}",
            params={"fields": fields},
            shape=CheckItem,
        )

    async def get_checklist_field(
        self, checklist_id: str, field: Literal["name", "pos"]
    ) -> TrelloResponse[str | float | None]:
        """
        Get a single checklist field.

        Trello wraps the value as ``{"_value": ...}``; the envelope is unwrapped.
        """
        response = await self._request(
            "GET",
            f"/checklists/{checklist_id}/{field}",
            f"Get checklist {checklist_id} field {field}",
            shape=dict[str, Any],
        )
        response.data = response.data.get("_value")
        return response

    async def update_checklist_field(
        self, checklist_id: str, field: Literal["name", "pos"], value: str
    ) -> TrelloResponse[Checklist]:
        """
        Update a single checklist field. The value travels as a query parameter.
        """
        return await self._request(
            "PUT",
            f"/checklists/{checklist_id}/{field}",
            f"Update checklist {checklist_id} field {field}",
            params={"value": value},
            shape=Checklist,
        )

    async def get_checklist_board(self, checklist_id: str, fields: str | None = None) -> TrelloResponse[Board]:
        return await self._request(
            "GET",
            f"/checklists/{checklist_id}/board",
            f"Get board for checklist {checklist_id}",
            params={"fields": fields},
            shape=Board,
        )

    async def get_checklist_cards(self, checklist_id: str) -> TrelloResponse[list[Card]]:
        """
        Get the card a checklist is on. Trello answers with a list holding that card.
        """
        return await self._request(
            "GET",
            f"/checklists/{checklist_id}/cards",
            f"Get card for checklist {checklist_id}",
            shape=list[Card],
        )

    async def delete_checklist_check_item(self, checklist_id: str, check_item_id: str) -> TrelloResponse[None]:
        return await self._request(
            "DELETE",
            f"/checklists/{checklist_id}/checkItems/{check_item_id}",
            f"Delete check item {check_item_id} from checklist {checklist_id}",
        )

    # =========================================================================
    # Card Label / Member Methods
    # =========================================================================

    async def add_label_to_card(self, card_id: str, label_id: str) -> TrelloResponse[list[str]]:
        """
        Add a label to a card.

        Returns:
            The ids of all labels now on the card
        """
        return await self._request(
            "POST",
            f"/cards/{card_id}/idLabels",
            f"Add label {label_id} to card {card_id}",
            json={"value": label_id},
            shape=list[str],
        )

    async def remove_label_from_card(self, card_id: str, label_id: str) -> TrelloResponse[None]:
        return await self._request(
            "DELETE", f"/cards/{card_id}/idLabels/{label_id}", f"Remove label {label_id} from card {card_id}"
        )

    async def add_member_to_card(self, card_id: str, member_id: str) -> TrelloResponse[list[Member]]:
        """
        Assign a member to a card.

        Returns:
            All members now assigned to the card
        """
        return await self._request(
            "POST",
            f"/cards/{card_id}/idMembers",
            f"Add member {member_id} to card {card_id}",
            json={"value": member_id},
            shape=list[Member],
        )

    async def remove_member_from_card(self, card_id: str, member_id: str) -> TrelloResponse[None]:
        return await self._request(
            "DELETE", f"/cards/{card_id}/idMembers/{member_id}", f"Remove member {member_id} from card {card_id}"
        )

    # =========================================================================
    # Label Methods
    # =========================================================================

    async def create_label(self, label: LabelCreate) -> TrelloResponse[Label]:
        return await self._request("POST", "/labels", f'Create label "{label.name}"', json=label.to_body(), shape=Label)

    async def get_label(self, label_id: str, fields: str | None = None) -> TrelloResponse[Label]:
        return await self._request(
            "GET", f"/labels/{label_id}", f"Get label {label_id}", params={"fields": fields}, shape=Label
        )

    async def update_label(self, label_id: str, updates: LabelUpdate) -> TrelloResponse[Label]:
        return await self._request(
            "PUT", f"/labels/{label_id}", f"Update label {label_id}", json=updates.to_body(), shape=Label
        )

    async def delete_label(self, label_id: str) -> TrelloResponse[None]:
        return await self._request("DELETE", f"/labels/{label_id}", f"Delete label {label_id}")

    async def update_label_field(
        self, label_id: str, field: Literal["name", "color"], value: str
    ) -> TrelloResponse[Label]:
        """
        Update a single label field. The value travels as a query parameter.
        """
        return await self._request(
            "PUT",
            f"/labels/{label_id}/{field}",
            f"Update label {label_id} field {field}",
            params={"value": value},
            shape=Label,
        )

    # =========================================================================
    # List Methods
    # =========================================================================

    async def get_list_cards(
        self, list_id: str, *, filter: StatusFilter | None = None, fields: list[str] | None = None
    ) -> TrelloResponse[list[Card]]:
        return await self._request(
            "GET",
            f"/lists/{list_id}/cards",
            f"Get cards in list {list_id}",
            params={"filter": filter, "fields": fields},
            shape=list[Card],
        )

    async def create_list(self, new_list: ListCreate) -> TrelloResponse[TrelloList]:
        return await self._request(
            "POST", "/lists", f'Create list "{new_list.name}"', json=new_list.to_body(), shape=TrelloList
        )

    # =========================================================================
    # Search / Member Methods
    # =========================================================================

    async def search(self, query: str, options: SearchOptions | None = None) -> TrelloResponse[SearchResults]:
        """
        Search boards, cards, members and organizations.

        Args:
            query: Search terms
            options: Optional filters and limits (unset options are not sent)
        """
        params = {"query": query}
        if options is not None:
            params.update(options.to_params())
        return await self._request("GET", "/search", f'Search for "{query}"', params=params, shape=SearchResults)

    async def get_member(
        self,
        member_id: str,
        *,
        fields: list[str] | None = None,
        boards: str | None = None,
        organizations: str | None = None,
    ) -> TrelloResponse[Member]:
        return await self._request(
            "GET",
            f"/members/{member_id}",
            f"Get member {member_id}",
            params={"fields": fields, "boards": boards, "organizations": organizations},
            shape=Member,
        )

    async def get_current_user(self) -> TrelloResponse[Member]:
        return await self._request(
            "GET",
            "/members/me",
            "Get current user",
            params={"boards": "open", "organizations": "all"},
            shape=Member,
        )


def _read_bytes(file_path: str) -> bytes:
    with open(file_path, "rb") as f:
        return f.read()
