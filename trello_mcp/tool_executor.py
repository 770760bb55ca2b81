"""Tool executor for MCP tools using the Trello API client."""

import asyncio
import logging
from dataclasses import asdict
from pathlib import Path
from typing import Any

from pydantic import ValidationError

from .client import TrelloClient
from .errors import TrelloError
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
    Label,
    LabelCreate,
    LabelUpdate,
    ListCreate,
    Member,
    Organization,
    SearchOptions,
    TrelloList,
    TrelloResponse,
)
from .resources import build_attachment_uri, parse_attachment_uri
from .tool_schemas import TOOLS_BY_NAME

logger = logging.getLogger(__name__)


class ToolError(Exception):
    """A failed tool call. The MCP server reports it as an error result."""


def format_validation_error(error: ValidationError) -> str:
    """Render a pydantic error as ``Validation error: path: message, ...``."""
    issues = []
    for issue in error.errors():
        path = ".".join(str(part) for part in issue["loc"])
        issues.append(f"{path}: {issue['msg']}" if path else issue["msg"])
    return f"Validation error: {', '.join(issues)}"


# =========================================================================
# Result shaping
# =========================================================================


def _rate_limit(response: TrelloResponse) -> dict[str, int] | None:
    return asdict(response.rate_limit) if response.rate_limit else None


def _label(label: Label) -> dict[str, Any]:
    return {"id": label.id, "name": label.name, "color": label.color}


def _member(member: Member) -> dict[str, Any]:
    return {"id": member.id, "full_name": member.full_name, "username": member.username}


def _organization(organization: Organization) -> dict[str, Any]:
    return {"id": organization.id, "name": organization.name, "display_name": organization.display_name}


def _check_item(item: CheckItem) -> dict[str, Any]:
    return {"id": item.id, "name": item.name, "state": item.state, "position": item.pos}


def _checklist(checklist: Checklist) -> dict[str, Any]:
    items = checklist.check_items
    return {
        "id": checklist.id,
        "name": checklist.name,
        "card_id": checklist.id_card,
        "position": checklist.pos,
        "completed": sum(1 for item in items if item.state == "complete"),
        "total": len(items),
        "check_items": [_check_item(item) for item in items],
    }


def _card(card: Card) -> dict[str, Any]:
    return {
        "id": card.id,
        "name": card.name,
        "description": card.desc or "No description",
        "url": card.short_url or card.url,
        "list_id": card.id_list,
        "board_id": card.id_board,
        "position": card.pos,
        "due": card.due,
        "closed": card.closed,
        "labels": [_label(label) for label in card.labels],
        "members": [_member(member) for member in card.members],
    }


def _list(trello_list: TrelloList) -> dict[str, Any]:
    return {
        "id": trello_list.id,
        "name": trello_list.name,
        "closed": trello_list.closed,
        "position": trello_list.pos,
        "board_id": trello_list.id_board,
    }


def _board(board: Board) -> dict[str, Any]:
    return {
        "id": board.id,
        "name": board.name,
        "description": board.desc or "No description",
        "url": board.short_url or board.url,
        "last_activity": board.date_last_activity,
        "closed": board.closed,
    }


def _attachment(card_id: str, attachment: Attachment) -> dict[str, Any]:
    """Uploaded files get a trello:// resource URI instead of their download URL."""
    url = attachment.url
    if attachment.is_upload:
        url = build_attachment_uri(card_id, attachment.id, attachment.name or f"attachment_{attachment.id}")
    return {
        "id": attachment.id,
        "name": attachment.name,
        "url": url,
        "mime_type": attachment.mime_type,
        "date": attachment.date,
        "bytes": attachment.size,
        "is_upload": attachment.is_upload,
        "previews": [
            {"id": p.id, "width": p.width, "height": p.height, "url": p.url} for p in attachment.previews
        ],
    }


def _action(action: Action) -> dict[str, Any]:
    return {
        "id": action.id,
        "type": action.type,
        "date": action.date,
        "member": action.member_creator.full_name if action.member_creator else None,
        "text": action.data.get("text"),
    }


def _write_file(file_path: Path, content: bytes) -> None:
    file_path.parent.mkdir(parents=True, exist_ok=True)
    file_path.write_bytes(content)


class ToolExecutor:
    """Executes tool calls using the Trello API client."""

    def __init__(self, client: TrelloClient):
        """Initialize with a configured API client."""
        self.client = client

    async def execute(self, tool_name: str, tool_input: dict[str, Any] | None) -> dict[str, Any]:
        """
        Execute a tool call and return the result.

        Args:
            tool_name: Name of the tool to execute
            tool_input: Input parameters for the tool

        Returns:
            JSON-serializable result with a summary and the rate limit snapshot

        Raises:
            ToolError: If the tool is unknown, the input is invalid or the API call fails
        """
        tool = TOOLS_BY_NAME.get(tool_name)
        if tool is None:
            raise ToolError(f"Unknown tool: {tool_name}")

        action = tool["action"]
        try:
            args = tool["input_model"].model_validate(tool_input or {})
            return await self._dispatch(tool_name, args)
        except ValidationError as e:
            raise ToolError(f"Error {action}: {format_validation_error(e)}") from e
        except TrelloError as e:
            logger.warning(f"Tool {tool_name} failed: {e}", extra={"tool": tool_name, "error": e.to_dict()})
            raise ToolError(f"Error {action}: {e.message}") from e
        except (ValueError, OSError) as e:
            raise ToolError(f"Error {action}: {e}") from e

    async def _dispatch(self, tool_name: str, args: Any) -> dict[str, Any]:  # noqa: C901
        match tool_name:
            # Boards
            case "list_boards":
                response = await self.client.get_my_boards(args.filter)
                return {
                    "summary": f"Found {len(response.data)} {args.filter} board(s)",
                    "boards": [_board(board) for board in response.data],
                    "rate_limit": _rate_limit(response),
                }

            case "get_board_details":
                response = await self.client.get_board(args.board_id, args.include_details)
                board = response.data
                result = {"summary": f'Board "{board.name}"', "board": _board(board)}
                if args.include_details:
                    result["lists"] = [
                        {**_list(trello_list), "cards": [_card(c) for c in board.cards if c.id_list == trello_list.id]}
                        for trello_list in board.lists
                    ]
                    result["summary"] += f" with {len(board.lists)} list(s) and {len(board.cards)} card(s)"
                result["rate_limit"] = _rate_limit(response)
                return result

            case "get_board_lists":
                response = await self.client.get_board_lists(args.board_id, args.filter)
                return {
                    "summary": f"Found {len(response.data)} {args.filter} list(s)",
                    "board_id": args.board_id,
                    "lists": [_list(trello_list) for trello_list in response.data],
                    "rate_limit": _rate_limit(response),
                }

            case "get_board_cards":
                response = await self.client.get_board_cards(
                    args.board_id, attachments=args.attachments, members=args.members, filter=args.filter
                )
                return {
                    "summary": f"Found {len(response.data)} card(s) on board",
                    "board_id": args.board_id,
                    "cards": [_card(card) for card in response.data],
                    "rate_limit": _rate_limit(response),
                }

            case "get_board_members":
                response = await self.client.get_board_members(args.board_id)
                return {
                    "summary": f"Found {len(response.data)} member(s) on board",
                    "board_id": args.board_id,
                    "members": [_member(member) for member in response.data],
                    "rate_limit": _rate_limit(response),
                }

            case "get_board_labels":
                response = await self.client.get_board_labels(args.board_id)
                return {
                    "summary": f"Found {len(response.data)} label(s) on board",
                    "board_id": args.board_id,
                    "labels": [_label(label) for label in response.data],
                    "rate_limit": _rate_limit(response),
                }

            # Cards
            case "create_card":
                card = CardCreate(
                    name=args.name,
                    id_list=args.list_id,
                    **_optional(args, desc="description", pos="position", due="due"),
                    **_optional(args, id_members="member_ids", id_labels="label_ids"),
                )
                response = await self.client.create_card(card)
                return {
                    "summary": f'Created card "{response.data.name}"',
                    "card": _card(response.data),
                    "rate_limit": _rate_limit(response),
                }

            case "update_card":
                updates = CardUpdate(
                    **_optional(
                        args,
                        name="name",
                        desc="description",
                        due="due",
                        due_complete="due_complete",
                        closed="closed",
                        id_list="list_id",
                        pos="position",
                    )
                )
                response = await self.client.update_card(args.card_id, updates)
                return {
                    "summary": f'Updated card "{response.data.name}"',
                    "card": _card(response.data),
                    "rate_limit": _rate_limit(response),
                }

            case "move_card":
                move = CardMove(id_list=args.list_id, **_optional(args, pos="position"))
                response = await self.client.move_card(args.card_id, move)
                return {
                    "summary": f'Moved card "{response.data.name}" to list {args.list_id}',
                    "card": _card(response.data),
                    "rate_limit": _rate_limit(response),
                }

            case "get_card":
                response = await self.client.get_card(args.card_id, args.include_details)
                card = response.data
                result = {"summary": f'Card "{card.name}"', "card": _card(card)}
                if args.include_details:
                    result["checklists"] = [_checklist(checklist) for checklist in card.checklists]
                    result["badges"] = card.badges.model_dump() if card.badges else None
                result["rate_limit"] = _rate_limit(response)
                return result

            case "delete_card":
                response = await self.client.delete_card(args.card_id)
                return {
                    "summary": f"Deleted card {args.card_id}",
                    "card_id": args.card_id,
                    "rate_limit": _rate_limit(response),
                }

            case "archive_card":
                response = await self.client.update_card(args.card_id, CardUpdate(closed=args.archive))
                verb = "Archived" if args.archive else "Restored"
                return {
                    "summary": f'{verb} card "{response.data.name}"',
                    "card": _card(response.data),
                    "rate_limit": _rate_limit(response),
                }

            case "get_card_actions":
                response = await self.client.get_card_actions(args.card_id, filter=args.filter, limit=args.limit)
                return {
                    "summary": f"Found {len(response.data)} action(s) on card",
                    "card_id": args.card_id,
                    "actions": [_action(action) for action in response.data],
                    "rate_limit": _rate_limit(response),
                }

            case "add_comment":
                response = await self.client.add_comment(args.card_id, args.text)
                return {
                    "summary": "Comment added",
                    "comment": _action(response.data),
                    "rate_limit": _rate_limit(response),
                }

            # Attachments
            case "get_attachments_on_card":
                response = await self.client.get_card_attachments(args.card_id, args.fields)
                return {
                    "summary": f"Found {len(response.data)} attachment(s) for card",
                    "card_id": args.card_id,
                    "attachments": [_attachment(args.card_id, attachment) for attachment in response.data],
                    "rate_limit": _rate_limit(response),
                }

            case "get_attachment_on_card":
                response = await self.client.get_card_attachment(args.card_id, args.attachment_id, args.fields)
                return {
                    "summary": f'Attachment "{response.data.name}"',
                    "attachment": _attachment(args.card_id, response.data),
                    "rate_limit": _rate_limit(response),
                }

            case "add_attachment_to_card":
                attachment = AttachmentCreate(
                    **_optional(args, url="url", name="name", mime_type="mime_type", set_cover="set_cover")
                )
                response = await self.client.add_attachment(args.card_id, attachment, file_path=args.file_path)
                return {
                    "summary": f'Added attachment "{response.data.name}" to card',
                    "attachment": _attachment(args.card_id, response.data),
                    "rate_limit": _rate_limit(response),
                }

            case "delete_attachment_from_card":
                response = await self.client.delete_attachment(args.card_id, args.attachment_id)
                return {
                    "summary": f"Deleted attachment {args.attachment_id} from card",
                    "card_id": args.card_id,
                    "attachment_id": args.attachment_id,
                    "rate_limit": _rate_limit(response),
                }

            case "download_file_attachment":
                return await self._download_file_attachment(args.resource_uri, args.file_path)

            # Checklists
            case "get_card_checklists":
                response = await self.client.get_card_checklists(args.card_id)
                return {
                    "summary": f"Found {len(response.data)} checklist(s) on card",
                    "card_id": args.card_id,
                    "checklists": [_checklist(checklist) for checklist in response.data],
                    "rate_limit": _rate_limit(response),
                }

            case "create_checklist_on_card":
                checklist = ChecklistCreate(
                    name=args.name, **_optional(args, pos="position", id_checklist_source="source_checklist_id")
                )
                response = await self.client.create_checklist(args.card_id, checklist)
                return {
                    "summary": f'Created checklist "{response.data.name}"',
                    "checklist": _checklist(response.data),
                    "rate_limit": _rate_limit(response),
                }

            case "update_check_item":
                updates = CheckItemUpdate(**_optional(args, name="name", state="state", pos="position"))
                response = await self.client.update_check_item(args.card_id, args.check_item_id, updates)
                return {
                    "summary": f'Updated check item "{response.data.name}"',
                    "check_item": _check_item(response.data),
                    "rate_limit": _rate_limit(response),
                }

            case "delete_check_item":
                response = await self.client.delete_check_item(args.card_id, args.check_item_id)
                return {
                    "summary": f"Deleted check item {args.check_item_id}",
                    "rate_limit": _rate_limit(response),
                }

            case "get_checklist":
                response = await self.client.get_checklist(args.checklist_id, args.check_items)
                return {
                    "summary": f'Checklist "{response.data.name}"',
                    "checklist": _checklist(response.data),
                    "rate_limit": _rate_limit(response),
                }

            case "update_checklist":
                updates = ChecklistUpdate(**_optional(args, name="name", pos="position"))
                response = await self.client.update_checklist(args.checklist_id, updates)
                return {
                    "summary": f'Updated checklist "{response.data.name}"',
                    "checklist": _checklist(response.data),
                    "rate_limit": _rate_limit(response),
                }

            case "delete_checklist":
                response = await self.client.delete_checklist(args.checklist_id)
                return {
                    "summary": f"Deleted checklist {args.checklist_id}",
                    "rate_limit": _rate_limit(response),
                }

            case "get_check_items_on_checklist":
                response = await self.client.get_checklist_check_items(args.checklist_id, args.filter)
                return {
                    "summary": f"Found {len(response.data)} check item(s)",
                    "checklist_id": args.checklist_id,
                    "check_items": [_check_item(item) for item in response.data],
                    "rate_limit": _rate_limit(response),
                }

            case "create_check_item_on_checklist":
                item = CheckItemCreate(
                    name=args.name,
                    **_optional(args, pos="position", checked="checked", due="due", id_member="member_id"),
                )
                response = await self.client.create_check_item(args.checklist_id, item)
                return {
                    "summary": f'Created check item "{response.data.name}"',
                    "check_item": _check_item(response.data),
                    "rate_limit": _rate_limit(response),
                }

            case "delete_check_item_on_checklist":
                response = await self.client.delete_checklist_check_item(args.checklist_id, args.check_item_id)
                return {
                    "summary": f"Deleted check item {args.check_item_id}",
                    "rate_limit": _rate_limit(response),
                }

            case "get_check_item_on_checklist":
                response = await self.client.get_check_item_on_checklist(
                    args.checklist_id, args.check_item_id, args.fields
                )
                item = response.data
                return {
                    "summary": f"Check item: {item.name}",
                    "check_item": {**_check_item(item), "due": item.due, "member_id": item.id_member},
                    "rate_limit": _rate_limit(response),
                }

            case "get_checklist_field":
                response = await self.client.get_checklist_field(args.checklist_id, args.field)
                return {
                    "summary": f"Field {args.field} value for checklist {args.checklist_id}",
                    "checklist_id": args.checklist_id,
                    "field": args.field,
                    "value": response.data,
                    "rate_limit": _rate_limit(response),
                }

            case "update_checklist_field":
                response = await self.client.update_checklist_field(args.checklist_id, args.field, args.value)
                return {
                    "summary": f"Updated {args.field} on checklist",
                    "checklist": _checklist(response.data),
                    "rate_limit": _rate_limit(response),
                }

            case "get_board_for_checklist":
                response = await self.client.get_checklist_board(args.checklist_id, args.fields)
                return {
                    "summary": f"Board for checklist: {response.data.name}",
                    "board": _board(response.data),
                    "rate_limit": _rate_limit(response),
                }

            case "get_card_for_checklist":
                response = await self.client.get_checklist_cards(args.checklist_id)
                if not response.data:
                    raise ValueError(f"No card found for checklist {args.checklist_id}")
                card = response.data[0]
                return {
                    "summary": f"Card for checklist: {card.name}",
                    "card": _card(card),
                    "rate_limit": _rate_limit(response),
                }

            # Labels and members on cards
            case "add_label_to_card":
                response = await self.client.add_label_to_card(args.card_id, args.label_id)
                return {
                    "summary": f"Added label {args.label_id} to card",
                    "card_id": args.card_id,
                    "label_ids": response.data,
                    "rate_limit": _rate_limit(response),
                }

            case "remove_label_from_card":
                response = await self.client.remove_label_from_card(args.card_id, args.label_id)
                return {
                    "summary": f"Removed label {args.label_id} from card",
                    "card_id": args.card_id,
                    "rate_limit": _rate_limit(response),
                }

            case "add_member_to_card":
                response = await self.client.add_member_to_card(args.card_id, args.member_id)
                return {
                    "summary": f"Added member {args.member_id} to card",
                    "card_id": args.card_id,
                    "members": [_member(member) for member in response.data],
                    "rate_limit": _rate_limit(response),
                }

            case "remove_member_from_card":
                response = await self.client.remove_member_from_card(args.card_id, args.member_id)
                return {
                    "summary": f"Removed member {args.member_id} from card",
                    "card_id": args.card_id,
                    "rate_limit": _rate_limit(response),
                }

            # Labels
            case "create_label":
                response = await self.client.create_label(
                    LabelCreate(name=args.name, color=args.color, id_board=args.board_id)
                )
                return {
                    "summary": f'Created label "{response.data.name}"',
                    "label": _label(response.data),
                    "rate_limit": _rate_limit(response),
                }

            case "get_label":
                response = await self.client.get_label(args.label_id, args.fields)
                return {
                    "summary": f'Label "{response.data.name}"',
                    "label": _label(response.data),
                    "rate_limit": _rate_limit(response),
                }

            case "update_label":
                response = await self.client.update_label(
                    args.label_id, LabelUpdate(**_optional(args, name="name", color="color"))
                )
                return {
                    "summary": f'Updated label "{response.data.name}"',
                    "label": _label(response.data),
                    "rate_limit": _rate_limit(response),
                }

            case "delete_label":
                response = await self.client.delete_label(args.label_id)
                return {
                    "summary": f"Deleted label {args.label_id}",
                    "rate_limit": _rate_limit(response),
                }

            case "update_label_field":
                response = await self.client.update_label_field(args.label_id, args.field, args.value)
                return {
                    "summary": f"Updated label {args.field}",
                    "label": _label(response.data),
                    "rate_limit": _rate_limit(response),
                }

            # Lists
            case "get_list_cards":
                response = await self.client.get_list_cards(args.list_id, filter=args.filter, fields=args.fields)
                return {
                    "summary": f"Found {len(response.data)} card(s) in list",
                    "list_id": args.list_id,
                    "cards": [_card(card) for card in response.data],
                    "rate_limit": _rate_limit(response),
                }

            case "create_list":
                new_list = ListCreate(name=args.name, id_board=args.board_id, **_optional(args, pos="position"))
                response = await self.client.create_list(new_list)
                return {
                    "summary": f'Created list "{response.data.name}"',
                    "list": _list(response.data),
                    "rate_limit": _rate_limit(response),
                }

            # Search and members
            case "search":
                options = SearchOptions(
                    model_types=",".join(args.model_types) if args.model_types else None,
                    id_boards=",".join(args.board_ids) if args.board_ids else None,
                    cards_limit=args.cards_limit,
                    boards_limit=args.boards_limit,
                    members_limit=args.members_limit,
                    partial=args.partial,
                )
                response = await self.client.search(args.query, options)
                results = response.data
                return {
                    "summary": (
                        f'Search for "{args.query}" found {len(results.cards)} card(s), '
                        f"{len(results.boards)} board(s) and {len(results.members)} member(s)"
                    ),
                    "cards": [_card(card) for card in results.cards],
                    "boards": [_board(board) for board in results.boards],
                    "members": [_member(member) for member in results.members],
                    "organizations": [_organization(org) for org in results.organizations],
                    "rate_limit": _rate_limit(response),
                }

            case "get_member":
                response = await self.client.get_member(
                    args.member_id, boards=args.boards, organizations=args.organizations
                )
                member = response.data
                return {
                    "summary": f"Member {member.full_name or member.username}",
                    "member": {**_member(member), "url": member.url, "bio": member.bio},
                    "boards": [_board(board) for board in member.boards],
                    "organizations": [_organization(org) for org in member.organizations],
                    "rate_limit": _rate_limit(response),
                }

            case "get_current_user":
                response = await self.client.get_current_user()
                member = response.data
                return {
                    "summary": f"Authenticated as {member.full_name or member.username}",
                    "member": {**_member(member), "url": member.url},
                    "boards": [_board(board) for board in member.boards],
                    "organizations": [_organization(org) for org in member.organizations],
                    "rate_limit": _rate_limit(response),
                }

            case _:
                raise ToolError(f"Unknown tool: {tool_name}")

    async def _download_file_attachment(self, resource_uri: str, file_path: str) -> dict[str, Any]:
        """Download an attachment addressed by its trello:// URI to a local path."""
        ref = parse_attachment_uri(resource_uri)
        attachment = (await self.client.get_card_attachment(ref.card_id, ref.attachment_id)).data
        if not attachment.url:
            raise ValueError(f"Attachment {ref.attachment_id} has no download URL")

        content = (await self.client.download_attachment(attachment.url)).data
        destination = Path(file_path).expanduser()
        await asyncio.to_thread(_write_file, destination, content)
        logger.info(f"Downloaded attachment {ref.attachment_id} to {destination}")

        return {
            "success": True,
            "message": "File downloaded successfully",
            "file_path": str(destination),
            "file_name": attachment.name or ref.file_name,
            "file_size": attachment.size or len(content),
            "mime_type": attachment.mime_type or "application/octet-stream",
            "card_id": ref.card_id,
            "attachment_id": ref.attachment_id,
        }


def _optional(args: Any, **fields: str) -> dict[str, Any]:
    """Map tool input fields to request fields, keeping only those the caller set."""
    return {target: getattr(args, source) for target, source in fields.items() if source in args.model_fields_set}
