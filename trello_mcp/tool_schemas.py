"""MCP tool definitions for the Trello API.

Each tool is described by a pydantic input model; ``input_schema`` is the
model's JSON schema, so what clients see and what the executor validates
cannot drift apart.
"""

from typing import Annotated, Any, Literal

from pydantic import BaseModel, ConfigDict, Field, model_validator

from .models import LabelColor, StatusFilter

TrelloId = Annotated[str, Field(pattern=r"^[a-f0-9]{24}$")]
Position = Annotated[float, Field(ge=0)] | Literal["top", "bottom"]
CheckItemState = Literal["complete", "incomplete"]

POSITION_HELP = 'Position: "top", "bottom" or a non-negative number'


class ToolInput(BaseModel):
    pass


# =========================================================================
# Boards
# =========================================================================


class ListBoardsInput(ToolInput):
    filter: StatusFilter = Field(
        default="open",
        description='Filter boards by status: "open" for active boards, "closed" for archived boards, "all" for both',
    )


class BoardInput(ToolInput):
    board_id: TrelloId = Field(description="ID of the board")


class GetBoardDetailsInput(BoardInput):
    include_details: bool = Field(default=False, description="Include the board's open lists and cards")


class GetBoardListsInput(BoardInput):
    filter: StatusFilter = Field(default="open", description="Filter lists by status")


class GetBoardCardsInput(BoardInput):
    attachments: Literal["true", "false", "cover"] | None = Field(
        default=None, description='Include attachments: "true", "false" or "cover"'
    )
    members: Literal["true", "false"] | None = Field(default=None, description="Include card members")
    filter: StatusFilter | None = Field(default=None, description="Filter cards by status")


# =========================================================================
# Cards
# =========================================================================


class CardInput(ToolInput):
    card_id: TrelloId = Field(description="ID of the card")


class CreateCardInput(ToolInput):
    name: str = Field(min_length=1, max_length=16384, description="Name of the card")
    list_id: TrelloId = Field(description="ID of the list to create the card in")
    description: str | None = Field(default=None, max_length=16384, description="Card description (Markdown)")
    position: Position | None = Field(default=None, description=POSITION_HELP)
    due: str | None = Field(default=None, description="Due date in ISO 8601 format")
    member_ids: list[TrelloId] | None = Field(default=None, description="IDs of members to assign")
    label_ids: list[TrelloId] | None = Field(default=None, description="IDs of labels to apply")


class UpdateCardInput(CardInput):
    name: str | None = Field(default=None, min_length=1, max_length=16384, description="New card name")
    description: str | None = Field(default=None, max_length=16384, description="New card description")
    due: str | None = Field(default=None, description="New due date in ISO 8601 format, or null to remove it")
    due_complete: bool | None = Field(default=None, description="Mark the due date complete")
    closed: bool | None = Field(default=None, description="Archive (true) or restore (false) the card")
    list_id: TrelloId | None = Field(default=None, description="ID of the list to move the card to")
    position: Position | None = Field(default=None, description=POSITION_HELP)


class MoveCardInput(CardInput):
    list_id: TrelloId = Field(description="ID of the destination list")
    position: Position | None = Field(default=None, description=POSITION_HELP)


class GetCardInput(CardInput):
    include_details: bool = Field(default=False, description="Include members, labels, checklists and badges")


class ArchiveCardInput(CardInput):
    archive: bool = Field(default=True, description="true to archive, false to restore")


class GetCardActionsInput(CardInput):
    filter: str | None = Field(default=None, description='Action types to include, e.g. "commentCard"')
    limit: int | None = Field(default=None, ge=1, le=1000, description="Maximum number of actions")


class AddCommentInput(CardInput):
    text: str = Field(min_length=1, max_length=16384, description="Comment text")


# =========================================================================
# Attachments
# =========================================================================


class GetAttachmentsInput(CardInput):
    fields: list[str] | None = Field(
        default=None, description='Specific fields to include (e.g., ["name", "url", "mimeType", "date"])'
    )


class AttachmentInput(CardInput):
    attachment_id: TrelloId = Field(description="ID of the attachment")


class GetAttachmentInput(AttachmentInput):
    fields: list[str] | None = Field(default=None, description="Specific fields to include")


class AddAttachmentInput(CardInput):
    url: str | None = Field(default=None, description="URL to attach")
    file_path: str | None = Field(default=None, description="Local file to upload instead of a URL")
    name: str | None = Field(default=None, max_length=256, description="Attachment name")
    mime_type: str | None = Field(default=None, description="MIME type of the attachment")
    set_cover: bool | None = Field(default=None, description="Use the attachment as the card cover")

    @model_validator(mode="after")
    def _url_or_file(self) -> "AddAttachmentInput":
        if (self.url is None) == (self.file_path is None):
            raise ValueError("provide exactly one of url or file_path")
        return self


class DownloadFileAttachmentInput(ToolInput):
    resource_uri: str = Field(
        description="The trello:// resource URI (trello://cards/{cardId}/attachments/{attachmentId}/download/{fileName})"
    )
    file_path: str = Field(min_length=1, description="Local path to write the file to (e.g., ./downloads/report.pdf)")


# =========================================================================
# Checklists
# =========================================================================


class CreateChecklistOnCardInput(CardInput):
    name: str = Field(min_length=1, max_length=16384, description="Name of the checklist")
    position: Position | None = Field(default=None, description=POSITION_HELP)
    source_checklist_id: TrelloId | None = Field(default=None, description="ID of a checklist to copy items from")


class CheckItemOnCardInput(CardInput):
    check_item_id: TrelloId = Field(description="ID of the check item")


class UpdateCheckItemInput(CheckItemOnCardInput):
    name: str | None = Field(default=None, min_length=1, max_length=16384, description="New check item name")
    state: CheckItemState | None = Field(default=None, description='"complete" or "incomplete"')
    position: Position | None = Field(default=None, description=POSITION_HELP)


class ChecklistInput(ToolInput):
    checklist_id: TrelloId = Field(description="ID of the checklist")


class GetChecklistInput(ChecklistInput):
    check_items: Literal["all", "none"] | None = Field(default=None, description="Include check items")


class UpdateChecklistInput(ChecklistInput):
    name: str | None = Field(default=None, min_length=1, max_length=16384, description="New checklist name")
    position: Position | None = Field(default=None, description=POSITION_HELP)


class GetCheckItemsInput(ChecklistInput):
    filter: Literal["all", "none"] | None = Field(default=None, description="Check items to include")


class CreateCheckItemInput(ChecklistInput):
    name: str = Field(min_length=1, max_length=16384, description="Name of the check item")
    position: Position | None = Field(default=None, description=POSITION_HELP)
    checked: bool | None = Field(default=None, description="Create the item already completed")
    due: str | None = Field(default=None, description="Due date in ISO 8601 format")
    member_id: TrelloId | None = Field(default=None, description="ID of the member to assign")


class CheckItemOnChecklistInput(ChecklistInput):
    check_item_id: TrelloId = Field(description="ID of the check item")


class GetCheckItemOnChecklistInput(CheckItemOnChecklistInput):
    fields: str | None = Field(default=None, description="Comma separated check item fields to include")


class ChecklistFieldInput(ChecklistInput):
    field: Literal["name", "pos"] = Field(description="The field to read")


class UpdateChecklistFieldInput(ChecklistInput):
    field: Literal["name", "pos"] = Field(description="The field to update")
    value: str = Field(min_length=1, max_length=16384, description="New value for the field")


class GetChecklistBoardInput(ChecklistInput):
    fields: str = Field(default="all", description='Comma separated board fields to include, or "all"')


# =========================================================================
# Labels and members
# =========================================================================


class CardLabelInput(CardInput):
    label_id: TrelloId = Field(description="ID of the label")


class CardMemberInput(CardInput):
    member_id: TrelloId = Field(description="ID of the member")


class CreateLabelInput(BoardInput):
    name: str = Field(min_length=1, max_length=16384, description="Name of the label")
    color: LabelColor | None = Field(default=None, description="Label color, or null for no color")


class LabelInput(ToolInput):
    label_id: TrelloId = Field(description="ID of the label")


class GetLabelInput(LabelInput):
    fields: str | None = Field(default=None, description='Comma separated fields, e.g. "name,color"')


class UpdateLabelInput(LabelInput):
    name: str | None = Field(default=None, min_length=1, max_length=16384, description="New label name")
    color: LabelColor | None = Field(default=None, description="New label color, or null to remove it")


class UpdateLabelFieldInput(LabelInput):
    field: Literal["name", "color"] = Field(description="Field to update")
    value: str = Field(description="New value for the field")


# =========================================================================
# Lists, search and members
# =========================================================================


class GetListCardsInput(ToolInput):
    list_id: TrelloId = Field(description="ID of the list")
    filter: StatusFilter | None = Field(default=None, description="Filter cards by status")
    fields: list[str] | None = Field(default=None, description="Card fields to include")


class CreateListInput(BoardInput):
    name: str = Field(min_length=1, max_length=16384, description="Name of the list")
    position: Position | None = Field(default=None, description=POSITION_HELP)


class SearchInput(ToolInput):
    model_config = ConfigDict(protected_namespaces=())

    query: str = Field(min_length=1, max_length=16384, description="Search terms")
    model_types: list[Literal["actions", "boards", "cards", "members", "organizations"]] | None = Field(
        default=None, description="Kinds of objects to search"
    )
    board_ids: list[TrelloId] | None = Field(default=None, description="Restrict search to these boards")
    cards_limit: int | None = Field(default=None, ge=1, le=1000, description="Maximum number of cards")
    boards_limit: int | None = Field(default=None, ge=1, le=1000, description="Maximum number of boards")
    members_limit: int | None = Field(default=None, ge=1, le=1000, description="Maximum number of members")
    partial: bool | None = Field(default=None, description="Match partial words")


class GetMemberInput(ToolInput):
    member_id: str = Field(min_length=1, description='ID or username of the member ("me" for yourself)')
    boards: Literal["all", "open", "closed", "none"] | None = Field(default=None, description="Include boards")
    organizations: Literal["all", "none"] | None = Field(default=None, description="Include workspaces")


class NoInput(ToolInput):
    pass


def _tool(name: str, action: str, description: str, input_model: type[ToolInput]) -> dict[str, Any]:
    return {
        "name": name,
        "action": action,
        "description": description,
        "input_model": input_model,
        "input_schema": input_model.model_json_schema(),
    }


# Tool definitions for MCP
TOOLS = [
    _tool(
        "list_boards",
        "listing boards",
        "List all Trello boards accessible to the user. Use this to see all boards you have access to, or filter by status.",
        ListBoardsInput,
    ),
    _tool(
        "get_board_details",
        "getting board details",
        "Get detailed information about a board, optionally including its open lists and cards.",
        GetBoardDetailsInput,
    ),
    _tool("get_board_lists", "getting board lists", "Get the lists on a board.", GetBoardListsInput),
    _tool(
        "get_board_cards",
        "getting board cards",
        "Get the cards on a board, optionally with attachments and members.",
        GetBoardCardsInput,
    ),
    _tool("get_board_members", "getting board members", "Get the members of a board.", BoardInput),
    _tool(
        "get_board_labels",
        "getting board labels",
        "Get the labels defined on a board. Use this to find label IDs before labelling cards.",
        BoardInput,
    ),
    _tool("create_card", "creating card", "Create a new card in a list.", CreateCardInput),
    _tool(
        "update_card",
        "updating card",
        "Update a card's name, description, due date, status or position. Only the fields you pass are changed.",
        UpdateCardInput,
    ),
    _tool("move_card", "moving card", "Move a card to another list, optionally at a given position.", MoveCardInput),
    _tool(
        "get_card",
        "getting card",
        "Get a card, optionally including its members, labels, checklists and badges.",
        GetCardInput,
    ),
    _tool("delete_card", "deleting card", "Permanently delete a card. This cannot be undone.", CardInput),
    _tool("archive_card", "archiving card", "Archive a card, or restore an archived card.", ArchiveCardInput),
    _tool(
        "get_card_actions",
        "getting card actions",
        "Get the activity history of a card (comments, moves, updates).",
        GetCardActionsInput,
    ),
    _tool("add_comment", "adding comment", "Add a comment to a card.", AddCommentInput),
    _tool(
        "get_attachments_on_card",
        "getting card attachments",
        "Get all attachments (files, links) for a card. For file attachments (is_upload=true), the url is a "
        "trello:// resource URI that can be used with download_file_attachment or read as a resource.",
        GetAttachmentsInput,
    ),
    _tool(
        "get_attachment_on_card",
        "getting card attachment",
        "Get a specific attachment from a card. For file attachments the url is a trello:// resource URI.",
        GetAttachmentInput,
    ),
    _tool(
        "add_attachment_to_card",
        "adding attachment",
        "Attach a URL or upload a local file to a card.",
        AddAttachmentInput,
    ),
    _tool(
        "delete_attachment_from_card",
        "deleting attachment",
        "Delete an attachment from a card.",
        AttachmentInput,
    ),
    _tool(
        "download_file_attachment",
        "downloading attachment",
        "Download a card attachment file to a local path. Accepts a trello:// resource URI.",
        DownloadFileAttachmentInput,
    ),
    _tool(
        "get_card_checklists",
        "getting card checklists",
        "Get all checklists on a card, with their check items.",
        CardInput,
    ),
    _tool(
        "create_checklist_on_card",
        "creating checklist",
        "Create a checklist on a card, optionally copying items from another checklist.",
        CreateChecklistOnCardInput,
    ),
    _tool(
        "update_check_item",
        "updating check item",
        "Rename, complete or reopen, or reorder a check item on a card.",
        UpdateCheckItemInput,
    ),
    _tool("delete_check_item", "deleting check item", "Delete a check item from a card.", CheckItemOnCardInput),
    _tool("get_checklist", "getting checklist", "Get a checklist by ID.", GetChecklistInput),
    _tool("update_checklist", "updating checklist", "Rename or reorder a checklist.", UpdateChecklistInput),
    _tool("delete_checklist", "deleting checklist", "Delete a checklist and all its items.", ChecklistInput),
    _tool(
        "get_check_items_on_checklist",
        "getting check items",
        "Get the check items on a checklist.",
        GetCheckItemsInput,
    ),
    _tool(
        "create_check_item_on_checklist",
        "creating check item",
        "Add a check item to a checklist.",
        CreateCheckItemInput,
    ),
    _tool(
        "delete_check_item_on_checklist",
        "deleting check item",
        "Delete a check item from a checklist.",
        CheckItemOnChecklistInput,
    ),
    _tool(
        "get_check_item_on_checklist",
        "getting check item",
        "Get detailed information about a specific check item on a checklist.",
        GetCheckItemOnChecklistInput,
    ),
    _tool(
        "get_checklist_field",
        "getting checklist field",
        "Get a single field value (name or pos) from a checklist.",
        ChecklistFieldInput,
    ),
    _tool(
        "update_checklist_field",
        "updating checklist field",
        "Update a single field (name or pos) on a checklist.",
        UpdateChecklistFieldInput,
    ),
    _tool(
        "get_board_for_checklist",
        "getting board for checklist",
        "Get the board that a checklist belongs to.",
        GetChecklistBoardInput,
    ),
    _tool("get_card_for_checklist", "getting card for checklist", "Get the card that a checklist is on.", ChecklistInput),
    _tool("add_label_to_card", "adding label", "Add an existing board label to a card.", CardLabelInput),
    _tool("remove_label_from_card", "removing label", "Remove a label from a card.", CardLabelInput),
    _tool("add_member_to_card", "adding member", "Assign a board member to a card.", CardMemberInput),
    _tool("remove_member_from_card", "removing member", "Unassign a member from a card.", CardMemberInput),
    _tool("create_label", "creating label", "Create a label on a board.", CreateLabelInput),
    _tool("get_label", "getting label", "Get a label by ID.", GetLabelInput),
    _tool("update_label", "updating label", "Update a label's name and/or color.", UpdateLabelInput),
    _tool("delete_label", "deleting label", "Delete a label from its board and all cards.", LabelInput),
    _tool(
        "update_label_field",
        "updating label field",
        "Update a single field (name or color) of a label.",
        UpdateLabelFieldInput,
    ),
    _tool("get_list_cards", "getting list cards", "Get the cards in a list.", GetListCardsInput),
    _tool("create_list", "creating list", "Create a new list on a board.", CreateListInput),
    _tool(
        "search",
        "searching",
        "Search Trello for boards, cards, members and workspaces.",
        SearchInput,
    ),
    _tool("get_member", "getting member", "Get a member by ID or username.", GetMemberInput),
    _tool(
        "get_current_user",
        "getting current user",
        "Get the authenticated user, with their open boards and workspaces.",
        NoInput,
    ),
]

TOOLS_BY_NAME = {tool["name"]: tool for tool in TOOLS}
