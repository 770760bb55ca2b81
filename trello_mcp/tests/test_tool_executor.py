"""Tests for tool schemas and the tool executor."""

import logging
from unittest.mock import AsyncMock

import pytest

from trello_mcp.errors import ErrorCode, TrelloError
from trello_mcp.models import (
    Attachment,
    Board,
    Card,
    CardCreate,
    CardUpdate,
    CheckItem,
    Checklist,
    Label,
    ListCreate,
    RateLimitInfo,
    SearchResults,
    TrelloList,
    TrelloResponse,
)
from trello_mcp.tool_executor import ToolError, ToolExecutor
from trello_mcp.tool_schemas import TOOLS

CARD_ID = "5f1a2b3c4d5e6f7a8b9c0d1e"
LIST_ID = "60aa11bb22cc33dd44ee55ff"
BOARD_ID = "5e0000000000000000000001"
ATTACHMENT_ID = "6a7b8c9d0e1f2a3b4c5d6e7f"
CHECKLIST_ID = "6b0000000000000000000002"
CHECK_ITEM_ID = "6c0000000000000000000003"
LABEL_ID = "6d0000000000000000000004"
RATE_LIMIT = RateLimitInfo(limit=300, remaining=250, reset_time=1700000000)


def card(**fields) -> Card:
    return Card.model_validate({"id": CARD_ID, "name": "Test Card", "idList": LIST_ID, **fields})


@pytest.fixture
def mock_client():
    """Create a mock TrelloClient."""
    return AsyncMock()


@pytest.fixture
def executor(mock_client):
    return ToolExecutor(mock_client)


class TestToolSchemas:
    """Tests for the tool definitions."""

    def test_tool_names_are_unique(self):
        names = [tool["name"] for tool in TOOLS]

        assert len(names) == len(set(names)) == 48

    def test_schemas_are_objects(self):
        for tool in TOOLS:
            assert tool["input_schema"]["type"] == "object", tool["name"]
            assert tool["description"]

    def test_required_fields_come_from_model(self):
        schema = next(tool for tool in TOOLS if tool["name"] == "create_card")["input_schema"]

        assert sorted(schema["required"]) == ["list_id", "name"]


class TestValidation:
    """Tool input validation errors."""

    @pytest.mark.asyncio
    async def test_unknown_tool(self, executor):
        with pytest.raises(ToolError, match="Unknown tool: nope"):
            await executor.execute("nope", {})

    @pytest.mark.asyncio
    async def test_missing_required_field(self, executor, mock_client):
        with pytest.raises(ToolError) as exc_info:
            await executor.execute("create_card", {"name": "x"})

        assert str(exc_info.value).startswith("Error creating card: Validation error: list_id:")
        mock_client.create_card.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_invalid_id_format(self, executor, mock_client):
        with pytest.raises(ToolError) as exc_info:
            await executor.execute("get_card", {"card_id": "not-an-id"})

        assert "card_id:" in str(exc_info.value)
        mock_client.get_card.assert_not_awaited()

    @pytest.mark.asyncio
    @pytest.mark.parametrize("position", [-1, "middle"])
    async def test_invalid_position(self, executor, position):
        with pytest.raises(ToolError, match="Validation error"):
            await executor.execute("move_card", {"card_id": CARD_ID, "list_id": LIST_ID, "position": position})

    @pytest.mark.asyncio
    async def test_invalid_label_color(self, executor):
        with pytest.raises(ToolError, match="color"):
            await executor.execute("create_label", {"board_id": BOARD_ID, "name": "Bug", "color": "magenta"})

    @pytest.mark.asyncio
    async def test_attachment_needs_url_or_file(self, executor):
        with pytest.raises(ToolError, match="exactly one of url or file_path"):
            await executor.execute("add_attachment_to_card", {"card_id": CARD_ID})

    @pytest.mark.asyncio
    async def test_api_error_becomes_tool_error(self, executor, mock_client):
        mock_client.get_card.side_effect = TrelloError("Resource not found", ErrorCode.NOT_FOUND, status=404)

        with pytest.raises(ToolError) as exc_info:
            await executor.execute("get_card", {"card_id": CARD_ID})

        assert str(exc_info.value) == "Error getting card: Resource not found"

    @pytest.mark.asyncio
    async def test_api_error_is_logged_with_details(self, executor, mock_client, caplog):
        mock_client.get_card.side_effect = TrelloError(
            "Resource not found", ErrorCode.NOT_FOUND, status=404, error="404 - Not Found"
        )

        with caplog.at_level(logging.WARNING, logger="trello_mcp.tool_executor"):
            with pytest.raises(ToolError):
                await executor.execute("get_card", {"card_id": CARD_ID})

        record = caplog.records[-1]
        assert record.tool == "get_card"
        assert record.error == {
            "message": "Resource not found",
            "code": "NOT_FOUND",
            "status": 404,
            "error": "404 - Not Found",
        }


class TestCardTools:
    """Tests for card tools."""

    @pytest.mark.asyncio
    async def test_create_card(self, executor, mock_client):
        mock_client.create_card.return_value = TrelloResponse(data=card(), rate_limit=RATE_LIMIT)

        result = await executor.execute(
            "create_card",
            {"name": "Test Card", "list_id": LIST_ID, "description": "Details", "position": "top"},
        )

        mock_client.create_card.assert_awaited_once_with(
            CardCreate(name="Test Card", id_list=LIST_ID, desc="Details", pos="top")
        )
        assert result["summary"] == 'Created card "Test Card"'
        assert result["card"]["id"] == CARD_ID
        assert result["card"]["list_id"] == LIST_ID
        assert result["rate_limit"] == {"limit": 300, "remaining": 250, "reset_time": 1700000000}

    @pytest.mark.asyncio
    async def test_create_card_sends_only_given_fields(self, executor, mock_client):
        mock_client.create_card.return_value = TrelloResponse(data=card())

        await executor.execute("create_card", {"name": "Test Card", "list_id": LIST_ID})

        sent = mock_client.create_card.await_args.args[0]
        assert sent.to_body() == {"name": "Test Card", "idList": LIST_ID}

    @pytest.mark.asyncio
    async def test_update_card_clears_due_date(self, executor, mock_client):
        mock_client.update_card.return_value = TrelloResponse(data=card())

        await executor.execute("update_card", {"card_id": CARD_ID, "due": None})

        card_id, updates = mock_client.update_card.await_args.args
        assert card_id == CARD_ID
        assert updates.to_body() == {"due": None}

    @pytest.mark.asyncio
    async def test_archive_card(self, executor, mock_client):
        mock_client.update_card.return_value = TrelloResponse(data=card(closed=True))

        result = await executor.execute("archive_card", {"card_id": CARD_ID})

        mock_client.update_card.assert_awaited_once_with(CARD_ID, CardUpdate(closed=True))
        assert result["summary"] == 'Archived card "Test Card"'
        assert result["card"]["closed"] is True

    @pytest.mark.asyncio
    async def test_card_without_description(self, executor, mock_client):
        mock_client.get_card.return_value = TrelloResponse(data=card())

        result = await executor.execute("get_card", {"card_id": CARD_ID})

        assert result["card"]["description"] == "No description"
        assert result["rate_limit"] is None

    @pytest.mark.asyncio
    async def test_get_card_details_include_checklists(self, executor, mock_client):
        mock_client.get_card.return_value = TrelloResponse(
            data=card(
                checklists=[
                    {
                        "id": "c1",
                        "name": "Todo",
                        "checkItems": [
                            {"id": "i1", "name": "one", "state": "complete"},
                            {"id": "i2", "name": "two", "state": "incomplete"},
                        ],
                    }
                ]
            )
        )

        result = await executor.execute("get_card", {"card_id": CARD_ID, "include_details": True})

        mock_client.get_card.assert_awaited_once_with(CARD_ID, True)
        assert result["checklists"][0]["completed"] == 1
        assert result["checklists"][0]["total"] == 2


class TestBoardTools:
    """Tests for board tools."""

    @pytest.mark.asyncio
    async def test_list_boards(self, executor, mock_client):
        mock_client.get_my_boards.return_value = TrelloResponse(
            data=[Board.model_validate({"id": BOARD_ID, "name": "Roadmap", "shortUrl": "https://trello.com/b/x"})]
        )

        result = await executor.execute("list_boards", {})

        mock_client.get_my_boards.assert_awaited_once_with("open")
        assert result["summary"] == "Found 1 open board(s)"
        assert result["boards"][0]["url"] == "https://trello.com/b/x"

    @pytest.mark.asyncio
    async def test_board_details_group_cards_by_list(self, executor, mock_client):
        board = Board.model_validate(
            {
                "id": BOARD_ID,
                "name": "Roadmap",
                "lists": [{"id": LIST_ID, "name": "Doing"}],
                "cards": [{"id": CARD_ID, "name": "Ship it", "idList": LIST_ID}],
            }
        )
        mock_client.get_board.return_value = TrelloResponse(data=board)

        result = await executor.execute("get_board_details", {"board_id": BOARD_ID, "include_details": True})

        assert result["lists"][0]["cards"][0]["name"] == "Ship it"

    @pytest.mark.asyncio
    async def test_create_label_without_color(self, executor, mock_client):
        mock_client.create_label.return_value = TrelloResponse(data=Label(id="l1", name="Bug"))

        await executor.execute("create_label", {"board_id": BOARD_ID, "name": "Bug"})

        sent = mock_client.create_label.await_args.args[0]
        assert sent.to_body() == {"name": "Bug", "color": None, "idBoard": BOARD_ID}


class TestAttachmentTools:
    """Tests for attachment tools."""

    @pytest.mark.asyncio
    async def test_uploads_get_resource_uri(self, executor, mock_client):
        mock_client.get_card_attachments.return_value = TrelloResponse(
            data=[
                Attachment.model_validate(
                    {"id": ATTACHMENT_ID, "name": "spec v1.pdf", "url": "https://trello.com/dl", "isUpload": True}
                ),
                Attachment.model_validate({"id": "a2", "name": "Docs", "url": "https://example.com", "isUpload": False}),
            ]
        )

        result = await executor.execute("get_attachments_on_card", {"card_id": CARD_ID})

        upload, link = result["attachments"]
        assert upload["url"] == f"trello://cards/{CARD_ID}/attachments/{ATTACHMENT_ID}/download/spec%20v1.pdf"
        assert link["url"] == "https://example.com"
        assert result["summary"] == "Found 2 attachment(s) for card"

    @pytest.mark.asyncio
    async def test_download_file_attachment(self, executor, mock_client, tmp_path):
        mock_client.get_card_attachment.return_value = TrelloResponse(
            data=Attachment.model_validate(
                {"id": ATTACHMENT_ID, "name": "spec.pdf", "url": "https://trello.com/dl", "mimeType": "application/pdf"}
            )
        )
        mock_client.download_attachment.return_value = TrelloResponse(data=b"%PDF")
        destination = tmp_path / "downloads" / "spec.pdf"

        result = await executor.execute(
            "download_file_attachment",
            {
                "resource_uri": f"trello://cards/{CARD_ID}/attachments/{ATTACHMENT_ID}/download/spec.pdf",
                "file_path": str(destination),
            },
        )

        mock_client.get_card_attachment.assert_awaited_once_with(CARD_ID, ATTACHMENT_ID)
        mock_client.download_attachment.assert_awaited_once_with("https://trello.com/dl")
        assert destination.read_bytes() == b"%PDF"
        assert result["success"] is True
        assert result["file_size"] == 4

    @pytest.mark.asyncio
    async def test_download_rejects_non_attachment_uri(self, executor, mock_client):
        with pytest.raises(ToolError, match="Unsupported resource type for URI"):
            await executor.execute(
                "download_file_attachment", {"resource_uri": "trello://boards/x", "file_path": "/tmp/x"}
            )

        mock_client.get_card_attachment.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_upload_missing_file(self, executor, mock_client):
        mock_client.add_attachment.side_effect = FileNotFoundError("File not found: /nope.txt")

        with pytest.raises(ToolError, match="Error adding attachment: File not found"):
            await executor.execute("add_attachment_to_card", {"card_id": CARD_ID, "file_path": "/nope.txt"})


class TestSearchTool:
    """Tests for the search tool."""

    @pytest.mark.asyncio
    async def test_search(self, executor, mock_client):
        mock_client.search.return_value = TrelloResponse(
            data=SearchResults.model_validate({"cards": [{"id": CARD_ID, "name": "Bug"}]})
        )

        result = await executor.execute(
            "search", {"query": "bug", "model_types": ["cards", "boards"], "cards_limit": 10}
        )

        query, options = mock_client.search.await_args.args
        assert query == "bug"
        assert options.to_params() == {"modelTypes": "cards,boards", "cards_limit": 10}
        assert result["cards"][0]["name"] == "Bug"
        assert result["summary"] == 'Search for "bug" found 1 card(s), 0 board(s) and 0 member(s)'


class TestChecklistTools:
    """Tests for checklist tools."""

    @pytest.mark.asyncio
    async def test_get_check_item_on_checklist(self, executor, mock_client):
        mock_client.get_check_item_on_checklist.return_value = TrelloResponse(
            data=CheckItem.model_validate(
                {"id": CHECK_ITEM_ID, "name": "Write docs", "state": "incomplete", "due": "2024-01-01T00:00:00.000Z"}
            )
        )

        result = await executor.execute(
            "get_check_item_on_checklist", {"checklist_id": CHECKLIST_ID, "check_item_id": CHECK_ITEM_ID}
        )

        mock_client.get_check_item_on_checklist.assert_awaited_once_with(CHECKLIST_ID, CHECK_ITEM_ID, None)
        assert result["summary"] == "Check item: Write docs"
        assert result["check_item"]["due"] == "2024-01-01T00:00:00.000Z"
        assert result["check_item"]["member_id"] is None

    @pytest.mark.asyncio
    async def test_get_checklist_field(self, executor, mock_client):
        mock_client.get_checklist_field.return_value = TrelloResponse(data=16384.0)

        result = await executor.execute("get_checklist_field", {"checklist_id": CHECKLIST_ID, "field": "pos"})

        mock_client.get_checklist_field.assert_awaited_once_with(CHECKLIST_ID, "pos")
        assert result["value"] == 16384.0
        assert result["field"] == "pos"

    @pytest.mark.asyncio
    async def test_checklist_field_must_be_name_or_pos(self, executor, mock_client):
        with pytest.raises(ToolError, match="Error getting checklist field: Validation error: field:"):
            await executor.execute("get_checklist_field", {"checklist_id": CHECKLIST_ID, "field": "idCard"})

        mock_client.get_checklist_field.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_update_checklist_field(self, executor, mock_client):
        mock_client.update_checklist_field.return_value = TrelloResponse(
            data=Checklist.model_validate({"id": CHECKLIST_ID, "name": "Release", "idCard": CARD_ID})
        )

        result = await executor.execute(
            "update_checklist_field", {"checklist_id": CHECKLIST_ID, "field": "name", "value": "Release"}
        )

        mock_client.update_checklist_field.assert_awaited_once_with(CHECKLIST_ID, "name", "Release")
        assert result["summary"] == "Updated name on checklist"
        assert result["checklist"]["card_id"] == CARD_ID

    @pytest.mark.asyncio
    async def test_get_board_for_checklist_defaults_to_all_fields(self, executor, mock_client):
        mock_client.get_checklist_board.return_value = TrelloResponse(
            data=Board.model_validate({"id": BOARD_ID, "name": "Roadmap"})
        )

        result = await executor.execute("get_board_for_checklist", {"checklist_id": CHECKLIST_ID})

        mock_client.get_checklist_board.assert_awaited_once_with(CHECKLIST_ID, "all")
        assert result["summary"] == "Board for checklist: Roadmap"
        assert result["board"]["description"] == "No description"

    @pytest.mark.asyncio
    async def test_get_card_for_checklist(self, executor, mock_client):
        mock_client.get_checklist_cards.return_value = TrelloResponse(data=[card()])

        result = await executor.execute("get_card_for_checklist", {"checklist_id": CHECKLIST_ID})

        assert result["summary"] == "Card for checklist: Test Card"
        assert result["card"]["id"] == CARD_ID

    @pytest.mark.asyncio
    async def test_get_card_for_checklist_without_card(self, executor, mock_client):
        mock_client.get_checklist_cards.return_value = TrelloResponse(data=[])

        with pytest.raises(ToolError, match="Error getting card for checklist: No card found"):
            await executor.execute("get_card_for_checklist", {"checklist_id": CHECKLIST_ID})

    @pytest.mark.asyncio
    async def test_update_check_item_sends_only_given_fields(self, executor, mock_client):
        mock_client.update_check_item.return_value = TrelloResponse(
            data=CheckItem(id=CHECK_ITEM_ID, name="Ship", state="complete")
        )

        result = await executor.execute(
            "update_check_item", {"card_id": CARD_ID, "check_item_id": CHECK_ITEM_ID, "state": "complete"}
        )

        card_id, check_item_id, updates = mock_client.update_check_item.await_args.args
        assert (card_id, check_item_id) == (CARD_ID, CHECK_ITEM_ID)
        assert updates.to_body() == {"state": "complete"}
        assert result["check_item"]["state"] == "complete"


class TestCardLabelAndListTools:
    """Tests for label/member assignment and list tools."""

    @pytest.mark.asyncio
    async def test_add_label_to_card(self, executor, mock_client):
        mock_client.add_label_to_card.return_value = TrelloResponse(data=[LABEL_ID])

        result = await executor.execute("add_label_to_card", {"card_id": CARD_ID, "label_id": LABEL_ID})

        mock_client.add_label_to_card.assert_awaited_once_with(CARD_ID, LABEL_ID)
        assert result["label_ids"] == [LABEL_ID]

    @pytest.mark.asyncio
    async def test_remove_member_from_card(self, executor, mock_client):
        mock_client.remove_member_from_card.return_value = TrelloResponse(data=None)
        member_id = "6e0000000000000000000005"

        result = await executor.execute("remove_member_from_card", {"card_id": CARD_ID, "member_id": member_id})

        mock_client.remove_member_from_card.assert_awaited_once_with(CARD_ID, member_id)
        assert result["summary"] == f"Removed member {member_id} from card"

    @pytest.mark.asyncio
    async def test_create_list(self, executor, mock_client):
        mock_client.create_list.return_value = TrelloResponse(
            data=TrelloList(id=LIST_ID, name="Doing", id_board=BOARD_ID)
        )

        result = await executor.execute("create_list", {"board_id": BOARD_ID, "name": "Doing", "position": "top"})

        mock_client.create_list.assert_awaited_once_with(ListCreate(name="Doing", id_board=BOARD_ID, pos="top"))
        assert result["list"]["board_id"] == BOARD_ID

    @pytest.mark.asyncio
    async def test_get_list_cards(self, executor, mock_client):
        mock_client.get_list_cards.return_value = TrelloResponse(data=[card()])

        result = await executor.execute("get_list_cards", {"list_id": LIST_ID, "filter": "open"})

        mock_client.get_list_cards.assert_awaited_once_with(LIST_ID, filter="open", fields=None)
        assert result["summary"] == "Found 1 card(s) in list"
