"""Tests for MCP error handling decorator."""

from pocket_budget.core.errors import NotFoundError, UsageError, ValidationError as BudgetValidationError
from pocket_budget.core.resolvers import ResolverError
from pocket_budget.mcp.error_handling import handle_tool_errors


class TestHandleToolErrors:
    async def test_returns_result_on_success(self):
        @handle_tool_errors
        async def tool():
            return "ok"

        assert await tool() == "ok"

    async def test_catches_resolver_error(self):
        @handle_tool_errors
        async def tool():
            raise ResolverError("category", "xyz", ["Rent", "Food"])

        result = await tool()
        assert "xyz" in result
        assert "Rent, Food" in result

    async def test_catches_not_found(self):
        @handle_tool_errors
        async def tool():
            raise NotFoundError("transaction", "tx-123")

        result = await tool()
        assert result.startswith("Budget error:")
        assert "tx-123" in result

    async def test_catches_budget_validation_error(self):
        @handle_tool_errors
        async def tool():
            raise BudgetValidationError("Amount must not be negative")

        assert "Amount must not be negative" in await tool()

    async def test_catches_validation_error(self):
        @handle_tool_errors
        async def tool():
            from pocket_budget.models.schemas import SetAmountInput
            SetAmountInput()  # type: ignore[call-arg]

        result = await tool()
        assert "Invalid data" in result
        assert "validation error" in result

    async def test_catches_value_error(self):
        @handle_tool_errors
        async def tool():
            raise ValueError("Invalid month key: '2025-13'")

        result = await tool()
        assert result.startswith("Invalid value:")
        assert "2025-13" in result

    async def test_catches_usage_error(self):
        @handle_tool_errors
        async def tool():
            raise UsageError("Budget state is not loaded")

        assert "not loaded yet" in await tool()

    async def test_catches_unexpected_exception(self):
        @handle_tool_errors
        async def tool():
            raise RuntimeError("boom")

        result = await tool()
        assert "Unexpected error" in result
        assert "RuntimeError" in result
        assert "boom" in result
