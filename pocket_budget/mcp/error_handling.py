"""Consistent error handling for MCP tool functions."""

from __future__ import annotations

import functools
import logging
from typing import Callable

from pydantic import ValidationError

from pocket_budget.core.errors import BudgetError, UsageError
from pocket_budget.core.resolvers import ResolverError

logger = logging.getLogger("pocket_budget.mcp")


def handle_tool_errors(fn: Callable) -> Callable:
    """Decorator that catches known exceptions and returns user-friendly error strings.

    MCP tools must return ``str``, not raise.  This ensures all tools
    follow that contract without duplicating try/except blocks.
    """

    @functools.wraps(fn)
    async def wrapper(*args, **kwargs):
        try:
            return await fn(*args, **kwargs)
        except ResolverError as e:
            return str(e)
        except BudgetError as e:
            return f"Budget error: {e}"
        except ValidationError as e:
            return f"Invalid data: {e.error_count()} validation error(s). Check your input."
        except ValueError as e:
            return f"Invalid value: {e}"
        except UsageError:
            logger.exception("Budget engine misused in tool %s", fn.__name__)
            return "Budget is not loaded yet. Please try again."
        except Exception as e:
            logger.exception("Unexpected error in tool %s", fn.__name__)
            return f"Unexpected error: {type(e).__name__}: {e}"

    return wrapper
