"""
Calendar tools for LLM integration.

Wraps every registered calendar operation as a langchain StructuredTool
whose args schema is the operation's input model. Calling a tool runs it
through the dispatcher and returns the same text reply the MCP server
sends, "Error: ..." included.
"""
from __future__ import annotations

from typing import Any, Callable, List

from langchain_core.tools import StructuredTool
from pydantic import ValidationError as PydanticValidationError

from .dispatcher import OperationDispatcher
from .errors import ValidationError
from .models import OperationResult
from .schemas import OperationSchema, describe_validation_error


def _validation_handler(schema: OperationSchema) -> Callable[[PydanticValidationError], str]:
    def handle(exc: PydanticValidationError) -> str:
        error = ValidationError(schema.name.value, describe_validation_error(exc))
        return OperationResult.failure(error.message).render()
    return handle


def _make_tool(dispatcher: OperationDispatcher, schema: OperationSchema) -> StructuredTool:
    name = schema.name.value

    def run(**kwargs: Any) -> str:
        # Re-validated by the dispatcher; dump nested models back to plain dicts
        arguments = {
            key: value.model_dump(exclude_none=True) if hasattr(value, "model_dump") else value
            for key, value in kwargs.items()
        }
        return dispatcher.call(name, arguments)

    return StructuredTool.from_function(
        func=run,
        name=name,
        description=schema.description,
        args_schema=schema.model,
        handle_validation_error=_validation_handler(schema),
    )


def get_calendar_tools(dispatcher: OperationDispatcher) -> List[StructuredTool]:
    """One tool per registered operation, for LLM binding."""
    return [_make_tool(dispatcher, schema) for schema in dispatcher.registry]
