from __future__ import annotations

from typing import Any, Dict, List, Optional

from fastapi import Body, Depends, FastAPI, HTTPException
from pydantic import BaseModel

from .dispatcher import OperationDispatcher, get_dispatcher
from .schemas import OPERATION_SCHEMAS

# Import integration routers
from .integrations.google_calendar.routes import router as calendar_router


app = FastAPI(title="Calendar Tools", version="1.0.0")

# Include integration routers
app.include_router(calendar_router)


# --------------------------------------------------------------------------- #
# Response Models
# --------------------------------------------------------------------------- #

class ToolInfo(BaseModel):
    name: str
    description: str
    input_schema: Dict[str, Any]


class ToolCallResponse(BaseModel):
    ok: bool
    text: str


# --------------------------------------------------------------------------- #
# Tool Endpoints
# --------------------------------------------------------------------------- #

@app.get("/tools", response_model=List[ToolInfo])
def list_tools():
    return [
        ToolInfo(name=schema.name.value, description=schema.description, input_schema=schema.json_schema())
        for schema in OPERATION_SCHEMAS
    ]


@app.post("/tools/{name}", response_model=ToolCallResponse)
def call_tool(
    name: str,
    arguments: Optional[Dict[str, Any]] = Body(default=None),
    dispatcher: OperationDispatcher = Depends(get_dispatcher),
):
    """Run a calendar tool. Tool failures are reported in the body, not the status code."""
    if name not in dispatcher.registry:
        raise HTTPException(status_code=404, detail=f"Unknown tool: {name}")
    result = dispatcher.dispatch(name, arguments)
    return ToolCallResponse(ok=result.ok, text=result.render())
