#!/usr/bin/env python3
"""
FastAPI server for the grocery list.

Exposes the list manager over HTTP so the list can be viewed and edited
from a browser or phone.
"""
import logging
import os
import platform
from contextlib import asynccontextmanager
from datetime import date
from typing import Optional

from fastapi import FastAPI, Form, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel

from .errors import InvalidArgument, IOFailure
from .item import GroceryItem
from .manager import GroceryListManager
from .storage import create_storage

logger = logging.getLogger(__name__)

# Manager shared by all requests
grocery_manager: Optional[GroceryListManager] = None


def configure(manager: Optional[GroceryListManager]) -> None:
    """Bind the server to a manager (None unbinds it)."""
    global grocery_manager
    grocery_manager = manager


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Load the grocery list from the environment when not configured."""
    global grocery_manager

    source = os.environ.get("GROCERY_LIST_SOURCE")
    if grocery_manager is None and source:
        fmt = os.environ.get("GROCERY_LIST_FORMAT", "json")
        grocery_manager = GroceryListManager(create_storage(fmt, source))
        print(f"✅ Loaded grocery list: {len(grocery_manager)} items from {source}")
    elif grocery_manager is None:
        print("⚠️  Warning: no grocery list configured (set GROCERY_LIST_SOURCE)")

    yield


app = FastAPI(title="Grocery List Server", lifespan=lifespan)

# Enable CORS for local development
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


class WebGroceryItem(BaseModel):
    """Grocery item as sent to the web frontend."""
    name: str
    quantity: int
    category: str

    @classmethod
    def from_item(cls, item: GroceryItem) -> "WebGroceryItem":
        return cls(name=item.name, quantity=item.quantity, category=item.category)


class RuntimeInfo(BaseModel):
    """Basic information about the machine running the server."""
    date: str
    python_version: str
    os_name: str


def get_manager() -> GroceryListManager:
    if grocery_manager is None:
        raise HTTPException(status_code=500, detail="Grocery list not loaded")
    return grocery_manager


def runtime_info() -> RuntimeInfo:
    return RuntimeInfo(
        date=date.today().isoformat(),
        python_version=platform.python_version(),
        os_name=platform.system(),
    )


@app.get("/api/groceries")
async def list_groceries_api() -> dict:
    """All items in storage order."""
    items = get_manager().get_items()
    return {"groceries": [WebGroceryItem.from_item(item) for item in items]}


@app.get("/api/groceries/grouped")
async def list_grouped_api() -> dict:
    """Items grouped by category, categories sorted."""
    groups = get_manager().list_items()
    return {
        "categories": {
            category: [WebGroceryItem.from_item(item) for item in items]
            for category, items in groups.items()
        }
    }


@app.post("/api/groceries")
async def add_grocery_api(name: str = Form(...), quantity: int = Form(..., gt=0), category: str = Form("")) -> dict:
    """Add an item, merging with an existing one of the same name and category."""
    manager = get_manager()
    try:
        item = manager.add_item(name, quantity, category)
    except InvalidArgument as e:
        raise HTTPException(status_code=400, detail=str(e))
    except IOFailure as e:
        logger.error("Failed to add grocery item: %s", e)
        raise HTTPException(status_code=500, detail=f"Failed to add grocery item: {e}")

    return {
        "success": True,
        "message": f"Added {quantity} x '{item.name}' to [{item.category}]",
        "item": WebGroceryItem.from_item(item),
    }


@app.delete("/api/groceries")
async def remove_grocery_api(name: str) -> dict:
    """Remove every item with the given name, in any category."""
    manager = get_manager()
    try:
        removed = manager.remove_item(name)
    except InvalidArgument as e:
        raise HTTPException(status_code=400, detail=str(e))
    except IOFailure as e:
        logger.error("Failed to remove grocery item: %s", e)
        raise HTTPException(status_code=500, detail=f"Failed to remove grocery item: {e}")

    return {"success": True, "removed": removed, "name": name}


@app.get("/api/runtime")
async def runtime_api() -> RuntimeInfo:
    return runtime_info()


@app.get("/health")
async def health() -> dict:
    """Health check endpoint."""
    return {
        "status": "ok",
        "list_loaded": grocery_manager is not None,
        "item_count": len(grocery_manager) if grocery_manager is not None else 0,
    }
