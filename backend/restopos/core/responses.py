"""Standardized API response helpers.

Every endpoint answers with a ``success`` flag next to its payload:
    {"success": true, "message": "...", "<resource>": {...}}

List endpoints additionally include pagination counters:
    {"success": true, "<resources>": [...], "total": <int>, "skip": <int>,
     "limit": <int>, "hasMore": <bool>}
"""

from typing import Any, Iterable, Optional, Type

from pydantic import BaseModel


def dump(schema: Type[BaseModel], obj: Any) -> dict:
    """Validate an ORM object through a response schema and dump it with camelCase keys."""
    return schema.model_validate(obj).model_dump(by_alias=True)


def dump_all(schema: Type[BaseModel], objs: Iterable[Any]) -> list:
    return [dump(schema, obj) for obj in objs]


def success_response(message: Optional[str] = None, **payload: Any) -> dict:
    """Wrap a payload in the standard success envelope."""
    body: dict = {"success": True}
    if message:
        body["message"] = message
    body.update(payload)
    return body


def paginated_response(
    key: str,
    items: list,
    total: int,
    skip: int = 0,
    limit: int = 50,
) -> dict:
    """Wrap a page of serialized items in the standard envelope."""
    return {
        "success": True,
        key: items,
        "total": total,
        "skip": skip,
        "limit": limit,
        "hasMore": (skip + len(items)) < total,
    }
