"""Success envelope shared by every route."""

from typing import Any

from pydantic import BaseModel


def success_body(data: Any, message: str | None = None) -> dict[str, Any]:
    """Wrap a payload as ``{"success": true, "message"?, "data"}``.

    Pydantic payloads are dumped by alias so caller-facing models keep camelCase keys.
    """
    if isinstance(data, BaseModel):
        data = data.model_dump(mode="json", by_alias=True)

    body: dict[str, Any] = {"success": True}
    if message:
        body["message"] = message
    body["data"] = data
    return body
