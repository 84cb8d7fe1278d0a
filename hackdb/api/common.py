"""
Helpers shared by the route modules: page rendering, request body parsing
and the standard error responses.
"""

import uuid
from pathlib import Path
from typing import Any

from fastapi import HTTPException, Request, status
from fastapi.responses import JSONResponse, RedirectResponse
from fastapi.templating import Jinja2Templates

from hackdb.schemas import SessionState

TEMPLATES_DIR = Path(__file__).resolve().parent.parent / "templates"
templates = Jinja2Templates(directory=str(TEMPLATES_DIR))

NOT_FOUND_MESSAGE = "No such hack!"


def render(request: Request, session: SessionState, page: str, **context: Any):
    """Render `pages/<page>.html` with the session flags every page needs."""
    return templates.TemplateResponse(
        request,
        f"pages/{page}.html",
        {
            "is_logged_in": session.is_authenticated,
            "can_edit": session.can_edit,
            **context,
        },
    )


def redirect(location: str) -> RedirectResponse:
    return RedirectResponse(location, status_code=status.HTTP_302_FOUND)


async def read_payload(request: Request) -> dict[str, Any]:
    """Return the request body as a flat dict, from JSON or form encoding."""
    content_type = request.headers.get("content-type", "")
    if content_type.startswith("application/json"):
        try:
            body = await request.json()
        except ValueError as e:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST, detail="Malformed JSON body"
            ) from e
        return body if isinstance(body, dict) else {}
    form = await request.form()
    return dict(form)


def validation_failed(errors: dict[str, str]) -> JSONResponse:
    return JSONResponse(status_code=422, content={"validationResult": errors})


def unprocessable(message: str) -> JSONResponse:
    return JSONResponse(status_code=422, content={"error": message})


def hack_not_found() -> HTTPException:
    return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=NOT_FOUND_MESSAGE)


def parse_hack_id(hack_id: str) -> uuid.UUID:
    """Malformed ids cannot name a stored hack, so they are reported as 404."""
    try:
        return uuid.UUID(hack_id)
    except ValueError as e:
        raise hack_not_found() from e
