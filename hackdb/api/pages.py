"""
Public pages: landing, about, listing, random pick, search and detail view.
"""

from fastapi import APIRouter, Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from hackdb.api.common import hack_not_found, parse_hack_id, read_payload, redirect, render
from hackdb.db import get_app_db
from hackdb.db_handlers import HackDBHandler
from hackdb.dependencies.auth import get_session_state
from hackdb.schemas import SessionState
from hackdb.utils.logger import setup_logger

logger = setup_logger("api.pages")

router = APIRouter(tags=["Pages"])


@router.get("/")
async def index(request: Request, session: SessionState = Depends(get_session_state)):
    return render(request, session, "index")


@router.get("/about")
async def about(request: Request, session: SessionState = Depends(get_session_state)):
    return render(request, session, "about")


@router.get("/all")
async def list_all(
    request: Request,
    session: SessionState = Depends(get_session_state),
    db: AsyncSession = Depends(get_app_db),
    hack_db_handler: HackDBHandler = Depends(),
):
    """List every hack by title."""
    hacks = await hack_db_handler.list_all(db=db)
    return render(request, session, "all", results=hacks)


@router.get("/random")
async def random_hack(
    db: AsyncSession = Depends(get_app_db),
    hack_db_handler: HackDBHandler = Depends(),
):
    """Redirect to a hack chosen uniformly at random."""
    hack = await hack_db_handler.get_random(db=db)
    if hack is None:
        raise hack_not_found()
    return redirect(f"/view/{hack.id}")


@router.get("/search")
async def search_form(
    request: Request, session: SessionState = Depends(get_session_state)
):
    return render(request, session, "search")


@router.post("/search")
async def search_results(
    request: Request,
    session: SessionState = Depends(get_session_state),
    db: AsyncSession = Depends(get_app_db),
    hack_db_handler: HackDBHandler = Depends(),
):
    payload = await read_payload(request)
    query = payload.get("query")
    query = query if isinstance(query, str) else ""
    hacks = await hack_db_handler.search(query, db=db)
    logger.debug(f"Search '{query}' matched {len(hacks)} hacks")
    return render(request, session, "results", query=query, results=hacks)


@router.get("/view/{hack_id}")
async def view_hack(
    hack_id: str,
    request: Request,
    session: SessionState = Depends(get_session_state),
    db: AsyncSession = Depends(get_app_db),
    hack_db_handler: HackDBHandler = Depends(),
):
    hack = await hack_db_handler.get(parse_hack_id(hack_id), db=db)
    if hack is None:
        raise hack_not_found()
    return render(request, session, "view", hack=hack)
