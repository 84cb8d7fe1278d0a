"""
Editing routes: add, edit, delete hacks and append versions and links.

Every route here requires edit permission. Failed validation answers 422
before the database is touched.
"""

from fastapi import APIRouter, Depends, HTTPException, Request
from sqlalchemy.ext.asyncio import AsyncSession

from hackdb.api.common import (
    hack_not_found,
    parse_hack_id,
    read_payload,
    redirect,
    render,
    validation_failed,
)
from hackdb.db import get_app_db
from hackdb.db_handlers import HackDBHandler
from hackdb.dependencies.auth import require_edit_permission, require_login
from hackdb.schemas import (
    HackEditForm,
    HackForm,
    LinkForm,
    SessionState,
    VersionForm,
    validate_form,
)
from hackdb.utils.logger import setup_logger

logger = setup_logger("api.hacks")

router = APIRouter(tags=["Editing"])


@router.get("/admin", dependencies=[Depends(require_login)])
async def admin(
    request: Request, session: SessionState = Depends(require_edit_permission)
):
    return render(request, session, "admin")


@router.get("/add")
async def add_form(
    request: Request, session: SessionState = Depends(require_edit_permission)
):
    return render(request, session, "add")


@router.post("/add")
async def add_hack(
    request: Request,
    session: SessionState = Depends(require_edit_permission),
    db: AsyncSession = Depends(get_app_db),
    hack_db_handler: HackDBHandler = Depends(),
):
    """Create a hack from the add form and show it."""
    form = validate_form(HackForm, await read_payload(request))
    if not form.ok:
        return validation_failed(form.errors)

    try:
        hack = await hack_db_handler.create_hack(form.data.to_hack_data(), db=db)
    except Exception as e:
        logger.error(f"Error creating hack: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to create hack") from e
    return redirect(f"/view/{hack.id}")


@router.get("/edit/{hack_id}")
async def edit_form(
    hack_id: str,
    request: Request,
    session: SessionState = Depends(require_edit_permission),
    db: AsyncSession = Depends(get_app_db),
    hack_db_handler: HackDBHandler = Depends(),
):
    hack = await hack_db_handler.get(parse_hack_id(hack_id), db=db)
    if hack is None:
        raise hack_not_found()
    return render(request, session, "edit", hack=hack)


@router.post("/edit/{hack_id}")
async def edit_hack(
    hack_id: str,
    request: Request,
    session: SessionState = Depends(require_edit_permission),
    db: AsyncSession = Depends(get_app_db),
    hack_db_handler: HackDBHandler = Depends(),
):
    """Replace a hack's metadata and star ratings."""
    form = validate_form(HackEditForm, await read_payload(request))
    if not form.ok:
        return validation_failed(form.errors)

    hack = await hack_db_handler.replace_meta_and_stars(
        parse_hack_id(hack_id), form.data.to_hack_data(), db=db
    )
    if hack is None:
        raise hack_not_found()
    return redirect(f"/view/{hack.id}")


@router.get("/edit/{hack_id}/versions/add")
async def add_version_form(
    hack_id: str,
    request: Request,
    session: SessionState = Depends(require_edit_permission),
    db: AsyncSession = Depends(get_app_db),
    hack_db_handler: HackDBHandler = Depends(),
):
    hack = await hack_db_handler.get(parse_hack_id(hack_id), db=db)
    if hack is None:
        raise hack_not_found()
    return render(request, session, "add-version", hack=hack)


@router.post("/edit/{hack_id}/versions/add")
async def add_version(
    hack_id: str,
    request: Request,
    session: SessionState = Depends(require_edit_permission),
    db: AsyncSession = Depends(get_app_db),
    hack_db_handler: HackDBHandler = Depends(),
):
    form = validate_form(VersionForm, await read_payload(request))
    if not form.ok:
        return validation_failed(form.errors)

    parsed_id = parse_hack_id(hack_id)
    version = await hack_db_handler.append_version(
        parsed_id, form.data.to_version_data(), db=db
    )
    if version is None:
        raise hack_not_found()
    return redirect(f"/view/{parsed_id}")


@router.get("/edit/{hack_id}/links/add")
async def add_link_form(
    hack_id: str,
    request: Request,
    session: SessionState = Depends(require_edit_permission),
    db: AsyncSession = Depends(get_app_db),
    hack_db_handler: HackDBHandler = Depends(),
):
    hack = await hack_db_handler.get(parse_hack_id(hack_id), db=db)
    if hack is None:
        raise hack_not_found()
    return render(request, session, "add-link", hack=hack)


@router.post("/edit/{hack_id}/links/add")
async def add_link(
    hack_id: str,
    request: Request,
    session: SessionState = Depends(require_edit_permission),
    db: AsyncSession = Depends(get_app_db),
    hack_db_handler: HackDBHandler = Depends(),
):
    form = validate_form(LinkForm, await read_payload(request))
    if not form.ok:
        return validation_failed(form.errors)

    parsed_id = parse_hack_id(hack_id)
    link = await hack_db_handler.append_link(parsed_id, form.data.to_link_data(), db=db)
    if link is None:
        raise hack_not_found()
    return redirect(f"/view/{parsed_id}")


@router.get("/delete/{hack_id}")
async def delete_confirm(
    hack_id: str,
    request: Request,
    session: SessionState = Depends(require_edit_permission),
    db: AsyncSession = Depends(get_app_db),
    hack_db_handler: HackDBHandler = Depends(),
):
    hack = await hack_db_handler.get(parse_hack_id(hack_id), db=db)
    if hack is None:
        raise hack_not_found()
    return render(request, session, "delete-hack", hack=hack)


@router.post("/delete/{hack_id}")
async def delete_hack(
    hack_id: str,
    session: SessionState = Depends(require_edit_permission),
    db: AsyncSession = Depends(get_app_db),
    hack_db_handler: HackDBHandler = Depends(),
):
    hack = await hack_db_handler.delete_hack(parse_hack_id(hack_id), db=db)
    if hack is None:
        raise hack_not_found()
    return redirect("/")
