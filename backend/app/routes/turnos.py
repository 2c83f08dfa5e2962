import logging
from typing import Optional

from fastapi import APIRouter, Body, Depends, HTTPException
from pydantic import ValidationError
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.core.config import Settings, get_settings
from app.core.database import get_db
from app.core.errors import first_error_message
from app.schemas.auth import OkOut
from app.schemas.turno import (
    BatchCreatedOut,
    TurnoBatchCreate,
    TurnoItemOut,
    TurnoListOut,
    TurnoUpdate,
)
from app.services.turnos import (
    clean_empty,
    create_batch,
    delete_turno,
    list_active_turnos,
    update_turno,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/turnos", tags=["turnos"])


@router.post("/batch", response_model=BatchCreatedOut)
def create_turno_batch(
    payload: TurnoBatchCreate,
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings),
):
    try:
        group_id, rows = create_batch(db, payload, ttl_days=settings.TURNO_TTL_DAYS)
    except SQLAlchemyError:
        logger.exception("Failed to create turno batch")
        raise HTTPException(status_code=500, detail="No se pudo crear el lote de turnos")

    return {"ok": True, "group_id": group_id, "count": len(rows)}


@router.get("", response_model=TurnoListOut)
def list_turnos(db: Session = Depends(get_db)):
    try:
        items = list_active_turnos(db)
    except SQLAlchemyError:
        logger.exception("Failed to list turnos")
        raise HTTPException(status_code=500, detail="No se pudo listar turnos")
    return {"ok": True, "items": items}


@router.patch("/{turno_id}", response_model=TurnoItemOut)
def patch_turno(
    turno_id: int,
    body: Optional[dict] = Body(default=None),
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings),
):
    """
    Edits a turno and its whole group; `nTurnos` resizes the group.

    `item` is normally the row named in the path. When a shrink deletes that
    row, `item` is the first surviving row of the group instead, so its id
    differs from the path id.
    """
    # Empty strings/nulls mean "not provided", so strip them before validating.
    try:
        edits = TurnoUpdate.model_validate(clean_empty(body or {}))
    except ValidationError as e:
        raise HTTPException(status_code=400, detail=first_error_message(e.errors()))

    try:
        item = update_turno(db, turno_id, edits, ttl_days=settings.TURNO_TTL_DAYS)
    except SQLAlchemyError:
        logger.exception("Failed to update turno id=%s", turno_id)
        raise HTTPException(status_code=500, detail="No se pudo actualizar el turno")

    return {"ok": True, "item": item}


@router.delete("/{turno_id}", response_model=OkOut)
def remove_turno(turno_id: int, db: Session = Depends(get_db)):
    try:
        delete_turno(db, turno_id)
    except SQLAlchemyError:
        logger.exception("Failed to delete turno id=%s", turno_id)
        raise HTTPException(status_code=500, detail="No se pudo eliminar el turno")
    return {"ok": True}
