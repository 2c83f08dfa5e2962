"""
Appointment batches.

A booking of N turnos is stored as N rows sharing one ``grupo_id`` and
numbered 1..N by ``turno_index``. Resizing a group appends rows after the
highest index or deletes from the tail, so resizing to the same N is a no-op.
"""
from __future__ import annotations

import logging
from datetime import date, datetime, timedelta, timezone
from typing import Any, Optional
from uuid import uuid4

from fastapi import HTTPException
from sqlalchemy.orm import Session

from app.models.turno import Turno
from app.schemas.turno import TurnoBatchCreate, TurnoUpdate

logger = logging.getLogger(__name__)

DEFAULT_TTL_DAYS = 7
OTROS = "otros"

# Fields every row of a group must agree on.
SHARED_FIELDS = ("nombre", "servicio", "otro_servicio", "fecha", "hora", "telefono")


def _now_utc() -> datetime:
    return datetime.now(timezone.utc)


def turno_expiry(ttl_days: int = DEFAULT_TTL_DAYS) -> datetime:
    return _now_utc() + timedelta(days=ttl_days)


def new_group_id() -> str:
    return str(uuid4())


def _blank_to_none(value: Optional[str]) -> Optional[str]:
    return (value or "").strip() or None


def clean_empty(raw: dict[str, Any]) -> dict[str, Any]:
    """
    Drops keys whose value is "" or None so omitted optional fields never
    trip format validation (e.g. fecha="" against the date pattern).
    """
    return {k: v for k, v in raw.items() if v is not None and v != ""}


def get_turno_or_404(db: Session, turno_id: int) -> Turno:
    turno = db.get(Turno, turno_id)
    if not turno:
        raise HTTPException(status_code=404, detail="Turno no encontrado")
    return turno


def shared_values(turno: Turno) -> dict[str, Any]:
    return {f: getattr(turno, f) for f in SHARED_FIELDS}


def get_group_rows(db: Session, grupo_id: str) -> list[Turno]:
    return (
        db.query(Turno)
        .filter(Turno.grupo_id == grupo_id)
        .order_by(Turno.turno_index.asc(), Turno.id.asc())
        .all()
    )


# -----------------------------
# Create
# -----------------------------
def create_batch(db: Session, payload: TurnoBatchCreate, ttl_days: int = DEFAULT_TTL_DAYS) -> tuple[str, list[Turno]]:
    """
    Creates payload.n_turnos rows under one fresh group id, atomically.
    """
    otro = (payload.otro_servicio or "").strip()
    # "otros" + free text => the free text is the service shown to staff.
    effective_service = otro if payload.servicio == OTROS and otro else payload.servicio

    group_id = new_group_id()
    expires_at = turno_expiry(ttl_days)
    base = {
        "nombre": payload.nombre,
        "servicio": effective_service,
        "otro_servicio": (otro or None) if payload.servicio == OTROS else None,
        "fecha": date.fromisoformat(payload.fecha),
        "hora": payload.hora,
        "telefono": _blank_to_none(payload.telefono),
        "grupo_id": group_id,
        "expires_at": expires_at,
    }

    rows = [Turno(**base, turno_index=i + 1) for i in range(payload.n_turnos)]
    try:
        db.add_all(rows)
        db.commit()
    except Exception:
        db.rollback()
        raise

    logger.info("Created turno batch group_id=%s count=%s", group_id, len(rows))
    return group_id, rows


# -----------------------------
# Read
# -----------------------------
def list_active_turnos(db: Session, now: Optional[datetime] = None) -> list[Turno]:
    now = now or _now_utc()
    return (
        db.query(Turno)
        .filter(Turno.expires_at > now)
        .order_by(Turno.fecha.asc(), Turno.hora.asc(), Turno.nombre.asc())
        .all()
    )


# -----------------------------
# Edit + resize
# -----------------------------
def build_edit_values(turno: Turno, edits: TurnoUpdate) -> dict[str, Any]:
    """
    Turns a validated partial edit into column values. Only fields that were
    provided show up in the result.
    """
    provided = edits.model_fields_set
    data: dict[str, Any] = {}

    if "nombre" in provided and edits.nombre is not None:
        data["nombre"] = edits.nombre
    if "servicio" in provided and edits.servicio is not None:
        data["servicio"] = edits.servicio
    if "otro_servicio" in provided:
        data["otro_servicio"] = _blank_to_none(edits.otro_servicio)
    if "fecha" in provided and edits.fecha is not None:
        data["fecha"] = date.fromisoformat(edits.fecha)
    if "hora" in provided and edits.hora is not None:
        data["hora"] = edits.hora
    if "telefono" in provided:
        data["telefono"] = _blank_to_none(edits.telefono)

    # Switching to "otros" without new text keeps the text already on file.
    if data.get("servicio") == OTROS and "otro_servicio" not in data:
        data["otro_servicio"] = turno.otro_servicio

    return data


def ensure_group(db: Session, turno: Turno) -> str:
    """
    Gives a standalone row its own group (index 1 when unset) and flushes it
    so the group query below sees it.
    """
    if not turno.grupo_id:
        turno.grupo_id = new_group_id()
        turno.turno_index = turno.turno_index or 1
        db.flush()
    return turno.grupo_id


def resize_group(db: Session, turno: Turno, target: int, ttl_days: int = DEFAULT_TTL_DAYS) -> list[Turno]:
    """
    Converges the group of ``turno`` to ``target`` rows. Does not commit.

    Growing appends copies of the row's (post-edit) shared fields numbered
    after the current max index; shrinking keeps the first ``target`` rows
    by index and deletes the rest. Returns the surviving rows in order.
    """
    grupo_id = ensure_group(db, turno)
    rows = get_group_rows(db, grupo_id)
    diff = target - len(rows)
    logger.info("Resizing group_id=%s size=%s target=%s diff=%s", grupo_id, len(rows), target, diff)

    if diff > 0:
        max_idx = max((r.turno_index or 0 for r in rows), default=0)
        base = shared_values(turno)
        expires_at = turno_expiry(ttl_days)
        added = [
            Turno(**base, grupo_id=grupo_id, turno_index=max_idx + i + 1, expires_at=expires_at)
            for i in range(diff)
        ]
        db.add_all(added)
        rows.extend(added)
    elif diff < 0:
        for r in rows[target:]:
            db.delete(r)
        rows = rows[:target]

    db.flush()
    return rows


def update_turno(
    db: Session,
    turno_id: int,
    edits: TurnoUpdate,
    ttl_days: int = DEFAULT_TTL_DAYS,
) -> Turno:
    """
    Applies a partial edit and, when n_turnos was given, resizes the group.
    Edits are written to every row of the group so siblings keep matching.
    Commits once; any failure rolls the whole edit back.

    If shrinking removes the edited row itself, the first surviving row of
    the group is returned instead.
    """
    turno = get_turno_or_404(db, turno_id)
    data = build_edit_values(turno, edits)
    target = edits.n_turnos if "n_turnos" in edits.model_fields_set else None

    try:
        if data:
            siblings = get_group_rows(db, turno.grupo_id) if turno.grupo_id else [turno]
            if turno not in siblings:
                siblings.append(turno)
            for row in siblings:
                for k, v in data.items():
                    setattr(row, k, v)
            db.flush()

        result = turno
        if target is not None:
            survivors = resize_group(db, turno, target, ttl_days=ttl_days)
            if turno not in survivors:
                result = survivors[0]

        db.commit()
    except Exception:
        db.rollback()
        raise

    db.refresh(result)
    return result


# -----------------------------
# Delete
# -----------------------------
def delete_turno(db: Session, turno_id: int) -> None:
    """
    Deletes one row. Siblings are not renumbered, so a group can end up
    with a gap in turno_index.
    """
    turno = get_turno_or_404(db, turno_id)
    try:
        db.delete(turno)
        db.commit()
    except Exception:
        db.rollback()
        raise
