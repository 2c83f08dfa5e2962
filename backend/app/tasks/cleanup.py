from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Optional

from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.triggers.cron import CronTrigger
from sqlalchemy.orm import Session

from app.core.config import Settings
from app.models.turno import Turno


logger = logging.getLogger(__name__)

JOB_ID = "sweep_expired_turnos"


def _with_db_session() -> Session:
    # Imported lazily so the engine is only built when a sweep actually runs.
    from app.core.database import SessionLocal

    return SessionLocal()


def count_expired_turnos(db: Session, now: Optional[datetime] = None) -> int:
    now = now or datetime.now(timezone.utc)
    return db.query(Turno).filter(Turno.expires_at <= now).count()


def sweep_expired_turnos(db: Session, now: Optional[datetime] = None) -> int:
    """
    Deletes every turno whose expires_at is at or before ``now``. Returns the count.
    """
    now = now or datetime.now(timezone.utc)
    try:
        deleted = (
            db.query(Turno)
            .filter(Turno.expires_at <= now)
            .delete(synchronize_session=False)
        )
        db.commit()
    except Exception:
        db.rollback()
        raise

    if deleted:
        logger.info("Expired turnos deleted: %s", deleted)
    return deleted


def run_scheduled_sweep() -> None:
    """
    Scheduler entry point. Best-effort: failures are logged and the next run
    proceeds as normal.
    """
    db = _with_db_session()
    try:
        sweep_expired_turnos(db)
    except Exception:  # pylint: disable=broad-except
        logger.exception("Expired turno sweep failed")
    finally:
        db.close()


def build_cleanup_scheduler(settings: Settings) -> BackgroundScheduler:
    scheduler = BackgroundScheduler(timezone="UTC")
    scheduler.add_job(
        run_scheduled_sweep,
        CronTrigger(hour=settings.CLEANUP_CRON_HOUR, minute=settings.CLEANUP_CRON_MINUTE, timezone="UTC"),
        id=JOB_ID,
        replace_existing=True,
    )
    return scheduler


def start_cleanup_scheduler(settings: Settings) -> Optional[BackgroundScheduler]:
    if not settings.CLEANUP_ENABLED:
        logger.info("Expired turno sweep disabled (CLEANUP_ENABLED=false)")
        return None

    scheduler = build_cleanup_scheduler(settings)
    scheduler.start()
    logger.info(
        "Expired turno sweep scheduled daily at %02d:%02d UTC",
        settings.CLEANUP_CRON_HOUR,
        settings.CLEANUP_CRON_MINUTE,
    )
    return scheduler
