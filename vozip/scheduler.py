# vozip/scheduler.py
import logging
from typing import Optional

from apscheduler.events import EVENT_JOB_ERROR, EVENT_JOB_EXECUTED
from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.triggers.cron import CronTrigger

from .core.config import Settings
from .db.engine import Database

# Configuración del logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(levelname)s - [Scheduler] - %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)
logger = logging.getLogger("Scheduler")

AUDIT_CLEANUP_JOB_ID = "audit_cleanup_job"


def job_listener(event):
    if event.exception:
        logger.error(f"Job {event.job_id} falló: {event.exception}")
    else:
        logger.info(f"Job {event.job_id} ejecutado exitosamente")


def parse_run_hour(value: Optional[str], default: tuple[int, int] = (3, 0)) -> tuple[int, int]:
    """'HH:MM' -> (hora, minuto). Formatos inválidos caen al valor por defecto."""
    try:
        hour, minute = value.split(":")
        hour, minute = int(hour), int(minute)
    except (ValueError, AttributeError):
        logger.warning(f"Formato de hora inválido: {value}. Usando {default[0]:02d}:{default[1]:02d}")
        return default
    if not (0 <= hour < 24 and 0 <= minute < 60):
        logger.warning(f"Hora fuera de rango: {value}. Usando {default[0]:02d}:{default[1]:02d}")
        return default
    return hour, minute


def run_audit_cleanup(db: Database, retention_days: int) -> int:
    """Elimina los registros de bitácora más antiguos que la ventana de retención."""
    from .services.audit_service import AuditService

    with db.session() as session:
        deleted, cutoff = AuditService(session).purge_older_than(retention_days)
    logger.info(f"Limpieza de bitácora: {deleted} registros anteriores a {cutoff:%Y-%m-%d}")
    return deleted


def build_scheduler(db: Database, settings: Settings) -> BackgroundScheduler:
    scheduler = BackgroundScheduler(
        job_defaults={
            "coalesce": True,
            "max_instances": 1,
            "misfire_grace_time": 300,
        }
    )
    scheduler.add_listener(job_listener, EVENT_JOB_EXECUTED | EVENT_JOB_ERROR)

    hour, minute = parse_run_hour(settings.audit_cleanup_hour)
    logger.info(
        f"Programando limpieza de bitácora diaria a las {hour:02d}:{minute:02d} "
        f"(retención {settings.audit_retention_days} días)"
    )
    scheduler.add_job(
        run_audit_cleanup,
        trigger=CronTrigger(hour=hour, minute=minute),
        args=[db, settings.audit_retention_days],
        id=AUDIT_CLEANUP_JOB_ID,
        name="Daily Audit Cleanup",
        replace_existing=True,
    )
    return scheduler


def start_scheduler(db: Database, settings: Settings) -> BackgroundScheduler:
    scheduler = build_scheduler(db, settings)
    scheduler.start()
    logger.info("✅ Scheduler iniciado exitosamente")
    return scheduler
