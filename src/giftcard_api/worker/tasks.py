"""arq worker: email delivery, notification and audit persistence.

Run with ``arq giftcard_api.worker.tasks.WorkerSettings``.
"""

import functools
import json
import logging
from typing import Any, Awaitable, Callable

from arq import Retry, cron
from arq.connections import RedisSettings

from giftcard_api.api.middleware.logging import configure_logging
from giftcard_api.config import settings
from giftcard_api.core.dates import utc_now
from giftcard_api.db.session import AsyncSessionLocal, dispose_engine
from giftcard_api.schemas.activity_log import ActivityPayload
from giftcard_api.schemas.notification import NotificationPayload
from giftcard_api.services.activity_log import ActivityLogService
from giftcard_api.services.email import EmailSender
from giftcard_api.services.email_templates import render_email
from giftcard_api.services.notification import NotificationService

logger = logging.getLogger(__name__)

DEAD_LETTER_KEY = "jobs:dead"

JobFunc = Callable[..., Awaitable[Any]]


def backoff_seconds(job_try: int) -> int:
    """Delay before the next attempt: base, 2x base, 4x base, ..."""
    return settings.job_backoff_seconds * 2 ** (job_try - 1)


async def dead_letter(ctx: dict[str, Any], function: str, args: tuple, exc: Exception) -> None:
    """Park a job that exhausted its tries in the ``jobs:dead`` list."""
    entry = {
        "function": function,
        "job_id": ctx.get("job_id"),
        "args": args,
        "error": f"{type(exc).__name__}: {exc}",
        "tries": ctx.get("job_try"),
        "failed_at": utc_now().isoformat(),
    }
    try:
        await ctx["redis"].rpush(DEAD_LETTER_KEY, json.dumps(entry, default=str))
    except Exception:
        logger.exception(f"Could not dead-letter {function} job", extra={"job_id": ctx.get("job_id")})


def retrying(func: JobFunc) -> JobFunc:
    """Retry a job with exponential backoff, dead-lettering it after the last try."""

    @functools.wraps(func)
    async def wrapper(ctx: dict[str, Any], *args: Any) -> Any:
        job_try = ctx.get("job_try", 1)
        try:
            return await func(ctx, *args)
        except Retry:
            raise
        except Exception as exc:
            extra = {"job_id": ctx.get("job_id"), "job_name": func.__name__, "job_try": job_try}
            if job_try < settings.job_max_tries:
                defer = backoff_seconds(job_try)
                logger.warning(f"{func.__name__} failed, retrying in {defer}s: {exc}", extra=extra)
                raise Retry(defer=defer) from exc
            await dead_letter(ctx, func.__name__, args, exc)
            logger.error(f"{func.__name__} failed after {job_try} tries, moved to {DEAD_LETTER_KEY}", extra=extra)
            raise

    return wrapper


@retrying
async def send_email(ctx: dict[str, Any], payload: dict[str, Any]) -> str | None:
    """Render and send one transactional email."""
    rendered = render_email(payload["kind"], payload.get("data") or {})
    sender: EmailSender = ctx["email_sender"]
    message_id = await sender.send(payload["to"], payload.get("name"), rendered)
    logger.info(f"Sent {payload['kind']}", extra={"job_id": ctx.get("job_id"), "kind": payload["kind"]})
    return message_id


@retrying
async def create_notification(ctx: dict[str, Any], payload: dict[str, Any]) -> str | None:
    """Persist an in-app notification, honouring the recipient's preferences."""
    notification_payload = NotificationPayload.model_validate(payload)
    async with ctx["session_factory"]() as db:
        notification = await NotificationService(db).deliver(notification_payload)
    return str(notification.id) if notification else None


@retrying
async def record_activity(ctx: dict[str, Any], payload: dict[str, Any]) -> str:
    """Append one entry to the activity log."""
    activity_payload = ActivityPayload.model_validate(payload)
    async with ctx["session_factory"]() as db:
        entry = await ActivityLogService(db).record(activity_payload)
    return str(entry.id)


async def cleanup_old_notifications(ctx: dict[str, Any]) -> int:
    """Daily purge of notifications past the retention window."""
    async with ctx["session_factory"]() as db:
        return await NotificationService(db).cleanup_older_than(settings.notification_retention_days)


async def startup(ctx: dict[str, Any]) -> None:
    configure_logging(settings.log_level, settings.log_json)
    ctx["session_factory"] = AsyncSessionLocal
    ctx["email_sender"] = EmailSender()
    logger.info("Worker started")


async def shutdown(ctx: dict[str, Any]) -> None:
    await dispose_engine()
    logger.info("Worker stopped")


class WorkerSettings:
    functions = [send_email, create_notification, record_activity]
    cron_jobs = [cron(cleanup_old_notifications, hour={2}, minute={0})]
    on_startup = startup
    on_shutdown = shutdown
    redis_settings = RedisSettings.from_dsn(settings.redis_url)
    max_jobs = settings.worker_concurrency
    max_tries = settings.job_max_tries
