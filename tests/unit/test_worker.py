"""Unit tests for background job retry, dead-lettering and email rendering."""

import json
from unittest.mock import AsyncMock

import pytest
from arq import Retry

from giftcard_api.config import settings
from giftcard_api.services.email import EmailSender
from giftcard_api.services.email_templates import TEMPLATES, render_email
from giftcard_api.worker.queue import JobQueue
from giftcard_api.worker.tasks import DEAD_LETTER_KEY, WorkerSettings, backoff_seconds, send_email


class FakeRedis:
    def __init__(self):
        self.lists: dict[str, list[str]] = {}

    async def rpush(self, key: str, value: str) -> int:
        self.lists.setdefault(key, []).append(value)
        return len(self.lists[key])


def _ctx(job_try: int, sender=None) -> dict:
    return {
        "job_id": "job-1",
        "job_try": job_try,
        "redis": FakeRedis(),
        "email_sender": sender or EmailSender(api_key=""),
    }


class TestRetryPolicy:
    def test_backoff_is_exponential(self):
        base = settings.job_backoff_seconds
        assert [backoff_seconds(n) for n in (1, 2, 3)] == [base, base * 2, base * 4]

    @pytest.mark.asyncio
    async def test_failure_before_last_try_is_retried(self):
        ctx = _ctx(job_try=1)
        with pytest.raises(Retry) as exc_info:
            await send_email(ctx, {"kind": "no_such_email", "to": "a@example.com", "data": {}})

        assert exc_info.value.defer_score == backoff_seconds(1) * 1000
        assert DEAD_LETTER_KEY not in ctx["redis"].lists

    @pytest.mark.asyncio
    async def test_last_try_is_dead_lettered(self):
        ctx = _ctx(job_try=settings.job_max_tries)
        payload = {"kind": "no_such_email", "to": "a@example.com", "data": {}}

        with pytest.raises(ValueError):
            await send_email(ctx, payload)

        entries = [json.loads(e) for e in ctx["redis"].lists[DEAD_LETTER_KEY]]
        assert len(entries) == 1
        assert entries[0]["function"] == "send_email"
        assert entries[0]["tries"] == settings.job_max_tries
        assert "no_such_email" in entries[0]["error"]

    @pytest.mark.asyncio
    async def test_success_returns_sender_result(self):
        sender = AsyncMock()
        sender.send.return_value = "<message-id>"
        ctx = _ctx(job_try=1, sender=sender)

        result = await send_email(ctx, {"kind": "otp_email", "to": "a@example.com", "name": "A", "data": {"otp": "A1B2C3"}})

        assert result == "<message-id>"
        to_email, to_name, rendered = sender.send.await_args.args
        assert to_email == "a@example.com"
        assert to_name == "A"
        assert "A1B2C3" in rendered.html

    def test_worker_settings(self):
        names = {f.__name__ for f in WorkerSettings.functions}
        assert names == {"send_email", "create_notification", "record_activity"}
        assert WorkerSettings.max_tries == settings.job_max_tries
        assert WorkerSettings.max_jobs == settings.worker_concurrency
        assert len(WorkerSettings.cron_jobs) == 1


class TestEmailRendering:
    def test_every_kind_renders(self):
        data = {
            "name": "Priya",
            "otp": "ABC123",
            "qr_code": "THNX-DIGITAL-TEST-0000",
            "title": "Coffee Card",
            "amount": "50.00",
            "business_name": "Chai Point",
            "reason": "Blurry document",
            "subject": "Hello",
            "message": "Body",
        }
        for kind in TEMPLATES:
            rendered = render_email(kind, data)
            assert rendered.subject
            assert rendered.html.startswith("<html>")

    def test_gift_card_email_attaches_qr_png(self):
        rendered = render_email("gift_card_email", {"qr_code": "THNX-DIGITAL-TEST-0000", "amount": "50.00"})

        assert len(rendered.attachments) == 1
        name, content = rendered.attachments[0]
        assert name == "THNX-DIGITAL-TEST-0000.png"
        assert content

    def test_html_is_escaped(self):
        rendered = render_email("welcome_email", {"name": "<script>alert(1)</script>"})
        assert "<script>" not in rendered.html

    def test_unknown_kind(self):
        with pytest.raises(ValueError):
            render_email("no_such_email", {})

    @pytest.mark.asyncio
    async def test_sender_without_api_key_skips(self):
        sender = EmailSender(api_key="")
        assert sender.enabled is False
        assert await sender.send("a@example.com", None, render_email("welcome_email", {})) is None


class TestJobQueue:
    @pytest.mark.asyncio
    async def test_disconnected_queue_drops_jobs(self):
        assert await JobQueue(None).enqueue("send_email", {"kind": "welcome_email"}) is None

    @pytest.mark.asyncio
    async def test_enqueue_failure_is_swallowed(self):
        pool = AsyncMock()
        pool.enqueue_job.side_effect = ConnectionError("redis down")

        assert await JobQueue(pool).enqueue("send_email", {}) is None

    @pytest.mark.asyncio
    async def test_enqueue_email_payload(self):
        pool = AsyncMock()
        pool.enqueue_job.return_value.job_id = "abc"
        queue = JobQueue(pool)

        job_id = await queue.enqueue_email("otp_email", "a@example.com", "A", otp="X1")

        assert job_id == "abc"
        pool.enqueue_job.assert_awaited_once_with(
            "send_email",
            {"kind": "otp_email", "to": "a@example.com", "name": "A", "data": {"name": "A", "otp": "X1"}},
        )
