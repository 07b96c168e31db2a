"""Tests for the audit logger."""

from unittest.mock import AsyncMock

import pytest

from hours_ledger.audit import AuditLogger, create_correlation_id
from hours_ledger.models.audit import AuditEventBuilder, AuditEventType, AuditSeverity


class TestAuditLogger:

    @pytest.mark.asyncio
    async def test_events_reach_storage(self, audit_logger, audit_storage):
        correlation_id = create_correlation_id()
        await audit_logger.log_entry_changed(
            entity_type="work_log",
            change="created",
            entity_id="w-1",
            account_id="acct-1",
            correlation_id=correlation_id,
        )

        [event] = audit_storage.events
        assert event.event_type == AuditEventType.WORK_LOG_CREATED
        assert event.correlation_id == correlation_id

    @pytest.mark.asyncio
    async def test_local_only_logging(self):
        logger = AuditLogger()
        assert await logger.log_records_loaded("acct-1", 2, 3) is None

    @pytest.mark.asyncio
    async def test_storage_failure_does_not_raise(self):
        storage = AsyncMock()
        storage.append_event = AsyncMock(side_effect=RuntimeError("sheet gone"))
        logger = AuditLogger(storage)

        await logger.log_time_report_failed("acct-1", "timeout")

        storage.append_event.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_log_returns_storage_result(self, audit_logger):
        event = AuditEventBuilder.store_failed("create", "payment", "acct-1", "offline")
        assert await audit_logger.log(event) is True

    @pytest.mark.asyncio
    async def test_summary_fallback_is_logged_as_warning(self, audit_logger, audit_storage):
        await audit_logger.log_summary("acct-1", used_fallback=True)
        [event] = audit_storage.events
        assert event.severity == AuditSeverity.WARNING

    @pytest.mark.asyncio
    async def test_rejected_entry(self, audit_logger, audit_storage):
        issues = [{"field": "hours", "type": "missing", "message": "Hours is required"}]
        await audit_logger.log_entry_rejected("work_log", "acct-1", issues)
        [event] = audit_storage.events
        assert event.event_type == AuditEventType.ENTRY_REJECTED
        assert event.details["issues"] == issues

    @pytest.mark.asyncio
    async def test_error(self, audit_logger, audit_storage):
        await audit_logger.log_error("startup", "bad config", details={"key": "GEMINI_API_KEY"})
        [event] = audit_storage.events
        assert event.event_type == AuditEventType.SYSTEM_ERROR
        assert event.error_message == "bad config"

    def test_correlation_ids_are_unique(self):
        assert create_correlation_id() != create_correlation_id()
