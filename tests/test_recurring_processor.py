"""Trigger policy for the automatic monthly import."""

from __future__ import annotations

from datetime import date

import pytest

from spendle.domain.identity import ANONYMOUS
from spendle.errors import AuthError, StorageError
from spendle.services.materialize import RecurringProcessor, month_marker


def test_month_marker_uses_unpadded_month():
    assert month_marker(date(2024, 3, 15)) == "2024-3"
    assert month_marker(date(2024, 11, 1)) == "2024-11"


def test_run_if_due_runs_once_per_month(ctx, identity, template_factory, marker_store):
    template_factory(name="Rent")
    processor = RecurringProcessor(ctx, marker_store)

    first = processor.run_if_due(identity, today=date(2024, 3, 15))
    second = processor.run_if_due(identity, today=date(2024, 3, 20))
    april = processor.run_if_due(identity, today=date(2024, 4, 2))

    assert first is not None and first.created_count == 1
    assert second is None
    assert april is not None and april.created_count == 1
    assert processor.last_processed(identity) == "2024-4"


def test_import_now_ignores_marker(ctx, identity, template_factory, marker_store):
    template_factory(name="Rent")
    processor = RecurringProcessor(ctx, marker_store)
    processor.run_if_due(identity, today=date(2024, 3, 15))

    result = processor.import_now(identity, today=date(2024, 3, 16))

    # Persisted data still dedupes even though the marker was bypassed
    assert result.created_count == 0
    assert len(result.skipped_template_ids) == 1


def test_failed_run_leaves_marker_unset(ctx, identity, template_factory, marker_store, monkeypatch):
    template_factory(name="Rent")
    processor = RecurringProcessor(ctx, marker_store)

    def broken(rows, *, user_id):
        raise StorageError("database is locked")

    monkeypatch.setattr(ctx.expense_repo, "create_many", broken)
    with pytest.raises(StorageError):
        processor.run_if_due(identity, today=date(2024, 3, 15))

    assert processor.last_processed(identity) is None
    assert processor.is_due(identity, today=date(2024, 3, 15))


def test_markers_are_kept_per_user(ctx, identity, other_identity, marker_store):
    processor = RecurringProcessor(ctx, marker_store)
    processor.run_if_due(identity, today=date(2024, 3, 15))

    assert not processor.is_due(identity, today=date(2024, 3, 15))
    assert processor.is_due(other_identity, today=date(2024, 3, 15))


def test_reset_forgets_marker(ctx, identity, marker_store):
    processor = RecurringProcessor(ctx, marker_store)
    processor.run_if_due(identity, today=date(2024, 3, 15))

    processor.reset(identity)

    assert processor.is_due(identity, today=date(2024, 3, 15))


def test_database_store_persists_marker(ctx, identity, template_factory):
    template_factory(name="Rent")
    processor = RecurringProcessor(ctx, ctx.settings_repo)

    processor.run_if_due(identity, today=date(2024, 3, 15))

    key = RecurringProcessor.marker_key(identity.user_id)
    assert ctx.settings_repo.get(key) == "2024-3"
    assert RecurringProcessor(ctx, ctx.settings_repo).run_if_due(
        identity, today=date(2024, 3, 31)
    ) is None


def test_requires_authenticated_identity(ctx, marker_store):
    with pytest.raises(AuthError):
        RecurringProcessor(ctx, marker_store).run_if_due(ANONYMOUS)
