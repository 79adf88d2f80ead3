from datetime import timedelta

import pytest
from sqlalchemy.exc import DataError
from sqlalchemy.future import select

from oliver.exceptions import NotAuthenticated, RemoteError
from oliver.models import Budget, BudgetDeletionAudit, BudgetPart
from oliver.services import budget_procedures as procedures
from oliver.services.budget_deletion_service import BudgetDeletionService
from oliver.services.budget_service import BudgetService
from oliver.services.query_cache import DELETED_BUDGETS_KEY, query_cache
from oliver.services.trash_service import TrashService, purge_budget, retention_status
from oliver.utils.date_utils import utc_now


async def _trash(session, user, budget, days_ago=0, reason=None):
    await procedures.soft_delete_budget_with_audit(
        session, user.id, budget.id, reason, now=utc_now() - timedelta(days=days_ago)
    )


async def _budget_row(session, budget_id):
    return (await session.execute(select(Budget).filter(Budget.id == budget_id))).scalar_one_or_none()


async def _part_count(session, budget_id):
    return len((await session.execute(
        select(BudgetPart).filter(BudgetPart.budget_id == budget_id)
    )).scalars().all())


def test_retention_status_counts_down_in_whole_days():
    now = utc_now()

    fresh = retention_status(now - timedelta(hours=23), now=now)
    assert fresh["days_remaining"] == 90
    assert fresh["expiring_soon"] is False
    assert fresh["status_message"] == "Será excluído automaticamente em 90 dias"

    almost = retention_status(now - timedelta(days=83), now=now)
    assert almost["days_remaining"] == 7
    assert almost["expiring_soon"] is True
    assert almost["scheduled_for_deletion"] is False

    overdue = retention_status(now - timedelta(days=91), now=now)
    assert overdue["days_remaining"] == 0
    assert overdue["scheduled_for_deletion"] is True
    assert overdue["status_message"] == "Programado para exclusão automática"


async def test_trash_lists_newest_deletion_first(session, user, make_budget):
    older = await make_budget(user, client_name="Antigo")
    newer = await make_budget(user, client_name="Recente", total_price=123456)
    await _trash(session, user, older, days_ago=83, reason="sem conserto")
    await _trash(session, user, newer, days_ago=1)

    entries = await TrashService(session, user).list_trash()

    assert [e.budget_id for e in entries] == [newer.id, older.id]
    assert entries[0].budget_data.client_name == "Recente"
    assert entries[0].formatted_price == "R$ 1.234,56"
    assert entries[0].days_remaining == 89
    assert entries[1].deletion_reason == "sem conserto"
    assert entries[1].days_remaining == 7
    assert entries[1].expiring_soon is True


async def test_trash_hides_unrestorable_and_restored_entries(session, user, other_user, make_budget):
    kept = await make_budget(user)
    flagged = await make_budget(user)
    restored = await make_budget(user)
    foreign = await make_budget(other_user)
    for budget in (kept, flagged, restored):
        await _trash(session, user, budget)
    await _trash(session, other_user, foreign)
    await procedures.mark_audit_unrestorable(session, user.id, flagged.id)
    await procedures.restore_deleted_budget(session, user.id, restored.id)

    entries = await TrashService(session, user).list_trash()

    assert [e.budget_id for e in entries] == [kept.id]


async def test_budget_is_never_active_and_in_trash(session, user, make_budget):
    budget = await make_budget(user)
    listing = BudgetService(session, user)
    trash = TrashService(session, user)

    def ids(items, attr):
        return {getattr(item, attr) for item in items}

    assert budget.id in ids(await listing.list_active(), "id")
    assert budget.id not in ids(await trash.list_trash(), "budget_id")

    await BudgetDeletionService(session, user).delete_one(budget.id)
    assert budget.id not in ids(await listing.list_active(), "id")
    assert budget.id in ids(await trash.list_trash(), "budget_id")

    await BudgetDeletionService(session, user).restore(budget.id)
    assert budget.id in ids(await listing.list_active(), "id")
    assert budget.id not in ids(await trash.list_trash(), "budget_id")


async def test_purge_removes_budget_for_good(session, user, make_budget):
    budget = await make_budget(user, parts=2)
    await _trash(session, user, budget)
    trash = TrashService(session, user)

    result = await trash.purge(budget.id)

    assert result.success is True
    assert result.notification.title == "Orçamento excluído permanentemente"
    assert await _budget_row(session, budget.id) is None
    assert await _part_count(session, budget.id) == 0
    audit = (await session.execute(
        select(BudgetDeletionAudit).filter(BudgetDeletionAudit.budget_id == budget.id)
    )).scalar_one()
    assert audit.can_restore is False
    assert await trash.list_trash() == []
    assert await BudgetService(session, user).list_active() == []

    restore = await procedures.restore_deleted_budget(session, user.id, budget.id)
    assert restore["success"] is False
    restored = await BudgetDeletionService(session, user).restore(budget.id)
    assert restored.success is False
    assert restored.notification.title == "Erro ao restaurar"


async def test_purge_refuses_budgets_outside_the_trash(session, user, make_budget):
    budget = await make_budget(user, parts=1)

    result = await TrashService(session, user).purge(budget.id)

    assert result.success is False
    assert result.notification.description == "Orçamento não encontrado na lixeira"
    assert await _budget_row(session, budget.id) is not None
    assert await _part_count(session, budget.id) == 1


async def test_purge_failure_after_parts_step_is_not_rolled_back(session, user, make_budget, monkeypatch):
    budget = await make_budget(user, parts=3)
    await _trash(session, user, budget)

    async def failing_delete(session, user_id, budget_id):
        raise RemoteError("connection lost", budget_id=budget_id)

    monkeypatch.setattr(procedures, "delete_budget_row", failing_delete)

    with pytest.raises(RemoteError) as excinfo:
        await purge_budget(session, user.id, budget.id)

    assert excinfo.value.message == "Erro ao excluir orçamento da base de dados"
    assert await _part_count(session, budget.id) == 0
    assert await _budget_row(session, budget.id) is not None
    entries = await TrashService(session, user).list_trash()
    assert [e.budget_id for e in entries] == [budget.id]


async def test_purge_tolerates_audit_update_failure(session, user, make_budget, monkeypatch):
    budget = await make_budget(user)
    await _trash(session, user, budget)

    async def failing_update(session, user_id, budget_id):
        raise RemoteError("timeout", budget_id=budget_id)

    monkeypatch.setattr(procedures, "mark_audit_unrestorable", failing_update)

    await purge_budget(session, user.id, budget.id)

    assert await _budget_row(session, budget.id) is None


async def test_empty_trash_purges_everything(session, user, make_budget):
    budgets = [await make_budget(user, parts=1) for _ in range(3)]
    for budget in budgets:
        await _trash(session, user, budget)

    result = await TrashService(session, user).empty_trash()

    assert result.success is True
    assert result.notification.title == "Lixeira esvaziada"
    assert result.data["success_count"] == 3
    for budget in budgets:
        assert await _budget_row(session, budget.id) is None


async def test_empty_trash_reports_partial_failure(session, user, make_budget, monkeypatch):
    good = await make_budget(user)
    bad = await make_budget(user)
    await _trash(session, user, good)
    await _trash(session, user, bad)
    real_delete = procedures.delete_budget_row

    async def flaky_delete(session, user_id, budget_id):
        if budget_id == bad.id:
            raise RemoteError("deadlock detected", budget_id=budget_id)
        return await real_delete(session, user_id, budget_id)

    monkeypatch.setattr(procedures, "delete_budget_row", flaky_delete)

    result = await TrashService(session, user).empty_trash()

    assert result.success is True
    assert result.notification.title == "Limpeza parcial da lixeira"
    assert result.data["outcome"] == "partial"
    assert result.data["succeeded"] == [good.id]
    assert result.data["failed"] == [
        {"budget_id": bad.id, "error": "Erro ao excluir orçamento da base de dados"}
    ]


async def test_empty_trash_with_nothing_to_delete(session, user):
    result = await TrashService(session, user).empty_trash()

    assert result.success is False
    assert result.notification.description == "Nenhum orçamento na lixeira para excluir"


async def test_trash_requires_a_user(session):
    with pytest.raises(NotAuthenticated):
        await TrashService(session, None).list_trash()


async def test_empty_trash_survives_database_error_on_one_item(session, user, make_budget, fail_next_commits):
    budgets = [await make_budget(user, parts=1) for _ in range(2)]
    for budget in budgets:
        await _trash(session, user, budget)
    budget_ids = [budget.id for budget in budgets]
    fail_next_commits()

    result = await TrashService(session, user).empty_trash()

    assert result.success is True
    assert result.notification.title == "Limpeza parcial da lixeira"
    assert result.data["success_count"] == 1
    assert result.data["error_count"] == 1
    assert result.data["failed"][0]["error"] == "Erro ao excluir partes do orçamento"
    failed_id = result.data["failed"][0]["budget_id"]
    assert result.data["succeeded"] == [i for i in budget_ids if i != failed_id]
    assert await _budget_row(session, failed_id) is not None
    assert await _part_count(session, failed_id) == 1


async def test_purge_lookup_failure_becomes_error_notification(session, user, make_budget, monkeypatch):
    budget = await make_budget(user)
    await _trash(session, user, budget)
    budget_id = budget.id

    async def broken_execute(*args, **kwargs):
        raise DataError("SELECT", {}, Exception("invalid input syntax for type uuid"))

    monkeypatch.setattr(session, "execute", broken_execute)
    result = await TrashService(session, user).purge(budget_id)

    assert result.success is False
    assert result.notification.title == "Erro ao excluir permanentemente"
    assert "consultar a lixeira" in result.notification.description


async def test_trash_listing_started_before_a_mutation_is_not_cached(session, user, make_budget, monkeypatch):
    budget = await make_budget(user)
    await _trash(session, user, budget)
    user_id = user.id
    real_execute = session.execute

    async def execute_then_mutate(*args, **kwargs):
        result = await real_execute(*args, **kwargs)
        query_cache.invalidate(DELETED_BUDGETS_KEY, user_id)
        return result

    monkeypatch.setattr(session, "execute", execute_then_mutate)
    entries = await TrashService(session, user).list_trash()

    assert [e.budget_id for e in entries] == [budget.id]
    assert query_cache.get(DELETED_BUDGETS_KEY, user_id) is None
