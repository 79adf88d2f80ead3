import pytest
from sqlalchemy.exc import DataError
from sqlalchemy.future import select

from oliver.exceptions import NotAuthenticated, OperationInProgressError
from oliver.models import Budget
from oliver.schemas.operations import NotificationVariant
from oliver.services import budget_procedures as procedures
from oliver.services.budget_deletion_service import BATCH_DELETION_REASON, BudgetDeletionService
from oliver.services.budget_service import BudgetService
from oliver.services.pending_operations import DELETING, pending_operations
from oliver.services.query_cache import BUDGETS_KEY, DELETED_BUDGETS_KEY, query_cache
from oliver.services.trash_service import TrashService


async def test_delete_one_moves_budget_to_trash(session, user, make_budget):
    budget = await make_budget(user)
    listing = BudgetService(session, user)
    assert [b.id for b in await listing.list_active()] == [budget.id]

    result = await BudgetDeletionService(session, user).delete_one(budget.id, "motivo")

    assert result.success is True
    assert result.notification.title == "Orçamento excluído"
    assert result.notification.variant == NotificationVariant.SUCCESS
    assert result.data["budget_id"] == budget.id
    assert query_cache.get(BUDGETS_KEY, user.id) is None
    assert await listing.list_active() == []


async def test_delete_one_failure_becomes_error_notification(session, user):
    result = await BudgetDeletionService(session, user).delete_one("missing-budget")

    assert result.success is False
    assert result.notification.variant == NotificationVariant.ERROR
    assert result.notification.title == "Erro ao excluir"
    assert result.notification.description == "Orçamento não encontrado"


async def test_delete_one_transport_error_becomes_error_notification(session, user, make_budget, fail_next_commits):
    budget = await make_budget(user)
    user_id, budget_id = user.id, budget.id
    fail_next_commits()

    result = await BudgetDeletionService(session, user).delete_one(budget_id)

    assert result.success is False
    assert "banco de dados" in result.notification.description
    assert not pending_operations.is_pending(user_id, DELETING)


async def test_delete_all_reports_count(session, user, make_budget):
    for _ in range(3):
        await make_budget(user)

    result = await BudgetDeletionService(session, user).delete_all()

    assert result.success is True
    assert result.data["deleted_count"] == 3
    assert result.notification.description == "3 orçamento(s) foram movidos para a lixeira."


async def test_delete_selected_tolerates_one_bad_id(session, user, make_budget):
    first = await make_budget(user)
    second = await make_budget(user)
    already_deleted = await make_budget(user)
    await procedures.soft_delete_budget_with_audit(session, user.id, already_deleted.id)

    ids = [first.id, already_deleted.id, second.id]
    result = await BudgetDeletionService(session, user).delete_selected(ids)

    assert result.success is True
    assert result.notification.title == "Exclusão parcial"
    assert result.data["success_count"] == len(ids) - 1
    assert result.data["error_count"] == 1
    assert result.data["outcome"] == "partial"
    assert result.data["succeeded"] == [first.id, second.id]
    assert result.data["failed"][0]["budget_id"] == already_deleted.id

    trash = await TrashService(session, user).list_trash()
    reasons = {entry.budget_id: entry.deletion_reason for entry in trash}
    assert reasons[first.id] == BATCH_DELETION_REASON


async def test_delete_selected_all_failing(session, user):
    result = await BudgetDeletionService(session, user).delete_selected(["nope-1", "nope-2"])

    assert result.success is False
    assert result.notification.title == "Falha na exclusão"
    assert result.data["error_count"] == 2


async def test_delete_selected_requires_ids(session, user):
    result = await BudgetDeletionService(session, user).delete_selected([])

    assert result.success is False
    assert result.notification.description == "Nenhum orçamento selecionado."


async def test_restore_invalidates_both_listings(session, user, make_budget):
    budget = await make_budget(user)
    service = BudgetDeletionService(session, user)
    await service.delete_one(budget.id)
    trash = TrashService(session, user)
    assert [e.budget_id for e in await trash.list_trash()] == [budget.id]
    query_cache.set(BUDGETS_KEY, user.id, [])

    result = await service.restore(budget.id)

    assert result.success is True
    assert query_cache.get(DELETED_BUDGETS_KEY, user.id) is None
    assert [b.id for b in await BudgetService(session, user).list_active()] == [budget.id]
    assert await trash.list_trash() == []


async def test_delete_then_restore_keeps_visible_fields(session, user, make_budget):
    budget = await make_budget(user, client_name="Ana", device_model="Galaxy S20", issue="Bateria", total_price=12345)
    listing = BudgetService(session, user)
    before = (await listing.list_active())[0].model_dump(exclude={"updated_at", "deleted_at"})

    service = BudgetDeletionService(session, user)
    await service.delete_one(budget.id)
    await service.restore(budget.id)

    after = (await listing.list_active())[0].model_dump(exclude={"updated_at", "deleted_at"})
    assert after == before


async def test_second_deletion_while_pending_is_refused(session, user, make_budget):
    budget = await make_budget(user)

    with pending_operations.track(user.id, DELETING):
        with pytest.raises(OperationInProgressError):
            await BudgetDeletionService(session, user).delete_one(budget.id)

    still_active = (await session.execute(select(Budget).filter(Budget.id == budget.id))).scalar_one()
    assert still_active.deleted_at is None


async def test_operations_require_a_user(session):
    with pytest.raises(NotAuthenticated):
        await BudgetDeletionService(session, None).delete_one("any")


async def test_in_flight_flags_follow_pending_operations(session, user):
    service = BudgetDeletionService(session, user)
    assert service.is_deleting is False

    with pending_operations.track(user.id, DELETING):
        assert service.is_deleting is True
        assert service.is_restoring is False

    assert service.is_deleting is False


async def test_delete_selected_survives_database_error_on_one_item(session, user, make_budget, fail_next_commits):
    first = await make_budget(user)
    second = await make_budget(user)
    user_id, first_id, second_id = user.id, first.id, second.id
    fail_next_commits()

    result = await BudgetDeletionService(session, user).delete_selected([first_id, second_id])

    assert result.success is True
    assert result.notification.title == "Exclusão parcial"
    assert result.data["success_count"] == 1
    assert result.data["error_count"] == 1
    assert result.data["succeeded"] == [second_id]
    assert result.data["failed"][0]["budget_id"] == first_id
    assert not pending_operations.is_pending(user_id, DELETING)
    untouched = (await session.execute(select(Budget).filter(Budget.id == first_id))).scalar_one()
    assert untouched.deleted_at is None


async def test_delete_one_lookup_failure_becomes_error_notification(session, user, make_budget, monkeypatch):
    budget = await make_budget(user)
    budget_id = budget.id

    async def broken_execute(*args, **kwargs):
        raise DataError("SELECT", {}, Exception("invalid input syntax for type uuid"))

    monkeypatch.setattr(session, "execute", broken_execute)
    result = await BudgetDeletionService(session, user).delete_one(budget_id)

    assert result.success is False
    assert result.notification.title == "Erro ao excluir"
    assert "consultar orçamento" in result.notification.description


async def test_delete_one_defaults_to_individual_reason(session, user, make_budget):
    budget = await make_budget(user, client_name="Lucas")

    await BudgetDeletionService(session, user).delete_one(budget.id)

    entry = (await TrashService(session, user).list_trash())[0]
    assert entry.deletion_reason == "Exclusão individual via interface - Cliente: Lucas"
