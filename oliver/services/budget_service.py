"""
Budget service layer: active listing and budget CRUD.
"""
from typing import List, Optional, Sequence

from sqlalchemy import and_, func
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select

from oliver.exceptions import BadRequestError, NotAuthenticated, NotFoundError
from oliver.logging_config import get_logger
from oliver.models.budget import Budget
from oliver.models.budget_part import BudgetPart
from oliver.models.user import User
from oliver.schemas.budget import BudgetCreate, BudgetPartResponse, BudgetResponse, BudgetUpdate
from oliver.services.budget_listing import BudgetSearch, BudgetSelection
from oliver.services.query_cache import BUDGETS_KEY, QueryCache, query_cache

logger = get_logger(__name__)


def individual_deletion_reason(budget) -> str:
    """Reason recorded when a budget is deleted from its confirmation dialog."""
    client = getattr(budget, "client_name", None) or "N/A"
    return f"Exclusão individual via interface - Cliente: {client}"


class BudgetService:
    """Active (not deleted) budgets of the current user."""

    def __init__(self, session: AsyncSession, user: Optional[User], cache: QueryCache = query_cache):
        self.session = session
        self.user = user
        self.user_id = user.id if user is not None else None
        self.cache = cache

    def _require_user(self) -> str:
        if self.user_id is None:
            raise NotAuthenticated()
        return self.user_id

    async def list_active(self) -> List[BudgetResponse]:
        """
        Active budgets, newest first.

        Returns:
            List of BudgetResponse, served from the listing cache when fresh
        """
        user_id = self._require_user()
        cached = self.cache.get(BUDGETS_KEY, user_id)
        if cached is not None:
            return cached

        generation = self.cache.generation(BUDGETS_KEY, user_id)
        result = await self.session.execute(
            select(Budget)
            .filter(and_(Budget.owner_id == user_id, Budget.deleted_at.is_(None)))
            .order_by(Budget.created_at.desc())
        )
        budgets = [BudgetResponse.model_validate(b) for b in result.scalars().all()]
        self.cache.set(BUDGETS_KEY, user_id, budgets, generation=generation)
        return budgets

    async def search(self, term: Optional[str] = None) -> List[BudgetResponse]:
        """Active budgets filtered by a submitted search term."""
        search = BudgetSearch()
        search.set_search_term(term)
        search.submit()
        return search.filter(await self.list_active())

    async def select(
        self,
        budget_ids: Sequence[str] = (),
        select_all: bool = False,
        term: Optional[str] = None,
    ) -> BudgetSelection:
        """
        Build the selection a batch deletion acts on.

        Args:
            budget_ids: Explicitly picked ids, kept in order without duplicates
            select_all: Also select every budget matching ``term``
            term: Submitted search term scoping ``select_all``

        Returns:
            BudgetSelection over the filtered list
        """
        selection = BudgetSelection(await self.search(term) if select_all else ())
        if select_all:
            selection.select_all(True)
        for budget_id in budget_ids:
            selection.select(budget_id, True)
        return selection

    async def find_active(self, budget_id: str) -> Optional[Budget]:
        user_id = self._require_user()
        return (await self.session.execute(
            select(Budget).filter(and_(
                Budget.id == budget_id,
                Budget.owner_id == user_id,
                Budget.deleted_at.is_(None),
            ))
        )).scalar_one_or_none()

    async def get(self, budget_id: str) -> Budget:
        """
        Fetch one active budget of the current user.

        Raises:
            NotFoundError: Budget missing, deleted or owned by someone else
        """
        budget = await self.find_active(budget_id)
        if budget is None:
            raise NotFoundError("Budget not found")
        return budget

    async def get_parts(self, budget_id: str) -> List[BudgetPartResponse]:
        result = await self.session.execute(
            select(BudgetPart).filter(BudgetPart.budget_id == budget_id)
        )
        return [BudgetPartResponse.model_validate(p) for p in result.scalars().all()]

    async def _active_count(self, user_id: str) -> int:
        return (await self.session.execute(
            select(func.count(Budget.id)).filter(and_(
                Budget.owner_id == user_id,
                Budget.deleted_at.is_(None),
            ))
        )).scalar_one()

    async def create(self, data: BudgetCreate) -> Budget:
        """
        Create a budget and its parts.

        Raises:
            BadRequestError: The user's budget limit is reached
        """
        user_id = self._require_user()
        budget_limit = self.user.budget_limit
        if budget_limit is not None and await self._active_count(user_id) >= budget_limit:
            raise BadRequestError(f"Budget limit of {budget_limit} reached")

        budget = Budget(owner_id=user_id, **data.model_dump(exclude={"parts"}))
        self.session.add(budget)
        await self.session.flush()
        for part in data.parts:
            self.session.add(BudgetPart(budget_id=budget.id, **part.model_dump()))
        await self.session.commit()

        self.cache.invalidate(BUDGETS_KEY, user_id)
        logger.info(f"Created budget {budget.id} for user {user_id}")
        return budget

    async def update(self, budget_id: str, data: BudgetUpdate) -> Budget:
        """Update fields of an active budget."""
        budget = await self.get(budget_id)
        for field, value in data.model_dump(exclude_unset=True).items():
            setattr(budget, field, value)
        await self.session.commit()

        self.cache.invalidate(BUDGETS_KEY, budget.owner_id)
        logger.info(f"Updated budget {budget_id}")
        return budget
