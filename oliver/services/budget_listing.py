"""
Search and selection state for the active budget list.
"""
from typing import Iterable, List, Sequence

SEARCH_FIELDS = ("client_name", "device_model", "issue")


def matches(budget, term: str) -> bool:
    """Case-insensitive substring match over the searchable fields."""
    term = term.lower()
    for field_name in SEARCH_FIELDS:
        value = getattr(budget, field_name, None)
        if value and term in value.lower():
            return True
    return False


def filter_budgets(budgets: Sequence, term: str) -> List:
    if not term or not term.strip():
        return list(budgets)
    return [budget for budget in budgets if matches(budget, term)]


class BudgetSearch:
    """
    Search box state. Typing only updates ``search_term``; the list is
    filtered by ``actual_search_term``, which changes on submit.
    """

    def __init__(self):
        self.search_term = ""
        self.actual_search_term = ""

    def set_search_term(self, term: str) -> None:
        self.search_term = term or ""

    def submit(self) -> None:
        self.actual_search_term = self.search_term

    def handle_key(self, key: str) -> None:
        if key == "Enter":
            self.submit()

    def clear(self) -> None:
        self.search_term = ""
        self.actual_search_term = ""

    @property
    def has_active_search(self) -> bool:
        return bool(self.actual_search_term.strip())

    def filter(self, budgets: Sequence) -> List:
        return filter_budgets(budgets, self.actual_search_term)


class BudgetSelection:
    """Selected budget ids, kept apart from search filtering."""

    def __init__(self, budgets: Iterable = ()):
        self.budgets = list(budgets)
        self.selected: List[str] = []

    def update_budgets(self, budgets: Iterable) -> None:
        """Point "select all" at a new filtered subset; current selection is kept."""
        self.budgets = list(budgets)

    def select(self, budget_id: str, is_selected: bool = True) -> None:
        if is_selected:
            if budget_id not in self.selected:
                self.selected.append(budget_id)
        else:
            self.selected = [selected for selected in self.selected if selected != budget_id]

    def select_all(self, is_selected: bool = True) -> None:
        self.selected = [budget.id for budget in self.budgets] if is_selected else []

    def clear(self) -> None:
        self.selected = []

    def is_selected(self, budget_id: str) -> bool:
        return budget_id in self.selected

    @property
    def stats(self) -> dict:
        selected_count = len(self.selected)
        total_count = len(self.budgets)
        return {
            "selected_count": selected_count,
            "total_count": total_count,
            "has_selection": selected_count > 0,
            "is_all_selected": selected_count == total_count and total_count > 0,
        }
