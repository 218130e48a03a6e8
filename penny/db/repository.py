from tinydb import Query, TinyDB

from penny.models.schemas import Expense, Interval, UserContext


class LedgerRepository:
    def __init__(self, db_path: str = "penny_ledger.json"):
        self.db = TinyDB(db_path)
        self.contexts = self.db.table("contexts")
        self.expenses = self.db.table("expenses")

    def get_context(self, user_id: str) -> UserContext | None:
        doc = self.contexts.get(Query().user_id == user_id)
        if doc is None:
            return None
        data = dict(doc)
        data.pop("user_id", None)
        return UserContext.model_validate(data)

    def save_context(self, user_id: str, context: UserContext) -> UserContext:
        data = context.model_dump(mode="json")
        data["user_id"] = user_id
        self.contexts.upsert(data, Query().user_id == user_id)
        return context

    def add_expense(self, user_id: str, expense: Expense) -> Expense:
        data = expense.model_dump(mode="json", include={"item", "value", "incurred_on"})
        data["user_id"] = user_id
        self.expenses.insert(data)
        return expense

    def query_expenses(self, user_id: str, interval: Interval) -> list[Expense]:
        docs = self.expenses.search(Query().user_id == user_id)
        expenses = [
            Expense(item=doc["item"], value=doc["value"], incurred_on=doc["incurred_on"])
            for doc in docs
        ]
        matches = [e for e in expenses if interval.contains(e.incurred_on)]
        return sorted(matches, key=lambda e: e.incurred_on)

    def delete_user(self, user_id: str) -> bool:
        removed = self.contexts.remove(Query().user_id == user_id)
        removed += self.expenses.remove(Query().user_id == user_id)
        return bool(removed)
