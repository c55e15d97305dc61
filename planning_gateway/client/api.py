"""Typed client for the planning RPC boundary"""

from typing import Any, Dict, List, Optional, Type, TypeVar

import httpx
from pydantic import BaseModel, TypeAdapter
from pydantic import ValidationError as PydanticValidationError
from pydantic.alias_generators import to_camel

from planning_gateway.api.v1.schemas import (
    DebtAccountSchema,
    MonthlyPlanSchema,
    PlanActualSchema,
    PlannedExpenseSchema,
    PlannedIncomeSchema,
    PlannedSavingSchema,
    ReminderSchema,
    ScheduleEntrySchema,
)
from planning_gateway.client.cache import (
    DebtScheduleKey,
    DebtsKey,
    PlanActualKey,
    PlanItemsKey,
    PlansKey,
    QueryCache,
    RemindersKey,
)

SchemaT = TypeVar("SchemaT", bound=BaseModel)

ITEM_COMMANDS = {
    "income": ("planned_income", "planned_incomes", PlannedIncomeSchema),
    "expense": ("planned_expense", "planned_expenses", PlannedExpenseSchema),
    "saving": ("planned_saving", "planned_savings", PlannedSavingSchema),
}


class ApiError(Exception):
    """The backend rejected a call"""

    def __init__(self, status_code: int, code: str, message: str):
        super().__init__(f"{code} ({status_code}): {message}")
        self.status_code = status_code
        self.code = code
        self.message = message


class ResponseValidationError(Exception):
    """The backend answered with a payload that does not match the contract"""


def _camel_payload(fields: Dict[str, Any]) -> Dict[str, Any]:
    return {to_camel(name): value for name, value in fields.items()}


class PlanningClient:
    """
    Client for the planning gateway.

    Every response goes through one schema validation step; missing required
    fields raise ``ResponseValidationError`` instead of being defaulted.
    Every mutation invalidates exactly the cached queries it can affect.
    """

    def __init__(self, http: httpx.Client, cache: Optional[QueryCache] = None):
        self.http = http
        self.cache = cache if cache is not None else QueryCache()

    def invoke(self, command: str, payload: Optional[Dict[str, Any]] = None) -> Any:
        """
        Call one backend command.

        Raises:
            ApiError: On any non-2xx response
        """
        response = self.http.post(f"/v1/invoke/{command}", json=payload or {})
        if response.is_error:
            try:
                error = response.json()["error"]
                code, message = error["code"], error["message"]
            except (ValueError, KeyError, TypeError):
                code, message = "http_error", response.text
            raise ApiError(response.status_code, code, message)
        return response.json()

    def _parse(self, schema: Type[SchemaT], data: Any) -> SchemaT:
        try:
            return schema.model_validate(data)
        except PydanticValidationError as e:
            raise ResponseValidationError(str(e)) from e

    def _parse_list(self, schema: Type[SchemaT], data: Any) -> List[SchemaT]:
        try:
            return TypeAdapter(List[schema]).validate_python(data)
        except PydanticValidationError as e:
            raise ResponseValidationError(str(e)) from e

    # Debts

    def list_debt_accounts(self) -> List[DebtAccountSchema]:
        return self.cache.get_or_fetch(
            DebtsKey(), lambda: self._parse_list(DebtAccountSchema, self.invoke("list_debt_accounts"))
        )

    def add_debt_account(self, **fields) -> DebtAccountSchema:
        debt = self._parse(DebtAccountSchema, self.invoke("add_debt_account", _camel_payload(fields)))
        self.cache.invalidate(DebtsKey())
        return debt

    def update_debt_account(self, debt_id: str, **changes) -> DebtAccountSchema:
        payload = {"id": debt_id, **_camel_payload(changes)}
        debt = self._parse(DebtAccountSchema, self.invoke("update_debt_account", payload))
        self.cache.invalidate(DebtsKey())
        return debt

    def delete_debt_account(self, debt_id: str) -> None:
        self.invoke("delete_debt_account", {"id": debt_id})
        self.cache.invalidate(DebtsKey(), DebtScheduleKey(debt_id))
        self.cache.invalidate_family(RemindersKey)

    def list_debt_schedule(self, debt_id: str) -> List[ScheduleEntrySchema]:
        return self.cache.get_or_fetch(
            DebtScheduleKey(debt_id),
            lambda: self._parse_list(ScheduleEntrySchema, self.invoke("list_debt_schedule", {"debtId": debt_id})),
        )

    def generate_debt_schedule(self, debt_id: str, months: Optional[int] = None) -> List[ScheduleEntrySchema]:
        payload: Dict[str, Any] = {"debtAccountId": debt_id}
        if months is not None:
            payload["months"] = months
        entries = self._parse_list(ScheduleEntrySchema, self.invoke("generate_debt_schedule", payload))
        self.cache.invalidate(DebtScheduleKey(debt_id))
        self.cache.invalidate_family(RemindersKey)
        return entries

    def confirm_debt_payment(
        self,
        schedule_id: str,
        account_id: Optional[str] = None,
        category_id: Optional[str] = None,
    ) -> List[ScheduleEntrySchema]:
        payload: Dict[str, Any] = {"scheduleId": schedule_id}
        if account_id is not None:
            payload["accountId"] = account_id
        if category_id is not None:
            payload["categoryId"] = category_id

        entries = self._parse_list(ScheduleEntrySchema, self.invoke("confirm_debt_payment", payload))

        debt_ids = {entry.debt_account_id for entry in entries}
        self.cache.invalidate(DebtsKey(), *(DebtScheduleKey(debt_id) for debt_id in debt_ids))
        self.cache.invalidate_family(RemindersKey)
        if category_id is not None:
            # The payment may have accrued into any plan's expenses
            self.cache.invalidate_family(PlanActualKey)
            self.cache.invalidate_family(PlanItemsKey, where=lambda key: key.kind == "expense")
        return entries

    # Monthly plans

    def list_monthly_plans(self) -> List[MonthlyPlanSchema]:
        return self.cache.get_or_fetch(
            PlansKey(), lambda: self._parse_list(MonthlyPlanSchema, self.invoke("list_monthly_plans"))
        )

    def create_monthly_plan(self, month: str, note: Optional[str] = None) -> MonthlyPlanSchema:
        payload: Dict[str, Any] = {"month": month}
        if note is not None:
            payload["note"] = note
        plan = self._parse(MonthlyPlanSchema, self.invoke("create_monthly_plan", payload))
        self.cache.invalidate(PlansKey())
        return plan

    def plan_vs_actual(self, plan_id: str) -> PlanActualSchema:
        return self.cache.get_or_fetch(
            PlanActualKey(plan_id),
            lambda: self._parse(PlanActualSchema, self.invoke("plan_vs_actual", {"planId": plan_id})),
        )

    def list_planned_items(self, kind: str, plan_id: str) -> List[BaseModel]:
        _, plural, schema = ITEM_COMMANDS[kind]
        return self.cache.get_or_fetch(
            PlanItemsKey(plan_id, kind),
            lambda: self._parse_list(schema, self.invoke(f"list_{plural}", {"planId": plan_id})),
        )

    def add_planned_item(self, kind: str, plan_id: str, **fields) -> BaseModel:
        singular, _, schema = ITEM_COMMANDS[kind]
        payload = {"monthlyPlanId": plan_id, **_camel_payload(fields)}
        item = self._parse(schema, self.invoke(f"add_{singular}", payload))
        self._invalidate_plan(plan_id, kind)
        return item

    def update_planned_item(self, kind: str, item_id: str, **changes) -> BaseModel:
        singular, _, schema = ITEM_COMMANDS[kind]
        payload = {"id": item_id, **_camel_payload(changes)}
        item = self._parse(schema, self.invoke(f"update_{singular}", payload))
        self._invalidate_plan(item.monthly_plan_id, kind)
        return item

    def delete_planned_item(self, kind: str, item_id: str) -> None:
        singular, _, _ = ITEM_COMMANDS[kind]
        self.invoke(f"delete_{singular}", {"id": item_id})
        # The owning plan is unknown once the item is gone
        self.cache.invalidate_family(PlanItemsKey, where=lambda key: key.kind == kind)
        self.cache.invalidate_family(PlanActualKey)
        self.cache.invalidate(PlansKey())

    def _invalidate_plan(self, plan_id: str, kind: str) -> None:
        self.cache.invalidate(PlanItemsKey(plan_id, kind), PlanActualKey(plan_id), PlansKey())

    # Reminders

    def list_reminders(self, status: Optional[str] = None) -> List[ReminderSchema]:
        payload = {"status": status} if status is not None else {}
        return self.cache.get_or_fetch(
            RemindersKey(status),
            lambda: self._parse_list(ReminderSchema, self.invoke("list_reminders", payload)),
        )
