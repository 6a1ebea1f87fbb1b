class BillingEngineError(Exception):
    default_detail = "Billing engine error"
    default_code = "billing_engine_error"

    def __init__(self, detail=None, account_id=None):
        self.detail = detail if detail is not None else self.default_detail
        self.account_id = account_id
        super().__init__(self.detail)

    def __str__(self):
        if self.account_id:
            return f"[{self.account_id}] {self.detail}"
        return str(self.detail)


class DataError(BillingEngineError):
    """The account's stored data can't be billed. Skip it and move on."""

    default_detail = "Account data can't be billed"
    default_code = "data_error"


class MissingPlan(DataError):
    default_detail = "Account has no plan"
    default_code = "missing_plan"


class PlanScheduleInconsistent(DataError):
    default_detail = (
        "Pending plan and plan change effective date must be set together"
    )
    default_code = "plan_schedule_inconsistent"


class MalformedDate(DataError):
    default_detail = "Stored date could not be interpreted"
    default_code = "malformed_date"


class TransientBillingError(BillingEngineError):
    default_detail = "Transient failure while billing account"
    default_code = "transient_failure"


class InvalidClockInput(BillingEngineError):
    default_detail = "Billing run clock must be a datetime"
    default_code = "invalid_clock_input"


class InvoiceIdCollision(DataError):
    default_detail = "Invoice id already belongs to another account"
    default_code = "invoice_id_collision"
