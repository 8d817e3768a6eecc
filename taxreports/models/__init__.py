from taxreports.models.account import Account
from taxreports.models.ledger import Expense, ExpenseCategory, Income
from taxreports.models.property import Property
from taxreports.models.report import GeneratedReport, ReportType

__all__ = [
    "Account",
    "Expense",
    "ExpenseCategory",
    "GeneratedReport",
    "Income",
    "Property",
    "ReportType",
]
