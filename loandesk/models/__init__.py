from loandesk.models.audit_log import AuditLog
from loandesk.models.loan_application import LoanApplication

__all__ = [
    "AuditLog",
    "LoanApplication",
]
