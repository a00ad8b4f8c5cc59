from pydantic import BaseModel, ConfigDict, Field
from enum import Enum


class ApplicationStatusEnum(str, Enum):
    pending = "pending"
    # approved and rejected have no transition yet; reserved for the review workflow
    approved = "approved"
    rejected = "rejected"


class ApplicationFeeStatusEnum(str, Enum):
    unpaid = "unpaid"
    paid = "paid"


# Something@something; no normalization, emails are matched exactly as stored
EMAIL_PATTERN = r"^[^@\s]+@[^@\s]+$"

# Fields the server sets on every new application; never taken from the request body
SERVER_ASSIGNED_FIELDS = ("status", "applicationFeeStatus", "application_date")


class LoanApplicationRequest(BaseModel):
    """Fields a borrower must submit to apply for a loan. Any other fields are kept as-is."""

    model_config = ConfigDict(extra="allow", str_strip_whitespace=True)

    loanTitle: str = Field(..., min_length=1, description="Title of the loan product applied for")
    loanAmount: float = Field(..., gt=0, allow_inf_nan=False, description="Requested amount")
    category: str = Field(..., min_length=1, description="Loan category")
    firstName: str = Field(..., min_length=1, description="Applicant first name")
    lastName: str = Field(..., min_length=1, description="Applicant last name")
    userEmail: str = Field(..., min_length=1, pattern=EMAIL_PATTERN, description="Email of the applying user, stored exactly as sent")
