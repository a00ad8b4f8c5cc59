from loanlink.schemas.user_schemas import AssignableRoleEnum, RoleUpdate, UserRoleEnum, UserUpsert
from loanlink.schemas.loan_schema import ApplicationFeeStatusEnum, ApplicationStatusEnum, LoanApplicationRequest
from loanlink.schemas.payment_schema import PaymentIntentResponse
