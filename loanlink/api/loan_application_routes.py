from fastapi import APIRouter, Body, Depends
from fastapi import status
from typing import Any, Dict, List, Optional
import logging

from loanlink.api.dependencies import get_authorization_policy, get_loan_application_service, require
from loanlink.core.auth_dependencies import get_current_email
from loanlink.core.authorization import APPLICATIONS_CANCEL, APPLICATIONS_LIST, AuthorizationPolicy
from loanlink.helpers.response_builder import convert_objectid
from loanlink.services.loan_application_service import LoanApplicationService

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Loan Applications"])


# Submits a loan application; it is stored as pending with an unpaid fee
@router.post("/apply-loan", status_code=status.HTTP_201_CREATED)
async def apply_loan(
    payload: Dict[str, Any] = Body(...),
    service: LoanApplicationService = Depends(get_loan_application_service),
):
    return await service.apply(payload)


# Lists all applications, newest first
@router.get("/loan-applications", response_model=List[Dict[str, Any]], dependencies=[Depends(require(APPLICATIONS_LIST))])
async def list_loan_applications(service: LoanApplicationService = Depends(get_loan_application_service)):
    applications = await service.list_all()
    return convert_objectid(applications)


@router.get("/loan-applications/user/{email}", response_model=List[Dict[str, Any]])
@router.get("/my-loans/{email}", response_model=List[Dict[str, Any]])
async def list_user_loan_applications(
    email: str,
    service: LoanApplicationService = Depends(get_loan_application_service),
):
    applications = await service.list_by_user(email)
    return convert_objectid(applications)


@router.get("/pending-loans", response_model=List[Dict[str, Any]])
async def list_pending_loan_applications(service: LoanApplicationService = Depends(get_loan_application_service)):
    applications = await service.list_pending()
    return convert_objectid(applications)


# Cancels (deletes) an application; owners may cancel their own
@router.delete("/loan-applications/{application_id}")
async def cancel_loan_application(
    application_id: str,
    caller_email: Optional[str] = Depends(get_current_email),
    policy: AuthorizationPolicy = Depends(get_authorization_policy),
    service: LoanApplicationService = Depends(get_loan_application_service),
):
    async def owner_lookup() -> Optional[str]:
        application = await service.get_by_id(application_id)
        return application.get("userEmail")

    await policy.authorize(caller_email, APPLICATIONS_CANCEL, owner_lookup=owner_lookup)
    return await service.cancel(application_id)
