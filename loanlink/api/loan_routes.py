from fastapi import APIRouter, Body, Depends, Query
from fastapi import status
from typing import Any, Dict, List, Optional
import logging

from loanlink.api.dependencies import get_loan_service, require
from loanlink.core.authorization import LOANS_WRITE
from loanlink.helpers.response_builder import convert_objectid
from loanlink.services.loan_service import LoanService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/loans", tags=["Loans"])


# Lists the loan catalog, optionally filtered by a title/category search term
@router.get("", response_model=List[Dict[str, Any]])
async def search_loans(
    search: Optional[str] = Query(default=None, description="Case-insensitive title or category substring"),
    service: LoanService = Depends(get_loan_service),
):
    loans = await service.search(search)
    return convert_objectid(loans)


# Adds a loan product to the catalog
@router.post("", status_code=status.HTTP_201_CREATED, dependencies=[Depends(require(LOANS_WRITE))])
async def create_loan(
    payload: Dict[str, Any] = Body(...),
    service: LoanService = Depends(get_loan_service),
):
    return await service.create(payload)


@router.get("/{loan_id}", response_model=Dict[str, Any])
async def get_loan(loan_id: str, service: LoanService = Depends(get_loan_service)):
    loan = await service.get_by_id(loan_id)
    return convert_objectid(loan)


@router.put("/{loan_id}", dependencies=[Depends(require(LOANS_WRITE))])
async def update_loan(
    loan_id: str,
    payload: Dict[str, Any] = Body(...),
    service: LoanService = Depends(get_loan_service),
):
    return await service.update(loan_id, payload)


@router.delete("/{loan_id}", dependencies=[Depends(require(LOANS_WRITE))])
async def delete_loan(loan_id: str, service: LoanService = Depends(get_loan_service)):
    return await service.delete(loan_id)
