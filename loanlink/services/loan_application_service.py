import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from pymongo import DESCENDING
from pymongo.errors import PyMongoError

from loanlink.core.exceptions import NotFoundError, StoreError
from loanlink.database.connection import LOAN_APPLICATIONS_COLLECTION
from loanlink.helpers.response_builder import build_delete_summary, build_insert_summary
from loanlink.helpers.validation import parse_object_id, parse_payload, strip_identifier
from loanlink.schemas.loan_schema import (
    SERVER_ASSIGNED_FIELDS,
    ApplicationFeeStatusEnum,
    ApplicationStatusEnum,
    LoanApplicationRequest,
)

logger = logging.getLogger(__name__)


class LoanApplicationService:

    def __init__(self, store):
        self.store = store

    async def _collection(self):
        return await self.store.get_collection(LOAN_APPLICATIONS_COLLECTION)

    # Validates the application and stores it as pending with an unpaid fee
    async def apply(self, application_data: Dict[str, Any]) -> Dict[str, Any]:
        request = parse_payload(LoanApplicationRequest, application_data)

        document = strip_identifier(request.model_dump(mode="json"))
        for field in SERVER_ASSIGNED_FIELDS:
            document.pop(field, None)
        if float(document["loanAmount"]).is_integer():
            document["loanAmount"] = int(document["loanAmount"])
        document.update({
            "status": ApplicationStatusEnum.pending.value,
            "applicationFeeStatus": ApplicationFeeStatusEnum.unpaid.value,
            "application_date": datetime.now(timezone.utc),
        })

        applications = await self._collection()
        try:
            result = await applications.insert_one(document)
        except PyMongoError as e:
            logger.error(f"Error creating loan application for {document['userEmail']}: {e}")
            raise StoreError(f"Database service unavailable: {e}") from e

        logger.info(f"Loan application {result.inserted_id} created for {document['userEmail']}")
        return build_insert_summary(result)

    async def _find(self, query: Dict[str, Any], sort: Optional[list] = None) -> List[Dict[str, Any]]:
        applications = await self._collection()
        try:
            return await applications.find(query, sort=sort).to_list(length=None)
        except PyMongoError as e:
            logger.error(f"Database query error ({query}): {e}")
            raise StoreError(f"Database service unavailable: {e}") from e

    # Newest applications first
    async def list_all(self) -> List[Dict[str, Any]]:
        return await self._find({}, sort=[("application_date", DESCENDING)])

    async def list_by_user(self, email: str) -> List[Dict[str, Any]]:
        results = await self._find({"userEmail": email})
        logger.info(f"Found {len(results)} loan applications for {email}")
        return results

    async def list_pending(self) -> List[Dict[str, Any]]:
        return await self._find({"status": ApplicationStatusEnum.pending.value})

    async def get_by_id(self, application_id: str) -> Dict[str, Any]:
        object_id = parse_object_id(application_id, label="application id")
        applications = await self._collection()
        try:
            application = await applications.find_one({"_id": object_id})
        except PyMongoError as e:
            logger.error(f"Error retrieving loan application {application_id}: {e}")
            raise StoreError(f"Database service unavailable: {e}") from e

        if not application:
            logger.warning(f"Loan application {application_id} not found")
            raise NotFoundError(f"Loan application '{application_id}' not found")
        return application

    async def cancel(self, application_id: str) -> Dict[str, Any]:
        object_id = parse_object_id(application_id, label="application id")
        applications = await self._collection()
        try:
            result = await applications.delete_one({"_id": object_id})
        except PyMongoError as e:
            logger.error(f"Error cancelling loan application {application_id}: {e}")
            raise StoreError(f"Database service unavailable: {e}") from e

        if result.deleted_count == 0:
            logger.warning(f"Loan application {application_id} not found for cancel")
            raise NotFoundError(f"Loan application '{application_id}' not found")

        logger.info(f"Loan application {application_id} cancelled")
        return build_delete_summary(result)
