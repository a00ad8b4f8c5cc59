import logging
import re
from typing import Any, Dict, List, Optional

from pymongo.errors import PyMongoError

from loanlink.core.exceptions import NotFoundError, StoreError, ValidationFailedError
from loanlink.database.connection import LOANS_COLLECTION
from loanlink.helpers.response_builder import (
    build_delete_summary,
    build_insert_summary,
    build_update_summary,
)
from loanlink.helpers.validation import parse_object_id, reject_operator_keys, strip_identifier

logger = logging.getLogger(__name__)

# Catalog fields matched by the search term
SEARCHABLE_FIELDS = ("title", "loanTitle", "category")


def build_search_query(term: Optional[str]) -> Dict[str, Any]:
    """Case-insensitive literal substring match over title and category."""
    if not term:
        return {}
    search_regex = {"$regex": re.escape(term), "$options": "i"}
    return {"$or": [{field: search_regex} for field in SEARCHABLE_FIELDS]}


class LoanService:
    """Loan product catalog: search plus administrative create, update and delete."""

    def __init__(self, store, search_enabled: bool = True):
        self.store = store
        self.search_enabled = search_enabled

    async def _collection(self):
        return await self.store.get_collection(LOANS_COLLECTION)

    async def search(self, term: Optional[str] = None) -> List[Dict[str, Any]]:
        if term is not None:
            term = term.strip()
        if not self.search_enabled:
            term = None

        query = build_search_query(term)
        loans = await self._collection()
        try:
            results = await loans.find(query).to_list(length=None)
        except PyMongoError as e:
            logger.error(f"Error fetching loans (search={term!r}): {e}")
            raise StoreError(f"Database service unavailable: {e}") from e

        logger.info(f"Loan search {term!r} returned {len(results)} loans")
        return results

    async def get_by_id(self, loan_id: str) -> Dict[str, Any]:
        object_id = parse_object_id(loan_id, label="loan id")
        loans = await self._collection()
        try:
            loan = await loans.find_one({"_id": object_id})
        except PyMongoError as e:
            logger.error(f"Error fetching loan {loan_id}: {e}")
            raise StoreError(f"Database service unavailable: {e}") from e

        if not loan:
            logger.warning(f"Loan {loan_id} not found")
            raise NotFoundError(f"Loan '{loan_id}' not found")
        return loan

    async def create(self, loan_data: Dict[str, Any]) -> Dict[str, Any]:
        if not isinstance(loan_data, dict):
            raise ValidationFailedError("Request body must be a JSON object")
        document = reject_operator_keys(strip_identifier(loan_data))
        if not document:
            raise ValidationFailedError("Loan body must contain at least one field")

        loans = await self._collection()
        try:
            result = await loans.insert_one(document)
        except PyMongoError as e:
            logger.error(f"Error creating loan: {e}")
            raise StoreError(f"Database service unavailable: {e}") from e

        logger.info(f"Loan created with ID: {result.inserted_id}")
        return build_insert_summary(result)

    async def update(self, loan_id: str, patch: Dict[str, Any]) -> Dict[str, Any]:
        object_id = parse_object_id(loan_id, label="loan id")
        if not isinstance(patch, dict):
            raise ValidationFailedError("Request body must be a JSON object")
        changes = reject_operator_keys(strip_identifier(patch))
        if not changes:
            raise ValidationFailedError("Update body must contain at least one field")

        loans = await self._collection()
        try:
            result = await loans.update_one({"_id": object_id}, {"$set": changes})
        except PyMongoError as e:
            logger.error(f"Error updating loan {loan_id}: {e}")
            raise StoreError(f"Database service unavailable: {e}") from e

        if result.matched_count == 0:
            logger.warning(f"Loan {loan_id} not found for update")
            raise NotFoundError(f"Loan '{loan_id}' not found")

        logger.info(f"Loan {loan_id} updated ({sorted(changes)})")
        return build_update_summary(result)

    async def delete(self, loan_id: str) -> Dict[str, Any]:
        object_id = parse_object_id(loan_id, label="loan id")
        loans = await self._collection()
        try:
            result = await loans.delete_one({"_id": object_id})
        except PyMongoError as e:
            logger.error(f"Error deleting loan {loan_id}: {e}")
            raise StoreError(f"Database service unavailable: {e}") from e

        if result.deleted_count == 0:
            logger.warning(f"Loan {loan_id} not found for delete")
            raise NotFoundError(f"Loan '{loan_id}' not found")

        logger.info(f"Loan {loan_id} deleted")
        return build_delete_summary(result)
