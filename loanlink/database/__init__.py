from loanlink.database.connection import (
    LOAN_APPLICATIONS_COLLECTION,
    LOANS_COLLECTION,
    USERS_COLLECTION,
    StoreHandle,
)
