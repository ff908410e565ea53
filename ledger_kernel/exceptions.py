"""
Typed Exception Hierarchy for the Ledger Kernel.

===============================================================================
WHY TYPED EXCEPTIONS
===============================================================================

Callers of the ledger must react to failures precisely: an unbalanced entry
is a user input problem, a closed period means "pick another date", a missing
chart account is a deployment problem.  Parsing message strings to tell these
apart is fragile, so every failure:

  1. Has its own exception class (catch by type, not by message)
  2. Carries a ``code`` class attribute (machine-readable, API-safe)
  3. Stores its context as attributes (not only in the message)

    try:
        ledger.create_entry(header, lines, actor_id)
    except UnbalancedEntryError as e:
        return {"error": e.code, "debits": e.debits, "credits": e.credits}

===============================================================================
EXCEPTION HIERARCHY
===============================================================================

    LedgerError (base)
    |
    +-- PostingError
    |   +-- UnbalancedEntryError
    |   +-- InvalidEntryError
    |   +-- InvalidEntryStateError
    |   +-- DuplicateEntryNumberError
    |   +-- EntryNotFoundError
    |
    +-- PeriodError
    |   +-- ClosedPeriodError
    |   +-- PeriodNotFoundError
    |   +-- PeriodAlreadyClosedError
    |   +-- PeriodResolutionError
    |
    +-- AccountError
    |   +-- AccountNotFoundError
    |   +-- AccountInactiveError
    |   +-- MissingChartAccountError
    |   +-- DuplicateAccountCodeError
    |
    +-- ReversalError
    |   +-- EntryNotPostedError
    |
    +-- ImmutabilityError
        +-- ImmutabilityViolationError

InvalidCurrencyError and InvalidAmountError live in db/types.py as ValueError
subclasses (re-exported here); they are raised by plain input validation
before any ledger state is touched.

===============================================================================
ERROR CODES - QUICK REFERENCE
===============================================================================

Category        | Code                      | When Raised
----------------|---------------------------|-------------------------------------
Posting         | UNBALANCED_ENTRY          | |debits - credits| >= 0.01
                | INVALID_ENTRY             | Fewer than two lines, bad header
                | INVALID_ENTRY_STATE       | Posting a reversed entry
                | DUPLICATE_ENTRY_NUMBER    | Caller-supplied number already used
                | ENTRY_NOT_FOUND           | Entry id does not exist
----------------|---------------------------|-------------------------------------
Period          | CLOSED_PERIOD             | Creating/posting into a closed period
                | PERIOD_NOT_FOUND          | Period id does not exist
                | PERIOD_ALREADY_CLOSED     | Closing a closed period
                | PERIOD_RESOLUTION_FAILED  | Store failure while creating a period
----------------|---------------------------|-------------------------------------
Account         | ACCOUNT_NOT_FOUND         | Account id/code does not exist
                | ACCOUNT_INACTIVE          | Line targets a deactivated account
                | MISSING_CHART_ACCOUNT     | Well-known account absent from chart
                | DUPLICATE_ACCOUNT_CODE    | Account code already used
----------------|---------------------------|-------------------------------------
Reversal        | ENTRY_NOT_POSTED          | Reversing a non-posted entry
----------------|---------------------------|-------------------------------------
Immutability    | IMMUTABILITY_VIOLATION    | Modifying a posted/closed record

Posting an entry that is already POSTED is not an error: it returns the entry
unchanged.

===============================================================================
"""

from ledger_kernel.db.types import InvalidAmountError, InvalidCurrencyError  # noqa: F401  re-exported


class LedgerError(Exception):
    """
    Base exception for all ledger errors.

    All subclasses carry a ``code`` class attribute for machine-readable
    identification.
    """

    code: str = "LEDGER_ERROR"


# Posting-related exceptions


class PostingError(LedgerError):
    """Base exception for journal entry creation and posting errors."""

    code: str = "POSTING_ERROR"


class UnbalancedEntryError(PostingError):
    """Journal entry debits do not equal credits."""

    code: str = "UNBALANCED_ENTRY"

    def __init__(self, debits: str, credits: str):
        self.debits = debits
        self.credits = credits
        super().__init__(
            f"Journal entry is not balanced. Debits: {debits}, Credits: {credits}"
        )


class InvalidEntryError(PostingError):
    """Entry header or line set is structurally invalid."""

    code: str = "INVALID_ENTRY"

    def __init__(self, reason: str):
        self.reason = reason
        super().__init__(f"Invalid journal entry: {reason}")


class InvalidEntryStateError(PostingError):
    """Operation is not allowed for the entry's current status."""

    code: str = "INVALID_ENTRY_STATE"

    def __init__(self, journal_entry_id: str, status: str, operation: str):
        self.journal_entry_id = journal_entry_id
        self.status = status
        self.operation = operation
        super().__init__(
            f"Cannot {operation} entry {journal_entry_id}: status is {status}"
        )


class DuplicateEntryNumberError(PostingError):
    """A caller-supplied entry number is already in use."""

    code: str = "DUPLICATE_ENTRY_NUMBER"

    def __init__(self, entry_number: str):
        self.entry_number = entry_number
        super().__init__(f"Entry number already in use: {entry_number}")


class EntryNotFoundError(PostingError):
    """Journal entry was not found."""

    code: str = "ENTRY_NOT_FOUND"

    def __init__(self, journal_entry_id: str):
        self.journal_entry_id = journal_entry_id
        super().__init__(f"Journal entry not found: {journal_entry_id}")


# Period-related exceptions


class PeriodError(LedgerError):
    """Base exception for period-related errors."""

    code: str = "PERIOD_ERROR"


class ClosedPeriodError(PeriodError):
    """Attempted to record or post into a closed period."""

    code: str = "CLOSED_PERIOD"

    def __init__(self, period_name: str, entry_date: str):
        self.period_name = period_name
        self.entry_date = entry_date
        super().__init__(
            f"Cannot record into closed period {period_name} (entry_date: {entry_date})"
        )


class PeriodNotFoundError(PeriodError):
    """Accounting period was not found."""

    code: str = "PERIOD_NOT_FOUND"

    def __init__(self, period_id: str):
        self.period_id = period_id
        super().__init__(f"Accounting period not found: {period_id}")


class PeriodAlreadyClosedError(PeriodError):
    """Period is already closed."""

    code: str = "PERIOD_ALREADY_CLOSED"

    def __init__(self, period_name: str):
        self.period_name = period_name
        super().__init__(f"Period {period_name} is already closed")


class PeriodResolutionError(PeriodError):
    """The store failed while resolving or creating a covering period."""

    code: str = "PERIOD_RESOLUTION_FAILED"

    def __init__(self, entry_date: str, reason: str):
        self.entry_date = entry_date
        self.reason = reason
        super().__init__(
            f"Could not resolve accounting period for {entry_date}: {reason}"
        )


# Account-related exceptions


class AccountError(LedgerError):
    """Base exception for account-related errors."""

    code: str = "ACCOUNT_ERROR"


class AccountNotFoundError(AccountError):
    """Account was not found."""

    code: str = "ACCOUNT_NOT_FOUND"

    def __init__(self, account_id: str):
        self.account_id = account_id
        super().__init__(f"Account not found: {account_id}")


class AccountInactiveError(AccountError):
    """Account is not active for new lines."""

    code: str = "ACCOUNT_INACTIVE"

    def __init__(self, account_id: str):
        self.account_id = account_id
        super().__init__(f"Account is inactive: {account_id}")


class MissingChartAccountError(AccountError):
    """A well-known account code required by an adapter is absent."""

    code: str = "MISSING_CHART_ACCOUNT"

    def __init__(self, account_code: str, role: str):
        self.account_code = account_code
        self.role = role
        super().__init__(
            f"Chart of accounts has no {role} account with code {account_code}"
        )


class DuplicateAccountCodeError(AccountError):
    """Account code is already used by another account."""

    code: str = "DUPLICATE_ACCOUNT_CODE"

    def __init__(self, account_code: str):
        self.account_code = account_code
        super().__init__(f"Account code already exists: {account_code}")


# Reversal-related exceptions


class ReversalError(LedgerError):
    """Base exception for reversal-related errors."""

    code: str = "REVERSAL_ERROR"


class EntryNotPostedError(ReversalError):
    """Cannot reverse an entry that is not posted."""

    code: str = "ENTRY_NOT_POSTED"

    def __init__(self, journal_entry_id: str, status: str):
        self.journal_entry_id = journal_entry_id
        self.status = status
        super().__init__(
            f"Cannot reverse entry {journal_entry_id}: status is {status}, not posted"
        )


# Immutability-related exceptions


class ImmutabilityError(LedgerError):
    """Base exception for immutability-related errors."""

    code: str = "IMMUTABILITY_ERROR"


class ImmutabilityViolationError(ImmutabilityError):
    """Attempted to modify or delete a posted entry, its lines, or a closed period."""

    code: str = "IMMUTABILITY_VIOLATION"

    def __init__(self, entity_type: str, entity_id: str, reason: str):
        self.entity_type = entity_type
        self.entity_id = entity_id
        self.reason = reason
        super().__init__(
            f"Immutability violation on {entity_type} {entity_id}: {reason}"
        )
