"""
Typed Exception Hierarchy for the Ledger Kernel.

===============================================================================
WHY TYPED EXCEPTIONS
===============================================================================

Ledger arithmetic must fail precisely. Generic exceptions like ValueError
force callers to parse error messages, which is fragile and hard to test.

Every error in this module:
  1. Has a TYPED exception class (catch by type, not message)
  2. Has a CODE class attribute (machine-readable, API-safe)
  3. Carries structured DATA as attributes (not just a message string)

Example - WRONG way to handle errors:
    try:
        entry.commit()
    except Exception as e:
        if "balance" in str(e):  # FRAGILE - message might change
            ...

Example - RIGHT way (what this module enables):
    try:
        entry.commit()
    except UnbalancedEntryError as e:
        report(code=e.code, debits=e.debits, credits=e.credits)

===============================================================================
EXCEPTION HIERARCHY
===============================================================================

All exceptions inherit from LedgerKernelError:

    LedgerKernelError (base)
    |
    +-- MoneyError
    |   +-- InvalidAmountError
    |   +-- NegativeAmountError
    |   +-- RangeExceededError
    |   +-- DivisionByZeroError
    |   +-- EmptyCollectionError
    |   +-- MoneyParseError
    |
    +-- CurrencyError
    |   +-- InvalidCurrencyError
    |   +-- CurrencyMismatchError
    |   +-- CurrencyNotDefinedError
    |
    +-- AccountError
    |   +-- InvalidAccountError
    |
    +-- JournalError
    |   +-- InvalidJournalEntryError
    |   +-- InvalidAccountReferenceError
    |   +-- InvalidEntryTypeError
    |   +-- EmptyJournalEntryError
    |   +-- UnbalancedEntryError
    |   +-- AlreadyCommittedError
    |
    +-- PersistenceError
        +-- DocumentNotFoundError
        +-- SnapshotError
        +-- InvalidQueryError

===============================================================================
ERROR CODES - QUICK REFERENCE
===============================================================================

Category     | Code                       | When Raised
-------------|----------------------------|--------------------------------------
Money        | INVALID_AMOUNT             | Non-numeric / unparseable amount
             | NEGATIVE_AMOUNT            | Negative where only >= 0 is valid
             | RANGE_EXCEEDED             | Scaled integer beyond safe bound
             | DIVISION_BY_ZERO           | Money.divide(0)
             | EMPTY_COLLECTION           | average/min/max of nothing
             | PARSE_ERROR                | MoneyUtils.parse could not read text
-------------|----------------------------|--------------------------------------
Currency     | INVALID_CURRENCY           | Empty or non-string currency code
             | CURRENCY_MISMATCH          | Two currencies combined
             | CURRENCY_NOT_DEFINED       | Factory registry lookup miss
-------------|----------------------------|--------------------------------------
Account      | INVALID_ACCOUNT            | Empty account name
-------------|----------------------------|--------------------------------------
Journal      | INVALID_JOURNAL_ENTRY      | Empty description
             | INVALID_ACCOUNT_REFERENCE  | Object lacks debit/credit/get_balance
             | INVALID_ENTRY_TYPE         | Type other than debit/credit
             | EMPTY_JOURNAL_ENTRY        | No lines, or one side missing
             | UNBALANCED_ENTRY           | Debits != Credits
             | ALREADY_COMMITTED          | add_entry/commit after commit
-------------|----------------------------|--------------------------------------
Persistence  | DOCUMENT_NOT_FOUND         | Snapshot id missing in adapter
             | SNAPSHOT_ERROR             | Snapshot cannot be turned into object
             | INVALID_QUERY              | Malformed filters or unknown operator

===============================================================================
DESIGN DECISIONS
===============================================================================

1. WHY INHERIT FROM Exception (not ValueError, etc.)?
   Domain exceptions should be catchable as a group. Inheriting from
   built-in types mixes domain errors with programming errors.

2. WHY code CLASS ATTRIBUTE (not instance)?
   Codes are static per exception type, so UnbalancedEntryError.code works
   without instantiation.

3. WHY STORE ALL CONTEXT AS ATTRIBUTES?
   Exceptions may be logged as structured JSON (see logging_config).
   Attributes survive; parsed message strings don't.

===============================================================================
"""

from __future__ import annotations

from typing import Any


class LedgerKernelError(Exception):
    """
    Base exception for all ledger kernel errors.

    All subclasses must have a `code` class attribute for machine-readable
    error identification.
    """

    code: str = "LEDGER_KERNEL_ERROR"


# Money-related exceptions


class MoneyError(LedgerKernelError):
    """Base exception for monetary value errors."""

    code: str = "MONEY_ERROR"


class InvalidAmountError(MoneyError):
    """Amount cannot be interpreted as a finite decimal number."""

    code: str = "INVALID_AMOUNT"

    def __init__(self, value: Any, reason: str | None = None):
        self.value = repr(value)
        self.reason = reason
        message = f"Invalid amount: {value!r}"
        if reason:
            message = f"{message} ({reason})"
        super().__init__(message)


class NegativeAmountError(MoneyError):
    """A negative amount was supplied where only non-negative is valid."""

    code: str = "NEGATIVE_AMOUNT"

    def __init__(self, amount: Any, context: str = "amount"):
        self.amount = str(amount)
        self.context = context
        super().__init__(f"Amount must be positive: {context} was {amount}")


class RangeExceededError(MoneyError):
    """Scaled-integer representation would exceed the safe integer bound."""

    code: str = "RANGE_EXCEEDED"

    def __init__(self, amount: Any, currency: str, scale: int, limit: int):
        self.amount = str(amount)
        self.currency = currency
        self.scale = scale
        self.limit = limit
        super().__init__(
            f"Amount {amount} exceeds the maximum safe value for {currency} "
            f"with {scale} decimal places (limit {limit} scaled units)"
        )


class DivisionByZeroError(MoneyError):
    """Money was divided by zero."""

    code: str = "DIVISION_BY_ZERO"

    def __init__(self, currency: str):
        self.currency = currency
        super().__init__(f"Division by zero on {currency} amount")


class EmptyCollectionError(MoneyError):
    """An aggregate was requested over an empty collection."""

    code: str = "EMPTY_COLLECTION"

    def __init__(self, operation: str):
        self.operation = operation
        super().__init__(f"Cannot calculate {operation} of an empty collection")


class MoneyParseError(MoneyError):
    """Text could not be parsed as a monetary amount."""

    code: str = "PARSE_ERROR"

    def __init__(self, text: Any):
        self.text = str(text)
        super().__init__(f"Cannot parse money string: {text!r}")


# Currency-related exceptions


class CurrencyError(LedgerKernelError):
    """Base exception for currency-related errors."""

    code: str = "CURRENCY_ERROR"


class InvalidCurrencyError(CurrencyError):
    """Currency code is empty or not a string."""

    code: str = "INVALID_CURRENCY"

    def __init__(self, currency: Any):
        self.currency = repr(currency)
        super().__init__(f"Invalid currency code: {currency!r}")


class CurrencyMismatchError(CurrencyError):
    """Attempted operation on mismatched currencies."""

    code: str = "CURRENCY_MISMATCH"

    def __init__(self, currency1: str, currency2: str, operation: str | None = None):
        self.currency1 = currency1
        self.currency2 = currency2
        self.operation = operation
        if operation:
            message = (
                f"Currency mismatch: cannot {operation} between "
                f"{currency1} and {currency2}"
            )
        else:
            message = f"Currency mismatch: {currency1} vs {currency2}"
        super().__init__(message)


class CurrencyNotDefinedError(CurrencyError):
    """Currency factory registry has no definition for the code."""

    code: str = "CURRENCY_NOT_DEFINED"

    def __init__(self, currency: str):
        self.currency = currency
        super().__init__(f"Currency {currency} not defined in registry")


# Account-related exceptions


class AccountError(LedgerKernelError):
    """Base exception for account-related errors."""

    code: str = "ACCOUNT_ERROR"


class InvalidAccountError(AccountError):
    """Account cannot be constructed as requested."""

    code: str = "INVALID_ACCOUNT"

    def __init__(self, reason: str):
        self.reason = reason
        super().__init__(f"Invalid account: {reason}")


# Journal-related exceptions


class JournalError(LedgerKernelError):
    """Base exception for journal entry errors."""

    code: str = "JOURNAL_ERROR"


class InvalidJournalEntryError(JournalError):
    """Journal entry cannot be constructed as requested."""

    code: str = "INVALID_JOURNAL_ENTRY"

    def __init__(self, reason: str):
        self.reason = reason
        super().__init__(f"Invalid journal entry: {reason}")


class InvalidAccountReferenceError(JournalError):
    """Object passed as an account lacks debit/credit/get_balance."""

    code: str = "INVALID_ACCOUNT_REFERENCE"

    def __init__(self, account: Any, missing: tuple[str, ...] = ()):
        self.account_type = type(account).__name__
        self.missing = missing
        detail = f" (missing: {', '.join(missing)})" if missing else ""
        super().__init__(
            f"Invalid account passed to JournalEntry: {self.account_type}{detail}"
        )


class InvalidEntryTypeError(JournalError):
    """Entry type is neither debit nor credit."""

    code: str = "INVALID_ENTRY_TYPE"

    def __init__(self, entry_type: Any):
        self.entry_type = repr(entry_type)
        super().__init__(
            f"Entry type must be either debit or credit, got {entry_type!r}"
        )


class EmptyJournalEntryError(JournalError):
    """Commit attempted without at least one debit and one credit."""

    code: str = "EMPTY_JOURNAL_ENTRY"

    def __init__(self, debit_lines: int, credit_lines: int):
        self.debit_lines = debit_lines
        self.credit_lines = credit_lines
        super().__init__(
            "Journal entry must have at least one debit and one credit "
            f"(debit lines={debit_lines}, credit lines={credit_lines})"
        )


class UnbalancedEntryError(JournalError):
    """Journal entry debits do not equal credits."""

    code: str = "UNBALANCED_ENTRY"

    def __init__(self, debits: str, credits: str):
        self.debits = debits
        self.credits = credits
        super().__init__(
            "Journal entry must balance (debits must equal credits). "
            f"Debits: {debits}, Credits: {credits}"
        )


class AlreadyCommittedError(JournalError):
    """Entry is in its terminal committed state."""

    code: str = "ALREADY_COMMITTED"

    def __init__(self, operation: str, entry_id: str | None = None):
        self.operation = operation
        self.entry_id = entry_id
        super().__init__(
            f"Journal entry has already been committed; cannot {operation}"
        )


# Persistence-related exceptions


class PersistenceError(LedgerKernelError):
    """Base exception for snapshot storage errors."""

    code: str = "PERSISTENCE_ERROR"


class DocumentNotFoundError(PersistenceError):
    """Stored snapshot with given id was not found."""

    code: str = "DOCUMENT_NOT_FOUND"

    def __init__(self, collection: str, document_id: str):
        self.collection = collection
        self.document_id = document_id
        super().__init__(f"Document not found: {collection}/{document_id}")


class SnapshotError(PersistenceError):
    """Snapshot data cannot be turned back into a live object."""

    code: str = "SNAPSHOT_ERROR"

    def __init__(self, kind: str, reason: str):
        self.kind = kind
        self.reason = reason
        super().__init__(f"Cannot restore {kind} from snapshot: {reason}")


class InvalidQueryError(PersistenceError):
    """Query filters are malformed or use an unknown operator."""

    code: str = "INVALID_QUERY"

    def __init__(self, reason: str):
        self.reason = reason
        super().__init__(f"Invalid query: {reason}")
