from dataclasses import dataclass
from decimal import Decimal
from enum import Enum
from typing import Callable


class TransactionType(str, Enum):
    INCOME = "income"
    EXPENSE = "expense"


class Source(str, Enum):
    MANUAL = "manual"
    DELIMITED = "csv"
    MARKUP = "ofx"


class MatchType(str, Enum):
    EXACT = "exact"
    CONTAINS = "contains"


class Institution(str, Enum):
    NUBANK = "Nubank"
    MERCADO_PAGO = "Mercado Pago"
    INTER = "Inter"
    OTHER = "Other"


class AccountType(str, Enum):
    CHECKING = "checking"  # checking or debit account
    CREDIT_CARD = "credit_card"


@dataclass
class CandidateTransaction:
    """A parsed or hand-entered transaction that has not been stored yet."""
    date: str  # ISO 8601
    description: str
    amount: Decimal  # always >= 0, direction lives in type
    type: TransactionType
    category: str = ""  # empty = uncategorized
    source: Source = Source.MANUAL
    institution: str | None = None
    is_pending: bool = True
    notes: str | None = None


@dataclass
class StoredTransaction(CandidateTransaction):
    id: int | None = None


@dataclass
class CategoryRule:
    term: str
    category: str
    match_type: MatchType = MatchType.CONTAINS
    auto_confirm: bool = True
    institution: str | None = None
    type: TransactionType | None = None  # None = any type
    id: int | None = None


@dataclass
class Parsed:
    """A row that produced a transaction."""
    transaction: CandidateTransaction


@dataclass
class Skipped:
    """A row dropped by a parser, kept for auditing."""
    reason: str
    line: int | None = None


RowResult = Parsed | Skipped


@dataclass
class ImporterInfo:
    """Metadata and parse function for a statement file format."""
    key: str
    name: str
    file_extensions: list[str]
    parse: Callable
