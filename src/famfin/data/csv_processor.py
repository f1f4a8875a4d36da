"""CSV import functionality for bank statement exports."""

import logging
import re
import uuid
from datetime import date

from sqlalchemy.orm import Session

from ..core.config import AppConfig
from ..core.database import TransactionORM
from ..core.models import CSVTransaction, ImportResult, TransactionType
from ..rules.engine import categorise_transactions

logger = logging.getLogger(__name__)

# Tried in order, first match wins. Groups are (day, month, year) positions.
DATE_PATTERNS = [
    (re.compile(r"(\d{2})/(\d{2})/(\d{4})"), (1, 2, 3)),
    (re.compile(r"(\d{4})-(\d{2})-(\d{2})"), (3, 2, 1)),
    (re.compile(r"(\d{2})-(\d{2})-(\d{4})"), (1, 2, 3)),
]

_NON_NUMERIC = re.compile(r"[^0-9.\-]")
_LEADING_NUMBER = re.compile(r"-?(?:\d+\.?\d*|\.\d+)")

DESCRIPTION_HEADERS = ("description", "narrative", "details", "memo")
PAYEE_HEADERS = ("payee", "merchant", "vendor")
DEBIT_HEADERS = ("debit", "withdrawal")
CREDIT_HEADERS = ("credit", "deposit")
CATEGORY_HEADERS = ("category",)


def parse_csv_line(line: str) -> list[str]:
    """Split one CSV line on commas outside double quotes.

    Quote characters are dropped and every field is whitespace-trimmed.
    Doubled quotes are not treated as escapes.
    """
    fields = []
    field = ""
    in_quotes = False

    for char in line:
        if char == '"':
            in_quotes = not in_quotes
        elif char == "," and not in_quotes:
            fields.append(field.strip())
            field = ""
        else:
            field += char

    fields.append(field.strip())
    return fields


def parse_date(date_str: str) -> str | None:
    """Normalise a DD/MM/YYYY, YYYY-MM-DD or DD-MM-YYYY date to YYYY-MM-DD."""
    for pattern, (day_group, month_group, year_group) in DATE_PATTERNS:
        match = pattern.search(date_str)
        if not match:
            continue
        normalised = f"{match.group(year_group)}-{match.group(month_group)}-{match.group(day_group)}"
        try:
            date.fromisoformat(normalised)
        except ValueError:
            return None
        return normalised
    return None


def parse_amount(value: str) -> float:
    """Read the leading number of a currency string, ignoring symbols and separators."""
    match = _LEADING_NUMBER.match(_NON_NUMERIC.sub("", value))
    if not match:
        return 0.0
    return float(match.group(0))


def _find_column(headers: list[str], candidates: tuple[str, ...]) -> int:
    for idx, header in enumerate(headers):
        if any(candidate in header for candidate in candidates):
            return idx
    return -1


def _field(fields: list[str], idx: int) -> str:
    return fields[idx] if 0 <= idx < len(fields) else ""


def detect_columns(header_line: str) -> dict[str, int]:
    """Detect column positions from the header row.

    Missing columns map to -1, except date and description which fall back to
    the first two positions. A header such as "Debit Amount" is a debit
    column, not a signed amount column.
    """
    headers = parse_csv_line(header_line.lower())

    date_idx = _find_column(headers, ("date",))
    description_idx = _find_column(headers, DESCRIPTION_HEADERS)
    debit_idx = _find_column(headers, DEBIT_HEADERS)
    credit_idx = _find_column(headers, CREDIT_HEADERS)
    amount_idx = _find_column(headers, ("amount",))
    if amount_idx >= 0 and amount_idx in (debit_idx, credit_idx):
        amount_idx = -1

    return {
        "date": date_idx if date_idx >= 0 else 0,
        "description": description_idx if description_idx >= 0 else 1,
        "payee": _find_column(headers, PAYEE_HEADERS),
        "category": _find_column(headers, CATEGORY_HEADERS),
        "amount": amount_idx,
        "debit": debit_idx,
        "credit": credit_idx,
    }


def _row_amount(fields: list[str], columns: dict[str, int]) -> float:
    if columns["amount"] >= 0:
        return parse_amount(_field(fields, columns["amount"]))
    if columns["debit"] >= 0 and columns["credit"] >= 0:
        return parse_amount(_field(fields, columns["credit"])) - parse_amount(_field(fields, columns["debit"]))
    if len(fields) >= 4:
        return parse_amount(fields[3]) - parse_amount(fields[2])
    return parse_amount(fields[2])


def parse_csv(text: str) -> list[CSVTransaction]:
    """Parse raw CSV text into normalised transactions.

    Unparseable rows are dropped rather than reported: rows with fewer than
    three fields, an unrecognised date, an empty description or a zero
    amount never reach the output.
    """
    lines = text.strip().splitlines()
    if len(lines) < 2:
        return []

    columns = detect_columns(lines[0])
    transactions = []

    for line in lines[1:]:
        if not line.strip():
            continue

        fields = parse_csv_line(line)
        if len(fields) < 3:
            continue

        txn_date = parse_date(_field(fields, columns["date"]))
        if not txn_date:
            continue

        description = _field(fields, columns["description"])
        if not description:
            continue

        amount = _row_amount(fields, columns)
        if amount == 0:
            continue

        payee = _field(fields, columns["payee"]) or None
        category = _field(fields, columns["category"]) or None
        transactions.append(
            CSVTransaction(date=txn_date, description=description, amount=amount, payee=payee, category=category)
        )

    return transactions


class CSVProcessor:
    """Import parsed CSV transactions into an account."""

    def __init__(self, session: Session, config: AppConfig | None = None):
        self.session = session
        self.config = config or AppConfig()

    def import_transactions(
        self,
        account_id: int,
        transactions: list[CSVTransaction],
        category_map: dict[str, int] | None = None,
    ) -> ImportResult:
        """Save transactions under one import batch and categorise them.

        Rows whose hash already exists from an earlier import are skipped.
        Identical rows within one file are all kept.
        The sign of ``amount`` decides the transaction type; the stored amount
        is its magnitude.
        """
        import_id = str(uuid.uuid4())
        category_map = category_map or {}

        hashes = [txn.generate_hash(account_id) for txn in transactions]
        existing = {
            row.import_hash
            for row in self.session.query(TransactionORM.import_hash)
            .filter(TransactionORM.account_id == account_id)
            .filter(TransactionORM.import_hash.in_(hashes))
            .all()
        }

        new_rows = []
        duplicates = 0
        for txn, import_hash in zip(transactions, hashes, strict=True):
            if import_hash in existing:
                duplicates += 1
                continue

            transaction_type = TransactionType.INCOME if txn.amount >= 0 else TransactionType.EXPENSE
            new_rows.append(
                TransactionORM(
                    account_id=account_id,
                    category_id=category_map.get(txn.category) if txn.category else None,
                    date=txn.date,
                    description=txn.description,
                    amount=abs(txn.amount),
                    transaction_type=transaction_type.value,
                    payee=txn.payee,
                    import_id=import_id,
                    import_hash=import_hash,
                )
            )

        self.session.add_all(new_rows)
        self.session.commit()

        new_ids = [row.id for row in new_rows]
        categorised = categorise_transactions(
            self.session,
            transaction_ids=new_ids,
            case_sensitive=self.config.rules.case_sensitive,
            batch_size=self.config.rules.update_batch_size,
        )

        logger.info(
            "Imported %d transactions into account %s (%d duplicates, %d categorised)",
            len(new_rows),
            account_id,
            duplicates,
            categorised,
        )

        return ImportResult(
            import_id=import_id, imported=len(new_rows), duplicates_skipped=duplicates, categorised=categorised
        )
