"""
transaction_loader.py
----------------------
Loads already-normalized transaction CSVs into Transaction records.

The CSV must carry the normalized columns written by the upstream bank
parser; no delimiter sniffing or bank-specific header mapping happens here.

Required columns: id, date, description, amount
Optional columns: currency_symbol, category, source_name, source_type,
                  is_recurring
"""

import os
from typing import List

import pandas as pd

from config.config_loader import get_ingestion_config
from recurrence.models import Transaction, TransactionSource


_TRUTHY = {"true", "1", "yes", "y"}


def load_transactions(path: str) -> List[Transaction]:
    """
    Read a normalized transactions CSV.

    Raises:
        FileNotFoundError: path does not exist.
        ValueError: required columns are missing or a value cannot be parsed.
    """
    if not os.path.exists(path):
        raise FileNotFoundError(f"Transactions file not found: {path}")

    df = pd.read_csv(path, dtype={"id": str}, keep_default_na=False, na_values=[""])
    return transactions_from_frame(df)


def transactions_from_frame(df: pd.DataFrame) -> List[Transaction]:
    """Convert a DataFrame with normalized columns into Transaction records."""
    config = get_ingestion_config()
    required = config["required_columns"]
    missing = [c for c in required if c not in df.columns]
    if missing:
        raise ValueError(f"Missing required columns: {missing}")

    df = df.copy()

    if not pd.api.types.is_datetime64_any_dtype(df["date"]):
        df["date"] = pd.to_datetime(df["date"], format=config.get("date_format"))
    df["amount"] = pd.to_numeric(df["amount"], errors="raise").astype(float)

    if df["id"].isna().any():
        raise ValueError("Transaction ids must not be empty")
    if df["date"].isna().any():
        raise ValueError("Transaction dates must not be empty")

    default_currency = config["default_currency_symbol"]
    transactions = []
    for record in df.to_dict("records"):
        amount = float(record["amount"])
        transactions.append(Transaction(
            id=str(record["id"]),
            date=record["date"].date(),
            description=_text(record.get("description")),
            amount=amount,
            currency_symbol=_text(record.get("currency_symbol")) or default_currency,
            category=_text(record.get("category")) or ("Income" if amount >= 0 else "Expense"),
            source=_source(record),
            is_recurring=_text(record.get("is_recurring")).lower() in _TRUTHY,
        ))

    return transactions


def _text(value) -> str:
    if value is None or (isinstance(value, float) and pd.isna(value)):
        return ""
    return str(value).strip()


def _source(record: dict) -> TransactionSource | None:
    name = _text(record.get("source_name"))
    if not name:
        return None
    return TransactionSource(name=name, type=_text(record.get("source_type")) or "merchant")
