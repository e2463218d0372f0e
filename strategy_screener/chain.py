"""
Options chain ingestion.

The chain is addressed through a ChainSchema that maps each semantic field
(strike, call bid/ask, put bid/ask) to a column label or a positional column
index. The schema is checked once when the table is built; afterwards every
cell is read by field name.
"""

import logging
import math
from dataclasses import asdict, dataclass
from pathlib import Path
from typing import Any, Optional, Sequence, Union

import numpy as np
import pandas as pd

from strategy_screener.exceptions import (
    ChainLoadError,
    ChainSchemaError,
    EmptyChainError,
    MalformedCellValueError,
)

logger = logging.getLogger(__name__)

ColumnAccessor = Union[str, int]

CHAIN_FIELDS = ("strike", "call_bid", "call_ask", "put_bid", "put_ask")


@dataclass(frozen=True)
class ChainSchema:
    """
    Column accessors for each chain field.

    A string accessor is a column label, an integer is a positional column.
    Bid and ask may point at the same column when the source has a single
    price per option type.
    """
    strike: ColumnAccessor = "strike"
    call_bid: ColumnAccessor = "call_bid"
    call_ask: ColumnAccessor = "call_ask"
    put_bid: ColumnAccessor = "put_bid"
    put_ask: ColumnAccessor = "put_ask"

    @classmethod
    def legacy(cls) -> "ChainSchema":
        """Spreadsheet layout: call price in column 5, strike in 6, put price in 7."""
        return cls(strike=6, call_bid=5, call_ask=5, put_bid=7, put_ask=7)

    @classmethod
    def from_mapping(cls, mapping: dict) -> "ChainSchema":
        """Build a schema from a field -> accessor mapping (e.g. from YAML)."""
        unknown = sorted(set(mapping) - set(CHAIN_FIELDS))
        if unknown:
            raise ValueError(f"Unknown chain fields: {', '.join(unknown)}")
        return cls(**mapping)

    def to_dict(self) -> dict:
        return asdict(self)


def _resolve_column(frame: pd.DataFrame, accessor: ColumnAccessor) -> Optional[pd.Series]:
    if isinstance(accessor, int):
        if 0 <= accessor < frame.shape[1]:
            return frame.iloc[:, accessor]
        return None
    if accessor in frame.columns:
        column = frame[accessor]
        # Duplicate labels select a frame; use the first match
        if isinstance(column, pd.DataFrame):
            column = column.iloc[:, 0]
        return column
    return None


class ChainTable:
    """
    Read-only options chain with named-field access.

    Example:
        chain = ChainTable.from_csv("chain.csv")
        chain.value("call_bid", 3)
    """

    def __init__(self, frame: pd.DataFrame, schema: Optional[ChainSchema] = None) -> None:
        if schema is None:
            schema = ChainSchema()

        if frame is None or frame.empty or len(frame) == 0:
            raise EmptyChainError()

        raw: dict[str, pd.Series] = {}
        missing = []
        for name in CHAIN_FIELDS:
            column = _resolve_column(frame, getattr(schema, name))
            if column is None:
                missing.append(name)
            else:
                raw[name] = column.reset_index(drop=True)

        if missing:
            details = ", ".join(f"{m} -> {getattr(schema, m)!r}" for m in missing)
            raise ChainSchemaError(missing, details)

        self.schema = schema
        self._raw = raw
        self._values = {
            name: pd.to_numeric(series, errors="coerce").to_numpy(dtype=float)
            for name, series in raw.items()
        }
        self._length = len(frame)

        for name, values in self._values.items():
            bad = int((~np.isfinite(values)).sum())
            if bad:
                logger.debug(f"Chain field '{name}' has {bad} non-numeric or infinite cells")

    def __len__(self) -> int:
        return self._length

    @classmethod
    def from_matrix(
        cls,
        rows: Sequence[Sequence[Any]],
        schema: Optional[ChainSchema] = None,
        header: bool = True,
        transposed: bool = False,
    ) -> "ChainTable":
        """
        Build a chain from a raw 2-D list such as a parsed spreadsheet sheet.

        Args:
            rows: Sheet rows, one chain entry per row
            schema: Column accessors (default: labelled schema)
            header: Whether the first row holds column labels
            transposed: Rows are fields and columns are chain entries

        Returns:
            ChainTable over the body rows
        """
        rows = [list(r) for r in rows]
        if transposed and rows:
            width = max(len(r) for r in rows)
            padded = [r + [None] * (width - len(r)) for r in rows]
            rows = [list(col) for col in zip(*padded)]

        if not rows:
            raise EmptyChainError()

        body = rows[1:] if header else rows
        frame = pd.DataFrame(body)
        if header and not frame.empty:
            labels = list(rows[0])[: frame.shape[1]]
            labels += [None] * (frame.shape[1] - len(labels))
            frame.columns = [
                str(label).strip() if label is not None else f"column_{i}"
                for i, label in enumerate(labels)
            ]
        return cls(frame, schema)

    @classmethod
    def from_csv(cls, file_path: str, schema: Optional[ChainSchema] = None) -> "ChainTable":
        """
        Load a chain from a CSV file with a header row.

        Raises:
            ChainLoadError: If the file is missing or cannot be parsed.
            EmptyChainError: If the file holds no chain rows.
        """
        path = Path(file_path)
        if not path.exists():
            raise ChainLoadError(file_path, "file not found")
        if path.stat().st_size == 0:
            raise EmptyChainError()

        try:
            frame = pd.read_csv(path)
        except pd.errors.EmptyDataError:
            raise EmptyChainError()
        except Exception as e:
            raise ChainLoadError(file_path, str(e))

        frame.columns = frame.columns.astype(str).str.strip()
        logger.info(f"Loaded {len(frame)} chain rows from {file_path}")
        return cls(frame, schema)

    def value(self, field: str, index: int) -> float:
        """
        Numeric value of one chain cell.

        Raises:
            MalformedCellValueError: If the cell is missing, not a number or infinite.
        """
        if not 0 <= index < self._length:
            raise MalformedCellValueError(field, index, None)
        value = self._values[field][index]
        if not math.isfinite(value):
            raise MalformedCellValueError(field, index, self._raw[field].iloc[index])
        return float(value)

    def raw_value(self, field: str, index: int) -> Any:
        """Cell as it was supplied, before numeric coercion."""
        return self._raw[field].iloc[index]
