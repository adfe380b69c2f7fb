"""Column descriptors and row field access."""

import dataclasses
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any, Callable, Dict, Iterable, List, Optional, Sequence, Union

import pandas as pd
import polars as pl

_ALIGNMENTS = ("left", "center", "right")


class _Missing:
    """Sentinel for a field that is absent from a row."""

    _instance: Optional["_Missing"] = None

    def __new__(cls) -> "_Missing":
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __bool__(self) -> bool:
        return False

    def __repr__(self) -> str:
        return "MISSING"


MISSING = _Missing()


def get_field(row: Any, key: str) -> Any:
    """
    Read a field from a row.

    Mappings are indexed, any other object is read by attribute.

    Args:
        row: The row to read from
        key: Field name

    Returns:
        The field value, or MISSING if the row has no such field
    """
    if isinstance(row, Mapping):
        try:
            return row[key]
        except KeyError:
            return MISSING
    return getattr(row, key, MISSING)


def field_names(row: Any) -> List[str]:
    """Return the names of a row's own fields, in declaration order."""
    if isinstance(row, Mapping):
        return [str(name) for name in row.keys()]
    if dataclasses.is_dataclass(row) and not isinstance(row, type):
        return [f.name for f in dataclasses.fields(row)]
    if hasattr(row, "_fields"):
        return list(row._fields)
    if hasattr(row, "__dict__"):
        return list(vars(row).keys())
    return []


def field_values(row: Any) -> Iterable[Any]:
    """Return the values of a row's own fields."""
    if isinstance(row, Mapping):
        return row.values()
    if hasattr(row, "_fields"):
        return tuple(row)
    return [getattr(row, name) for name in field_names(row)]


@dataclass(frozen=True)
class ColumnDescriptor:
    """
    Describes how a row field is displayed, sorted and compared.

    Attributes:
        key: Field name addressed on every row
        header: Display title (defaults to the key in title case)
        sortable: Whether selecting the column header cycles its sort
        custom_sort: Row comparator ``(a, b) -> int``; takes precedence
            over ``sorter`` and the default ordering
        sorter: Name of a registered value comparator
        render: Cell renderer ``(value, row, index) -> Any``
        width: Column width (number or CSS string)
        align: 'left', 'center' or 'right'
    """

    key: str
    header: Optional[str] = None
    sortable: bool = False
    custom_sort: Optional[Callable[[Any, Any], int]] = None
    sorter: Optional[str] = None
    render: Optional[Callable[[Any, Any, int], Any]] = None
    width: Optional[Union[int, str]] = None
    align: str = "left"

    def __post_init__(self) -> None:
        if not self.key:
            raise ValueError("Column key must be a non-empty string")
        if self.align not in _ALIGNMENTS:
            raise ValueError(
                f"Invalid align '{self.align}' for column '{self.key}'. "
                f"Allowed values: {list(_ALIGNMENTS)}"
            )
        if self.header is None:
            object.__setattr__(self, "header", self.key.replace("_", " ").title())

    @classmethod
    def from_dict(cls, definition: Dict[str, Any]) -> "ColumnDescriptor":
        """
        Build a descriptor from a column definition dict.

        Accepts both ``key``/``header`` and the Tabulator-style
        ``field``/``title``/``hozAlign`` names.
        """
        key = definition.get("key", definition.get("field"))
        if key is None:
            raise ValueError(
                f"Column definition needs a 'key' or 'field': {definition}"
            )
        return cls(
            key=key,
            header=definition.get("header", definition.get("title")),
            sortable=bool(definition.get("sortable", False)),
            custom_sort=definition.get("custom_sort"),
            sorter=definition.get("sorter"),
            render=definition.get("render"),
            width=definition.get("width"),
            align=definition.get("align", definition.get("hozAlign", "left")),
        )

    def to_dict(self) -> Dict[str, Any]:
        """Return the JSON-serializable part of the descriptor."""
        return {
            "key": self.key,
            "header": self.header,
            "sortable": self.sortable,
            "sorter": self.sorter,
            "has_custom_sort": self.custom_sort is not None,
            "has_render": self.render is not None,
            "width": self.width,
            "align": self.align,
        }


ColumnLike = Union[ColumnDescriptor, Dict[str, Any]]


def normalize_columns(columns: Sequence[ColumnLike]) -> List[ColumnDescriptor]:
    """
    Convert column definitions to descriptors and check key uniqueness.

    Raises:
        ValueError: If two columns share a key
    """
    result = [
        col if isinstance(col, ColumnDescriptor) else ColumnDescriptor.from_dict(col)
        for col in columns
    ]
    seen = set()
    for col in result:
        if col.key in seen:
            raise ValueError(f"Duplicate column key '{col.key}'")
        seen.add(col.key)
    return result


def _sorter_for_polars_dtype(dtype: Any) -> str:
    if dtype.is_numeric():
        return "number"
    if dtype == pl.Boolean:
        return "boolean"
    if dtype in (pl.Date, pl.Datetime, pl.Time):
        # Native ordering works for date/time values
        return ""
    return "string"


def _sorter_for_pandas_dtype(dtype: Any) -> str:
    if pd.api.types.is_bool_dtype(dtype):
        return "boolean"
    if pd.api.types.is_numeric_dtype(dtype):
        return "number"
    if pd.api.types.is_string_dtype(dtype):
        return "string"
    return ""


def _auto_column(name: str, sorter: str) -> ColumnDescriptor:
    return ColumnDescriptor(
        key=name,
        sortable=True,
        sorter=sorter or None,
        align="right" if sorter == "number" else "left",
    )


def columns_from_data(data: Any) -> List[ColumnDescriptor]:
    """
    Auto-generate sortable column descriptors from the data.

    Polars and pandas frames use their schema to pick a sorter per column.
    Plain row sequences use the fields of the first row with the default
    ordering.

    Args:
        data: Row sequence, polars DataFrame/LazyFrame or pandas DataFrame

    Returns:
        List of column descriptors (empty for empty row sequences)
    """
    if isinstance(data, (pl.DataFrame, pl.LazyFrame)):
        schema = data.collect_schema()
        return [
            _auto_column(name, _sorter_for_polars_dtype(dtype))
            for name, dtype in zip(schema.names(), schema.dtypes())
        ]
    if isinstance(data, pd.DataFrame):
        return [
            _auto_column(name, _sorter_for_pandas_dtype(dtype))
            for name, dtype in _with_string_labels(data).dtypes.items()
        ]
    rows = list(data)
    if not rows:
        return []
    return [_auto_column(name, "") for name in field_names(rows[0])]


def schema_names(data: Any) -> Optional[List[str]]:
    """Return column names for frame inputs, None for row sequences."""
    if isinstance(data, (pl.DataFrame, pl.LazyFrame)):
        return data.collect_schema().names()
    if isinstance(data, pd.DataFrame):
        return list(_with_string_labels(data).columns)
    return None


def _with_string_labels(df: pd.DataFrame) -> pd.DataFrame:
    """Return ``df`` with every column label converted to ``str``."""
    if all(isinstance(name, str) for name in df.columns):
        return df
    labels = [str(name) for name in df.columns]
    if len(set(labels)) != len(labels):
        raise ValueError(
            f"Column labels {list(df.columns)} are not unique as strings."
        )
    return df.set_axis(labels, axis=1)


def _is_pandas_missing(value: Any) -> bool:
    return pd.api.types.is_scalar(value) and bool(pd.isna(value))


def rows_from_data(data: Any) -> List[Any]:
    """
    Materialize source data as a list of rows.

    Frames become lists of dicts; row sequences are copied into a list
    without copying the rows themselves. Pandas column labels become
    strings and pandas missing values (NaN, NA, NaT) become None.
    """
    if isinstance(data, pl.LazyFrame):
        return data.collect().to_dicts()
    if isinstance(data, pl.DataFrame):
        return data.to_dicts()
    if isinstance(data, pd.DataFrame):
        records = _with_string_labels(data).to_dict(orient="records")
        return [
            {
                name: None if _is_pandas_missing(value) else value
                for name, value in record.items()
            }
            for record in records
        ]
    return list(data)
