"""Table components."""

from .table import DataTable, TableView

__all__ = ["DataTable", "TableView"]
