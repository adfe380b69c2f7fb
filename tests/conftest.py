"""Pytest configuration and shared fixtures for table-engine tests."""

from dataclasses import dataclass
from typing import Any, Dict, List, Optional
from unittest.mock import patch

import pandas as pd
import polars as pl
import pytest


class MockSessionState(dict):
    """Mock Streamlit session_state that behaves like a dict."""
    pass


@dataclass
class Person:
    """Plain dataclass row used to test attribute access."""

    id: int
    name: str
    age: Optional[int] = None


@pytest.fixture
def mock_streamlit():
    """
    Mock Streamlit's session_state for testing session-backed state.

    This fixture patches st.session_state to allow testing without running
    a full Streamlit server.
    """
    mock_session_state = MockSessionState()

    with patch('streamlit.session_state', mock_session_state):
        yield mock_session_state


@pytest.fixture
def letter_rows() -> List[Dict[str, Any]]:
    """The three-row example: names b, a, c."""
    return [
        {"id": 1, "name": "b"},
        {"id": 2, "name": "a"},
        {"id": 3, "name": "c"},
    ]


@pytest.fixture
def people_rows() -> List[Dict[str, Any]]:
    """Rows with duplicate ages and a missing value."""
    return [
        {"id": 1, "name": "Alice", "age": 30, "city": "Berlin"},
        {"id": 2, "name": "bob", "age": 25, "city": "Paris"},
        {"id": 3, "name": "Carol", "age": 30, "city": "berlin"},
        {"id": 4, "name": "Dave", "age": None, "city": "Rome"},
        {"id": 5, "name": "Eve", "age": 25, "city": "Madrid"},
    ]


@pytest.fixture
def many_rows() -> List[Dict[str, Any]]:
    """95 rows for pagination tests."""
    return [
        {"id": i, "name": f"item_{i:03d}", "group": ["x", "y", "z"][i % 3]}
        for i in range(1, 96)
    ]


@pytest.fixture
def dataclass_rows() -> List[Person]:
    """Dataclass rows instead of dicts."""
    return [
        Person(1, "Zoe", 40),
        Person(2, "Adam"),
        Person(3, "Mia", 22),
    ]


@pytest.fixture
def sample_table_data() -> pl.DataFrame:
    """Sample polars frame for the DataTable."""
    return pl.DataFrame({
        "id": [1, 2, 3, 4, 5],
        "scan_id": [100, 100, 200, 200, 300],
        "mass": [500.5, 600.6, 700.7, 800.8, 900.9],
        "name": ["peak_a", "peak_b", "peak_c", "peak_d", "peak_e"],
        "annotated": [True, False, True, False, True],
    })


@pytest.fixture
def sample_pandas_data() -> pd.DataFrame:
    """Sample pandas frame for the DataTable."""
    return pd.DataFrame({
        "id": [1, 2, 3],
        "score": [0.5, 0.9, 0.1],
        "label": ["low", "high", "lowest"],
    })
