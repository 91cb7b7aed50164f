"""
Pytest fixtures for the tenant merge test suite.
"""
import base64
from datetime import date

import pandas as pd
import pytest

PROPERTY = "Oak Terrace - 100 Main St"

RENT_ROLL_COLUMNS = [
    "Property", "Unit", "Tenant", "Status", "Rent", "Market Rent",
    "Past Due", "Lease To", "Move-in", "Late Count",
]
DELINQUENCY_COLUMNS = [
    "Name", "Property", "Unit", "Amount Receivable", "Delinquent Rent",
    "Delinquency Notes", "0-30", "30-60", "60-90", "90+", "Delinquent Subsidy Amount",
]
DIRECTORY_COLUMNS = ["Tenant", "Property", "Unit", "Status", "Phone Numbers", "Emails"]
COMBINED_COLUMNS = [
    "Property", "Unit", "Tenant", "Status", "Rent", "Market Rent", "Past Due",
    "Delinquent Rent", "Amount Receivable", "0-30", "30-60", "60-90", "90+",
    "Delinquency Notes", "Late Count", "Lease To", "Move-in", "Phone Numbers", "Emails",
]


def to_csv_text(columns, rows) -> str:
    return pd.DataFrame(rows, columns=columns).to_csv(index=False)


def to_b64(text: str) -> str:
    return base64.b64encode(text.encode("utf-8")).decode("ascii")


@pytest.fixture
def today():
    """Fixed reference date so tenure is deterministic."""
    return date(2026, 10, 18)


@pytest.fixture
def rent_roll_rows():
    return [
        [PROPERTY, "101", "Smith, John Q.", "Current", "$1,250.00", "1300", "100", "2026-12-31", "2024-10-18", "3"],
        [PROPERTY, "102", "Jane Doe", "Current", "1400", "1400", "0", "2027-01-31", "2025-10-18", "0"],
        [PROPERTY, "103", "Brown, Alice", "Former", "1100", "1150", "0", "2025-06-30", "2023-01-01", "1"],
        [PROPERTY, "104", "Bob Zero", "Current", "0", "1200", "0", "", "", ""],
        [PROPERTY, "105", "", "Current", "900", "900", "0", "", "", ""],
    ]


@pytest.fixture
def delinquency_rows():
    return [
        ["Smith, John Q.", PROPERTY, "101", "350.00", "250.00", "Payment plan", "250.00", "0", "0", "0", "0"],
        ["Brown, Alice", PROPERTY, "103", "900", "900", "Moved out", "0", "0", "0", "900", "0"],
    ]


@pytest.fixture
def directory_rows():
    return [
        ["Smith, John Q.", PROPERTY, "101", "Current", "(555) 123-4567", "john@example.com"],
        ["Jane Doe", PROPERTY, "102", "Current", "", "jane@example.com"],
        ["Brown, Alice", PROPERTY, "103", "Current", "555-999-0000", "alice@example.com"],
    ]


@pytest.fixture
def combined_rows():
    return [
        [PROPERTY, "101", "Smith, John Q.", "Current", "1250", "1300", "100", "250", "350",
         "250", "0", "0", "0", "Payment plan", "3", "2026-12-31", "2024-10-18",
         "5551234567", "john@example.com"],
        [PROPERTY, "102", "Jane Doe", "Current", "1400", "1400", "0", "0", "0",
         "0", "0", "0", "0", "", "0", "2027-01-31", "2025-10-18", "", "jane@example.com"],
        [PROPERTY, "103", "Brown, Alice", "Notice", "1100", "1150", "0", "0", "0",
         "0", "0", "0", "0", "", "1", "2025-06-30", "2023-01-01", "", ""],
        [PROPERTY, "Total Units", "Summary", "Current", "3750", "", "", "", "",
         "", "", "", "", "", "", "", "", "", ""],
    ]


@pytest.fixture
def three_file_payload(rent_roll_rows, delinquency_rows, directory_rows):
    """Base64 payload in three-file mode."""
    return {
        "rent_roll": to_b64(to_csv_text(RENT_ROLL_COLUMNS, rent_roll_rows)),
        "delinquency": to_b64(to_csv_text(DELINQUENCY_COLUMNS, delinquency_rows)),
        "directory": to_b64(to_csv_text(DIRECTORY_COLUMNS, directory_rows)),
    }


@pytest.fixture
def combined_payload(combined_rows):
    """Base64 payload in combined-report mode."""
    return {"combined": to_b64(to_csv_text(COMBINED_COLUMNS, combined_rows))}
