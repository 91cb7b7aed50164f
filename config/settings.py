"""
Configuration settings for the Tenant Insights merge service
"""
import os
from typing import List

# Application Settings
APP_TITLE = "Tenant Insights Data Merge"
APP_ICON = "🏘️"

# Scoring service (external, polled for results)
INSIGHTS_API_URL = os.getenv("INSIGHTS_API_URL", "http://localhost:54321/functions/v1/generate-insights")
INSIGHTS_API_KEY = os.getenv("INSIGHTS_API_KEY", "")
REQUEST_TIMEOUT_SECONDS = float(os.getenv("REQUEST_TIMEOUT_SECONDS", "30"))

# Polling (30 attempts * 2 seconds = 60 second timeout)
POLL_MAX_ATTEMPTS = int(os.getenv("POLL_MAX_ATTEMPTS", "30"))
POLL_INTERVAL_SECONDS = float(os.getenv("POLL_INTERVAL_SECONDS", "2.0"))

# Merge rules
CURRENT_STATUS = "Current"
SUMMARY_KEYWORDS: List[str] = ["total units", "total occupied", "total vacant", "total"]

# Fields dropped from three-file records when their value is not positive
SPARSE_ZERO_FIELDS: List[str] = ["aging30", "aging60", "aging90", "agingOver90", "delinquentRent"]
SPARSE_THREE_FILE_RECORDS = os.getenv("SPARSE_THREE_FILE_RECORDS", "true").lower() == "true"

# last_write_wins | first_write_wins | reject
DUPLICATE_KEY_POLICY = os.getenv("DUPLICATE_KEY_POLICY", "last_write_wins")

# Change detection
CHANGE_TOLERANCE = 0.01  # $0.01 tolerance for numeric comparison

# Tenure approximation: days between move-in and today divided by this
DAYS_PER_MONTH = 30

# Database Settings
USE_DATABASE = os.getenv("USE_DATABASE", "true").lower() == "true"
DATABASE_PATH = os.getenv("DATABASE_PATH", "data/snapshots.duckdb")

# Logging
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"

# Date Format
DATE_FORMAT = "%Y-%m-%d"

# Error details returned to the caller when a merge fails
MERGE_ERROR_DETAILS = "Failed to process CSV files. Please ensure all files are valid CSV format."
