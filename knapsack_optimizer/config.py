"""Application configuration settings."""
import logging
import os
from pathlib import Path

# Base paths
BASE_DIR = Path(__file__).resolve().parent
PROJECT_ROOT = BASE_DIR.parent

# File handling
UPLOAD_DIR = PROJECT_ROOT / "uploads"
EXPORT_DIR = PROJECT_ROOT / "exports"
ALLOWED_UPLOAD_EXTENSIONS = {"csv"}

# Database configuration
DATABASE_PATH = Path(
    os.environ.get("KNAPSACK_OPTIMIZER_DB", PROJECT_ROOT / "knapsack_optimizer.db")
)

# Web application configuration
SECRET_KEY = os.environ.get("KNAPSACK_OPTIMIZER_SECRET_KEY", "knapsack-optimizer-secret-key")
LOG_LEVEL = logging.INFO

# Pagination and dashboard
HISTORY_PAGE_SIZE = 10
