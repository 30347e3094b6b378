"""
Shift Report Service - Configuration
====================================
Centralised settings for asset locations, export output and logging.
Loads overrides from the project-level .env file.
"""

import os
from pathlib import Path
from dotenv import load_dotenv

# ── Paths ───────────────────────────────────────────────────────────────
PROJECT_ROOT = Path(__file__).resolve().parent.parent

# ── Load .env ───────────────────────────────────────────────────────────
load_dotenv(PROJECT_ROOT / ".env")

# ── Emblems ─────────────────────────────────────────────────────────────
# Host serving /brasao-goias.png and /brasao-policia-civil.png
EMBLEM_BASE_URL: str = os.getenv("EMBLEM_BASE_URL", "http://localhost:8080")
EMBLEM_TIMEOUT: float = float(os.getenv("EMBLEM_TIMEOUT", "5.0"))

# Prefix for emblem <img> URLs in the HTML preview ("" = site-relative)
ASSET_BASE: str = os.getenv("ASSET_BASE", "")

# ── Exports ─────────────────────────────────────────────────────────────
EXPORT_DIR: str = os.getenv("EXPORT_DIR", "exports")

# ── Logging ─────────────────────────────────────────────────────────────
LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")
LOG_FILE: str = os.getenv("LOG_FILE", "")

APP_VERSION = "1.0.0"
