"""
Root pytest configuration.
Loads `.env` before test modules import the application, and keeps the
module-level app in `main.py` from requiring a real database directory.
"""

import os

from dotenv import load_dotenv

load_dotenv()

if not os.getenv("VALUER_STORE"):
    os.environ["VALUER_STORE"] = "memory"
