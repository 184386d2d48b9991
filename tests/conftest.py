# =============================================
# File: tests/conftest.py
# Purpose: Keep the module-level app (taskpilot.main:app) away from the real data and state dirs
# =============================================
import os
import sys
import tempfile

sys.path.append(os.path.dirname(os.path.dirname(__file__)))

os.environ.setdefault("DATA_DIR", tempfile.mkdtemp(prefix="taskpilot-tests-"))
os.environ.setdefault("STATE_DIR", tempfile.mkdtemp(prefix="taskpilot-state-"))
os.environ.setdefault("LOG_DIR", "")
