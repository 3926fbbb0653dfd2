"""
backend/tests/conftest.py

Purpose:
    Import paths for the test suite: `lastman` lives under backend/, the
    maintenance tools under the repository root, and the shared Mongo fakes
    beside this file.
"""

from __future__ import annotations

import sys
from pathlib import Path

_TESTS_DIR = Path(__file__).resolve().parent

for path in (_TESTS_DIR, _TESTS_DIR.parent, _TESTS_DIR.parent.parent):
    if str(path) not in sys.path:
        sys.path.insert(0, str(path))
