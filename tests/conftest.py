"""
Pytest configuration and shared fixtures.
Puts the project root on sys.path and exposes the store fixtures from
test_fixtures to every test module.
"""

import sys
from pathlib import Path

project_root = Path(__file__).parent.parent
if str(project_root) not in sys.path:
    sys.path.insert(0, str(project_root))

from test_fixtures import data_service, db_session, store_settings  # noqa: E402,F401
