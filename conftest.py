"""Root conftest: keeps real racetime.gg settings out of the test run."""
from __future__ import annotations

import os

_SETTING_PREFIXES = ("RACETIME_", "RACE_CACHE_", "HTTP_TIMEOUT_", "JOIN_TIMEOUT_", "OUTBOUND_QUEUE_")

for key in list(os.environ):
    if key.startswith(_SETTING_PREFIXES):
        del os.environ[key]
