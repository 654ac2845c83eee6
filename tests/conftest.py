"""Pytest configuration.

The repository uses a flat `src/` layout. This conftest ensures tests can import from the `src.*`
namespace (and the shared `tests.fakes` doubles) when running `pytest` without installing the
package.
"""

from __future__ import annotations

import sys
from pathlib import Path

# Ensure `import src...` and `import tests...` work when running pytest from a checkout.
REPO_ROOT = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(REPO_ROOT))
