from __future__ import annotations

import sys
from pathlib import Path


# Ensure `import meme_trader.*` and `import fakes` work when running tests without installing the package.
PROJECT_ROOT = Path(__file__).resolve().parents[1]
TESTS_DIR = Path(__file__).resolve().parent
for p in (PROJECT_ROOT, TESTS_DIR):
    if str(p) not in sys.path:
        sys.path.insert(0, str(p))
