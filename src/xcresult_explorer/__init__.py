"""XCResult Explorer: browse Xcode test results and diagnose failures."""
from __future__ import annotations

__version__ = "0.1.0"
