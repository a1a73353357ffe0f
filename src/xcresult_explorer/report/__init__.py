"""Text rendering of test results for the terminal."""
from __future__ import annotations
