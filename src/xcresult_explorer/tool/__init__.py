"""Thin wrapper around ``xcrun xcresulttool``."""
from __future__ import annotations

from xcresult_explorer.tool.xcresulttool import XCResultTool

__all__ = ["XCResultTool"]
