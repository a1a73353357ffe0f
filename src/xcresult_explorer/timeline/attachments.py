"""Summarize attachments exported with ``xcresulttool export attachments``.

The export directory contains a ``manifest.json`` listing, per test, the
attachments that were written next to it.
"""
from __future__ import annotations

import json
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Optional

MANIFEST_NAME = "manifest.json"
MAX_UI_ELEMENTS = 5
MAX_STATIC_TEXT_LENGTH = 50

_LABEL_RE = re.compile(r"label: '([^']*)'")


@dataclass(frozen=True)
class AttachmentInfo:
    exported_file_name: str
    human_readable_name: str
    is_associated_with_failure: bool = False

    @property
    def is_ui_hierarchy(self) -> bool:
        return (
            self.exported_file_name.endswith(".txt")
            and "UI hierarchy" in self.human_readable_name
        )


def _read_attachment(raw: Any) -> Optional[AttachmentInfo]:
    if not isinstance(raw, dict):
        return None
    file_name = raw.get("exportedFileName")
    human_name = raw.get("suggestedHumanReadableName")
    is_failure = raw.get("isAssociatedWithFailure")
    if not isinstance(file_name, str) or not isinstance(human_name, str):
        return None
    if not isinstance(is_failure, bool):
        return None
    return AttachmentInfo(
        exported_file_name=file_name,
        human_readable_name=human_name,
        is_associated_with_failure=is_failure,
    )


def parse_manifest(text: str) -> list[AttachmentInfo]:
    """Decode an attachments manifest; malformed entries are skipped."""
    try:
        data = json.loads(text)
    except (json.JSONDecodeError, TypeError):
        return []
    if not isinstance(data, list):
        return []

    attachments: list[AttachmentInfo] = []
    for test_info in data:
        if not isinstance(test_info, dict):
            continue
        raw_attachments = test_info.get("attachments")
        if not isinstance(raw_attachments, list):
            continue
        for raw in raw_attachments:
            info = _read_attachment(raw)
            if info is not None:
                attachments.append(info)
    return attachments


def summarize_ui_hierarchy(content: str) -> str:
    """Short summary of the labelled elements in a UI hierarchy dump.

    Alerts are listed first, then up to five other elements.
    """
    elements: list[str] = []
    alerts: list[str] = []

    for line in content.splitlines():
        m = _LABEL_RE.search(line)
        if "TextField" in line:
            if m:
                elements.append(f"TextField('{m.group(1)}')")
        elif "Button" in line:
            if m:
                elements.append(f"Button('{m.group(1)}')")
        elif "Alert" in line:
            if m:
                alerts.append(f"Alert('{m.group(1)}')")
        elif "StaticText" in line:
            if m and m.group(1) and len(m.group(1)) < MAX_STATIC_TEXT_LENGTH:
                elements.append(f"Text('{m.group(1)}')")

    summary = ""
    if alerts:
        summary += f"🚨 {', '.join(alerts)} "
    if elements:
        summary += ", ".join(elements[:MAX_UI_ELEMENTS])
        if len(elements) > MAX_UI_ELEMENTS:
            summary += f" (and {len(elements) - MAX_UI_ELEMENTS} more)"

    return summary or "No UI elements found"


def format_attachment_lines(attachments: list[AttachmentInfo], export_dir: Path) -> list[str]:
    lines: list[str] = []
    for attachment in attachments:
        lines.append(f"📎 {attachment.human_readable_name}")
        if attachment.is_associated_with_failure:
            lines.append("   ⚠️ Associated with test failure")
        if attachment.is_ui_hierarchy:
            path = export_dir / attachment.exported_file_name
            try:
                content = path.read_text(encoding="utf-8", errors="replace")
            except OSError:
                content = None
            if content is not None:
                lines.append(f"   UI Elements: {summarize_ui_hierarchy(content)}")
        lines.append("")
    return lines


def read_export_dir(export_dir: Path) -> list[str]:
    """Attachment summary lines for an export directory (empty if no manifest)."""
    manifest_path = export_dir / MANIFEST_NAME
    try:
        text = manifest_path.read_text(encoding="utf-8")
    except OSError:
        return []
    return format_attachment_lines(parse_manifest(text), export_dir)
