from __future__ import annotations

from typing import Any, Dict, List, Optional


def append_event(audit: Dict[str, Any], name: str, payload: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
    """Trả audit mới có thêm event; không sửa dict cũ."""
    events = list(audit.get("events", []))
    events.append({"name": name, "payload": payload or {}})
    return {**audit, "events": events}


def find_events(audit: Dict[str, Any], name: str) -> List[Dict[str, Any]]:
    return [e for e in audit.get("events", []) if e.get("name") == name]
