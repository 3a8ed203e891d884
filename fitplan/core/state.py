from __future__ import annotations

import uuid
from typing import Any, Dict
from typing_extensions import TypedDict
from dataclasses import dataclass, field


class BaseGraphState(TypedDict, total=False):
    """Field chung cho mọi pipeline graph"""
    request_id: str
    raw_input: Dict[str, Any]
    issues: list
    warnings: list
    audit: Dict[str, Any]


def new_audit() -> Dict[str, Any]:
    return {"events": []}


@dataclass
class BaseResult:
    """Result chung: request_id + issues/warnings + audit trail"""
    request_id: str
    issues: list = field(default_factory=list)
    warnings: list = field(default_factory=list)
    audit: Dict[str, Any] = field(default_factory=new_audit)

    @property
    def ok(self) -> bool:
        return not self.issues


def generate_request_id() -> str:
    return str(uuid.uuid4())
