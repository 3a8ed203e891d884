from .state import BaseGraphState, BaseResult, generate_request_id, new_audit
from .audit import append_event, find_events
from .execution import GraphExecutor

__all__ = [
    'BaseGraphState',
    'BaseResult',
    'generate_request_id',
    'new_audit',
    'append_event',
    'find_events',
    'GraphExecutor',
]
