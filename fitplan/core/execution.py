from __future__ import annotations

from typing import Any, Callable, Dict, TypeVar

T = TypeVar('T')


class GraphExecutor:
    """Chạy compiled graph rồi map final state sang result của domain"""

    @staticmethod
    def execute(
        graph: Any,
        init_state: Dict[str, Any],
        to_result: Callable[[Dict[str, Any]], T],
    ) -> T:
        final_state = graph.invoke(init_state)
        return to_result(final_state)
