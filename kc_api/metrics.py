from __future__ import annotations
import asyncio
from typing import Dict

class Metrics:
    def __init__(self)-> None:
        self._lock = asyncio.Lock()
        self.counters: Dict[str, int] = {
            "tasks_submitted": 0,
            "task_submit_failures": 0,
            "task_polls": 0,
            "task_deletes": 0,
            "malformed_results": 0,
        }


    async def inc(self, name: str, by: int = 1) -> None :
        async with self._lock:
            self.counters[name] = self.counters.get(name,0) + by

    async def render_prometheus(self) -> str:
        async with self._lock:
            lines = []
            for k,v in self.counters.items():
                metric = f"kc_api_ai_{k}"
                lines.append(f"# TYPE {metric} counter")
                lines.append(f"{metric} {v}")
            return "\n".join(lines) + "\n"

metrics = Metrics()
