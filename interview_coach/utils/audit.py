from __future__ import annotations

import json
from pathlib import Path
from datetime import datetime
from typing import Optional, Dict, Any, List
import asyncio


class JsonlAuditor:
	"""Append-only JSONL trail of interview events (session_start, answer, analysis, ...).

	Disabled unless ``analytics_path`` is configured.
	"""

	def __init__(self, path: Optional[str] = None) -> None:
		self._path = Path(path) if path else None
		self._lock = asyncio.Lock()

	def configure(self, path: Optional[str]) -> None:
		self._path = Path(path) if path else None

	@property
	def enabled(self) -> bool:
		return self._path is not None

	async def log(self, event: str, session_id: Optional[str] = None, **fields: Any) -> None:
		if not self._path:
			return
		record: Dict[str, Any] = {"ts": datetime.utcnow().isoformat(), "type": event}
		if session_id:
			record["session_id"] = session_id
		record.update(fields)
		line = json.dumps(record, ensure_ascii=False, default=str)
		async with self._lock:
			self._path.parent.mkdir(parents=True, exist_ok=True)
			with self._path.open("a", encoding="utf-8") as f:
				f.write(line + "\n")

	def read(self, session_id: Optional[str] = None) -> List[Dict[str, Any]]:
		if not self._path or not self._path.exists():
			return []
		with self._path.open("r", encoding="utf-8") as f:
			records = [json.loads(line) for line in f if line.strip()]
		if session_id is None:
			return records
		return [r for r in records if r.get("session_id") == session_id]


auditor = JsonlAuditor()
