from __future__ import annotations

from fastapi import Header, HTTPException, status
from typing import Optional

from interview_coach.config import settings


def _presented_key(authorization: Optional[str], x_api_key: Optional[str]) -> Optional[str]:
	if x_api_key:
		return x_api_key.strip()
	if authorization and authorization.startswith("Bearer "):
		return authorization.removeprefix("Bearer ").strip()
	return None


async def verify_api_key(
	authorization: Optional[str] = Header(default=None),
	x_api_key: Optional[str] = Header(default=None),
) -> None:
	"""Guard for the coaching API. Open when no ``API_KEY`` is configured.

	Accepts ``Authorization: Bearer <key>`` or ``X-API-Key: <key>``.
	"""
	if not settings.api_key:
		return
	key = _presented_key(authorization, x_api_key)
	if key is None:
		raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Missing API key")
	if key != settings.api_key:
		raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid API key")
