"""
AI relay endpoint.

POST /api/analyze forwards {contents, systemInstruction, generationConfig}
to Gemini and returns the provider JSON untouched. Rate limiting is
applied by RateLimitMiddleware in app.main.
"""
import logging
from typing import Any, Dict, List, Optional

import httpx
from fastapi import APIRouter
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from app.gemini_client import GeminiError, generate_content

_logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["analyze"])


class AnalyzeRequest(BaseModel):
    contents: List[Dict[str, Any]] = Field(min_length=1)
    systemInstruction: Optional[Dict[str, Any]] = None
    generationConfig: Optional[Dict[str, Any]] = None


@router.post("/analyze")
async def analyze(request: AnalyzeRequest):
    """Relay one generateContent call."""
    try:
        return await generate_content(request.model_dump(exclude_none=True))
    except GeminiError as e:
        _logger.error(f"Gemini relay failed: {e}")
        return JSONResponse(status_code=500, content={"error": str(e)})
    except httpx.HTTPError as e:
        _logger.error(f"Gemini unreachable: {e!r}")
        return JSONResponse(status_code=500, content={"error": str(e) or "Google API Error"})
