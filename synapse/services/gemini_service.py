"""Document analysis and roadmap generation through the Gemini REST API.

The model is asked for strict JSON. Whatever comes back is parsed
leniently, normalized to the shape the clients render, and replaced by a
simple fallback when the API is unreachable or returns something unusable.
"""

import json
import logging
import math
import re
from datetime import datetime
from typing import Any, Optional

import httpx

from ..config import settings

logger = logging.getLogger(__name__)


class AnalysisError(Exception):
    """Raised when the generative-AI call fails or returns unusable output."""


ANALYSIS_PROMPT = """
You are an expert educational content analyzer. Analyze the following PDF document and provide a comprehensive learning analysis.

Document Name: {file_name}
Document Content:
{content}

Respond ONLY with valid JSON in exactly this format:

{{
  "summary": {{
    "overview": "3-4 sentence summary",
    "keyTopics": ["topic"],
    "difficulty": "beginner|intermediate|advanced",
    "estimatedReadingTime": "X minutes"
  }},
  "roadmap": {{
    "title": "Learning Roadmap for [Document Topic]",
    "description": "Brief description of the learning path",
    "totalEstimatedHours": 0,
    "milestones": [
      {{"id": 1, "title": "", "description": "", "estimatedHours": 2,
        "priority": "high|medium|low", "order": 1,
        "prerequisites": [], "learningOutcomes": []}}
    ]
  }},
  "tasks": [
    {{"id": 1, "title": "", "description": "", "category": "reading|practice|research|review",
      "estimatedTime": "X minutes", "difficulty": "easy|medium|hard",
      "points": 10, "milestoneId": 1, "order": 1}}
  ],
  "additionalResources": [
    {{"title": "", "type": "article|video|book|course", "description": "", "url": ""}}
  ],
  "confidence": 0.85
}}

Use 5-8 milestones and 15-25 tasks, ordered from beginner to advanced concepts.
"""

ROADMAP_PROMPT = """
You are an expert learning designer. Convert this document into a JSON roadmap with this structure:

{{
  "summary": "string",
  "learningObjectives": ["string"],
  "roadmap": [
    {{
      "milestone_id": "string",
      "title": "string",
      "description": "string",
      "estimated_hours": 2,
      "priority": "low|medium|high",
      "tasks": [
        {{"task_id": "string", "title": "string", "description": "string",
          "estimated_hours": 1, "points": 10}}
      ]
    }}
  ],
  "hints": ["string"],
  "confidence": 0.8
}}

Respond ONLY in valid JSON. No extra text outside the JSON.
Document:
{content}
"""


def truncate_for_prompt(text: str, limit: Optional[int] = None) -> str:
    limit = limit or settings.gemini_prompt_char_limit
    if len(text) <= limit:
        return text
    return f"{text[:limit]} ...(truncated)"


def parse_model_json(raw: str) -> dict[str, Any]:
    """
    Parse JSON out of a model response.

    Strips markdown fences, then falls back to the outermost ``{...}`` block.

    Raises:
        AnalysisError: If no JSON object can be recovered
    """
    cleaned = re.sub(r"```(?:json)?", "", raw).strip()
    try:
        parsed = json.loads(cleaned)
    except json.JSONDecodeError:
        match = re.search(r"\{[\s\S]*\}", raw)
        if not match:
            raise AnalysisError("Model response contains no JSON object")
        try:
            parsed = json.loads(match.group(0))
        except json.JSONDecodeError as e:
            raise AnalysisError(f"Model response JSON is invalid: {e}") from e

    if not isinstance(parsed, dict):
        raise AnalysisError("Model response JSON is not an object")
    return parsed


def enhance_analysis(analysis: dict[str, Any], file_name: str) -> dict[str, Any]:
    """Fill defaults so every analysis has the same shape."""
    summary = analysis.get("summary") or {}
    roadmap = analysis.get("roadmap") or {}
    milestones = roadmap.get("milestones") or []

    total_hours = roadmap.get("totalEstimatedHours") or sum(
        m.get("estimatedHours") or 0 for m in milestones
    )

    tasks = [
        {
            "id": task.get("id") or index + 1,
            "title": task.get("title") or f"Task {index + 1}",
            "description": task.get("description") or "Complete this learning task",
            "category": task.get("category") or "reading",
            "estimatedTime": task.get("estimatedTime") or "30 minutes",
            "difficulty": task.get("difficulty") or "medium",
            "points": task.get("points") or 10,
            "milestoneId": task.get("milestoneId") or 1,
            "order": task.get("order") or index + 1,
            "completed": False,
        }
        for index, task in enumerate(analysis.get("tasks") or [])
    ]

    return {
        "summary": {
            "overview": summary.get("overview") or "Document analysis completed",
            "keyTopics": summary.get("keyTopics") or [],
            "difficulty": summary.get("difficulty") or "intermediate",
            "estimatedReadingTime": summary.get("estimatedReadingTime") or "15 minutes",
        },
        "roadmap": {
            "title": roadmap.get("title") or f"Learning Path for {file_name}",
            "description": roadmap.get("description")
            or "Structured learning approach based on document content",
            "totalEstimatedHours": total_hours,
            "milestones": milestones,
        },
        "tasks": tasks,
        "additionalResources": analysis.get("additionalResources") or [],
        "confidence": analysis.get("confidence") or 0.7,
        "metadata": {
            "analyzedDocument": file_name,
            "analysisDate": datetime.utcnow().isoformat(),
            "generatedBy": "Google Gemini API",
            "version": "1.0",
        },
    }


def fallback_analysis(text: str, file_name: str) -> dict[str, Any]:
    """Basic study plan used when the model cannot be reached."""
    reading_minutes = math.ceil(len(text.split()) / 200)
    milestones = [
        {
            "id": 1,
            "title": "Initial Review",
            "description": "Read through the document and identify key concepts",
            "estimatedHours": 1,
            "priority": "high",
            "order": 1,
            "prerequisites": [],
            "learningOutcomes": ["Understanding of main concepts"],
        },
        {
            "id": 2,
            "title": "Deep Study",
            "description": "Detailed analysis and note-taking",
            "estimatedHours": 2,
            "priority": "medium",
            "order": 2,
            "prerequisites": ["Initial Review"],
            "learningOutcomes": ["Comprehensive understanding"],
        },
    ]
    tasks = [
        {"id": 1, "title": "Read the Document", "category": "reading", "milestoneId": 1},
        {"id": 2, "title": "Take Notes", "category": "practice", "milestoneId": 2},
        {"id": 3, "title": "Review Key Concepts", "category": "review", "milestoneId": 2},
    ]
    analysis = enhance_analysis(
        {
            "summary": {
                "overview": "This document has been uploaded and is ready for study.",
                "keyTopics": ["Document Content", "Learning Material"],
                "estimatedReadingTime": f"{reading_minutes} minutes",
            },
            "roadmap": {
                "title": f"Study Plan for {file_name}",
                "description": "A basic learning approach for the uploaded document",
                "milestones": milestones,
            },
            "tasks": tasks,
            "confidence": 0.3,
        },
        file_name,
    )
    analysis["metadata"]["generatedBy"] = "fallback"
    return analysis


def fallback_roadmap(reason: str) -> dict[str, Any]:
    return {
        "summary": reason,
        "learningObjectives": [],
        "roadmap": [],
        "hints": [],
        "confidence": 0.1,
    }


class GeminiClient:
    """Minimal async client for the ``generateContent`` endpoint."""

    def __init__(
        self,
        api_key: Optional[str] = None,
        model: Optional[str] = None,
        base_url: Optional[str] = None,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.api_key = api_key if api_key is not None else settings.gemini_api_key
        self.model = model or settings.gemini_model
        self.base_url = (base_url or settings.gemini_base_url).rstrip("/")
        self.timeout = timeout or settings.gemini_timeout
        self._transport = transport

    @property
    def is_configured(self) -> bool:
        return bool(self.api_key)

    async def generate(self, prompt: str) -> str:
        """
        Send a single-turn prompt and return the text of the first candidate.

        Raises:
            AnalysisError: On missing key, HTTP failure or an empty response
        """
        if not self.is_configured:
            raise AnalysisError("Gemini API key not configured")

        url = f"{self.base_url}/models/{self.model}:generateContent"
        body = {"contents": [{"parts": [{"text": prompt}]}]}

        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
                response = await client.post(url, params={"key": self.api_key}, json=body)
                response.raise_for_status()
                payload = response.json()
        except httpx.HTTPError as e:
            raise AnalysisError(f"Gemini request failed: {e}") from e
        except ValueError as e:
            raise AnalysisError(f"Gemini returned a non-JSON body: {e}") from e

        try:
            parts = payload["candidates"][0]["content"]["parts"]
            text = "".join(part.get("text", "") for part in parts)
        except (KeyError, IndexError, TypeError) as e:
            raise AnalysisError("Gemini response has no candidates") from e

        if not text.strip():
            raise AnalysisError("Gemini returned an empty response")
        return text


async def generate_analysis(
    text: str,
    file_name: str,
    client: Optional[GeminiClient] = None,
) -> dict[str, Any]:
    """Analyse document text; never raises, falls back to a basic plan."""
    client = client or GeminiClient()
    prompt = ANALYSIS_PROMPT.format(file_name=file_name, content=truncate_for_prompt(text))
    try:
        raw = await client.generate(prompt)
        analysis = enhance_analysis(parse_model_json(raw), file_name)
    except AnalysisError as e:
        logger.warning(f"Gemini analysis failed for {file_name}, using fallback: {e}")
        return fallback_analysis(text, file_name)

    logger.info(
        f"Analysis of {file_name}: {len(analysis['roadmap']['milestones'])} milestones, "
        f"{len(analysis['tasks'])} tasks"
    )
    return analysis


async def generate_roadmap(text: str, client: Optional[GeminiClient] = None) -> dict[str, Any]:
    """Turn document text into milestones and point-bearing tasks."""
    client = client or GeminiClient()
    try:
        raw = await client.generate(ROADMAP_PROMPT.format(content=truncate_for_prompt(text)))
    except AnalysisError as e:
        logger.warning(f"Gemini roadmap request failed: {e}")
        return fallback_roadmap("Could not extract roadmap due to request error.")

    try:
        return parse_model_json(raw)
    except AnalysisError:
        logger.warning("Could not parse roadmap JSON, returning raw summary")
        roadmap = fallback_roadmap(raw[:500] or "Could not extract roadmap.")
        roadmap["confidence"] = 0.2
        return roadmap
