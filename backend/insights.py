"""SafeWatch Backend: AI crime-pattern analysis (Gemini)"""

import json
import logging
import threading

from cachetools import LRUCache

from config import GEMINI_API_KEY, GEMINI_MODEL
from models import CrimeAnalysis, CrimeReport

logger = logging.getLogger("safewatch.insights")

MAX_REPORTS_IN_PROMPT = 20
MAX_DESCRIPTION_CHARS = 100

NO_DATA_ANALYSIS = CrimeAnalysis(
    analysis="No crime data available for analysis",
    recommendations=["Report crimes in your area to help improve safety insights"],
    selfDefenseRecommendations=[
        "Stay alert and aware of your surroundings",
        "Trust your instincts and avoid suspicious situations",
        "Keep emergency contacts easily accessible",
    ],
)

FALLBACK_ANALYSIS = CrimeAnalysis(
    analysis="Unable to analyze crime patterns at this time",
    recommendations=["Stay aware of your surroundings", "Report suspicious activity"],
    selfDefenseRecommendations=[
        "Stay in well-lit, populated areas",
        "Keep your phone charged with emergency contacts saved",
        "Trust your instincts - leave situations that feel unsafe",
        "Take a self-defense class to build confidence",
        "Practice de-escalation techniques and avoid confrontation",
    ],
)

# Same report summary → same analysis
_ANALYSIS_CACHE = LRUCache(maxsize=64)
_ANALYSIS_CACHE_LOCK = threading.Lock()


def summarize_reports(reports: list[CrimeReport]) -> list[dict]:
    return [
        {
            "type": r.crimeType,
            "date": r.reportedAt.isoformat() if r.reportedAt else None,
            "description": (r.description or "")[:MAX_DESCRIPTION_CHARS] or None,
        }
        for r in reports[:MAX_REPORTS_IN_PROMPT]
    ]


def _build_prompt(summary: list[dict]) -> str:
    return f"""Analyze these crime reports and provide safety insights with self-defense recommendations:
{json.dumps(summary, indent=2)}

Provide:
1. A brief analysis of crime patterns (2-3 sentences)
2. 3-5 safety recommendations
3. 3-5 specific self-defense recommendations based on the crime types reported (include practical techniques and awareness tips)

Return ONLY valid JSON (no markdown):
{{"analysis": "...", "recommendations": ["...", "..."], "selfDefenseRecommendations": ["...", "..."]}}"""


def parse_analysis(text: str) -> CrimeAnalysis:
    """Pull the JSON object out of a model reply and validate it."""
    text = text.strip()
    start_idx = text.find('{')
    end_idx = text.rfind('}')
    if start_idx != -1 and end_idx != -1:
        text = text[start_idx:end_idx + 1]
    return CrimeAnalysis.model_validate(json.loads(text))


def analyze_crime_patterns(reports: list[CrimeReport]) -> CrimeAnalysis:
    """Summarize crime patterns with Gemini.

    Best effort: with no reports, no API key, or any model failure a fixed
    analysis is returned instead.
    """
    if not reports:
        return NO_DATA_ANALYSIS
    if not GEMINI_API_KEY:
        return FALLBACK_ANALYSIS

    summary = summarize_reports(reports)
    cache_key = json.dumps(summary, sort_keys=True)
    with _ANALYSIS_CACHE_LOCK:
        if cache_key in _ANALYSIS_CACHE:
            return _ANALYSIS_CACHE[cache_key]

    try:
        import google.generativeai as genai
        genai.configure(api_key=GEMINI_API_KEY)
        model = genai.GenerativeModel(GEMINI_MODEL)

        result = model.generate_content(
            _build_prompt(summary),
            generation_config=genai.types.GenerationConfig(
                response_mime_type="application/json",
            ),
        )
        analysis = parse_analysis(result.text)
    except Exception as e:
        logger.warning(f"Gemini crime analysis error (returning fallback): {e}")
        return FALLBACK_ANALYSIS

    logger.info(f"Gemini crime analysis over {len(summary)} reports")
    with _ANALYSIS_CACHE_LOCK:
        _ANALYSIS_CACHE[cache_key] = analysis
    return analysis
