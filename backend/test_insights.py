import json
import sys
import types

import pytest

import insights
from insights import (
    FALLBACK_ANALYSIS, NO_DATA_ANALYSIS,
    analyze_crime_patterns, parse_analysis, summarize_reports,
)


def _fake_genai(reply: str = "", error: Exception | None = None):
    """Minimal stand-in for google.generativeai that returns a canned reply."""
    calls = []

    class _Model:
        def __init__(self, name):
            self.name = name

        def generate_content(self, prompt, generation_config=None):
            calls.append(prompt)
            if error is not None:
                raise error
            return types.SimpleNamespace(text=reply)

    genai = types.SimpleNamespace(
        configure=lambda api_key: None,
        GenerativeModel=_Model,
        types=types.SimpleNamespace(GenerationConfig=lambda **kw: kw),
    )
    return genai, calls


@pytest.fixture
def with_gemini(monkeypatch):
    monkeypatch.setattr(insights, "GEMINI_API_KEY", "test-key")
    insights._ANALYSIS_CACHE.clear()

    def _install(genai):
        google = types.ModuleType("google")
        google.generativeai = genai
        monkeypatch.setitem(sys.modules, "google", google)
        monkeypatch.setitem(sys.modules, "google.generativeai", genai)

    yield _install
    insights._ANALYSIS_CACHE.clear()


def test_no_reports_gives_no_data_analysis():
    assert analyze_crime_patterns([]) == NO_DATA_ANALYSIS


def test_missing_api_key_gives_fallback(monkeypatch, make_report):
    monkeypatch.setattr(insights, "GEMINI_API_KEY", "")
    assert analyze_crime_patterns([make_report()]) == FALLBACK_ANALYSIS


def test_summary_truncates_descriptions_and_caps_reports(make_report):
    reports = [make_report(description="x" * 300) for _ in range(25)]

    summary = summarize_reports(reports)

    assert len(summary) == 20
    assert len(summary[0]["description"]) == 100
    assert summary[0]["type"] == "Theft"


def test_parse_analysis_strips_surrounding_text():
    payload = {"analysis": "Thefts dominate.", "recommendations": ["a"], "selfDefenseRecommendations": ["b"]}
    text = "```json\n" + json.dumps(payload) + "\n```"

    analysis = parse_analysis(text)

    assert analysis.analysis == "Thefts dominate."
    assert analysis.recommendations == ["a"]


def test_gemini_reply_is_used_and_cached(with_gemini, make_report):
    reply = json.dumps({
        "analysis": "Mostly thefts near the market.",
        "recommendations": ["Keep bags closed"],
        "selfDefenseRecommendations": ["Walk in groups"],
    })
    genai, calls = _fake_genai(reply)
    with_gemini(genai)
    reports = [make_report(crime_type="Theft")]

    first = analyze_crime_patterns(reports)
    second = analyze_crime_patterns(reports)

    assert first.analysis == "Mostly thefts near the market."
    assert second == first
    assert len(calls) == 1
    assert "Theft" in calls[0]


def test_gemini_failure_gives_fallback(with_gemini, make_report):
    genai, _ = _fake_genai(error=RuntimeError("quota exceeded"))
    with_gemini(genai)

    assert analyze_crime_patterns([make_report()]) == FALLBACK_ANALYSIS


def test_malformed_gemini_reply_gives_fallback(with_gemini, make_report):
    genai, _ = _fake_genai("not json at all")
    with_gemini(genai)

    assert analyze_crime_patterns([make_report()]) == FALLBACK_ANALYSIS
