"""
Document analysis: turns a report's extracted text into the structured
analysis bundle stored on MedicalReport.

The model answers in free text. ``parse_analysis`` recovers the list
sections from it by their headers; it is kept free of any network or
database access so it can be tested against fixed strings.
"""
import re
from typing import Dict, List

MAX_KEY_FINDINGS = 5
MAX_RECOMMENDATIONS = 5
MAX_RISK_FACTORS = 3

# The model produces no certainty signal; this is a fixed value, not a measurement.
DEFAULT_CONFIDENCE = 85
MIN_CONFIDENCE = 60
MAX_CONFIDENCE = 99

KEY_FINDINGS_RE = re.compile(r'Key Findings?:(.*?)(?=Recommendations?|Risk Factors?|\Z)', re.IGNORECASE | re.DOTALL)
RECOMMENDATIONS_RE = re.compile(r'Recommendations?:(.*?)(?=Risk Factors?|\Z)', re.IGNORECASE | re.DOTALL)
RISK_FACTORS_RE = re.compile(r'Risk Factors?:(.*?)(?=\n\n|\Z)', re.IGNORECASE | re.DOTALL)
BULLET_RE = re.compile(r'[•\-\*]\s*')
NUMBERED_ITEM_RE = re.compile(r'^\d+\.')


def _section_items(pattern: re.Pattern, text: str, limit: int) -> List[str]:
    match = pattern.search(text)
    if not match:
        return []
    items = [item.strip() for item in BULLET_RE.split(match.group(1))]
    items = [item for item in items if item and not NUMBERED_ITEM_RE.match(item)]
    return items[:limit]


def parse_analysis(raw_text: str) -> Dict[str, List[str]]:
    return {
        "key_findings": _section_items(KEY_FINDINGS_RE, raw_text, MAX_KEY_FINDINGS),
        "recommendations": _section_items(RECOMMENDATIONS_RE, raw_text, MAX_RECOMMENDATIONS),
        "risk_factors": _section_items(RISK_FACTORS_RE, raw_text, MAX_RISK_FACTORS),
    }


def clamp_confidence(value: int) -> int:
    return min(max(value, MIN_CONFIDENCE), MAX_CONFIDENCE)


def build_analysis_bundle(raw_text: str) -> Dict:
    sections = parse_analysis(raw_text)
    return {
        "summary": raw_text,
        **sections,
        "confidence": clamp_confidence(DEFAULT_CONFIDENCE),
    }

