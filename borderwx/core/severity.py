"""
Severity unification for BorderWX.

This module maps the NWS (severity/urgency/certainty) and Environment
Canada (alert type + event name) vocabularies onto one 5-tier ladder
so that US and Canadian alerts sort and filter consistently.
"""

from functools import cmp_to_key
from types import MappingProxyType
from typing import Any, List, Mapping, MutableMapping, Optional

from borderwx.core.models import UnifiedSeverity
from borderwx.observability.logging_setup import get_logger

log = get_logger("borderwx.severity")

# 통합 심각도 단계 (낮음 -> 높음)
SEVERITY_KEYS = ("INFO", "LOW", "MODERATE", "HIGH", "CRITICAL")

UNIFIED_SEVERITY: Mapping[str, UnifiedSeverity] = MappingProxyType({
    "CRITICAL": UnifiedSeverity(
        level=4, key="CRITICAL", color="#DC2626", label="Critical",
        description="Immediate threat to life or property",
    ),
    "HIGH": UnifiedSeverity(
        level=3, key="HIGH", color="#EA580C", label="High",
        description="Significant threat, take action",
    ),
    "MODERATE": UnifiedSeverity(
        level=2, key="MODERATE", color="#CA8A04", label="Moderate",
        description="Potential threat, be prepared",
    ),
    "LOW": UnifiedSeverity(
        level=1, key="LOW", color="#16A34A", label="Low",
        description="Minor impact expected",
    ),
    "INFO": UnifiedSeverity(
        level=0, key="INFO", color="#2563EB", label="Informational",
        description="General information, no action needed",
    ),
})

# NWS: 기본 등급 + 긴급도/확실성 보정
NWS_SEVERITY_MAP = MappingProxyType({
    "Extreme": 4,
    "Severe": 3,
    "Moderate": 2,
    "Minor": 1,
    "Unknown": 0,
})

NWS_URGENCY_BOOST = MappingProxyType({
    "Immediate": 1.0,
    "Expected": 0.5,
    "Future": 0.0,
    "Past": -1.0,
    "Unknown": 0.0,
})

NWS_CERTAINTY_BOOST = MappingProxyType({
    "Observed": 0.5,
    "Likely": 0.25,
    "Possible": 0.0,
    "Unlikely": -0.5,
    "Unknown": 0.0,
})

# EC: 경보 유형별 기본 등급
EC_TYPE_MAP = MappingProxyType({
    "warning": 3,
    "watch": 2,
    "advisory": 1,
    "statement": 0,
    "ended": 0,
})

# warning 과 결합되면 CRITICAL 로 올리는 이벤트 (부분 문자열 일치)
EC_CRITICAL_EVENTS = (
    "tornado",
    "tsunami",
    "hurricane",
    "typhoon",
    "extreme cold",
    "extreme heat",
    "avalanche",
)

# watch 여도 HIGH 로 보는 이벤트
EC_HIGH_WATCH_EVENTS = (
    "tornado",
    "tsunami",
    "severe thunderstorm",
)

# 문자열 표기 -> 등급 (통합/EC 유형/NWS 표기)
SEVERITY_STRING_LEVELS = MappingProxyType({
    "CRITICAL": 4, "EMERGENCY": 4, "EXTREME": 4,
    "HIGH": 3, "WARNING": 3, "SEVERE": 3,
    "MODERATE": 2, "WATCH": 2,
    "LOW": 1, "ADVISORY": 1, "MINOR": 1,
    "INFO": 0, "STATEMENT": 0,
})

SEVERITY_CLASS_NAMES = MappingProxyType({
    4: "severity-critical",
    3: "severity-high",
    2: "severity-moderate",
    1: "severity-low",
    0: "severity-info",
})

def _clamp_level(level: Any) -> int:
    try:
        value = int(level)
    except (TypeError, ValueError, OverflowError):
        return 0
    return min(4, max(0, value))

def get_severity_by_level(level: Any) -> UnifiedSeverity:
    """
    숫자 등급에 해당하는 통합 심각도를 반환합니다.

    Args:
        level: 등급 (0~4 범위로 보정)

    Returns:
        UnifiedSeverity
    """
    return UNIFIED_SEVERITY[SEVERITY_KEYS[_clamp_level(level)]]

def map_nws_severity(severity: Optional[str],
                     urgency: Optional[str] = "Unknown",
                     certainty: Optional[str] = "Unknown") -> UnifiedSeverity:
    """
    NWS 경보를 통합 심각도로 매핑합니다.

    기본 등급에 긴급도/확실성 보정을 더한 뒤 반올림하고 0~4 로 제한합니다.
    Immediate + Observed 인 Moderate 경보가 Future 인 Severe 경보보다
    높게 나올 수 있습니다.

    Args:
        severity: Extreme | Severe | Moderate | Minor | Unknown
        urgency: Immediate | Expected | Future | Past | Unknown
        certainty: Observed | Likely | Possible | Unlikely | Unknown

    Returns:
        UnifiedSeverity
    """
    base = NWS_SEVERITY_MAP.get(severity or "Unknown", 0)
    urgency_boost = NWS_URGENCY_BOOST.get(urgency or "Unknown", 0.0)
    certainty_boost = NWS_CERTAINTY_BOOST.get(certainty or "Unknown", 0.0)

    # round(): .5 는 짝수 쪽으로 (Minor/Future/Unlikely = 0.5 -> 0)
    # Moderate/Expected/Possible = 2.5 도 2 (MODERATE). 항상 올림하면 HIGH 가 된다
    adjusted = round(base + urgency_boost + certainty_boost)
    return get_severity_by_level(adjusted)

def map_ec_severity(alert_type: Optional[str], event_category: Optional[str] = "") -> UnifiedSeverity:
    """
    Environment Canada 경보를 통합 심각도로 매핑합니다.

    Args:
        alert_type: warning | watch | advisory | statement | ended
        event_category: 이벤트 이름 (예: "Tornado Warning")

    Returns:
        UnifiedSeverity
    """
    normalized_type = (alert_type or "statement").strip().lower()
    normalized_event = (event_category or "").lower()

    level = EC_TYPE_MAP.get(normalized_type, 0)

    if normalized_type == "warning" and any(e in normalized_event for e in EC_CRITICAL_EVENTS):
        level = 4
    elif normalized_type == "watch" and any(e in normalized_event for e in EC_HIGH_WATCH_EVENTS):
        level = 3

    return get_severity_by_level(level)

def _get(alert: Any, name: str, default=None):
    if isinstance(alert, Mapping):
        return alert.get(name, default)
    return getattr(alert, name, default)

def _severity_level(alert: Any) -> int:
    unified = _get(alert, "unified_severity")
    if unified is None:
        return 0
    return _clamp_level(_get(unified, "level", 0))

def is_canadian_source(source: Optional[str]) -> bool:
    """source 태그가 EC/캐나다 출처인지 확인합니다."""
    normalized = (source or "").upper()
    return "EC" in normalized or "CANADA" in normalized

def unify_severity(alert: Any) -> UnifiedSeverity:
    """
    출처에 맞는 매퍼로 통합 심각도를 계산합니다 (입력은 변경하지 않음).

    source 에 "EC" 또는 "CANADA" 가 있으면 EC 매퍼, 그 외(없음 포함)는
    NWS 매퍼를 사용합니다.
    """
    if is_canadian_source(_get(alert, "source")):
        info = _get(alert, "info")
        alert_type = _get(alert, "type") or (_get(info, "category") if info else None) or "statement"
        event = _get(alert, "event") or (_get(info, "event") if info else None) or ""
        return map_ec_severity(alert_type, event)

    return map_nws_severity(
        _get(alert, "severity"),
        _get(alert, "urgency"),
        _get(alert, "certainty"),
    )

def apply_unified_severity(alert: Any) -> Any:
    """
    경보에 unified_severity 를 채워 같은 객체를 반환합니다.

    Args:
        alert: RawAlert/CanonicalAlert 또는 dict

    Returns:
        unified_severity 가 설정된 같은 경보 (None 이면 None)
    """
    if alert is None:
        return alert

    unified = unify_severity(alert)
    if isinstance(alert, MutableMapping):
        alert["unified_severity"] = unified
    else:
        alert.unified_severity = unified

    log.debug(f"통합 심각도 적용: source={_get(alert, 'source')}, level={unified.level}")
    return alert

def compare_severity(alert_a: Any, alert_b: Any) -> int:
    """
    심각도 내림차순 정렬용 비교 함수.

    Returns:
        a 가 더 심각하면 음수, 같으면 0, b 가 더 심각하면 양수
    """
    return _severity_level(alert_b) - _severity_level(alert_a)

def sort_by_severity(alerts: List[Any]) -> List[Any]:
    """심각도 내림차순으로 정렬한 새 리스트 (같은 등급은 입력 순서 유지)"""
    return sorted(alerts, key=cmp_to_key(compare_severity))

def parse_severity_string(text: Optional[str]) -> int:
    """
    자유 형식 심각도 문자열을 숫자 등급으로 변환합니다.

    통합 등급 이름, EC 유형, NWS 심각도, 레거시 표기를 모두 받으며
    알 수 없는 값은 0 입니다.
    """
    normalized = (text or "").strip().upper()
    return SEVERITY_STRING_LEVELS.get(normalized, 0)

def severity_class_name(level: Any) -> str:
    """CSS 클래스 이름 (severity-critical ... severity-info)"""
    try:
        return SEVERITY_CLASS_NAMES.get(int(level), "severity-info")
    except (TypeError, ValueError):
        return "severity-info"
