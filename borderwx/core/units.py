"""
Unit harmonization for BorderWX.

This module converts between US imperial and Canadian metric
measurements and produces "primary (secondary)" display strings.
Every conversion returns None for missing or non-numeric input
instead of a NaN-derived number.
"""

import math
import re
from typing import Any, List, Optional

from borderwx.core.models import (
    MeasurementSystem,
    TemperatureMention,
    TemperatureOriginal,
    TemperatureReading,
)

# 캐나다(미터법) 출처 표식
METRIC_SOURCES = ("EC", "ECCC", "ENVIRONMENT CANADA", "CA")

# 본문 온도 패턴: 짝수 인덱스 = 섭씨, 홀수 인덱스 = 화씨
TEMPERATURE_PATTERNS = (
    re.compile(r"(-?\d+(?:\.\d+)?)\s*°?\s*C(?:elsius)?\b", re.IGNORECASE),
    re.compile(r"(-?\d+(?:\.\d+)?)\s*°?\s*F(?:ahrenheit)?\b", re.IGNORECASE),
    re.compile(r"(-?\d+(?:\.\d+)?)\s*degrees?\s+C(?:elsius)?\b", re.IGNORECASE),
    re.compile(r"(-?\d+(?:\.\d+)?)\s*degrees?\s+F(?:ahrenheit)?\b", re.IGNORECASE),
)

def _number(value: Any) -> Optional[float]:
    """변환 가능한 유한 실수만 통과 (bool 제외)"""
    if value is None or isinstance(value, bool):
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    return number if math.isfinite(number) else None

def _round_half_up(value: float, digits: int = 0):
    # 표시용 반올림: .5 는 항상 올림 (-0.5 -> 0)
    scale = 10 ** digits
    rounded = math.floor(value * scale + 0.5) / scale
    return int(rounded) if digits == 0 else rounded

# ---- 온도 ----

def celsius_to_fahrenheit(celsius: Any) -> Optional[int]:
    value = _number(celsius)
    if value is None:
        return None
    return _round_half_up(value * 9 / 5 + 32)

def fahrenheit_to_celsius(fahrenheit: Any) -> Optional[int]:
    value = _number(fahrenheit)
    if value is None:
        return None
    return _round_half_up((value - 32) * 5 / 9)

# ---- 풍속 ----

def kph_to_mph(kph: Any) -> Optional[int]:
    value = _number(kph)
    if value is None:
        return None
    return _round_half_up(value * 0.621371)

def mph_to_kph(mph: Any) -> Optional[int]:
    value = _number(mph)
    if value is None:
        return None
    return _round_half_up(value * 1.60934)

# ---- 거리 ----

def km_to_miles(km: Any) -> Optional[float]:
    value = _number(km)
    if value is None:
        return None
    return _round_half_up(value * 0.621371, 1)

def miles_to_km(miles: Any) -> Optional[float]:
    value = _number(miles)
    if value is None:
        return None
    return _round_half_up(value * 1.60934, 1)

# ---- 강수량 ----

def mm_to_inches(mm: Any) -> Optional[float]:
    value = _number(mm)
    if value is None:
        return None
    return _round_half_up(value * 0.0393701, 2)

def inches_to_mm(inches: Any) -> Optional[float]:
    value = _number(inches)
    if value is None:
        return None
    return _round_half_up(value * 25.4, 1)

def normalize_temperature(value: Any, source_unit: str, target_unit: str = "F") -> Optional[TemperatureReading]:
    """
    온도를 목표 단위로 변환하고 원본 값/단위를 함께 보존합니다.

    Args:
        value: 온도 값
        source_unit: 'C' 또는 'F'
        target_unit: 'C' 또는 'F' (기본값: 'F')

    Returns:
        TemperatureReading, 값이 없거나 숫자가 아니면 None
    """
    number = _number(value)
    if number is None:
        return None

    source = (source_unit or "").upper()
    target = (target_unit or "F").upper()
    if source == target:
        normalized = number
    elif source == "C":
        normalized = celsius_to_fahrenheit(number)
    else:
        normalized = fahrenheit_to_celsius(number)

    return TemperatureReading(
        value=normalized,
        unit=target,
        original=TemperatureOriginal(value=number, unit=source),
    )

def detect_measurement_system(source: Optional[str]) -> MeasurementSystem:
    """출처 태그로 측정 체계를 판별합니다. 알 수 없으면 imperial."""
    normalized = (source or "").upper()
    return "metric" if any(marker in normalized for marker in METRIC_SOURCES) else "imperial"

def extract_temperatures(text: Optional[str], source_system: MeasurementSystem = "metric") -> List[TemperatureMention]:
    """
    경보 본문에서 온도 표기를 찾아 섭씨/화씨 값을 모두 계산합니다.

    "-20°C", "32°F", "-5 degrees Celsius" 같은 표기를 찾으며, 여러 패턴이
    같은 위치의 같은 문자열을 잡으면 한 번만 기록합니다. 단위 글자 뒤는
    단어 경계여야 하므로 "25 cm" 는 온도로 보지 않습니다.

    Args:
        text: 경보 본문
        source_system: 본문의 측정 체계 (단위 표기가 명시되어 있으므로
            변환에는 영향을 주지 않음)

    Returns:
        TemperatureMention 목록 (패턴 순서, 같은 패턴 안에서는 위치 순서)
    """
    if not text:
        return []

    mentions = []
    seen = set()
    for index, pattern in enumerate(TEMPERATURE_PATTERNS):
        is_celsius = index % 2 == 0
        for match in pattern.finditer(text):
            key = (match.group(0), match.start())
            if key in seen:
                continue
            seen.add(key)

            value = float(match.group(1))
            mentions.append(TemperatureMention(
                original=match.group(0),
                fahrenheit=celsius_to_fahrenheit(value) if is_celsius else _round_half_up(value),
                celsius=_round_half_up(value) if is_celsius else fahrenheit_to_celsius(value),
            ))

    return mentions

def format_temperature_bilingual(value: Any, unit: str = "F") -> str:
    """
    두 단위를 함께 표시한 온도 문자열.

    Returns:
        "32°F (0°C)" 형식, 값이 없으면 "N/A"
    """
    number = _number(value)
    if number is None:
        return "N/A"

    shown = _format_number(number)
    if (unit or "F").upper() == "F":
        return f"{shown}°F ({fahrenheit_to_celsius(number)}°C)"
    return f"{shown}°C ({celsius_to_fahrenheit(number)}°F)"

def format_wind_speed_bilingual(value: Any, unit: str = "mph") -> str:
    """
    두 단위를 함께 표시한 풍속 문자열.

    Returns:
        "50 mph (80 km/h)" 형식, 값이 없으면 "N/A"
    """
    number = _number(value)
    if number is None:
        return "N/A"

    shown = _format_number(number)
    if (unit or "mph").lower() == "mph":
        return f"{shown} mph ({mph_to_kph(number)} km/h)"
    return f"{shown} km/h ({kph_to_mph(number)} mph)"

def _format_number(value: float) -> str:
    # 정수 값은 소수점 없이
    return str(int(value)) if value.is_integer() else str(value)
