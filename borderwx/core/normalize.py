"""
Normalization pipeline for BorderWX.

This module contains pure functions that turn raw provider alerts
(NWS or Environment Canada, fields already extracted from the feed
envelope) into canonical alerts: unified severity, resolved geometry
and harmonized temperature mentions.
"""

from typing import Any, Iterable, List, Optional

from pydantic import ValidationError

from borderwx.core.geometry import coerce_zones, resolve_alert_geometry_with_source
from borderwx.core.models import CanonicalAlert, RawAlert
from borderwx.core.severity import sort_by_severity, unify_severity
from borderwx.core.units import detect_measurement_system, extract_temperatures
from borderwx.observability.logging_setup import get_logger
from borderwx.settings import Settings

log = get_logger("borderwx.normalize")

def to_raw_alert(raw: Any) -> RawAlert:
    """
    dict 또는 RawAlert 를 RawAlert 모델로 변환합니다.

    Raises:
        ValidationError: 경보 레코드가 아닌 입력
    """
    if isinstance(raw, RawAlert):
        return raw
    return RawAlert.model_validate(raw)

def normalize_alert(raw: Any, zones: Iterable[Any] = (), *, settings: Optional[Settings] = None) -> CanonicalAlert:
    """
    원본 경보 하나를 정규화합니다.

    지오메트리가 잘못되었거나 심각도 어휘를 모르는 경우에도 예외를
    던지지 않고 None 지오메트리/INFO 등급으로 내려갑니다.

    Args:
        raw: RawAlert 또는 dict
        zones: 지오메트리 폴백용 구역 목록
        settings: 설정 (기본값 사용 시 None)

    Returns:
        CanonicalAlert
    """
    settings = settings or Settings()
    alert = to_raw_alert(raw)

    unified = unify_severity(alert)
    geometry, geometry_source = resolve_alert_geometry_with_source(alert, zones, settings.geometry)
    system = detect_measurement_system(alert.source)

    temperatures = []
    for block in alert.text_blocks():
        temperatures.extend(extract_temperatures(block, system))

    data = alert.model_dump()
    data.update(
        geometry=geometry,
        unified_severity=unified,
        geometry_source=geometry_source,
        measurement_system=system,
        temperatures=temperatures,
    )
    canonical = CanonicalAlert.model_validate(data)

    log.debug(f"경보 정규화 완료: id={canonical.id}, source={canonical.source}, "
              f"level={unified.level}, geometry_source={geometry_source}")
    return canonical

def normalize_alerts(raws: Iterable[Any], zones: Iterable[Any] = (), *,
                     settings: Optional[Settings] = None) -> List[CanonicalAlert]:
    """
    경보 묶음을 정규화하고 심각도 내림차순으로 정렬합니다.

    레코드 하나가 잘못되어도 나머지는 계속 처리합니다.

    Args:
        raws: 원본 경보 목록
        zones: 구역 목록
        settings: 설정

    Returns:
        정렬된 CanonicalAlert 목록
    """
    settings = settings or Settings()
    # 구역은 한 번만 검증해서 재사용
    zone_list = coerce_zones(zones)

    normalized = []
    skipped = 0
    for index, raw in enumerate(raws):
        try:
            normalized.append(normalize_alert(raw, zone_list, settings=settings))
        except ValidationError as e:
            skipped += 1
            log.warning(f"경보 레코드 건너뜀: index={index}, errors={e.error_count()}")

    mappable = sum(1 for alert in normalized if alert.mappable)
    log.info(f"경보 {len(normalized)}건 정규화 (지도 표시 {mappable}건, 건너뜀 {skipped}건)")
    return sort_by_severity(normalized)
