"""
Spatial matching for BorderWX.

This module answers the map and filter questions the presentation
layer asks of canonical alerts: which alerts cover a location, which
are within a radius of it, and the highest severity per zone.
"""

from typing import Dict, Iterable, List, Optional, Tuple

from borderwx.common.geo import haversine_distance, is_point_near_ring, validate_coordinates
from borderwx.core.geometry import (
    centroid,
    coerce_zones,
    geometry_bounding_box,
    geometry_contains,
    geometry_type,
    iter_polygons,
    outer_ring,
)
from borderwx.core.models import CanonicalAlert, UnifiedSeverity
from borderwx.core.severity import sort_by_severity
from borderwx.observability.logging_setup import get_logger

log = get_logger("borderwx.matcher")

def _valid_point(point) -> Optional[Tuple[float, float]]:
    try:
        lon, lat = float(point[0]), float(point[1])
    except (TypeError, ValueError, IndexError):
        return None
    return (lon, lat) if validate_coordinates(lat, lon) else None

def alerts_at_point(alerts: Iterable[CanonicalAlert], point) -> List[CanonicalAlert]:
    """
    지점을 포함하는 경보를 심각도 순으로 반환합니다.

    Args:
        alerts: 정규화된 경보 목록
        point: (경도, 위도)

    Returns:
        지점을 포함하는 경보 (지오메트리가 없는 경보는 제외)
    """
    xy = _valid_point(point)
    if xy is None:
        return []

    matched = []
    for alert in alerts:
        if alert.geometry is None:
            continue
        # 경계 상자로 먼저 배제
        bbox = geometry_bounding_box(alert.geometry)
        if bbox is None or not bbox.contains(xy):
            continue
        if geometry_contains(alert.geometry, xy):
            matched.append(alert)
    return sort_by_severity(matched)

def alerts_near_point(alerts: Iterable[CanonicalAlert], point, radius_km: float) -> List[CanonicalAlert]:
    """
    지점이 경보 영역 안이거나 radius_km 이내인 경보를 반환합니다.

    Point 경보는 거리로, 폴리곤 경보는 내부 여부 또는 외곽 링 꼭짓점까지의
    거리로 판정합니다.
    """
    xy = _valid_point(point)
    if xy is None:
        return []

    matched = []
    for alert in alerts:
        kind = geometry_type(alert.geometry)
        if kind == "point":
            coords = alert.geometry.coordinates
            if len(coords) >= 2 and validate_coordinates(coords[1], coords[0]):
                distance = haversine_distance(xy[1], xy[0], coords[1], coords[0])
                if distance <= radius_km:
                    matched.append(alert)
            continue

        for polygon in iter_polygons(alert.geometry):
            ring = outer_ring(polygon)
            if ring and is_point_near_ring(xy, ring, radius_km):
                matched.append(alert)
                break

    log.debug(f"반경 검색: point={xy}, radius_km={radius_km}, matched={len(matched)}")
    return sort_by_severity(matched)

def highest_severity_by_zone(alerts: Iterable[CanonicalAlert], zones) -> Dict[str, UnifiedSeverity]:
    """
    구역별로 구역 중심을 덮는 경보 중 가장 높은 심각도를 구합니다.

    Args:
        alerts: 정규화된 경보 목록
        zones: Zone 또는 dict 목록

    Returns:
        {구역 ID: UnifiedSeverity} (해당 경보가 없는 구역은 빠짐)
    """
    alert_list = [a for a in alerts if a.geometry is not None]
    result: Dict[str, UnifiedSeverity] = {}

    for zone in coerce_zones(zones):
        polygons = iter_polygons(zone.geometry)
        center = centroid(polygons[0]) if polygons else None
        if center is None:
            continue

        highest = None
        for alert in alert_list:
            if not geometry_contains(alert.geometry, center):
                continue
            if highest is None or alert.unified_severity.level > highest.level:
                highest = alert.unified_severity
        if highest is not None:
            result[zone.id] = highest

    return result
