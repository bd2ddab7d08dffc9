"""
Geographic primitives for BorderWX.

This module provides the low-level calculations on plain (lon, lat)
tuples: great-circle distance, coordinate validation, ray casting
and bounding boxes. GeoJSON nesting is handled in borderwx.core.geometry.
"""

import math
from typing import Iterable, List, Optional, Sequence, Tuple

# 위도 1도당 거리 (킬로미터, 근사값)
KM_PER_DEGREE = 111.0

# 지구 반지름 (킬로미터)
EARTH_RADIUS_KM = 6371.0

def haversine_distance(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """
    두 지점 간의 Haversine 거리를 계산합니다 (킬로미터).

    Args:
        lat1: 첫 번째 지점의 위도
        lon1: 첫 번째 지점의 경도
        lat2: 두 번째 지점의 위도
        lon2: 두 번째 지점의 경도

    Returns:
        두 지점 간의 거리 (킬로미터)
    """
    lat1_rad = math.radians(lat1)
    lon1_rad = math.radians(lon1)
    lat2_rad = math.radians(lat2)
    lon2_rad = math.radians(lon2)

    dlat = lat2_rad - lat1_rad
    dlon = lon2_rad - lon1_rad

    a = (math.sin(dlat / 2) ** 2 +
         math.cos(lat1_rad) * math.cos(lat2_rad) * math.sin(dlon / 2) ** 2)
    # 부동소수 오차로 1을 넘는 경우 방지
    c = 2 * math.asin(math.sqrt(min(1.0, a)))

    return c * EARTH_RADIUS_KM

def validate_coordinates(lat: float, lon: float) -> bool:
    """
    좌표가 유효한지 확인합니다 (NaN/무한대는 무효).

    Args:
        lat: 위도
        lon: 경도

    Returns:
        좌표가 유효하면 True
    """
    try:
        lat = float(lat)
        lon = float(lon)
    except (TypeError, ValueError):
        return False
    if not (math.isfinite(lat) and math.isfinite(lon)):
        return False
    return -90 <= lat <= 90 and -180 <= lon <= 180

def to_xy(vertex) -> Optional[Tuple[float, float]]:
    """[lon, lat, ...] 꼭짓점을 (x, y) 실수 튜플로 변환합니다. 실패 시 None."""
    try:
        return float(vertex[0]), float(vertex[1])
    except (TypeError, ValueError, IndexError, KeyError):
        return None

def clean_ring(ring) -> Optional[List[Tuple[float, float]]]:
    """
    링을 (x, y) 튜플 리스트로 정리합니다.

    꼭짓점 하나라도 형식이 잘못되면 링 전체를 무효(None)로 봅니다.
    """
    if ring is None or isinstance(ring, (str, bytes)):
        return None
    try:
        vertices = list(ring)
    except TypeError:
        return None
    cleaned = []
    for vertex in vertices:
        xy = to_xy(vertex)
        if xy is None:
            return None
        cleaned.append(xy)
    return cleaned

# Ray casting (lon,lat) vs ring [(lon,lat), ...]
def ring_contains(x: float, y: float, ring: Sequence[Tuple[float, float]]) -> bool:
    """
    점이 링 내부에 있는지 Ray casting 알고리즘으로 확인합니다.

    점의 위도를 가로지르는 변마다 교차 x좌표가 점의 경도보다 크면
    inside 플래그를 뒤집습니다.
    """
    if len(ring) < 3 or not (math.isfinite(x) and math.isfinite(y)):
        return False

    inside = False
    n = len(ring)
    j = n - 1
    for i in range(n):
        xi, yi = ring[i]
        xj, yj = ring[j]
        # (yi > y) != (yj > y) 이면 yi != yj 이므로 0으로 나누지 않음
        if (yi > y) != (yj > y) and x < (xj - xi) * (y - yi) / (yj - yi) + xi:
            inside = not inside
        j = i
    return inside

def calculate_bounding_box(ring: Iterable[Tuple[float, float]]) -> Optional[Tuple[float, float, float, float]]:
    """
    링의 경계 상자를 계산합니다.

    Args:
        ring: 링의 꼭짓점들 [(경도, 위도), ...]

    Returns:
        (min_lon, min_lat, max_lon, max_lat), 빈 입력이면 None
    """
    ring = list(ring)
    if not ring:
        return None

    lons = [p[0] for p in ring]
    lats = [p[1] for p in ring]

    return (min(lons), min(lats), max(lons), max(lats))

def is_point_near_ring(point: Tuple[float, float],
                       ring: Sequence[Tuple[float, float]],
                       buffer_km: float) -> bool:
    """
    점이 링 내부 또는 꼭짓점으로부터 buffer_km 이내에 있는지 확인합니다.

    Args:
        point: 확인할 점 (경도, 위도)
        ring: 링의 꼭짓점들 [(경도, 위도), ...]
        buffer_km: 버퍼 거리 (킬로미터)

    Returns:
        점이 링 또는 버퍼 내부에 있으면 True
    """
    if ring_contains(point[0], point[1], ring):
        return True

    # 버퍼가 0이면 내부만 확인
    if buffer_km <= 0:
        return False

    for vertex in ring:
        distance = haversine_distance(point[1], point[0], vertex[1], vertex[0])
        if distance <= buffer_km:
            return True

    return False
