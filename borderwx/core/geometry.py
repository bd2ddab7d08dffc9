"""
Geometry resolution for BorderWX.

This module implements the geometric predicates used for spatial
filtering and the three-tier fallback that reconstructs a displayable
shape for alerts whose feed omits or malforms the hazard polygon.

All functions accept either geometry models or plain GeoJSON
coordinate nesting and degrade to False/None on malformed input.

Known limitation: polygons_intersect only tests vertex containment,
so two polygons that cross like an "X" without either containing a
vertex of the other are reported as disjoint.
"""

import math
from typing import Any, Iterable, List, Mapping, Optional, Tuple

from pydantic import BaseModel, ValidationError

from borderwx.common.geo import (
    KM_PER_DEGREE,
    calculate_bounding_box,
    clean_ring,
    ring_contains,
    to_xy,
)
from borderwx.core.models import (
    BoundingBox,
    MultiPolygonGeometry,
    Point,
    PointGeometry,
    PolygonGeometry,
    RawAlert,
    Zone,
)
from borderwx.observability.logging_setup import get_logger
from borderwx.settings import GeometrySettings

log = get_logger("borderwx.geometry")

# ---- 내부 헬퍼 ----

def _coords(polygon) -> Any:
    """Polygon 모델이면 좌표 배열을, 아니면 입력 그대로 반환"""
    if isinstance(polygon, BaseModel):
        return getattr(polygon, "coordinates", None)
    if isinstance(polygon, Mapping):
        return polygon.get("coordinates")
    return polygon

def outer_ring(polygon) -> Optional[List[Tuple[float, float]]]:
    """폴리곤 좌표 중첩에서 첫 번째(외곽) 링만 꺼냅니다."""
    coords = _coords(polygon)
    if not coords or isinstance(coords, (str, bytes)):
        return None
    try:
        first = coords[0]
    except (TypeError, IndexError, KeyError):
        return None
    # 링 자체가 들어온 경우: [[x, y], ...]
    if to_xy(first) is not None and not isinstance(first[0], (list, tuple)):
        return clean_ring(coords)
    return clean_ring(first)

def _point_xy(point) -> Optional[Tuple[float, float]]:
    if isinstance(point, PointGeometry):
        point = point.coordinates
    xy = to_xy(point) if point is not None else None
    if xy is None or not (math.isfinite(xy[0]) and math.isfinite(xy[1])):
        return None
    return xy

# ---- 점 포함 테스트 ----

def point_in_polygon(point, polygon) -> bool:
    """
    점이 폴리곤 외곽 링 내부에 있는지 확인합니다.

    Args:
        point: (경도, 위도)
        polygon: Polygon 좌표 [[[lon, lat], ...], ...] 또는 PolygonGeometry

    Returns:
        내부이면 True. 링이 없거나 좌표가 유한하지 않으면 False
    """
    xy = _point_xy(point)
    ring = outer_ring(polygon)
    if xy is None or not ring:
        return False
    return ring_contains(xy[0], xy[1], ring)

def point_in_multipolygon(point, multipolygon) -> bool:
    """
    점이 멀티폴리곤의 어느 한 폴리곤이라도 안에 있는지 확인합니다.

    첫 번째로 포함하는 폴리곤에서 바로 반환합니다.
    """
    polygons = _coords(multipolygon)
    if not polygons or isinstance(polygons, (str, bytes)):
        return False
    try:
        return any(point_in_polygon(point, polygon) for polygon in polygons)
    except TypeError:
        return False

def geometry_contains(geometry, point) -> bool:
    """지오메트리 종류에 맞는 포함 테스트 (Point 는 항상 False)"""
    kind = geometry_type(geometry)
    if kind == "polygon":
        return point_in_polygon(point, geometry)
    if kind == "multipolygon":
        return point_in_multipolygon(point, geometry)
    return False

# ---- 경계 상자 ----

def bounding_box(ring) -> Optional[BoundingBox]:
    """
    링의 경계 상자를 계산합니다.

    Args:
        ring: [[lon, lat], ...]

    Returns:
        BoundingBox, 빈 입력이거나 형식이 잘못되면 None
    """
    cleaned = outer_ring(ring)
    if not cleaned:
        return None
    return BoundingBox(*calculate_bounding_box(cleaned))

def bounding_boxes_intersect(a: Optional[BoundingBox], b: Optional[BoundingBox]) -> bool:
    """축 정렬 경계 상자 겹침 테스트 (한 축이라도 분리되면 False)"""
    if a is None or b is None:
        return False
    return not (a.max_x < b.min_x or a.min_x > b.max_x or
                a.max_y < b.min_y or a.min_y > b.max_y)

def geometry_bounding_box(geometry) -> Optional[BoundingBox]:
    """모든 구성 폴리곤의 외곽 링을 합친 경계 상자"""
    rings = [ring for ring in (outer_ring(p) for p in iter_polygons(geometry)) if ring]
    if not rings:
        return None
    return BoundingBox(*calculate_bounding_box(v for ring in rings for v in ring))

# ---- 폴리곤 간 관계 ----

def polygons_intersect(p1, p2) -> bool:
    """
    두 폴리곤이 겹치는지 근사적으로 확인합니다.

    경계 상자로 먼저 배제한 뒤, 한쪽 꼭짓점이 다른 쪽 내부에 있는지
    양방향으로 검사합니다. 꼭짓점 포함 없이 교차하는 경우("X" 형태)는
    놓칩니다.
    """
    ring1 = outer_ring(p1)
    ring2 = outer_ring(p2)
    if not ring1 or not ring2:
        return False

    if not bounding_boxes_intersect(BoundingBox(*calculate_bounding_box(ring1)),
                                    BoundingBox(*calculate_bounding_box(ring2))):
        return False

    if any(ring_contains(x, y, ring2) for x, y in ring1):
        return True
    return any(ring_contains(x, y, ring1) for x, y in ring2)

def centroid(ring) -> Optional[Point]:
    """
    링 꼭짓점의 산술 평균 (면적 가중 중심이 아님).

    폴백 버퍼 위치 결정용으로만 사용합니다.
    """
    cleaned = outer_ring(ring)
    if not cleaned:
        return None
    n = len(cleaned)
    return (sum(x for x, _ in cleaned) / n, sum(y for _, y in cleaned) / n)

def buffer_point(point, radius_km: float, segments: int = 16) -> Optional[List[List[List[float]]]]:
    """
    점을 중심으로 원을 근사하는 정다각형 폴리곤을 만듭니다.

    국지 등장방형 근사(위도 1도 ≈ 111km, 경도는 cos(위도) 배율)를
    사용하므로 극 근처에서는 유효하지 않습니다.

    Args:
        point: 중심 (경도, 위도)
        radius_km: 반경 (킬로미터)
        segments: 변의 수

    Returns:
        닫힌 링 하나를 가진 Polygon 좌표 (segments + 1 개 꼭짓점)
    """
    xy = _point_xy(point)
    if xy is None or segments < 3 or not math.isfinite(radius_km):
        return None

    lng, lat = xy
    km_per_degree_lng = KM_PER_DEGREE * math.cos(math.radians(lat))
    radius_lat = radius_km / KM_PER_DEGREE
    radius_lng = radius_km / km_per_degree_lng if km_per_degree_lng else 0.0

    ring = []
    for i in range(segments + 1):
        angle = (i % segments) / segments * 2 * math.pi
        ring.append([lng + radius_lng * math.cos(angle),
                     lat + radius_lat * math.sin(angle)])
    return [ring]

def area(polygon) -> float:
    """
    평면 신발끈 공식으로 계산한 근사 면적 (제곱킬로미터).

    1도 = 111km 상수 환산이므로 요약 표시용입니다.
    """
    ring = outer_ring(polygon)
    if not ring or len(ring) < 3:
        return 0.0

    total = 0.0
    n = len(ring)
    for i in range(n):
        x1, y1 = ring[i]
        x2, y2 = ring[(i + 1) % n]
        total += x1 * y2 - x2 * y1

    return abs(total / 2) * KM_PER_DEGREE * KM_PER_DEGREE

def simplify(polygon, tolerance_deg: float = 0.01):
    """
    단일 패스 탐욕적 단순화.

    첫/마지막 꼭짓점은 항상 유지하고, 중간 꼭짓점은 마지막으로 유지한
    꼭짓점과의 거리가 허용치를 넘을 때만 남깁니다. Douglas-Peucker 가
    아니므로 순서에 의존합니다.
    """
    ring = outer_ring(polygon)
    if ring is None:
        return None
    if len(ring) <= 4:
        return [[list(v) for v in ring]]

    kept = [ring[0]]
    for vertex in ring[1:-1]:
        last_x, last_y = kept[-1]
        if math.hypot(vertex[0] - last_x, vertex[1] - last_y) > tolerance_deg:
            kept.append(vertex)
    kept.append(ring[-1])

    return [[list(v) for v in kept]]

# ---- 구조 검증 ----

def _as_model(geometry):
    if isinstance(geometry, (PointGeometry, PolygonGeometry, MultiPolygonGeometry)):
        return geometry
    return None

def geometry_type(geometry) -> str:
    """
    지오메트리 종류를 반환합니다.

    Returns:
        'point' | 'polygon' | 'multipolygon' | 'unknown'
    """
    model = _as_model(geometry)
    if isinstance(model, PointGeometry):
        return "point"
    if isinstance(model, PolygonGeometry):
        return "polygon"
    if isinstance(model, MultiPolygonGeometry):
        return "multipolygon"

    # dict 경계에서만 태그 문자열을 본다
    if isinstance(geometry, Mapping):
        tag = str(geometry.get("type") or "").lower()
        if tag in ("point", "polygon", "multipolygon"):
            return tag
    return "unknown"

def is_valid_geometry(geometry) -> bool:
    """
    타입 태그와 최소 크기의 좌표 배열이 있는지 확인합니다.

    링 닫힘이나 감김 방향은 검사하지 않습니다.
    """
    kind = geometry_type(geometry)
    coords = _coords(geometry)
    if kind == "unknown" or not isinstance(coords, (list, tuple)):
        return False

    try:
        if kind == "point":
            return len(coords) >= 2
        if kind == "polygon":
            return len(coords) > 0 and len(coords[0]) >= 3
        return len(coords) > 0 and all(len(poly) > 0 and len(poly[0]) >= 3 for poly in coords)
    except TypeError:
        return False

def iter_polygons(geometry) -> List[Any]:
    """Polygon 이면 [좌표], MultiPolygon 이면 구성 폴리곤 좌표 목록"""
    kind = geometry_type(geometry)
    coords = _coords(geometry)
    if kind == "polygon" and coords:
        return [coords]
    if kind == "multipolygon" and coords:
        return list(coords)
    return []

# ---- 경보 지오메트리 해석 ----

def coerce_zones(zones: Optional[Iterable[Any]]) -> List[Zone]:
    result = []
    for zone in zones or ():
        if isinstance(zone, Zone):
            result.append(zone)
            continue
        try:
            result.append(Zone.model_validate(zone))
        except ValidationError as e:
            log.warning(f"잘못된 구역 데이터 무시: errors={e.error_count()}")
    return result

def _as_alert(alert) -> Optional[RawAlert]:
    if isinstance(alert, RawAlert):
        return alert
    try:
        return RawAlert.model_validate(alert)
    except ValidationError as e:
        log.warning(f"경보 지오메트리 해석 불가: errors={e.error_count()}")
        return None

def resolve_alert_geometry_with_source(alert, zones=(), settings: Optional[GeometrySettings] = None):
    """
    3단계 폴백으로 경보 지오메트리를 해석하고 사용된 단계를 함께 반환합니다.

    우선순위:
    1. 경보 자체 좌표 (그대로 반환)
    2. UGC 코드와 구역 ID 정확 일치 (대소문자 무시). 여러 개면 MultiPolygon
    3. 구역 ID 가 코드 앞 세 글자를 포함하는 첫 구역 중심의 50km 버퍼

    Args:
        alert: RawAlert 또는 dict
        zones: Zone 또는 dict 목록
        settings: 버퍼 반경/분할 수/접두어 길이

    Returns:
        (지오메트리 또는 None, 'alert'|'zone'|'zones'|'buffer'|None)
    """
    settings = settings or GeometrySettings()
    raw = _as_alert(alert)
    if raw is None:
        return None, None

    # 1단계: 경보 자체 지오메트리
    if raw.geometry is not None and is_valid_geometry(raw.geometry):
        return raw.geometry, "alert"

    codes = [code.upper() for code in raw.ugc_codes if code]
    zone_list = coerce_zones(zones)
    if not codes or not zone_list:
        return None, None

    # 2단계: 구역 ID 정확 일치
    matched = [z for z in zone_list if z.id.upper() in codes]
    with_geometry = [z for z in matched if z.geometry is not None]
    if len(matched) == 1 and with_geometry:
        log.debug(f"구역 지오메트리 사용: alert={raw.id}, zone={matched[0].id}")
        return with_geometry[0].geometry, "zone"
    if len(matched) > 1 and with_geometry:
        members = []
        for zone in with_geometry:
            members.extend(iter_polygons(zone.geometry))
        log.debug(f"구역 {len(with_geometry)}개 병합: alert={raw.id}")
        return MultiPolygonGeometry(coordinates=members), "zones"

    # 3단계: 접두어 일치 구역 중심 버퍼
    prefixes = [code[:settings.zone_prefix_length] for code in codes]
    for zone in zone_list:
        if zone.geometry is None:
            continue
        zone_id = zone.id.upper()
        if not any(prefix in zone_id for prefix in prefixes):
            continue
        polygons = iter_polygons(zone.geometry)
        center = centroid(outer_ring(polygons[0])) if polygons else None
        buffered = buffer_point(center, settings.fallback_buffer_km, settings.buffer_segments) if center else None
        if buffered is None:
            return None, None
        log.debug(f"구역 중심 버퍼 사용: alert={raw.id}, zone={zone.id}, radius_km={settings.fallback_buffer_km}")
        return PolygonGeometry(coordinates=buffered), "buffer"

    log.debug(f"지오메트리 해석 실패: alert={raw.id}, codes={codes}")
    return None, None

def resolve_alert_geometry(alert, zones=(), settings: Optional[GeometrySettings] = None):
    """
    경보의 지오메트리를 해석합니다. 어느 단계도 성공하지 못하면 None
    (지도에 그릴 수 없고 목록에만 표시).
    """
    geometry, _ = resolve_alert_geometry_with_source(alert, zones, settings)
    return geometry
