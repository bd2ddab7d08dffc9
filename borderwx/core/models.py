"""
Core domain models for BorderWX.

This module defines the geometry variants, reference zones, raw and
canonical alert records using Pydantic v2 for type safety and validation.
"""

import math
from typing import Annotated, Any, List, Literal, NamedTuple, Optional, Tuple, Union

from pydantic import (
    AliasChoices,
    BaseModel,
    ConfigDict,
    Field,
    TypeAdapter,
    ValidationError,
    field_validator,
)

from borderwx.observability.logging_setup import get_logger

log = get_logger("borderwx.models")

# (경도, 위도) 순서의 좌표
Point = Tuple[float, float]

MeasurementSystem = Literal["metric", "imperial"]
GeometrySource = Literal["alert", "zone", "zones", "buffer"]


class InvalidPointError(ValueError):
    """NaN/무한대 또는 범위를 벗어난 좌표"""


def make_point(lon: Any, lat: Any) -> Point:
    """
    검증된 (경도, 위도) 좌표를 생성합니다.

    극점과 날짜변경선(±90, ±180)은 유효한 값이며, 범위를 벗어난 값은
    보정하지 않고 거부합니다.

    Raises:
        InvalidPointError: 숫자가 아니거나 범위를 벗어난 경우
    """
    try:
        x = float(lon)
        y = float(lat)
    except (TypeError, ValueError) as e:
        raise InvalidPointError(f"non-numeric coordinate: ({lon!r}, {lat!r})") from e

    if not (math.isfinite(x) and math.isfinite(y)):
        raise InvalidPointError(f"non-finite coordinate: ({x}, {y})")
    if not (-180.0 <= x <= 180.0 and -90.0 <= y <= 90.0):
        raise InvalidPointError(f"coordinate out of range: ({x}, {y})")
    return (x, y)


class BoundingBox(NamedTuple):
    """링에서 계산한 경계 상자 (빠른 배제 테스트 전용)"""
    min_x: float
    min_y: float
    max_x: float
    max_y: float

    def contains(self, point: Point) -> bool:
        x, y = point[0], point[1]
        return self.min_x <= x <= self.max_x and self.min_y <= y <= self.max_y


# ---- 지오메트리 (type 판별자를 가진 태그 유니온) ----

class PointGeometry(BaseModel):
    """GeoJSON Point"""
    type: Literal["Point"] = "Point"
    coordinates: List[float] = Field(min_length=2)


class PolygonGeometry(BaseModel):
    """GeoJSON Polygon (외곽 링만 의미를 가짐)"""
    type: Literal["Polygon"] = "Polygon"
    coordinates: List[List[List[float]]]


class MultiPolygonGeometry(BaseModel):
    """GeoJSON MultiPolygon"""
    type: Literal["MultiPolygon"] = "MultiPolygon"
    coordinates: List[List[List[List[float]]]]


Geometry = Annotated[
    Union[PointGeometry, PolygonGeometry, MultiPolygonGeometry],
    Field(discriminator="type"),
]
AreaGeometry = Annotated[
    Union[PolygonGeometry, MultiPolygonGeometry],
    Field(discriminator="type"),
]

GEOMETRY_ADAPTER = TypeAdapter(Geometry)
AREA_GEOMETRY_ADAPTER = TypeAdapter(AreaGeometry)


def parse_geometry(value: Any, *, area_only: bool = False):
    """
    dict/모델 값을 지오메트리 모델로 변환합니다. 실패 시 None.

    Args:
        value: GeoJSON 형태의 dict 또는 지오메트리 모델
        area_only: True면 Polygon/MultiPolygon만 허용

    Returns:
        지오메트리 모델 또는 None
    """
    if value is None:
        return None
    adapter = AREA_GEOMETRY_ADAPTER if area_only else GEOMETRY_ADAPTER
    if isinstance(value, BaseModel):
        value = value.model_dump()
    try:
        return adapter.validate_python(value)
    except ValidationError as e:
        kind = value.get("type") if isinstance(value, dict) else type(value).__name__
        log.warning(f"지오메트리 무시됨: type={kind}, errors={e.error_count()}")
        return None


class Zone(BaseModel):
    """UGC 코드 등 관할 구역 참조 지오메트리"""
    model_config = ConfigDict(frozen=True)

    id: str
    name: Optional[str] = None
    geometry: Optional[AreaGeometry] = None

    @field_validator("geometry", mode="before")
    @classmethod
    def _drop_malformed_geometry(cls, value: Any):
        if value is None or isinstance(value, (PolygonGeometry, MultiPolygonGeometry)):
            return value
        return parse_geometry(value, area_only=True)


class Geocode(BaseModel):
    """관할 코드 묶음 (NWS geocode)"""
    model_config = ConfigDict(extra="allow", populate_by_name=True)

    ugc: List[str] = Field(default_factory=list, validation_alias=AliasChoices("UGC", "ugc"))

    @field_validator("ugc", mode="before")
    @classmethod
    def _coerce_codes(cls, value: Any):
        # 단일 문자열 코드도 허용
        if value is None:
            return []
        if isinstance(value, str):
            return [value]
        # 숫자 등 목록이 아닌 값은 코드 없음으로 본다
        if not isinstance(value, (list, tuple, set)):
            return []
        return [str(code) for code in value if code]


class AlertInfo(BaseModel):
    """CAP info 블록에서 분류에 쓰이는 필드"""
    model_config = ConfigDict(extra="allow")

    category: Optional[str] = None
    event: Optional[str] = None
    headline: Optional[str] = None
    description: Optional[str] = None
    instruction: Optional[str] = None


class UnifiedSeverity(BaseModel):
    """5단계 통합 심각도 (불변 값)"""
    model_config = ConfigDict(frozen=True)

    level: int = Field(ge=0, le=4)
    key: Literal["INFO", "LOW", "MODERATE", "HIGH", "CRITICAL"]
    color: str
    label: str
    description: str


class RawAlert(BaseModel):
    """공급자별 원본 경보 레코드 (필드 추출이 끝난 형태)"""
    model_config = ConfigDict(extra="allow", populate_by_name=True)

    id: str = Field(default="", validation_alias=AliasChoices("id", "identifier", "eventId"))
    source: Optional[str] = None
    geometry: Optional[Geometry] = None
    geocode: Geocode = Field(default_factory=Geocode)

    # NWS 분류 필드
    severity: Optional[str] = None
    urgency: Optional[str] = None
    certainty: Optional[str] = None

    # EC 분류 필드
    type: Optional[str] = None
    event: Optional[str] = None
    info: Optional[AlertInfo] = None

    headline: Optional[str] = None
    description: Optional[str] = None
    instruction: Optional[str] = None
    area_desc: Optional[str] = Field(default=None, validation_alias=AliasChoices("area_desc", "areaDesc"))

    unified_severity: Optional[UnifiedSeverity] = None

    @field_validator("id", mode="before")
    @classmethod
    def _coerce_id(cls, value: Any):
        return "" if value is None else str(value)

    @field_validator("geometry", mode="before")
    @classmethod
    def _drop_malformed_geometry(cls, value: Any):
        # 잘못된 지오메트리는 예외 대신 None 으로 내려서 배치 전체가 중단되지 않게 한다
        if value is None or isinstance(value, (PointGeometry, PolygonGeometry, MultiPolygonGeometry)):
            return value
        return parse_geometry(value)

    @field_validator("geocode", mode="before")
    @classmethod
    def _default_geocode(cls, value: Any):
        return {} if value is None else value

    @field_validator("info", mode="before")
    @classmethod
    def _first_info(cls, value: Any):
        # CAP info 배열이면 첫 번째 블록 사용
        if isinstance(value, list):
            return value[0] if value and isinstance(value[0], dict) else None
        return value

    @property
    def ugc_codes(self) -> List[str]:
        return list(self.geocode.ugc)

    @property
    def event_name(self) -> str:
        return self.event or (self.info.event if self.info else None) or ""

    def text_blocks(self) -> List[str]:
        """온도 등 수치 추출 대상 본문"""
        blocks = [self.headline, self.description, self.instruction]
        if self.info:
            blocks.extend([self.info.headline, self.info.description, self.info.instruction])
        return [b for b in blocks if b]


class TemperatureOriginal(BaseModel):
    value: float
    unit: str


class TemperatureReading(BaseModel):
    """변환된 온도와 원본 값"""
    value: Optional[float]
    unit: str
    original: TemperatureOriginal


class TemperatureMention(BaseModel):
    """본문에서 찾은 온도 표기"""
    original: str
    fahrenheit: Optional[int]
    celsius: Optional[int]


class CanonicalAlert(RawAlert):
    """통합 심각도와 해석된 지오메트리를 가진 정규화 경보"""
    unified_severity: UnifiedSeverity
    geometry_source: Optional[GeometrySource] = None
    measurement_system: MeasurementSystem = "imperial"
    temperatures: List[TemperatureMention] = Field(default_factory=list)

    @property
    def mappable(self) -> bool:
        """지도에 그릴 수 있는지 (False면 목록 전용)"""
        return self.geometry is not None
