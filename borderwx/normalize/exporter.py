import json
import math
from pathlib import Path
from typing import Iterable, List, Optional

from jsonschema import validate
from jsonschema.exceptions import ValidationError

from borderwx.core.models import CanonicalAlert
from borderwx.core.severity import severity_class_name
from borderwx.core.units import format_temperature_bilingual
from borderwx.observability.logging_setup import get_logger
from borderwx.settings import UnitSettings

log = get_logger("borderwx.exporter")

SCHEMA = json.loads((Path(__file__).parent / "feature_schema.json").read_text(encoding="utf-8"))

class FeatureExporter:
    def __init__(self, units: Optional[UnitSettings] = None):
        self.units = units or UnitSettings()

    def to_feature(self, alert: CanonicalAlert) -> dict:
        # CanonicalAlert → GeoJSON Feature (지도 레이어 입력)
        severity = alert.unified_severity
        feature = {
            "type": "Feature",
            "id": alert.id,
            "geometry": self._geometry(alert),
            "properties": {
                "id": alert.id,
                "source": alert.source,
                "event": alert.event_name or None,
                "headline": alert.headline,
                "areaDesc": alert.area_desc,
                "severityLevel": severity.level,
                "severityLabel": severity.label,
                "severityColor": severity.color,
                "severityClass": severity_class_name(severity.level),
                "geometrySource": alert.geometry_source,
                "measurementSystem": alert.measurement_system,
                "temperatureLabels": self._temperature_labels(alert),
                "temperatures": [t.model_dump() for t in alert.temperatures],
            },
        }

        try:
            validate(instance=feature, schema=SCHEMA)
        except ValidationError as e:
            log.error(f"Feature schema validation failed: id={alert.id}, error={e.message}")
            raise ValueError(f"Feature schema validation failed: {e.message}")

        return feature

    def to_feature_collection(self, alerts: Iterable[CanonicalAlert]) -> dict:
        """지도에 그릴 수 있는 경보만 FeatureCollection 으로 묶습니다."""
        features: List[dict] = []
        list_only = 0
        rejected = 0
        for alert in alerts:
            if not alert.mappable:
                list_only += 1
                continue
            try:
                features.append(self.to_feature(alert))
            except ValueError:
                # 스키마 위반 경보는 건너뜀
                rejected += 1

        if list_only:
            log.debug(f"지오메트리 없는 경보 {list_only}건은 목록 전용으로 제외")
        if rejected:
            log.warning(f"스키마 검증 실패로 경보 {rejected}건 제외")
        return {"type": "FeatureCollection", "features": features}

    def _temperature_labels(self, alert: CanonicalAlert) -> List[str]:
        unit = self.units.temperature_target_unit
        return [
            format_temperature_bilingual(t.fahrenheit if unit == "F" else t.celsius, unit)
            for t in alert.temperatures
        ]

    def _geometry(self, alert: CanonicalAlert):
        """좌표에 NaN/무한대가 있으면 None (JSON 으로 표현 불가)"""
        if alert.geometry is None:
            return None
        geometry = alert.geometry.model_dump()
        if not self._finite(geometry["coordinates"]):
            log.warning(f"유한하지 않은 좌표로 지오메트리 제외: id={alert.id}")
            return None
        return geometry

    def _finite(self, coords) -> bool:
        if isinstance(coords, list):
            return all(self._finite(c) for c in coords)
        return isinstance(coords, (int, float)) and math.isfinite(coords)
