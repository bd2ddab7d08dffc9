# borderwx/settings.py
from __future__ import annotations
import os
from typing import Literal
from pydantic import BaseModel, Field

class GeometrySettings(BaseModel):
    fallback_buffer_km: float = 50.0          # 3단계 폴백 원형 버퍼 반경
    buffer_segments: int = Field(default=16, ge=3)
    zone_prefix_length: int = Field(default=3, ge=1)

class UnitSettings(BaseModel):
    temperature_target_unit: Literal["C", "F"] = "F"

class Observability(BaseModel):
    service_name: str = "BorderWX"
    log_level: str = "INFO"
    json_logs: bool = False

class Settings(BaseModel):
    # 하위 섹션 (기본값/팩토리로 누락 방지)
    geometry: GeometrySettings = Field(default_factory=GeometrySettings)
    units: UnitSettings = Field(default_factory=UnitSettings)
    observability: Observability = Field(default_factory=Observability)

    @classmethod
    def from_env(cls, environ=None) -> "Settings":
        """
        환경 변수에서 일부 설정을 덮어씁니다.

        Args:
            environ: 환경 변수 매핑 (기본값: os.environ)

        Returns:
            설정 객체
        """
        env = os.environ if environ is None else environ
        data: dict = {"geometry": {}, "units": {}, "observability": {}}

        if env.get("BORDERWX_LOG_LEVEL"):
            data["observability"]["log_level"] = env["BORDERWX_LOG_LEVEL"]
        if env.get("BORDERWX_JSON_LOGS"):
            data["observability"]["json_logs"] = env["BORDERWX_JSON_LOGS"].lower() in ("1", "true", "yes")
        if env.get("BORDERWX_FALLBACK_BUFFER_KM"):
            data["geometry"]["fallback_buffer_km"] = env["BORDERWX_FALLBACK_BUFFER_KM"]
        if env.get("BORDERWX_TEMPERATURE_UNIT"):
            data["units"]["temperature_target_unit"] = env["BORDERWX_TEMPERATURE_UNIT"].upper()

        return cls.model_validate(data)
