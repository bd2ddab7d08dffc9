"""
테스트 설정 및 픽스처

이 모듈은 pytest 설정과 공통 픽스처를 제공합니다.
"""

import pytest
from borderwx.settings import Settings


def _square(min_x, min_y, max_x, max_y):
    return [[
        [min_x, min_y],
        [max_x, min_y],
        [max_x, max_y],
        [min_x, max_y],
        [min_x, min_y],
    ]]


@pytest.fixture
def sample_settings():
    """테스트용 설정"""
    settings = Settings()
    settings.observability.service_name = "test-service"
    settings.observability.log_level = "DEBUG"
    return settings


@pytest.fixture
def square_polygon():
    """테스트용 정사각형 폴리곤 좌표 (경도 -123~-122, 위도 48~49)"""
    return _square(-123.0, 48.0, -122.0, 49.0)


@pytest.fixture
def sample_zones():
    """테스트용 NWS 예보 구역 (워싱턴주)"""
    return [
        {"id": "WAZ001", "name": "Whatcom County",
         "geometry": {"type": "Polygon", "coordinates": _square(-122.8, 48.5, -121.5, 49.0)}},
        {"id": "WAZ002", "name": "San Juan County",
         "geometry": {"type": "Polygon", "coordinates": _square(-123.2, 48.4, -122.8, 48.8)}},
        {"id": "WAZ003", "name": "Skagit County",
         "geometry": {"type": "Polygon", "coordinates": _square(-122.8, 48.2, -121.0, 48.7)}},
        {"id": "WAZ004", "name": "Snohomish County",
         "geometry": {"type": "Polygon", "coordinates": _square(-122.4, 47.8, -121.0, 48.3)}},
    ]


@pytest.fixture
def nws_alert():
    """테스트용 NWS 경보 (지오메트리 포함)"""
    return {
        "id": "urn:oid:2.49.0.1.840.0.test-nws-001",
        "source": "NWS",
        "event": "Winter Storm Warning",
        "headline": "Winter Storm Warning issued for Whatcom County",
        "description": "Heavy snow expected. Temperatures near 28°F tonight.",
        "areaDesc": "Whatcom County",
        "severity": "Severe",
        "urgency": "Expected",
        "certainty": "Likely",
        "geocode": {"UGC": ["WAZ001"]},
        "geometry": {"type": "Polygon", "coordinates": _square(-122.5, 48.6, -122.0, 48.9)},
    }


@pytest.fixture
def ec_alert():
    """테스트용 EC CAP 경보 (필드 추출 완료 형태)"""
    return {
        "identifier": "urn:oid:2.49.0.0.124.test-ec-001",
        "source": "EC",
        "type": "warning",
        "info": [{
            "category": "Met",
            "event": "winter storm warning",
            "headline": "Winter Storm Warning in effect",
            "description": "Temperatures dropping to -5°C overnight with winds gusting to 60 km/h. "
                           "Total accumulation 15 to 25 cm expected.",
        }],
        "areaDesc": "Greater Vancouver",
        "geometry": {"type": "Polygon", "coordinates": _square(-123.2, 49.2, -123.0, 49.3)},
    }


# pytest 설정
def pytest_configure(config):
    """pytest 설정"""
    config.addinivalue_line(
        "markers", "slow: 느린 테스트 마커"
    )
    config.addinivalue_line(
        "markers", "integration: 통합 테스트 마커"
    )


def pytest_collection_modifyitems(config, items):
    """테스트 아이템 수정"""
    for item in items:
        # 느린 테스트 마커 추가
        if "performance" in item.name or "stress" in item.name:
            item.add_marker(pytest.mark.slow)

        # 통합 테스트 마커 추가
        if "integration" in item.name or "pipeline" in item.nodeid:
            item.add_marker(pytest.mark.integration)
