"""
hypothesis를 활용한 severity 모듈 테스트

이 모듈은 NWS/EC 심각도 매핑, 통합 심각도 적용 및
심각도 정렬의 속성 기반 테스트를 수행합니다.
"""

import pytest
from hypothesis import given, strategies as st
from pydantic import ValidationError

from borderwx.core.models import RawAlert
from borderwx.core.severity import (
    UNIFIED_SEVERITY, NWS_SEVERITY_MAP, NWS_URGENCY_BOOST, NWS_CERTAINTY_BOOST, EC_TYPE_MAP,
    map_nws_severity, map_ec_severity, unify_severity, apply_unified_severity,
    compare_severity, sort_by_severity, parse_severity_string, severity_class_name,
    get_severity_by_level, is_canadian_source
)


def with_level(level, name=""):
    return {"name": name, "unified_severity": get_severity_by_level(level)}


class TestUnifiedSeverityTable:
    """통합 심각도 표 테스트"""

    def test_levels_and_colors(self):
        assert [UNIFIED_SEVERITY[k].level for k in ("INFO", "LOW", "MODERATE", "HIGH", "CRITICAL")] == [0, 1, 2, 3, 4]
        assert UNIFIED_SEVERITY["CRITICAL"].color == "#DC2626"
        assert UNIFIED_SEVERITY["INFO"].label == "Informational"

    def test_table_is_read_only(self):
        with pytest.raises(TypeError):
            UNIFIED_SEVERITY["CRITICAL"] = UNIFIED_SEVERITY["INFO"]

    def test_entries_are_frozen(self):
        with pytest.raises(ValidationError):
            UNIFIED_SEVERITY["HIGH"].level = 0

    @pytest.mark.parametrize("level,key", [(7, "CRITICAL"), (-3, "INFO"), ("abc", "INFO"), (None, "INFO"), (2, "MODERATE")])
    def test_get_severity_by_level_clamps(self, level, key):
        assert get_severity_by_level(level) is UNIFIED_SEVERITY[key]


class TestNWSMapping:
    """NWS 매핑 테스트"""

    @pytest.mark.parametrize("severity,urgency,certainty,expected", [
        ("Extreme", "Immediate", "Observed", 4),
        ("Severe", "Expected", "Likely", 4),
        ("Severe", "Future", "Possible", 3),
        ("Moderate", "Expected", "Possible", 2),
        ("Severe", "Past", "Possible", 2),
        ("Minor", "Future", "Unlikely", 0),
        ("Minor", "Expected", "Possible", 2),
        ("Unknown", "Unknown", "Unknown", 0),
    ])
    def test_known_combinations(self, severity, urgency, certainty, expected):
        assert map_nws_severity(severity, urgency, certainty).level == expected

    def test_urgency_can_outrank_base_severity(self):
        """Immediate + Observed 인 Moderate 가 Future 인 Severe 보다 높음"""
        moderate = map_nws_severity("Moderate", "Immediate", "Observed")
        severe = map_nws_severity("Severe", "Future", "Possible")
        assert moderate.level > severe.level

    def test_missing_and_unknown_values(self):
        assert map_nws_severity(None, None, None).level == 0
        assert map_nws_severity("Catastrophic", "Soon", "Maybe").level == 0
        assert map_nws_severity("Severe").level == 3

    @given(
        severity=st.sampled_from(list(NWS_SEVERITY_MAP) + [None, "bogus"]),
        urgency=st.sampled_from(list(NWS_URGENCY_BOOST) + [None]),
        certainty=st.sampled_from(list(NWS_CERTAINTY_BOOST) + [None]),
    )
    def test_result_always_in_table(self, severity, urgency, certainty):
        """결과는 항상 0~4 범위의 표 항목"""
        result = map_nws_severity(severity, urgency, certainty)
        assert 0 <= result.level <= 4
        assert result is UNIFIED_SEVERITY[result.key]


class TestECMapping:
    """EC 매핑 테스트"""

    @pytest.mark.parametrize("alert_type,event,expected", [
        ("warning", "Tornado Warning", "CRITICAL"),
        ("warning", "Extreme Cold Warning", "CRITICAL"),
        ("warning", "Winter Storm Warning", "HIGH"),
        ("watch", "Severe Thunderstorm Watch", "HIGH"),
        ("watch", "Winter Storm Watch", "MODERATE"),
        ("advisory", "Frost Advisory", "LOW"),
        ("statement", "Special Weather Statement", "INFO"),
        ("ended", "Tornado Warning", "INFO"),
    ])
    def test_type_and_event(self, alert_type, event, expected):
        assert map_ec_severity(alert_type, event).key == expected

    def test_type_is_case_and_space_insensitive(self):
        assert map_ec_severity(" Warning ", "TORNADO WARNING").key == "CRITICAL"

    def test_missing_type_defaults_to_statement(self):
        assert map_ec_severity(None, None).key == "INFO"
        assert map_ec_severity("bulletin", "Tornado").key == "INFO"

    def test_advisory_is_never_boosted(self):
        assert map_ec_severity("advisory", "Tornado Advisory").key == "LOW"

    @given(
        alert_type=st.sampled_from(list(EC_TYPE_MAP)),
        event=st.text(max_size=40),
    )
    def test_boost_only_raises(self, alert_type, event):
        """이벤트 이름은 기본 유형 등급을 낮추지 않음"""
        assert map_ec_severity(alert_type, event).level >= EC_TYPE_MAP[alert_type]


class TestUnifySeverity:
    """출처 분기 및 적용 테스트"""

    @pytest.mark.parametrize("source,expected", [
        ("EC", True), ("ECCC", True), ("Environment Canada", True), ("canada", True),
        ("NWS", False), ("", False), (None, False),
    ])
    def test_is_canadian_source(self, source, expected):
        assert is_canadian_source(source) is expected

    def test_nws_branch(self, nws_alert):
        assert unify_severity(nws_alert).key == "CRITICAL"

    def test_missing_source_uses_nws(self):
        assert unify_severity({"severity": "Moderate", "urgency": "Future"}).level == 2

    def test_ec_branch_reads_info_block(self):
        alert = {"source": "EC", "type": "warning", "info": {"event": "tornado warning"}}
        assert unify_severity(alert).key == "CRITICAL"

    def test_ec_branch_on_model(self, ec_alert):
        raw = RawAlert.model_validate(ec_alert)
        assert unify_severity(raw).key == "HIGH"

    def test_unify_does_not_mutate(self, nws_alert):
        unify_severity(nws_alert)
        assert "unified_severity" not in nws_alert

    def test_apply_on_dict_returns_same_object(self, nws_alert):
        result = apply_unified_severity(nws_alert)
        assert result is nws_alert
        assert nws_alert["unified_severity"].key == "CRITICAL"

    def test_apply_on_model(self, ec_alert):
        raw = RawAlert.model_validate(ec_alert)
        result = apply_unified_severity(raw)
        assert result is raw
        assert raw.unified_severity.label == "High"

    def test_apply_none(self):
        assert apply_unified_severity(None) is None


class TestSeverityOrdering:
    """심각도 정렬 테스트"""

    def test_compare_sign(self):
        assert compare_severity(with_level(4), with_level(1)) < 0
        assert compare_severity(with_level(1), with_level(4)) > 0
        assert compare_severity(with_level(2), with_level(2)) == 0

    def test_missing_severity_counts_as_info(self):
        assert compare_severity({}, with_level(0)) == 0

    def test_sort_is_stable(self):
        alerts = [with_level(1, "a"), with_level(3, "b"), with_level(1, "c"), with_level(3, "d")]
        assert [a["name"] for a in sort_by_severity(alerts)] == ["b", "d", "a", "c"]

    def test_sort_returns_new_list(self):
        alerts = [with_level(0), with_level(4)]
        result = sort_by_severity(alerts)
        assert result is not alerts
        assert alerts[0]["unified_severity"].level == 0

    @given(levels=st.lists(st.integers(min_value=0, max_value=4), max_size=30))
    def test_sorted_is_non_increasing(self, levels):
        result = sort_by_severity([with_level(level) for level in levels])
        ordered = [a["unified_severity"].level for a in result]
        assert ordered == sorted(levels, reverse=True)

    @given(
        a=st.integers(min_value=0, max_value=4),
        b=st.integers(min_value=0, max_value=4),
    )
    def test_compare_is_antisymmetric(self, a, b):
        assert compare_severity(with_level(a), with_level(b)) == -compare_severity(with_level(b), with_level(a))


class TestSeverityStrings:
    """문자열 변환 테스트"""

    @pytest.mark.parametrize("text,expected", [
        ("CRITICAL", 4), ("Extreme", 4), ("emergency", 4),
        (" warning ", 3), ("Severe", 3), ("high", 3),
        ("watch", 2), ("MODERATE", 2),
        ("advisory", 1), ("minor", 1), ("low", 1),
        ("statement", 0), ("info", 0), ("bogus", 0), ("", 0), (None, 0),
    ])
    def test_parse_severity_string(self, text, expected):
        assert parse_severity_string(text) == expected

    @pytest.mark.parametrize("level,expected", [
        (4, "severity-critical"), (3, "severity-high"), (2, "severity-moderate"),
        (1, "severity-low"), (0, "severity-info"), (9, "severity-info"), ("x", "severity-info"),
    ])
    def test_severity_class_name(self, level, expected):
        assert severity_class_name(level) == expected
