"""
Tests for WellnessAnalyticsEngine.compute: combined output and status metadata.
"""
from datetime import timedelta

from analytics_engine import WellnessAnalyticsEngine
from conftest import BASE_TIME, daily_records, make_goal, make_record


def _week():
    return (
        daily_records("sleep", [6, 6, 7, 8, 8, 9], goal_id="g1")
        + daily_records("stress", [{"level": 8}, {"level": 7}, {"level": 6},
                                   {"level": 4}, {"level": 3}, {"level": 2}])
    )


class TestCompute:

    def test_all_products_present(self):
        result = WellnessAnalyticsEngine().compute(_week())
        assert set(result) == {
            "trends", "correlations", "summary", "progress",
            "analysis_status", "degraded_reasons",
        }
        assert result["analysis_status"] == "success"
        assert result["degraded_reasons"] == []
        assert result["progress"] is None
        assert result["trends"]["sleep"]["direction"] == "increasing"
        assert result["trends"]["stress"]["direction"] == "decreasing"
        assert result["summary"]["totalEntries"] == 12

    def test_sleep_and_stress_strongly_negative(self):
        correlations = WellnessAnalyticsEngine().compute(_week())["correlations"]
        assert len(correlations) == 1
        corr = correlations[0]
        assert (corr["typeA"], corr["typeB"]) == ("sleep", "stress")
        assert corr["direction"] == "negative"
        assert corr["strength"] == "strong"
        assert corr["sampleSize"] == 6

    def test_progress_with_goal(self):
        goal = make_goal()
        result = WellnessAnalyticsEngine().compute(
            daily_records("sleep", [7] * 3, goal_id="g1"), goal=goal,
            now=BASE_TIME + timedelta(days=6),
        )
        assert result["progress"]["completionPercentage"] == 50
        assert result["progress"]["totalEntries"] == 3

    def test_idempotent(self):
        engine = WellnessAnalyticsEngine()
        records = _week()
        now = BASE_TIME + timedelta(days=7)
        first = engine.compute(records, goal=make_goal(), now=now)
        second = engine.compute(records, goal=make_goal(), now=now)
        assert first == second

    def test_input_not_mutated(self):
        records = _week()
        snapshot = [r.model_dump() for r in records]
        WellnessAnalyticsEngine().compute(list(reversed(records)))
        assert [r.model_dump() for r in records] == snapshot


class TestDegraded:

    def test_no_records(self):
        result = WellnessAnalyticsEngine().compute([])
        assert result["analysis_status"] == "degraded"
        assert result["degraded_reasons"] == ["no_records"]
        assert result["trends"] == {}
        assert result["correlations"] == []
        assert result["summary"]["totalEntries"] == 0

    def test_no_numeric_values(self):
        records = [make_record("symptoms", {"note": "cough"}), make_record("symptoms", "fine", day=1)]
        result = WellnessAnalyticsEngine().compute(records)
        assert result["degraded_reasons"] == ["no_numeric_values"]
        assert result["summary"]["byType"]["symptoms"]["count"] == 2

    def test_types_never_logged_on_the_same_day(self):
        records = daily_records("sleep", [7, 8], start_day=0) + daily_records("mood", [3, 4], start_day=5)
        result = WellnessAnalyticsEngine().compute(records)
        assert result["analysis_status"] == "degraded"
        assert "insufficient_overlap_for_correlation" in result["degraded_reasons"]
        assert result["correlations"] == []

    def test_single_type_is_not_degraded(self):
        result = WellnessAnalyticsEngine().compute(daily_records("sleep", [7, 8, 9]))
        assert result["analysis_status"] == "success"


class TestGoalScoping:

    def test_other_goals_and_earlier_records_ignored(self):
        goal = make_goal("g1", start=BASE_TIME + timedelta(days=10))
        records = daily_records("sleep", [7] * 10, goal_id="other") + [
            make_record("sleep", 7, day=d, goal_id="g1") for d in range(5)
        ]
        result = WellnessAnalyticsEngine().compute(records, goal=goal, now=BASE_TIME + timedelta(days=20))
        assert result["progress"] == {
            "completionPercentage": 0,
            "consistencyPercentage": 0,
            "totalEntries": 0,
            "averageEntriesPerDay": 0,
        }
        # the other analyzers still see every record
        assert result["summary"]["totalEntries"] == 15

    def test_partially_in_scope(self):
        goal = make_goal("g1", start=BASE_TIME + timedelta(days=2))
        records = daily_records("sleep", [7] * 6, goal_id="g1")
        result = WellnessAnalyticsEngine().compute(records, goal=goal, now=BASE_TIME + timedelta(days=6))
        assert result["progress"]["completionPercentage"] == 100
        assert result["progress"]["totalEntries"] == 4
