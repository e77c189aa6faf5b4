"""
Unit tests for CurriculumSequencer ordering, degraded mode and session packing.
"""

import pytest

from logos_core.adaptive.curriculum_sequencer import (
    CurriculumSequencer,
    OrderingMode,
    SequencerConfig,
    pack_sessions,
    sequence_curriculum,
)
from logos_core.core.errors import StructuralAnomaly


def _assert_prerequisites_first(result):
    position = {cid: i for i, cid in enumerate(result.construct_ids)}
    for sc in result.ordered:
        for prereq in sc.construct.prerequisites:
            if prereq in position:
                assert position[prereq] < position[sc.construct_id]


class TestScoring:
    def test_base_terms(self, make_construct):
        sc = CurriculumSequencer().score(make_construct("a", complexity=0.2, frequency=0.6), {})
        bd = sc.breakdown
        assert bd.frequency == pytest.approx(0.6)
        assert bd.simplicity == pytest.approx(0.8)
        assert bd.prerequisite == pytest.approx(0.5)
        assert bd.cognitive_load == pytest.approx(0.375)
        assert bd.core_bonus == 0.0
        assert sc.score == pytest.approx(0.6 + 0.8 + 0.5 + 0.375)
        assert sc.ready_to_learn is True

    def test_simpler_scores_higher(self, make_construct):
        sequencer = CurriculumSequencer()
        simple = sequencer.score(make_construct("a", complexity=0.1), {})
        complex_ = sequencer.score(make_construct("b", complexity=0.9), {})
        assert simple.score > complex_.score

    def test_core_bonus(self, make_construct):
        sequencer = CurriculumSequencer()
        core = sequencer.score(make_construct("a", is_core=True), {})
        plain = sequencer.score(make_construct("b"), {})
        assert core.score == pytest.approx(plain.score + 0.5)

    def test_active_learning_boost(self, make_construct):
        sequencer = CurriculumSequencer()
        construct = make_construct("a")
        unseen = sequencer.score(construct, {})
        for stage in (1, 2, 3):
            active = sequencer.score(construct, {"a": stage})
            assert active.score == pytest.approx(unseen.score * 1.3)

    def test_mastered_demoted(self, make_construct):
        sequencer = CurriculumSequencer()
        construct = make_construct("a")
        mastered = sequencer.score(construct, {"a": 4})
        assert mastered.score == pytest.approx(sequencer.score(construct, {}).score * 0.1)

    def test_stage_clamped(self, make_construct):
        sc = CurriculumSequencer().score(make_construct("a"), {"a": 9})
        assert sc.mastery_stage == 4

    def test_frequency_mode_amplifies(self, make_construct):
        construct = make_construct("a", frequency=0.6)
        freq_mode = CurriculumSequencer(SequencerConfig(ordering=OrderingMode.FREQUENCY))
        assert freq_mode.score(construct, {}).breakdown.frequency == pytest.approx(0.9)
        assert CurriculumSequencer().score(construct, {}).breakdown.frequency == pytest.approx(0.6)

    def test_unmet_prerequisites_lower_score(self, make_construct):
        sequencer = CurriculumSequencer()
        free = sequencer.score(make_construct("a"), {})
        blocked = sequencer.score(make_construct("b", prerequisites=["x", "y"]), {})
        assert blocked.breakdown.prerequisite == pytest.approx(0.5 / 3)
        assert blocked.score < free.score
        assert blocked.ready_to_learn is False
        assert blocked.unmet_prerequisites == frozenset({"x", "y"})

    def test_breakdown_to_dict(self, make_construct):
        data = CurriculumSequencer().score(make_construct("a"), {}).breakdown.to_dict()
        assert set(data) >= {"frequency", "simplicity", "prerequisite", "total"}


class TestSequence:
    def test_prerequisites_come_first(self, make_construct):
        constructs = [
            make_construct("c", complexity=0.0, prerequisites=["b"]),
            make_construct("b", prerequisites=["a"]),
            make_construct("a", complexity=0.9),
            make_construct("d", complexity=0.1),
        ]
        result = CurriculumSequencer().sequence(constructs)
        assert result.degraded is False
        assert result.anomaly is None
        assert result.construct_ids == ["d", "a", "b", "c"]
        _assert_prerequisites_first(result)

    def test_diamond_graph(self, make_construct):
        constructs = [
            make_construct("top", prerequisites=["left", "right"]),
            make_construct("left", prerequisites=["root"]),
            make_construct("right", complexity=0.1, prerequisites=["root"]),
            make_construct("root", complexity=0.8),
        ]
        result = CurriculumSequencer().sequence(constructs)
        assert result.construct_ids[0] == "root"
        assert result.construct_ids[-1] == "top"
        _assert_prerequisites_first(result)

    def test_highest_score_first_among_ready(self, make_construct):
        constructs = [
            make_construct("low", complexity=0.9, frequency=0.1),
            make_construct("high", complexity=0.1, frequency=0.9),
            make_construct("mid"),
        ]
        result = CurriculumSequencer().sequence(constructs)
        assert result.construct_ids == ["high", "mid", "low"]

    def test_cycle_degrades_without_hanging(self, make_construct):
        constructs = [
            make_construct("a", prerequisites=["b"]),
            make_construct("b", prerequisites=["a"]),
            make_construct("c"),
        ]
        result = CurriculumSequencer().sequence(constructs)
        assert result.degraded is True
        assert result.construct_ids[0] == "c"
        assert sorted(result.construct_ids) == ["a", "b", "c"]
        assert set(result.unresolved_ids) == {"a", "b"}
        assert isinstance(result.anomaly, StructuralAnomaly)
        assert set(result.anomaly.construct_ids) == {"a", "b"}

    def test_self_loop_degrades(self, make_construct):
        result = CurriculumSequencer().sequence([make_construct("a", prerequisites=["a"])])
        assert result.degraded is True
        assert result.construct_ids == ["a"]

    def test_satisfied_prerequisite_imposes_no_order(self, make_construct):
        constructs = [
            make_construct("a"),
            make_construct("b", complexity=0.0, frequency=1.0, prerequisites=["a"]),
        ]
        result = CurriculumSequencer().sequence(constructs, {"a": 2})
        assert result.construct_ids == ["b", "a"]
        assert result.ordered[0].ready_to_learn is True

    def test_prerequisite_outside_batch(self, make_construct):
        result = CurriculumSequencer().sequence([make_construct("b", prerequisites=["elsewhere"])])
        assert result.degraded is False
        assert result.construct_ids == ["b"]
        assert result.ordered[0].ready_to_learn is False

    def test_exclude_mastered(self, make_construct):
        sequencer = CurriculumSequencer(SequencerConfig(exclude_mastered=True))
        result = sequencer.sequence([make_construct("a"), make_construct("b")], {"a": 4})
        assert result.construct_ids == ["b"]
        assert result.excluded_ids == ["a"]

    def test_mastered_sinks_to_end(self, make_construct):
        constructs = [make_construct("a", complexity=0.0), make_construct("b", complexity=0.9)]
        result = CurriculumSequencer().sequence(constructs, {"a": 4})
        assert result.construct_ids == ["b", "a"]

    def test_duplicate_ids_rejected(self, make_construct):
        with pytest.raises(ValueError):
            CurriculumSequencer().sequence([make_construct("a"), make_construct("a")])

    def test_empty_input(self):
        result = CurriculumSequencer().sequence([])
        assert result.ordered == []
        assert result.degraded is False

    def test_module_entry_point(self, make_construct):
        result = sequence_curriculum([make_construct("b", prerequisites=["a"]), make_construct("a")])
        assert result.construct_ids == ["a", "b"]


class TestPackSessions:
    def _ordered(self, make_construct, count=5, load=2):
        constructs = [make_construct(f"c{i}", load=load) for i in range(count)]
        return CurriculumSequencer().sequence(constructs).ordered

    def test_time_budget_respected(self, make_construct):
        ordered = self._ordered(make_construct)
        sessions = CurriculumSequencer().pack_sessions(ordered, time_budget=12, load_ceiling=100)
        assert [len(s.constructs) for s in sessions] == [2, 2, 1]
        assert all(s.total_minutes <= 12 for s in sessions)
        assert [s.index for s in sessions] == [0, 1, 2]

    def test_load_ceiling_respected(self, make_construct):
        ordered = self._ordered(make_construct)
        sessions = CurriculumSequencer().pack_sessions(ordered, time_budget=100, load_ceiling=5)
        assert all(s.total_load <= 5 for s in sessions)
        assert [len(s.constructs) for s in sessions] == [2, 2, 1]

    def test_order_preserved(self, make_construct):
        ordered = self._ordered(make_construct, count=7)
        sessions = CurriculumSequencer().pack_sessions(ordered, time_budget=15, load_ceiling=5)
        flattened = [cid for s in sessions for cid in s.construct_ids]
        assert flattened == [sc.construct_id for sc in ordered]

    def test_oversized_construct_alone(self, make_construct):
        sequencer = CurriculumSequencer()
        constructs = [make_construct(f"n{i}") for i in range(4)] + [make_construct("big", load=5)]
        ordered = sequencer.sequence(constructs).ordered
        sessions = sequencer.pack_sessions(ordered, time_budget=100, load_ceiling=4.5)

        big = [s for s in sessions if "big" in s.construct_ids]
        assert len(big) == 1
        assert big[0].construct_ids == ["big"]
        assert big[0].oversized is True
        for s in sessions:
            if not s.oversized:
                assert s.total_load <= 4.5

    def test_oversized_by_time(self, make_construct):
        ordered = self._ordered(make_construct, count=2)
        sessions = CurriculumSequencer().pack_sessions(ordered, time_budget=3, load_ceiling=100)
        assert len(sessions) == 2
        assert all(s.oversized and len(s.constructs) == 1 for s in sessions)

    def test_empty_sequence(self):
        assert CurriculumSequencer().pack_sessions([], time_budget=30, load_ceiling=10) == []

    @pytest.mark.parametrize("budget,ceiling", [(0, 10), (30, 0), (-5, 10)])
    def test_invalid_limits(self, budget, ceiling):
        with pytest.raises(ValueError):
            CurriculumSequencer().pack_sessions([], time_budget=budget, load_ceiling=ceiling)

    def test_module_entry_point_uses_settings(self, make_construct):
        ordered = self._ordered(make_construct, count=8)
        sessions = pack_sessions(ordered)
        # 30 minute budget at 5 minutes each, load ceiling 15 at mean load 2
        assert [len(s.constructs) for s in sessions] == [6, 2]
