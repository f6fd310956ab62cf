# tests/test_section_resolver.py
import pytest

from generation.errors import QuestionQueryError
from generation.section_resolver import build_filters, resolve_section
from tests.fakes import FakePool, blueprint, q, reverse, section


class TestBuildFilters:
    def test_section_type_maps_to_allowed_types(self):
        filters = build_filters(section("A", 2, 4, "structured"), blueprint([]))
        assert filters.marks == 4
        assert filters.types == ["Structured", "Short Answer"]

    def test_general_and_unknown_types_are_unrestricted(self):
        assert build_filters(section("A", 1, 1, "general"), blueprint([])).types == []
        assert build_filters(section("A", 1, 1, "word_puzzle"), blueprint([])).types == []

    def test_template_scope_and_topics(self):
        bp = blueprint([], subject_id=3, grade_id=7)
        filters = build_filters(section("A", 1, 1, topics=["Algebra"]), bp, prefer_topics=["Geometry"])
        assert filters.subject_id == 3
        assert filters.grade_id == 7
        assert filters.topics == ["Algebra"]
        assert filters.prefer_topics == ["Geometry"]

    def test_unscoped_template_leaves_subject_and_grade_open(self):
        filters = build_filters(section("A", 1, 1), blueprint([]))
        assert filters.subject_id is None
        assert filters.grade_id is None
        assert filters.prefer_topics == []


class TestResolveSection:
    def test_exact_marks_only(self):
        pool = FakePool([q(1, marks=2), q(2, marks=3), q(3, marks=2), q(4, marks=1)])
        selected, _ = resolve_section(section("A", 5, 2), blueprint([]), frozenset(), pool)
        assert [s["id"] for s in selected] == [1, 3]
        assert all(s["marks"] == 2 for s in selected)

    def test_takes_first_n_in_pool_order_without_shuffle(self):
        pool = FakePool([q(i) for i in range(1, 8)])
        selected, used = resolve_section(section("A", 3, 2), blueprint([]), frozenset(), pool)
        assert [s["id"] for s in selected] == [1, 2, 3]
        assert used == {1, 2, 3}

    def test_used_ids_are_excluded_and_extended(self):
        pool = FakePool([q(i) for i in range(1, 6)])
        used_before = frozenset({1, 2})
        selected, used_after = resolve_section(section("A", 2, 2), blueprint([]), used_before, pool)
        assert [s["id"] for s in selected] == [3, 4]
        assert used_after == {1, 2, 3, 4}
        # Accumulator is returned, not mutated in place
        assert used_before == {1, 2}

    def test_shortfall_is_not_backfilled(self):
        pool = FakePool([q(1), q(2, type="Essay"), q(3, marks=5)])
        selected, _ = resolve_section(section("A", 3, 2), blueprint([]), frozenset(), pool)
        assert [s["id"] for s in selected] == [1]
        assert len(pool.calls) == 1

    def test_shuffle_uses_injected_permutation(self):
        pool = FakePool([q(i) for i in range(1, 6)])
        selected, _ = resolve_section(
            section("A", 2, 2), blueprint([], shuffle=True), frozenset(), pool, permute=reverse,
        )
        assert [s["id"] for s in selected] == [5, 4]

    def test_shuffle_flag_off_ignores_permutation(self):
        pool = FakePool([q(i) for i in range(1, 6)])
        selected, _ = resolve_section(
            section("A", 2, 2), blueprint([], shuffle=False), frozenset(), pool, permute=reverse,
        )
        assert [s["id"] for s in selected] == [1, 2]

    def test_section_and_preferred_topics_both_apply(self):
        pool = FakePool([
            q(1, topic="Algebra"),
            q(2, topic="Geometry"),
            q(3, topic="Statistics"),
        ])
        selected, _ = resolve_section(
            section("A", 5, 2, topics=["Algebra", "Geometry"]),
            blueprint([]), frozenset(), pool,
            prefer_topics=["Geometry", "Statistics"],
        )
        assert [s["id"] for s in selected] == [2]

    def test_query_failure_propagates(self):
        pool = FakePool([q(1)], fail_on_marks=2)
        with pytest.raises(QuestionQueryError):
            resolve_section(section("A", 1, 2), blueprint([]), frozenset(), pool)

    def test_zero_count_selects_nothing(self):
        pool = FakePool([q(1), q(2)])
        selected, used = resolve_section(section("A", 0, 2), blueprint([]), frozenset(), pool)
        assert selected == []
        assert used == frozenset()
