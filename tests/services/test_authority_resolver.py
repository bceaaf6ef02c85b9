"""
Tests for the four-tier authority search.

Tests cover:
- the BSCS Program -> College of Computer Studies ancestor-chain example
- tier order: same unit, ancestor chain, system-wide, sector-wide
- tie-break (60 beats 65) and no self-approval across every tier
- requester without a primary designation or unit
- cycle and depth-cap termination with WARNING logs
- caching, cache bypass and min-level validation
- find_approvers union semantics
"""

from datetime import date
from uuid import uuid4

import pytest

from routing_kernel.domain.resolution import SearchStrategy
from routing_kernel.domain.slots import SlotKind
from routing_kernel.exceptions import InvalidAuthorityLevelError
from routing_services.authority_resolver import AuthorityResolver


@pytest.fixture
def academic(org):
    """BSCS Program under the College of Computer Studies, requester at 50."""
    college = org.add_unit("College of Computer Studies")
    program = org.add_unit("BSCS Program", parent=college)
    faculty = org.add_position("Faculty", 50)
    dean_pos = org.add_position("Dean", 85)
    requester = org.add_person("Requester", program, faculty)
    dean = org.add_person("Dean", college, dean_pos)
    return {
        "college": college,
        "program": program,
        "faculty": faculty,
        "requester": requester,
        "dean": dean,
    }


class TestWorkedExample:

    def test_finds_dean_via_ancestor_chain(self, resolver, academic):
        hit = resolver.find_approver(academic["requester"].id)
        assert hit is not None
        assert hit.user_id == academic["dean"].user_id
        assert hit.strategy is SearchStrategy.ANCESTOR_CHAIN
        assert hit.authority_level == 85
        assert hit.unit_id == academic["college"].id
        assert hit.source_kind is SlotKind.HIERARCHICAL

    def test_idempotent(self, resolver, academic):
        first = resolver.find_approver(academic["requester"].id)
        second = resolver.find_approver(academic["requester"].id)
        assert first == second

    def test_logs_resolution(self, resolver, academic, captured_logs):
        resolver.find_approver(academic["requester"].id)
        events = [r for r in captured_logs() if r["message"] == "approver_resolved"]
        assert events
        assert events[0]["strategy"] == "ancestor_chain"
        assert events[0]["required_level"] == 51


class TestTierOrder:

    def test_same_unit_beats_parent(self, org, resolver, academic):
        head = org.add_person("Head", academic["program"], org.add_position("Head", 70))
        hit = resolver.find_approver(academic["requester"].id)
        assert hit.user_id == head.user_id
        assert hit.strategy is SearchStrategy.SAME_UNIT

    def test_nearest_ancestor_first(self, org, resolver):
        university = org.add_unit("University")
        college = org.add_unit("College", parent=university)
        program = org.add_unit("Program", parent=college)
        requester = org.add_person("r", program, org.add_position("Staff", 10))
        org.add_person("president", university, org.add_position("President", 99))
        dean = org.add_person("dean", college, org.add_position("Dean", 90))
        assert resolver.find_approver(requester.id).user_id == dean.user_id

    def test_ancestor_beats_nearer_system_wide(self, org, resolver, academic):
        org.add_person("vp", None, org.add_position("VP", 60, system_wide=True))
        hit = resolver.find_approver(academic["requester"].id)
        assert hit.user_id == academic["dean"].user_id
        assert hit.strategy is SearchStrategy.ANCESTOR_CHAIN
        assert hit.authority_level == 85

    def test_find_approvers_lists_tiers_in_search_order(self, org, resolver, academic):
        org.add_person("vp", None, org.add_position("VP", 60, system_wide=True))
        org.add_person("head", academic["program"], org.add_position("Head", 70))
        strategies = [a.strategy for a in resolver.find_approvers(academic["requester"].id)]
        assert strategies == [
            SearchStrategy.SAME_UNIT,
            SearchStrategy.ANCESTOR_CHAIN,
            SearchStrategy.SYSTEM_WIDE,
        ]

    def test_system_wide_before_sector_wide(self, org, resolver):
        unit = org.add_unit("Isolated")
        sibling = org.add_unit("Sibling")
        requester = org.add_person("r", unit, org.add_position("Staff", 10))
        org.add_person("sector head", sibling, org.add_position("Sector Head", 50))
        president = org.add_person(
            "president", None, org.add_position("President", 100, system_wide=True),
        )
        hit = resolver.find_approver(requester.id)
        assert hit.user_id == president.user_id
        assert hit.strategy is SearchStrategy.SYSTEM_WIDE

    def test_sector_wide_last(self, org, resolver):
        unit = org.add_unit("Isolated")
        sibling = org.add_unit("Sibling")
        requester = org.add_person("r", unit, org.add_position("Staff", 10))
        head = org.add_person("sector head", sibling, org.add_position("Sector Head", 50))
        hit = resolver.find_approver(requester.id)
        assert hit.user_id == head.user_id
        assert hit.strategy is SearchStrategy.SECTOR_WIDE

    def test_sector_wide_ignores_other_sectors(self, org, resolver):
        other_sector = org.add_sector("Administrative")
        unit = org.add_unit("Isolated")
        foreign = org.add_unit("Foreign", sector=other_sector)
        requester = org.add_person("r", unit, org.add_position("Staff", 10))
        org.add_person("x", foreign, org.add_position("Boss", 90, sector=other_sector))
        assert resolver.find_approver(requester.id) is None

    def test_nobody_qualifies(self, org, resolver, academic):
        assert resolver.find_approver(academic["requester"].id, 95) is None


class TestCandidateRules:

    def test_tie_break_sixty_beats_sixty_five(self, org, resolver):
        unit = org.add_unit("U")
        requester = org.add_person("r", unit, org.add_position("Staff", 10))
        org.add_person("b", unit, org.add_position("B", 65))
        a = org.add_person("a", unit, org.add_position("A", 60))
        assert resolver.find_approver(requester.id, 55).user_id == a.user_id

    def test_requester_never_selected(self, org, resolver, academic):
        """Requester holding a senior secondary post is still skipped."""
        org.designate(
            academic["requester"], academic["program"], org.add_position("Chair", 80),
            primary=True, start=date(2021, 1, 1),
        )
        hit = resolver.find_approver(academic["requester"].id, 60)
        assert hit.employee_id != academic["requester"].id

    def test_non_primary_designation_ignored(self, org, resolver, academic):
        org.add_person("acting", academic["program"], org.add_position("Acting", 70), primary=False)
        hit = resolver.find_approver(academic["requester"].id)
        assert hit.strategy is SearchStrategy.ANCESTOR_CHAIN

    def test_expired_designation_ignored(self, org, resolver, academic):
        org.add_person(
            "former", academic["program"], org.add_position("Former", 70),
            end=date(2023, 12, 31),
        )
        hit = resolver.find_approver(academic["requester"].id)
        assert hit.strategy is SearchStrategy.ANCESTOR_CHAIN

    def test_candidate_without_user_skipped(self, org, resolver, academic):
        org.add_person("no login", academic["program"], org.add_position("Head", 70), with_user=False)
        hit = resolver.find_approver(academic["requester"].id)
        assert hit.user_id == academic["dean"].user_id


class TestRequesterScope:

    def test_no_primary_designation(self, org, resolver):
        unit = org.add_unit("U")
        requester = org.add_person("r", unit, org.add_position("Staff", 10), primary=False)
        org.add_person("boss", unit, org.add_position("Boss", 90))
        assert resolver.find_approver(requester.id) is None
        assert resolver.find_approvers(requester.id) == ()

    def test_primary_designation_without_unit(self, org, resolver):
        requester = org.add_person("r", None, org.add_position("Staff", 10))
        assert resolver.requester_scope(requester.id) is None
        assert resolver.find_approver(requester.id) is None

    def test_unknown_requester(self, resolver):
        assert resolver.find_approver(uuid4()) is None


class TestCorruptGraph:

    def test_three_cycle_terminates_and_warns(self, org, deterministic_clock, captured_logs):
        from routing_kernel.domain.org import Unit

        a, b, c = uuid4(), uuid4(), uuid4()
        for uid, parent in ((a, b), (b, c), (c, a)):
            org.graph.add_unit(Unit(id=uid, sector_id=org.sector.id, parent_unit_id=parent))
        requester = org.add_person("r", org.graph.units[a], org.add_position("Staff", 10))
        resolver = AuthorityResolver(org.graph, clock=deterministic_clock)

        assert resolver.find_approver(requester.id) is None
        warnings = [r for r in captured_logs() if r["message"] == "unit_cycle_detected"]
        assert warnings and warnings[0]["level"] == "WARNING"

    def test_cycle_still_reaches_later_tiers(self, org, deterministic_clock):
        from routing_kernel.domain.org import Unit

        a, b = uuid4(), uuid4()
        org.graph.add_unit(Unit(id=a, sector_id=org.sector.id, parent_unit_id=b))
        org.graph.add_unit(Unit(id=b, sector_id=org.sector.id, parent_unit_id=a))
        requester = org.add_person("r", org.graph.units[a], org.add_position("Staff", 10))
        president = org.add_person(
            "p", None, org.add_position("President", 100, system_wide=True),
        )
        resolver = AuthorityResolver(org.graph, clock=deterministic_clock)
        hit = resolver.find_approver(requester.id)
        assert hit.user_id == president.user_id

    def test_depth_limit_warns(self, org, deterministic_clock, captured_logs):
        parent = None
        for i in range(6):
            parent = org.add_unit(f"level-{i}", parent=parent)
        requester = org.add_person("r", parent, org.add_position("Staff", 10))
        resolver = AuthorityResolver(org.graph, clock=deterministic_clock, max_ancestor_depth=2)

        assert resolver.find_approver(requester.id) is None
        assert any(r["message"] == "unit_depth_exceeded" for r in captured_logs())


class TestCaching:

    def test_cached_result_survives_org_change(self, org, deterministic_clock, routing_cache, academic):
        resolver = AuthorityResolver(org.graph, cache=routing_cache, clock=deterministic_clock)
        first = resolver.find_approver(academic["requester"].id)
        org.add_person("head", academic["program"], org.add_position("Head", 70))
        assert resolver.find_approver(academic["requester"].id) == first

    def test_use_cache_false_bypasses(self, org, deterministic_clock, routing_cache, academic):
        resolver = AuthorityResolver(org.graph, cache=routing_cache, clock=deterministic_clock)
        resolver.find_approver(academic["requester"].id)
        head = org.add_person("head", academic["program"], org.add_position("Head", 70))
        hit = resolver.find_approver(academic["requester"].id, use_cache=False)
        assert hit.user_id == head.user_id

    def test_entry_expires(self, org, deterministic_clock, routing_cache, academic):
        resolver = AuthorityResolver(org.graph, cache=routing_cache, clock=deterministic_clock)
        resolver.find_approver(academic["requester"].id)
        head = org.add_person("head", academic["program"], org.add_position("Head", 70))
        deterministic_clock.advance(301)
        assert resolver.find_approver(academic["requester"].id).user_id == head.user_id

    def test_levels_cached_separately(self, org, deterministic_clock, routing_cache, academic):
        resolver = AuthorityResolver(org.graph, cache=routing_cache, clock=deterministic_clock)
        resolver.find_approver(academic["requester"].id)
        resolver.find_approver(academic["requester"].id, 60)
        assert len(routing_cache) == 2


class TestMinLevelValidation:

    @pytest.mark.parametrize("level", [-1, 101])
    def test_out_of_range_rejected(self, resolver, academic, level):
        with pytest.raises(InvalidAuthorityLevelError):
            resolver.find_approver(academic["requester"].id, level)

    def test_requester_at_top_finds_nobody(self, org, resolver):
        unit = org.add_unit("U")
        top = org.add_person("top", unit, org.add_position("President", 100))
        assert resolver.find_approver(top.id) is None


class TestFindApprovers:

    def test_union_of_tiers_unique_by_user(self, org, resolver, academic):
        head = org.add_person("head", academic["program"], org.add_position("Head", 70))
        president = org.add_person("p", None, org.add_position("President", 100, system_wide=True))
        # Dean also holds a system-wide post; still listed once.
        org.designate(academic["dean"], None, org.add_position("Board", 95, system_wide=True),
                      primary=True, start=date(2021, 1, 1))

        approvers = resolver.find_approvers(academic["requester"].id)
        users = [a.user_id for a in approvers]
        assert users[0] == head.user_id
        assert academic["dean"].user_id in users
        assert president.user_id in users
        assert len(users) == len(set(users))
        assert approvers[0].strategy is SearchStrategy.SAME_UNIT

    def test_excludes_requester(self, org, resolver, academic):
        approvers = resolver.find_approvers(academic["requester"].id, 0)
        assert all(a.employee_id != academic["requester"].id for a in approvers)
