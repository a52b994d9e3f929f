"""Tests for port allocation."""

from unittest.mock import patch

import pytest

from port_master.allocator import PortAllocator, allocate, find_port_in_range
from port_master.errors import PortExhaustedError
from port_master.models import PortRange
from port_master.ranges import CATCH_ALL_RANGE, get_port_range


@pytest.fixture
def small_allocator():
    """Allocator with tiny ranges so exhaustion is easy to reach."""
    return PortAllocator(
        port_ranges={
            "web": PortRange(start=100, end=102),
            "cache": PortRange(start=200, end=201),
        },
        catch_all_range=PortRange(start=900, end=901),
    )


class TestFindPortInRange:
    """Tests for find_port_in_range function."""

    def test_empty_usage_returns_start(self):
        assert find_port_in_range(PortRange(start=100, end=105), set()) == 100

    def test_skips_used_ports(self):
        assert find_port_in_range(PortRange(start=100, end=105), {100, 101, 103}) == 102

    def test_full_range_returns_none(self):
        assert find_port_in_range(PortRange(start=100, end=101), {100, 101}) is None

    def test_accepts_any_iterable(self):
        assert find_port_in_range(PortRange(start=100, end=105), [100]) == 101


class TestPortAllocator:
    """Tests for PortAllocator class."""

    def test_first_dev_port(self):
        """Test an empty store yields the first port of the range."""
        assert allocate("dev", set()) == 3100

    def test_lowest_free_slot(self):
        """Test the lowest gap is reused before the range grows."""
        used = set(range(3100, 3110)) - {3104}
        assert allocate("dev", used) == 3104

    def test_next_after_contiguous_block(self):
        """Test ports start..k used gives k+1."""
        assert allocate("redis", set(range(6400, 6420))) == 6420

    def test_case_insensitive_type(self):
        assert allocate("REDIS", set()) == 6400

    def test_unknown_type_uses_catch_all(self):
        assert allocate("storybook", set()) == CATCH_ALL_RANGE.start

    def test_falls_back_to_catch_all(self, small_allocator):
        """Test a full dedicated range overflows into the catch-all range."""
        assert small_allocator.allocate("web", {100, 101, 102}) == 900

    def test_fallback_ignores_ports_used_in_catch_all(self, small_allocator):
        assert small_allocator.allocate("web", {100, 101, 102, 900}) == 901

    def test_exhaustion_names_both_ranges(self, small_allocator):
        """Test both ranges full raises with both bounds."""
        with pytest.raises(PortExhaustedError) as exc_info:
            small_allocator.allocate("web", {100, 101, 102, 900, 901})

        error = exc_info.value
        assert error.port_type == "web"
        assert error.ranges == (PortRange(start=100, end=102), PortRange(start=900, end=901))
        assert "100-102" in str(error)
        assert "900-901" in str(error)

    def test_catch_all_scanned_once(self, small_allocator):
        """Test unknown types do not scan the catch-all range twice."""
        assert small_allocator.candidate_ranges("other") == [PortRange(start=900, end=901)]

        with pytest.raises(PortExhaustedError) as exc_info:
            small_allocator.allocate("other", {900, 901})
        assert exc_info.value.ranges == (PortRange(start=900, end=901),)

    def test_primary_range_preferred_after_overflow(self, small_allocator):
        """Test a freed primary port is used again once available."""
        assert small_allocator.allocate("web", {100, 102, 900}) == 101

    def test_does_not_mutate_snapshot(self, small_allocator):
        used = {100}
        small_allocator.allocate("web", used)
        assert used == {100}

    def test_range_lookup_delegates_to_range_table(self, small_allocator):
        """Test the allocator resolves ranges through get_port_range."""
        with patch("port_master.allocator.get_port_range", wraps=get_port_range) as lookup:
            assert small_allocator.range_for("WEB") == PortRange(start=100, end=102)
        lookup.assert_called_once_with(
            "WEB", small_allocator.port_ranges, small_allocator.catch_all_range
        )
