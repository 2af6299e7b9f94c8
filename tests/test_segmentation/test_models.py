"""
Tests for SegmentationState and BorderMap.
"""

import pytest
import numpy as np

from regionizer.segmentation.models import SegmentationState, BorderMap, UNASSIGNED
from tests.fixtures.regionizer_fixtures import solid, to_rgb16, WHITE


def make_state(rows: int = 2, columns: int = 3) -> SegmentationState:
    return SegmentationState.from_rgb16(to_rgb16(solid(WHITE, (rows, columns))))


class TestSegmentationState:
    """Tests for SegmentationState."""

    def test_initial_state(self):
        """Test dimensions and an empty region table."""
        state = make_state(rows=2, columns=3)

        assert state.rows == 2
        assert state.columns == 3
        assert state.region_count == 0
        assert state.next_region_id == 0
        assert state.labels.shape == (2, 3)
        assert np.all(state.labels == UNASSIGNED)

    def test_lab_is_read_only(self):
        """Test that the Lab image cannot be modified."""
        state = make_state()

        with pytest.raises(ValueError):
            state.lab[0, 0, 0] = 1.0

    def test_rejects_bad_lab_shape(self):
        """Test that a 2D Lab array raises ValueError."""
        with pytest.raises(ValueError, match="rows, columns, 3"):
            SegmentationState(lab=np.zeros((2, 2)))

    def test_start_and_extend_region(self):
        """Test id allocation and reverse lookup updates."""
        state = make_state()

        first = state.start_region(0, 0)
        state.extend_region(first, 0, 1)
        second = state.start_region(1, 0)

        assert (first, second) == (0, 1)
        assert state.next_region_id == 2
        assert state.regions[0] == [(0, 0), (0, 1)]
        assert state.region_of(0, 1) == 0
        assert state.region_of(1, 0) == 1

    def test_merge_regions_moves_members(self):
        """Test that merging relabels and appends the source members."""
        state = make_state(rows=1, columns=3)
        a = state.start_region(0, 0)
        b = state.start_region(1, 0)
        state.extend_region(b, 2, 0)

        merged = state.merge_regions(a, b)

        assert merged is True
        assert b not in state.regions
        assert state.regions[a] == [(0, 0), (1, 0), (2, 0)]
        assert state.labels.tolist() == [[a, a, a]]

    def test_merge_same_region_is_noop(self):
        """Test that merging a region with itself changes nothing."""
        state = make_state(rows=1, columns=1)
        a = state.start_region(0, 0)

        assert state.merge_regions(a, a) is False
        assert state.regions == {a: [(0, 0)]}

    def test_validate_accepts_consistent_state(self):
        """Test validate on a fully assigned state."""
        state = make_state(rows=1, columns=2)
        state.start_region(0, 0)
        state.start_region(1, 0)

        state.validate()

    def test_validate_rejects_unassigned_pixels(self):
        """Test validate when a pixel has no region."""
        state = make_state(rows=1, columns=2)
        state.start_region(0, 0)

        with pytest.raises(ValueError, match="covers 1 pixels"):
            state.validate()

    def test_validate_rejects_mismatched_lookup(self):
        """Test validate when the lookup disagrees with the member lists."""
        state = make_state(rows=1, columns=2)
        state.start_region(0, 0)
        state.start_region(1, 0)
        state.labels[0, 1] = 0

        with pytest.raises(ValueError, match="mapped to 0"):
            state.validate()

    def test_iter_regions_sorted(self):
        """Test that regions are iterated in ascending id order."""
        state = make_state(rows=1, columns=3)
        for x in range(3):
            state.start_region(x, 0)
        state.merge_regions(2, 0)

        assert [region_id for region_id, _ in state.iter_regions()] == [1, 2]

    def test_neighbour_distances_cached(self):
        """Test that distances are computed once and have the right shapes."""
        state = make_state(rows=2, columns=3)

        vertical = state.vertical_distances

        assert vertical is state.vertical_distances
        assert vertical.shape == (1, 3)
        assert state.horizontal_distances.shape == (2, 2)
        assert np.all(vertical == 0.0)


class TestBorderMap:
    """Tests for BorderMap."""

    def test_starts_empty(self):
        """Test that a new map has no flags."""
        borders = BorderMap(columns=3, rows=2)

        assert borders.count() == 0
        assert borders.sentinel_count() == 0
        assert borders.to_array().shape == (2, 3)
        assert not borders.to_array().any()

    def test_flag_inside_image(self):
        """Test flagging and reading back a pixel."""
        borders = BorderMap(columns=3, rows=2)

        borders.flag(2, 1)

        assert borders.is_border(2, 1)
        assert not borders.is_border(0, 0)
        assert borders.count() == 1
        assert borders.coordinates() == [(2, 1)]

    def test_flag_twice_is_idempotent(self):
        """Test that repeated flags count once."""
        borders = BorderMap(columns=2, rows=2)

        borders.flag(1, 1)
        borders.flag(1, 1)

        assert borders.count() == 1

    def test_reserved_slots_kept_apart(self):
        """Test that x = -1 and y = -1 are stored but not counted as image pixels."""
        borders = BorderMap(columns=2, rows=2)

        borders.flag(-1, 0)
        borders.flag(1, -1)

        assert borders.is_border(-1, 0)
        assert borders.count() == 0
        assert borders.sentinel_count() == 2
        assert not borders.to_array().any()

    def test_out_of_range_raises(self):
        """Test that coordinates past the reserved slots raise IndexError."""
        borders = BorderMap(columns=2, rows=2)

        with pytest.raises(IndexError):
            borders.flag(2, 0)
        with pytest.raises(IndexError):
            borders.flag(0, -2)

    def test_equality(self):
        """Test that maps with the same flags compare equal."""
        a = BorderMap(columns=2, rows=1)
        b = BorderMap(columns=2, rows=1)
        a.flag(0, 0)
        b.flag(0, 0)

        assert a == b
        b.flag(-1, 0)
        assert a != b

    def test_negative_dimensions_rejected(self):
        """Test that negative dimensions raise ValueError."""
        with pytest.raises(ValueError):
            BorderMap(columns=-1, rows=2)
