"""
Unit tests for the rank codec.
"""

import pytest

from src.league.constants import (
    MAKUUCHI,
    JURYO,
    MAKUSHITA,
    MAEZUMO,
    YOKOZUNA,
    OZEKI,
    SEKIWAKE,
    KOMUSUBI,
    MAEGASHIRA,
    EAST,
    WEST,
)
from src.league.divisions import bouts_for_division, is_elite
from src.league.models import Rank
from src.league.rank_codec import (
    DivisionLayout,
    RankBand,
    decode,
    encode,
    format_rank,
    layout_for,
    makuuchi_layout,
    single_band_layout,
)
from src.league.scoring import rank_number, max_number_for


class TestDecode:
    """Tests for rank score -> rank."""

    def test_makuuchi_named_bands(self):
        """Test that the top bands are consumed two ordinals at a time."""
        layout = makuuchi_layout()

        assert decode(1, layout) == Rank(MAKUUCHI, YOKOZUNA, 1, EAST)
        assert decode(2, layout) == Rank(MAKUUCHI, YOKOZUNA, 1, WEST)
        assert decode(3, layout) == Rank(MAKUUCHI, OZEKI, 1, EAST)
        assert decode(5, layout) == Rank(MAKUUCHI, SEKIWAKE, 1, EAST)
        assert decode(8, layout) == Rank(MAKUUCHI, KOMUSUBI, 1, WEST)
        assert decode(9, layout) == Rank(MAKUUCHI, MAEGASHIRA, 1, EAST)

    def test_makuuchi_last_slot(self):
        """Test the last Maegashira slot of a 42-man division."""
        layout = makuuchi_layout()
        assert layout.total_capacity == 42
        assert decode(42, layout) == Rank(MAKUUCHI, MAEGASHIRA, 17, WEST)

    def test_out_of_range_is_clamped(self):
        """Test that out-of-range scores clamp instead of erroring."""
        layout = makuuchi_layout()
        assert decode(0, layout) == decode(1, layout)
        assert decode(-5, layout) == decode(1, layout)
        assert decode(500, layout) == decode(42, layout)

    def test_empty_band_is_skipped(self):
        """Test that a zero-capacity band never appears in a decoded rank."""
        layout = makuuchi_layout(yokozuna=0)
        assert decode(1, layout) == Rank(MAKUUCHI, OZEKI, 1, EAST)
        # The freed capacity goes to Maegashira
        assert layout.band_capacity(MAEGASHIRA) == 36

    def test_larger_top_band(self):
        """Test a layout with three Ozeki."""
        layout = makuuchi_layout(ozeki=3)
        assert decode(4, layout) == Rank(MAKUUCHI, OZEKI, 1, WEST)
        assert decode(5, layout) == Rank(MAKUUCHI, OZEKI, 2, EAST)
        assert decode(6, layout) == Rank(MAKUUCHI, SEKIWAKE, 1, EAST)

    def test_single_band(self):
        """Test decoding in a single-band division."""
        layout = single_band_layout(JURYO, 28)
        assert decode(1, layout) == Rank(JURYO, JURYO, 1, EAST)
        assert decode(28, layout) == Rank(JURYO, JURYO, 14, WEST)


class TestEncode:
    """Tests for rank -> rank score."""

    def test_encode_named_band(self):
        """Test encoding ranks in the named bands."""
        layout = makuuchi_layout()
        assert encode(Rank(MAKUUCHI, YOKOZUNA, 1, EAST), layout) == 1
        assert encode(Rank(MAKUUCHI, KOMUSUBI, 1, WEST), layout) == 8
        assert encode(Rank(MAKUUCHI, MAEGASHIRA, 1, EAST), layout) == 9

    def test_encode_clamps_within_band(self):
        """Test that a number past the band's capacity clamps to its last slot."""
        layout = makuuchi_layout()
        assert encode(Rank(MAKUUCHI, YOKOZUNA, 5, EAST), layout) == 2
        assert encode(Rank(MAKUUCHI, MAEGASHIRA, 40, WEST), layout) == 42

    def test_encode_unknown_band(self):
        """Test that an unknown band name falls back to the last band."""
        layout = makuuchi_layout()
        assert encode(Rank(MAKUUCHI, "Unknown", 1, EAST), layout) == 9

    def test_encode_empty_band(self):
        """Test that an empty band is treated as unknown."""
        layout = makuuchi_layout(yokozuna=0)
        score = encode(Rank(MAKUUCHI, YOKOZUNA, 1, EAST), layout)
        assert decode(score, layout).name == MAEGASHIRA


class TestRoundTrip:
    """Codec round-trip properties."""

    @pytest.mark.parametrize("layout", [
        makuuchi_layout(),
        makuuchi_layout(yokozuna=0, ozeki=3),
        makuuchi_layout(yokozuna=1, capacity=40),
        single_band_layout(JURYO, 28),
        single_band_layout("Jonidan", 217),
    ])
    def test_score_round_trip(self, layout):
        """Test encode(decode(s)) == s for every score."""
        for score in range(1, layout.total_capacity + 1):
            assert encode(decode(score, layout), layout) == score

    @pytest.mark.parametrize("layout", [
        makuuchi_layout(),
        makuuchi_layout(yokozuna=3, ozeki=1),
        single_band_layout(JURYO, 27),
    ])
    def test_rank_round_trip(self, layout):
        """Test decode(encode(r)) == r for every valid rank of the layout."""
        for band in layout.bands:
            for offset in range(band.capacity):
                side = EAST if offset % 2 == 0 else WEST
                rank = Rank(layout.division, band.name, offset // 2 + 1, side)
                assert decode(encode(rank, layout), layout) == rank


class TestLayout:
    """Tests for layout construction."""

    def test_layout_requires_bands(self):
        """Test that a layout with no bands is rejected."""
        with pytest.raises(ValueError):
            DivisionLayout(JURYO, ())

    def test_layout_rejects_negative_capacity(self):
        """Test that negative capacity is rejected."""
        with pytest.raises(ValueError):
            DivisionLayout(JURYO, (RankBand(JURYO, -1),))

    def test_layout_for_uses_size(self):
        """Test default layouts follow the current headcount."""
        assert layout_for(JURYO, 30).total_capacity == 30
        assert layout_for(MAKUUCHI).total_capacity == 42
        assert layout_for(MAKUUCHI, 44).band_capacity(MAEGASHIRA) == 36


class TestRankNumber:
    """Tests for rank-number helpers."""

    def test_rank_number(self):
        assert rank_number(1) == 1
        assert rank_number(2) == 1
        assert rank_number(3) == 2
        assert rank_number(120) == 60

    def test_rank_number_clamped(self):
        assert rank_number(40, max_number=14) == 14

    def test_max_number_for(self):
        assert max_number_for(0) == 1
        assert max_number_for(7) == 4
        assert max_number_for(120) == 60


class TestDivisions:
    """Tests for division classification."""

    def test_bouts_for_division(self):
        assert bouts_for_division(MAKUUCHI) == 15
        assert bouts_for_division(JURYO) == 15
        assert bouts_for_division(MAKUSHITA) == 7
        assert bouts_for_division(MAEZUMO) == 0

    def test_is_elite(self):
        assert is_elite(JURYO)
        assert not is_elite(MAKUSHITA)


class TestFormatRank:
    def test_short_label(self):
        assert format_rank(Rank(MAKUUCHI, MAEGASHIRA, 3, EAST)) == "Maegashira 3E"
        assert format_rank(Rank(JURYO, JURYO, 14, WEST)) == "Juryo 14W"
