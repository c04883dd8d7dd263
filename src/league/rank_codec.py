"""
Rank Codec: bidirectional mapping between dense rank scores and structured ranks.

A division layout is an ordered list of bands, each with a capacity in
ordinals. Decoding walks the bands consuming `capacity` ordinals per band;
within a band, even offsets are East and odd offsets are West, and each pair
of ordinals shares one rank number. Out-of-range input is clamped rather than
rejected, so the codec never produces an invalid rank.
"""

from dataclasses import dataclass
from typing import Dict, Optional, Tuple

from src.league.constants import (
    MAKUUCHI,
    YOKOZUNA,
    OZEKI,
    SEKIWAKE,
    KOMUSUBI,
    MAEGASHIRA,
    DIVISION_SLOTS,
    EAST,
    WEST,
)
from src.league.models import Rank
from src.league.scoring import clamp


@dataclass(frozen=True)
class RankBand:
    """A named band of ordinals inside a division."""
    name: str
    capacity: int


@dataclass(frozen=True)
class DivisionLayout:
    """Ordered bands making up one division."""
    division: str
    bands: Tuple[RankBand, ...]

    def __post_init__(self):
        if not self.bands:
            raise ValueError(f"Layout for {self.division} has no bands")
        for band in self.bands:
            if band.capacity < 0:
                raise ValueError(f"Band {band.name} has negative capacity")
        if self.total_capacity < 1:
            raise ValueError(f"Layout for {self.division} has zero capacity")

    @property
    def total_capacity(self) -> int:
        return sum(band.capacity for band in self.bands)

    def band_start(self, name: str) -> Optional[int]:
        """First ordinal of the named band, or None if the band is absent or empty."""
        cursor = 1
        for band in self.bands:
            if band.name == name and band.capacity > 0:
                return cursor
            cursor += band.capacity
        return None

    def band_capacity(self, name: str) -> int:
        for band in self.bands:
            if band.name == name:
                return band.capacity
        return 0


def makuuchi_layout(
    yokozuna: int = 2,
    ozeki: int = 2,
    sekiwake: int = 2,
    komusubi: int = 2,
    capacity: int = 42
) -> DivisionLayout:
    """
    Top division layout: four small named bands above the Maegashira band.

    The Maegashira band absorbs whatever capacity the named bands leave.
    """
    named = yokozuna + ozeki + sekiwake + komusubi
    return DivisionLayout(MAKUUCHI, (
        RankBand(YOKOZUNA, yokozuna),
        RankBand(OZEKI, ozeki),
        RankBand(SEKIWAKE, sekiwake),
        RankBand(KOMUSUBI, komusubi),
        RankBand(MAEGASHIRA, max(0, capacity - named)),
    ))


def single_band_layout(division: str, capacity: int) -> DivisionLayout:
    """Layout with one band named after the division."""
    return DivisionLayout(division, (RankBand(division, max(1, capacity)),))


def layout_for(division: str, size: Optional[int] = None) -> DivisionLayout:
    """
    Default layout for a division holding `size` competitors.

    Args:
        division: Division name
        size: Current headcount (defaults to the division's standard slots)
    """
    capacity = size if size is not None else DIVISION_SLOTS.get(division, 1)
    if division == MAKUUCHI:
        return makuuchi_layout(capacity=max(capacity, 8))
    return single_band_layout(division, capacity)


def layouts_for_counts(counts: Dict[str, int]) -> Dict[str, DivisionLayout]:
    return {division: layout_for(division, count) for division, count in counts.items()}


def decode(rank_score: int, layout: DivisionLayout) -> Rank:
    """
    Convert a rank score into a structured rank.

    Args:
        rank_score: Ordinal position, clamped to [1, total capacity]
        layout: Division layout

    Returns:
        Rank with band name, number and side
    """
    bounded = clamp(int(rank_score), 1, layout.total_capacity)
    cursor = 1
    for band in layout.bands:
        if band.capacity == 0:
            continue
        if bounded < cursor + band.capacity:
            offset = bounded - cursor
            side = EAST if offset % 2 == 0 else WEST
            return Rank(layout.division, band.name, offset // 2 + 1, side)
        cursor += band.capacity
    # Unreachable for a validated layout
    raise ValueError(f"Rank score {rank_score} outside layout {layout.division}")


def encode(rank: Rank, layout: DivisionLayout) -> int:
    """
    Convert a structured rank into a rank score.

    Unknown band names map to the last non-empty band. The within-band
    offset is clamped to the band's capacity.

    Args:
        rank: Structured rank
        layout: Division layout

    Returns:
        Rank score in [1, total capacity]
    """
    start = layout.band_start(rank.name)
    capacity = layout.band_capacity(rank.name)
    if start is None:
        cursor = 1
        for band in layout.bands:
            if band.capacity > 0:
                start, capacity = cursor, band.capacity
            cursor += band.capacity

    side_offset = 1 if rank.side == WEST else 0
    offset = (max(1, rank.number) - 1) * 2 + side_offset
    offset = clamp(offset, 0, capacity - 1)
    return clamp(start + offset, 1, layout.total_capacity)


def format_rank(rank: Rank) -> str:
    """Short display label, e.g. 'Maegashira 3E'."""
    return f"{rank.name} {rank.number}{rank.side[0]}"
