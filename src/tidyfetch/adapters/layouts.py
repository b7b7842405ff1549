"""Known line layouts of the key-ratio report export.

The export is a CSV with section banners and blank lines mixed in. Each
layout lists the (1-based) lines to skip and how the remaining data lines
map onto sections, sub-sections and group numbers. ``detect_layout`` is the
only place that decides which layout a body follows.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Sequence

import pandas as pd

from tidyfetch.core.exceptions import UpstreamFault


def _lines(*spans: int | tuple[int, int]) -> frozenset[int]:
    out: set[int] = set()
    for span in spans:
        if isinstance(span, tuple):
            out.update(range(span[0], span[1] + 1))
        else:
            out.add(span)
    return frozenset(out)


@dataclass(frozen=True)
class ReportLayout:
    """One known shape of the report.

    ``sections`` and ``sub_sections`` are (label, line count) runs in report
    order; ``groups`` numbers each data line.
    """

    name: str
    line_count: int
    skip: frozenset[int]
    sections: tuple[tuple[str, int], ...]
    sub_sections: tuple[tuple[str, int], ...]
    groups: tuple[int, ...]

    def __post_init__(self) -> None:
        n = len(self.groups)
        if sum(c for _, c in self.sections) != n or sum(c for _, c in self.sub_sections) != n:
            raise ValueError(f"Layout {self.name}: section sizes do not add up to {n} groups")

    def data_lines(self, lines: Sequence[str]) -> list[str]:
        """Drop the banner and blank lines; the header line comes first."""
        return [line for i, line in enumerate(lines, start=1) if i not in self.skip]

    def labels(self) -> pd.DataFrame:
        """``section``, ``sub_section`` and ``group`` for each data line."""
        return pd.DataFrame(
            {
                "section": [s for s, count in self.sections for _ in range(count)],
                "sub_section": [s for s, count in self.sub_sections for _ in range(count)],
                "group": list(self.groups),
            }
        )


def _sections(cash_flow: int) -> tuple[tuple[str, int], ...]:
    return (
        ("Financials", 15),
        ("Profitability", 17),
        ("Growth", 16),
        ("Cash Flow", cash_flow),
        ("Financial Health", 24),
        ("Efficiency Ratios", 8),
    )


def _sub_sections(cash_flow: int) -> tuple[tuple[str, int], ...]:
    return (
        ("Financials", 15),
        ("Margin of Sales %", 9),
        ("Profitability", 8),
        ("Revenue %", 4),
        ("Operating Income %", 4),
        ("Net Income %", 4),
        ("EPS %", 4),
        ("Cash Flow Ratios", cash_flow),
        ("Balance Sheet Items (in %)", 20),
        ("Liquidity/Financial Health", 4),
        ("Efficiency", 8),
    )


FULL = ReportLayout(
    name="full",
    line_count=111,
    skip=_lines(
        (1, 2), (19, 21), (31, 32), (41, 44), 49, 54, 59,
        (64, 66), (72, 74), (95, 96), (101, 103),
    ),
    sections=_sections(5),
    sub_sections=_sub_sections(5),
    groups=tuple(range(1, 86)),
)

# Same report without the "Free Cash Flow/Net Income" line (group 53)
PATCHED = ReportLayout(
    name="patched",
    line_count=110,
    skip=_lines(
        (1, 2), (19, 21), (31, 32), (41, 44), 49, 54, 59,
        (64, 66), (71, 73), (94, 95), (100, 102),
    ),
    sections=_sections(4),
    sub_sections=_sub_sections(4),
    groups=tuple(g for g in range(1, 86) if g != 53),
)

LAYOUTS: tuple[ReportLayout, ...] = (FULL, PATCHED)


def detect_layout(
    lines: Sequence[str],
    layouts: Sequence[ReportLayout] = LAYOUTS,
) -> ReportLayout:
    """Pick the layout matching the report's line count.

    Raises:
        UpstreamFault: If no known layout has that many lines.
    """
    for layout in layouts:
        if len(lines) == layout.line_count:
            return layout
    raise UpstreamFault(
        f"Unrecognized key ratio report layout ({len(lines)} lines)",
        context={"line_count": len(lines), "known": [l.line_count for l in layouts]},
    )
