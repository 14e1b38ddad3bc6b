"""Line Grouping for Raw Text Runs

Content streams frequently interleave glyph runs without enforcing visual
line order. Runs are grouped into visual lines by baseline proximity: a new
line starts whenever the vertical jump from the previous run exceeds
max(run height * LINE_HEIGHT_RATIO, LINE_TOLERANCE).

Both constants are empirically chosen heuristics and tunable per grouper.
"""

import logging
from typing import List, Optional, Sequence

from models.pdf_types import RawTextRun

logger = logging.getLogger(__name__)

LINE_TOLERANCE = 2.0      # User-space units; floor for zero-height runs
LINE_HEIGHT_RATIO = 0.3


class LineGrouper:
    """Groups stream-ordered text runs into visual lines"""

    def __init__(self, tolerance: float = LINE_TOLERANCE, height_ratio: float = LINE_HEIGHT_RATIO):
        if tolerance <= 0:
            raise ValueError(f"tolerance must be positive, got {tolerance}")
        if height_ratio < 0:
            raise ValueError(f"height_ratio must be non-negative, got {height_ratio}")
        self.tolerance = tolerance
        self.height_ratio = height_ratio

    def threshold_for(self, run: RawTextRun) -> float:
        """Baseline gap above which `run` starts a new line"""
        return max(run.height * self.height_ratio, self.tolerance)

    def group(self, runs: Sequence[RawTextRun]) -> List[List[RawTextRun]]:
        """
        Group runs into lines, preserving stream order within and across lines.

        The last baseline is tracked across line breaks (never reset), and a
        trailing non-empty line is flushed at end of input.
        """
        lines: List[List[RawTextRun]] = []
        current_line: List[RawTextRun] = []
        last_baseline_y: Optional[float] = None

        for run in runs:
            baseline_y = run.baseline_y
            if last_baseline_y is not None and abs(baseline_y - last_baseline_y) > self.threshold_for(run):
                if current_line:
                    lines.append(current_line)
                    current_line = []

            current_line.append(run)
            last_baseline_y = baseline_y

        if current_line:
            lines.append(current_line)

        logger.debug(f"Grouped {len(runs)} runs into {len(lines)} lines")
        return lines


def group_into_lines(
    runs: Sequence[RawTextRun],
    tolerance: float = LINE_TOLERANCE,
    height_ratio: float = LINE_HEIGHT_RATIO,
) -> List[List[RawTextRun]]:
    """Convenience function for one-off line grouping"""
    return LineGrouper(tolerance=tolerance, height_ratio=height_ratio).group(runs)
