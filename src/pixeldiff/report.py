from __future__ import annotations

from pixeldiff.types import ComparisonReport

RULE_WIDTH = 50

# (minimum match percentage, rating, message), checked in order
RATING_BANDS = (
    (99.0, "excellent", "Excellent! Pixel-perfect implementation (>99% match)"),
    (97.0, "great", "Great match (>97%), only minor anti-aliasing differences"),
    (95.0, "good", "Good match (>95%), minor adjustments needed"),
    (90.0, "acceptable", "Acceptable match (>90%), some adjustments needed"),
)
SIGNIFICANT = ("significant", "Significant differences detected")

COMMON_FIXES = (
    "Adjust top/left by 1-2px",
    "Use line-height: 1 for text",
    "Add margin-bottom for baseline alignment",
    "Check font-family is loaded",
)


def _band(match_percentage: float) -> tuple[str, str]:
    for minimum, name, message in RATING_BANDS:
        if match_percentage >= minimum:
            return name, message
    return SIGNIFICANT


def rating(match_percentage: float) -> str:
    return _band(match_percentage)[0]


def format_report(report: ComparisonReport) -> str:
    heavy = "=" * RULE_WIDTH
    light = "-" * RULE_WIDTH
    lines = [
        heavy,
        "PIXEL COMPARISON REPORT",
        heavy,
        f"   Comparison area:  {report.width}x{report.height} pixels",
        f"   Total pixels:     {report.total_pixels:,}",
        f"   Matching pixels:  {report.matched_pixels:,}",
        f"   Different pixels: {report.diff_pixels:,}",
        light,
        f"   Match rate:       {report.match_percentage:.2f}%",
        f"   Diff rate:        {report.diff_percentage:.2f}%",
        heavy,
    ]
    if report.size_mismatch:
        lines.append(
            f"\nSize mismatch: original {report.original_width}x{report.original_height}, "
            f"screenshot {report.screenshot_width}x{report.screenshot_height}"
        )
    lines.append(f"\n{_band(report.match_percentage)[1]}")
    lines.append(f"\nDiff saved to: {report.diff_path}")

    if report.diff_pixels > 0:
        lines.append("\nCommon fixes:")
        lines.extend(f"   - {fix}" for fix in COMMON_FIXES)
    return "\n".join(lines)
