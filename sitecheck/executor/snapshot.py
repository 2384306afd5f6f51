"""Visual snapshots — compares the current viewport against a stored PNG baseline."""

from __future__ import annotations

import io
import logging
from pathlib import Path

from PIL import Image, ImageDraw
from pixelmatch.contrib.PIL import pixelmatch
from playwright.async_api import Page

from sitecheck.errors import ConfigurationError
from sitecheck.models.snapshot import IgnoreRegion, SnapshotOptions, SnapshotResult

logger = logging.getLogger(__name__)


def validate_snapshot_path(path: str | Path) -> Path:
    path = Path(path)
    if path.suffix.lower() != ".png":
        raise ConfigurationError(f"Snapshot path must be a .png file: {path}")
    if not path.parent.is_dir():
        raise ConfigurationError(f"Snapshot directory does not exist: {path.parent}")
    return path


def artifact_paths(path: Path) -> tuple[Path, Path]:
    """Paths of the captured image and the diff image written on failure."""
    return (
        path.with_name(f"{path.stem}-failed.png"),
        path.with_name(f"{path.stem}-diff.png"),
    )


def check_regions(regions: list[IgnoreRegion], size: tuple[int, int]) -> None:
    """Fail when any region does not fit inside an image of ``size``."""
    width, height = size
    for region in regions:
        if region.x + region.width > width or region.y + region.height > height:
            raise ConfigurationError(
                f"Ignore region {region.model_dump()} exceeds image bounds {width}x{height}"
            )


def mask_regions(image: Image.Image, regions: list[IgnoreRegion]) -> Image.Image:
    """Return a copy of ``image`` with every region painted solid black."""
    check_regions(regions, image.size)
    masked = image.copy()
    draw = ImageDraw.Draw(masked)
    for region in regions:
        draw.rectangle(
            [region.x, region.y, region.x + region.width - 1, region.y + region.height - 1],
            fill=(0, 0, 0, 255),
        )
    return masked


def compare_images(
    baseline: Image.Image, captured: Image.Image, options: SnapshotOptions,
) -> tuple[int, Image.Image]:
    """Mask both images and count the differing pixels.

    Both images must already have the same size. Returns the number of
    mismatched pixels and the pixelmatch diff visualization.
    """
    if baseline.size != captured.size:
        raise ValueError(f"Image sizes differ: {baseline.size} != {captured.size}")
    masked_baseline = mask_regions(baseline.convert("RGBA"), options.ignore_regions)
    masked_captured = mask_regions(captured.convert("RGBA"), options.ignore_regions)
    diff = Image.new("RGBA", baseline.size)
    mismatched = pixelmatch(masked_baseline, masked_captured, diff, threshold=options.threshold)
    return mismatched, diff


async def assert_snapshot(page: Page, path: str | Path, options: SnapshotOptions | None = None) -> SnapshotResult:
    """Capture the viewport and compare it with the baseline at ``path``.

    The first run has no baseline: the capture is stored as the new baseline
    and the check passes.
    """
    options = options or SnapshotOptions()
    path = validate_snapshot_path(path)

    png = await page.screenshot()
    captured = Image.open(io.BytesIO(png)).convert("RGBA")
    check_regions(options.ignore_regions, captured.size)

    if not path.exists():
        captured.save(path)
        logger.info("Stored new snapshot baseline %s (%dx%d)", path, captured.width, captured.height)
        return SnapshotResult(passed=True, baseline_created=True, message=f"Baseline created: {path}")

    with Image.open(path) as stored:
        baseline = stored.convert("RGBA")

    if baseline.size != captured.size:
        message = (f"Snapshot size mismatch for {path}: baseline is {baseline.width}x{baseline.height}"
                   f" but captured image is {captured.width}x{captured.height}")
        logger.error(message)
        return SnapshotResult(passed=False, message=message)

    mismatched, diff = compare_images(baseline, captured, options)
    logger.debug("Snapshot %s: %d different pixels (allowed %d)", path, mismatched, options.max_different_pixels)

    if mismatched > options.max_different_pixels:
        failed_path, diff_path = artifact_paths(path)
        captured.save(failed_path)
        diff.save(diff_path)
        message = (f"Snapshot mismatch for {path}: allowed {options.max_different_pixels} different pixels"
                   f" but found {mismatched}\nCaptured image: {failed_path}\nDiff image: {diff_path}")
        logger.error(message)
        return SnapshotResult(
            passed=False,
            message=message,
            different_pixels=mismatched,
            failed_image_path=str(failed_path),
            diff_image_path=str(diff_path),
        )

    return SnapshotResult(
        passed=True,
        different_pixels=mismatched,
        message=f"Snapshot matches {path} ({mismatched} different pixels)",
    )
