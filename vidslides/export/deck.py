"""PPTX export of slide images."""

import logging
from pathlib import Path
from typing import Sequence, Tuple, Union

from PIL import Image
from pptx import Presentation
from pptx.util import Inches

from ..errors import ExportError

logger = logging.getLogger(__name__)

# 16:9, ~1920x1080 at 144 DPI
DEFAULT_CANVAS_INCHES = (13.333, 7.5)

BLANK_LAYOUT = 6


def fit_to_canvas(
    image_width: int,
    image_height: int,
    canvas_width: int,
    canvas_height: int,
) -> Tuple[int, int, int, int]:
    """
    Scale an image uniformly to fit a canvas and center it.

    Returns:
        (left, top, width, height) in canvas units
    """
    if image_width <= 0 or image_height <= 0:
        raise ValueError(f"Invalid image size {image_width}x{image_height}")

    scale = min(canvas_width / image_width, canvas_height / image_height)
    width = int(image_width * scale)
    height = int(image_height * scale)
    left = (canvas_width - width) // 2
    top = (canvas_height - height) // 2
    return left, top, width, height


def export_pptx(
    image_paths: Sequence[Union[str, Path]],
    output_path: Union[str, Path],
    canvas_inches: Tuple[float, float] = DEFAULT_CANVAS_INCHES,
) -> Path:
    """
    Build a presentation with one full-slide picture per image.

    Args:
        image_paths: Slide images in presentation order
        output_path: Destination .pptx file
        canvas_inches: Slide (width, height) in inches

    Returns:
        Path of the written deck

    Raises:
        ExportError: If there are no images or writing fails
    """
    if not image_paths:
        raise ExportError("No slide images to write to PPTX")

    output_path = Path(output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)

    prs = Presentation()
    prs.slide_width = Inches(canvas_inches[0])
    prs.slide_height = Inches(canvas_inches[1])
    canvas_width, canvas_height = int(prs.slide_width), int(prs.slide_height)

    try:
        for path in image_paths:
            slide = prs.slides.add_slide(prs.slide_layouts[BLANK_LAYOUT])
            with Image.open(path) as img:
                image_width, image_height = img.size

            left, top, width, height = fit_to_canvas(
                image_width, image_height, canvas_width, canvas_height
            )
            slide.shapes.add_picture(str(path), left, top, width=width, height=height)

        prs.save(str(output_path))
    except (OSError, ValueError) as e:
        raise ExportError(f"Failed to write PPTX {output_path}: {e}") from e

    logger.info(f"PPTX saved {output_path} ({len(image_paths)} slides)")
    return output_path
