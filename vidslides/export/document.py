"""PDF export of slide images."""

import logging
from pathlib import Path
from typing import Sequence, Union

from PIL import Image

from ..errors import ExportError

logger = logging.getLogger(__name__)


def export_pdf(
    image_paths: Sequence[Union[str, Path]],
    output_path: Union[str, Path],
) -> Path:
    """
    Write slide images to a multi-page PDF, one page per image.

    Pages keep the native size of their image and follow the order of
    ``image_paths``.

    Args:
        image_paths: Slide images in presentation order
        output_path: Destination .pdf file

    Returns:
        Path of the written PDF

    Raises:
        ExportError: If there are no images or writing fails
    """
    if not image_paths:
        raise ExportError("No slide images to write to PDF")

    output_path = Path(output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)

    try:
        pages = []
        for path in image_paths:
            with Image.open(path) as img:
                pages.append(img.convert("RGB"))

        cover, rest = pages[0], pages[1:]
        cover.save(output_path, "PDF", save_all=True, append_images=rest)
    except OSError as e:
        raise ExportError(f"Failed to write PDF {output_path}: {e}") from e

    logger.info(f"PDF saved {output_path} ({len(pages)} pages)")
    return output_path
