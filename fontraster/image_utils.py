import os
from pathlib import Path
from typing import Tuple, Union

from PIL import Image, ImageColor, UnidentifiedImageError

from fontraster.validation import SUPPORTED_IMAGE_MODES
from utils.exceptions import ImageProcessingError, ValidationError
from utils.logging import log_message


def create_canvas(
    width: int,
    height: int,
    background: Union[str, Tuple[int, ...]] = "black",
    mode: str = "RGB",
) -> Image.Image:
    """
    Creates a blank image filled with `background`.

    Raises:
        ValidationError: If the size, mode or colour is invalid
    """
    if width <= 0 or height <= 0:
        raise ValidationError(f"Canvas size must be positive, got {width}x{height}.")
    if mode not in SUPPORTED_IMAGE_MODES:
        raise ValidationError(f"Unsupported image mode '{mode}'.")
    if isinstance(background, str):
        try:
            background = ImageColor.getcolor(background, mode)
        except ValueError as e:
            raise ValidationError(f"Invalid background color '{background}': {e}") from e
    return Image.new(mode, (width, height), background)


def load_image(image_path: Union[str, Path], verbose: bool = False) -> Image.Image:
    """
    Opens an image and converts it to a mode text can be drawn onto.

    Palette and other modes become RGBA (if they carry transparency) or RGB.

    Raises:
        ImageProcessingError: If the file cannot be opened
    """
    try:
        with Image.open(image_path) as opened:
            image = opened.copy()
    except (OSError, UnidentifiedImageError) as e:
        log_message(f"Error opening image {image_path}: {e}", always_print=True)
        raise ImageProcessingError(f"Failed to open image {image_path}") from e

    if image.mode not in SUPPORTED_IMAGE_MODES:
        target_mode = "RGBA" if "transparency" in image.info or image.mode.endswith("A") else "RGB"
        log_message(f"Converting {image.mode} image to {target_mode}", verbose=verbose)
        image = image.convert(target_mode)
    return image


def save_image_with_compression(
    image, output_path, jpeg_quality=95, png_compression=6, verbose=False
):
    """
    Save an image with specified compression settings.

    Args:
        image (PIL.Image): Image to save
        output_path (str or Path): Path to save the image
        jpeg_quality (int): JPEG quality (1-100, higher is better quality)
        png_compression (int): PNG compression level (0-9, higher is more compression)
        verbose (bool): Whether to print verbose logging

    Returns:
        Path: Where the image was written (unknown extensions are saved as PNG)

    Raises:
        ImageProcessingError: If image saving fails
    """
    output_path = Path(output_path)
    extension = output_path.suffix.lower()
    save_options = {}

    if extension in [".jpg", ".jpeg"]:
        output_format = "JPEG"
        # JPEG doesn't support transparency - composite on white background
        if image.mode in ["RGBA", "LA"]:
            log_message(f"Converting {image.mode} to RGB for JPEG output", verbose=verbose)
            background = Image.new("RGB", image.size, (255, 255, 255))
            background.paste(image.convert("RGBA"), mask=image.split()[-1])
            image = background
        elif image.mode not in ["RGB", "L"]:
            log_message(f"Converting {image.mode} mode to RGB for JPEG output", verbose=verbose)
            image = image.convert("RGB")
        save_options["quality"] = max(1, min(jpeg_quality, 100))

    elif extension == ".png":
        output_format = "PNG"
        save_options["compress_level"] = max(0, min(png_compression, 9))

    elif extension == ".webp":
        output_format = "WEBP"
        save_options["lossless"] = True

    else:
        log_message(
            f"Warning: Unknown output extension '{extension}'. Saving as PNG.",
            always_print=True,
        )
        output_format = "PNG"
        output_path = output_path.with_suffix(".png")
        save_options["compress_level"] = max(0, min(png_compression, 9))

    log_message(f"Saving {output_format} image to {output_path} ({save_options})", verbose=verbose)

    try:
        os.makedirs(output_path.parent, exist_ok=True)
        image.save(str(output_path), format=output_format, **save_options)
    except (OSError, ValueError) as e:
        log_message(f"Error saving image to {output_path}: {e}", always_print=True)
        raise ImageProcessingError(f"Failed to save image to {output_path}") from e
    return output_path
