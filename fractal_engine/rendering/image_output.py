"""
Image export for finished pixel grids.

Grids are written as BMP by default, following the
fractal_<id>_seed_<seed>.bmp naming convention; PNG and TIFF are chosen by
file suffix. Render metadata can be stored next to the image as JSON.
"""

from typing import Dict, Any, Optional, Tuple
from pathlib import Path
from dataclasses import dataclass, asdict, field
import json
import logging
from datetime import datetime

from PIL import Image, PngImagePlugin

from ..core.pixel_grid import PixelGrid

logger = logging.getLogger(__name__)


def output_filename(request_id: int, seed: int, suffix: str = '.bmp') -> str:
    """Conventional file name for a rendered request."""
    return f"fractal_{request_id}_seed_{seed}{suffix}"


@dataclass
class RenderMetadata:
    """Metadata for fractal renders."""

    fractal_type: str
    resolution: Tuple[int, int]  # width, height
    max_iterations: int
    seed: int
    seeded: bool
    render_time_seconds: float

    timestamp: str = ""
    software_version: str = "1.0.0"

    fractal_parameters: Dict[str, Any] = field(default_factory=dict)

    def __post_init__(self):
        """Set default timestamp if not provided."""
        if not self.timestamp:
            self.timestamp = datetime.now().isoformat()

    def to_dict(self) -> Dict[str, Any]:
        """Convert metadata to dictionary."""
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'RenderMetadata':
        """Create metadata from dictionary."""
        data = dict(data)
        data['resolution'] = tuple(data['resolution'])
        return cls(**data)

    def to_json(self, indent: int = 2) -> str:
        """Convert to JSON string."""
        return json.dumps(self.to_dict(), indent=indent)

    @classmethod
    def from_json(cls, json_str: str) -> 'RenderMetadata':
        """Create metadata from JSON string."""
        return cls.from_dict(json.loads(json_str))


class ImageExporter:
    """Writes pixel grids to image files."""

    def __init__(self):
        """Initialize image exporter."""
        self.supported_formats = {
            '.bmp': self._save_bmp,
            '.png': self._save_png,
            '.tiff': self._save_tiff,
            '.tif': self._save_tiff,
        }

    def save_grid(self, grid: PixelGrid, filepath: Path,
                  metadata: Optional[RenderMetadata] = None) -> Path:
        """
        Save a pixel grid to file.

        Args:
            grid: Finished pixel grid
            filepath: Output file path; the suffix selects the format
            metadata: Render metadata written to a companion JSON file

        Returns:
            Path of the written image

        Raises:
            ValueError: Unsupported file suffix
            OSError: The file could not be written
        """
        filepath = Path(filepath)
        suffix = filepath.suffix.lower()

        if suffix not in self.supported_formats:
            supported = ', '.join(self.supported_formats.keys())
            raise ValueError(f"Unsupported format '{suffix}'. Supported: {supported}")

        pil_image = grid.to_image()
        save_method = self.supported_formats[suffix]
        save_method(pil_image, filepath, metadata)

        if metadata:
            self.save_metadata(metadata, filepath)

        logger.info(f"Saved image: {filepath} ({pil_image.size[0]}x{pil_image.size[1]})")
        return filepath

    def _save_bmp(self, pil_image: Image.Image, filepath: Path,
                  metadata: Optional[RenderMetadata]) -> None:
        pil_image.save(filepath, "BMP")

    def _save_png(self, pil_image: Image.Image, filepath: Path,
                  metadata: Optional[RenderMetadata]) -> None:
        """Save as PNG, embedding metadata as text chunks."""
        pnginfo = PngImagePlugin.PngInfo()

        if metadata:
            pnginfo.add_text("Title", f"Fractal: {metadata.fractal_type}")
            pnginfo.add_text("Software", f"fractal-engine v{metadata.software_version}")
            pnginfo.add_text("Creation Time", metadata.timestamp)
            pnginfo.add_text("FractalMetadata", metadata.to_json())

        pil_image.save(filepath, "PNG", pnginfo=pnginfo)

    def _save_tiff(self, pil_image: Image.Image, filepath: Path,
                   metadata: Optional[RenderMetadata]) -> None:
        pil_image.save(filepath, format='TIFF', compression='tiff_lzw')

    def save_metadata(self, metadata: RenderMetadata, image_path: Path) -> Path:
        """Write metadata as JSON beside the image."""
        json_path = Path(image_path).with_suffix('.json')
        with open(json_path, 'w') as f:
            f.write(metadata.to_json())
        logger.debug(f"Saved metadata: {json_path}")
        return json_path

    def load_metadata(self, image_path: Path) -> Optional[RenderMetadata]:
        """
        Load the companion metadata of an image.

        Returns:
            Metadata, or None when no companion file exists
        """
        json_path = Path(image_path).with_suffix('.json')
        if not json_path.exists():
            return None
        with open(json_path, 'r') as f:
            return RenderMetadata.from_json(f.read())

    def get_image_info(self, filepath: Path) -> Dict[str, Any]:
        """
        Get information about an image file.

        Args:
            filepath: Path to image file

        Returns:
            Dictionary with image information
        """
        filepath = Path(filepath)

        if not filepath.exists():
            raise FileNotFoundError(f"Image file not found: {filepath}")

        with Image.open(filepath) as img:
            info = {
                'filepath': str(filepath),
                'size_bytes': filepath.stat().st_size,
                'format': img.format,
                'dimensions': img.size,
                'mode': img.mode,
            }

        metadata = self.load_metadata(filepath)
        info['has_fractal_metadata'] = metadata is not None
        info['fractal_metadata'] = metadata.to_dict() if metadata else None
        return info
