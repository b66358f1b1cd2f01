"""
PNG Renderer module for flow diagrams.

Renders a DiagramSnapshot as a PNG image: node boxes with labels, port
dots, straight edges with arrowheads, and the pending connection as a dashed
line. Also measures label boxes so a controller can be fed real node
geometry before drawing.
"""

import logging
import math
import os
from typing import Dict, List, Optional, Tuple

from PIL import Image, ImageDraw, ImageFont

from .models import DiagramSnapshot, Point

logger = logging.getLogger(__name__)


class PNGRenderer:
    """Renders flow diagram snapshots as PNG images."""

    def __init__(
        self,
        scale: int = 2,  # For high-resolution output
        margin: int = 40,
        font_size: int = 12,
        font_path: Optional[str] = None,  # Custom font path
        min_box_width: int = 120,
        min_box_height: int = 60,
        box_padding: int = 12,
        port_radius: int = 5,
    ):
        self.scale = scale
        self.margin = margin
        self.font_size = font_size
        self.font_path = font_path
        self.min_box_width = min_box_width
        self.min_box_height = min_box_height
        self.box_padding = box_padding
        self.port_radius = port_radius

        # Colors
        self.bg_color = (255, 255, 255)
        self.box_fill = (250, 250, 250)
        self.box_outline = (40, 40, 40)
        self.text_color = (0, 0, 0)
        self.line_color = (60, 60, 60)
        self.port_color = (90, 120, 200)
        self.pending_color = (200, 80, 80)

        self._fonts: Dict[int, ImageFont.ImageFont] = {}

    def _get_font(self, size: int) -> ImageFont.ImageFont:
        """Get a font of the given pixel size, cached."""
        if size in self._fonts:
            return self._fonts[size]

        candidates = []
        if self.font_path and os.path.exists(self.font_path):
            candidates.append(self.font_path)
        candidates.extend(
            [
                "DejaVuSans",
                "/usr/share/fonts/truetype/dejavu/DejaVuSans.ttf",
                "/usr/share/fonts/truetype/liberation/LiberationSans-Regular.ttf",
                "Arial",
                "Helvetica",
                "/System/Library/Fonts/Helvetica.ttc",
            ]
        )

        font = None
        for candidate in candidates:
            try:
                font = ImageFont.truetype(candidate, size)
                break
            except OSError:
                continue

        if font is None:
            # Fall back to Pillow's default font
            try:
                font = ImageFont.load_default(size=size)
            except TypeError:
                # Older Pillow versions don't support size parameter
                font = ImageFont.load_default()

        self._fonts[size] = font
        return font

    def measure_label(self, label: str) -> Tuple[int, int]:
        """Size of a label's text block in diagram units."""
        draw = ImageDraw.Draw(Image.new("RGB", (1, 1)))
        font = self._get_font(self.font_size)
        lines = label.split("\n")
        line_spacing = 4

        max_width = 0
        total_height = 0
        for i, line in enumerate(lines):
            bbox = draw.textbbox((0, 0), line, font=font)
            max_width = max(max_width, bbox[2] - bbox[0])
            total_height += bbox[3] - bbox[1]
            if i > 0:
                total_height += line_spacing

        return int(max_width), int(total_height)

    def measure(self, controller) -> Dict[str, Tuple[float, float]]:
        """
        Measure every node's box and report it to the controller.

        Boxes fit their label plus padding, are never smaller than the
        minimum box, and are tall enough for their port columns.

        Args:
            controller: The InteractionController to feed.

        Returns:
            Reported (width, height) per node id.
        """
        spacing = controller.port_geometry.spacing
        sizes: Dict[str, Tuple[float, float]] = {}

        for view in controller.snapshot().nodes:
            text_w, text_h = self.measure_label(view.label)
            port_rows = max(len(view.offsets.inputs), len(view.offsets.outputs))
            width = max(self.min_box_width, text_w + 2 * self.box_padding)
            height = max(
                self.min_box_height,
                text_h + 2 * self.box_padding,
                (port_rows + 1) * spacing,
            )
            controller.report_node_geometry(view.id, width, height)
            sizes[view.id] = (width, height)

        logger.debug("Measured %d node boxes", len(sizes))
        return sizes

    def _bounds(self, snapshot: DiagramSnapshot) -> Tuple[float, float, float, float]:
        """Bounding box (left, top, right, bottom) of everything drawn."""
        xs: List[float] = []
        ys: List[float] = []
        for view in snapshot.nodes:
            xs.extend([view.position.x, view.position.x + view.width])
            ys.extend(
                [view.position.y - view.height / 2, view.position.y + view.height / 2]
            )

        vectors = list(snapshot.edges.values())
        if snapshot.pending is not None:
            vectors.append(snapshot.pending)
        for vector in vectors:
            xs.extend([vector.x0, vector.x1])
            ys.extend([vector.y0, vector.y1])

        if not xs:
            return 0.0, 0.0, 0.0, 0.0
        return min(xs), min(ys), max(xs), max(ys)

    def render(self, snapshot: DiagramSnapshot, output_path: str = "diagram.png") -> str:
        """
        Render a snapshot as a PNG image.

        Args:
            snapshot: Diagram geometry from InteractionController.snapshot()
            output_path: Path to save the PNG file

        Returns:
            Path to the saved PNG file
        """
        left, top, right, bottom = self._bounds(snapshot)
        s = self.scale
        width = int((right - left + 2 * self.margin) * s) + 1
        height = int((bottom - top + 2 * self.margin) * s) + 1

        def to_pixels(point: Point) -> Tuple[float, float]:
            return (
                (point.x - left + self.margin) * s,
                (point.y - top + self.margin) * s,
            )

        img = Image.new("RGB", (width, height), self.bg_color)
        draw = ImageDraw.Draw(img)
        line_width = max(1, s)

        for vector in snapshot.edges.values():
            start, end = to_pixels(vector.start), to_pixels(vector.end)
            draw.line([start, end], fill=self.line_color, width=line_width)
            self._draw_arrowhead(draw, start, end, self.line_color)

        for view in snapshot.nodes:
            half = view.height / 2
            x0, y0 = to_pixels(Point(view.position.x, view.position.y - half))
            x1, y1 = to_pixels(
                Point(view.position.x + view.width, view.position.y + half)
            )
            draw.rectangle(
                [x0, y0, x1, y1],
                fill=self.box_fill,
                outline=self.box_outline,
                width=line_width,
            )
            self._draw_label(draw, view.label, x0, y0, x1 - x0, y1 - y0)

            for offset in view.offsets.inputs + view.offsets.outputs:
                self._draw_port(draw, to_pixels(view.position + offset))

        if snapshot.pending is not None:
            self._draw_dashed_line(
                draw,
                to_pixels(snapshot.pending.start),
                to_pixels(snapshot.pending.end),
                line_width,
            )

        img.save(output_path, "PNG")
        return output_path

    def _draw_label(
        self, draw: ImageDraw.ImageDraw, label: str, x: float, y: float, w: float, h: float
    ) -> None:
        """Draw a label centered in a box, one line per newline."""
        font = self._get_font(self.font_size * self.scale)
        lines = label.split("\n")
        line_spacing = 4 * self.scale

        line_dims = []
        total_height = 0
        for i, line in enumerate(lines):
            bbox = draw.textbbox((0, 0), line, font=font)
            line_dims.append((bbox[2] - bbox[0], bbox[3] - bbox[1]))
            total_height += bbox[3] - bbox[1]
            if i > 0:
                total_height += line_spacing

        current_y = y + (h - total_height) / 2
        for line, (line_w, line_h) in zip(lines, line_dims):
            draw.text((x + (w - line_w) / 2, current_y), line, fill=self.text_color, font=font)
            current_y += line_h + line_spacing

    def _draw_port(self, draw: ImageDraw.ImageDraw, center: Tuple[float, float]) -> None:
        r = self.port_radius * self.scale
        cx, cy = center
        draw.ellipse([cx - r, cy - r, cx + r, cy + r], fill=self.port_color)

    def _draw_arrowhead(
        self,
        draw: ImageDraw.ImageDraw,
        from_point: Tuple[float, float],
        to_point: Tuple[float, float],
        color: Tuple[int, int, int],
    ) -> None:
        """Draw an arrowhead at the end of a line."""
        x1, y1 = from_point
        x2, y2 = to_point
        if (x1, y1) == (x2, y2):
            return

        arrow_size = 8 * self.scale
        angle = math.atan2(y2 - y1, x2 - x1)
        angle1 = angle + math.pi * 0.8
        angle2 = angle - math.pi * 0.8

        ax1 = x2 + arrow_size * math.cos(angle1)
        ay1 = y2 + arrow_size * math.sin(angle1)
        ax2 = x2 + arrow_size * math.cos(angle2)
        ay2 = y2 + arrow_size * math.sin(angle2)

        draw.polygon([(x2, y2), (ax1, ay1), (ax2, ay2)], fill=color)

    def _draw_dashed_line(
        self,
        draw: ImageDraw.ImageDraw,
        start: Tuple[float, float],
        end: Tuple[float, float],
        line_width: int,
    ) -> None:
        """Draw the pending connection as a dashed segment."""
        x1, y1 = start
        x2, y2 = end
        length = math.hypot(x2 - x1, y2 - y1)
        if length == 0:
            return

        dash = 6 * self.scale
        steps = int(length // dash)
        for i in range(0, steps + 1, 2):
            t0 = i * dash / length
            t1 = min((i + 1) * dash / length, 1.0)
            draw.line(
                [
                    (x1 + (x2 - x1) * t0, y1 + (y2 - y1) * t0),
                    (x1 + (x2 - x1) * t1, y1 + (y2 - y1) * t1),
                ],
                fill=self.pending_color,
                width=line_width,
            )


def render_to_png(controller, output_path: str = "diagram.png", **kwargs) -> str:
    """
    Convenience function to render a controller's current diagram to PNG.

    Args:
        controller: InteractionController to draw
        output_path: Path to save the PNG file
        **kwargs: Additional parameters for PNGRenderer

    Returns:
        Path to the saved PNG file
    """
    renderer = PNGRenderer(**kwargs)
    return renderer.render(controller.snapshot(), output_path)
