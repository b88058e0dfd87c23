from __future__ import annotations

from pathlib import Path
from typing import List, Sequence

import fitz  # PyMuPDF


def _render_page_to_png(doc: fitz.Document, page_index: int, out_path: Path, min_px: int = 1400) -> None:
    page = doc.load_page(page_index)

    # Scale so the short side of the render is at least min_px pixels.
    rect = page.rect
    short_side = min(rect.width, rect.height)
    zoom = max(1.0, min_px / float(short_side))
    mat = fitz.Matrix(zoom, zoom)

    pix = page.get_pixmap(matrix=mat, alpha=False)
    out_path.parent.mkdir(parents=True, exist_ok=True)
    pix.save(str(out_path))


def render_previews(pdf_path: Path, pages: Sequence[int], out_dir: Path | None = None) -> List[Path]:
    """Render the given page indexes of ``pdf_path`` to ``<stem>_p<n>.png`` files."""
    target = out_dir or pdf_path.parent
    previews: List[Path] = []
    with fitz.open(str(pdf_path)) as doc:
        for index in pages:
            if index < 0 or index >= doc.page_count:
                continue
            out_path = target / f"{pdf_path.stem}_p{index + 1}.png"
            _render_page_to_png(doc, index, out_path)
            previews.append(out_path)
    return previews
