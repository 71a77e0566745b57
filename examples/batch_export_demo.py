"""
Batch export demonstration.

Builds a synthetic source image, applies a few transform settings and exports
the Android and iOS icon sets to a ZIP archive and to a folder tree. Run this
script to see the export paths and timings on your system.
"""

import sys
from pathlib import Path

# Add parent directory to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

import tempfile
import time

from PIL import Image, ImageDraw

from IS_Libs.ExportLib import DirectorySink, ExportOptions, ZipArchiveSink
from IS_Libs.ImageEditingLib import SourceImage
from IS_Libs.SessionLib import EditorSession


def make_source(size=640):
    """Concentric squares, larger than the reference canvas to trigger fit-scale."""
    img = Image.new("RGBA", (size, size), (30, 90, 200, 255))
    draw = ImageDraw.Draw(img)
    for i, color in enumerate([(250, 200, 40, 255), (220, 60, 60, 255), (255, 255, 255, 255)]):
        inset = (i + 1) * size // 8
        draw.rectangle((inset, inset, size - inset, size - inset), fill=color)
    return SourceImage.from_image(img, origin="<demo>")


def main():
    session = EditorSession()
    session.load_source(make_source())
    print(f"Fit scale for 640px source: {session.model.scale:.3f}")

    session.update(icon_shape="rounded-square", padding=24, border_width=8, border_color="#202020")
    session.update(text_content="IS", text_font_size=96, text_font_color="#ffffff")

    options = ExportOptions(platforms=["android", "ios"], sharpen=True)

    with tempfile.TemporaryDirectory() as tmpdir:
        archive = ZipArchiveSink(options.archive_name)
        start = time.time()
        report = session.export(options, sinks=[archive])
        elapsed = time.time() - start
        saved = archive.write_to(tmpdir)
        print(f"\n{len(report.artifacts)} icons in {elapsed:.2f}s -> {saved.name} ({saved.stat().st_size} bytes)")
        for name in archive.names:
            print(f"  {name}")

        folder = DirectorySink(Path(tmpdir) / "icons")
        session.export(ExportOptions(platforms=["android"]), sinks=[folder])
        print(f"\nWrote {len(folder.finish())} files under {folder.base_directory}")

    print("\nUndo history:")
    while session.undo():
        print(f"  shape={session.model.icon_shape} padding={session.model.padding} text={session.model.text.content!r}")


if __name__ == "__main__":
    main()
