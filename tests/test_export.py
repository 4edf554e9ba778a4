"""Tests for PDF and PPTX export."""

import pytest


@pytest.fixture
def slide_files(tmp_path, make_slide):
    paths = []
    for i, pattern in enumerate(("left", "top", "gradient"), start=1):
        path = tmp_path / "slides" / f"slide_{i:05d}.png"
        path.parent.mkdir(exist_ok=True)
        make_slide(pattern).save(path)
        paths.append(path)
    return paths


class TestFitToCanvas:
    """Tests for centered aspect-preserving placement."""

    def test_matching_aspect_fills_canvas(self):
        from vidslides.export.deck import fit_to_canvas

        assert fit_to_canvas(1920, 1080, 1600, 900) == (0, 0, 1600, 900)

    def test_pillarbox(self):
        """A 4:3 image on a 16:9 canvas is centered horizontally."""
        from vidslides.export.deck import fit_to_canvas

        left, top, width, height = fit_to_canvas(400, 300, 1600, 900)

        assert (width, height) == (1200, 900)
        assert (left, top) == (200, 0)

    def test_letterbox(self):
        from vidslides.export.deck import fit_to_canvas

        left, top, width, height = fit_to_canvas(1000, 200, 1600, 900)

        assert (width, height) == (1600, 320)
        assert (left, top) == (0, 290)

    def test_invalid_size(self):
        from vidslides.export.deck import fit_to_canvas

        with pytest.raises(ValueError):
            fit_to_canvas(0, 100, 1600, 900)


class TestExportPdf:

    def test_one_page_per_image(self, slide_files, tmp_path):
        from vidslides.export import export_pdf

        path = export_pdf(slide_files, tmp_path / "out" / "deck.pdf")

        data = path.read_bytes()
        assert data.startswith(b"%PDF")
        assert b"/Count 3" in data

    def test_empty(self, tmp_path):
        from vidslides.errors import ExportError
        from vidslides.export import export_pdf

        with pytest.raises(ExportError):
            export_pdf([], tmp_path / "deck.pdf")

    def test_unreadable_image(self, tmp_path):
        from vidslides.errors import ExportError
        from vidslides.export import export_pdf

        bad = tmp_path / "bad.png"
        bad.write_bytes(b"nope")

        with pytest.raises(ExportError):
            export_pdf([bad], tmp_path / "deck.pdf")


class TestExportPptx:

    def test_slides_and_canvas(self, slide_files, tmp_path):
        from pptx import Presentation
        from pptx.enum.shapes import MSO_SHAPE_TYPE
        from pptx.util import Inches

        from vidslides.export import export_pptx

        path = export_pptx(slide_files, tmp_path / "deck.pptx")

        prs = Presentation(str(path))
        assert len(prs.slides) == 3
        assert prs.slide_width == Inches(13.333)
        assert prs.slide_height == Inches(7.5)
        for slide in prs.slides:
            pictures = [s for s in slide.shapes if s.shape_type == MSO_SHAPE_TYPE.PICTURE]
            assert len(pictures) == 1
            picture = pictures[0]
            # square images are pillarboxed on the wide canvas
            assert picture.height == prs.slide_height
            assert picture.left > 0
            assert picture.left + picture.width <= prs.slide_width

    def test_custom_canvas(self, slide_files, tmp_path):
        from pptx import Presentation
        from pptx.util import Inches

        from vidslides.export import export_pptx

        path = export_pptx(slide_files[:1], tmp_path / "deck.pptx", canvas_inches=(10, 7.5))

        prs = Presentation(str(path))
        assert prs.slide_width == Inches(10)
        assert len(prs.slides) == 1

    def test_empty(self, tmp_path):
        from vidslides.errors import ExportError
        from vidslides.export import export_pptx

        with pytest.raises(ExportError):
            export_pptx([], tmp_path / "deck.pptx")
