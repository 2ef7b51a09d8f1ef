"""Command-line entry point."""

from PIL import Image as PILImage

from rasterops.cli import batch_process
from rasterops.cli.batch_process import main
from rasterops.pipeline.frame_resizer import resize_frames
from rasterops.repositories.gif_repository import GifRepository


def test_gif_is_resized(gif_path, tmp_path):
    out = tmp_path / "small.gif"
    assert main([str(gif_path), "--width", "2", "--height", "2", "--blur", "--output", str(out)]) == 0

    seq = GifRepository.load(out)
    assert len(seq) == 3
    assert (seq.width, seq.height) == (2, 2)


def test_single_image_is_resized(tmp_path):
    src = tmp_path / "in.png"
    PILImage.new("RGB", (8, 6), (10, 200, 30)).save(src)
    out = tmp_path / "result" / "out.png"

    assert main([str(src), "--width", "4", "--height", "3", "--output", str(out)]) == 0
    with PILImage.open(out) as img:
        assert img.size == (4, 3)
        assert img.getpixel((0, 0)) == (10, 200, 30)


def test_directory_is_resized(tmp_path):
    folder = tmp_path / "in"
    folder.mkdir()
    for name in ("a.png", "b.png"):
        PILImage.new("RGB", (4, 4), (1, 2, 3)).save(folder / name)
    out_dir = tmp_path / "out"

    assert main([str(folder), "--width", "2", "--height", "2", "--output", str(out_dir)]) == 0
    assert sorted(p.name for p in out_dir.iterdir()) == ["a.png", "b.png"]


def test_bad_size_is_rejected(gif_path):
    assert main([str(gif_path), "--width", "0", "--height", "2"]) == 2


def test_unreadable_input_fails(tmp_path):
    assert main([str(tmp_path / "missing.png"), "--width", "2", "--height", "2"]) == 1


def test_resized_frames_released_when_save_fails(gif_path, tmp_path, monkeypatch):
    produced = []

    def _resize(*args, **kwargs):
        seq = resize_frames(*args, **kwargs)
        produced.append(seq)
        return seq

    def _failing_save(sequence, path):
        raise ValueError("disk full")

    monkeypatch.setattr(batch_process, "resize_frames", _resize)
    monkeypatch.setattr(batch_process.GifRepository, "save", staticmethod(_failing_save))

    assert main([str(gif_path), "--width", "2", "--height", "2", "--output", str(tmp_path / "x.gif")]) == 1
    assert len(produced) == 1
    assert produced[0].released
