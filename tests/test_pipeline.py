"""Tests for frame sources, the one-shot pipeline, writers and the CLI."""

import cv2
import numpy as np
import pytest
import yaml

from conftest import ScaledCoordsModel
from facelandmarks import cli, facemesh
from facelandmarks.loader import FrameSource, imread_unicode
from facelandmarks.models import LandmarkModel
from facelandmarks.pipeline import find_face_landmarks
from facelandmarks.sequence import SequenceFaceLandmarks
from facelandmarks.types import BBox
from facelandmarks.writers import sequence_summary, write_overlays, write_summary


class ExplodingModel(LandmarkModel):
    def detect(self, image):
        raise AssertionError("detection must not run")

    def predict(self, image, box):
        raise AssertionError("prediction must not run")


@pytest.fixture()
def image_dir(tmp_path):
    d = tmp_path / "frames"
    d.mkdir()
    for name, width in [("b.png", 40), ("a.png", 30), ("c.jpg", 50)]:
        cv2.imwrite(str(d / name), np.full((20, width, 3), 100, dtype=np.uint8))
    (d / "notes.txt").write_text("not an image", encoding="utf-8")
    return d


def frames_with_face(n, width=640, height=480):
    return [np.zeros((height, width, 3), dtype=np.uint8) for _ in range(n)]


class TestFrameSource:
    def test_directory_frames_sorted_by_name(self, image_dir):
        source = FrameSource(image_dir)
        assert [p.name for p in source.image_paths()] == ["a.png", "b.png", "c.jpg"]
        assert [img.shape[1] for img in source] == [30, 40, 50]
        assert len(source) == 3

    def test_max_frames(self, image_dir):
        source = FrameSource(image_dir, max_frames=2)
        assert len(list(source)) == 2
        assert len(source) == 2

    def test_unreadable_images_skipped(self, image_dir):
        (image_dir / "0_broken.png").write_bytes(b"garbage")
        assert [img.shape[1] for img in FrameSource(image_dir)] == [30, 40, 50]

    def test_single_image(self, image_dir):
        frames = list(FrameSource(image_dir / "b.png"))
        assert len(frames) == 1
        assert frames[0].shape == (20, 40, 3)

    def test_missing_input(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            FrameSource(tmp_path / "missing")

    def test_imread_unicode_path(self, tmp_path):
        path = tmp_path / "кадр.png"
        cv2.imencode(".png", np.zeros((5, 6), dtype=np.uint8))[1].tofile(str(path))
        assert imread_unicode(path).shape == (5, 6)

    def test_video_frames(self, tmp_path):
        path = tmp_path / "clip.avi"
        writer = cv2.VideoWriter(str(path), cv2.VideoWriter_fourcc(*"MJPG"), 10, (64, 48))
        if not writer.isOpened():
            pytest.skip("MJPG writer not available")
        for _ in range(4):
            writer.write(np.zeros((48, 64, 3), dtype=np.uint8))
        writer.release()
        source = FrameSource(path, max_frames=3)
        assert source.is_video
        assert [f.shape for f in source] == [(48, 64, 3)] * 3


class TestFindFaceLandmarks:
    def test_processes_frames_in_order(self, two_face_model):
        seq = find_face_landmarks(two_face_model, frames_with_face(3), frame_scale=0.5, progress=False)
        assert seq.size() == 3
        assert all(len(frame.faces) == 2 for frame in seq)

    def test_cache_saved_then_loaded(self, two_face_model, tmp_path):
        cache = tmp_path / "seq.npz"
        first = find_face_landmarks(two_face_model, frames_with_face(2), cache=cache, progress=False)
        assert cache.is_file()

        second = find_face_landmarks(ExplodingModel(), frames_with_face(2), cache=cache, progress=False)
        assert second.frames == first.frames

    def test_directory_source(self, image_dir):
        model = ScaledCoordsModel([BBox(1, 1, 5, 5)], [[(2.0, 2.0)] * 68])
        seq = find_face_landmarks(model, image_dir, progress=False, max_frames=2)
        assert [(f.width, f.height) for f in seq] == [(30, 20), (40, 20)]

    def test_iterable_max_frames(self, two_face_model):
        seq = find_face_landmarks(two_face_model, iter(frames_with_face(5)), max_frames=2, progress=False)
        assert seq.size() == 2

    def test_existing_session_reused(self, two_face_model):
        session = SequenceFaceLandmarks(frame_scale=0.5)
        result = find_face_landmarks(two_face_model, frames_with_face(1), session=session, progress=False)
        assert result is session
        assert session.model is two_face_model


class TestWriters:
    def test_summary_counts(self, two_face_model):
        seq = SequenceFaceLandmarks(two_face_model)
        seq.add_frame(np.zeros((480, 640, 3), dtype=np.uint8))
        seq.bind_model(ScaledCoordsModel([], []))
        seq.add_frame(np.zeros((480, 640, 3), dtype=np.uint8))
        summary = sequence_summary(seq)
        assert summary["counts"] == {"frames": 2, "frames_with_faces": 1, "faces": 2}
        assert summary["faces_per_frame"] == [2, 0]
        assert summary["landmark_schemes"] == {68: 2}
        assert summary["frame_sizes"] == [[640, 480]]

    def test_write_summary_yaml(self, two_face_model, tmp_path):
        seq = find_face_landmarks(two_face_model, frames_with_face(1), progress=False)
        path = tmp_path / "out" / "summary.yaml"
        write_summary(seq, path, extra={"input": "clip.mp4"})
        data = yaml.safe_load(path.read_text(encoding="utf-8"))
        assert data["counts"]["faces"] == 2
        assert data["input"] == "clip.mp4"

    def test_write_overlays(self, two_face_model, tmp_path):
        images = frames_with_face(2)
        seq = find_face_landmarks(two_face_model, images, progress=False)
        out_dir = tmp_path / "overlays"
        assert write_overlays(seq, images, out_dir, {"draw_labels": True, "thickness": 2}) == 2
        assert sorted(p.name for p in out_dir.iterdir()) == ["frame_000000.png", "frame_000001.png"]
        rendered = cv2.imread(str(out_dir / "frame_000000.png"))
        assert rendered.any()
        # Source images are left untouched
        assert not images[0].any()


class TestCli:
    def test_loads_cached_sequence(self, two_face_model, tmp_path, capsys):
        cache = tmp_path / "seq.npz"
        find_face_landmarks(two_face_model, frames_with_face(3), cache=cache, progress=False)
        summary = tmp_path / "summary.yaml"

        code = cli.main(["-o", str(cache), "--summary", str(summary), "--no-progress", "--log-level", "WARNING"])
        assert code == 0
        assert "Frames: 3" in capsys.readouterr().out
        assert yaml.safe_load(summary.read_text(encoding="utf-8"))["counts"]["faces"] == 6

    def test_missing_model_exits_with_error(self, image_dir, capsys):
        code = cli.main([str(image_dir), "--no-progress"])
        assert code == 1
        assert "landmarks model" in capsys.readouterr().err

    def test_cached_sequence_needs_no_backend(self, two_face_model, tmp_path, monkeypatch, capsys):
        cache = tmp_path / "seq.npz"
        find_face_landmarks(two_face_model, frames_with_face(2), cache=cache, progress=False)
        monkeypatch.setattr(facemesh, "mp", None)

        code = cli.main(["-o", str(cache), "--backend", "mediapipe", "--no-progress", "--log-level", "WARNING"])
        assert code == 0
        assert "Frames: 2" in capsys.readouterr().out

    @pytest.mark.parametrize("scale", ["0", "-1"])
    def test_non_positive_scale_exits_with_error(self, image_dir, scale, capsys):
        code = cli.main([str(image_dir), "-s", scale, "--no-progress", "--log-level", "WARNING"])
        assert code == 1
        assert "frame_scale" in capsys.readouterr().err

    def test_requires_input_or_cache(self, tmp_path):
        with pytest.raises(SystemExit):
            cli.main(["-o", str(tmp_path / "missing.npz")])

    def test_overrides(self):
        args = cli.parse_args(["clip.mp4", "-l", "sp.dat", "-s", "0.5", "--labels", "--max-frames", "4"])
        overrides = cli.build_overrides(args)
        assert overrides["paths"]["input"] == "clip.mp4"
        assert overrides["model"] == {"landmarks": "sp.dat", "frame_scale": 0.5}
        assert overrides["render"] == {"draw_labels": True}
        assert overrides["runtime"] == {"max_frames": 4}

