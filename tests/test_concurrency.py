"""Parallel batch extraction -- ordering, progress and partial failures."""

import threading

from exifsafe.classifier import Classifier, ClassifierConfig, HIGH
from exifsafe.extractor import collect_image_files, extract_batch, extract_metadata
from tests.conftest import build_exif_jpeg, camera_tiff, pillow_jpeg


def _write_images(tmp_path, n=12):
    paths = []
    for i in range(n):
        p = tmp_path / f'img_{i:02d}.jpg'
        if i % 3 == 0:
            p.write_bytes(pillow_jpeg(16 + i, 16))
        else:
            p.write_bytes(build_exif_jpeg(camera_tiff(with_gps=i % 2 == 0)))
        paths.append(p)
    return paths


class TestParallelBatch:

    def test_matches_sequential(self, tmp_path):
        paths = _write_images(tmp_path)
        sequential = extract_batch(paths)
        parallel = extract_batch(paths, workers=4)
        assert [r.source_path for r in parallel] == paths
        assert [r.to_dict() for r in parallel] == [r.to_dict() for r in sequential]

    def test_progress_called_once_per_file(self, tmp_path):
        paths = _write_images(tmp_path, n=8)
        seen = []
        lock = threading.Lock()

        def progress(i, total, filepath, result):
            with lock:
                seen.append((i, total, filepath))

        extract_batch(paths, workers=4, progress_callback=progress)
        assert sorted(c[0] for c in seen) == list(range(1, 9))
        assert {c[1] for c in seen} == {8}
        assert {c[2] for c in seen} == set(paths)

    def test_partial_failures(self, tmp_path):
        paths = _write_images(tmp_path, n=4)
        paths.insert(2, tmp_path / 'missing.jpg')
        results = extract_batch(paths, workers=3)
        assert len(results) == 5
        assert results[2].errors
        assert results[2].source_path == paths[2]
        assert all(not r.errors for i, r in enumerate(results) if i != 2)

    def test_shared_classifier(self, tmp_path):
        config = ClassifierConfig.default()
        config.high_tags.append('Make')
        classifier = Classifier(config)
        paths = _write_images(tmp_path, n=6)
        results = extract_batch(paths, workers=3, classifier=classifier)
        for r in results:
            makes = [t for t in r.tags if t.tag == 'Make']
            assert all(t.category == HIGH for t in makes)

    def test_directory_end_to_end(self, tmp_image_dir):
        files = collect_image_files(tmp_image_dir)
        results = extract_batch(files, workers=2)
        assert [r.source_path for r in results] == files


def test_threads_share_nothing():
    """Concurrent decoding of the same buffer gives identical results."""
    data = build_exif_jpeg(camera_tiff())
    expected = extract_metadata(data, 'image/jpeg').to_dict()
    outputs = []
    lock = threading.Lock()

    def worker():
        for _ in range(20):
            d = extract_metadata(data, 'image/jpeg').to_dict()
            with lock:
                outputs.append(d)

    threads = [threading.Thread(target=worker) for _ in range(4)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()
    assert len(outputs) == 80
    assert all(o == expected for o in outputs)
