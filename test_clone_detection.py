"""Tests for masked distances and clone grouping."""

import numpy as np
import pytest

from metamodel_analytics.analysis.clone_detection import CloneDetector, masked_distances
from metamodel_analytics.vsm import matrix_io


FULL = np.array([
    [1.0, 1.0, 0.0],
    [1.0, 1.0, 0.0],
    [0.0, 0.0, 1.0],
])


def write_clone_inputs(folder, full, mask, names, sizes):
    for tag, matrix in (("cloneFull", full), ("cloneMask", mask)):
        with open(str(folder / f"vsm-{tag}.csv"), "w", encoding="utf-8") as f:
            for row in matrix:
                f.write(",".join(repr(float(value)) for value in row) + "\n")
    matrix_io.write_names(names, str(folder / "names.csv"))
    matrix_io.write_sizes(sizes, str(folder / "sizes.csv"))


def test_masked_distances():
    distances = masked_distances(FULL, FULL)

    assert distances[0, 1] == 0.0
    assert distances[0, 2] == 1.0
    assert distances[1, 2] == 1.0
    assert np.all(np.diag(distances) == 0.0)
    assert np.array_equal(distances, distances.T)


def test_mask_restricts_compared_columns():
    full = np.array([[2.0, 1.0, 5.0], [2.0, 3.0, 0.0]])
    mask = np.array([[1.0, 0.0, 0.0], [1.0, 0.0, 0.0]])

    assert masked_distances(full, mask)[0, 1] == 0.0
    assert masked_distances(full, np.ones((2, 3)))[0, 1] == pytest.approx(7.0 / 13.0)


def test_unmasked_or_empty_rows_are_at_distance_one():
    full = np.array([[1.0, 0.0], [0.0, 0.0], [1.0, 0.0]])
    mask = np.array([[1.0, 0.0], [0.0, 0.0], [0.0, 0.0]])

    distances = masked_distances(full, mask)

    assert distances[0, 1] == 1.0
    assert distances[1, 2] == 1.0
    assert distances[0, 2] == 0.0

    with pytest.raises(ValueError):
        masked_distances(full, np.ones((3, 3)))


def test_detect_groups_and_pairs():
    report = CloneDetector(threshold=0.3).detect(FULL, FULL, ["a", "b", "c"], [2, 2, 1])

    assert report.groups == [0, 0, 1]
    assert report.pairs == [("a", "b", 0.0)]
    assert report.clone_groups() == [["a", "b"]]
    assert report.sizes == [2, 2, 1]


def test_detect_degenerate_inputs():
    detector = CloneDetector()

    assert detector.detect(np.zeros((0, 0)), np.zeros((0, 0)), []).groups == []
    single = detector.detect(np.array([[1.0]]), np.array([[1.0]]), ["a"])
    assert single.groups == [0]
    assert single.pairs == []

    with pytest.raises(ValueError):
        detector.detect(FULL, FULL, ["a", "b"])
    with pytest.raises(ValueError):
        CloneDetector(threshold=1.5)


def test_detect_folder_writes_report(tmp_path):
    write_clone_inputs(tmp_path, FULL, FULL, ["a", "b", "c"], [2, 2, 1])
    results = tmp_path / "results"

    report = CloneDetector().detect_folder(str(tmp_path), str(results))

    assert (results / "clonePairs.csv").read_text(encoding="utf-8").splitlines() == [
        "model1,model2,distance",
        "a,b,0.0",
    ]
    assert (results / "cloneGroups.csv").read_text(encoding="utf-8").splitlines() == [
        "name,group,size",
        "a,0,2",
        "b,0,2",
        "c,1,1",
    ]
    assert report.names == ["a", "b", "c"]


def test_detect_folder_requires_inputs(tmp_path):
    with pytest.raises(FileNotFoundError):
        CloneDetector().detect_folder(str(tmp_path))
