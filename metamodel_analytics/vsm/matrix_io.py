"""CSV emit and read-back of document matrices and their sibling files."""

import json
import os
import logging
from typing import Iterable, List

import numpy as np
from scipy import sparse


logger = logging.getLogger(__name__)


def format_value(value: float) -> str:
    return repr(float(value))


def write_matrix_csv(matrix: sparse.spmatrix, path: str) -> None:
    """
    Write a dense CSV rendition of the matrix, one row per line.

    Raises:
        OSError: If the file cannot be written.
    """
    matrix = sparse.csr_matrix(matrix)
    with open(path, 'w', encoding='utf-8', newline='') as f:
        for i in range(matrix.shape[0]):
            row = matrix.getrow(i).toarray().ravel()
            f.write(",".join(format_value(value) for value in row))
            f.write("\n")
    logger.info(f"Matrix {matrix.shape[0]}x{matrix.shape[1]} written to {path}")


def read_matrix_csv(path: str) -> np.ndarray:
    rows: List[List[float]] = []
    with open(path, 'r', encoding='utf-8') as f:
        for line in f:
            line = line.rstrip("\n")
            rows.append([float(value) for value in line.split(",")] if line else [])

    if not rows:
        return np.zeros((0, 0))
    width = max(len(row) for row in rows)
    if any(len(row) != width for row in rows):
        raise ValueError(f"Ragged matrix in {path}")
    return np.array(rows, dtype=float).reshape(len(rows), width)


def write_lines(values: Iterable, path: str) -> None:
    with open(path, 'w', encoding='utf-8', newline='') as f:
        for value in values:
            f.write(f"{value}\n")


def read_lines(path: str) -> List[str]:
    with open(path, 'r', encoding='utf-8') as f:
        return [line.rstrip("\n") for line in f if line.strip()]


def write_names(names: List[str], path: str) -> None:
    """Row labels, one model name per line."""
    write_lines(names, path)


def write_sizes(sizes: List[int], path: str) -> None:
    """Row feature counts, one per line."""
    write_lines((int(size) for size in sizes), path)


def read_names(path: str) -> List[str]:
    return read_lines(path)


def read_sizes(path: str) -> List[int]:
    return [int(value) for value in read_lines(path)]


def write_cluster_labels(labels: Iterable[int], path: str) -> None:
    write_lines(["label"] + [int(label) for label in labels], path)


def read_cluster_labels(path: str) -> List[int]:
    lines = read_lines(path)
    if lines and lines[0] == "label":
        lines = lines[1:]
    return [int(float(value)) for value in lines]


def write_clone_pairs(pairs: Iterable, path: str) -> None:
    """``model1,model2,distance`` rows of the detected clone pairs."""
    write_lines(["model1,model2,distance"] + [f"{a},{b},{format_value(distance)}" for a, b, distance in pairs], path)


def write_clone_groups(names: List[str], groups: List[int], sizes: List[int], path: str) -> None:
    """``name,group,size`` row per model."""
    rows = [f"{name},{int(group)},{int(size)}" for name, group, size in zip(names, groups, sizes)]
    write_lines(["name,group,size"] + rows, path)


def write_predictions(labels: List[int], path: str) -> None:
    """JSON array of cluster labels."""
    os.makedirs(os.path.dirname(os.path.abspath(path)), exist_ok=True)
    with open(path, 'w', encoding='utf-8') as f:
        json.dump([int(label) for label in labels], f)
