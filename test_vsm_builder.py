"""End-to-end tests for document matrix construction."""

import math
import os

import numpy as np
import pytest

from metamodel_analytics.comparison.feature_comparator import FeatureComparator
from metamodel_analytics.config.parameters import Parameters
from metamodel_analytics.core.models import NGram, NTree, SimpleType, TypedFeature
from metamodel_analytics.extraction.serialization import format_feature
from metamodel_analytics.preprocessing.nlp_preprocessor import NLPTables, SynonymTable
from metamodel_analytics.vsm import matrix_io
from metamodel_analytics.vsm.vsm_builder import VSMBuilder, Vocabulary
from metamodel_analytics.vsm.weighting import TypeWeighter, compute_idf


def write_corpus(folder, corpus):
    os.makedirs(str(folder), exist_ok=True)
    for name, lines in corpus.items():
        with open(os.path.join(str(folder), f"{name}.features"), "w", encoding="utf-8") as f:
            for line in lines:
                f.write(line + "\n")


def make_builder(tmp_path, corpus):
    write_corpus(tmp_path / "features", corpus)
    return VSMBuilder(str(tmp_path / "features"), str(tmp_path / "vsm"))


def read_text(path):
    with open(path, "r", encoding="utf-8") as f:
        return f.read()


def synonym_tables(names, pair, score):
    return NLPTables(
        token_table={name: [name] for name in names},
        synonym_table=SynonymTable(0.6, {pair: score}),
    )


def test_identical_models(tmp_path):
    builder = make_builder(tmp_path, {"A": ["EClass:book"], "B": ["EClass:book"]})

    result = builder.build(Parameters(), "cluster")
    builder.write_names(result)

    assert result.shape == (2, 1)
    assert read_text(result.output_path) == "1.0\n1.0\n"
    assert read_text(str(tmp_path / "vsm" / "names.csv")) == "A\nB\n"
    assert result.row_names == ["A", "B"]


def test_synonym_aware_match(tmp_path):
    builder = make_builder(tmp_path, {"A": ["EClass:book"], "B": ["EClass:publication"]})
    tables = synonym_tables(["book", "publication"], ("book", "publication"), 0.85)

    result = builder.build(Parameters(synonym="full", synonym_threshold=80), "cluster", tables)

    np.testing.assert_allclose(result.matrix.toarray(), [[1.0, 0.85], [0.85, 1.0]])
    assert read_text(result.output_path) == "1.0,0.85\n0.85,1.0\n"


def test_idf_downweights_common_columns(tmp_path):
    builder = make_builder(tmp_path, {
        "A": ["EClass:common"],
        "B": ["EClass:common"],
        "C": ["EClass:common", "EClass:rare"],
    })

    dense = builder.build(Parameters(idf="log"), "idf").matrix.toarray()

    assert dense.shape == (3, 2)
    assert np.all(dense[:, 0] == 0.0)
    assert dense[0, 1] == 0.0
    assert dense[1, 1] == 0.0
    assert dense[2, 1] == pytest.approx(math.log10(3))


def test_linear_and_quadratic_modes_diverge(tmp_path):
    builder = make_builder(tmp_path, {"M": ["EClass:apple", "EClass:apples"]})
    tables = synonym_tables(["apple", "apples"], ("apple", "apples"), 0.9)
    params = Parameters(synonym="full", synonym_threshold=80)

    quadratic = builder.build(params, "quadratic", tables).matrix.toarray()
    linear = builder.build(params.with_options(vsm_mode="linear"), "linear", tables).matrix.toarray()

    np.testing.assert_allclose(quadratic, [[1.9, 1.9]])
    np.testing.assert_allclose(linear, [[1.0, 1.0]])
    assert quadratic[0, 1] != linear[0, 1]


def test_w1_weight_scheme(tmp_path):
    builder = make_builder(tmp_path, {"M": ["EPackage:lib", "EParameter:x"]})

    result = builder.build(Parameters(weight="w1"), "weighted")

    assert read_text(result.output_path) == "1.0,0.1\n"


def test_linear_mode_counts_multiplicities(tmp_path):
    builder = make_builder(tmp_path, {
        "A": ["EClass:book", "EClass:book", "EAttribute:title"],
        "B": ["EAttribute:title"],
    })

    result = builder.build(Parameters(vsm_mode="linear"), "mask")
    assert result.matrix.toarray().tolist() == [[2.0, 1.0], [0.0, 1.0]]

    capped = builder.build(Parameters(vsm_mode="linear", frequency="max"), "mask")
    assert capped.matrix.toarray().tolist() == [[1.0, 1.0], [0.0, 1.0]]


def test_max_frequency_in_quadratic_mode(tmp_path):
    builder = make_builder(tmp_path, {"A": ["EClass:book", "EClass:book"]})

    assert builder.build(Parameters(), "sum").matrix.toarray().tolist() == [[2.0]]
    assert builder.build(Parameters(frequency="max"), "max").matrix.toarray().tolist() == [[1.0]]


def test_builds_are_deterministic(tmp_path):
    corpus = {
        "A": ["EClass:book contains EAttribute:title", "EClass:book has-supertype EClass:item"],
        "B": ["EClass:publication contains EReference:author", "EClass:book contains EAttribute:isbn"],
        "C": ["EPackage:shop contains EClass:book"],
    }
    write_corpus(tmp_path / "features", corpus)
    params = Parameters(structure="bigram", weight="w2", idf="norm-log", type_match="relaxed",
                        context_match="linear", synonym="full", synonym_threshold=60)
    tables = synonym_tables(["book", "publication", "title", "item", "author", "isbn", "shop"],
                            ("book", "publication"), 0.85)

    first = VSMBuilder(str(tmp_path / "features"), str(tmp_path / "one"))
    second = VSMBuilder(str(tmp_path / "features"), str(tmp_path / "two"))
    a = first.build(params, "run", tables)
    b = second.build(params, "run", tables)
    first.write_names(a)
    second.write_names(b)
    first.write_sizes(a)
    second.write_sizes(b)

    for name in ("vsm-run.csv", "names.csv", "sizes.csv"):
        with open(str(tmp_path / "one" / name), "rb") as f1, open(str(tmp_path / "two" / name), "rb") as f2:
            assert f1.read() == f2.read()
    assert np.all(a.matrix.toarray() >= 0.0)


def test_pruned_fill_matches_all_pairs(tmp_path):
    corpus = {
        "A": ["EClass:book", "EAttribute:title", "EReference:title", "EDataType:book"],
        "B": ["EEnum:book", "EAttribute:isbn", "EOperation:print"],
    }
    builder = make_builder(tmp_path, corpus)
    params = Parameters(type_match="relaxed")
    names, all_features, vocabulary = builder.ingest()

    comparator = FeatureComparator(params)
    comparator.load_up_cache(None)
    pruned = builder.fill_quadratic(all_features, vocabulary, comparator).toarray()

    expected = np.zeros((len(all_features), len(vocabulary)))
    for i, features in enumerate(all_features):
        for j, column in enumerate(vocabulary):
            for feature in features:
                expected[i, j] += comparator.compare(feature, column)

    assert pruned.tolist() == expected.tolist()


def test_tree_structure_build(tmp_path):
    title = NTree(NGram((SimpleType("contains"), TypedFeature("EAttribute", "title"))))
    book = NTree(NGram((TypedFeature("EClass", "book"),)), (title,))
    bare = NTree(NGram((TypedFeature("EClass", "book"),)))
    builder = make_builder(tmp_path, {"A": [format_feature(book)], "B": [format_feature(bare)]})

    result = builder.build(Parameters(structure="ntree"), "trees")

    np.testing.assert_allclose(result.matrix.toarray(), [[1.0, 0.5], [0.5, 1.0]])
    assert result.vocabulary == [book, bare]


def test_empty_corpus_writes_empty_files(tmp_path):
    builder = make_builder(tmp_path, {})

    result = builder.build(Parameters(), "cluster")
    builder.write_names(result)
    builder.write_sizes(result)

    assert result.shape == (0, 0)
    assert read_text(result.output_path) == ""
    assert read_text(str(tmp_path / "vsm" / "names.csv")) == ""
    assert read_text(str(tmp_path / "vsm" / "sizes.csv")) == ""


def test_empty_row_and_bad_lines(tmp_path):
    builder = make_builder(tmp_path, {"A": ["EClass:book", ":broken"], "B": []})

    result = builder.build(Parameters(), "cluster")
    builder.write_sizes(result)

    assert read_text(result.output_path) == "1.0\n0.0\n"
    assert read_text(str(tmp_path / "vsm" / "sizes.csv")) == "1\n0\n"
    assert matrix_io.read_sizes(str(tmp_path / "vsm" / "sizes.csv")) == [1, 0]


def test_undecodable_and_malformed_tree_lines_do_not_abort_build(tmp_path):
    os.makedirs(str(tmp_path / "plain"))
    (tmp_path / "plain" / "A.features").write_bytes(b"EClass:book\nEClass:\xff\xfe\n")
    (tmp_path / "plain" / "B.features").write_text("EClass:book\n", encoding="utf-8")
    os.makedirs(str(tmp_path / "trees"))
    (tmp_path / "trees" / "A.features").write_text(
        '{"node":"EClass:book","children":[]}\n{"node": 5}\n', encoding="utf-8")
    (tmp_path / "trees" / "B.features").write_text('{"node": null}\n', encoding="utf-8")

    plain = VSMBuilder(str(tmp_path / "plain"), str(tmp_path / "vsm")).build(Parameters(), "plain")
    trees = VSMBuilder(str(tmp_path / "trees"), str(tmp_path / "vsm")).build(
        Parameters(structure="ntree"), "trees")

    assert plain.matrix.toarray().tolist() == [[1.0], [1.0]]
    assert trees.matrix.toarray().tolist() == [[1.0], [0.0]]


def test_missing_feature_folder(tmp_path):
    builder = VSMBuilder(str(tmp_path / "missing"), str(tmp_path / "vsm"))

    with pytest.raises(FileNotFoundError):
        builder.build(Parameters(), "cluster")


def test_vocabulary_keeps_first_occurrence_order():
    book = NGram((TypedFeature("EClass", "book"),))
    title = NGram((TypedFeature("EAttribute", "title"),))

    vocabulary = Vocabulary([book, title, NGram([TypedFeature("EClass", "book")])])

    assert list(vocabulary) == [book, title]
    assert vocabulary.index(title) == 1
    assert vocabulary.index(NGram((TypedFeature("EClass", "isbn"),))) is None


def test_type_weights():
    weighter = TypeWeighter("w1")
    contains = SimpleType("contains")

    assert weighter.feature_weight(NGram((TypedFeature("EParameter", "x"),))) == 0.1
    assert weighter.feature_weight(NGram((TypedFeature("EClass", "a"), SimpleType("has-supertype"),
                                          TypedFeature("EClass", "b")))) == pytest.approx(0.6)
    assert weighter.feature_weight(NGram((TypedFeature("EClass", "a"), contains,
                                          TypedFeature("EAttribute", "b")))) == pytest.approx(0.75)

    tree = NTree(NGram((TypedFeature("EClass", "a"),)), (
        NTree(NGram((contains, TypedFeature("EAttribute", "b")))),
        NTree(NGram((SimpleType("throws"), TypedFeature("EClass", "c")))),
    ))
    assert weighter.feature_weight(tree) == pytest.approx((1.0 + 0.5 + 0.1) / 3)
    assert weighter.feature_weight(NGram((TypedFeature("EWidget", "x"),))) == 1.0

    with pytest.raises(ValueError):
        TypeWeighter("w9")


def test_idf_is_monotonic_in_document_frequency():
    for mode in ("log", "norm-log"):
        idf = compute_idf(np.array([1, 2, 3, 4]), 4, mode)
        assert all(idf[k] >= idf[k + 1] for k in range(3))

    assert compute_idf(np.array([4]), 4, "log")[0] == 0.0
    assert compute_idf(np.array([4]), 4, "norm-log")[0] == pytest.approx(math.log10(2))
    assert compute_idf(np.array([0]), 4, "log")[0] == 0.0


def test_matrix_csv_round_trip(tmp_path):
    path = str(tmp_path / "m.csv")
    with open(path, "w", encoding="utf-8") as f:
        f.write("1.0,0.5\n0.0,2.25\n")

    matrix = matrix_io.read_matrix_csv(path)

    assert matrix.tolist() == [[1.0, 0.5], [0.0, 2.25]]
