"""End-to-end tests for the pipeline, its configuration and the CLI."""

import json
import os
import sys

import pytest

import cli
from metamodel_analytics.config.configuration_manager import (
    Configuration,
    ConfigurationManager,
    NLPConfig,
    PathsConfig,
    VSMConfig,
)
from metamodel_analytics.pipeline import ModelAnalyticsPipeline
from metamodel_analytics.preprocessing.lexical_database import FunctionLexicalDatabase


def ecore(package, classes):
    """Minimal Ecore document; ``classes`` maps class names to attribute names."""
    body = []
    for class_name, attributes in classes.items():
        body.append(f'  <eClassifiers xsi:type="ecore:EClass" name="{class_name}">')
        for attribute in attributes:
            body.append(f'    <eStructuralFeatures xsi:type="ecore:EAttribute" name="{attribute}"/>')
        body.append("  </eClassifiers>")
    return (
        '<?xml version="1.0" encoding="UTF-8"?>\n'
        '<ecore:EPackage xmlns:xsi="http://www.w3.org/2001/XMLSchema-instance" '
        f'xmlns:ecore="http://www.eclipse.org/emf/2002/Ecore" name="{package}">\n'
        + "\n".join(body) + "\n</ecore:EPackage>\n"
    )


MODELS = {
    "a_library.ecore": ecore("library", {"Book": ["title", "isbn"], "Author": ["surname"], "Loan": ["due"]}),
    "b_library.ecore": ecore("library", {"Book": ["title", "pages"], "Author": ["surname"], "Shelf": []}),
    "c_garage.ecore": ecore("garage", {"Car": ["plate", "mileage"], "Engine": ["power"], "Mechanic": []}),
    "d_garage.ecore": ecore("garage", {"Car": ["plate", "color"], "Engine": ["power"], "Wheel": ["size"]}),
}


def write_models(folder):
    os.makedirs(str(folder), exist_ok=True)
    for filename, content in MODELS.items():
        with open(os.path.join(str(folder), filename), "w", encoding="utf-8") as f:
            f.write(content)


def make_pipeline(tmp_path, **vsm_options):
    config = Configuration(
        paths=PathsConfig(
            data_folder=str(tmp_path / "models"),
            feature_folder=str(tmp_path / "features"),
            vsm_folder=str(tmp_path / "vsm"),
            results_folder=str(tmp_path / "results"),
        ),
        nlp=NLPConfig(lemmatize=False),
        vsm=VSMConfig(**vsm_options),
    )
    return ModelAnalyticsPipeline(config=config, lexical_database=FunctionLexicalDatabase(lambda a, b: 0.0))


def test_cluster_goal_separates_domains(tmp_path):
    write_models(tmp_path / "models")
    pipeline = make_pipeline(tmp_path)

    results = pipeline.run("cluster")

    assert results["fragments"] == ["a_library", "b_library", "c_garage", "d_garage"]
    labels = results["labels"]
    assert labels[0] == labels[1]
    assert labels[2] == labels[3]
    assert labels[0] != labels[2]

    vsm_folder = tmp_path / "vsm"
    assert (vsm_folder / "vsm-cluster.csv").exists()
    names = (vsm_folder / "names.csv").read_text(encoding="utf-8").splitlines()
    assert names == results["fragments"]
    assert not (vsm_folder / "clusterLabels.csv").exists()
    label_lines = (tmp_path / "results" / "clusterLabels.csv").read_text(encoding="utf-8").splitlines()
    assert label_lines == ["label"] + [str(label) for label in labels]


def test_clone_goal_writes_both_matrices(tmp_path):
    write_models(tmp_path / "models")
    pipeline = make_pipeline(tmp_path)

    results = pipeline.run("clone")

    assert sorted(results["vsm"]) == ["cloneFull", "cloneMask"]
    vsm_folder = tmp_path / "vsm"
    for name in ("vsm-cloneFull.csv", "vsm-cloneMask.csv", "sizes.csv", "names.csv"):
        assert (vsm_folder / name).exists()

    sizes = [int(value) for value in (vsm_folder / "sizes.csv").read_text(encoding="utf-8").split()]
    assert sizes == [8, 7, 7, 8]

    mask = results["vsm"]["cloneMask"].matrix.toarray()
    assert set(mask.ravel().tolist()) <= {0.0, 1.0}
    full = results["vsm"]["cloneFull"]
    assert full.shape == results["vsm"]["cloneMask"].shape

    report = results["clones"]
    assert report.names == ["a_library", "b_library", "c_garage", "d_garage"]
    assert report.sizes == [8, 7, 7, 8]
    assert report.distances[0, 2] == 1.0
    assert report.distances[0, 1] < 1.0
    assert report.distances[2, 3] < 1.0
    results_folder = tmp_path / "results"
    assert (results_folder / "clonePairs.csv").read_text(encoding="utf-8").splitlines()[0] == "model1,model2,distance"
    group_lines = (results_folder / "cloneGroups.csv").read_text(encoding="utf-8").splitlines()
    assert group_lines[0] == "name,group,size"
    assert [line.split(",")[0] for line in group_lines[1:]] == report.names


def test_clone_parameters():
    pipeline = ModelAnalyticsPipeline(config=Configuration())

    unigram = pipeline.clone_parameters("name", "unigram")
    bigram = pipeline.clone_parameters("name", "bigram")

    assert unigram["cloneFull"].context_match == "strict"
    assert bigram["cloneFull"].context_match == "linear"
    assert unigram["cloneMask"].vsm_mode == "linear"
    assert unigram["cloneMask"].weight == "raw"
    assert not unigram["cloneMask"].uses_synonyms
    assert pipeline.clustering_parameters("name", "unigram").idf == "norm-log"


def test_run_task_publishes_predictions(tmp_path):
    root = tmp_path / "task"
    write_models(root / "xmi")
    (root / "X_attrs.json").write_text(json.dumps({"xmi_folder": "xmi"}), encoding="utf-8")
    hyper = tmp_path / "hyper.json"
    hyper.write_text(json.dumps({"hyper": {"n_clusters": 2}}), encoding="utf-8")
    pipeline = make_pipeline(tmp_path, n_clusters=3)

    path = pipeline.run_task(str(root), str(hyper))

    assert path == str(root / "y_pred.json")
    assert pipeline.config.vsm.n_clusters == 2
    with open(path, "r", encoding="utf-8") as f:
        predictions = json.load(f)
    assert len(predictions) == 4
    assert predictions[0] == predictions[1] != predictions[2] == predictions[3]


def test_run_task_requires_descriptor(tmp_path):
    with pytest.raises(RuntimeError):
        make_pipeline(tmp_path).run_task(str(tmp_path))


def test_missing_data_folder_fails(tmp_path):
    pipeline = make_pipeline(tmp_path)

    with pytest.raises(RuntimeError):
        pipeline.run("cluster")


def test_unknown_goal_is_rejected(tmp_path):
    with pytest.raises(ValueError):
        make_pipeline(tmp_path).run("rank")


def test_pipeline_status(tmp_path):
    write_models(tmp_path / "models")
    pipeline = make_pipeline(tmp_path)
    assert not pipeline.get_pipeline_status()["initialized"]

    pipeline.extract_features()

    status = pipeline.get_pipeline_status()
    assert status["initialized"]
    assert status["components"]["builder"]
    assert status["configuration"]["extraction"] == "model-name-unigram"


def test_configuration_from_yaml(tmp_path):
    path = tmp_path / "config.yaml"
    path.write_text(
        "extraction:\n  scope: fragment\n  structure: bigram\n  min_size: 3\n"
        "vsm:\n  goal: clone\n  n_clusters: 4\n",
        encoding="utf-8",
    )

    manager = ConfigurationManager(str(path))

    config = manager.get_config()
    assert config.extraction.scope == "fragment"
    assert config.extraction.structure == "bigram"
    assert config.extraction.min_size == 3
    assert config.vsm.goal == "clone"
    assert config.vsm.n_clusters == 4
    assert config.nlp.lemmatizer == "nltk"
    assert manager.validate_config()


def test_configuration_save_and_reload(tmp_path):
    manager = ConfigurationManager(str(tmp_path / "absent.yaml"))
    manager.config.vsm.n_clusters = 7
    manager.config.extraction.unit = "name-type"

    for filename in ("saved.yaml", "saved.json"):
        manager.save_to_file(str(tmp_path / filename))
        reloaded = ConfigurationManager(str(tmp_path / filename))
        assert reloaded.config.vsm.n_clusters == 7
        assert reloaded.config.extraction.unit == "name-type"

    with pytest.raises(ValueError):
        manager.save_to_file(str(tmp_path / "saved.toml"))

    manager.reset_to_defaults()
    assert manager.config.vsm.n_clusters == 2
    assert "Clusters: 2" in manager.get_summary()


def test_configuration_validation_collects_errors(tmp_path):
    manager = ConfigurationManager(str(tmp_path / "absent.yaml"))
    manager.config.extraction.scope = "project"
    manager.config.vsm.n_clusters = 0

    with pytest.raises(ValueError) as excinfo:
        manager.validate_config()
    assert "scope" in str(excinfo.value)
    assert "Cluster count" in str(excinfo.value)


def test_environment_overrides_folders(tmp_path, monkeypatch):
    monkeypatch.setenv("METAMODEL_VSM_FOLDER", str(tmp_path / "env-vsm"))

    manager = ConfigurationManager(str(tmp_path / "absent.yaml"))

    assert manager.config.paths.vsm_folder == str(tmp_path / "env-vsm")


def test_cli_extract_only(tmp_path, monkeypatch):
    write_models(tmp_path / "models")
    monkeypatch.setattr(sys, "argv", [
        "cli.py",
        "--config", str(tmp_path / "absent.yaml"),
        "--data", str(tmp_path / "models"),
        "--features", str(tmp_path / "features"),
        "--scope", "fragment",
        "--extract-only",
        "--log", "WARNING",
    ])

    assert cli.main() == 0
    assert sorted(os.listdir(str(tmp_path / "features"))) == [
        "a_library-library.features",
        "b_library-library.features",
        "c_garage-garage.features",
        "d_garage-garage.features",
    ]


def test_cli_reports_missing_input(tmp_path, monkeypatch):
    monkeypatch.setattr(sys, "argv", [
        "cli.py",
        "--config", str(tmp_path / "absent.yaml"),
        "--data", str(tmp_path / "missing"),
        "--features", str(tmp_path / "features"),
        "--extract-only",
    ])

    assert cli.main() == 1


def test_cli_build_with_numeric_params(tmp_path, monkeypatch):
    features = tmp_path / "features"
    features.mkdir()
    (features / "A.features").write_text("EClass:book\nEAttribute:title\n", encoding="utf-8")
    (features / "B.features").write_text("EReference:title\n", encoding="utf-8")
    config = tmp_path / "config.yaml"
    config.write_text("nlp:\n  lemmatize: false\n", encoding="utf-8")
    argv = [
        "cli.py",
        "--config", str(config),
        "--features", str(features),
        "--vsm", str(tmp_path / "vsm"),
        "--build", "penalties",
    ]

    monkeypatch.setattr(sys, "argv", argv + ["--params", "type_match=relaxed,relaxed_type_penalty=0.8"])
    assert cli.main() == 0
    assert (tmp_path / "vsm" / "vsm-penalties.csv").read_text(encoding="utf-8") == "1.0,1.0,0.8\n0.0,0.8,1.0\n"

    monkeypatch.setattr(sys, "argv", argv + ["--params", "relaxed_type_penalty=abc"])
    assert cli.main() == 1

    monkeypatch.setattr(sys, "argv", argv + ["--params", "relaxed_type_penalty"])
    assert cli.main() == 1
