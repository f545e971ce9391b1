import argparse
import logging
import sys

from metamodel_analytics.config.parameters import Parameters
from metamodel_analytics.core import constants
from metamodel_analytics.pipeline import ModelAnalyticsPipeline


def main():
    parser = argparse.ArgumentParser(description="Metamodel Analytics CLI")
    parser.add_argument("-c", "--config", type=str, help="Path of the YAML/JSON configuration file (optional)")
    parser.add_argument("--goal", choices=constants.GOALS, help="Run the full pipeline for clustering or clone detection")
    parser.add_argument("--task", type=str, help="Task root holding X_attrs.json; publishes y_pred.json there")
    parser.add_argument("--hyper", type=str, help="Hyperparameter JSON file with hyper.n_clusters")
    parser.add_argument("--data", type=str, help="Folder of model files")
    parser.add_argument("--features", type=str, help="Folder of feature files")
    parser.add_argument("--vsm", type=str, help="Output folder of the vector space models")
    parser.add_argument("--results", type=str, help="Output folder of cluster labels and clone reports")
    parser.add_argument("--scope", choices=constants.SCOPES, help="Fragment scope")
    parser.add_argument("--unit", choices=constants.UNITS, help="Feature unit")
    parser.add_argument("--structure", choices=constants.STRUCTURES, help="Feature structure")
    parser.add_argument("--min-size", type=int, help="Minimum effective fragment size")
    parser.add_argument("--extract-only", action="store_true", help="Only extract feature files")
    parser.add_argument("--build", type=str, metavar="TAG",
                        help="Build one matrix vsm-TAG.csv from existing feature files using --params")
    parser.add_argument("--params", type=str, default="",
                        help="Comma separated option=value pairs for --build, e.g. weight=w1,idf=log")
    parser.add_argument("--log", type=str, default="INFO", help="Log level (DEBUG, INFO, WARNING, ERROR) or a .log file path")
    args = parser.parse_args()

    if args.log and args.log.lower().endswith('.log'):
        logging.basicConfig(
            level=logging.INFO,
            format="%(levelname)s:%(name)s:%(message)s",
            handlers=[
                logging.FileHandler(args.log, mode='w', encoding='utf-8'),
                logging.StreamHandler()
            ]
        )
    else:
        logging.basicConfig(level=getattr(logging, args.log.upper(), logging.INFO))

    logger = logging.getLogger("metamodel_analytics.cli")

    try:
        pipeline = ModelAnalyticsPipeline(config_path=args.config)
    except ValueError as e:
        logger.error(f"Invalid configuration: {e}")
        return 1

    config = pipeline.config
    if args.data:
        config.paths.data_folder = args.data
    if args.features:
        config.paths.feature_folder = args.features
    if args.vsm:
        config.paths.vsm_folder = args.vsm
    if args.results:
        config.paths.results_folder = args.results
    if args.scope:
        config.extraction.scope = args.scope
    if args.unit:
        config.extraction.unit = args.unit
    if args.structure:
        config.extraction.structure = args.structure
    if args.min_size is not None:
        config.extraction.min_size = args.min_size

    try:
        if args.task:
            path = pipeline.run_task(args.task, args.hyper)
            print(f"Predictions written to {path}")
        elif args.extract_only:
            written = pipeline.extract_features()
            print(f"{len(written)} feature files written to {config.paths.feature_folder}")
        elif args.build:
            options = dict(pair.split("=", 1) for pair in args.params.split(",") if pair)
            options.setdefault("scope", config.extraction.scope)
            options.setdefault("unit", config.extraction.unit)
            options.setdefault("structure", config.extraction.structure)
            params = Parameters.from_dict(options)
            tables = pipeline.precompute_nlp(params.structure, params.synonym_threshold if params.uses_synonyms else None)
            result = pipeline.builder.build(params, args.build, tables)
            pipeline.builder.write_names(result)
            print(f"Matrix {result.shape[0]}x{result.shape[1]} written to {result.output_path}")
        else:
            results = pipeline.run(args.goal)
            for tag, vsm in results['vsm'].items():
                print(f"{tag}: {vsm.shape[0]}x{vsm.shape[1]} -> {vsm.output_path}")
            if 'clones' in results:
                report = results['clones']
                print(f"{len(report.pairs)} clone pairs, {len(report.clone_groups())} clone groups "
                      f"written to {config.paths.results_folder}")
    except (RuntimeError, OSError, ValueError) as e:
        logger.error(f"Run failed: {e}")
        return 1

    return 0


if __name__ == "__main__":
    sys.exit(main())
