import argparse
import logging

from amazonia_esn.config import PipelineConfig, load_config
from benchmarks.systems.amazonia import run_pipeline
from benchmarks.systems.sine import run_sine_benchmark


def main(argv=None):
    parser = argparse.ArgumentParser(description="Echo State Network ensembles for the Amazonian season cycle")
    parser.add_argument("experiment", choices=["pipeline", "sine"], nargs="?", default="pipeline")
    parser.add_argument("--config", help="YAML pipeline configuration")
    parser.add_argument("--log-level", default="INFO")
    args = parser.parse_args(argv)

    logging.basicConfig(level=args.log_level.upper(), format="%(asctime)s %(name)s %(levelname)s %(message)s")
    config = load_config(args.config) if args.config else PipelineConfig()

    if args.experiment == "sine":
        print("Running synthetic sine-wave benchmark...")
        result = run_sine_benchmark(figures_dir=config.figures_dir, results_dir=config.results_dir)
        print(f"Validation SSE (single reservoir): {result['val_sse_single']:.6f}")
        print(f"Test SSE ensemble / worst member: {result['test_sse_ensemble']:.6f} / "
              f"{result['test_sse_worst_member']:.6f}")
        return result

    print("Starting ESN ensemble pipeline")
    summary = run_pipeline(config)
    print(f"\nPipeline completed. Results saved in {config.results_dir}/ and plots in {config.figures_dir}/.")
    return summary


if __name__ == "__main__":
    main()
