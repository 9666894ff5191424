import functools
import os
import random
import sys

import click

from .common import CONFIG_ENV, CONFIG_KEYS, DEFAULT_CONFIG_PATH, Config, setup_logging
from .corpus import build_store, load_coverage_json, load_showmap_dir
from .errors import MinsetError
from .evaluate import dump_rows, evaluate, format_report
from .reduce import ALGORITHMS, reduce_sample
from .sampler import Sampler
from .store import JsonCorpusStore


def abort_on_error(f):
    @functools.wraps(f)
    def wrapper(*args, **kwargs):
        try:
            return f(*args, **kwargs)
        except MinsetError as e:
            raise click.ClickException(str(e)) from e
    return wrapper


def show_progress(config: Config) -> bool:
    return config.progress and sys.stderr.isatty()


@click.group(name="minset")
@click.option("--config", "-c", "config_path", type=click.Path(dir_okay=False), default=None,
              help=f"TOML configuration file (default: ${CONFIG_ENV} or ./{DEFAULT_CONFIG_PATH}).")
@click.option("--verbose", "-v", is_flag=True, default=False, help="Log debug messages.")
@click.help_option("--help", "-h")
@click.pass_context
@abort_on_error
def cli(ctx, config_path, verbose):
    config_path = config_path or os.environ.get(CONFIG_ENV, DEFAULT_CONFIG_PATH)
    config = Config.load(config_path)
    setup_logging(config.log_level, verbose)
    ctx.obj = {"config": config, "config_path": config_path}


@cli.command(name="import", help="Pack collected coverage into a corpus store.")
@click.argument("coverage", type=click.Path(exists=True))
@click.option("--output", "-o", type=click.Path(dir_okay=False, writable=True), required=True,
              help="Corpus store to write.")
@click.option("--showmap", is_flag=True, default=False,
              help="COVERAGE is a directory of afl-showmap files rather than a JSON object.")
@click.pass_context
@abort_on_error
def import_command(ctx, coverage, output, showmap):
    progress = show_progress(ctx.obj["config"])
    if showmap:
        if not os.path.isdir(coverage):
            raise click.BadParameter("--showmap expects a directory", param_hint="COVERAGE")
        traces = load_showmap_dir(coverage, progress=progress)
    else:
        if not os.path.isfile(coverage):
            raise click.BadParameter("expected a JSON coverage file; pass --showmap for a directory",
                                     param_hint="COVERAGE")
        traces = load_coverage_json(coverage)
    store = build_store(traces, progress=progress)
    JsonCorpusStore.save(store, output)
    click.echo(f"Imported {store.total_count()} traces into {output}")


@cli.command(name="reduce", help="Reduce a sample of the corpus to a minset.")
@click.argument("store_path", metavar="STORE", type=click.Path(exists=True, dir_okay=False))
@click.option("--fraction", "-f", type=float, default=1.0, show_default=True,
              help="Fraction of the corpus to sample before reducing.")
@click.option("--algorithm", "-a", type=click.Choice(ALGORITHMS), default=None,
              help="Reduction algorithm (default: reduce.algorithm from the configuration).")
@click.option("--seed", "-s", type=int, default=None, help="Seed for sampling and shuffling.")
@click.option("--output", "-o", type=click.Path(dir_okay=False), default="-",
              help="File receiving the selected trace ids, one per line.")
@click.pass_context
@abort_on_error
def reduce_command(ctx, store_path, fraction, algorithm, seed, output):
    config: Config = ctx.obj["config"]
    algorithm = algorithm or config.algorithm
    rng = random.Random(seed if seed is not None else config.seed)
    with JsonCorpusStore(store_path) as store:
        total = store.total_count()
        sample = Sampler(store, rng).sample(fraction)
    result = reduce_sample(sample, algorithm, rng)
    with click.open_file(output, 'w') as f:
        for trace_id in sorted(result.minset):
            f.write(f"{trace_id}\n")
    click.echo(f"Random sample of {len(sample)} from {total}", err=output == "-")
    click.echo(f"{algorithm}: Minset {len(result.minset)}, covers {len(result.coverage)}", err=output == "-")
    click.echo(f"Elapsed: {result.elapsed:.6f} secs", err=output == "-")


@cli.command(name="evaluate", help="Compare the reducers over samples of doubling size.")
@click.argument("store_path", metavar="STORE", type=click.Path(exists=True, dir_okay=False))
@click.option("--start-fraction", type=float, default=None,
              help="Smallest sampled fraction (default: sampling.start_fraction from the configuration).")
@click.option("--seed", "-s", type=int, default=None, help="Seed for sampling and shuffling.")
@click.option("--jobs", "-j", type=int, default=None,
              help="Parallel processes (default: evaluate.jobs from the configuration).")
@click.option("--output", "-o", type=click.Path(dir_okay=False, writable=True), default=None,
              help="Also write the results as JSON.")
@click.pass_context
@abort_on_error
def evaluate_command(ctx, store_path, start_fraction, seed, jobs, output):
    config: Config = ctx.obj["config"]
    with JsonCorpusStore(store_path) as store:
        rows = evaluate(
            store,
            start_fraction=start_fraction if start_fraction is not None else config.start_fraction,
            seed=seed if seed is not None else config.seed,
            jobs=jobs if jobs is not None else config.jobs,
            progress=show_progress(config),
        )
    for line in format_report(rows):
        click.echo(line)
    if output is not None:
        dump_rows(rows, output)


@cli.command(name="config", help="Manage configuration.")
@click.option("list_", "--list", "-l", is_flag=True, help="List all configuration options.")
@click.option("--set", "set_", "-s", type=(str, str), default=None, help="Set a configuration option.")
@click.option("--get", "-g", type=str, default=None, help="Get a configuration option.")
@click.pass_context
@abort_on_error
def config_command(ctx, list_, set_, get):
    if sum((list_, set_ is not None, get is not None)) != 1:
        raise click.UsageError("Use exactly one of --list, --set or --get.")
    config: Config = ctx.obj["config"]
    if list_:
        for key, description in CONFIG_KEYS.items():
            click.echo(f"{key}: {description}")
    elif set_ is not None:
        key, value = set_
        config = config.set(key, value)
        config.dump(ctx.obj["config_path"])
        click.echo(f"{key} := {config.get(key)}")
    else:
        click.echo(f"{get} == {config.get(get)}")


if __name__ == "__main__":
    cli()
