import argparse
import logging
import random
import sys
from typing import List, Optional

from .campaign import SqlDiffCampaign
from .clustering import ClusteringEngine
from .config import DiffTestConfig, load_config
from .core import OperationDependencyGraph
from .database import ShadowDatabase
from .exceptions import SqlDiffError
from .parser import OpenAPIParser
from .schema import ShadowSchema
from .sorter import DiffBasedGraphSorter


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog='sqldiff',
        description="Differential testing of REST APIs against a relational shadow database"
    )
    parser.add_argument('--config', '-c', help='YAML or JSON config file')
    parser.add_argument('--log-level', dest='log_level', help='Logging level (default: INFO)')
    parser.add_argument('--seed', type=int, help='Random seed for reproducible sequences')

    subparsers = parser.add_subparsers(dest='command', required=True)

    graph = subparsers.add_parser('graph', help='Build the dependency graph and export it')
    graph.add_argument('spec_path', nargs='?', help='OpenAPI contract (YAML or JSON)')
    graph.add_argument('--output-dir', '-o', dest='output_dir', help='Export directory (default: ./output)')
    graph.add_argument('--session-name', dest='session_name', help='Export sub-directory (default: session)')

    sequence = subparsers.add_parser('sequence', help='Print one sorted test sequence')
    sequence.add_argument('spec_path', nargs='?', help='OpenAPI contract (YAML or JSON)')
    sequence.add_argument('--max-depth', dest='max_depth', type=int, help='DFS depth limit (default: 20)')

    schema = subparsers.add_parser('schema', help='Print the shadow table DDL')
    schema.add_argument('spec_path', nargs='?', help='OpenAPI contract (YAML or JSON)')
    schema.add_argument('--sequence', action='store_true', help='Derive from one sorted sequence only')
    schema.add_argument('--dialect', default='mysql', choices=['mysql', 'sqlite'], help='DDL dialect')
    schema.add_argument('--cut-height', dest='cut_height', type=float, help='Clustering cut height')

    run = subparsers.add_parser('run', help='Run the differential testing campaign')
    run.add_argument('spec_path', nargs='?', help='OpenAPI contract (YAML or JSON)')
    run.add_argument('--base-url', dest='base_url', help='Base URL of the API under test')
    run.add_argument('--database-url', dest='database_url', help='SQLAlchemy URL of the shadow database')
    run.add_argument('--iterations', '-n', type=int, help='Number of iterations (default: 30)')
    run.add_argument('--sequences', dest='sequences_per_operation', type=int,
                     help='Nominal sequences per operation (default: 20)')
    run.add_argument('--keep-tables', dest='drop_tables', action='store_false', default=None,
                     help='Keep shadow tables after each iteration')
    return parser


def resolve_config(args: argparse.Namespace) -> DiffTestConfig:
    config = load_config(args.config) if args.config else DiffTestConfig()
    config.update(vars(args))
    if not config.spec_path:
        raise SqlDiffError("No OpenAPI contract given (positional spec_path or 'spec_path' in config)")
    return config


def load_graph(config: DiffTestConfig, export: bool = False) -> OperationDependencyGraph:
    parser = OpenAPIParser(config.spec_path)
    operations = parser.parse()
    if not config.api_name:
        config.api_name = parser.api_name
    return OperationDependencyGraph(operations, config.odg_path if export else None)


def cmd_graph(config: DiffTestConfig):
    graph = load_graph(config, export=True)
    print(f"✓ Graph built. Operations: {len(graph)} Dependencies: {len(graph.dependencies)}")
    print(f"  Exported to {config.odg_path}")
    print()
    print(f"  {'OPERATION':<50} {'IN':>4} {'OUT':>4}")
    for node in graph.all_nodes():
        print(f"  {node.key:<50} {graph.in_degree(node):>4} {graph.out_degree(node):>4}")


def cmd_sequence(config: DiffTestConfig):
    graph = load_graph(config)
    sorter = DiffBasedGraphSorter(graph, random.Random(config.seed), max_depth=config.max_depth,
                                  cleanup_deletes=config.cleanup_deletes)
    for index, operation in enumerate(sorter.queue, 1):
        print(f"  {index:>3}. {operation}")


def cmd_schema(config: DiffTestConfig, from_sequence: bool, dialect: str):
    graph = load_graph(config)
    engine = ClusteringEngine(config.cut_height)
    if from_sequence:
        sorter = DiffBasedGraphSorter(graph, random.Random(config.seed), max_depth=config.max_depth,
                                      cleanup_deletes=config.cleanup_deletes)
        schema = ShadowSchema.from_sequence(list(sorter.queue), config.api_name, engine=engine)
    else:
        schema = ShadowSchema.from_graph(graph, config.api_name, engine=engine)
    print(schema.create_table_sql(dialect) + ';')


def cmd_run(config: DiffTestConfig):
    graph = load_graph(config, export=True)
    print(f"Running {config.iterations} iteration(s) against {config.base_url}")
    with ShadowDatabase(config.database_url) as database:
        report = SqlDiffCampaign(graph, database, config).run()

    print()
    print("SUMMARY")
    print("-" * 50)
    for key, value in report.get_summary().items():
        print(f"  {key:<20} {value}")
    if report.failures:
        print()
        print("Differences:")
        for failure in report.failures:
            print(f"  ✗ {failure}")


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    try:
        config = resolve_config(args)
    except SqlDiffError as e:
        print(f"✗ {e}", file=sys.stderr)
        return 2

    logging.basicConfig(level=getattr(logging, config.log_level.upper(), logging.INFO),
                        format='%(asctime)s %(levelname)s %(name)s: %(message)s')

    try:
        if args.command == 'graph':
            cmd_graph(config)
        elif args.command == 'sequence':
            cmd_sequence(config)
        elif args.command == 'schema':
            cmd_schema(config, args.sequence, args.dialect)
        elif args.command == 'run':
            cmd_run(config)
    except SqlDiffError as e:
        print(f"✗ {e}", file=sys.stderr)
        return 1
    return 0
