"""
Differential testing of REST APIs against a relational shadow database.
"""

import os

from .campaign import CampaignReport, SqlDiffCampaign
from .config import DiffTestConfig, load_config
from .core import OperationDependencyGraph, OperationNode
from .database import ShadowDatabase
from .dependency import DependencyEdge
from .dictionary import ResponseDictionary
from .enums import HTTPMethod, ParameterLocation, ParameterType, TestOutcome
from .exceptions import (ContractError, NoSeedOperationError, ShadowDatabaseError, SqlDiffError,
                         UnsafeOperationError)
from .operation import Operation
from .oracle import SqlDiffOracle, TestResult
from .parameter import ArrayParameter, LeafParameter, ObjectParameter, Parameter
from .parser import OpenAPIParser
from .schema import ShadowSchema
from .sorter import DiffBasedGraphSorter
from .visualizer import GraphVisualizer


def build_graph_from_openapi(
    spec_path: str,
    export_results: bool = True,
    output_dir: str = './output',
    session_name: str = 'session',
    odg_file_name: str = 'odg.dot',
) -> OperationDependencyGraph:
    """
    Parse a contract and build its operation dependency graph,
    optionally writing the DOT/JSON export under output_dir/session_name.
    """
    operations = OpenAPIParser(spec_path).parse()
    export_path = os.path.join(output_dir, session_name, odg_file_name) if export_results else None
    graph = OperationDependencyGraph(operations, export_path)

    print(f"\nOperations: {len(graph)}  Dependencies: {len(graph.dependencies)}")
    return graph
