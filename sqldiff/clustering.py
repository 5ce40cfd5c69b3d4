import logging
from collections import defaultdict
from typing import Dict, List

import numpy as np
from scipy.cluster.hierarchy import fcluster, linkage
from scipy.spatial.distance import squareform

from .cluster import ParameterCluster
from .enums import ParameterLocation
from .matcher import compare
from .parameter import Parameter

logger = logging.getLogger(__name__)

CUT_HEIGHT = 0.20


class ClusteringEngine:
    """
    Groups equivalent parameters with average-linkage hierarchical clustering.

    Parameters are first bucketed by (location, type) for headers and cookies and
    by type alone elsewhere; pairwise distances are only computed inside a bucket.
    """

    def __init__(self, cut_height: float = CUT_HEIGHT):
        self.cut_height = cut_height

    def perform_clustering(self, parameters: List[Parameter]) -> List[ParameterCluster]:
        buckets: Dict[str, List[Parameter]] = defaultdict(list)
        for param in parameters:
            buckets[bucket_key(param)].append(param)

        clusters: List[ParameterCluster] = []
        for key in sorted(buckets):
            bucket = buckets[key]
            if len(bucket) == 1:
                clusters.append(ParameterCluster(bucket))
            else:
                clusters.extend(self._cluster_bucket(bucket))
            logger.debug("Bucket %s: %d parameter(s)", key, len(bucket))
        return clusters

    def _cluster_bucket(self, bucket: List[Parameter]) -> List[ParameterCluster]:
        matrix = distance_matrix(bucket)
        tree = linkage(squareform(matrix, checks=False), method='average')
        root_height = tree[-1, 2]

        if self.cut_height >= root_height - 1e-6:
            labels = [1] * len(bucket)
        else:
            labels = fcluster(tree, t=self.cut_height, criterion='distance').tolist()

        # Keep clusters in order of their first member
        grouped: Dict[int, ParameterCluster] = {}
        for param, label in zip(bucket, labels):
            grouped.setdefault(label, ParameterCluster()).add_parameter(param)
        return list(grouped.values())


def distance_matrix(params: List[Parameter]) -> np.ndarray:
    """Symmetric matrix of 1 - similarity with a zero diagonal"""
    n = len(params)
    matrix = np.zeros((n, n))
    for i in range(n):
        for j in range(i):
            distance = max(0.0, 1.0 - compare(params[i], params[j]))
            matrix[i, j] = matrix[j, i] = distance
    return matrix


def bucket_key(param: Parameter) -> str:
    if param.location in (ParameterLocation.HEADER, ParameterLocation.COOKIE):
        return f"{param.location.name}:{param.type.name}"
    return f"ANY_LOC:{param.type.name}"
