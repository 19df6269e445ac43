"""Related-cluster graph for ReportFusion.

Two clusters are related when both have a centroid, the centroids lie within
RELATED_CLUSTER_DISTANCE_FACTOR × max_distance_km of each other, and their
categories are equal or related. Built as a NetworkX graph so responders can
also pull connected groups of related problems.
"""

from __future__ import annotations

import logging
from typing import List, Sequence, Set

import networkx as nx

from config.defaults import RELATED_CLUSTER_DISTANCE_FACTOR
from config.settings import ClusteringConfig
from reportfusion.analysis.similarity import categories_related
from reportfusion.models.cluster import Cluster
from reportfusion.utils.geo_utils import haversine_km

logger = logging.getLogger(__name__)


def build_cluster_graph(clusters: Sequence[Cluster], config: ClusteringConfig) -> nx.Graph:
    """Build an undirected graph over cluster ids with an edge per related pair.

    Every cluster is a node, including clusters without a centroid (which are
    never linked). Edges carry the centroid distance in ``distance_km``.
    """
    graph = nx.Graph()
    graph.add_nodes_from(c.cluster_id for c in clusters)
    cutoff_km = config.max_distance_km * RELATED_CLUSTER_DISTANCE_FACTOR

    located = [c for c in clusters if c.centroid is not None]
    for i, a in enumerate(located):
        for b in located[i + 1:]:
            if not categories_related(a.category, b.category):
                continue
            distance = haversine_km(a.centroid_lat, a.centroid_lng, b.centroid_lat, b.centroid_lng)
            if distance <= cutoff_km:
                graph.add_edge(a.cluster_id, b.cluster_id, distance_km=distance)
    return graph


def link_related_clusters(clusters: List[Cluster], config: ClusteringConfig) -> List[Cluster]:
    """Set each cluster's related_cluster_ids to its sorted graph neighbours.

    Modifies the given clusters in place and returns the same list. Callers
    pass clusters they own (fresh or copied), never the caller's originals.
    """
    if not clusters:
        return clusters

    graph = build_cluster_graph(clusters, config)
    for cluster in clusters:
        cluster.related_cluster_ids = sorted(graph.neighbors(cluster.cluster_id))

    if graph.number_of_edges() > 0:
        logger.debug(
            "Linked %d related cluster pairs across %d clusters",
            graph.number_of_edges(),
            graph.number_of_nodes(),
        )
    return clusters


def related_groups(clusters: Sequence[Cluster], config: ClusteringConfig) -> List[Set[str]]:
    """Connected groups of two or more related clusters, largest first."""
    graph = build_cluster_graph(clusters, config)
    if graph.number_of_edges() == 0:
        return []
    groups = [set(component) for component in nx.connected_components(graph) if len(component) > 1]
    return sorted(groups, key=lambda g: (-len(g), sorted(g)))
