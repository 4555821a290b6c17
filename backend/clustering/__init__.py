from .engine import compute_clusters
from .overlap import SiteObstacle, find_safe_position, resolve_overlaps
from .snapshot import ClusterAssignmentStore, ClusterSnapshot, LiveLayout
from .types import Candidate, Cluster, PoiRef, ProjectedRoad

__all__ = [
    "Candidate",
    "Cluster",
    "ClusterAssignmentStore",
    "ClusterSnapshot",
    "LiveLayout",
    "PoiRef",
    "ProjectedRoad",
    "SiteObstacle",
    "compute_clusters",
    "find_safe_position",
    "resolve_overlaps",
]
