"""Groups embedded files into named clusters suitable for folder creation.

Three modes:
  folders     one cluster per existing folder with at least two files
  clustering  k-means over the files' representative vectors
  hybrid      folder clusters first, k-means fills the remaining slots
"""

from collections import Counter

import numpy as np

from services.organization.KMeans import kmeans
from services.organization.ThemeAnalyzer import ThemeAnalyzer
from shared.errors import InsufficientData
from shared.helper.HelperConfig import HelperConfig
from shared.models.document import ROOT_FOLDER
from shared.models.embedding import FileEmbeddingView
from shared.models.organization import Cluster, ClusterMember, ClusterSource, OrganizationMethod

MIN_FILES_FOR_ORGANIZATION = 10
MIN_FOLDER_CLUSTER_SIZE = 2
FOLDER_CONFIDENCE = 0.9
KMEANS_CONFIDENCE = 0.8


class ClusteringEngine:
    """Builds organization clusters from per-file embedding views."""

    def __init__(
        self,
        helper_config: HelperConfig,
        theme_analyzer: ThemeAnalyzer | None = None,
        seed: int | None = None,
    ) -> None:
        self.logging = helper_config.get_logger()
        self._theme_analyzer = theme_analyzer or ThemeAnalyzer()
        if seed is None:
            raw_seed = helper_config.get_string_val("ORGANIZE_KMEANS_SEED", default="")
            seed = int(raw_seed) if raw_seed else None
        self._seed = seed

    ##########################################
    ################ CORE ####################
    ##########################################

    def cluster(
        self,
        files: list[FileEmbeddingView],
        method: OrganizationMethod = OrganizationMethod.HYBRID,
        max_clusters: int = 6,
        min_cluster_size: int = 3,
    ) -> list[Cluster]:
        """Cluster files with the given method.

        Args:
            files (list[FileEmbeddingView]): One view per embedded file.
            method (OrganizationMethod): folders, clustering or hybrid.
            max_clusters (int): Upper bound on k-means clusters (and on the hybrid total).
            min_cluster_size (int): K-means clusters with fewer members are dropped.

        Returns:
            list[Cluster]: The clusters, folder clusters first in hybrid mode.

        Raises:
            InsufficientData: If fewer than MIN_FILES_FOR_ORGANIZATION files are given.
        """
        if len(files) < MIN_FILES_FOR_ORGANIZATION:
            raise InsufficientData(len(files), MIN_FILES_FOR_ORGANIZATION)

        if method == OrganizationMethod.FOLDERS:
            clusters = self.cluster_by_folders(files)
        elif method == OrganizationMethod.CLUSTERING:
            clusters = self.cluster_by_kmeans(files, max_clusters, min_cluster_size)
        else:
            clusters = self._cluster_hybrid(files, max_clusters, min_cluster_size)

        self.logging.info(
            "Clustered %d files with method '%s' into %d clusters.", len(files), method.value, len(clusters)
        )
        return clusters

    def _cluster_hybrid(self, files: list[FileEmbeddingView], max_clusters: int, min_cluster_size: int) -> list[Cluster]:
        folder_clusters = self.cluster_by_folders(files)
        k = max_clusters - len(folder_clusters)
        if k <= 0:
            # keep the largest folder groups, in their original order
            largest = sorted(folder_clusters, key=lambda c: len(c.members), reverse=True)[:max_clusters]
            keep_ids = {c.id for c in largest}
            return [c for c in folder_clusters if c.id in keep_ids]
        return folder_clusters + self.cluster_by_kmeans(files, k, min_cluster_size)

    ##########################################
    ############### FOLDERS ##################
    ##########################################

    def cluster_by_folders(self, files: list[FileEmbeddingView]) -> list[Cluster]:
        groups: dict[str, list[FileEmbeddingView]] = {}
        for f in files:
            groups.setdefault(f.folder_path or ROOT_FOLDER, []).append(f)

        clusters: list[Cluster] = []
        for folder, members in groups.items():
            if len(members) < MIN_FOLDER_CLUSTER_SIZE:
                continue
            theme = self._theme_analyzer.analyze(members)
            clusters.append(
                Cluster(
                    id=f"folder_{len(clusters)}",
                    name=f"{folder} Organization",
                    description=f"Files from {folder} folder",
                    suggested_folder_name=self._theme_analyzer.suggest_folder_name(folder, theme),
                    category=theme.category,
                    source=ClusterSource.FOLDERS,
                    members=self._build_members(members, FOLDER_CONFIDENCE, theme.keywords),
                )
            )
        return clusters

    ##########################################
    ################ KMEANS ##################
    ##########################################

    def cluster_by_kmeans(self, files: list[FileEmbeddingView], k: int, min_cluster_size: int) -> list[Cluster]:
        files = self._filter_common_dimension(files)
        if not files or k <= 0:
            return []

        rng = np.random.default_rng(self._seed)
        assignments = kmeans([f.vector for f in files], k, rng)

        groups: dict[int, list[FileEmbeddingView]] = {}
        for f, cluster_index in zip(files, assignments):
            groups.setdefault(cluster_index, []).append(f)

        clusters: list[Cluster] = []
        for cluster_index in sorted(groups):
            members = groups[cluster_index]
            if len(members) < min_cluster_size:
                continue
            theme = self._theme_analyzer.analyze(members)
            clusters.append(
                Cluster(
                    id=f"cluster_{cluster_index}",
                    name=theme.name,
                    description=theme.description,
                    suggested_folder_name=theme.folder_name,
                    category=theme.category,
                    source=ClusterSource.KMEANS,
                    members=self._build_members(members, KMEANS_CONFIDENCE, theme.keywords),
                )
            )
        return clusters

    ##########################################
    ############### HELPERS ##################
    ##########################################

    @staticmethod
    def _build_members(files: list[FileEmbeddingView], confidence: float, keywords: list[str]) -> list[ClusterMember]:
        return [
            ClusterMember(file_id=f.file_id, file_name=f.file_name, confidence=confidence, keywords=keywords)
            for f in files
        ]

    def _filter_common_dimension(self, files: list[FileEmbeddingView]) -> list[FileEmbeddingView]:
        """Drop files whose vector size differs from the most common one."""
        dimensions = Counter(len(f.vector) for f in files if f.vector)
        if not dimensions:
            return []
        dimension = dimensions.most_common(1)[0][0]
        kept = [f for f in files if len(f.vector) == dimension]
        if len(kept) != len(files):
            self.logging.warning(
                "Excluded %d files from k-means: vector dimension differs from %d.", len(files) - len(kept), dimension
            )
        return kept
