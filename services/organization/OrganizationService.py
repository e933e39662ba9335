"""Organization service: analyzes a user's index into clusters and applies a chosen plan."""

from datetime import datetime, timezone

from services.organization.ClusteringEngine import ClusteringEngine
from shared.clients.index.IndexStoreInterface import IndexStoreInterface
from shared.clients.source.SourceClientInterface import SourceClientInterface
from shared.helper.HelperConfig import HelperConfig
from shared.helper.UserLockRegistry import UserLockRegistry
from shared.models.embedding import build_file_views
from shared.models.organization import (
    ActivityMetadata,
    Cluster,
    OrganizationActivity,
    OrganizationAnalysis,
    OrganizationMethod,
    OrganizationPlan,
    OrganizationResult,
)

ACTIVITY_METHOD = "api"


class OrganizationService:
    """Builds organization plans and creates folders and shortcuts for them."""

    def __init__(
        self,
        helper_config: HelperConfig,
        source_client: SourceClientInterface,
        index_store: IndexStoreInterface,
        lock_registry: UserLockRegistry,
        clustering_engine: ClusteringEngine | None = None,
    ) -> None:
        self.logging = helper_config.get_logger()
        self._source_client = source_client
        self._index_store = index_store
        self._lock_registry = lock_registry
        self._clustering_engine = clustering_engine or ClusteringEngine(helper_config=helper_config)

    ##########################################
    ############### ANALYSIS #################
    ##########################################

    async def do_analyze(
        self,
        user_id: str,
        method: OrganizationMethod = OrganizationMethod.HYBRID,
        max_clusters: int = 6,
        min_cluster_size: int = 3,
    ) -> OrganizationAnalysis:
        """Cluster the user's indexed files.

        Raises:
            InsufficientData: If fewer than ten files have embeddings.
        """
        async with self._lock_registry.get_lock(user_id):
            chunks = await self._index_store.do_fetch_all_chunks(user_id)
            views = build_file_views(chunks)
            clusters = self._clustering_engine.cluster(views, method, max_clusters, min_cluster_size)

        return OrganizationAnalysis(clusters=clusters)

    ##########################################
    ############### EXECUTION ################
    ##########################################

    async def do_execute(self, user_id: str, plan: OrganizationPlan) -> OrganizationResult:
        """Create one folder per cluster and a shortcut per member.

        Files are never moved, only referenced. A failing cluster or member
        is recorded in the result's errors and processing continues.
        """
        result = OrganizationResult()
        for cluster in plan.clusters:
            folder_name = cluster.suggested_folder_name or cluster.name
            try:
                folder_id = await self._source_client.do_create_folder(folder_name)
            except Exception as exc:
                self.logging.error("Could not create folder '%s' for cluster '%s': %s", folder_name, cluster.id, exc)
                result.errors.append(f"Failed to create folder '{folder_name}': {exc}")
                continue

            result.folders_created.append(folder_name)
            result.clusters_created += 1

            linked = await self._link_members(cluster, folder_id, result)
            result.files_moved += linked

            await self._index_store.do_log_organization_activity(
                OrganizationActivity(
                    user_id=user_id,
                    cluster_name=cluster.name,
                    folder_name=folder_name,
                    files_moved=linked,
                    method=ACTIVITY_METHOD,
                    confidence=cluster.average_confidence(),
                    metadata=ActivityMetadata(
                        category=cluster.category,
                        keywords=_flatten_keywords(cluster),
                        folder_id=folder_id,
                    ),
                    timestamp=datetime.now(timezone.utc),
                )
            )
            self.logging.info("Organized %d files into folder '%s'.", linked, folder_name, color="green")

        return result

    async def _link_members(self, cluster: Cluster, folder_id: str, result: OrganizationResult) -> int:
        linked = 0
        for member in cluster.members:
            try:
                await self._source_client.do_create_shortcut(member.file_id, folder_id, member.file_name)
                linked += 1
            except Exception as exc:
                self.logging.error("Could not link file id=%s into folder %s: %s", member.file_id, folder_id, exc)
                result.errors.append(f"Failed to link '{member.file_name}': {exc}")
        return linked


def _flatten_keywords(cluster: Cluster) -> list[str]:
    keywords: list[str] = []
    for member in cluster.members:
        for keyword in member.keywords:
            if keyword not in keywords:
                keywords.append(keyword)
    return keywords
