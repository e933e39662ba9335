"""Models for organization analysis (clusters) and plan execution."""

from datetime import datetime
from enum import Enum

from pydantic import BaseModel, Field


class ClusterCategory(str, Enum):
    WORK = "work"
    PERSONAL = "personal"
    MEDIA = "media"
    DOCUMENTS = "documents"
    ARCHIVE = "archive"
    MIXED = "mixed"


class ClusterSource(str, Enum):
    """Which generator produced a cluster."""

    FOLDERS = "folders"
    KMEANS = "kmeans"


class OrganizationMethod(str, Enum):
    FOLDERS = "folders"
    CLUSTERING = "clustering"
    HYBRID = "hybrid"


class ClusterMember(BaseModel):
    file_id: str
    file_name: str
    confidence: float = Field(ge=0.0, le=1.0)
    keywords: list[str] = []


class ClusterTheme(BaseModel):
    """Human-readable description of a group of files."""

    name: str
    description: str
    folder_name: str
    category: ClusterCategory
    keywords: list[str] = []


class Cluster(BaseModel):
    """A group of related files destined to become one folder.

    Clusters are built fresh on every analysis and are never persisted.
    """

    id: str
    name: str
    description: str
    suggested_folder_name: str
    category: ClusterCategory
    source: ClusterSource
    members: list[ClusterMember] = []

    def average_confidence(self) -> float:
        if not self.members:
            return 0.0
        return sum(member.confidence for member in self.members) / len(self.members)


class OrganizationRequest(BaseModel):
    """Request body for an organization analysis."""

    user_id: str
    method: OrganizationMethod = OrganizationMethod.HYBRID
    max_clusters: int = Field(default=6, ge=1, le=50)
    min_cluster_size: int = Field(default=3, ge=1)


class OrganizationAnalysis(BaseModel):
    clusters: list[Cluster] = []


class OrganizationPlan(BaseModel):
    """The clusters a user chose to apply."""

    user_id: str
    clusters: list[Cluster] = []


class OrganizationResult(BaseModel):
    clusters_created: int = 0
    folders_created: list[str] = []
    files_moved: int = 0
    errors: list[str] = []


class ActivityMetadata(BaseModel):
    category: ClusterCategory
    keywords: list[str] = []
    folder_id: str | None = None


class OrganizationActivity(BaseModel):
    """Audit record written once per executed cluster."""

    user_id: str
    cluster_name: str
    folder_name: str
    files_moved: int
    method: str
    confidence: float
    metadata: ActivityMetadata
    timestamp: datetime
