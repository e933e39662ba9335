"""Plain Lloyd's k-means over embedding vectors."""

import numpy as np

MAX_ITERATIONS = 100


def kmeans(
    vectors: list[list[float]],
    k: int,
    rng: np.random.Generator,
    max_iterations: int = MAX_ITERATIONS,
) -> list[int]:
    """Assign each vector to one of k clusters.

    Centroids start as k vectors of uniform random components in [-1, 1].
    Each round assigns every vector to its nearest centroid (Euclidean, ties
    go to the lowest index) and moves every non-empty centroid to the mean
    of its members. Stops when no assignment changes or after
    max_iterations rounds.

    Args:
        vectors (list[list[float]]): Points of equal dimensionality.
        k (int): Number of clusters.
        rng (np.random.Generator): Source of the initial centroids.
        max_iterations (int): Upper bound on assignment rounds.

    Returns:
        list[int]: Cluster index per input vector, in input order.

    Raises:
        ValueError: If k is not positive.
    """
    if k <= 0:
        raise ValueError(f"k must be positive, got {k}.")
    if not vectors:
        return []

    data = np.asarray(vectors, dtype=float)
    if k == 1:
        return [0] * len(data)

    centroids = rng.uniform(-1.0, 1.0, size=(k, data.shape[1]))
    assignments = np.zeros(len(data), dtype=int)

    for _ in range(max_iterations):
        distances = np.linalg.norm(data[:, np.newaxis, :] - centroids[np.newaxis, :, :], axis=2)
        updated = np.argmin(distances, axis=1)
        if np.array_equal(updated, assignments):
            break
        assignments = updated

        for cluster in range(k):
            members = data[assignments == cluster]
            if len(members):
                centroids[cluster] = members.mean(axis=0)

    return [int(a) for a in assignments]
