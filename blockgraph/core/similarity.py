"""Cosine similarity between block embeddings."""

import numpy as np
from sklearn.metrics.pairwise import cosine_similarity as pairwise_cosine

from blockgraph.utils.exceptions import SimilarityError


def has_magnitude(embedding: list[float]) -> bool:
    """True when the embedding is a non-empty vector with a non-zero component."""
    vector = np.asarray(embedding, dtype=float)
    return vector.ndim == 1 and vector.size > 0 and bool(np.any(vector))


def cosine_similarity(embedding1: list[float], embedding2: list[float]) -> float:
    """
    Compute cosine similarity between two embeddings.

    Zero-magnitude vectors are rejected instead of scoring 0, so a block
    stored with a broken embedding surfaces as an error.

    Args:
        embedding1: First embedding vector
        embedding2: Second embedding vector

    Returns:
        Similarity score in [-1, 1]

    Raises:
        SimilarityError: If the vectors are empty, differ in length, or have zero magnitude
    """
    vec1 = np.asarray(embedding1, dtype=float)
    vec2 = np.asarray(embedding2, dtype=float)

    if vec1.ndim != 1 or vec2.ndim != 1 or vec1.size == 0 or vec2.size == 0:
        raise SimilarityError("Embeddings must be non-empty vectors")
    if vec1.shape != vec2.shape:
        raise SimilarityError(
            "Embeddings must have the same length",
            context={"length_a": int(vec1.size), "length_b": int(vec2.size)},
        )

    norm1 = np.linalg.norm(vec1)
    norm2 = np.linalg.norm(vec2)
    if norm1 == 0 or norm2 == 0:
        raise SimilarityError("One of the embeddings has zero magnitude")

    return float(np.dot(vec1, vec2) / (norm1 * norm2))


def batch_cosine_similarity(
    query_embedding: list[float], embeddings: list[list[float]]
) -> list[float]:
    """
    Compute cosine similarity between a query and multiple embeddings.

    Args:
        query_embedding: Query embedding vector
        embeddings: Embedding vectors to compare against (same length as the query)

    Returns:
        List of similarity scores, aligned with ``embeddings``

    Raises:
        SimilarityError: If any vector has zero magnitude or a mismatched length
    """
    if not embeddings:
        return []

    query_vec = np.asarray(query_embedding, dtype=float)
    if query_vec.ndim != 1 or query_vec.size == 0:
        raise SimilarityError("Query embedding must be a non-empty vector")

    lengths = {len(embedding) for embedding in embeddings}
    if lengths != {query_vec.size}:
        raise SimilarityError(
            "Embeddings must have the same length as the query",
            context={"query_length": int(query_vec.size), "lengths": sorted(lengths)},
        )

    matrix = np.asarray(embeddings, dtype=float)
    if np.linalg.norm(query_vec) == 0 or np.any(np.linalg.norm(matrix, axis=1) == 0):
        raise SimilarityError("One of the embeddings has zero magnitude")

    return pairwise_cosine(query_vec.reshape(1, -1), matrix)[0].tolist()
