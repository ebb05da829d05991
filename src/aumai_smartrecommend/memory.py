"""In-memory tool catalog and search providers.

:class:`InMemoryToolIndex` keeps tool records in a dict and embeds them with a
TF-IDF bag-of-words model, so the recommendation engine can run end to end
without a hosted vector database.  It implements the catalog and knowledge-base
protocols from :mod:`aumai_smartrecommend.search`; the provider classes below
implement the candidate provider protocol on top of it.
"""

from __future__ import annotations

import math
import re
from collections import Counter
from collections.abc import Iterable, Sequence

import numpy as np

from aumai_smartrecommend.errors import SearchBackendError
from aumai_smartrecommend.models import (
    KnowledgeBaseStats,
    SearchHit,
    SearchStrategy,
    ToolRecord,
    UserPreferences,
)

__all__ = [
    "SimpleEmbedder",
    "CosineSimilarity",
    "InMemoryToolIndex",
    "VectorSearchProvider",
    "KeywordSearchProvider",
    "HybridSearchProvider",
]


def _tokenize(text: str) -> list[str]:
    """Lower-case and split *text* into word tokens, stripping punctuation."""
    return re.findall(r"[a-z0-9]+", text.lower())


class SimpleEmbedder:
    """Bag-of-words TF-IDF embedder.

    The vocabulary is fixed after :meth:`fit`; call :meth:`fit` again with the
    full corpus after adding documents so the IDF weights reflect them.
    """

    def __init__(self) -> None:
        self._vocab_index: dict[str, int] = {}
        self._idf: dict[str, float] = {}

    @property
    def dimension(self) -> int:
        return len(self._vocab_index)

    def fit(self, documents: list[str]) -> None:
        """Build the vocabulary and IDF weights from *documents*."""
        num_docs = len(documents)
        doc_freq: Counter[str] = Counter()
        for doc in documents:
            doc_freq.update(set(_tokenize(doc)))

        self._vocab_index = {word: idx for idx, word in enumerate(sorted(doc_freq))}
        # Smooth IDF: log((N+1) / (df+1)) + 1
        self._idf = {
            word: math.log((num_docs + 1) / (df + 1)) + 1.0 for word, df in doc_freq.items()
        }

    def embed(self, text: str) -> list[float]:
        """Encode *text* as a unit-normalised TF-IDF vector.

        Returns an empty list before :meth:`fit`, and a zero vector for text with
        no known tokens.
        """
        if not self._vocab_index:
            return []

        vector = np.zeros(self.dimension, dtype=np.float64)
        tokens = _tokenize(text)
        for token, count in Counter(tokens).items():
            idx = self._vocab_index.get(token)
            if idx is not None:
                vector[idx] = (count / len(tokens)) * self._idf[token]

        magnitude = float(np.linalg.norm(vector))
        if magnitude > 0:
            vector /= magnitude
        return vector.tolist()


class CosineSimilarity:
    """Cosine similarity between two equal-length float vectors."""

    @staticmethod
    def compute(vec_a: Sequence[float], vec_b: Sequence[float]) -> float:
        """Return the cosine similarity of *vec_a* and *vec_b* in ``[-1, 1]``.

        Empty or zero vectors score ``0.0``.

        Raises:
            ValueError: When the vectors have different lengths.
        """
        if len(vec_a) != len(vec_b):
            raise ValueError(f"Vector length mismatch: {len(vec_a)} vs {len(vec_b)}")
        if not vec_a:
            return 0.0

        arr_a = np.asarray(vec_a, dtype=np.float64)
        arr_b = np.asarray(vec_b, dtype=np.float64)
        norm_a = float(np.linalg.norm(arr_a))
        norm_b = float(np.linalg.norm(arr_b))
        if norm_a == 0.0 or norm_b == 0.0:
            return 0.0
        return float(np.dot(arr_a, arr_b) / (norm_a * norm_b))


def _text_similarity(query: str, text: str) -> float:
    """Jaccard overlap between the token sets of *query* and *text*."""
    query_tokens = set(_tokenize(query))
    text_tokens = set(_tokenize(text))
    if not query_tokens or not text_tokens:
        return 0.0
    return len(query_tokens & text_tokens) / len(query_tokens | text_tokens)


class InMemoryToolIndex:
    """Dict-backed tool catalog with TF-IDF embeddings.

    Call :meth:`build_index` after adding tools to refit the embedder and
    recompute every tool's embedding.
    """

    def __init__(self, knowledge_stats: KnowledgeBaseStats | None = None) -> None:
        self._tools: dict[str, ToolRecord] = {}
        self._embedder = SimpleEmbedder()
        self._knowledge_stats = knowledge_stats

    def add_tool(self, tool: ToolRecord) -> None:
        """Add or replace a tool.  Call :meth:`build_index` afterwards."""
        self._tools[tool.tool_id] = tool

    def build_index(self) -> None:
        """Refit the embedder on all tool documents and update embeddings."""
        tools = list(self._tools.values())
        if not tools:
            return

        self._embedder.fit([self._tool_document(tool) for tool in tools])
        for tool in tools:
            embedding = self._embedder.embed(self._tool_document(tool))
            self._tools[tool.tool_id] = tool.model_copy(update={"embedding": embedding})

    def get_tool(self, tool_id: str) -> ToolRecord | None:
        """Return the tool with *tool_id*.

        Args:
            tool_id: Identifier of the tool to look up.

        Returns:
            The stored :class:`ToolRecord`, or *None* when no such tool exists.
        """
        return self._tools.get(tool_id)

    def get_all_tools(self) -> list[ToolRecord]:
        """Return every stored tool, active or not, in insertion order."""
        return list(self._tools.values())

    def embed_query(self, text: str) -> list[float]:
        """Embed *text* with the fitted embedder.

        Args:
            text: Free-text query.

        Returns:
            A unit-normalised vector, or an empty list before :meth:`build_index`.
        """
        return self._embedder.embed(text)

    def searchable_tools(self, preferences: UserPreferences | None = None) -> list[ToolRecord]:
        """Return active tools that satisfy *preferences*, in insertion order."""
        tools = [tool for tool in self._tools.values() if tool.is_active]
        if preferences is None:
            return tools

        if preferences.categories:
            wanted = {category.lower() for category in preferences.categories}
            tools = [
                tool for tool in tools if wanted.intersection(c.lower() for c in tool.categories)
            ]
        if preferences.free_tools_only or preferences.budget_range.lower() == "free":
            tools = [tool for tool in tools if tool.is_free]
        return tools

    # Catalog protocol

    async def fetch_tools(self, tool_ids: Sequence[str]) -> list[ToolRecord]:
        return [self._tools[tool_id] for tool_id in tool_ids if tool_id in self._tools]

    # Knowledge-base protocol

    def set_knowledge_stats(self, stats: KnowledgeBaseStats | None) -> None:
        self._knowledge_stats = stats

    async def get_knowledge_stats(self) -> KnowledgeBaseStats | None:
        return self._knowledge_stats

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _tool_document(self, tool: ToolRecord) -> str:
        """Combine all searchable text fields of a tool into a single string."""
        parts = [tool.name, tool.description]
        parts.extend(tool.categories)
        parts.extend(tool.tags)
        return " ".join(parts)


class VectorSearchProvider:
    """Cosine similarity search over the index's TF-IDF embeddings."""

    strategy = SearchStrategy.VECTOR
    requires_knowledge_base = False

    def __init__(self, index: InMemoryToolIndex) -> None:
        self._index = index

    def score_tools(
        self, query: str, preferences: UserPreferences | None = None
    ) -> list[tuple[float, ToolRecord]]:
        """Return ``(similarity, tool)`` pairs for every embedded, searchable tool.

        Raises:
            SearchBackendError: When a stored embedding does not match the query
                dimension, which means the index was not rebuilt after a change.
        """
        query_embedding = self._index.embed_query(query)
        if not query_embedding:
            return []
        try:
            return [
                (CosineSimilarity.compute(query_embedding, tool.embedding), tool)
                for tool in self._index.searchable_tools(preferences)
                if tool.embedding is not None
            ]
        except ValueError as exc:
            raise SearchBackendError(f"Stale tool embeddings: {exc}") from exc

    async def search(
        self, query: str, limit: int, preferences: UserPreferences | None = None
    ) -> list[SearchHit]:
        scored = [pair for pair in self.score_tools(query, preferences) if pair[0] > 0.0]
        scored.sort(key=lambda pair: pair[0], reverse=True)
        return [
            SearchHit(
                tool_id=tool.tool_id,
                name=tool.name,
                vector_similarity=score,
                search_strategy=self.strategy,
            )
            for score, tool in scored[:limit]
        ]


class KeywordSearchProvider:
    """Substring search that widens step by step until something matches.

    The query is looked for in tool names, then descriptions, then categories
    and tags.  When nothing matches, any searchable tools are returned.  Hits
    carry no score, so the search stage ranks them by position.
    """

    strategy = SearchStrategy.KEYWORD
    requires_knowledge_base = False

    def __init__(self, index: InMemoryToolIndex) -> None:
        self._index = index

    async def search(
        self, query: str, limit: int, preferences: UserPreferences | None = None
    ) -> list[SearchHit]:
        needle = re.sub(r"[%,()]", " ", query).strip().lower()
        tools = self._index.searchable_tools(preferences)

        matched: list[ToolRecord] = []
        if needle:
            for field_text in (
                lambda tool: tool.name,
                lambda tool: tool.description,
                lambda tool: " ".join([*tool.categories, *tool.tags]),
            ):
                matched = [tool for tool in tools if needle in field_text(tool).lower()]
                if matched:
                    break
        if not matched:
            matched = tools

        return [
            SearchHit(tool_id=tool.tool_id, name=tool.name, search_strategy=self.strategy)
            for tool in matched[:limit]
        ]


class HybridSearchProvider:
    """Weighted blend of vector similarity and token-overlap text similarity.

    Args:
        index: The tool index to search.
        vector_weight: Weight of the cosine similarity.
        text_weight: Weight of the best text similarity over name, description
            and categories.
    """

    strategy = SearchStrategy.HYBRID
    requires_knowledge_base = False

    def __init__(
        self,
        index: InMemoryToolIndex,
        vector_weight: float = 0.7,
        text_weight: float = 0.3,
    ) -> None:
        self._vector = VectorSearchProvider(index)
        self._vector_weight = vector_weight
        self._text_weight = text_weight

    async def search(
        self, query: str, limit: int, preferences: UserPreferences | None = None
    ) -> list[SearchHit]:
        hits: list[SearchHit] = []
        for vector_sim, tool in self._vector.score_tools(query, preferences):
            text_sim = max(_text_similarities(query, tool))
            if vector_sim <= 0.0 and text_sim <= 0.0:
                continue
            hits.append(
                SearchHit(
                    tool_id=tool.tool_id,
                    name=tool.name,
                    hybrid_score=vector_sim * self._vector_weight + text_sim * self._text_weight,
                    vector_similarity=vector_sim,
                    text_similarity=text_sim,
                    search_strategy=self.strategy,
                )
            )
        hits.sort(key=lambda hit: hit.hybrid_score or 0.0, reverse=True)
        return hits[:limit]


def _text_similarities(query: str, tool: ToolRecord) -> Iterable[float]:
    yield _text_similarity(query, tool.name)
    yield _text_similarity(query, tool.description)
    yield _text_similarity(query, " ".join(tool.categories))
