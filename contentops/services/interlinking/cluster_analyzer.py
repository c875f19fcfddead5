"""Topic cluster analysis over indexed site content."""

from __future__ import annotations

import logging
from collections import Counter
from collections.abc import Iterable

from contentops.services.interlinking.models import (
    ClusterAnalysis,
    ContentCluster,
    IndexedContent,
)
from contentops.services.text_utils import WHITESPACE_PATTERN, jaccard_overlap

logger = logging.getLogger(__name__)


class ClusterAnalyzer:
    """Group pages by topic and assign pillar / supporting / long-tail roles.

    Roles within a cluster:
    - pillar: the most comprehensive page (at least 2000 words or 80% of the longest)
    - supporting: 500-2000 words and topically close to the pillar
    - long-tail: the remaining short or single-topic pages
    """

    PILLAR_MIN_WORDS = 2000
    PILLAR_RELATIVE_THRESHOLD = 0.8
    SUPPORTING_MIN_WORDS = 500
    SUPPORTING_MAX_WORDS = 2000
    SUPPORTING_MIN_OVERLAP = 0.3
    LONG_TAIL_MAX_WORDS = 1000
    LOW_AUTHORITY_THRESHOLD = 0.5

    MAX_CLUSTER_TOPICS = 5
    MAX_CLUSTER_KEYWORDS = 10

    def analyze_clusters(self, indexed: list[IndexedContent]) -> ClusterAnalysis:
        clusters = [
            self.build_cluster(topic, pages)
            for topic, pages in self.group_by_topic(indexed).items()
            if pages
        ]

        total_pillars = sum(1 for cluster in clusters if cluster.pillar is not None)
        total_supporting = sum(len(cluster.supporting) for cluster in clusters)
        total_long_tail = sum(len(cluster.long_tail) for cluster in clusters)
        average_authority = (
            sum(cluster.authority_score for cluster in clusters) / len(clusters)
            if clusters
            else 0.0
        )

        logger.info(
            "Cluster analysis completed",
            extra={
                "clusters": len(clusters),
                "pillars": total_pillars,
                "supporting": total_supporting,
                "long_tail": total_long_tail,
            },
        )

        return ClusterAnalysis(
            clusters=clusters,
            total_clusters=len(clusters),
            total_pillars=total_pillars,
            total_supporting=total_supporting,
            total_long_tail=total_long_tail,
            average_authority=average_authority,
            recommendations=self.recommendations(clusters),
        )

    @staticmethod
    def group_by_topic(indexed: list[IndexedContent]) -> dict[str, list[IndexedContent]]:
        """Map each lower-cased topic to the pages carrying it, in input order."""
        groups: dict[str, list[IndexedContent]] = {}
        for page in indexed:
            for topic in {topic.lower(): None for topic in page.topics}:
                groups.setdefault(topic, []).append(page)
        return groups

    def build_cluster(self, topic: str, pages: list[IndexedContent]) -> ContentCluster:
        pillar = self.select_pillar(pages)
        supporting = self.select_supporting(pages, pillar)
        long_tail = self.select_long_tail(pages, pillar, supporting)
        topics = self._top_terms((page.topics for page in pages), self.MAX_CLUSTER_TOPICS)
        keywords = self._top_terms((page.keywords for page in pages), self.MAX_CLUSTER_KEYWORDS)

        return ContentCluster(
            id="cluster_" + WHITESPACE_PATTERN.sub("_", topic),
            name=topic,
            pillar=pillar,
            supporting=supporting,
            long_tail=long_tail,
            topics=topics,
            keywords=keywords,
            authority_score=self.cluster_authority(pillar, supporting, long_tail),
            total_content=len(pages),
            content_gaps=self.content_gaps(topics, pages),
        )

    def select_pillar(self, pages: list[IndexedContent]) -> IndexedContent | None:
        """Longest page (ties by topic count) that clears the pillar threshold."""
        if not pages:
            return None
        ranked = sorted(pages, key=lambda page: (-page.word_count, -len(page.topics)))
        threshold = max(
            self.PILLAR_MIN_WORDS, ranked[0].word_count * self.PILLAR_RELATIVE_THRESHOLD
        )
        return next((page for page in ranked if page.word_count >= threshold), ranked[0])

    def select_supporting(
        self,
        pages: list[IndexedContent],
        pillar: IndexedContent | None,
    ) -> list[IndexedContent]:
        pillar_id = pillar.page_id if pillar else None
        supporting: list[IndexedContent] = []
        for page in pages:
            if page.page_id == pillar_id:
                continue
            if not self.SUPPORTING_MIN_WORDS <= page.word_count <= self.SUPPORTING_MAX_WORDS:
                continue
            if pillar is not None:
                topic_overlap = jaccard_overlap(page.topics, pillar.topics)
                keyword_overlap = jaccard_overlap(page.keywords, pillar.keywords)
                if (
                    topic_overlap <= self.SUPPORTING_MIN_OVERLAP
                    and keyword_overlap <= self.SUPPORTING_MIN_OVERLAP
                ):
                    continue
            supporting.append(page)
        return supporting

    def select_long_tail(
        self,
        pages: list[IndexedContent],
        pillar: IndexedContent | None,
        supporting: list[IndexedContent],
    ) -> list[IndexedContent]:
        excluded = {page.page_id for page in supporting}
        if pillar is not None:
            excluded.add(pillar.page_id)
        return [
            page
            for page in pages
            if page.page_id not in excluded
            and (page.word_count < self.LONG_TAIL_MAX_WORDS or len(page.topics) == 1)
        ]

    @staticmethod
    def cluster_authority(
        pillar: IndexedContent | None,
        supporting: list[IndexedContent],
        long_tail: list[IndexedContent],
    ) -> float:
        score = 0.0
        if pillar is not None:
            score += 0.5
            if pillar.word_count > 3000:
                score += 0.1
            if len(pillar.topics) > 3:
                score += 0.1
        score += min(0.3, len(supporting) * 0.05)
        score += min(0.2, len(long_tail) * 0.02)
        return max(0.0, min(1.0, score))

    def content_gaps(self, topics: list[str], pages: list[IndexedContent]) -> list[str]:
        """Flag a missing pillar and cluster topics no member page covers."""
        gaps: list[str] = []
        if pages and all(page.word_count < self.PILLAR_MIN_WORDS for page in pages):
            gaps.append("Missing comprehensive pillar content")

        covered = {topic.lower() for page in pages for topic in page.topics}
        uncovered = [topic for topic in topics if topic.lower() not in covered]
        if uncovered:
            gaps.append(f"Missing content for topics: {', '.join(uncovered)}")
        return gaps

    def recommendations(self, clusters: list[ContentCluster]) -> list[str]:
        recommendations: list[str] = []

        with_gaps = [cluster for cluster in clusters if cluster.content_gaps]
        if with_gaps:
            recommendations.append(
                f"Fill content gaps in {len(with_gaps)} cluster(s) to improve authority"
            )

        low_authority = [
            cluster
            for cluster in clusters
            if cluster.authority_score < self.LOW_AUTHORITY_THRESHOLD
        ]
        if low_authority:
            recommendations.append(
                f"Improve authority for {len(low_authority)} cluster(s) "
                "by adding more supporting content"
            )
        return recommendations

    @staticmethod
    def _top_terms(groups: Iterable[list[str]], limit: int) -> list[str]:
        counts: Counter[str] = Counter()
        for terms in groups:
            counts.update(term.lower() for term in terms)
        return [term for term, _ in counts.most_common(limit)]
