"""Insert recommended internal and external links into article HTML."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

from bs4 import BeautifulSoup, NavigableString, Tag
from bs4.element import PreformattedString

from contentops.schemas.workflow import AppliedLink
from contentops.services.interlinking.models import ExternalLinkOpportunity, LinkOpportunity

logger = logging.getLogger(__name__)

EXTERNAL_PLACEMENTS = {
    "authority": "body",
    "citation": "body",
    "resource": "conclusion",
}

# Text under these tags is never turned into a link.
UNLINKABLE_PARENTS = ["a", "script", "style"]


@dataclass
class LinkApplicationResult:
    content: str
    applied_links: list[AppliedLink] = field(default_factory=list)


def _url_key(url: str) -> str:
    return url.strip().rstrip("/").lower()


@dataclass
class _PendingLink:
    anchor_text: str
    url: str
    type: str
    placement: str
    reason: str
    context: str


class LinkApplier:
    """Place links into paragraphs, internal first, each URL at most once.

    A link goes into the paragraph matching its placement (first, middle or
    last). The first unlinked occurrence of the anchor text there is wrapped;
    otherwise the link's context sentence is appended to the paragraph.
    """

    def __init__(self, max_internal: int = 5, max_external: int = 3) -> None:
        self.max_internal = max_internal
        self.max_external = max_external

    def apply(
        self,
        content: str,
        internal: list[LinkOpportunity],
        external: list[ExternalLinkOpportunity],
        *,
        max_internal: int | None = None,
        max_external: int | None = None,
    ) -> LinkApplicationResult:
        max_internal = self.max_internal if max_internal is None else max_internal
        max_external = self.max_external if max_external is None else max_external

        soup = BeautifulSoup(content or "", "html.parser")
        seen = {_url_key(str(anchor["href"])) for anchor in soup.find_all("a", href=True)}

        internal_pending = [
            _PendingLink(
                anchor_text=link.anchor_text,
                url=link.url,
                type=link.link_type,
                placement=link.placement,
                reason=link.reason,
                context=link.context,
            )
            for link in internal
        ]
        external_pending = [
            _PendingLink(
                anchor_text=link.anchor_text,
                url=link.url,
                type="external",
                placement=EXTERNAL_PLACEMENTS.get(link.link_type, "body"),
                reason=link.reason,
                context=link.context,
            )
            for link in external
        ]

        applied: list[AppliedLink] = []
        for pending, limit in ((internal_pending, max_internal), (external_pending, max_external)):
            placed = 0
            for link in pending:
                if placed >= limit:
                    break
                key = _url_key(link.url)
                if not key or key in seen:
                    continue
                self.insert_link(soup, link)
                seen.add(key)
                placed += 1
                applied.append(
                    AppliedLink(
                        anchor_text=link.anchor_text,
                        url=link.url,
                        type=link.type,
                        placement=link.placement,
                        reason=link.reason,
                    )
                )

        logger.info(
            "Links applied",
            extra={
                "applied": len(applied),
                "internal_candidates": len(internal),
                "external_candidates": len(external),
            },
        )
        return LinkApplicationResult(content=str(soup), applied_links=applied)

    def insert_link(self, soup: BeautifulSoup, link: _PendingLink) -> None:
        paragraph = self.target_paragraph(soup, link.placement)
        if paragraph is None:
            paragraph = soup.new_tag("p")
            soup.append(paragraph)
            self.append_context(soup, paragraph, link)
            return
        if not self.wrap_anchor(soup, paragraph, link):
            self.append_context(soup, paragraph, link)

    @staticmethod
    def target_paragraph(soup: BeautifulSoup, placement: str) -> Tag | None:
        paragraphs = soup.find_all("p")
        if not paragraphs:
            return None
        if placement == "introduction":
            return paragraphs[0]
        if placement == "conclusion":
            return paragraphs[-1]
        return paragraphs[len(paragraphs) // 2]

    def wrap_anchor(self, soup: BeautifulSoup, paragraph: Tag, link: _PendingLink) -> bool:
        """Wrap the first unlinked case-insensitive match of the anchor text."""
        needle = link.anchor_text.strip().lower()
        if not needle:
            return False
        for node in paragraph.find_all(string=True):
            # Comments, CDATA and doctype nodes
            if isinstance(node, PreformattedString):
                continue
            if node.find_parent(UNLINKABLE_PARENTS) is not None:
                continue
            text = str(node)
            index = text.lower().find(needle)
            if index < 0:
                continue
            end = index + len(needle)
            node.replace_with(
                NavigableString(text[:index]),
                self.make_anchor(soup, link, text[index:end]),
                NavigableString(text[end:]),
            )
            return True
        return False

    def append_context(self, soup: BeautifulSoup, paragraph: Tag, link: _PendingLink) -> None:
        """Append the context sentence, linking the anchor inside it when present."""
        context = link.context.strip()
        index = context.lower().find(link.anchor_text.strip().lower()) if context else -1
        paragraph.append(NavigableString(" "))
        if index < 0:
            paragraph.append(self.make_anchor(soup, link, link.anchor_text))
            paragraph.append(NavigableString("."))
            return
        end = index + len(link.anchor_text.strip())
        paragraph.append(NavigableString(context[:index]))
        paragraph.append(self.make_anchor(soup, link, context[index:end]))
        paragraph.append(NavigableString(context[end:]))

    @staticmethod
    def make_anchor(soup: BeautifulSoup, link: _PendingLink, text: str) -> Tag:
        anchor = soup.new_tag("a", href=link.url)
        if link.type == "external":
            anchor["rel"] = "noopener noreferrer"
            anchor["target"] = "_blank"
        anchor.string = text
        return anchor
