"""HTML structural analyzer: meta, headings, images, links, structured data,
social tags and response headers for a single fetched page."""

import logging
from dataclasses import replace
from datetime import datetime, timezone
from typing import Callable, Dict, List, Optional
from urllib.parse import urlparse

from seo_audit.config import AnalysisThresholds, default_thresholds
from seo_audit.constants import (
    ESSENTIAL_OG_TAGS,
    MAX_IMAGES_IN_RESULT,
    MAX_LINKS_IN_RESULT,
    MAX_NOFOLLOW_LINKS_IN_RESULT,
    PRODUCT_REQUIRED_PROPERTIES,
    SKIPPED_LINK_PREFIXES,
)
from seo_audit.document import (
    ANCHORS,
    CANONICAL_LINK,
    HEADINGS,
    IMAGES,
    META_CHARSET,
    META_DESCRIPTION,
    META_KEYWORDS,
    META_ROBOTS,
    META_VIEWPORT,
    OPEN_GRAPH_META,
    TITLE,
    TWITTER_NAME_META,
    TWITTER_PROPERTY_META,
    ParsedDocument,
)
from seo_audit.fetcher import FetchedPage
from seo_audit.models import (
    BrokenLink,
    Degraded,
    HeadingEntry,
    HeadingsResult,
    ImageInfo,
    ImagesResult,
    Issue,
    LinkInfo,
    LinksResult,
    MetaResult,
    Ok,
    ProbeOutcome,
    Scope,
    Severity,
    SocialResult,
    StructuralResult,
    StructuredDataResult,
    TechnicalResult,
)
from seo_audit import structured_data
from seo_audit.utils.urls import normalize_url, resolve_url

logger = logging.getLogger(__name__)


class StructuralAnalyzer:
    """Derives per-scope results and issues from one parsed page.

    The analyzer never scores; it only reports what it found.
    """

    def __init__(self, thresholds: Optional[AnalysisThresholds] = None):
        self.thresholds = thresholds or default_thresholds

    def analyze(
        self,
        page: FetchedPage,
        request_url: Optional[str] = None,
        document: Optional[ParsedDocument] = None,
    ) -> StructuralResult:
        """Analyze a fetched page.

        Args:
            page: Page returned by the fetcher
            request_url: URL the caller asked for (defaults to page.url)
            document: Already-parsed page, when the caller has one

        Returns:
            StructuralResult with one outcome per sub-check
        """
        document = document or ParsedDocument(page.html, page.final_url)
        return self.analyze_document(
            document,
            request_url=request_url or page.url,
            headers=page.headers,
            is_https=page.is_https,
        )

    def analyze_document(
        self,
        document: ParsedDocument,
        request_url: str,
        headers: Optional[Dict[str, str]] = None,
        is_https: Optional[bool] = None,
    ) -> StructuralResult:
        """Run every sub-check against an already-parsed document."""
        if is_https is None:
            is_https = urlparse(document.url).scheme == "https"
        headers = headers or {}

        return StructuralResult(
            url=request_url,
            final_url=document.url,
            timestamp=datetime.now(timezone.utc),
            meta=self._guard(Scope.META, lambda: self.analyze_meta(document, request_url)),
            headings=self._guard(Scope.HEADINGS, lambda: self.analyze_headings(document)),
            images=self._guard(Scope.IMAGES, lambda: self.analyze_images(document)),
            links=self._guard(Scope.LINKS, lambda: self.analyze_links(document)),
            structured_data=self._guard(
                Scope.STRUCTURED_DATA, lambda: self.analyze_structured_data(document)
            ),
            social=self._guard(Scope.SOCIAL, lambda: self.analyze_social(document)),
            technical=self._guard(
                Scope.TECHNICAL, lambda: self.analyze_technical(headers, is_https)
            ),
        )

    @staticmethod
    def _guard(scope: Scope, check: Callable) -> ProbeOutcome:
        """Run one sub-check; a crash degrades only that scope."""
        try:
            return Ok(check())
        except Exception as e:
            logger.warning(f"{scope.value} analysis degraded: {e}")
            return Degraded(reason=f"{type(e).__name__}: {e}")

    # ------------------------------------------------------------------
    # Meta
    # ------------------------------------------------------------------

    def analyze_meta(self, document: ParsedDocument, request_url: str) -> MetaResult:
        title_element = document.first(TITLE)
        meta = MetaResult(
            title=document.text(title_element) if title_element is not None else "",
            description=document.first_attribute(META_DESCRIPTION, "content").strip(),
            keywords=document.first_attribute(META_KEYWORDS, "content"),
            robots=document.first_attribute(META_ROBOTS, "content"),
            canonical=document.first_attribute(CANONICAL_LINK, "href").strip(),
            lang=document.root_attribute("lang") or "",
            charset=document.first_attribute(META_CHARSET, "charset"),
            viewport=document.first_attribute(META_VIEWPORT, "content"),
        )

        t = self.thresholds
        issues: List[Issue] = []

        if not meta.title:
            issues.append(self._issue(
                "missing_title", Severity.CRITICAL, "Page title is missing",
            ))
        elif len(meta.title) < t.title_min:
            issues.append(self._issue(
                "title_too_short", Severity.MEDIUM,
                f"Title is too short ({len(meta.title)} characters, "
                f"recommended: {t.title_min}-{t.title_max})",
            ))
        elif len(meta.title) > t.title_max:
            issues.append(self._issue(
                "title_too_long", Severity.MEDIUM,
                f"Title is too long ({len(meta.title)} characters, "
                f"recommended: {t.title_min}-{t.title_max})",
            ))

        if not meta.description:
            issues.append(self._issue(
                "missing_description", Severity.HIGH, "Meta description is missing",
            ))
        elif len(meta.description) < t.meta_description_min:
            issues.append(self._issue(
                "description_too_short", Severity.LOW,
                f"Description is too short ({len(meta.description)} characters, "
                f"recommended: {t.meta_description_min}-{t.meta_description_max})",
            ))
        elif len(meta.description) > t.meta_description_max:
            issues.append(self._issue(
                "description_too_long", Severity.LOW,
                f"Description is too long ({len(meta.description)} characters, "
                f"recommended: {t.meta_description_min}-{t.meta_description_max})",
            ))

        if not meta.canonical:
            issues.append(self._issue(
                "missing_canonical", Severity.MEDIUM, "Canonical URL is missing",
            ))
        elif not self._canonical_matches(meta.canonical, document.url, request_url):
            issues.append(self._issue(
                "canonical_mismatch", Severity.HIGH,
                "Canonical URL does not match current URL",
                element=meta.canonical,
            ))

        if not meta.viewport:
            issues.append(self._issue(
                "missing_viewport", Severity.HIGH,
                "Viewport meta tag is missing (mobile responsiveness issue)",
            ))

        return replace(meta, issues=tuple(issues))

    @staticmethod
    def _canonical_matches(canonical: str, final_url: str, request_url: str) -> bool:
        resolved = resolve_url(canonical, final_url)
        if resolved is None:
            return False
        try:
            target = normalize_url(resolved)
            return target in (normalize_url(request_url), normalize_url(final_url))
        except ValueError:
            return False

    # ------------------------------------------------------------------
    # Headings
    # ------------------------------------------------------------------

    def analyze_headings(self, document: ParsedDocument) -> HeadingsResult:
        levels: Dict[str, List[str]] = {f"h{n}": [] for n in range(1, 7)}
        structure: List[HeadingEntry] = []

        for position, element in enumerate(document.select(HEADINGS)):
            text = document.text(element)
            if not text:
                continue
            tag = element.name
            levels[tag].append(text)
            structure.append(HeadingEntry(
                tag=tag, level=int(tag[1]), text=text, position=position,
            ))

        issues: List[Issue] = []
        h1_count = len(levels["h1"])
        if h1_count == 0:
            issues.append(self._issue(
                "missing_h1", Severity.HIGH, "Page is missing an H1 tag",
            ))
        elif h1_count > 1:
            issues.append(self._issue(
                "multiple_h1", Severity.MEDIUM,
                f"Page has {h1_count} H1 tags (should have only 1)",
                count=h1_count,
            ))

        previous_level = 0
        for index, heading in enumerate(structure):
            if previous_level > 0 and heading.level > previous_level + 1:
                issues.append(self._issue(
                    "heading_hierarchy", Severity.LOW,
                    f"Heading hierarchy issue at position {index + 1}: "
                    f"{heading.tag} follows h{previous_level}",
                    element=heading.text,
                ))
            previous_level = heading.level

        return HeadingsResult(
            **{tag: tuple(texts) for tag, texts in levels.items()},
            structure=tuple(structure),
            issues=tuple(issues),
        )

    # ------------------------------------------------------------------
    # Images
    # ------------------------------------------------------------------

    def analyze_images(self, document: ParsedDocument) -> ImagesResult:
        images: List[ImageInfo] = []
        issues: List[Issue] = []
        missing_alt = 0

        for element in document.select(IMAGES):
            src = (document.attribute(element, "src") or "").strip()
            if not src:
                continue

            alt = document.attribute(element, "alt")
            loading = document.attribute(element, "loading")
            position = len(images)
            images.append(ImageInfo(
                src=resolve_url(src, document.url) or src,
                alt=alt or "",
                title=document.attribute(element, "title") or "",
                width=document.attribute(element, "width"),
                height=document.attribute(element, "height"),
                loading=loading,
                has_alt=alt is not None,
            ))

            if not alt:
                missing_alt += 1

            # Images below the fold should lazy load
            if not loading and position >= self.thresholds.lazy_load_threshold:
                issues.append(self._issue(
                    "missing_lazy_loading", Severity.LOW,
                    f"Image {src} is missing lazy loading attribute",
                    element=src,
                ))

        if missing_alt > 0:
            issues.append(self._issue(
                "missing_alt_text", Severity.HIGH,
                f"{missing_alt} images are missing alt text",
                count=missing_alt,
            ))

        return ImagesResult(
            total=len(images),
            images=tuple(images[:MAX_IMAGES_IN_RESULT]),
            missing_alt=missing_alt,
            issues=tuple(issues),
        )

    # ------------------------------------------------------------------
    # Links
    # ------------------------------------------------------------------

    def analyze_links(self, document: ParsedDocument) -> LinksResult:
        base_host = (urlparse(document.url).hostname or "").lower()
        internal: List[LinkInfo] = []
        external: List[LinkInfo] = []
        nofollow: List[LinkInfo] = []
        broken: List[BrokenLink] = []

        for element in document.select(ANCHORS):
            href = (document.attribute(element, "href") or "").strip()
            if not href or href.lower().startswith(SKIPPED_LINK_PREFIXES):
                continue

            text = document.text(element) or "[No text]"
            absolute = resolve_url(href, document.url)
            if absolute is None:
                broken.append(BrokenLink(
                    href=href, text=text, error="Cannot resolve to an absolute http(s) URL",
                ))
                continue

            rel = document.attribute(element, "rel") or ""
            link = LinkInfo(
                url=absolute,
                text=text,
                rel=rel,
                target=document.attribute(element, "target"),
                nofollow="nofollow" in rel.lower().split(),
            )

            if (urlparse(absolute).hostname or "").lower() == base_host:
                internal.append(link)
            else:
                external.append(link)
            if link.nofollow:
                nofollow.append(link)

        issues: List[Issue] = []
        if broken:
            issues.append(self._issue(
                "broken_links", Severity.HIGH,
                f"Found {len(broken)} broken links",
                count=len(broken),
            ))

        external_without_nofollow = sum(1 for link in external if not link.nofollow)
        if external_without_nofollow > self.thresholds.max_external_without_nofollow:
            issues.append(self._issue(
                "external_links_without_nofollow", Severity.LOW,
                f"{external_without_nofollow} external links without nofollow attribute",
                count=external_without_nofollow,
            ))

        return LinksResult(
            internal_count=len(internal),
            internal=tuple(internal[:MAX_LINKS_IN_RESULT]),
            external_count=len(external),
            external=tuple(external[:MAX_LINKS_IN_RESULT]),
            broken=tuple(broken),
            nofollow_count=len(nofollow),
            nofollow=tuple(nofollow[:MAX_NOFOLLOW_LINKS_IN_RESULT]),
            issues=tuple(issues),
        )

    # ------------------------------------------------------------------
    # Structured data
    # ------------------------------------------------------------------

    def analyze_structured_data(self, document: ParsedDocument) -> StructuredDataResult:
        extraction = structured_data.extract(document)
        issues: List[Issue] = []

        for error in extraction.errors:
            issues.append(self._issue(
                "invalid_json_ld", Severity.HIGH,
                "Invalid JSON-LD structured data",
                details=error,
            ))

        if not extraction.items:
            issues.append(self._issue(
                "missing_structured_data", Severity.MEDIUM,
                "No structured data found on the page",
            ))

        for entity in extraction.entities():
            if "Product" not in structured_data.entity_types(entity):
                continue
            missing = [p for p in PRODUCT_REQUIRED_PROPERTIES if not entity.get(p)]
            if missing:
                issues.append(self._issue(
                    "incomplete_product_schema", Severity.MEDIUM,
                    f"Product schema missing required properties: {', '.join(missing)}",
                    details=missing,
                ))

        return StructuredDataResult(
            found=bool(extraction.items),
            types=tuple(extraction.formats),
            schema_types=tuple(extraction.schema_types),
            items=tuple(extraction.items),
            issues=tuple(issues),
        )

    # ------------------------------------------------------------------
    # Social
    # ------------------------------------------------------------------

    def analyze_social(self, document: ParsedDocument) -> SocialResult:
        open_graph: Dict[str, str] = {}
        for element in document.select(OPEN_GRAPH_META):
            prop = document.attribute(element, "property").strip()[len("og:"):]
            open_graph.setdefault(prop, document.attribute(element, "content") or "")

        twitter: Dict[str, str] = {}
        for query, attr in ((TWITTER_NAME_META, "name"), (TWITTER_PROPERTY_META, "property")):
            for element in document.select(query):
                name = document.attribute(element, attr).strip()[len("twitter:"):]
                twitter.setdefault(name, document.attribute(element, "content") or "")

        issues: List[Issue] = []
        missing_og = [tag for tag in ESSENTIAL_OG_TAGS if not open_graph.get(tag)]
        if missing_og:
            issues.append(self._issue(
                "missing_og_tags", Severity.MEDIUM,
                f"Missing Open Graph tags: {', '.join(missing_og)}",
                details=missing_og,
            ))

        if not twitter.get("card"):
            issues.append(self._issue(
                "missing_twitter_card", Severity.LOW,
                "Twitter Card meta tags are missing",
            ))

        return SocialResult(open_graph=open_graph, twitter=twitter, issues=tuple(issues))

    # ------------------------------------------------------------------
    # Technical
    # ------------------------------------------------------------------

    def analyze_technical(self, headers: Dict[str, str], is_https: bool) -> TechnicalResult:
        technical = TechnicalResult(
            https=is_https,
            server=headers.get("server"),
            content_type=headers.get("content-type"),
            content_length=headers.get("content-length"),
            compression=headers.get("content-encoding"),
            cache_control=headers.get("cache-control"),
            expires=headers.get("expires"),
            etag=headers.get("etag"),
            hsts=headers.get("strict-transport-security"),
            x_frame_options=headers.get("x-frame-options"),
            x_content_type_options=headers.get("x-content-type-options"),
            x_xss_protection=headers.get("x-xss-protection"),
        )

        issues: List[Issue] = []
        if not technical.https:
            issues.append(self._issue(
                "no_https", Severity.CRITICAL, "Website is not using HTTPS",
            ))
        if not technical.compression:
            issues.append(self._issue(
                "no_compression", Severity.HIGH,
                "Response is not compressed (gzip/deflate)",
            ))
        if not technical.cache_control and not technical.expires:
            issues.append(self._issue(
                "no_cache_headers", Severity.MEDIUM, "No cache headers found",
            ))
        if technical.https and not technical.hsts:
            issues.append(self._issue(
                "missing_hsts", Severity.MEDIUM, "HSTS header is missing",
            ))

        return replace(technical, issues=tuple(issues))

    # ------------------------------------------------------------------

    @staticmethod
    def _issue(issue_type: str, severity: Severity, message: str, **kwargs) -> Issue:
        return Issue(
            type=issue_type,
            severity=severity,
            message=message,
            scope=_scope_for(issue_type),
            **kwargs,
        )


# Which scope each structural issue type belongs to
_ISSUE_SCOPES = {
    Scope.META: (
        "missing_title", "title_too_short", "title_too_long",
        "missing_description", "description_too_short", "description_too_long",
        "missing_canonical", "canonical_mismatch", "missing_viewport",
    ),
    Scope.HEADINGS: ("missing_h1", "multiple_h1", "heading_hierarchy"),
    Scope.IMAGES: ("missing_alt_text", "missing_lazy_loading"),
    Scope.LINKS: ("broken_links", "external_links_without_nofollow"),
    Scope.STRUCTURED_DATA: (
        "invalid_json_ld", "missing_structured_data", "incomplete_product_schema",
    ),
    Scope.SOCIAL: ("missing_og_tags", "missing_twitter_card"),
    Scope.TECHNICAL: ("no_https", "no_compression", "no_cache_headers", "missing_hsts"),
}

ISSUE_SCOPE_BY_TYPE = {
    issue_type: scope
    for scope, issue_types in _ISSUE_SCOPES.items()
    for issue_type in issue_types
}


def _scope_for(issue_type: str) -> Scope:
    return ISSUE_SCOPE_BY_TYPE[issue_type]
