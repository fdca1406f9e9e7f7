"""Selector and keyword tables shared by the clutter, scoring and standardize passes."""

from __future__ import annotations

# Tried in order; the first selector with any match marks the main content.
ENTRY_POINT_SELECTORS: tuple[str, ...] = (
    "#post",
    ".post-content",
    ".article-content",
    "#article-content",
    ".article_post",
    ".article-wrapper",
    ".entry-content",
    ".content-article",
    ".post",
    ".markdown-body",
    "article",
    '[role="article"]',
    "main",
    '[role="main"]',
)

BLOCK_ELEMENTS: tuple[str, ...] = (
    "div",
    "section",
    "article",
    "main",
    "aside",
    "header",
    "footer",
    "nav",
    "content",
)

# Removed outright when exact-selector removal is enabled.
EXACT_SELECTORS: tuple[str, ...] = (
    # scripts, styles, metadata
    "noscript",
    'script:not([type^="math/"])',
    "style",
    "meta",
    "link",
    # ads
    '.ad:not([class*="gradient"])',
    '[class^="ad-" i]',
    '[class$="-ad" i]',
    '[id^="ad-" i]',
    '[id$="-ad" i]',
    '[role="banner" i]',
    '[alt*="advert" i]',
    ".promo",
    ".Promo",
    "#barrier-page",
    ".alert",
    # comments
    '[id="comments" i]',
    # header and navigation
    "header",
    ".header:not(.banner)",
    "#header",
    "#Header",
    "#banner",
    "#Banner",
    "nav",
    ".navigation",
    "#navigation",
    ".hero",
    '[role="navigation" i]',
    '[role="dialog" i]',
    '[role*="complementary" i]',
    '[class*="pagination" i]',
    ".menu",
    "#menu",
    "#siteSub",
    # metadata
    ".previous",
    ".author",
    ".Author",
    '[class$="_bio"]',
    "#categories",
    ".contributor",
    ".date",
    "#date",
    "[data-date]",
    ".entry-meta",
    ".meta",
    ".tags",
    "#tags",
    '[rel="tag" i]',
    ".toc",
    ".Toc",
    "#toc",
    ".headerlink",
    ".anchor",
    ".breadcrumbs",
    ".breadcrumb",
    "#breadcrumbs",
    # sidebars and footers
    "aside",
    "#sidebar",
    "footer",
    ".footer",
    "#footer",
    # forms and interactive chrome
    "form",
    '[role="form" i]',
    '[role="search" i]',
    "input",
    "button",
    "select",
    "textarea",
    "dialog",
    "template",
)

# Case-insensitive substrings looked for in TEST_ATTRIBUTES values.
PARTIAL_SELECTORS: tuple[str, ...] = (
    "a-statement",
    "access-wall",
    "activitypub",
    "actioncall",
    "addcomment",
    "advert",
    "affiliate",
    "ad-break",
    "ad-banner",
    "ad-container",
    "ad-placement",
    "ad-slot",
    "ad-unit",
    "ad-wrapper",
    "adslot",
    "-ad-",
    "_ad_",
    "article-author",
    "article-bottom-section",
    "article-tags",
    "article-title",
    "author-",
    "author_",
    "authorbox",
    "backlink",
    "banner",
    "bottom-of-article",
    "breadcrumb",
    "byline",
    "captcha",
    "categories",
    "comment-",
    "comments",
    "comment-count",
    "contact-form",
    "content-card",
    "context-bar",
    "cookie",
    "copyright",
    "cta-",
    "disqus",
    "donate",
    "dropdown",
    "facebook",
    "feedback",
    "footer",
    "hidden",
    "intercom",
    "keep-reading",
    "login",
    "masthead",
    "modal",
    "more-",
    "most-",
    "nav-",
    "navbar",
    "newsletter",
    "overlay",
    "pagination",
    "paywall",
    "popular",
    "popup",
    "post-meta",
    "post-tags",
    "postmeta",
    "print-",
    "privacy",
    "promo",
    "published",
    "read-next",
    "recommend",
    "reddit",
    "related",
    "reply",
    "share",
    "sharing",
    "sidebar",
    "signup",
    "site-header",
    "skip-",
    "social",
    "sponsor",
    "subscribe",
    "toolbar",
    "tooltip",
    "trending",
    "twitter",
    "upsell",
    "widget",
)

TEST_ATTRIBUTES: tuple[str, ...] = (
    "class",
    "id",
    "data-component",
    "data-test",
    "data-testid",
    "data-test-id",
    "data-qa",
    "data-cy",
)

FOOTNOTE_INLINE_REFERENCES: tuple[str, ...] = (
    "sup.reference",
    "cite.ltx_cite",
    'sup[id^="fnr"]',
    'span[id^="fnr"]',
    'span[class*="footnote_ref"]',
    'span[class*="footnote-ref"]',
    "span.footnote-link",
    "a.citation",
    'a[id^="ref-link"]',
    'a[href^="#fn"]',
    'a[href^="#cite"]',
    'a[href^="#reference"]',
    'a[href^="#footnote"]',
    'a[href^="#r"]',
    'a[href^="#b"]',
    'a[href*="cite_note"]',
    'a[href*="cite_ref"]',
    "a.footnote-anchor",
    "span.footnote-hovercard-target a",
    'a[role="doc-biblioref"]',
    'a[id^="fnref"]',
    'a[id^="ref-link"]',
)

FOOTNOTE_LIST_SELECTORS: tuple[str, ...] = (
    "div.footnote ol",
    "div.footnotes ol",
    'div[role="doc-endnotes"]',
    'div[role="doc-footnotes"]',
    "ol.footnotes-list",
    "ol.footnotes",
    "ol.references",
    'ol[class*="article-references"]',
    "section.footnotes ol",
    'section[role="doc-endnotes"]',
    'section[role="doc-footnotes"]',
    'section[role="doc-bibliography"]',
    "ul.footnotes-list",
    "ul.ltx_biblist",
    'div.footnote[data-component-name="FootnoteToDOM"]',
)

# Kept on every element after standardization.
ALLOWED_ATTRIBUTES: frozenset[str] = frozenset(
    {
        "alt",
        "allow",
        "allowfullscreen",
        "aria-label",
        "checked",
        "colspan",
        "controls",
        "data-latex",
        "data-src",
        "data-srcset",
        "data-lang",
        "dir",
        "display",
        "frameborder",
        "headers",
        "height",
        "href",
        "lang",
        "role",
        "rowspan",
        "src",
        "srcset",
        "title",
        "type",
        "width",
        # MathML
        "accent",
        "accentunder",
        "align",
        "columnalign",
        "columnlines",
        "columnspacing",
        "columnspan",
        "data-mjx-alternative-text",
        "depth",
        "displaystyle",
        "fence",
        "frame",
        "framespacing",
        "linethickness",
        "lspace",
        "mathsize",
        "mathvariant",
        "maxsize",
        "minsize",
        "movablelimits",
        "notation",
        "numalign",
        "open",
        "rowalign",
        "rowlines",
        "rowspacing",
        "rspace",
        "scriptlevel",
        "separator",
        "stretchy",
        "symmetric",
        "voffset",
        "xmlns",
    },
)

# Additionally kept when debug mode preserves structure.
ALLOWED_ATTRIBUTES_DEBUG: frozenset[str] = frozenset({"class", "id"})

ALLOWED_EMPTY_ELEMENTS: frozenset[str] = frozenset(
    {
        "area",
        "audio",
        "base",
        "br",
        "circle",
        "col",
        "defs",
        "ellipse",
        "embed",
        "figure",
        "g",
        "hr",
        "iframe",
        "img",
        "input",
        "line",
        "link",
        "mask",
        "meta",
        "object",
        "param",
        "path",
        "pattern",
        "picture",
        "polygon",
        "polyline",
        "rect",
        "source",
        "stop",
        "svg",
        "td",
        "th",
        "track",
        "use",
        "video",
        "wbr",
    },
)
