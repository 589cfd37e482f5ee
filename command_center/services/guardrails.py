import re

TITLE_MIN, TITLE_MAX = 30, 60
META_MIN, META_MAX = 120, 160
MIN_WORDS = 300
KEYWORD_DENSITY_MIN, KEYWORD_DENSITY_MAX = 1.0, 3.0

SLUG_RE = re.compile(r"^[a-z0-9]+(?:-[a-z0-9]+)*$")

LARGE_IMAGE_BYTES = 1 * 1024 * 1024
LARGE_FILE_BYTES = 5 * 1024 * 1024

def _normalize(text: str) -> str:
    return re.sub(r"\s+", " ", (text or "").strip().lower())

def slugify(title: str) -> str:
    slug = re.sub(r"[^a-z0-9]+", "-", _normalize(title))
    return slug.strip("-") or "post"

def word_count(text: str | None) -> int:
    return len(re.findall(r"[\w'-]+", text or ""))

def keyword_density(text: str | None, keyword: str | None) -> float:
    """Percentage of words covered by occurrences of `keyword`."""
    words = word_count(text)
    kw = _normalize(keyword or "")
    if not words or not kw:
        return 0.0
    occurrences = len(re.findall(rf"(?<!\w){re.escape(kw)}(?!\w)", _normalize(text or "")))
    return round(occurrences * len(kw.split()) * 100.0 / words, 1)

def seo_flags(title: str, slug: str, content: str | None, meta_description: str | None, focus_keyword: str | None) -> dict:
    reasons = []

    title_len = len(title or "")
    if title_len < TITLE_MIN:
        reasons.append("title_too_short")
    elif title_len > TITLE_MAX:
        reasons.append("title_too_long")

    meta_len = len(meta_description or "")
    if not meta_len:
        reasons.append("meta_description_missing")
    elif meta_len < META_MIN:
        reasons.append("meta_description_too_short")
    elif meta_len > META_MAX:
        reasons.append("meta_description_too_long")

    if not SLUG_RE.match(slug or ""):
        reasons.append("slug_invalid_characters")

    words = word_count(content)
    if words < MIN_WORDS:
        reasons.append("content_too_short")

    density = None
    if focus_keyword:
        density = keyword_density(content, focus_keyword)
        if density > KEYWORD_DENSITY_MAX:
            reasons.append("keyword_density_too_high")
        elif density < KEYWORD_DENSITY_MIN:
            reasons.append("keyword_density_too_low")

    return {
        "title_length": title_len,
        "meta_description_length": meta_len,
        "word_count": words,
        "keyword_density": density,
        "needs_attention": bool(reasons),
        "reasons": reasons,
    }

def media_issues(mimetype: str, size: int, alt_text: str | None) -> list[str]:
    issues = []
    is_image = (mimetype or "").startswith("image/")
    if is_image and not (alt_text or "").strip():
        issues.append("Missing alt text")
    if (is_image and size > LARGE_IMAGE_BYTES) or size > LARGE_FILE_BYTES:
        issues.append("Large file size")
        if is_image:
            issues.append("Consider compression")
    return issues
