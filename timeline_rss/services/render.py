"""HTML rendering of normalized posts into RSS item descriptions.

Every text field is escaped exactly here, at the point of interpolation.
URLs are re-checked with ``safe_url`` so that a post built by hand cannot slip
a ``javascript:`` link into the output either.
"""

from html import escape

from timeline_rss.schemas.feed import MAX_NESTING_DEPTH, MediaItem, MediaKind, NormalizedPost
from timeline_rss.utils.network import safe_url


def _author_name(post: NormalizedPost) -> str:
    return post.author_display_name or post.author_handle


def _image_tag(src: str, alt: str | None) -> str:
    # alt is always emitted; a missing description renders as alt="".
    return f'<img src="{escape(src)}" alt="{escape(alt or "")}">'


def render_media(media: MediaItem) -> str | None:
    url = safe_url(media.url)
    if url is None:
        return None
    if media.kind == MediaKind.image:
        return _image_tag(url, media.alt_text)

    fragments = []
    thumbnail = safe_url(media.thumbnail_url)
    if thumbnail:
        fragments.append(f'<a href="{escape(url)}">{_image_tag(thumbnail, media.alt_text)}</a>')
    fragments.append(f'<a href="{escape(url)}">View video</a>')
    return "\n".join(fragments)


def render_quote(quoted: NormalizedPost) -> str:
    parts = [f"<strong>{escape(_author_name(quoted))}</strong>"]
    if quoted.text_html_unsafe.strip():
        parts.append(f"<p>{escape(quoted.text_html_unsafe)}</p>")
    link = safe_url(quoted.permalink)
    if link:
        parts.append(f'<a href="{escape(link)}">View quoted post</a>')
    return "<blockquote>" + "\n".join(parts) + "</blockquote>"


def render_post(post: NormalizedPost, depth: int = 0) -> str:
    body = f"<p>{escape(post.text_html_unsafe)}</p>"
    nested = depth < MAX_NESTING_DEPTH
    if nested and post.quoted_post is not None:
        body = f"{body}\n{render_quote(post.quoted_post)}"
    fragments = [body]

    if nested and post.reposted_post is not None:
        inner = render_post(post.reposted_post, depth + 1)
        fragments.append(
            f"{escape(_author_name(post.reposted_post))}:\n<blockquote>{inner}</blockquote>"
        )

    for media in post.media:
        fragment = render_media(media)
        if fragment:
            fragments.append(fragment)
    return "\n".join(fragments)
