from datetime import datetime, timezone

from bs4 import BeautifulSoup

from timeline_rss.utils.text import clean_text


def html_to_text(html: str | None) -> str:
    """Reduce status HTML to plain text, keeping paragraph and line breaks."""
    if not html:
        return ""
    soup = BeautifulSoup(html, "html.parser")
    for br in soup.find_all("br"):
        br.replace_with("\n")
    for paragraph in soup.find_all("p"):
        paragraph.append("\n\n")
    return clean_text(soup.get_text()).strip()


def parse_timestamp(value: str | None) -> datetime | None:
    if not value or not isinstance(value, str):
        return None
    try:
        parsed = datetime.fromisoformat(value.strip().replace("Z", "+00:00"))
    except ValueError:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def first_text(*values: str | None) -> str:
    for value in values:
        if isinstance(value, str) and value.strip():
            return clean_text(value.strip())
    return ""
