from typing import Optional

from bs4 import BeautifulSoup
from bs4.exceptions import ParserRejectedMarkup

from ogplink.schemas.ogp import OGPRecord

FIELDS = ("title", "description", "image", "site_name")


def _meta_content(soup: BeautifulSoup, attr: str, value: str) -> Optional[str]:
    tag = soup.find("meta", attrs={attr: value})
    if tag is None:
        return None
    content = tag.get("content")
    if not isinstance(content, str):
        return None
    return content.strip() or None


def _title_text(soup: BeautifulSoup) -> Optional[str]:
    tag = soup.find("title")
    if tag is None:
        return None
    return tag.get_text().strip() or None


def extract_metadata(
    html: Optional[str], requested_url: str, note: Optional[str] = None
) -> OGPRecord:
    """Extract OGP fields from raw HTML.

    Each field prefers ``<meta property="og:<field>">``. ``description`` falls
    back to ``<meta name="description">`` and ``title`` to the ``<title>``
    text. Malformed markup is parsed best-effort; missing fields stay None.
    """
    try:
        soup = BeautifulSoup(html or "", "html.parser")
    except ParserRejectedMarkup:
        # Unparseable documents yield a record with every field absent
        soup = BeautifulSoup("", "html.parser")

    values = {field: _meta_content(soup, "property", f"og:{field}") for field in FIELDS}
    if values["description"] is None:
        values["description"] = _meta_content(soup, "name", "description")
    if values["title"] is None:
        values["title"] = _title_text(soup)

    return OGPRecord(
        url=_meta_content(soup, "property", "og:url") or requested_url,
        source_url=requested_url,
        note=note,
        **values,
    )
