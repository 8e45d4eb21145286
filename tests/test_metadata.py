from ogplink.services.metadata import extract_metadata

from tests.conftest import ARTICLE_HTML


def test_extracts_og_fields():
    record = extract_metadata(ARTICLE_HTML, "https://a.example/article")

    assert record.title == "An Article"
    assert record.description == "About things"
    assert record.image == "https://a.example/cover.png"
    assert record.site_name == "A Example"
    assert record.url == "https://a.example/article"
    assert record.source_url == "https://a.example/article"


def test_meta_description_used_without_og_description():
    html = '<html><head><meta name="description" content="plain description"></head></html>'

    record = extract_metadata(html, "https://x.example/")

    assert record.description == "plain description"


def test_og_description_wins_over_meta_description():
    html = (
        "<html><head>"
        '<meta name="description" content="plain description">'
        '<meta property="og:description" content="og description">'
        "</head></html>"
    )

    record = extract_metadata(html, "https://x.example/")

    assert record.description == "og description"


def test_title_falls_back_to_title_tag():
    html = "<html><head><title>  Page Title \n</title></head></html>"

    assert extract_metadata(html, "https://x.example/").title == "Page Title"


def test_no_metadata_yields_empty_record():
    record = extract_metadata("<html><body><p>nothing here</p></body></html>", "https://x.example/")

    assert record.is_empty
    assert record.title is None
    assert record.as_card() == {"url": "https://x.example/", "source_url": "https://x.example/"}


def test_malformed_markup_does_not_raise():
    html = '<html><head><meta property="og:title" content="Broken<title>oops</head'

    record = extract_metadata(html, "https://x.example/")

    assert record.source_url == "https://x.example/"


def test_og_url_is_link_target_but_source_url_is_kept():
    html = '<meta property="og:url" content="https://canonical.example/page">'

    record = extract_metadata(html, "https://x.example/?utm=1")

    assert record.url == "https://canonical.example/page"
    assert record.source_url == "https://x.example/?utm=1"


def test_empty_content_counts_as_absent():
    html = '<meta property="og:image" content="   "><meta property="og:title" content="">'

    record = extract_metadata(html, "https://x.example/")

    assert record.image is None
    assert record.title is None


def test_none_html_is_an_empty_document():
    assert extract_metadata(None, "https://x.example/").is_empty


def test_card_uses_site_name_alias_and_keeps_note():
    record = extract_metadata(ARTICLE_HTML, "https://a.example/article", note="read later")

    card = record.as_card()
    assert card["siteName"] == "A Example"
    assert card["note"] == "read later"


def test_markup_the_parser_rejects_yields_empty_record():
    record = extract_metadata("<![ x", "https://m.example/", note="n")

    assert record.is_empty
    assert record.url == "https://m.example/"
    assert record.note == "n"
