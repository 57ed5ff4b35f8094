"""Tests for link extraction."""

from linkscout.crawler.parser import LinkExtractor, ParsedLink, canonicalize_url

BASE = 'http://a.test/docs/index.html'


def extract(html, base=BASE):
    return LinkExtractor().extract(html, base)


def urls(html, base=BASE):
    return [link.url for link in extract(html, base)]


def test_resolves_relative_links():
    html = '<a href="guide.html">g</a><a href="/about">a</a><a href="../up.html">u</a>'
    assert urls(html) == [
        'http://a.test/docs/guide.html',
        'http://a.test/about',
        'http://a.test/up.html',
    ]


def test_collects_resources_from_many_tags():
    html = """
    <html><head>
      <link rel="stylesheet" href="style.css">
      <script src="app.js"></script>
    </head><body background="bg.png">
      <img src="logo.png" srcset="logo-2x.png 2x, logo-3x.png 3x">
      <iframe src="frame.html"></iframe>
      <video src="clip.mp4" poster="poster.jpg"></video>
      <object data="movie.swf"></object>
      <form action="/search"></form>
      <blockquote cite="http://b.test/quote"></blockquote>
    </body></html>
    """
    found = set(urls(html))
    expected = {
        'http://a.test/docs/style.css', 'http://a.test/docs/app.js', 'http://a.test/docs/bg.png',
        'http://a.test/docs/logo.png', 'http://a.test/docs/logo-2x.png', 'http://a.test/docs/logo-3x.png',
        'http://a.test/docs/frame.html', 'http://a.test/docs/clip.mp4', 'http://a.test/docs/poster.jpg',
        'http://a.test/docs/movie.swf', 'http://a.test/search', 'http://b.test/quote',
    }
    assert found == expected


def test_ignores_fragments_and_empty_targets():
    html = '<a href="#top">t</a><a href="">e</a><a>none</a><a href="page.html#part">p</a>'
    assert urls(html) == ['http://a.test/docs/page.html']


def test_duplicates_removed():
    html = '<a href="x.html">1</a><a href="x.html">2</a>'
    assert len(extract(html)) == 1


def test_base_href_changes_resolution():
    html = '<head><base href="http://cdn.test/assets/"></head><body><img src="a.png"></body>'
    assert urls(html) == ['http://cdn.test/assets/a.png']


def test_other_schemes_kept_as_is():
    html = '<a href="mailto:x@y.com">m</a><a href="tel:+123">t</a>'
    assert urls(html) == ['mailto:x@y.com', 'tel:+123']


def test_unresolvable_link_has_no_url():
    links = extract('<a href="http://[::1">bad</a><a href="http://a.test:port/">bad port</a>')
    assert links == [
        ParsedLink(link='http://[::1', url=None),
        ParsedLink(link='http://a.test:port/', url=None),
    ]


def test_empty_document():
    assert extract('') == []


def test_equivalent_urls_resolve_to_one_form():
    html = (
        '<a href="http://a.test">1</a>'
        '<a href="HTTP://A.TEST/">2</a>'
        '<a href="http://a.test:80/">3</a>'
        '<a href="https://A.test:443/x?q=1#frag">4</a>'
    )
    assert urls(html) == [
        'http://a.test/', 'http://a.test/', 'http://a.test/', 'https://a.test/x?q=1',
    ]


def test_canonicalize_url():
    assert canonicalize_url('http://A.Test:8080') == 'http://a.test:8080/'
    assert canonicalize_url('https://user:pw@A.test:443/Path') == 'https://user:pw@a.test/Path'
    assert canonicalize_url('http://[::1]:80/') == 'http://[::1]/'
    assert canonicalize_url('MAILTO:x@y.com') == 'mailto:x@y.com'
