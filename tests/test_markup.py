from markupsafe import Markup

from quire.markup import include_css, include_js, link_to, tag


def test_tag_escapes_text_and_attributes():
    html = tag("a", "Tom & Jerry", href='/t?a=1&b="2"', class_="x")
    assert html == '<a href="/t?a=1&amp;b=&#34;2&#34;" class="x">Tom &amp; Jerry</a>'
    assert isinstance(html, Markup)


def test_tag_nesting_and_markup_passthrough():
    html = tag("ul", [tag("li", str(i)) for i in range(2)], None, Markup("<b>raw</b>"))
    assert html == "<ul><li>0</li><li>1</li><b>raw</b></ul>"


def test_tag_attribute_rules():
    assert tag("meta", http_equiv="refresh", content="0") == '<meta http-equiv="refresh" content="0" />'
    assert tag("input", disabled=True, hidden=False, value=None) == "<input disabled />"
    assert tag("a", "tag", name="tag") == '<a name="tag">tag</a>'
    assert tag("p", 3) == "<p>3</p>"


def test_link_and_includes():
    assert link_to("/x/", "X") == '<a href="/x/">X</a>'
    assert include_css("/a.css") == '<link type="text/css" href="/a.css" rel="stylesheet" />'
    assert include_js("/a.js", "/b.js") == (
        '<script type="text/javascript" src="/a.js"></script>'
        '<script type="text/javascript" src="/b.js"></script>'
    )