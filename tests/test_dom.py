import pytest

from fortrust.dom import (
    MAX_HTML_BYTES,
    InputTooLargeError,
    DomError,
    NodeKind,
    QuirksMode,
    parse_html,
)


def test_parses_malformed_html_with_spec_tree_builder():
    document = parse_html("<!doctype html><p>Hello <strong>Fortrust</p>")

    assert document.first_element_by_tag("html") is not None
    assert document.first_element_by_tag("body") is not None
    assert document.text_content() == "Hello Fortrust"


def test_stores_element_attributes():
    document = parse_html('<img src="/logo.png" alt="Fortrust">')
    img = document.first_element_by_tag("img")
    element = img.as_element()

    assert element.attr("src") == "/logo.png"
    assert element.attr("ALT") == "Fortrust"
    assert element.attr("missing") is None


def test_keeps_comments_out_of_text_content():
    document = parse_html("before<!-- private -->after")

    assert document.text_content() == "beforeafter"
    comments = [n for n in document.descendants() if n.kind is NodeKind.COMMENT]
    assert [c.data for c in comments] == [" private "]


def test_rejects_unbounded_html_input():
    html = "a" * (MAX_HTML_BYTES + 1)

    with pytest.raises(InputTooLargeError) as info:
        parse_html(html)

    assert info.value.limit_bytes == MAX_HTML_BYTES
    assert info.value.actual_bytes == MAX_HTML_BYTES + 1
    assert isinstance(info.value, DomError)


def test_doctype_node_and_quirks_mode():
    document = parse_html("<!DOCTYPE html><title>x</title>")
    first = document.root.children[0]
    assert first.kind is NodeKind.DOCTYPE
    assert first.name == "html"
    assert document.quirks_mode is QuirksMode.NO_QUIRKS


def test_missing_doctype_sets_quirks_and_reports_errors():
    document = parse_html("<p>no doctype</p>")
    assert document.quirks_mode is QuirksMode.QUIRKS
    assert len(document.parse_errors) >= 1


def test_descendants_are_in_document_order():
    document = parse_html("<!doctype html><body><div><span>a</span></div><p>b</p></body>")
    names = [
        n.as_element().local_name
        for n in document.descendants()
        if n.as_element() is not None
    ]
    assert names == ["html", "head", "body", "div", "span", "p"]


def test_parent_links_point_to_containing_node():
    document = parse_html("<!doctype html><div><span>a</span></div>")
    span = document.first_element_by_tag("span")
    assert span.parent is document.first_element_by_tag("div")
    assert span.text_content() == "a"


def test_set_attr_replaces_case_insensitively_and_appends_new():
    document = parse_html('<a href="/old">x</a>')
    element = document.first_element_by_tag("a").as_element()
    element.set_attr("HREF", "/new")
    element.set_attr("title", "T")
    assert element.attr("href") == "/new"
    assert element.attrs == [("href", "/new"), ("title", "T")]


def test_remove_attr():
    document = parse_html('<a href="/x" id="k">x</a>')
    element = document.first_element_by_tag("a").as_element()
    element.remove_attr("ID")
    assert element.attr("id") is None
    assert element.attrs == [("href", "/x")]


def test_append_child_moves_node_between_parents():
    document = parse_html("<!doctype html><div id='a'><span>s</span></div><p></p>")
    div = document.first_element_by_tag("div")
    p = document.first_element_by_tag("p")
    span = document.first_element_by_tag("span")

    p.append_child(span)

    assert span.parent is p
    assert div.children == ()
    assert p.children == (span,)


def test_remove_child_detaches():
    document = parse_html("<!doctype html><div><span>s</span></div>")
    div = document.first_element_by_tag("div")
    span = document.first_element_by_tag("span")

    div.remove_child(span)

    assert span.parent is None
    assert div.children == ()
    assert document.text_content() == ""


def test_as_element_is_none_for_text():
    document = parse_html("<!doctype html><p>hi</p>")
    text = document.first_element_by_tag("p").children[0]
    assert text.kind is NodeKind.TEXT
    assert text.as_element() is None
    assert text.data == "hi"


def test_template_contents_are_kept_apart():
    document = parse_html("<!doctype html><template><p>inside</p></template>")
    template = document.first_element_by_tag("template")
    contents = template.as_element().template_contents

    assert template.children == ()
    assert contents.kind is NodeKind.DOCUMENT
    assert contents.text_content() == "inside"
    assert document.text_content() == ""


def test_mathml_annotation_xml_integration_point():
    document = parse_html(
        "<!doctype html><math><annotation-xml encoding='text/html'></annotation-xml></math>"
    )
    node = document.first_element_by_tag("annotation-xml")
    assert node.as_element().mathml_annotation_xml_integration_point is True
    assert node.as_element().namespace == "http://www.w3.org/1998/Math/MathML"


def test_first_element_by_tag_is_case_insensitive():
    document = parse_html("<!doctype html><section>z</section>")
    node = document.first_element_by_tag("SECTION")
    assert node.as_element().local_name == "section"
    assert document.first_element_by_tag("article") is None