import pytest

from hmatch.errors import NotFoundError, SelectorSyntaxError
from hmatch.markup import parse_document, parse_selector, select, select_all, select_or_raise
from hmatch.markup.selectors import AttrCondition, CompoundSelector


def texts(nodes):
    return [n.text for n in nodes]


class TestParseSelector:
    """Selector grammar."""

    def test_compound_and_descendant_steps(self):
        steps = parse_selector("div.a#b[x='1'] SPAN[data-y]")
        assert steps == (
            CompoundSelector(tag="div", id="b", classes=("a",), attrs=(AttrCondition("x", "1"),)),
            CompoundSelector(tag="span", attrs=(AttrCondition("data-y"),)),
        )

    def test_universal_and_bare_forms(self):
        assert parse_selector("*") == (CompoundSelector(),)
        assert parse_selector(".md:flex") == (CompoundSelector(classes=("md:flex",)),)
        assert parse_selector('[title="a b"]') == (CompoundSelector(attrs=(AttrCondition("title", "a b"),)),)

    @pytest.mark.parametrize("text", ["", "   ", "div > p", "a + b", "[x", "div.", "div#", "p[=1]", "a#x#y"])
    def test_malformed(self, text):
        with pytest.raises(SelectorSyntaxError):
            parse_selector(text)


class TestSelectAll:
    """Traversal: pre-order, descendant steps, depth bounds."""

    HTML = """
        <div class="list">
          <ul>
            <li class="item">1</li>
            <li class="item special">2</li>
          </ul>
          <section><p>deep</p></section>
          <p data-kind="note">near</p>
          <p data-kind="">empty</p>
        </div>
    """

    @pytest.fixture
    def doc(self):
        return parse_document(self.HTML)

    def test_document_order(self, doc):
        assert texts(select_all(doc, doc.root, "li")) == ["1", "2"]
        assert texts(select_all(doc, doc.root, "p")) == ["deep", "near", "empty"]

    def test_class_selectors(self, doc):
        assert texts(select_all(doc, doc.root, ".item")) == ["1", "2"]
        assert texts(select_all(doc, doc.root, "li.item.special")) == ["2"]

    def test_attribute_selectors(self, doc):
        assert texts(select_all(doc, doc.root, "p[data-kind]")) == ["near", "empty"]
        assert texts(select_all(doc, doc.root, "p[data-kind=note]")) == ["near"]
        assert texts(select_all(doc, doc.root, "p[data-kind='']")) == ["empty"]
        assert texts(select_all(doc, doc.root, "[class='item special']")) == ["2"]

    def test_descendant_steps(self, doc):
        assert texts(select_all(doc, doc.root, "div.list li")) == ["1", "2"]
        assert texts(select_all(doc, doc.root, "section p")) == ["deep"]
        assert select_all(doc, doc.root, "ul p") == []

    def test_match_self(self, doc):
        assert select_all(doc, doc.root, "div") == [doc.root]
        assert select_all(doc, doc.root, "div", match_self=False) == []

    def test_max_depth(self, doc):
        assert texts(select_all(doc, doc.root, "p", max_depth=1)) == ["near", "empty"]
        assert texts(select_all(doc, doc.root, "li", max_depth=1)) == []
        assert texts(select_all(doc, doc.root, "li", max_depth=2)) == ["1", "2"]

    def test_scoped_to_subtree(self, doc):
        section = select(doc, doc.root, "section")
        assert texts(select_all(doc, section, "p")) == ["deep"]

    def test_select_or_raise(self, doc):
        assert select_or_raise(doc, doc.root, "ul").tag == "ul"
        with pytest.raises(NotFoundError) as exc:
            select_or_raise(doc, doc.root, "table")
        assert str(exc.value) == "Unable to find root element 'table'"
