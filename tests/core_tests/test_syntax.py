import pytest

from litescape.errors import ParseError, UnexpectedTreeShape
from litescape.syntax import (
    CompilationUnit,
    Group,
    Literal,
    LiteralKind,
    SyntaxRewriter,
    Token,
    TokenKind,
    Trivia,
    TriviaKind,
    attach_trivia,
    build_tree,
    iter_tokens,
    replace,
    to_source,
)

SPACE = Trivia(TriviaKind.WHITESPACE, " ")
NEWLINE = Trivia(TriviaKind.END_OF_LINE, "\n")
COMMENT = Trivia(TriviaKind.COMMENT, "// note")


def punct(text, leading=(), trailing=()):
    return Token(TokenKind.PUNCTUATION, text, leading, trailing)


def make_tree():
    name = Token(TokenKind.IDENTIFIER, "call", (), ())
    literal = Literal(LiteralKind.STRING, '"a"', "a")
    other = Literal(LiteralKind.CHARACTER, "'b'", "b", (SPACE,))
    args = Group(punct("("), (literal, punct(","), other), punct(")", (), (SPACE,)))
    semi = punct(";", (), (COMMENT, NEWLINE))
    tree = CompilationUnit((name, args, semi), Token(TokenKind.END_OF_FILE, ""))
    return tree, args, literal, other


def test_to_source() -> None:
    tree, *_ = make_tree()
    assert to_source(tree) == "call(\"a\", 'b') ;// note\n"


def test_iter_tokens_order() -> None:
    tree, *_ = make_tree()
    assert [token.text for token in iter_tokens(tree)] == [
        "call",
        "(",
        '"a"',
        ",",
        "'b'",
        ")",
        ";",
        "",
    ]


def test_rewriter_returns_same_tree_when_nothing_changes() -> None:
    tree, *_ = make_tree()
    assert SyntaxRewriter().visit(tree) is tree


def test_rewriter_rebuilds_only_changed_path() -> None:
    tree, args, literal, other = make_tree()

    class Upper(SyntaxRewriter):
        def visit_literal(self, node):
            if node.kind is LiteralKind.CHARACTER:
                return node.with_text(node.text.upper())

            return node

    new_tree = Upper().visit(tree)
    assert new_tree is not tree
    assert to_source(new_tree) == "call(\"a\", 'B') ;// note\n"
    new_args = new_tree.children[1]
    assert new_args is not args
    assert new_args.open is args.open
    assert new_args.children[0] is literal
    assert new_args.children[2].leading_trivia is other.leading_trivia
    assert new_tree.children[0] is tree.children[0]
    assert new_tree.children[2] is tree.children[2]
    assert new_tree.end_of_file is tree.end_of_file


def test_rewriter_rejects_non_nodes() -> None:
    with pytest.raises(UnexpectedTreeShape, match="Not a syntax node: str"):
        SyntaxRewriter().visit("call")


def test_rewriter_rejects_bracket_slot_change() -> None:
    tree, *_ = make_tree()

    class Bad(SyntaxRewriter):
        def visit_token(self, node):
            if node.text == "(":
                return Literal(LiteralKind.STRING, '"("', "(")

            return node

    with pytest.raises(UnexpectedTreeShape):
        Bad().visit(tree)


def test_replace_shares_untouched_subtrees() -> None:
    tree, args, literal, other = make_tree()
    new_literal = literal.with_text('"A"')
    new_tree = replace(tree, literal, new_literal)

    assert to_source(new_tree) == "call(\"A\", 'b') ;// note\n"
    assert to_source(tree) == "call(\"a\", 'b') ;// note\n"
    assert new_tree.children[1].children[0] is new_literal
    assert new_tree.children[1].children[2] is other
    assert new_tree.children[0] is tree.children[0]


def test_replace_root() -> None:
    tree, *_ = make_tree()
    other_tree = CompilationUnit((), Token(TokenKind.END_OF_FILE, ""))
    assert replace(tree, tree, other_tree) is other_tree


def test_replace_missing_node() -> None:
    tree, _, literal, _ = make_tree()
    # an equal but distinct node is not part of the tree
    lookalike = Literal(LiteralKind.STRING, '"a"', "a")
    assert lookalike == literal
    with pytest.raises(UnexpectedTreeShape, match="not part of the tree"):
        replace(tree, lookalike, literal)


def test_literal_with_text_keeps_value_and_trivia() -> None:
    literal = Literal(LiteralKind.STRING, '"\xe9"', "\xe9", (SPACE,), (NEWLINE,))
    new = literal.with_text('"\\u00E9"')
    assert new.text == '"\\u00E9"'
    assert new.value == "\xe9"
    assert new.leading_trivia is literal.leading_trivia
    assert new.trailing_trivia is literal.trailing_trivia
    assert new.kind is LiteralKind.STRING


def test_attach_trivia() -> None:
    assert attach_trivia([]) == ((), ())
    assert attach_trivia([SPACE, COMMENT]) == ((SPACE, COMMENT), ())
    assert attach_trivia([SPACE, NEWLINE, SPACE, NEWLINE]) == (
        (SPACE, NEWLINE),
        (SPACE, NEWLINE),
    )


def test_build_tree_nests_brackets() -> None:
    tokens = [punct("{"), punct("("), punct(")"), punct("["), punct("]"), punct("}")]
    eof = Token(TokenKind.END_OF_FILE, "")
    tree = build_tree(tokens, eof, range(len(tokens)))
    assert len(tree.children) == 1
    outer = tree.children[0]
    assert isinstance(outer, Group)
    assert outer.open.text == "{"
    assert [child.open.text for child in outer.children] == ["(", "["]
    assert tree.end_of_file is eof


@pytest.mark.parametrize(
    "texts,message,offset",
    [
        (["(", "]"], "does not close", 1),
        ([")"], "Unmatched", 0),
        (["{", "("], "Unclosed '\\('", 1),
    ],
)
def test_build_tree_errors(texts, message, offset) -> None:
    tokens = [punct(text) for text in texts]
    with pytest.raises(ParseError, match=message) as exc_info:
        build_tree(tokens, Token(TokenKind.END_OF_FILE, ""), range(len(tokens)))

    assert exc_info.value.offset == offset


def nested(depth, inner):
    node = inner
    for _ in range(depth):
        node = Group(punct("("), (node,), punct(")"))

    return CompilationUnit((node,), Token(TokenKind.END_OF_FILE, ""))


def test_deep_nesting() -> None:
    depth = 5000
    literal = Literal(LiteralKind.STRING, '"a"', "a")
    tree = nested(depth, literal)
    assert to_source(tree) == "(" * depth + '"a"' + ")" * depth
    assert SyntaxRewriter().visit(tree) is tree

    new_literal = literal.with_text('"b"')
    new_tree = replace(tree, literal, new_literal)
    assert to_source(new_tree) == "(" * depth + '"b"' + ")" * depth
    assert list(iter_tokens(new_tree))[depth] is new_literal


def test_enter_substitutes_without_walking() -> None:
    tree, args, literal, other = make_tree()
    visited = []

    class Collapse(SyntaxRewriter):
        def enter(self, node):
            if node is args:
                return Token(TokenKind.IDENTIFIER, "()")

            return None

        def visit_literal(self, node):
            visited.append(node)
            return node

    assert to_source(Collapse().visit(tree)) == "call();// note\n"
    assert visited == []
