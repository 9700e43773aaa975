from __future__ import annotations

import pytest

from genshell.app.tokens import TokenizeError, tokenize


def test_tokens_remember_offsets() -> None:
    tokens = tokenize("service  --entity ~.Owner")
    assert [(token.text, token.start, token.end) for token in tokens] == [
        ("service", 0, 7),
        ("--entity", 9, 17),
        ("~.Owner", 18, 25),
    ]
    assert tokens[1].is_option
    assert tokens[1].key == "entity"
    assert tokens[2].key == ""


def test_quotes_and_escapes() -> None:
    tokens = tokenize("""a 'b c' "d \\" e" f\\ g""")
    assert [token.text for token in tokens] == ["a", "b c", 'd " e', "f g"]
    assert [token.quoted for token in tokens] == [False, True, True, False]


def test_quoted_option_text_is_a_value() -> None:
    assert not tokenize("'--all'")[0].is_option


def test_unterminated_quote() -> None:
    with pytest.raises(TokenizeError):
        tokenize("service --entity 'Own")
    assert tokenize("service --entity 'Own", partial=True)[-1].text == "Own"


def test_blank_line() -> None:
    assert tokenize("   ") == []
