"""Tests for replacer: placeholders, substitution parsing and CaseAwareReplacer."""

import re

import pytest

from replacer import (
    CaseAwareReplacer,
    FileIsBinaryError,
    LineRange,
    Substitution,
    SubstitutionSyntaxError,
    expand_placeholders,
    parse_range,
    parse_substitution,
    resolve_source,
)


@pytest.fixture
def match():
    return re.search(r"(\w+)-(\w+)", "say hello-world")


def test_expand_whole_match_and_groups(match):
    assert expand_placeholders("&", match) == "hello-world"
    assert expand_placeholders(r"\0", match) == "hello-world"
    assert expand_placeholders(r"\2 \1", match) == "world hello"


def test_expand_missing_group_is_empty(match):
    assert expand_placeholders(r"<\9>", match) == "<>"


def test_expand_previous_only_when_given(match):
    assert expand_placeholders("~", match) == "~"
    assert expand_placeholders("~_x", match, previous="prev") == "prev_x"


def test_expand_leaves_escapes_untouched(match):
    assert expand_placeholders(r"\& \~ \\1", match, previous="prev") == r"\& \~ \\1"


def test_resolve_source(match):
    assert resolve_source(1, match) == "hello"
    assert resolve_source(5, match) == ""
    assert resolve_source(-1, match) == ""
    assert resolve_source("&!", match) == "hello-world!"


def test_parse_substitution():
    assert parse_substitution(r"/a\/b/c/g3") == Substitution("a/b", "c", "g", 3)
    assert parse_substitution("/foo/bar/") == Substitution("foo", "bar", "", None)
    assert parse_substitution("#x#y") == Substitution("x", "y", "", None)
    assert parse_substitution("/foo") == Substitution("foo", "", "", None)
    assert parse_substitution("/foo/bar/gI 12") == Substitution("foo", "bar", "gI", 12)


def test_parse_substitution_keeps_regex_escapes():
    assert parse_substitution(r"/\d+/x/").pattern == r"\d+"


@pytest.mark.parametrize("expr", [
    "",
    "afooab",
    " /a/b",
    "\\a\\b",
    "/",
    "//x/",
    "/a/b/z",
    "/a/b/g0",
    "/a/b/3g",
    "/a/b/c/d",
])
def test_parse_substitution_errors(expr):
    with pytest.raises(SubstitutionSyntaxError):
        parse_substitution(expr)


def test_parse_range():
    assert parse_range("%", 10) == LineRange(1, 10)
    assert parse_range(None, 10) == LineRange(1, 10)
    assert parse_range("3", 10) == LineRange(3, 3)
    assert parse_range("2,$", 5) == LineRange(2, 5)
    assert parse_range("%", 0) == LineRange(1, 1)


@pytest.mark.parametrize("text", ["5,2", "0", "11", "a", "1,2,3"])
def test_parse_range_errors(text):
    with pytest.raises(SubstitutionSyntaxError):
        parse_range(text, 10)


def test_line_range_narrow():
    assert LineRange(1, 3).narrow(2, 10) == LineRange(3, 4)
    assert LineRange(1, 10).narrow(5, 10) == LineRange(10, 10)


def test_from_words_matches_every_convention():
    replacer = CaseAwareReplacer.from_words("reference_style", "smart_case")
    text = "ReferenceStyle referenceStyle REFERENCE_STYLE reference-style"
    new_text, found = replacer.replace(text)
    assert new_text == "SmartCase smartCase SMART_CASE smart-case"
    assert found == 4
    assert replacer.get_replacements_made()["REFERENCE_STYLE"] == "SMART_CASE"


def test_from_words_keeps_digits_and_literal_separators():
    replacer = CaseAwareReplacer.from_words("v2_api", "v3_api")
    new_text, found = replacer.replace("v2_api vapi v_api V2Api V2_API")
    assert new_text == "v3_api vapi v_api V3Api V3_API"
    assert found == 3


def test_from_words_drops_literal_separators_missing_in_new():
    replacer = CaseAwareReplacer.from_words("2fa", "mfa")
    assert replacer.replace("enable2FA 2fa fa")[0] == "enableMFA mfa fa"


def test_from_words_dotted_names():
    replacer = CaseAwareReplacer.from_words("config.json", "settings.yaml")
    assert replacer.replace("Config.JSON configJson")[0] == "Settings.YAML configJson"


def test_from_words_single_word_to_many():
    replacer = CaseAwareReplacer.from_words("foo", "bar_baz")
    assert replacer.replace("Foo foo")[0] == "BarBaz barBaz"


def test_from_words_replacement_is_literal():
    replacer = CaseAwareReplacer.from_words("foo", "a&b")
    assert replacer.replace("foo")[0] == "aB"


def test_len_difference():
    assert CaseAwareReplacer.from_words("ab", "abcd").len_difference() == 2


def test_first_match_per_line_without_g():
    replacer = CaseAwareReplacer("foo", "bar", flags="")
    assert replacer.replace("foo Foo\nFOO foo\n") == ("bar Foo\nBAR foo\n", 2)


def test_every_match_with_g():
    replacer = CaseAwareReplacer("foo", "bar", flags="g")
    assert replacer.replace("foo Foo\nFOO foo\n") == ("bar Bar\nBAR bar\n", 4)


def test_match_case_flag():
    replacer = CaseAwareReplacer("foo", "bar", flags="gI")
    assert replacer.replace("foo Foo")[0] == "bar Foo"


def test_count_only_flag():
    replacer = CaseAwareReplacer("foo", "bar", flags="gn")
    assert replacer.replace("foo foo\nfoo") == ("foo foo\nfoo", 3)
    assert replacer.count_only


def test_literal_styles_source():
    replacer = CaseAwareReplacer(r"\w+", r"\0", styles="x_x", flags="g")
    assert replacer.replace("GoodDay HelloWorld")[0] == "good_day hello_world"


def test_styles_from_group():
    replacer = CaseAwareReplacer(r"(\w+)=(\w+)", r"\1", styles=2, flags="g")
    assert replacer.replace("someValue=OTHER_NAME")[0] == "SOME_VALUE"


def test_previous_substitution():
    replacer = CaseAwareReplacer("old_?name", "~", previous="new_name", flags="g")
    assert replacer.replace("OldName")[0] == "NewName"


def test_line_range_and_line_endings():
    replacer = CaseAwareReplacer("foo", "bar")
    assert replacer.replace("foo\r\nfoo\r\nfoo\r\n", LineRange(2, 2))[0] == "foo\r\nbar\r\nfoo\r\n"


def test_lines_in():
    text = "a\nb\nc\nd\ne\n"
    replacer = CaseAwareReplacer.from_substitution(parse_substitution("/foo/bar/ 2"))
    assert replacer.lines_in("1", text) == LineRange(1, 2)
    assert CaseAwareReplacer("foo", "bar").lines_in(None, text) is None


def test_invalid_pattern():
    with pytest.raises(SubstitutionSyntaxError):
        CaseAwareReplacer("(", "x")


def test_replace_file_contents_and_rename(tmp_path):
    path = tmp_path / "ReferenceStyle.py"
    path.write_text("class ReferenceStyle:\n    reference_style = 1\n")
    replacer = CaseAwareReplacer.from_words("reference_style", "smart_case")

    assert replacer.replace_file_contents(path) == 2
    assert path.read_text() == "class SmartCase:\n    smart_case = 1\n"
    assert replacer.rename_file(path) == tmp_path / "SmartCase.py"
    assert (tmp_path / "SmartCase.py").exists()
    assert not path.exists()


def test_dry_run_touches_nothing(tmp_path):
    path = tmp_path / "reference_style.txt"
    path.write_text("referenceStyle\n")
    replacer = CaseAwareReplacer.from_words("reference_style", "smart_case", dry_run=True)

    assert replacer.replace_file_contents(path) == 1
    assert replacer.rename_file(path) == tmp_path / "smart_case.txt"
    assert path.read_text() == "referenceStyle\n"
    assert not (tmp_path / "smart_case.txt").exists()


def test_unchanged_name_is_not_renamed(tmp_path):
    path = tmp_path / "other.txt"
    path.write_text("")
    replacer = CaseAwareReplacer.from_words("foo", "bar")
    assert replacer.rename_file(path) == path


def test_rename_conflict(tmp_path):
    (tmp_path / "SmartCase.py").write_text("")
    path = tmp_path / "ReferenceStyle.py"
    path.write_text("")
    replacer = CaseAwareReplacer.from_words("reference_style", "smart_case")

    with pytest.raises(FileExistsError):
        replacer.rename_file(path)


def test_binary_files(tmp_path):
    replacer = CaseAwareReplacer.from_words("foo", "bar")
    nul = tmp_path / "nul.bin"
    nul.write_bytes(b"\0foo")
    latin = tmp_path / "latin.txt"
    latin.write_bytes(b"\xff\xfe foo")

    with pytest.raises(FileIsBinaryError):
        replacer.replace_file_contents(nul)

    with pytest.raises(FileIsBinaryError):
        replacer.replace_file_contents(latin)


def test_directory_contents(tmp_path):
    replacer = CaseAwareReplacer.from_words("foo", "bar")

    with pytest.raises(IsADirectoryError):
        replacer.replace_file_contents(tmp_path)
