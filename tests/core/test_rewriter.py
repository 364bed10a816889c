"""Tests for the byte-splicing tree rewriter."""

import pytest

from i18nxy.core.parser import parse_source
from i18nxy.core.replacement import ReplacementFormatter
from i18nxy.core.rewriter import Edit, TreeRewriter, apply_edits
from i18nxy.core.scanner import TreeScanner
from i18nxy.errors import RewriteError


def rewrite(code, keys=None, formatter=None, **kwargs):
    tree = parse_source(code)
    matches = TreeScanner().scan(tree)
    if keys is None:
        keys = [f"k{i + 1}" for i in range(len(matches))]
    return TreeRewriter(formatter).rewrite(tree, matches, keys, **kwargs)


class TestRewrite:
    def test_string_literal_keeps_quote(self):
        result = rewrite("const a = '你好';\nconst b = \"世界\";\n")
        assert result.code == "const a = $t('k1');\nconst b = $t(\"k2\");\n"
        assert result.has_replaced

    def test_template_segment(self):
        result = rewrite("const s = `Hello ${name}，欢迎`;")
        assert result.code == "const s = `Hello ${name}${$t('k1')}`;"

    def test_static_template_replaced_whole(self):
        result = rewrite("const s = `你好`;")
        assert result.code == "const s = $t(`k1`);"

    def test_template_segment_whitespace_preserved(self):
        result = rewrite("const s = `${a} 你好 ${b}`;")
        assert result.code == "const s = `${a} ${$t('k1')} ${b}`;"

    def test_markup_text(self):
        result = rewrite("const el = <div>\n  你好\n</div>;")
        assert result.code == "const el = <div>\n  {$t('k1')}\n</div>;"

    def test_markup_attribute(self):
        result = rewrite('const el = <input placeholder="请输入" />;')
        assert result.code == 'const el = <input placeholder={$t("k1")} />;'

    def test_string_in_jsx_container(self):
        result = rewrite("const el = <div>{'你好'}</div>;")
        assert result.code == "const el = <div>{$t('k1')}</div>;"

    def test_unmatched_text_preserved_exactly(self):
        code = "// keep me\nconst   a =  '你好' ;   /* and me */\n\n\nconst b = 1;\n"
        result = rewrite(code)
        assert result.code == "// keep me\nconst   a =  $t('k1') ;   /* and me */\n\n\nconst b = 1;\n"

    def test_custom_function_name(self):
        formatter = ReplacementFormatter(function_name="i18n.t", quote="double")
        result = rewrite("const el = <b>你好</b>;", formatter=formatter)
        assert result.code == 'const el = <b>{i18n.t("k1")}</b>;'

    def test_extracted_pairs_in_source_order(self):
        result = rewrite("const a = '一'; const b = '二';")
        assert result.extracted == [("一", "k1"), ("二", "k2")]
        assert result.has_extracted

    def test_no_replace_returns_original(self):
        code = "const a = '你好';"
        result = rewrite(code, replace=False)
        assert result.code == code
        assert not result.has_replaced
        assert result.extracted == [("你好", "k1")]

    def test_no_extract(self):
        result = rewrite("const a = '你好';", extract=False)
        assert result.extracted == []
        assert result.code == "const a = $t('k1');"

    def test_empty_key_is_skipped(self):
        result = rewrite("const a = '一'; const b = '二';", keys=["", "k2"])
        assert result.code == "const a = '一'; const b = $t('k2');"
        assert result.skipped == 1

    def test_key_count_mismatch(self):
        with pytest.raises(ValueError):
            rewrite("const a = '一';", keys=[])

    def test_rewritten_code_is_idempotent(self):
        first = rewrite("const a = '你好';\nconst el = <p title=\"标题\">段落</p>;\n")
        second = rewrite(first.code)
        assert second.code == first.code
        assert second.extracted == []
        assert not second.has_replaced

    def test_result_still_parses(self):
        result = rewrite("const s = `你好${name}世界`;\nconst el = <a href='#'>链接</a>;\n")
        parse_source(result.code)


class TestBuildEdit:
    def test_empty_key(self):
        tree = parse_source("const a = '你好';")
        (match,) = TreeScanner().scan(tree)
        with pytest.raises(RewriteError):
            TreeRewriter().build_edit(match, "")


class TestApplyEdits:
    def test_multibyte_offsets(self):
        source = "ab中文cd".encode("utf-8")
        assert apply_edits(source, [Edit(2, 8, "X")]) == "abXcd"

    def test_edits_applied_regardless_of_order(self):
        source = b"0123456789"
        edits = [Edit(1, 2, "a"), Edit(7, 9, "bb"), Edit(4, 5, "")]
        assert apply_edits(source, edits) == "0a2356bb9"
