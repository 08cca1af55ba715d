"""
Tests for the unsafe call scan
"""

from quality_scan import scan_quality
from type_defs import WarningKind


def test_strcpy_flagged():
    [warning] = scan_quality('int main() {\n    strcpy(buf, "hello");\n}')

    assert warning["type"] == WarningKind.UNSAFE_FUNCTION
    assert warning["line"] == 2
    assert warning["message"] == (
        "strcpy() used without bounds checking. Consider using strncpy() or strcpy_s()."
    )
    assert warning["lineText"] == 'strcpy(buf, "hello");'


def test_bounded_variants_not_flagged():
    code = "strncpy(a, b, 4);\nfgets(buf, 10, stdin);\nsnprintf(s, 8, \"%d\", x);\nmy_strcpy(a, b);"

    assert scan_quality(code) == []


def test_bounded_call_on_same_line_suppresses_warning():
    assert scan_quality("strcpy(a, b); strncpy(c, d, 1);") == []


def test_other_unsafe_calls():
    warnings = scan_quality('gets(line);\nsprintf(out, "%s", name);\nstrcat(dst, src);')

    assert [w["line"] for w in warnings] == [1, 2, 3]
    assert warnings[0]["message"] == "gets() cannot limit its input. Consider using fgets()."
    assert warnings[1]["message"] == (
        "sprintf() used without bounds checking. Consider using snprintf()."
    )
    assert "strncat()" in warnings[2]["message"]


def test_clean_code():
    assert scan_quality("char *p = malloc(4);\nfree(p);") == []
