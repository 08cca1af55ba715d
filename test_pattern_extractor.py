"""
Tests for the line-oriented extraction strategy
"""

from pattern_extractor import balanced_span, extract_pattern_events, iter_statements
from type_defs import LanguageTag

C = LanguageTag.C
CPP = LanguageTag.CPP


def _events(code, language=C):
    return extract_pattern_events(code, language)


# =============================================================================
# ALLOCATIONS
# =============================================================================

def test_declaration_with_malloc():
    events = _events("int main() {\n    char *p = malloc(10);\n    free(p);\n}\n")

    assert [e["kind"] for e in events] == ["allocation", "deallocation"]
    alloc, release = events
    assert alloc["var"] == "p"
    assert alloc["line"] == 2
    assert alloc["function"] == "malloc"
    assert alloc["raw_args"] == "10"
    assert alloc["enclosing_function"] == "main"
    assert alloc["in_loop"] is False
    assert alloc["line_text"] == "char *p = malloc(10);"
    assert release["var"] == "p"
    assert release["line"] == 3
    assert release["function"] == "free"


def test_cast_assignment_keeps_nested_arguments():
    [alloc] = _events("int *arr = (int *) malloc(5 * sizeof(int));")

    assert alloc["var"] == "arr"
    assert alloc["raw_args"] == "5 * sizeof(int)"


def test_bare_assignment_realloc():
    [alloc] = _events("p = realloc(p, 64);")

    assert alloc["var"] == "p"
    assert alloc["function"] == "realloc"
    assert alloc["raw_args"] == "p, 64"


def test_member_path_allocation_and_free():
    events = _events("node->data = malloc(32);\nfree(node->data);")

    assert [e["var"] for e in events] == ["node->data", "node->data"]


def test_comparison_is_not_an_assignment():
    assert _events("if (p == malloc(3)) {\n}\n") == []


def test_new_and_array_new():
    events = _events("int *x = new int(5);\nint *arr = new int[8];\ndelete[] arr;\ndelete x;", CPP)

    assert [(e["var"], e["function"]) for e in events] == [
        ("x", "new"), ("arr", "new[]"), ("arr", "delete[]"), ("x", "delete"),
    ]
    assert events[1]["raw_args"] == "8"
    assert events[2]["is_array"] is True
    assert events[3]["is_array"] is False


def test_multiline_statement_reports_first_line():
    [alloc] = _events("char *buf = malloc(\n    128\n);")

    assert alloc["line"] == 1
    assert alloc["raw_args"] == "128"


def test_preprocessor_lines_ignored():
    assert _events("#include <stdlib.h>\n#define SIZE 10\n") == []


# =============================================================================
# CONTEXT TRACKING
# =============================================================================

def test_braced_loop_membership():
    code = (
        "void fill(int n) {\n"
        "    for (int i = 0; i < n; i++) {\n"
        "        char *buf = malloc(16);\n"
        "    }\n"
        "    char *after = malloc(8);\n"
        "}\n"
    )
    inside, after = _events(code)

    assert inside["var"] == "buf"
    assert inside["in_loop"] is True
    assert inside["enclosing_function"] == "fill"
    assert after["var"] == "after"
    assert after["in_loop"] is False


def test_braceless_loop_covers_next_statement_only():
    code = (
        "int main() {\n"
        "    while (running)\n"
        "        p = malloc(4);\n"
        "    q = malloc(2);\n"
        "}\n"
    )
    body, after = _events(code)

    assert (body["var"], body["line"], body["in_loop"]) == ("p", 3, True)
    assert (after["var"], after["line"], after["in_loop"]) == ("q", 4, False)


def test_do_while_tail_is_not_a_header():
    code = (
        "int main() {\n"
        "    do {\n"
        "        p = malloc(1);\n"
        "    } while (more);\n"
        "    q = malloc(2);\n"
        "}\n"
    )
    body, after = _events(code)

    assert body["in_loop"] is True
    assert after["in_loop"] is False


def test_function_cleared_after_closing_brace():
    code = (
        "char *make(void) {\n"
        "    char *p = malloc(10);\n"
        "    return p;\n"
        "}\n"
        "char *g = malloc(1);\n"
    )
    inside, outside = _events(code)

    assert inside["enclosing_function"] == "make"
    assert outside["enclosing_function"] is None


def test_newline_terminated_statements():
    statements = list(iter_statements("x = 1\ny = foo(1,\n  2)\nz = 3", LanguageTag.GO))

    assert [(s.line, s.text) for s in statements] == [
        (1, "x = 1"), (2, "y = foo(1, 2)"), (4, "z = 3"),
    ]


def test_balanced_span():
    text = "malloc(5 * sizeof(int))"

    assert balanced_span(text, text.index("(")) == "5 * sizeof(int)"
    assert balanced_span("malloc(10", 6) == "10"


# =============================================================================
# ONE LINE, SEVERAL STATEMENTS
# =============================================================================

def test_semicolons_split_statements_on_one_line():
    statements = list(iter_statements("free(a); free(b);", C))

    assert [s.text for s in statements] == ["free(a);", "free(b);"]
    assert [s.line for s in statements] == [1, 1]
    assert statements[1].line_text == "free(a); free(b);"


def test_for_header_and_string_semicolons_stay_whole():
    code = 'for (i = 0; i < n; i++) {\n    puts("a;b"); free(p);\n}\n'

    assert [s.text for s in iter_statements(code, C)] == [
        "for (i = 0; i < n; i++) {", 'puts("a;b");', "free(p);", "}",
    ]


def test_two_frees_on_one_line():
    code = "void f() {\n    char *a = malloc(1); char *b = malloc(2);\n    free(a); free(b);\n}\n"
    events = _events(code)

    assert [(e["kind"], e["var"], e["line"]) for e in events] == [
        ("allocation", "a", 2), ("allocation", "b", 2),
        ("deallocation", "a", 3), ("deallocation", "b", 3),
    ]
