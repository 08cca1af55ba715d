"""
End-to-end tests of analyze()
"""

import pytest

import analyzer
from analyzer import analyze
from samples import C_SAMPLE, get_sample, JAVASCRIPT_SAMPLE, PYTHON_SAMPLE, SAMPLES
from type_defs import LanguageTag, WarningKind

INVALID_MESSAGE = "Invalid code input: code must be a non-empty string"


# =============================================================================
# C SAMPLE
# =============================================================================

@pytest.fixture
def c_report():
    return analyze(C_SAMPLE, "c")


def test_c_sample_allocations(c_report):
    assert [(a["var"], a["line"], a["size"]) for a in c_report["allocations"]] == [
        ("p", 6, 128), ("a", 12, 100), ("b", 15, 200), ("c", 18, 50), ("d", 23, 300),
    ]
    assert c_report["allocations"][0]["functionName"] == "helper_leak"


def test_c_sample_frees(c_report):
    assert [(f["var"], f["line"], f["freedAllocId"]) for f in c_report["frees"]] == [
        ("b", 26, "b_line15_2"), ("d", 27, "d_line23_4"),
    ]


def test_c_sample_leaks(c_report):
    leaks = c_report["leaks"]

    assert [(leak["var"], leak["line"], leak["size"]) for leak in leaks] == [
        ("p", 6, 128), ("a", 12, 100), ("c", 18, 50),
    ]
    assert leaks[0]["fix"] == (
        "Memory allocated in helper_leak() on line 6. "
        "Ensure caller frees this memory, or free it before function return."
    )
    assert leaks[1]["fix"] == "Add free(a); before function return or at appropriate cleanup point."


def test_c_sample_warnings(c_report):
    warnings = c_report["warnings"]

    assert [w["line"] for w in warnings] == [7, 13, 16, 19, 24]
    assert all(w["type"] == WarningKind.UNSAFE_FUNCTION for w in warnings)


def test_c_sample_timeline(c_report):
    assert c_report["timeline"] == [
        {"line": 6, "memory": 128},
        {"line": 12, "memory": 228},
        {"line": 15, "memory": 428},
        {"line": 18, "memory": 478},
        {"line": 23, "memory": 778},
        {"line": 26, "memory": 578},
        {"line": 27, "memory": 278},
    ]


def test_unfreed_buffer_with_strcpy():
    code = 'void f() {\n    char *buffer = malloc(100); strcpy(buffer, "x"); /* no free */\n}\n'
    report = analyze(code, "c")

    [leak] = report["leaks"]
    assert (leak["var"], leak["line"], leak["size"]) == ("buffer", 2, 100)
    [warning] = report["warnings"]
    assert warning["type"] == WarningKind.UNSAFE_FUNCTION
    assert warning["line"] == 2
    assert len(report["timeline"]) == 1


# =============================================================================
# OTHER LANGUAGES
# =============================================================================

def test_cpp_array_new():
    report = analyze("int main() {\n    int *arr = new int[8];\n    delete[] arr;\n}\n", "cpp")

    assert report["allocations"][0]["size"] == 32
    assert report["leaks"] == []


def test_cpp_reassignment_suggests_delete():
    code = "void f() {\n    int *x = new int(5);\n    x = new int(6);\n    delete x;\n}\n"
    report = analyze(code, "c++")

    [leak] = report["leaks"]
    assert leak["line"] == 2
    assert "Add delete x; before the reassignment." in leak["fix"]
    assert report["allocations"][0]["language"] == "cpp"


def test_javascript_sample():
    report = analyze(JAVASCRIPT_SAMPLE, "javascript")

    assert [f["var"] for f in report["frees"]] == ["cache"]
    leaked = {leak["var"] for leak in report["leaks"]}
    assert {"arr", "buffer", "obj", "data", "row"} <= leaked
    row = next(leak for leak in report["leaks"] if leak["var"] == "row")
    assert row["inLoop"] is True
    assert row["size"] == 800


def test_python_sample():
    report = analyze(PYTHON_SAMPLE, "py")

    assert [f["var"] for f in report["frees"]] == ["cache"]
    data = next(a for a in report["allocations"] if a["var"] == "data")
    assert data["size"] == 8000


def test_unknown_language_uses_generic_rules():
    report = analyze("char *p = malloc(10);", "cobol")

    assert report["allocations"][0]["language"] == "generic"
    assert report["allocations"][0]["size"] == 40


def test_commented_code_is_ignored():
    report = analyze("int main() {\n    /* char *p = malloc(10); */\n    char *q = malloc(4);\n}\n")

    assert [(a["var"], a["line"]) for a in report["allocations"]] == [("q", 3)]


def test_get_sample_defaults_to_c():
    assert get_sample("cobol") == C_SAMPLE
    assert get_sample(LanguageTag.PYTHON) == PYTHON_SAMPLE


@pytest.mark.parametrize("language", [tag for tag in LanguageTag if tag != LanguageTag.GENERIC])
def test_every_language_has_its_own_sample(language):
    assert language in SAMPLES
    if language != LanguageTag.C:
        assert get_sample(language) != C_SAMPLE

    report = analyze(get_sample(language), language)
    assert all(w["type"] != WarningKind.ANALYSIS_ERROR for w in report["warnings"])


@pytest.mark.parametrize("code, language", [
    ("let a = [1, 2];\nlet b = new Array(1e400);\nlet c = {};\n", "javascript"),
    ("a = [1, 2]\nb = bytearray(1e999)\nc = {}\n", "python"),
])
def test_infinite_size_hint_does_not_abort_analysis(code, language):
    report = analyze(code, language)

    assert [(a["var"], a["line"]) for a in report["allocations"]] == [("a", 1), ("b", 2), ("c", 3)]
    assert report["allocations"][1]["size"] == 8
    assert all(w["type"] != WarningKind.ANALYSIS_ERROR for w in report["warnings"])


def test_two_frees_on_one_line_release_both():
    code = "void f() {\n    char *a = malloc(4);\n    char *b = malloc(8);\n    free(a); free(b);\n}\n"
    report = analyze(code, "c")

    assert [f["var"] for f in report["frees"]] == ["a", "b"]
    assert report["leaks"] == []


def test_url_in_string_keeps_following_lines():
    code = 'int main() {\n    printf("http://x");\n    char *p = malloc(16);\n}\n'
    report = analyze(code, "c")

    assert [(a["var"], a["line"]) for a in report["allocations"]] == [("p", 3)]
    assert report["leaks"][0]["line"] == 3


# =============================================================================
# ERROR HANDLING
# =============================================================================

@pytest.mark.parametrize("code", ["", "   \n\t", None, 42])
def test_invalid_input_gives_error_report(code):
    report = analyze(code)

    assert report["allocations"] == []
    assert report["frees"] == []
    assert report["leaks"] == []
    assert report["timeline"] == []
    assert report["warnings"] == [{
        "type": WarningKind.ANALYSIS_ERROR,
        "line": 0,
        "message": INVALID_MESSAGE,
        "lineText": "",
    }]


def test_unexpected_failure_gives_error_report(monkeypatch):
    def explode(code, language):
        raise RuntimeError("boom")

    monkeypatch.setattr(analyzer, "extract_events", explode)
    report = analyze("char *p = malloc(4);")

    [warning] = report["warnings"]
    assert warning["type"] == WarningKind.ANALYSIS_ERROR
    assert warning["message"] == "Analysis encountered an error: boom. Some results may be incomplete."
    assert report["leaks"] == []


def test_analysis_is_repeatable():
    assert analyze(C_SAMPLE) == analyze(C_SAMPLE)
