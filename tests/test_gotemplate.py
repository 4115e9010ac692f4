"""Unit tests for utils/gotemplate (Go text/template engine)"""

from datetime import datetime, timedelta, timezone

import pytest

from conftest import EXPIRES_AT, PROXY_ENDPOINT
from ecr_login.utils.auth.providers import AuthRecord
from ecr_login.utils.gotemplate import Template, TemplateExecError, TemplateParseError
from ecr_login.utils.gotemplate.formatting import format_float, format_value, sprintf
from ecr_login.utils.gotemplate.gotime import format_layout, time_string


def render(source, data=None, **kwargs):
    return Template("t", **kwargs).parse(source).execute(data)


def record(user="AWS", password="hunter2", endpoint=PROXY_ENDPOINT):
    return AuthRecord(token="dG9rZW4=", user=user, password=password, proxy_endpoint=endpoint, expires_at=EXPIRES_AT)


class TestTextAndActions:
    """Tests for plain text, fields and printing"""

    def test_plain_text(self):
        assert render("hello world") == "hello world"

    def test_empty_template_renders_nothing(self):
        assert render("", []) == ""

    def test_record_fields_by_template_name(self):
        out = render("{{.User}} {{.Pass}} {{.ProxyEndpoint}} {{.Token}}", record())
        assert out == f"AWS hunter2 {PROXY_ENDPOINT} dG9rZW4="

    def test_python_field_name_also_resolves(self):
        assert render("{{.proxy_endpoint}}", record()) == PROXY_ENDPOINT

    def test_nested_map_fields(self):
        assert render("{{.a.b}}", {"a": {"b": "deep"}}) == "deep"

    def test_missing_map_key_prints_no_value(self):
        assert render("{{.Missing}}", {}) == "<no value>"

    def test_dot(self):
        assert render("{{.}}", "x") == "x"

    def test_literals(self):
        assert render('{{true}} {{1.5}} {{0x10}} {{"s"}} {{`raw\\n`}} {{\'a\'}}') == "true 1.5 16 s raw\\n 97"

    def test_booleans_print_like_go(self):
        assert render("{{.}}", False) == "false"

    def test_timestamp_prints_like_go(self):
        assert render("{{.ExpiresAt}}", record()) == "2024-01-02 03:04:05 +0000 UTC"

    def test_nil_timestamp_prints_no_value(self):
        rec = AuthRecord(token="t", user="u", password="p", proxy_endpoint="e")
        assert render("{{.ExpiresAt}}", rec) == "<no value>"


class TestTrimAndComments:
    """Tests for trim markers and comments"""

    def test_trim_markers(self):
        assert render("a  {{- 1 -}}  b") == "a1b"

    def test_trim_newlines(self):
        assert render("{{range .}}\n  {{- .}}\n{{- end}}", [1, 2]) == "12"

    def test_minus_number_is_not_trim(self):
        assert render("a {{-3}}") == "a -3"

    def test_comment_is_dropped(self):
        assert render("a{{/* a comment */}}b") == "ab"

    def test_trimmed_comment(self):
        assert render("a {{- /* comment */ -}} b") == "ab"


class TestControlStructures:
    """Tests for if, with, range, break and continue"""

    def test_range_over_records(self):
        out = render("{{range .}}{{.User}}@{{.ProxyEndpoint}}\n{{end}}", [record("a", endpoint="e1"), record("b", endpoint="e2")])
        assert out == "a@e1\nb@e2\n"

    def test_range_with_index_and_element(self):
        out = render("{{range $i, $r := .}}{{$i}}:{{$r.User}} {{end}}", [record("a"), record("b")])
        assert out == "0:a 1:b "

    def test_range_single_variable_is_element(self):
        assert render("{{range $r := .}}{{$r}}{{end}}", ["x", "y"]) == "xy"

    def test_range_over_map_is_sorted(self):
        assert render("{{range $k, $v := .}}{{$k}}={{$v}};{{end}}", {"b": 2, "a": 1}) == "a=1;b=2;"

    def test_range_over_integer(self):
        assert render("{{range 3}}{{.}}{{end}}") == "012"

    def test_range_else(self):
        assert render("{{range .}}x{{else}}empty{{end}}", []) == "empty"

    def test_range_over_nil_runs_else(self):
        assert render("{{range .Missing}}x{{else}}none{{end}}", {}) == "none"

    def test_range_over_string_is_an_error(self):
        with pytest.raises(TemplateExecError) as exc_info:
            render("{{range .}}{{.}}{{end}}", "abc")
        assert "range can't iterate over abc" in str(exc_info.value)

    def test_break(self):
        assert render("{{range .}}{{if eq . 3}}{{break}}{{end}}{{.}}{{end}}", [1, 2, 3, 4]) == "12"

    def test_continue(self):
        assert render("{{range .}}{{if eq . 2}}{{continue}}{{end}}{{.}}{{end}}", [1, 2, 3]) == "13"

    def test_if_else(self):
        source = "{{if .}}yes{{else}}no{{end}}"
        assert render(source, [1]) == "yes"
        assert render(source, []) == "no"

    def test_else_if_chain(self):
        source = "{{if eq . 1}}one{{else if eq . 2}}two{{else}}many{{end}}"
        assert render(source, 1) == "one"
        assert render(source, 2) == "two"
        assert render(source, 7) == "many"

    def test_with_sets_dot(self):
        assert render("{{with .a}}{{.b}}{{end}}", {"a": {"b": "inner"}}) == "inner"

    def test_with_else(self):
        assert render("{{with .a}}x{{else}}none{{end}}", {}) == "none"

    def test_variable_assignment_in_nested_scope(self):
        assert render("{{$x := 1}}{{if true}}{{$x = 2}}{{end}}{{$x}}") == "2"

    def test_variable_scope_ends_with_block(self):
        with pytest.raises(TemplateParseError) as exc_info:
            render("{{if true}}{{$x := 1}}{{end}}{{$x}}")
        assert 'undefined variable "$x"' in str(exc_info.value)

    def test_root_variable(self):
        assert render("{{range .items}}{{$.prefix}}{{.}} {{end}}", {"prefix": "-", "items": ["a", "b"]}) == "-a -b "


class TestTemplatesAndBlocks:
    """Tests for define, template and block"""

    def test_define_and_template(self):
        source = '{{define "line"}}{{.User}}@{{.ProxyEndpoint}}{{end}}{{range .}}{{template "line" .}}\n{{end}}'
        tmpl = Template("t").parse(source)
        assert tmpl.execute([record("a", endpoint="e1")]) == "a@e1\n"
        assert tmpl.templates() == ["line", "t"]

    def test_template_without_data_gets_nil(self):
        assert render('{{define "x"}}[{{.}}]{{end}}{{template "x"}}', "ignored") == "[<no value>]"

    def test_block_renders_default(self):
        assert render('{{block "name" .}}hello {{.}}{{end}}', "you") == "hello you"

    def test_execute_named_template(self):
        tmpl = Template("t").parse('{{define "other"}}other {{.}}{{end}}main')
        assert tmpl.execute("x", name="other") == "other x"

    def test_unknown_template_is_an_error(self):
        with pytest.raises(TemplateExecError) as exc_info:
            render('{{template "nope"}}')
        assert 'no such template "nope"' in str(exc_info.value)

    def test_recursion_is_limited(self):
        with pytest.raises(TemplateExecError) as exc_info:
            render('{{define "r"}}{{template "r" .}}{{end}}{{template "r" .}}')
        assert "maximum template depth" in str(exc_info.value)


class TestFunctions:
    """Tests for builtin and custom functions"""

    def test_pipeline_passes_final_argument(self):
        assert render('{{. | printf "%q"}}', "hi") == '"hi"'

    def test_printf(self):
        assert render('{{printf "%s-%d %05.2f" "x" 3 3.14159}}') == "x-3 03.14"

    def test_print_and_println(self):
        assert render('{{print 1 2 "a" 3}}') == "1 2a3"
        assert render('{{println 1 "a"}}') == "1 a\n"

    def test_len_and_index(self):
        assert render("{{len .}} {{index . 1}}", [1, 2, 3]) == "3 2"
        assert render('{{index .m "k"}}', {"m": {"k": "v"}}) == "v"

    def test_len_counts_bytes(self):
        assert render("{{len .}}", "é") == "2"

    def test_slice(self):
        assert render("{{slice . 1 3}}", "abcd") == "bc"

    def test_and_or(self):
        assert render("{{and 1 0}} {{or 0 \"\" \"x\"}} {{not 0}}") == "0 x true"

    def test_and_short_circuits(self):
        assert render("{{and false (index . 5)}}", []) == "false"

    def test_comparisons(self):
        assert render("{{lt 1 2}} {{ge 2 3}} {{ne \"a\" \"b\"}} {{eq 1 2 1}}") == "true false true true"

    def test_incompatible_comparison_is_an_error(self):
        with pytest.raises(TemplateExecError) as exc_info:
            render('{{eq "a" 1}}')
        assert "error calling eq: incompatible types for comparison" in str(exc_info.value)

    def test_escapers(self):
        assert render('{{html "<a&b>"}}') == "&lt;a&amp;b&gt;"
        assert render('{{urlquery "a b&c"}}') == "a+b%26c"
        assert render('{{js "it\'s"}}') == "it\\'s"

    def test_parenthesized_pipeline(self):
        assert render("{{(index . 0).User}}", [record("z")]) == "z"

    def test_custom_function(self):
        assert render("{{upper .User}}", record(), funcs={"upper": lambda s: s.upper()}) == "AWS"

    def test_wrong_argument_count(self):
        with pytest.raises(TemplateExecError) as exc_info:
            render("{{not 1 2}}")
        assert "wrong number of args for not" in str(exc_info.value)

    def test_index_out_of_range(self):
        with pytest.raises(TemplateExecError) as exc_info:
            render("{{index . 5}}", [1])
        assert "error calling index: index out of range: 5" in str(exc_info.value)


class TestTimestamps:
    """Tests for time.Time style methods on datetimes"""

    def test_format_rfc3339(self):
        assert render('{{.ExpiresAt.Format "2006-01-02T15:04:05Z07:00"}}', record()) == "2024-01-02T03:04:05Z"

    def test_unix(self):
        assert render("{{.ExpiresAt.Unix}}", record()) == "1704164645"

    def test_year(self):
        assert render("{{.ExpiresAt.Year}}", record()) == "2024"

    def test_unknown_method_is_an_error(self):
        with pytest.raises(TemplateExecError) as exc_info:
            render("{{.ExpiresAt.Nope}}", record())
        assert "can't evaluate field Nope in type time.Time" in str(exc_info.value)

    def test_layout_elements(self):
        dt = datetime(2024, 3, 5, 14, 7, 9, 123456, tzinfo=timezone(timedelta(hours=-5)))
        assert format_layout(dt, "Mon Jan _2 3:04PM MST") == "Tue Mar  5 2:07PM -0500"
        assert format_layout(dt, "05.000") == "09.123"
        assert format_layout(dt, "January 2006") == "March 2024"

    def test_time_string_drops_zero_fraction(self):
        dt = datetime(2024, 1, 2, 3, 4, 5, 120000, tzinfo=timezone.utc)
        assert time_string(dt) == "2024-01-02 03:04:05.12 +0000 UTC"


class TestErrors:
    """Tests for parse and execution errors"""

    def test_unknown_field_on_record(self):
        with pytest.raises(TemplateExecError) as exc_info:
            render("{{range .}}{{.Nope}}{{end}}", [record()])
        assert "can't evaluate field Nope in type AuthRecord" in str(exc_info.value)

    def test_exec_error_reports_line(self):
        with pytest.raises(TemplateExecError) as exc_info:
            render("a\n{{.Nope}}", record())
        error = exc_info.value
        assert error.line == 2
        assert str(error).startswith('template: t:2: executing "t" at <.Nope>:')

    def test_field_of_nil(self):
        with pytest.raises(TemplateExecError) as exc_info:
            render("{{.a.b}}", {})
        assert "nil pointer evaluating" in str(exc_info.value)

    @pytest.mark.parametrize(
        "source, message",
        [
            ("{{.User", "unclosed action"),
            ("{{nope}}", 'function "nope" not defined'),
            ("{{end}}", "unexpected {{end}}"),
            ("{{if .}}x", "unexpected EOF"),
            ("{{break}}", "{{break}} outside {{range}}"),
            ("{{$x}}", 'undefined variable "$x"'),
            ('{{"unterminated}}', "unterminated quoted string"),
            ("{{(1}}", "unclosed left paren"),
            ("{{/* open }}", "unclosed comment"),
            ("{{. | 1}}", "non executable command in pipeline stage 2"),
            ("{{if}}{{end}}", "missing value for if"),
        ],
    )
    def test_parse_errors(self, source, message):
        with pytest.raises(TemplateParseError) as exc_info:
            Template("t").parse(source)
        assert message in str(exc_info.value)

    def test_parse_error_reports_line(self):
        with pytest.raises(TemplateParseError) as exc_info:
            Template("t").parse("line one\n{{if}}{{end}}")
        assert exc_info.value.line == 2
        assert str(exc_info.value).startswith("template: t:2:")

    def test_executing_unparsed_template(self):
        with pytest.raises(TemplateExecError) as exc_info:
            Template("t").execute([])
        assert "incomplete or empty template" in str(exc_info.value)


class TestFormatting:
    """Tests for Go fmt-style value formatting"""

    @pytest.mark.parametrize(
        "value, expected",
        [
            (1.5, "1.5"),
            (100000.0, "100000"),
            (1000000.0, "1e+06"),
            (0.0001, "0.0001"),
            (0.00001, "1e-05"),
            (2.0, "2"),
        ],
    )
    def test_format_float(self, value, expected):
        assert format_float(value) == expected

    def test_format_collections(self):
        assert format_value([1, "a", True]) == "[1 a true]"
        assert format_value({"b": 1, "a": 2}) == "map[a:2 b:1]"
        assert format_value(None) == "<nil>"

    def test_format_record(self):
        rec = AuthRecord(token="t", user="u", password="p", proxy_endpoint="e")
        assert format_value(rec) == "{t u p e <nil>}"
        assert format_value(rec, plus=True) == "{Token:t User:u Pass:p ProxyEndpoint:e ExpiresAt:<nil>}"

    def test_sprintf_bad_arguments(self):
        assert sprintf("%d %d", [1]) == "1 %!d(MISSING)"
        assert sprintf("%d", [1, 2]) == "1%!(EXTRA int=2)"
        assert sprintf("%d", ["x"]) == "%!d(string=x)"
        assert sprintf("100%%", []) == "100%"

    def test_sprintf_verbs(self):
        assert sprintf("%v|%5s|%-4s|%x|%t|%T", [[1, 2], "ab", "c", 255, True, "s"]) == "[1 2]|   ab|c   |ff|true|string"
