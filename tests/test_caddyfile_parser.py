import pytest

from caddyshack.addresses import KeywordAwareClassifier
from caddyshack.caddyfile_parser import (
    CaddyfileStructureError,
    parse_all,
    parse_global_options,
    parse_sites,
    parse_snippets,
    scan_blocks,
)
from caddyshack.models import Directive, LogConfig, OrderRule


def test_multiple_addresses_share_one_site():
    sites = parse_sites("example.com www.example.com {\n  reverse_proxy localhost:8080\n}")
    assert len(sites) == 1
    assert sites[0].addresses == ["example.com", "www.example.com"]
    assert sites[0].directives == [Directive("reverse_proxy", ["localhost:8080"])]
    assert sites[0].raw_block == "reverse_proxy localhost:8080"


def test_comma_separated_addresses_across_lines():
    sites = parse_sites("example.com,\nwww.example.com {\n  respond ok\n}")
    assert sites[0].addresses == ["example.com", "www.example.com"]


def test_snippet_with_three_levels_of_nesting():
    text = """(site_log) {
  log {
    output file /var/log/caddy/access.log {
      roll_size 10mb
      roll_keep 5
    }
    format json
  }
}"""
    (snippet,) = parse_snippets(text)
    assert snippet.name == "site_log"
    (log,) = snippet.directives
    output = log.find("output")
    assert output.args == ["file", "/var/log/caddy/access.log"]
    assert [child.name for child in output.block] == ["roll_size", "roll_keep"]
    assert log.find("format") == Directive("format", ["json"])


def test_single_line_snippet_keeps_roll_settings_in_one_statement():
    text = (
        "(site_log) { log { output file /var/log/caddy/access.log "
        "{ roll_size 10mb roll_keep 5 } format json } }"
    )
    (snippet,) = parse_snippets(text)
    (log,) = snippet.directives
    output, fmt = log.block
    assert output.args == ["file", "/var/log/caddy/access.log"]
    assert output.block == [Directive("roll_size", ["10mb", "roll_keep", "5"])]
    assert fmt == Directive("format", ["json"])


def test_global_options_scalar_fields():
    options = parse_global_options("{ email a@b.com\n debug\n order rate_limit before basicauth }")
    assert options.email == "a@b.com"
    assert options.debug is True
    assert options.order_before == ["rate_limit"]
    assert options.order_after == []
    assert options.order_rules == [OrderRule("rate_limit", "before", "basicauth")]


def test_empty_input_yields_empty_results():
    assert parse_sites("") == []
    assert parse_snippets("") == []
    assert parse_global_options("") is None
    assert parse_all("").is_empty()


def test_example_file_sites_and_imports(example_caddyfile):
    sites = parse_sites(example_caddyfile)
    assert [site.addresses for site in sites] == [["portainer.example.com"], ["shop.example.com"]]
    assert sites[0].imports == ["proxy_headers", "site_log"]
    assert sites[1].imports == ["proxy_headers", "site_log", "php_bot_trap"]

    handle = sites[1].directives[-1]
    assert handle.name == "handle"
    assert handle.args == ["/script.js"]
    proxy = handle.find("reverse_proxy")
    assert proxy.block == [Directive("header_up", ["Host", "analytics.example.com"])]


def test_example_file_snippets_in_order(example_caddyfile):
    snippets = parse_snippets(example_caddyfile)
    assert [snippet.name for snippet in snippets] == ["site_log", "proxy_headers", "php_bot_trap"]
    header = snippets[1].directives[0]
    assert header.block == [Directive("X-Proxied-By", ['"Caddy"'])]
    trap = snippets[2]
    assert trap.directives[0] == Directive("@php_trap", ["path", "*.php"])


def test_example_file_global_log(example_caddyfile):
    options = parse_global_options(example_caddyfile)
    assert options.email == "ops@example.com"
    assert options.log == LogConfig(
        output="file /var/log/caddy/access.log",
        format="json",
        roll_size="10mb",
        roll_keep="5",
    )
    assert options.extra == []


def test_import_inside_nested_block_is_not_a_site_import():
    sites = parse_sites("example.com {\n  handle {\n    import inner\n  }\n  import outer\n}")
    assert sites[0].imports == ["outer"]


def test_imports_follow_directive_edits():
    site = parse_sites("example.com {\n  import a\n}")[0]
    site.directives.append(Directive("import", ["b"]))
    assert site.imports == ["a", "b"]


def test_snippet_directives_do_not_leak_into_sites():
    text = "(common) {\n  encode gzip\n}\nexample.com {\n  import common\n}"
    caddyfile = parse_all(text)
    assert caddyfile.sites[0].directives == [Directive("import", ["common"])]
    assert caddyfile.find_snippet("common").directives == [Directive("encode", ["gzip"])]


def test_only_first_global_block_is_used():
    options = parse_global_options("{\n  email first@example.com\n}\n{\n  email second@example.com\n}")
    assert options.email == "first@example.com"


def test_unmodeled_global_options_are_kept_in_extra():
    text = """{
  admin off
  acme_ca https://acme-staging-v02.api.letsencrypt.org/directory
  servers {
    protocols h1 h2
  }
  order cache after encode
  grace_period 10s
}"""
    options = parse_global_options(text)
    assert options.admin == "off"
    assert options.acme_ca.startswith("https://acme-staging")
    assert options.order_after == ["cache"]
    assert [directive.name for directive in options.extra] == ["servers", "grace_period"]


def test_unrepresentable_log_settings_go_to_log_extra():
    text = """{
  log {
    output stderr
    level DEBUG
    include http.log.access
  }
}"""
    options = parse_global_options(text)
    assert options.log.output == "stderr"
    assert options.log.level == "DEBUG"
    assert options.log.extra == [Directive("include", ["http.log.access"])]


def test_stray_tokens_and_unknown_blocks_are_skipped():
    text = "stray words\nexample.com {\n  respond ok\n}\nreverse_proxy {\n  to a\n}"
    caddyfile = parse_all(text)
    assert [site.addresses for site in caddyfile.sites] == [["example.com"]]


def test_brace_on_next_line_belongs_to_preceding_address():
    text = "example.com\n{\n  reverse_proxy localhost:8080\n}\n"
    caddyfile = parse_all(text)
    assert caddyfile.global_options is None
    assert caddyfile.sites[0].addresses == ["example.com"]
    assert caddyfile.sites[0].directives == [Directive("reverse_proxy", ["localhost:8080"])]


def test_brace_on_next_line_after_a_block_is_still_a_site():
    text = "{\n  debug\n}\nexample.com\n{\n  respond ok\n}\n"
    caddyfile = parse_all(text)
    assert caddyfile.global_options.debug is True
    assert caddyfile.global_options.extra == []
    assert [site.addresses for site in caddyfile.sites] == [["example.com"]]


def test_unterminated_quote_inside_a_block_is_tolerated():
    caddyfile = parse_all('example.com {\n  respond "oops\n}\n')
    (site,) = caddyfile.sites
    assert site.addresses == ["example.com"]
    assert site.directives == [Directive("respond", ['"oops\n}\n'])]
    assert 'respond "oops' in site.raw_block
    assert site.raw_block.endswith("}")


def test_custom_classifier_accepts_bare_hostnames():
    text = "intranet {\n  respond ok\n}"
    assert parse_sites(text) == []
    classifier = KeywordAwareClassifier(hosts={"intranet"})
    assert parse_sites(text, classifier=classifier)[0].addresses == ["intranet"]


def test_scan_blocks_reports_kinds_and_lines():
    blocks = scan_blocks("{\n  debug\n}\n(snip) {\n}\nexample.com {\n}")
    assert [(block.kind, block.labels, block.line) for block in blocks] == [
        ("global", [], 1),
        ("snippet", ["snip"], 4),
        ("site", ["example.com"], 6),
    ]


def test_unexpected_closing_brace_raises():
    with pytest.raises(CaddyfileStructureError) as excinfo:
        parse_all("example.com {\n  respond ok\n}\n}")
    assert excinfo.value.line == 4


def test_unclosed_block_raises():
    with pytest.raises(CaddyfileStructureError):
        parse_sites("example.com {\n  respond ok\n")
