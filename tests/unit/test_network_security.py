import random
import string

import pytest

from timeline_rss.utils.network import InvalidInstanceError, safe_url, validate_instance


def test_valid_instance_becomes_https_base_url():
    assert validate_instance("mastodon.social") == "https://mastodon.social/"


@pytest.mark.parametrize(
    "hostname",
    ["localhost", "a.b", "xn--bcher-kva.example", "social.example-host.org", "9gag.com", "a" * 63 + ".com"],
)
def test_accepts_dns_style_hostnames(hostname):
    assert validate_instance(hostname) == f"https://{hostname}/"


@pytest.mark.parametrize(
    "hostname",
    [
        "",
        "-bad.example",
        "bad-.example",
        "bad/host",
        "mastodon.social/../../admin",
        "..",
        "../etc/passwd",
        "mastodon.social:8080",
        "https://mastodon.social",
        "user@mastodon.social",
        "evil.com@mastodon.social",
        "mastodon..social",
        ".mastodon.social",
        "mastodon.social.",
        "mastodon social",
        "mastodon_social.example",
        "masto%2fdon.social",
        "mastodon.social\n",
        "mastodon.social?x=1",
        "mastodon.social#frag",
        "[::1]",
        "127.0.0.1:80",
        "xn--bücher.example",
        "a" * 64 + ".com",
        ("a" * 63 + ".") * 4 + "com",
    ],
)
def test_rejects_malformed_hostnames(hostname):
    with pytest.raises(InvalidInstanceError):
        validate_instance(hostname)


def test_rejects_hostname_over_253_characters():
    hostname = ".".join(["a" * 50] * 5) + ".abc"
    assert len(hostname) > 253
    with pytest.raises(InvalidInstanceError):
        validate_instance(hostname)


def test_fuzzed_hostnames_with_forbidden_characters_are_rejected():
    rng = random.Random(1234)
    alphabet = string.ascii_letters + string.digits + "-."
    for _ in range(500):
        base = "".join(rng.choice(alphabet) for _ in range(rng.randint(0, 30)))
        position = rng.randint(0, len(base))
        hostname = base[:position] + rng.choice("/:@") + base[position:]
        with pytest.raises(InvalidInstanceError):
            validate_instance(hostname)


def test_fuzzed_hostnames_only_pass_when_every_label_is_valid():
    rng = random.Random(99)
    alphabet = string.ascii_lowercase + string.digits + "-._~%"
    for _ in range(1000):
        hostname = "".join(rng.choice(alphabet) for _ in range(rng.randint(0, 40)))
        labels = hostname.split(".")
        expected_valid = bool(hostname) and all(
            0 < len(label) <= 63
            and not label.startswith("-")
            and not label.endswith("-")
            and all(char in string.ascii_lowercase + string.digits + "-" for char in label)
            for label in labels
        )
        if expected_valid:
            assert validate_instance(hostname) == f"https://{hostname}/"
        else:
            with pytest.raises(InvalidInstanceError):
                validate_instance(hostname)


@pytest.mark.parametrize(
    "url",
    ["javascript:alert(1)", "JAVASCRIPT:alert(1)", "data:text/html,<script>", "ftp://host/file", "//host/path", "/relative", "", None],
)
def test_safe_url_rejects_unsafe_or_relative_urls(url):
    assert safe_url(url) is None


def test_safe_url_keeps_http_and_https():
    assert safe_url("https://files.example/a.png?x=1&y=2") == "https://files.example/a.png?x=1&y=2"
    assert safe_url("http://files.example/a.png") == "http://files.example/a.png"


@pytest.mark.parametrize(
    "url",
    ["https://files.example/a\x0bb.png", "https://files.example/\x00", "https://files.example/\ud83d.png", "https://files.example/\uffff"],
)
def test_safe_url_rejects_characters_xml_cannot_carry(url):
    assert safe_url(url) is None
