from datatable_wizard.service.url_check import (
    extract_domain,
    is_localhost,
    is_secure_url,
    is_valid_url,
    suggest_url_fix,
    validate_url,
)


class TestIsValidUrl:
    def test_valid(self):
        assert is_valid_url("https://api.example.com/users")
        assert is_valid_url("http://localhost:3000/:id")

    def test_invalid(self):
        assert not is_valid_url("")
        assert not is_valid_url(None)
        assert not is_valid_url("api.example.com")
        assert not is_valid_url("ftp://example.com")
        assert not is_valid_url("https://")

    def test_secure(self):
        assert is_secure_url("https://a.com")
        assert not is_secure_url("http://a.com")


class TestSuggestUrlFix:
    def test_protocol_typo(self):
        suggestion = suggest_url_fix("htps://api.com/users")
        assert suggestion.fixed_url == "https://api.com/users"
        assert suggestion.suggestions[0] == 'Did you mean "https://"?'
        assert suggestion.is_valid is True

    def test_missing_protocol(self):
        suggestion = suggest_url_fix("api.example.com/users")
        assert suggestion.fixed_url == "https://api.example.com/users"
        assert "URL should start with http:// or https://" in suggestion.suggestions

    def test_upgrade_to_https(self):
        suggestion = suggest_url_fix("http://api.com")
        assert suggestion.fixed_url == "https://api.com"
        assert suggestion.is_secure is True

    def test_localhost_kept_on_http(self):
        suggestion = suggest_url_fix("http://localhost:8080/api")
        assert suggestion.fixed_url is None
        assert suggestion.suggestions == []

    def test_spaces_removed(self):
        suggestion = suggest_url_fix("https://api.com/my users")
        assert suggestion.fixed_url == "https://api.com/myusers"
        assert "URL should not contain spaces" in suggestion.suggestions

    def test_empty(self):
        assert suggest_url_fix("").suggestions == ["Please enter a URL"]


class TestValidateUrl:
    def test_required(self):
        check = validate_url("  ")
        assert check.valid is False
        assert check.error == "URL is required"
        assert check.severity == "error"

    def test_invalid_with_fix(self):
        check = validate_url("htp://api.com")
        assert check.valid is False
        assert check.fixed_url == "https://api.com"

    def test_http_warns(self):
        check = validate_url("http://api.com")
        assert check.valid is True
        assert check.warning == "URL is not secure (HTTPS recommended)"
        assert check.severity == "warning"

    def test_https(self):
        check = validate_url("https://api.com/:id")
        assert check.valid is True
        assert check.warning is None
        assert check.severity == "success"


class TestDomainHelpers:
    def test_extract_domain(self):
        assert extract_domain("https://api.example.com:8443/x") == "api.example.com"
        assert extract_domain("nope") == ""

    def test_is_localhost(self):
        assert is_localhost("http://localhost:3000")
        assert is_localhost("http://192.168.1.10/api")
        assert not is_localhost("https://api.example.com")
