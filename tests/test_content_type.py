import pytest
from securemail.email_service.content_type import ContentType
from securemail.exceptions import InputError


class TestContentTypeParsing:

    def test_default_is_octet_stream(self):
        assert ContentType().media_type == "application/octet-stream"
        assert str(ContentType()) == "application/octet-stream"

    def test_empty_string_parses_to_default(self):
        assert ContentType.parse("") == ContentType()

    def test_parse_simple_media_type(self):
        ct = ContentType.parse("Text/Plain")
        assert ct.media_type == "text/plain"
        assert ct.parameters == ()

    def test_parse_parameters(self):
        ct = ContentType.parse("text/plain; charset=UTF-8; format=flowed")
        assert ct.charset == "UTF-8"
        assert ct.get_param("format") == "flowed"

    def test_parse_quoted_parameter(self):
        ct = ContentType.parse(
            'multipart/signed; protocol="application/x-pkcs7-signature"; micalg=SHA1;'
        )
        assert ct.media_type == "multipart/signed"
        assert ct.get_param("protocol") == "application/x-pkcs7-signature"
        assert ct.get_param("micalg") == "SHA1"
        assert len(ct.parameters) == 2

    def test_parameter_keys_are_case_insensitive(self):
        ct = ContentType.parse("text/plain; CharSet=us-ascii")
        assert ct.get_param("CHARSET") == "us-ascii"

    def test_missing_slash_raises_input_error(self):
        with pytest.raises(InputError):
            ContentType("plain")


class TestContentTypeControlCharacters:

    @pytest.mark.parametrize("name", [
        "a.txt\r\nX-Injected: yes",
        "a.txt\nhello",
        "a.txt\r",
        "nul\x00.txt",
        "del\x7f.txt",
    ])
    def test_name_with_control_characters_raises(self, name):
        with pytest.raises(InputError):
            ContentType("text/plain").with_name(name)

    def test_parameter_tuple_is_checked_on_construction(self):
        with pytest.raises(InputError):
            ContentType("text/plain", (("charset", "us-ascii\r\nX-Injected: yes"),))

    def test_media_type_with_line_break_raises(self):
        with pytest.raises(InputError):
            ContentType("text/plain\r\nX-Injected: yes")

    def test_tab_is_allowed_and_quoted(self):
        ct = ContentType("text/plain").with_name("a\tb.txt")
        assert str(ct) == 'text/plain; name="a\tb.txt"'


class TestContentTypeRendering:

    def test_render_charset(self):
        ct = ContentType("text/plain").with_charset("US-ASCII")
        assert str(ct) == "text/plain; charset=us-ascii"

    def test_render_quotes_tspecials(self):
        ct = ContentType(
            "multipart/signed",
            (("protocol", "application/x-pkcs7-signature"), ("micalg", "sha-256")),
        )
        assert str(ct) == 'multipart/signed; protocol="application/x-pkcs7-signature"; micalg=sha-256'

    def test_name_is_always_quoted(self):
        ct = ContentType("application/pdf").with_name("report.pdf")
        assert str(ct) == 'application/pdf; name="report.pdf"'

    def test_non_ascii_name_uses_rfc2231(self):
        ct = ContentType("application/pdf").with_name("résumé.pdf")
        rendered = str(ct)
        assert rendered.startswith("application/pdf; name*=utf-8''")
        assert rendered.isascii()

    def test_parse_render_preserves_meaning(self):
        original = 'application/pkcs7-mime; smime-type=enveloped-data; name="smime.p7m"'
        assert str(ContentType.parse(original)) == original


class TestContentTypeBoundary:

    def test_with_boundary_returns_new_instance(self):
        ct = ContentType("multipart/mixed")
        bounded = ct.with_boundary("abc123")
        assert ct.boundary is None
        assert bounded.boundary == "abc123"
        assert str(bounded) == "multipart/mixed; boundary=abc123"

    def test_with_boundary_replaces_existing(self):
        ct = ContentType("multipart/mixed").with_boundary("one").with_boundary("two")
        assert ct.boundary == "two"
        assert len(ct.parameters) == 1

    def test_generated_boundaries_differ(self, settings):
        ct = ContentType("multipart/mixed")
        first = ct.with_generated_boundary(settings)
        second = ct.with_generated_boundary(settings)
        assert first.boundary != second.boundary

    def test_is_multipart(self):
        assert ContentType("multipart/mixed").is_multipart
        assert not ContentType("text/plain").is_multipart

    def test_with_param_none_removes(self):
        ct = ContentType("text/plain").with_charset("utf-8").with_charset(None)
        assert ct.charset is None
