"""
Tests for verification email content
"""

from utils.mailer import MockMailer, _verification_html, build_verification_url


def test_verification_link():
    assert build_verification_url("abc").endswith("/verify-email?token=abc")


def test_name_is_escaped_in_html():
    body = _verification_html("<b>Eve</b> & co", build_verification_url("abc"))
    assert "Hi &lt;b&gt;Eve&lt;/b&gt; &amp; co," in body
    assert "<b>Eve</b>" not in body


def test_mock_mailer_logs_link(caplog):
    caplog.set_level("INFO")
    MockMailer().send_verification_email("jane@stu.acme.edu", "Jane", "abc")
    assert build_verification_url("abc") in caplog.text
