# SPDX-License-Identifier: Apache-2.0
"""Tests for security masking utilities."""

from stockalert.security.mask import mask, safe_for_log


class TestMask:
    """Test the mask function."""

    def test_mask_api_key(self):
        assert mask("sk_test_key_123") == "sk_tes..._123"

    def test_mask_longer_key(self):
        assert mask("sk_live_abcdefghijklmnop") == "sk_liv...mnop"

    def test_mask_custom_head_and_tail(self):
        assert mask("sk_live_abcdefghijklmnop", head=3, tail=2) == "sk_...op"

    def test_mask_empty_string(self):
        assert mask("") == "sk_***"

    def test_mask_none(self):
        assert mask(None) == "sk_***"

    def test_mask_eight_characters_is_fully_hidden(self):
        assert mask("sk_12345") == "sk_***"

    def test_mask_nine_characters_is_partially_shown(self):
        assert mask("sk_123456") == "sk_123...3456"


class TestSafeForLog:
    """Test the safe_for_log function."""

    def test_replaces_secret(self):
        msg = "request with key sk_live_abcdef123456 failed"
        assert safe_for_log(msg, "sk_live_abcdef123456") == "request with key sk_liv...3456 failed"

    def test_multiple_secrets(self):
        msg = "key=sk_live_abcdef123456 token=tok_abcdefghijkl"
        result = safe_for_log(msg, "sk_live_abcdef123456", "tok_abcdefghijkl")
        assert "sk_live_abcdef123456" not in result
        assert "tok_abcdefghijkl" not in result
        assert "tok_ab...ijkl" in result

    def test_none_secrets_are_ignored(self):
        assert safe_for_log("nothing secret here", None, "") == "nothing secret here"

    def test_message_without_secret_is_unchanged(self):
        assert safe_for_log("GET /alerts", "sk_live_abcdef123456") == "GET /alerts"
