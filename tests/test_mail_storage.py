"""Tests for mail rendering/delivery fallbacks and local object storage."""

import pytest

from socialnet.mail import Mailer, MailMessage, TemplateKind, render
from socialnet.storage import LocalObjectStorage


def _message(link="https://example.com/verify/abc"):
    return MailMessage(
        recipient="bob@example.com",
        subject="Email verification",
        template_kind=TemplateKind.EMAIL_VERIFICATION,
        template_params={"username": "bob", "link": link},
    )


def test_render_contains_link_and_name():
    text, html = render(_message(), "Social Network API")
    assert "https://example.com/verify/abc" in text
    assert "Hi bob" in text
    assert 'href="https://example.com/verify/abc"' in html


def test_render_escapes_html():
    msg = MailMessage(
        recipient="x@example.com",
        subject="s",
        template_kind=TemplateKind.PASSWORD_RESET,
        template_params={"username": "<script>", "link": "https://e.com/r/1"},
    )
    _, html = render(msg, "P")
    assert "<script>" not in html
    assert "&lt;script&gt;" in html


@pytest.mark.asyncio
async def test_mailer_without_smtp_host_does_not_send(test_settings):
    assert test_settings.smtp_host == ""
    assert await Mailer(test_settings).send(_message()) is False


@pytest.mark.asyncio
async def test_mailer_swallows_delivery_errors(test_settings):
    settings = test_settings.model_copy(update={"smtp_host": "127.0.0.1", "smtp_port": 1})
    # nothing listens on port 1; the failure is logged, not raised
    assert await Mailer(settings).send(_message()) is False


@pytest.mark.asyncio
async def test_local_storage_upload_and_delete(test_settings, tmp_path):
    storage = LocalObjectStorage(test_settings)
    stored = await storage.upload(b"\x89PNG fake", "me.png", "image/png")
    assert stored.provider_id.endswith(".png")
    assert stored.url == f"/media/{stored.provider_id}"
    path = tmp_path / "media" / stored.provider_id
    assert path.read_bytes() == b"\x89PNG fake"

    assert await storage.delete(stored.provider_id) is True
    assert not path.exists()
    assert await storage.delete(stored.provider_id) is False
    assert await storage.delete(None) is False


@pytest.mark.asyncio
async def test_local_storage_delete_stays_inside_root(test_settings, tmp_path):
    outside = tmp_path / "keep.txt"
    outside.write_text("keep")
    storage = LocalObjectStorage(test_settings)
    assert await storage.delete("../keep.txt") is False
    assert outside.exists()
