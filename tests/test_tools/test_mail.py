"""
Tests for MailCommand against a /bin/sh stand-in for `mail`.
"""

from pathlib import Path

from make3dbrain.tools.mail import MailCommand


def test_send_without_cc(fake_mail: Path, tmp_path: Path) -> None:
    result = MailCommand().send("user@kumc.edu", "Subject line", "hello\nbody\n")

    assert result.ok
    assert result.stage == "notify"
    assert fake_mail.read_text().splitlines() == ["-s", "Subject line", "user@kumc.edu"]
    assert (tmp_path / "mail.body").read_text() == "hello\nbody\n"


def test_send_with_cc(fake_mail: Path) -> None:
    MailCommand().send("user@other.org", "Subject", "body", cc="admin@kumc.edu")

    assert fake_mail.read_text().splitlines() == [
        "-s",
        "Subject",
        "-c",
        "admin@kumc.edu",
        "user@other.org",
    ]


def test_custom_executable(fake_bin, tmp_path: Path) -> None:
    marker = tmp_path / "mailx.called"
    fake_bin("mailx", f'cat > "{marker}"')

    tool = MailCommand("mailx")
    assert tool.executable == "mailx"
    assert tool.available()
    assert tool.send("a@b.co", "s", "text").ok
    assert marker.read_text() == "text"


def test_send_failure(fake_bin) -> None:
    fake_bin("mail", 'echo "send-mail: cannot connect" >&2\nexit 75')

    result = MailCommand().send("user@kumc.edu", "s", "b")

    assert not result.ok
    assert result.returncode == 75
    assert "cannot connect" in result.detail
