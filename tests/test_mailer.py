from __future__ import annotations

from dataclasses import replace
import smtplib

import pytest

from garage_auth.core import config as core_config
from garage_auth.core import mailer
from garage_auth.core.errors import DeliveryError
from garage_auth.core.mailer import SmtpNotificationGateway


class FakeSMTP:
    instances: list["FakeSMTP"] = []
    fail_with: Exception | None = None

    def __init__(self, host, port, **kwargs):
        self.host = host
        self.port = port
        self.sent: list[tuple[str, list[str], str]] = []
        self.logged_in = None
        FakeSMTP.instances.append(self)

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        return False

    def ehlo(self):
        pass

    def starttls(self, context=None):
        pass

    def login(self, user, password):
        self.logged_in = user

    def sendmail(self, sender, recipients, message):
        if FakeSMTP.fail_with is not None:
            raise FakeSMTP.fail_with
        self.sent.append((sender, recipients, message))


@pytest.fixture()
def smtp_settings(monkeypatch):
    monkeypatch.setenv("SMTP_HOST", "smtp.garage.test")
    monkeypatch.setenv("SMTP_PORT", "465")
    monkeypatch.setenv("SMTP_USER", "mailer")
    monkeypatch.setenv("SMTP_PASSWORD", "secret")
    monkeypatch.setenv("SMTP_FROM", "no-reply@garage.test")
    core_config.get_settings.cache_clear()
    FakeSMTP.instances = []
    FakeSMTP.fail_with = None
    monkeypatch.setattr(mailer.smtplib, "SMTP_SSL", FakeSMTP)
    monkeypatch.setattr(mailer.smtplib, "SMTP", FakeSMTP)
    yield core_config.get_settings()
    core_config.get_settings.cache_clear()


def test_send_over_ssl(smtp_settings):
    SmtpNotificationGateway(smtp_settings).send("admin@garage.test", "New user verification", "code: 123456")

    server = FakeSMTP.instances[-1]
    assert server.port == 465
    assert server.logged_in == "mailer"
    sender, recipients, message = server.sent[0]
    assert sender == "no-reply@garage.test"
    assert recipients == ["admin@garage.test"]
    assert "Subject: New user verification" in message


def test_send_with_starttls_port(smtp_settings):
    settings = replace(smtp_settings, smtp_port=587)
    SmtpNotificationGateway(settings).send("a@x.com", "Password recovery", "code is: 654321")
    assert FakeSMTP.instances[-1].port == 587
    assert FakeSMTP.instances[-1].sent


def test_transport_errors_become_delivery_errors(smtp_settings):
    FakeSMTP.fail_with = smtplib.SMTPRecipientsRefused({"a@x.com": (550, b"no such user")})
    with pytest.raises(DeliveryError):
        SmtpNotificationGateway(smtp_settings).send("a@x.com", "Password recovery", "body")


def test_missing_configuration_is_a_delivery_error(smtp_settings):
    settings = replace(smtp_settings, smtp_host="")
    with pytest.raises(DeliveryError):
        SmtpNotificationGateway(settings).send("a@x.com", "Password recovery", "body")
    assert FakeSMTP.instances == []
