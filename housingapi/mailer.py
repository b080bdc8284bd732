"""Templated e-mail delivery through the Mailgun HTTP API."""

from __future__ import annotations

import json
import logging
import os
from dataclasses import dataclass, field
from typing import Any, Optional

import requests

logger = logging.getLogger(__name__)

MAILGUN_API_BASE = "https://api.mailgun.net/v3"
_TIMEOUT = 10


@dataclass
class TemplateValues:
    """Variables handed to a Mailgun e-mail template."""

    is_eng: bool = False
    variables: dict = field(default_factory=dict)


class Mailer:
    """Sends e-mails built from Mailgun templates."""

    sender = "noreply@example.com"

    def __init__(self, domain: str, api_key: str, session: Optional[Any] = None) -> None:
        self.domain = domain
        self._api_key = api_key
        self._session = session if session is not None else requests.Session()

    @classmethod
    def from_env(cls) -> "Mailer":
        return cls(os.environ.get("MAILGUN_DOMAIN", ""), os.environ.get("MAILGUN_API_KEY", ""))

    def send_email(
        self,
        subject: str,
        body: str,
        recipient_email: str,
        template_name: str,
        template_values: TemplateValues,
    ) -> str:
        """Send a templated message and return the identifier Mailgun gives it.

        Raises requests.HTTPError when Mailgun refuses the message.
        """
        variables: dict = {"is_eng": template_values.is_eng}
        variables.update(template_values.variables)
        data = {
            "from": self.sender,
            "to": recipient_email,
            "subject": subject,
            "template": template_name,
            "h:X-Mailgun-Variables": json.dumps(variables),
        }
        if body:
            data["text"] = body
        response = self._session.post(
            f"{MAILGUN_API_BASE}/{self.domain}/messages",
            auth=("api", self._api_key),
            data=data,
            timeout=_TIMEOUT,
        )
        if response.status_code != 200:
            raise requests.HTTPError(
                f"mailgun refused the message: HTTP {response.status_code}",
                response=response,
            )
        payload = response.json()
        message_id = payload.get("id", "")
        logger.info("Email ID: %s Resp: %s", message_id, payload.get("message", ""))
        return message_id