"""Outgoing webhook message and its wire encoding."""

import json

from typing import Dict

from pydantic import BaseModel, ConfigDict

from slackpipe.exceptions import EncodingError
from slackpipe.utils.constants import DEFAULT_PARSE_MODE


class OutgoingMessage(BaseModel):
    """One message posted to an incoming webhook."""

    model_config = ConfigDict(frozen=True)

    channel: str
    username: str = ""
    icon: str = ""
    parse: str = DEFAULT_PARSE_MODE
    text: str = ""

    def with_text(self, text: str) -> "OutgoingMessage":
        """Return a copy of this message carrying ``text`` as its body."""
        return self.model_copy(update={"text": text})

    def to_payload(self) -> Dict[str, str]:
        """Build the JSON object Slack expects.

        Empty sender fields are left out so the webhook's own defaults apply.
        An icon that is a URL goes out as ``icon_url``, anything else as
        ``icon_emoji``.
        """
        payload = {"channel": self.channel}
        if self.username:
            payload["username"] = self.username
        payload["text"] = self.text
        payload["parse"] = self.parse
        if self.icon:
            if self.icon.startswith(("http://", "https://")):
                payload["icon_url"] = self.icon
            else:
                payload["icon_emoji"] = self.icon
        return payload

    def encode(self) -> str:
        """Serialize to the JSON string sent in the ``payload`` form field.

        Raises:
            EncodingError: If the message cannot be serialized
        """
        try:
            return json.dumps(self.to_payload(), ensure_ascii=False)
        except (TypeError, ValueError) as e:
            raise EncodingError(f"Could not encode message: {e}") from e

    def form_data(self) -> Dict[str, str]:
        """Form body for the webhook POST."""
        return {"payload": self.encode()}
