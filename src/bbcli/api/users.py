"""Current-user accessor."""

from __future__ import annotations

from bbcli.api.common import User
from bbcli.client import Client, parse_response


def get_current_user(client: Client) -> User:
    """Return the account the client's token belongs to."""
    return parse_response(client.get("/user"), User)
