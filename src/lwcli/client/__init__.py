"""HTTP client module for lwcli.

Provides :class:`LaceworkClient`, a blocking client for the Lacework REST
API that wraps :mod:`httpx` with the access-token exchange, bearer auth, and
typed error mapping.

Example::

    from lwcli.client import LaceworkClient

    with LaceworkClient(profile, secret) as client:
        integrations = client.list_integrations()
"""

from lwcli.client.sync_client import LaceworkClient

__all__ = ["LaceworkClient"]
