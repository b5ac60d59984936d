"""HTTP client module for ec3api.

Provides :class:`Ec3Client`, a blocking client that wraps :mod:`httpx`
with bearer-token auth, the ``mf`` filter parameter, and retry on
HTTP 429/503 honouring the server's ``retry-after`` hint.

Example::

    from ec3api.client import Ec3Client, parse_json_body

    with Ec3Client("https://buildingtransparency.org/api/", api_key) as client:
        resp = client.get("materials", filter_text=query)
        payload = parse_json_body(resp)
"""

from ec3api.client.response import parse_json_body
from ec3api.client.sync_client import Ec3Client

__all__ = ["Ec3Client", "parse_json_body"]
