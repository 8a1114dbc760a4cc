"""Create async JSON-RPC connections.

- JSON-RPC URL is read from `JSON_RPC_URL` environment variable
- Timeouts are a property of the connection, the deposit builder does not set any
"""

import logging
import os

import aiohttp
from web3 import AsyncHTTPProvider, AsyncWeb3

from vault_deposit.utils import get_url_domain


logger = logging.getLogger(__name__)


#: Environment variable holding the node URL
JSON_RPC_URL_ENV = "JSON_RPC_URL"

#: Seconds before a single JSON-RPC request is aborted
DEFAULT_REQUEST_TIMEOUT = 30.0


def read_json_rpc_url(env_var: str = JSON_RPC_URL_ENV) -> str:
    """Read JSON-RPC URL from environment variable.

    :raises ValueError: If the environment variable is not set.
    """
    json_rpc_url = os.environ.get(env_var)
    if not json_rpc_url:
        raise ValueError(f"Environment variable {env_var} is not set")
    return json_rpc_url


def create_async_web3(
    json_rpc_url: str,
    request_timeout: float = DEFAULT_REQUEST_TIMEOUT,
) -> AsyncWeb3:
    """Create an async web3 connection over HTTP.

    No network traffic happens until the first request.

    Example:

    .. code-block:: python

        web3 = create_async_web3(read_json_rpc_url())
        chain_id = await web3.eth.chain_id

    :param json_rpc_url:
        Node URL. May contain an API key, only the domain is logged.

    :param request_timeout:
        Total timeout per request, in seconds
    """
    assert json_rpc_url.startswith(("http://", "https://")), f"Only HTTP(S) JSON-RPC supported, got {get_url_domain(json_rpc_url)}"
    assert request_timeout > 0, f"Got timeout {request_timeout}"

    provider = AsyncHTTPProvider(
        json_rpc_url,
        request_kwargs={"timeout": aiohttp.ClientTimeout(total=request_timeout)},
    )
    logger.info("Created async JSON-RPC connection to %s, timeout %s seconds", get_url_domain(json_rpc_url), request_timeout)
    return AsyncWeb3(provider)
