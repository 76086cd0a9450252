"""
Cloudflare Access authentication helpers.

Builds the service-token headers for a connection and recognizes the
Access login redirect that masquerades as a successful response.
"""

from urllib.parse import urlparse

from dbconnect.core.models import ConnectionConfig, Response

CLIENT_ID_HEADER = "Cf-Access-Client-Id"
CLIENT_SECRET_HEADER = "Cf-Access-Client-Secret"

# Access serves its login page from <team>.cloudflareaccess.com
ACCESS_DOMAIN = "cloudflareaccess.com"
ACCESS_REJECTED_MESSAGE = "client credentials rejected by cloudflare access"


def credential_headers(config: ConnectionConfig) -> dict[str, str]:
    """Build the headers that authenticate requests for a connection.

    Args:
        config: Connection configuration.

    Returns:
        Client id and secret headers when both are configured, else {}.
    """
    if not config.has_credentials:
        return {}
    return {
        CLIENT_ID_HEADER: config.client_id,
        CLIENT_SECRET_HEADER: config.client_secret,
    }


def is_access_redirect(response: Response) -> bool:
    """Return True if a response ended on the Access login page.

    Access answers invalid credentials with a redirect to a 200 login
    page instead of an error status.
    """
    if not response.redirected:
        return False
    hostname = urlparse(response.url).hostname or ""
    return hostname == ACCESS_DOMAIN or hostname.endswith("." + ACCESS_DOMAIN)
