"""Host API key validation.

Each configured key identifies one host. Keys are matched by plain string
lookup against the configured mapping.
"""


class HostKeyValidator:
    """Resolves X-API-Key values to the host they belong to."""

    def __init__(self, host_keys: dict[str, str]) -> None:
        """Initialize validator with the key to host id mapping.

        Args:
            host_keys: Mapping of API key to host id

        Raises:
            ValueError: If no keys are configured
        """
        if not host_keys:
            raise ValueError("At least one host API key must be provided")

        self.host_keys = dict(host_keys)

    def get_host_id(self, api_key: str) -> str | None:
        """Return the host id for an API key, or None if the key is unknown."""
        return self.host_keys.get(api_key)


def parse_host_keys(raw: str) -> dict[str, str]:
    """Parse a ``key:host_id,key:host_id`` string.

    Entries without a host id map the key to itself.

    Args:
        raw: Comma separated key/host pairs

    Returns:
        Mapping of API key to host id
    """
    host_keys: dict[str, str] = {}
    for pair in raw.split(","):
        pair = pair.strip()
        if not pair:
            continue
        key, _, host_id = pair.partition(":")
        key = key.strip()
        if key:
            host_keys[key] = host_id.strip() or key
    return host_keys
