from urllib.parse import quote, urlencode
from config.app_config import ShareLinkConfig
from config.constants import SHARE_LINK_ALPN

class ShareLinkBuilder:
    """Builds vless:// connection links for the WebSocket+TLS inbound."""

    def __init__(self, config: ShareLinkConfig):
        self.config = config

    def build(self, uuid: str, label: str) -> str:
        host = self.config.public_host
        params = urlencode({
            "encryption": "none",
            "security": "tls",
            "sni": host,
            "alpn": SHARE_LINK_ALPN,
            "allowInsecure": "1",
            "type": "ws",
            "host": host,
            "path": self.config.ws_path,
        })
        return f"vless://{uuid}@{host}:{self.config.public_port}?{params}#{quote(label, safe='')}"
