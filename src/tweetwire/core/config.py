"""tweetwire connection configuration.

Defines the validated, immutable options model read by the transport
layer.  The request pipeline never mutates an instance: a client that
needs different settings replaces its options object wholesale, so a
call that has already captured its snapshot is unaffected.
"""
from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field

from tweetwire import __version__

DEFAULT_USER_AGENT = f"tweetwire/{__version__}"


class ConnectionOptions(BaseModel):
    """Connection settings shared by every call made through a client.

    Timeouts are in seconds; ``None`` means "no limit".  The streaming
    variant of a snapshot is obtained with :meth:`for_streaming`.
    """

    model_config = ConfigDict(strict=True, frozen=True)

    api_url: str = Field(
        default="https://api.twitter.com",
        description="Base URL of the REST API.",
    )
    upload_url: str = Field(
        default="https://upload.twitter.com",
        description="Base URL of the media upload API.",
    )
    stream_url: str = Field(
        default="https://stream.twitter.com",
        description="Base URL of the public streaming API.",
    )
    user_stream_url: str = Field(
        default="https://userstream.twitter.com",
        description="Base URL of the user streaming API.",
    )
    site_stream_url: str = Field(
        default="https://sitestream.twitter.com",
        description="Base URL of the site streaming API.",
    )
    api_version: str = Field(
        default="1.1",
        description="Version path segment inserted after the base URL.",
    )
    timeout: float | None = Field(
        default=100.0,
        gt=0,
        description=(
            "Connect and overall request timeout in seconds "
            "(None for no limit)."
        ),
    )
    read_write_timeout: float | None = Field(
        default=300.0,
        gt=0,
        description=(
            "Per-operation socket read/write timeout in seconds "
            "(None for no limit)."
        ),
    )
    use_proxy: bool = Field(
        default=True,
        description=(
            "When False, neither ``proxy`` nor proxy environment "
            "variables are used."
        ),
    )
    proxy: str | None = Field(
        default=None,
        description="Explicit proxy URL, e.g. ``http://proxy.local:3128``.",
    )
    user_agent: str = Field(
        default=DEFAULT_USER_AGENT,
        description="Value of the User-Agent header.",
    )
    use_compression: bool = Field(
        default=True,
        description="Accept gzip/deflate encoded responses.",
    )
    use_compression_on_streaming: bool = Field(
        default=False,
        description="Accept compressed responses on streaming connections.",
    )
    disable_keep_alive: bool = Field(
        default=True,
        description="Close the connection after every exchange.",
    )

    def for_streaming(self) -> ConnectionOptions:
        """Return the snapshot used for long-lived streaming connections.

        Compression follows ``use_compression_on_streaming`` and the
        read/write timeout is unlimited; the connect timeout is kept.
        """
        return self.model_copy(
            update={
                "use_compression": self.use_compression_on_streaming,
                "read_write_timeout": None,
            }
        )

    def get_url(self, base_url: str, rest: str, *, needs_version: bool = True) -> str:
        """Join *base_url*, the API version (optional) and *rest*."""
        parts = [base_url.rstrip("/")]
        if needs_version:
            parts.append(self.api_version)
        parts.append(rest.lstrip("/"))
        return "/".join(parts)

    def api_endpoint(self, name: str) -> str:
        """Return the REST URL for an endpoint name such as ``statuses/update``."""
        return self.get_url(self.api_url, f"{name}.json")
