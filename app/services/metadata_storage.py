"""
Credential metadata storage on IPFS.

Providers are tried in a fixed order until one returns a URI:
1. Pinata (PINATA_API_KEY + PINATA_SECRET_API_KEY)
2. IPFS HTTP API (IPFS_API_URL), e.g. a local node or Infura
3. Local hash: a CIDv0-shaped URI computed from the document itself, so
   issuance keeps working when nothing is configured or everything is down

Each provider gets exactly one attempt per upload with a bounded timeout.
"""

import hashlib
import json
import logging
import time
from typing import Any, Dict, List, Optional, Sequence

import base58
import requests

from app.core.config import settings
from app.core.errors import ErrorKind, UpstreamError

logger = logging.getLogger(__name__)

# multihash prefix for sha2-256 with a 32 byte digest (CIDv0 "Qm...")
SHA256_MULTIHASH_PREFIX = b"\x12\x20"


def canonical_json(document: Dict[str, Any]) -> bytes:
    return json.dumps(document, sort_keys=True, separators=(",", ":"), default=str).encode("utf-8")


def local_cid(document: Dict[str, Any]) -> str:
    """CIDv0 of the sha256 of the canonical JSON encoding of ``document``."""
    digest = hashlib.sha256(canonical_json(document)).digest()
    return base58.b58encode(SHA256_MULTIHASH_PREFIX + digest).decode("ascii")


def ipfs_uri(gateway_url: str, cid: str) -> str:
    return f"{gateway_url.rstrip('/')}/ipfs/{cid}"


class MetadataProvider:
    """Capability interface: store a JSON document and return its URI."""

    name: str = "provider"

    @property
    def is_configured(self) -> bool:
        return True

    def upload(self, document: Dict[str, Any]) -> str:
        raise NotImplementedError


class PinataProvider(MetadataProvider):
    name = "pinata"

    def __init__(
        self,
        api_key: Optional[str],
        secret_api_key: Optional[str],
        api_url: str = settings.PINATA_API_URL,
        gateway_url: str = settings.PINATA_GATEWAY_URL,
        timeout: float = settings.METADATA_PROVIDER_TIMEOUT_SECONDS,
        session: Optional[requests.Session] = None,
    ):
        self.api_key = api_key
        self.secret_api_key = secret_api_key
        self.api_url = api_url.rstrip("/")
        self.gateway_url = gateway_url
        self.timeout = timeout
        # plain requests.post per upload unless a session is injected
        self.session = session or requests

    @property
    def is_configured(self) -> bool:
        return bool(self.api_key and self.secret_api_key)

    def upload(self, document: Dict[str, Any]) -> str:
        body = {
            "pinataContent": document,
            "pinataMetadata": {"name": f"skillchain-credential-{int(time.time() * 1000)}.json"},
        }
        headers = {
            "Content-Type": "application/json",
            "pinata_api_key": self.api_key or "",
            "pinata_secret_api_key": self.secret_api_key or "",
        }
        try:
            response = self.session.post(
                f"{self.api_url}/pinning/pinJSONToIPFS",
                json=body,
                headers=headers,
                timeout=self.timeout,
            )
            response.raise_for_status()
            cid = response.json()["IpfsHash"]
        except (requests.RequestException, ValueError, KeyError, TypeError) as e:
            raise UpstreamError(
                f"Failed to upload to Pinata: {e}", ErrorKind.PROVIDER_FAILED, provider=self.name
            )
        return ipfs_uri(self.gateway_url, cid)


class IpfsHttpProvider(MetadataProvider):
    name = "ipfs-http"

    def __init__(
        self,
        api_url: Optional[str],
        api_key: Optional[str] = None,
        api_secret: Optional[str] = None,
        gateway_url: str = settings.IPFS_GATEWAY_URL,
        timeout: float = settings.METADATA_PROVIDER_TIMEOUT_SECONDS,
        session: Optional[requests.Session] = None,
    ):
        self.api_url = api_url.rstrip("/") if api_url else None
        self.api_key = api_key
        self.api_secret = api_secret
        self.gateway_url = gateway_url
        self.timeout = timeout
        self.session = session or requests

    @property
    def is_configured(self) -> bool:
        return bool(self.api_url)

    def upload(self, document: Dict[str, Any]) -> str:
        auth = (self.api_key, self.api_secret or "") if self.api_key else None
        files = {"file": ("metadata.json", canonical_json(document), "application/json")}
        try:
            response = self.session.post(
                f"{self.api_url}/api/v0/add",
                files=files,
                auth=auth,
                timeout=self.timeout,
            )
            response.raise_for_status()
            cid = response.json()["Hash"]
        except (requests.RequestException, ValueError, KeyError, TypeError) as e:
            raise UpstreamError(
                f"Failed to upload to IPFS: {e}", ErrorKind.PROVIDER_FAILED, provider=self.name
            )
        return ipfs_uri(self.gateway_url, cid)


class LocalHashProvider(MetadataProvider):
    """Synthesizes the URI locally; nothing is actually pinned."""

    name = "local-hash"

    def __init__(self, gateway_url: str = settings.IPFS_GATEWAY_URL):
        self.gateway_url = gateway_url

    def upload(self, document: Dict[str, Any]) -> str:
        return ipfs_uri(self.gateway_url, local_cid(document))


class MetadataStorageGateway:
    def __init__(self, providers: Sequence[MetadataProvider]):
        self.providers: List[MetadataProvider] = list(providers)

    def upload_metadata(self, document: Dict[str, Any]) -> str:
        """
        Store ``document`` with the first provider that succeeds.

        Raises:
            UpstreamError(METADATA_UPLOAD_FAILED): every configured provider failed
        """
        failures: List[str] = []
        for provider in self.providers:
            if not provider.is_configured:
                continue
            try:
                uri = provider.upload(document)
            except UpstreamError as e:
                logger.warning("metadata provider %s failed: %s", provider.name, e.message)
                failures.append(provider.name)
                continue
            except Exception:
                # a defect in a provider, not an environment condition
                logger.error("metadata provider %s raised unexpectedly", provider.name, exc_info=True)
                failures.append(provider.name)
                continue
            logger.info("metadata uploaded via %s: %s", provider.name, uri)
            return uri

        raise UpstreamError(
            "All metadata providers failed",
            ErrorKind.METADATA_UPLOAD_FAILED,
            details={"providers": failures},
        )


def build_metadata_gateway() -> MetadataStorageGateway:
    """Gateway wired from settings, in priority order."""
    return MetadataStorageGateway(
        [
            PinataProvider(
                api_key=settings.PINATA_API_KEY,
                secret_api_key=settings.PINATA_SECRET_API_KEY,
            ),
            IpfsHttpProvider(
                api_url=settings.IPFS_API_URL,
                api_key=settings.IPFS_API_KEY,
                api_secret=settings.IPFS_API_SECRET,
            ),
            LocalHashProvider(),
        ]
    )
