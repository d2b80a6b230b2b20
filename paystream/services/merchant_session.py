import logging
import ssl
from typing import Optional

import httpx
from fastapi import HTTPException

from paystream.core.config import MerchantConfig

logger = logging.getLogger(__name__)


class MerchantSessionValidator:
    """Proxy for Apple Pay merchant validation"""

    def __init__(
        self,
        config: MerchantConfig,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """
        Args:
            config: Merchant identity, built once at startup
            transport: Optional httpx transport (tests inject a mock here)
        """
        self.config = config
        self._transport = transport

    def build_payload(self) -> dict:
        """Body sent to the Apple Pay validation URL"""
        return {
            "merchantIdentifier": self.config.merchant_id,
            "displayName": self.config.display_name,
            "initiative": "web",
            "initiativeContext": self.config.domain,
        }

    def _load_client_identity(self) -> ssl.SSLContext:
        """
        Read the merchant certificate from disk.

        The file is read on every call so a rotated certificate is picked up
        without a restart.

        Returns:
            SSL context presenting the merchant certificate as client identity
        """
        context = ssl.create_default_context()
        # PEM containing cert + private key
        context.load_cert_chain(certfile=self.config.cert_path)
        return context

    async def validate(self, validation_url: Optional[str]) -> bytes:
        """
        Exchange a validation URL for a signed merchant session.

        Args:
            validation_url: URL handed to the browser by ApplePaySession

        Returns:
            Raw response body from Apple (the merchant session object)

        Raises:
            HTTPException: 501 if disabled, 400 on a missing URL, 500 on missing
                config or any failure to reach Apple, Apple's own status otherwise
        """
        if not self.config.enabled:
            raise HTTPException(
                status_code=501,
                detail="Apple Pay validation disabled on this server."
            )

        if not validation_url:
            raise HTTPException(status_code=400, detail="Missing validationURL")

        if not self.config.allows_url(validation_url):
            logger.warning(f"Rejected validation URL outside allow-list: {validation_url}")
            raise HTTPException(status_code=400, detail="Invalid validationURL")

        if not self.config.is_complete:
            raise HTTPException(status_code=500, detail="Merchant config missing.")

        try:
            identity = self._load_client_identity()

            async with httpx.AsyncClient(
                verify=identity,
                timeout=self.config.timeout,
                transport=self._transport,
            ) as client:
                response = await client.post(validation_url, json=self.build_payload())

            if not response.is_success:
                logger.warning(
                    f"Apple Pay validation rejected with {response.status_code}"
                )
                raise HTTPException(
                    status_code=response.status_code,
                    detail=response.text or "Apple error"
                )

            return response.content

        except HTTPException:
            raise
        except Exception:
            logger.exception("Apple Pay merchant validation failed")
            raise HTTPException(
                status_code=500,
                detail="Validation request failed."
            )
