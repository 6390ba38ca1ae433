"""Telephony gateway adapter (Twilio)."""
import asyncio
import logging
from abc import ABC, abstractmethod
from typing import Any, Optional

from twilio.base.exceptions import TwilioException, TwilioRestException
from twilio.rest import Client

from app.core.config import settings

logger = logging.getLogger(__name__)


class TelephonyError(Exception):
    """The gateway rejected or failed to accept a call request."""


class TelephonyGateway(ABC):
    """Places outbound calls."""

    @abstractmethod
    async def create_call(
        self,
        to_number: str,
        callback_url: str,
        from_number: Optional[str] = None,
        **options: Any,
    ) -> str:
        """Ask the gateway to dial; returns the provider-assigned call id."""
        pass


class TwilioGateway(TelephonyGateway):
    """Gateway backed by the Twilio REST API."""

    def __init__(
        self,
        account_sid: Optional[str] = None,
        auth_token: Optional[str] = None,
        from_number: Optional[str] = None,
        timeout: Optional[float] = None,
        client: Optional[Client] = None,
    ):
        self.account_sid = account_sid or settings.twilio_account_sid
        self.auth_token = auth_token or settings.twilio_auth_token
        self.from_number = from_number or settings.twilio_phone_number
        self.timeout = timeout if timeout is not None else settings.telephony_timeout_seconds
        self._client = client

    def _get_client(self) -> Client:
        if self._client is None:
            self._client = Client(self.account_sid, self.auth_token)
        return self._client

    async def create_call(
        self,
        to_number: str,
        callback_url: str,
        from_number: Optional[str] = None,
        **options: Any,
    ) -> str:
        """
        Place an outbound call.

        Args:
            to_number: Destination number
            callback_url: TwiML webhook URL for the call
            from_number: Caller id (defaults to the configured Twilio number)
            **options: Extra arguments for calls.create (record, timeout, ...)

        Returns:
            Twilio call SID

        Raises:
            TelephonyError: Twilio rejected the request or did not answer in time
        """
        params = {
            "to": to_number,
            "from_": from_number or self.from_number,
            "url": callback_url,
            "method": "POST",
            "status_callback": callback_url,
            "status_callback_method": "POST",
            "status_callback_event": ["ringing", "answered", "completed"],
            "record": settings.record_calls,
            "timeout": settings.call_ring_timeout_seconds,
        }
        params.update(options)

        try:
            client = self._get_client()
            call = await asyncio.wait_for(
                asyncio.to_thread(client.calls.create, **params),
                timeout=self.timeout,
            )
        except asyncio.TimeoutError as e:
            raise TelephonyError(f"Twilio did not respond within {self.timeout:.0f}s") from e
        except TwilioRestException as e:
            raise TelephonyError(e.msg or str(e)) from e
        except TwilioException as e:
            raise TelephonyError(str(e)) from e

        logger.info(f"[TELEPHONY] Outbound call created - CallSid: {call.sid}, To: {to_number}")
        return call.sid
