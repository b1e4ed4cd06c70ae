import asyncio
import logging
from datetime import datetime
from typing import Dict, List, Optional, Union

import httpx

from duty_roster.domain.templates import personalize_message
from duty_roster.load_secrets import (
    at_api_key,
    at_from,
    at_username,
    beem_api_key,
    beem_secret_key,
    beem_source_addr,
    sms_provider,
)
from duty_roster.models.dc_models import SmsMessageModel, SmsStatusModel, TemplateModel, UserModel
from duty_roster.models.schema_models import NotificationTemplateSchema

BEEM_URL = "https://apisms.beem.africa/v1/send"
AFRICAS_TALKING_URL = "https://api.africastalking.com/version1/messaging"

BEEM = "beem"
AFRICAS_TALKING = "africas-talking"


class SmsGateway:
    """Send SMS through Beem Africa or Africa's Talking.

    Failures never raise; they come back as a message with status failed.
    """

    def __init__(self, provider: str = sms_provider, client: Optional[httpx.AsyncClient] = None):
        if provider not in (BEEM, AFRICAS_TALKING):
            raise ValueError(f"Unknown SMS provider: {provider}")
        self.provider = provider
        self.client = client or httpx.AsyncClient(timeout=10.0)

    async def aclose(self) -> None:
        await self.client.aclose()

    async def _call_beem(self, to: str, message: str) -> httpx.Response:
        payload = {
            "source_addr": beem_source_addr,
            "encoding": 0,
            "message": message,
            "recipients": [{"recipient_id": 1, "dest_addr": to.lstrip("+")}],
        }
        return await self.client.post(
            BEEM_URL,
            json=payload,
            auth=(beem_api_key, beem_secret_key),
        )

    async def _call_africas_talking(self, to: str, message: str) -> httpx.Response:
        form = {"username": at_username, "to": to, "message": message, "from": at_from}
        return await self.client.post(
            AFRICAS_TALKING_URL,
            data=form,
            headers={"apiKey": at_api_key, "Accept": "application/json"},
        )

    async def send_sms(self, to: str, message: str) -> SmsMessageModel:
        """Send one SMS

        Args:
            to (str): Phone number, +255XXXXXXXXX
            message (str): Text to send

        Returns:
            SmsMessageModel: status sent, or failed with error_message
        """
        sms = SmsMessageModel(to=to, message=message)
        try:
            if self.provider == BEEM:
                response = await self._call_beem(to, message)
            else:
                response = await self._call_africas_talking(to, message)
            response.raise_for_status()
            sms.status = SmsStatusModel.sent
            sms.sent_at = datetime.now()
        except httpx.HTTPStatusError as e:
            logging.error(f"{self.provider} rejected SMS to {to}: {e.response.status_code}")
            sms.status = SmsStatusModel.failed
            sms.error_message = f"HTTP error! status: {e.response.status_code}"
        except httpx.HTTPError as e:
            logging.error(f"Failed to send SMS to {to} via {self.provider}: {e}")
            sms.status = SmsStatusModel.failed
            sms.error_message = str(e) or "Network error"
        return sms

    async def send_bulk(self, recipients: List[str], message: str) -> List[SmsMessageModel]:
        return list(await asyncio.gather(*(self.send_sms(to, message) for to in recipients)))

    async def send_templated(
        self,
        template: Union[TemplateModel, NotificationTemplateSchema],
        recipients: List[UserModel],
        variables: Optional[Dict[str, object]] = None,
    ) -> List[SmsMessageModel]:
        """Personalize a template per recipient and send it

        firstName and lastName are filled from each recipient and override
        the shared variables.
        """
        variables = variables or {}
        sends = []
        for recipient in recipients:
            text = personalize_message(
                template.content,
                {
                    **variables,
                    "firstName": recipient.first_name,
                    "lastName": recipient.last_name,
                },
            )
            sends.append(self.send_sms(recipient.phone_number, text))
        return list(await asyncio.gather(*sends))
