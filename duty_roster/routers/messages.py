import logging
from datetime import datetime
from typing import List
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, status

from duty_roster.authentication.basic_authentication import BasicAuthentication
from duty_roster.converter import DataConverter
from duty_roster.dependencies import get_clock, get_repository, get_sms_gateway
from duty_roster.models.dc_models import (
    MessageModel,
    SmsMessageModel,
    SmsStatusModel,
    TemplateModel,
    TemplateSendModel,
    UserModel,
)
from duty_roster.models.schema_models import MessageSchema, NotificationTemplateSchema
from duty_roster.routers.guards import not_found, require_admin, server_error
from duty_roster.services.roster_db import RosterRepository
from duty_roster.sms_gateway import SmsGateway

message_router = APIRouter(prefix="/messages")
basic_auth = BasicAuthentication()
data_converter = DataConverter()


async def _recipients(user_ids: List[UUID], repository: RosterRepository) -> List[UserModel]:
    """Known users among the ids. Unknown ids are skipped."""
    people = {user.user_id: user for user in await repository.list_users()}
    return [people[user_id] for user_id in user_ids if user_id in people]


class MessageServer:
    @staticmethod
    @message_router.get("", response_model=List[MessageSchema])
    async def list_messages(
        user_data: UserModel = Depends(basic_auth.check_user_data),
        repository: RosterRepository = Depends(get_repository),
    ) -> List[MessageSchema]:
        require_admin(user_data)
        return await repository.list_messages()

    @staticmethod
    @message_router.post("", response_model=MessageSchema, status_code=status.HTTP_201_CREATED)
    async def create_message(
        message: MessageModel,
        user_data: UserModel = Depends(basic_auth.check_user_data),
        repository: RosterRepository = Depends(get_repository),
        gateway: SmsGateway = Depends(get_sms_gateway),
        now: datetime = Depends(get_clock),
    ) -> MessageSchema:
        """Store a message. Unscheduled messages are sent right away,
        scheduled ones go out from the reminder job.
        """
        require_admin(user_data)
        schema = data_converter.convert_messagemodel_to_schema(message, user_data.user_id)
        try:
            await repository.create_message(schema)
        except RuntimeError as e:
            raise server_error(e)

        if message.schedule is None:
            recipients = await _recipients(message.recipients, repository)
            results = await gateway.send_bulk([u.phone_number for u in recipients], message.content)
            failed = sum(1 for r in results if r.status != SmsStatusModel.sent)
            logging.info(f"Message {schema.message_id} sent to {len(results) - failed}, failed {failed}")
            sent_at = now.replace(tzinfo=None)
            await repository.mark_message_sent(schema.message_id, sent_at)
            schema.sent_at = sent_at
            schema.last_sent_on = sent_at.date()
        return schema

    # ---------------------------------------------------------------
    # Templates
    # ---------------------------------------------------------------
    @staticmethod
    @message_router.get("/templates", response_model=List[NotificationTemplateSchema])
    async def list_templates(
        user_data: UserModel = Depends(basic_auth.check_user_data),
        repository: RosterRepository = Depends(get_repository),
    ) -> List[NotificationTemplateSchema]:
        require_admin(user_data)
        return await repository.list_templates()

    @staticmethod
    @message_router.post(
        "/templates", response_model=NotificationTemplateSchema, status_code=status.HTTP_201_CREATED
    )
    async def create_template(
        template: TemplateModel,
        user_data: UserModel = Depends(basic_auth.check_user_data),
        repository: RosterRepository = Depends(get_repository),
    ) -> NotificationTemplateSchema:
        require_admin(user_data)
        try:
            await repository.get_template(template.template_id)
        except LookupError:
            try:
                return await repository.create_template(template)
            except RuntimeError as e:
                raise server_error(e)
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=f"Template {template.template_id} already exists",
        )

    @staticmethod
    @message_router.put("/templates/{template_id}", response_model=NotificationTemplateSchema)
    async def update_template(
        template_id: str,
        template: TemplateModel,
        user_data: UserModel = Depends(basic_auth.check_user_data),
        repository: RosterRepository = Depends(get_repository),
    ) -> NotificationTemplateSchema:
        require_admin(user_data)
        try:
            return await repository.update_template(template.model_copy(update={"template_id": template_id}))
        except LookupError as e:
            raise not_found(e)

    @staticmethod
    @message_router.delete("/templates/{template_id}", status_code=status.HTTP_204_NO_CONTENT)
    async def delete_template(
        template_id: str,
        user_data: UserModel = Depends(basic_auth.check_user_data),
        repository: RosterRepository = Depends(get_repository),
    ) -> None:
        require_admin(user_data)
        try:
            await repository.delete_template(template_id)
        except LookupError as e:
            raise not_found(e)

    @staticmethod
    @message_router.post("/templates/{template_id}/send", response_model=List[SmsMessageModel])
    async def send_template(
        template_id: str,
        request: TemplateSendModel,
        user_data: UserModel = Depends(basic_auth.check_user_data),
        repository: RosterRepository = Depends(get_repository),
        gateway: SmsGateway = Depends(get_sms_gateway),
    ) -> List[SmsMessageModel]:
        require_admin(user_data)
        try:
            template = await repository.get_template(template_id)
        except LookupError as e:
            raise not_found(e)
        if not template.is_active:
            raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=f"Template {template_id} is inactive")
        recipients = await _recipients(request.recipients, repository)
        return await gateway.send_templated(template, recipients, request.variables)
