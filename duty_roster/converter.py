from datetime import datetime
from typing import Optional
from uuid import UUID

from uuid6 import uuid7

from duty_roster.domain.templates import extract_variables
from duty_roster.models.dc_models import (
    MealModel,
    MeditationModel,
    MessageModel,
    MessageScheduleModel,
    TemplateModel,
    UserCreateModel,
    UserModel,
    UserUpdateModel,
    WorkDutyModel,
)
from duty_roster.models.schema_models import (
    MealSchema,
    MeditationSchema,
    MessageSchema,
    NotificationTemplateSchema,
    WorkDutySchema,
)


class DataConverter:
    """This class is used to convert request models to row schemas and back."""

    def convert_usercreatemodel_to_usermodel(self, user: UserCreateModel) -> UserModel:
        return UserModel(
            first_name=user.first_name,
            last_name=user.last_name,
            username=user.username,
            email=user.email,
            phone_number=user.phone_number,
            gender=user.gender,
            university=user.university,
            course=user.course,
            date_of_birth=user.date_of_birth,
            roles=set(user.roles),
            created_at=datetime.now(),
        )

    def apply_userupdatemodel(self, user: UserModel, update: UserUpdateModel) -> UserModel:
        """Overlay the fields that were sent on an existing user

        Args:
            user (UserModel): The stored user
            update (UserUpdateModel): Partial update, unset fields are kept

        Returns:
            UserModel: A new model with the changes applied
        """
        changes = update.model_dump(exclude_unset=True)
        if changes.get("roles") is not None:
            changes["roles"] = set(changes["roles"])
        return user.model_copy(update=changes)

    def convert_meditationmodel_to_schema(
        self, meditation: MeditationModel, meditation_id: Optional[UUID] = None
    ) -> MeditationSchema:
        return MeditationSchema(
            meditation_id=meditation_id or uuid7(),
            **meditation.model_dump(),
        )

    def convert_mealmodel_to_schema(self, meal: MealModel, meal_id: Optional[UUID] = None) -> MealSchema:
        return MealSchema(meal_id=meal_id or uuid7(), **meal.model_dump())

    def convert_workdutymodel_to_schema(
        self, work_duty: WorkDutyModel, work_duty_id: Optional[UUID] = None
    ) -> WorkDutySchema:
        return WorkDutySchema(work_duty_id=work_duty_id or uuid7(), **work_duty.model_dump())

    def convert_messagemodel_to_schema(self, message: MessageModel, sent_by: UUID) -> MessageSchema:
        """Flatten the optional schedule into the message row

        Args:
            message (MessageModel): Message as sent by the client
            sent_by (UUID): The admin who wrote it
        """
        schedule = message.schedule
        return MessageSchema(
            message_id=uuid7(),
            content=message.content,
            recipients=message.recipients,
            schedule_start_date=schedule.start_date if schedule else None,
            schedule_frequency=schedule.frequency if schedule else None,
            schedule_end_date=schedule.end_date if schedule else None,
            sent_by=sent_by,
        )

    def convert_messageschema_to_schedule(self, message: MessageSchema) -> Optional[MessageScheduleModel]:
        if message.schedule_start_date is None:
            return None
        return MessageScheduleModel(
            start_date=message.schedule_start_date,
            frequency=message.schedule_frequency,
            end_date=message.schedule_end_date,
        )

    def convert_templatemodel_to_schema(
        self, template: TemplateModel, created_at: Optional[datetime] = None
    ) -> NotificationTemplateSchema:
        now = datetime.now()
        return NotificationTemplateSchema(
            template_id=template.template_id,
            name=template.name,
            content=template.content,
            variables=extract_variables(template.content),
            is_active=template.is_active,
            created_at=created_at or now,
            updated_at=now,
        )
