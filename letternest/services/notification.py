"""Notification service delivering newsletters through Resend."""

from datetime import datetime, timezone

from letternest.infrastructure.api_clients import ResendEmailClient
from letternest.infrastructure.logging import LoggerMixin
from letternest.models.email import EmailContent
from letternest.models.user import DeliveryResult, DeliveryStatus, UserProfile


class NotificationService(LoggerMixin):
    """Sends the rendered newsletter and reports the outcome.

    Never raises: a failed send is returned as an unsuccessful
    ``DeliveryResult`` so the pipeline can carry on.
    """

    def __init__(self, email_client: ResendEmailClient):
        self.email_client = email_client

    async def send_newsletter(self, email_content: EmailContent, user_profile: UserProfile) -> DeliveryResult:
        """Send newsletter email to user."""
        if not user_profile.email:
            self.logger.error("Profile has no delivery email", user_id=user_profile.user_id)
            return DeliveryResult(
                success=False,
                status=DeliveryStatus.FAILED,
                error_message="No delivery email on profile",
            )

        self.logger.info(
            "Sending newsletter",
            user_id=user_profile.user_id,
            subject=email_content.subject,
        )

        try:
            delivery_id = await self.email_client.send_email(
                to=[user_profile.email],
                subject=email_content.subject,
                html=email_content.html,
                sender=email_content.sender,
                text=email_content.text,
                reply_to=email_content.reply_to,
                tags=email_content.tags,
            )
        except Exception as e:
            self.logger.error(
                "Newsletter delivery failed",
                user_id=user_profile.user_id,
                error=str(e),
            )
            return DeliveryResult(
                success=False,
                status=DeliveryStatus.FAILED,
                error_message=str(e),
                metadata={"subject": email_content.subject},
            )

        self.logger.info("Newsletter sent successfully", user_id=user_profile.user_id, delivery_id=delivery_id)
        return DeliveryResult(
            success=True,
            delivery_id=delivery_id,
            status=DeliveryStatus.SENT,
            sent_at=datetime.now(timezone.utc),
            metadata={"subject": email_content.subject},
        )
