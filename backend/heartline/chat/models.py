# heartline/chat/models.py
from django.conf import settings
from django.db import models


class Message(models.Model):
    # "3_17" 처럼 정렬된 두 user id. 양쪽 방향 모두 같은 대화로 묶임
    conversation_id = models.CharField(max_length=64, db_index=True)
    sender = models.ForeignKey(
        settings.AUTH_USER_MODEL, related_name="sent_messages", on_delete=models.CASCADE
    )
    recipient = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        related_name="received_messages",
        on_delete=models.CASCADE,
    )
    body = models.TextField()
    is_read = models.BooleanField(default=False)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["created_at", "id"]
        indexes = [
            models.Index(
                fields=["conversation_id", "created_at"],
                name="chat_message_conv_created_idx",
            ),
        ]

    def __str__(self):
        return f"{self.conversation_id} #{self.id}"
