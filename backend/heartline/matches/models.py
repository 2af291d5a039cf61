# heartline/matches/models.py
from django.conf import settings
from django.db import models


class MatchAction(models.Model):
    """
    actor 가 target 에게 한 마지막 스와이프. (actor, target) 당 한 줄만 존재하고
    다시 스와이프하면 덮어씀. 서로 like 인지는 저장하지 않고 매번 두 줄로 계산.
    """

    LIKE = "like"
    PASS = "pass"
    ACTION_CHOICES = (
        (LIKE, "like"),
        (PASS, "pass"),
    )

    actor = models.ForeignKey(
        settings.AUTH_USER_MODEL, related_name="actions_made", on_delete=models.CASCADE
    )
    target = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        related_name="actions_received",
        on_delete=models.CASCADE,
    )
    action = models.CharField(max_length=4, choices=ACTION_CHOICES)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        constraints = [
            models.UniqueConstraint(
                fields=["actor", "target"], name="unique_match_action_pair"
            ),
        ]
        indexes = [
            models.Index(fields=["target", "action"], name="match_target_action_idx"),
        ]

    def __str__(self):
        return f"{self.actor_id} -{self.action}-> {self.target_id}"
