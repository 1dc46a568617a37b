from django.conf import settings
from django.db import models


class SiteStatus(models.Model):
    """
    One row per open/close switch by an admin. The newest row is the current
    state; no rows means the shop is open.
    """
    is_temporarily_closed = models.BooleanField(default=False)
    reason = models.CharField(max_length=200, blank=True, default="")
    updated_by = models.ForeignKey(
        settings.AUTH_USER_MODEL, null=True, blank=True, on_delete=models.SET_NULL, related_name="site_status_changes"
    )
    last_updated = models.DateTimeField(auto_now_add=True, db_index=True)

    class Meta:
        ordering = ["-last_updated", "-id"]
        verbose_name_plural = "site status"

    def __str__(self):
        state = "closed" if self.is_temporarily_closed else "open"
        return f"SiteStatus {state} at {self.last_updated} by={self.updated_by_id}"
