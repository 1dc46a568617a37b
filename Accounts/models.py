from decimal import Decimal

from django.contrib.auth.models import AbstractUser
from django.db import models


class Account(AbstractUser):
    """Customer or admin account with running purchase aggregates."""

    class Role(models.TextChoices):
        ADMIN = "admin", "Admin"
        CUSTOMER = "customer", "Customer"

    role = models.CharField(max_length=20, choices=Role.choices, default=Role.CUSTOMER, db_index=True)
    phone_number = models.CharField(max_length=30, blank=True, default="")
    hostel_room = models.CharField(max_length=50, blank=True, default="")
    # maintained only through Accounts.ledger
    total_purchases = models.PositiveIntegerField(default=0)
    total_spent = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal("0.00"))

    class Meta:
        ordering = ["-date_joined"]
        constraints = [
            models.CheckConstraint(condition=models.Q(total_spent__gte=0), name="account_total_spent_non_negative"),
        ]

    @property
    def is_admin(self):
        return self.role == self.Role.ADMIN

    @property
    def display_name(self):
        return self.get_full_name() or self.username

    def __str__(self):
        return f"Account {self.username} role={self.role} purchases={self.total_purchases} spent={self.total_spent}"
