from decimal import Decimal

from django.conf import settings
from django.core.validators import MinValueValidator
from django.db import models


class Item(models.Model):
    class Category(models.TextChoices):
        CHIPS = "chips", "Chips"
        CHOCOLATE = "chocolate", "Chocolate"
        DRINKS = "drinks", "Drinks"
        COOKIES = "cookies", "Cookies"
        CANDY = "candy", "Candy"
        HEALTHY = "healthy", "Healthy"
        OTHER = "other", "Other"

    name = models.CharField(max_length=100, db_index=True)
    description = models.CharField(max_length=500, blank=True, default="")
    category = models.CharField(max_length=20, choices=Category.choices, db_index=True)
    price = models.DecimalField(max_digits=10, decimal_places=2, validators=[MinValueValidator(Decimal("0"))])
    cost_price = models.DecimalField(
        max_digits=10, decimal_places=2, null=True, blank=True, validators=[MinValueValidator(Decimal("0"))]
    )
    quantity = models.PositiveIntegerField(default=0)             # on-hand stock
    low_stock_threshold = models.PositiveIntegerField(default=5)  # alert when quantity <= threshold
    image_url = models.URLField(max_length=500, blank=True, default="")  # URL from the media store
    barcode = models.CharField(max_length=64, null=True, blank=True, unique=True)
    tags = models.JSONField(default=list, blank=True)
    is_active = models.BooleanField(default=True, db_index=True)  # soft delete
    # sales counters, mutated only through Inventory.stock
    sales = models.PositiveIntegerField(default=0)
    revenue = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal("0.00"))
    created_by = models.ForeignKey(
        settings.AUTH_USER_MODEL, null=True, blank=True, on_delete=models.SET_NULL, related_name="items_created"
    )
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["-created_at"]
        constraints = [
            models.CheckConstraint(condition=models.Q(quantity__gte=0), name="item_quantity_non_negative"),
            models.CheckConstraint(condition=models.Q(price__gte=0), name="item_price_non_negative"),
        ]
        indexes = [
            models.Index(fields=["is_active", "quantity"], name="item_active_quantity_idx"),
            models.Index(fields=["-sales"], name="item_sales_idx"),
        ]

    def is_low_stock(self):
        return 0 < self.quantity <= self.low_stock_threshold

    def is_out_of_stock(self):
        return self.quantity == 0

    @property
    def stock_status(self):
        if self.is_out_of_stock():
            return "out_of_stock"
        if self.is_low_stock():
            return "low_stock"
        return "in_stock"

    @property
    def profit_margin(self):
        """Markup over cost in percent, 0 when cost is unknown."""
        if not self.cost_price:
            return Decimal("0")
        return ((self.price - self.cost_price) / self.cost_price * 100).quantize(Decimal("0.01"))

    def __str__(self):
        return f"Item {self.name} category={self.category} price={self.price} quantity={self.quantity}"
