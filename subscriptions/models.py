from django.db import models


class Tier(models.TextChoices):
    FREE = "free", "Free"
    PREMIUM = "premium", "Premium"


class CompanySubscription(models.Model):
    """Subscription tier of a company. Companies without a row use OKR_DEFAULT_SUBSCRIPTION_TIER."""

    company_id = models.PositiveIntegerField(unique=True)
    tier = models.CharField(max_length=20, choices=Tier.choices, default=Tier.FREE)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["company_id"]

    def __str__(self) -> str:
        return f"Company {self.company_id} ({self.get_tier_display()})"

    @property
    def is_premium(self) -> bool:
        return self.tier == Tier.PREMIUM
